from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Mapping, Optional, Tuple

import numpy as np

from .params import ParamsView


@dataclass(frozen=True)
class Results:
    params: ParamsView
    seed: Optional[ParamsView] = None
    cov: Optional[np.ndarray] = None
    backend: str = ""
    stats: Dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, key):
        return self.params[key]

    def summary(self, digits: int = 4) -> str:
        """Return a human-readable summary string for the results."""
        lines = [f"Results(backend={self.backend!r})"]
        for name, pv in self.params.items():
            v = float(pv.value)
            if pv.fixed and not pv.derived:
                tag = " (fixed)"
            elif pv.derived:
                tag = " (derived)"
            else:
                tag = ""
            if pv.stderr is None:
                lines.append(f"  {name:>8s}: {v:.{digits}g}{tag}")
            else:
                lines.append(f"  {name:>8s}: {v:.{digits}g} ± {float(pv.stderr):.{digits}g}{tag}")
        return "\n".join(lines)


@dataclass(frozen=True)
class Run:
    """One fit of a Model to a dataset."""

    model: Any  # Model
    results: Results
    backend: str
    data: Dict[str, Any] = None
    success: bool = True
    message: str = ""

    def predict(
        self,
        x: Any,
        *,
        which: Literal["fit", "seed"] = "fit",
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Evaluate the model at `x` using fitted or seed parameters.

        which="fit"  -> use results.params
        which="seed" -> use results.seed
        params=...   -> explicit param mapping; 'which' must be "fit"
        """
        if params is not None and which != "fit":
            raise ValueError("Cannot pass explicit params when which != 'fit'.")
        if params is None:
            if which == "fit":
                p = self.results.params
            elif which == "seed":
                if self.results.seed is None:
                    raise ValueError("No seed parameters available on this Run.")
                p = self.results.seed
            else:
                raise ValueError(f"Unknown value for 'which': {which!r}")
        else:
            p = params
        base = {n: p[n] for n in self.model.param_names if n in p}
        return self.model.eval(x, params=base)

    # ---- goodness of fit ----
    def residuals(self) -> np.ndarray:
        """Observed minus fitted response for the fitted data."""
        ds = self.data["dataset"]
        return np.asarray(ds.payload["y"], dtype=float) - np.asarray(
            self.predict(ds.x), dtype=float
        )

    @property
    def nobs(self) -> int:
        return int(self.data["dataset"].x.size)

    @property
    def n_free(self) -> int:
        return sum(
            1
            for pv in self.results.params.values()
            if not pv.fixed and not pv.derived
        )

    def _sigma(self) -> Optional[np.ndarray]:
        sigma = self.data["dataset"].payload.get("sigma")
        return None if sigma is None else np.asarray(sigma, dtype=float)

    @property
    def rss(self) -> float:
        """Residual sum of squares; weighted by 1/sigma**2 when the fit was."""
        r = self.residuals()
        sigma = self._sigma()
        if sigma is not None:
            r = r / sigma
        return float(np.sum(r**2))

    @property
    def df_residual(self) -> int:
        return self.nobs - self.n_free

    @property
    def loglik(self) -> float:
        """Gaussian log-likelihood at the least-squares fit (variance = RSS/n).

        Weighted fits carry the extra -sum(log sigma) term.
        """
        n = self.nobs
        ll = -0.5 * n * (np.log(2.0 * np.pi) + 1.0 - np.log(n) + np.log(self.rss))
        sigma = self._sigma()
        if sigma is not None:
            ll -= np.sum(np.log(sigma))
        return float(ll)

    def summary(self, digits: int = 4) -> str:
        lines = [self.results.summary(digits)]
        lines.append(
            f"  RSS={self.rss:.{digits}g} on {self.df_residual} df; "
            f"logLik={self.loglik:.{digits}g}; success={self.success}"
        )
        return "\n".join(lines)

    def plot(self, *, ax: Optional[Any] = None, **kwargs: Any) -> Tuple[Any, Any]:
        """Plot the data with the fitted curve (see `fishfit.plotting.plot_fit`)."""
        from .plotting import plot_fit

        ds = self.data["dataset"]
        yerr = ds.payload.get("sigma")
        return plot_fit(ax=ax, x=ds.x, y=ds.payload["y"], yerr=yerr, run=self, **kwargs)
