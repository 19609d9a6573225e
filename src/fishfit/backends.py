"""Solver backends for Model.fit.

A backend fits one dataset and reports a `BackendResult`. Only nonlinear
least squares (`scipy.optimize.curve_fit`) is registered; growth and
depletion curves are fitted to lengths or catch rates with normal errors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Tuple

import numpy as np
from scipy.optimize import curve_fit


@dataclass(frozen=True)
class BackendResult:
    """Normalized result returned by any backend."""

    theta: np.ndarray  # free parameters, shape (P,)
    cov: Optional[np.ndarray] = None  # free-parameter covariance, (P,P)
    success: bool = True
    message: str = ""
    stats: Dict[str, Any] = field(default_factory=dict)


class Backend(Protocol):
    name: str

    def fit_one(
        self,
        *,
        model: Any,
        dataset: Any,
        free_names: list[str],
        fixed_map: dict[str, float],
        p0: np.ndarray,
        bounds: Tuple[np.ndarray, np.ndarray],
        options: dict[str, Any],
    ) -> BackendResult: ...


class CurveFitBackend:
    name = "scipy.curve_fit"

    def fit_one(
        self,
        *,
        model: Any,
        dataset: Any,
        free_names: list[str],
        fixed_map: dict[str, float],
        p0: np.ndarray,
        bounds: Tuple[np.ndarray, np.ndarray],
        options: dict[str, Any],
    ) -> BackendResult:
        if dataset.format != "normal":
            raise NotImplementedError(f"{self.name} fits least-squares data only.")

        y = np.asarray(dataset.payload["y"], dtype=float)
        sigma = dataset.payload.get("sigma")

        def f_free(t, *theta_free):
            kw = dict(fixed_map)
            kw.update(zip(free_names, (float(v) for v in theta_free)))
            return model.eval(t, **kw)

        kwargs: Dict[str, Any] = {}
        if options.get("maxfev") is not None:
            kwargs["max_nfev" if _bounded(bounds) else "maxfev"] = int(options["maxfev"])

        if not free_names:
            return BackendResult(
                theta=np.empty(0),
                cov=None,
                success=True,
                message="all parameters fixed",
                stats={"backend": self.name, "nfev": 0},
            )

        try:
            popt, pcov, info, msg, _ = curve_fit(
                f_free,
                dataset.x,
                y,
                p0=np.asarray(p0, dtype=float),
                sigma=sigma,
                absolute_sigma=sigma is not None,
                bounds=bounds,
                full_output=True,
                **kwargs,
            )
        except (RuntimeError, ValueError) as exc:
            # Soft fail: report the seed so callers can inspect it.
            return BackendResult(
                theta=np.asarray(p0, dtype=float),
                cov=None,
                success=False,
                message=str(exc),
                stats={"backend": self.name, "error": str(exc)},
            )
        cov = np.asarray(pcov, dtype=float)
        if not np.all(np.isfinite(cov)):
            cov = None
        return BackendResult(
            theta=np.asarray(popt, dtype=float),
            cov=cov,
            success=True,
            message=str(msg),
            stats={"backend": self.name, "nfev": int(info.get("nfev", 0))},
        )


def _bounded(bounds: Tuple[np.ndarray, np.ndarray]) -> bool:
    lo, hi = bounds
    return bool(np.any(np.isfinite(lo)) or np.any(np.isfinite(hi)))


_BACKENDS: Dict[str, Backend] = {
    "scipy.curve_fit": CurveFitBackend(),
}


def get_backend(name: str) -> Backend:
    """Return a backend implementation by name."""
    try:
        return _BACKENDS[name]
    except KeyError as e:
        raise ValueError(
            f"Unknown backend {name!r}. Available: {tuple(_BACKENDS.keys())}"
        ) from e


