"""Starting values for von Bertalanffy growth models.

`vb_starts` derives a complete set of starting values for one of the growth
parameterizations in `fishfit.growth` from paired age and length
observations. Each parameterization is a recipe: the ordered parameter names
it returns and the derivation steps that produce them. Every step resolves
its values through `_Derivation.resolve`, so a value supplied in ``fixed=``
replaces both the computation and its sanity check.

Derivations (Ogle 2016, Introductory Fisheries Analyses with R):

- Linf and K from a Ford-Walford regression of mean length at age t+1 on mean
  length at age t (Linf = a / (1 - b), K = -ln b); Linf alternatively from the
  mean length of the longest fish or of fish in the oldest ages.
- t0 and L0 by solving the curve at the youngest observed age, or from a
  quadratic fit of mean length on age.
- L1, L2, L3 (Schnute, Francis) from observed means (interpolated) or the
  quadratic fit at the reference ages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import (
    Any,
    Callable,
    Dict,
    Literal,
    Mapping,
    Optional,
    Sequence,
    Tuple,
)
from warnings import warn

import numpy as np
import pandas as pd

from .data import column, paired
from .growth import Parameterization
from .util import ols

__all__ = ["GrowthObservations", "Parameterization", "vb_starts", "starts_names"]

P = Parameterization

_LINF_METHODS = ("Walford", "oldAge", "longFish")
_ZERO_METHODS = ("yngAge", "poly")
_ENDPOINT_METHODS = ("means", "poly")


@dataclass(frozen=True)
class GrowthObservations:
    """Paired age/length observations and the summaries derived from them."""

    age: np.ndarray
    length: np.ndarray

    def __post_init__(self) -> None:
        age = column(self.age, name="age")
        length = column(self.length, name="length")
        paired([age, length], ["age", "length"])
        if age.size == 0:
            raise ValueError("At least one (age, length) observation is required.")
        object.__setattr__(self, "age", age)
        object.__setattr__(self, "length", length)

    @cached_property
    def ages(self) -> np.ndarray:
        """Observed ages, ascending."""
        return np.unique(self.age)

    @cached_property
    def counts(self) -> np.ndarray:
        return np.asarray([np.count_nonzero(self.age == a) for a in self.ages])

    @cached_property
    def mean_length(self) -> np.ndarray:
        """Mean length at each observed age."""
        return np.asarray([self.length[self.age == a].mean() for a in self.ages])

    @cached_property
    def walford(self) -> Tuple[float, float]:
        """(intercept, slope) of mean length at the next age on mean length."""
        if self.ages.size < 3:
            raise ValueError(
                "Linf and K cannot be determined from a Walford regression with fewer "
                f"than 3 observed ages (found {self.ages.size}); supply them in fixed=."
            )
        a, b = ols(self.mean_length[:-1], self.mean_length[1:], degree=1)
        return float(a), float(b)

    @cached_property
    def quadratic(self) -> np.ndarray:
        """Quadratic coefficients (lowest order first) of mean length on age."""
        if self.ages.size < 3:
            raise ValueError(
                "A quadratic fit of mean length on age needs at least 3 observed ages "
                f"(found {self.ages.size})."
            )
        return ols(self.ages, self.mean_length, degree=2)


# ---- derivation state ------------------------------------------------------


@dataclass
class _Derivation:
    obs: GrowthObservations
    param: Parameterization
    fixed: Mapping[str, float]
    meth0: str = "yngAge"
    meth_linf: str = "Walford"
    num4linf: int = 1
    ages2use: Optional[Sequence[float]] = None
    meth_ev: str = "means"
    val_ogle: Optional[Tuple[str, float]] = None
    values: Dict[str, float] = field(default_factory=dict)

    def resolve(
        self,
        name: str,
        compute: Callable[[], float],
        check: Optional[Callable[[float], None]] = None,
    ) -> float:
        """Value for `name`: fixed if supplied, else computed then checked."""
        if name in self.values:
            return self.values[name]
        if name in self.fixed:
            value = float(self.fixed[name])
        else:
            value = float(compute())
            if check is not None:
                check(value)
        self.values[name] = value
        return value

    @cached_property
    def reference_ages(self) -> np.ndarray:
        """Ages at which the Schnute/Francis endpoint lengths are taken."""
        if self.ages2use is None:
            ref = np.asarray([self.obs.ages[0], self.obs.ages[-1]], dtype=float)
        else:
            ref = np.asarray(self.ages2use, dtype=float).reshape(-1)
            if ref.size != 2:
                raise ValueError("'ages2use' must be None or contain exactly two ages.")
        if ref[0] == ref[1]:
            raise ValueError(f"The two ages in 'ages2use' must differ (got {ref[0]:g} twice).")
        if ref[1] < ref[0]:
            warn(
                "'ages2use' should be in ascending order; order reversed to continue.",
                UserWarning,
                stacklevel=5,
            )
            ref = ref[::-1].copy()
        if self.param is P.FRANCIS:
            ref = np.asarray([ref[0], ref.mean(), ref[1]])
        return ref


# ---- checks ----------------------------------------------------------------

# Forms whose returned K is the Walford K itself.
_K_RETURNED = {P.TYPICAL, P.ORIGINAL, P.GQ, P.SCHNUTE}


def _check_linf(d: _Derivation) -> Callable[[float], None]:
    max_len = float(np.max(d.obs.length))

    def check(linf: float) -> None:
        if not (0.5 * max_len <= linf <= 1.5 * max_len):
            warn(
                f"Starting value for Linf ({linf:.4g}) is very different from the "
                f"observed maximum length ({max_len:g}), which suggests a model fitting "
                "problem. See a Walford plot to examine the problem. Consider using the "
                "mean length of several of the largest fish (meth_linf='oldAge' or "
                "'longFish') or setting Linf in fixed= to the maximum observed length.",
                UserWarning,
                stacklevel=5,
            )

    return check


def _check_k(d: _Derivation) -> Callable[[float], None]:
    def check(k: float) -> None:
        if k < 0:
            lead = (
                "The suggested starting value for K is negative"
                if d.param in _K_RETURNED
                else "One suggested starting value is based on a negative K"
            )
            warn(
                f"{lead} ({k:.4g}), which suggests a model fitting problem. See a "
                "Walford plot to examine the problem. Consider setting K=0.3 in fixed=.",
                UserWarning,
                stacklevel=5,
            )

    return check


# ---- sub-derivations -------------------------------------------------------

_Step = Callable[[_Derivation], None]


def _produces(*names: str) -> Callable[[_Step], _Step]:
    """Record the parameter names a derivation step can resolve."""

    def deco(fn: _Step) -> _Step:
        fn.produces = names  # type: ignore[attr-defined]
        return fn

    return deco


def _compute_linf(d: _Derivation) -> float:
    obs = d.obs
    if d.meth_linf == "Walford":
        a, b = obs.walford
        with np.errstate(divide="ignore", invalid="ignore"):
            return float(np.float64(a) / (1.0 - b))
    n = int(d.num4linf)
    if n < 1:
        raise ValueError(f"'num4linf' must be at least 1 (got {n}).")
    if d.meth_linf == "longFish":
        if n > obs.length.size:
            raise ValueError(
                f"'num4linf' ({n}) must not exceed the number of recorded lengths "
                f"({obs.length.size})."
            )
        return float(np.mean(np.sort(obs.length)[::-1][:n]))
    if n > obs.ages.size:
        raise ValueError(
            f"'num4linf' ({n}) must not exceed the number of observed ages ({obs.ages.size})."
        )
    oldest = obs.ages[-n:]
    return float(np.mean(obs.length[np.isin(obs.age, oldest)]))


def _compute_k(d: _Derivation) -> float:
    _, b = d.obs.walford
    if b <= 0:
        warn(
            f"The Walford regression slope ({b:.4g}) is not positive, so K cannot be "
            "derived from it; supply K in fixed=.",
            UserWarning,
            stacklevel=6,
        )
        return float("nan")
    return -float(np.log(b))


@_produces("Linf", "K")
def _linf_k(d: _Derivation) -> None:
    d.resolve("Linf", lambda: _compute_linf(d), _check_linf(d))
    d.resolve("K", lambda: _compute_k(d), _check_k(d))


@_produces("K")
def _k_only(d: _Derivation) -> None:
    d.resolve("K", lambda: _compute_k(d), _check_k(d))


def _nearest_zero_root(coef: np.ndarray) -> float:
    roots = np.real(np.roots(np.asarray(coef, dtype=float)[::-1]))
    if roots.size == 0:
        raise ValueError(
            "The quadratic fit of mean length on age has no roots; use meth0='yngAge' "
            "or supply t0 in fixed=."
        )
    dist = np.abs(roots)
    tied = roots[np.isclose(dist, dist.min(), rtol=1e-12, atol=0.0)]
    # Equidistant roots: prefer the negative one. A repeated root is used once.
    return float(np.min(tied))


def _youngest(d: _Derivation) -> Tuple[float, float]:
    return float(d.obs.ages[0]), float(d.obs.mean_length[0])


def _warn_nonfinite(name: str, value: float) -> float:
    if not np.isfinite(value):
        warn(
            f"Starting value for {name} could not be derived from the youngest age "
            f"(got {value}); try meth0='poly' or supply {name} in fixed=.",
            UserWarning,
            stacklevel=6,
        )
    return value


@_produces("t0")
def _t0(d: _Derivation) -> None:
    def compute() -> float:
        if d.meth0 == "poly":
            return _nearest_zero_root(d.obs.quadratic)
        age, mean = _youngest(d)
        linf, k = d.values["Linf"], d.values["K"]
        with np.errstate(divide="ignore", invalid="ignore"):
            value = age + (1.0 / k) * np.log((linf - mean) / linf)
        return _warn_nonfinite("t0", float(value))

    d.resolve("t0", compute)


@_produces("L0")
def _l0(d: _Derivation) -> None:
    def compute() -> float:
        if d.meth0 == "poly":
            return float(d.obs.quadratic[0])
        age, mean = _youngest(d)
        linf, k = d.values["Linf"], d.values["K"]
        with np.errstate(over="ignore", invalid="ignore"):
            value = linf + (mean - linf) / np.exp(-k * age)
        return _warn_nonfinite("L0", float(value))

    d.resolve("L0", compute)


@_produces("omega")
def _omega(d: _Derivation) -> None:
    d.resolve("omega", lambda: d.values["Linf"] * d.values["K"])


@_produces("t50")
def _t50(d: _Derivation) -> None:
    d.resolve("t50", lambda: np.log(2.0) / d.values["K"] + d.values["t0"])


@_produces("Kpr")
def _kpr(d: _Derivation) -> None:
    d.resolve("Kpr", lambda: d.values["K"] / (1.0 - d.values["NGT"]))


def _constants(**defaults: float) -> _Step:
    """Step for parameters that cannot be estimated from data."""

    @_produces(*defaults)
    def step(d: _Derivation) -> None:
        for name, value in defaults.items():
            d.resolve(name, lambda value=value: value)

    step.__name__ = "_constants_" + "_".join(defaults)
    return step


def _endpoint_lengths(d: _Derivation, ref: np.ndarray) -> np.ndarray:
    obs = d.obs
    if d.meth_ev == "poly":
        return np.polyval(obs.quadratic[::-1], ref)
    outside = (ref < obs.ages[0]) | (ref > obs.ages[-1])
    if np.any(outside):
        bad = ", ".join(f"{a:g}" for a in ref[outside])
        raise ValueError(
            f"Reference age(s) {bad} lie outside the observed ages "
            f"({obs.ages[0]:g}-{obs.ages[-1]:g}); change 'ages2use' or use meth_ev='poly'."
        )
    return np.interp(ref, obs.ages, obs.mean_length)


def _endpoints(names: Tuple[str, ...]) -> _Step:
    @_produces(*names)
    def step(d: _Derivation) -> None:
        ref = d.reference_ages
        cache: Dict[str, np.ndarray] = {}

        def at(j: int) -> float:
            if "vals" not in cache:
                cache["vals"] = _endpoint_lengths(d, ref)
            return float(cache["vals"][j])

        vals = [d.resolve(n, lambda j=j: at(j)) for j, n in enumerate(names)]
        if not all(n in d.fixed for n in names) and np.any(np.diff(vals) <= 0):
            warn(
                "At least one of the starting values for an older age is smaller than "
                f"the starting value for a younger age ({', '.join(names)} = "
                f"{', '.join(f'{v:.4g}' for v in vals)}).",
                UserWarning,
                stacklevel=3,
            )

    step.__name__ = "_endpoints_" + "_".join(names)
    return step


@_produces("Lr", "tr")
def _ogle_reference(d: _Derivation) -> None:
    if d.val_ogle is None:
        raise ValueError("The Ogle parameterization requires val_ogle={'tr': age} or {'Lr': length}.")
    given, value = d.val_ogle
    obs = d.obs
    if given == "tr":
        if value < float(np.min(obs.age)) and "Lr" not in d.fixed:
            warn(
                f"tr ({value:g}) is less than the youngest observed age; the starting "
                "value for Lr may be suspect. Consider supplying Lr in fixed=.",
                UserWarning,
                stacklevel=3,
            )
        d.resolve("Lr", lambda: np.polyval(ols(obs.age, obs.length, 2)[::-1], value))
    else:
        if value < float(np.min(obs.length)) and "tr" not in d.fixed:
            warn(
                f"Lr ({value:g}) is less than the smallest observed length; the starting "
                "value for tr may be suspect. Consider supplying tr in fixed=.",
                UserWarning,
                stacklevel=3,
            )
        d.resolve("tr", lambda: np.polyval(ols(obs.length, obs.age, 2)[::-1], value))


# ---- recipes ---------------------------------------------------------------

_SEASONAL = _constants(C=0.5, ts=0.3)
_SEASONAL_WP = _constants(C=0.5, WP=0.8)
_NO_GROWTH = _constants(ts=0.3, NGT=0.3)

_RECIPES: Dict[Parameterization, Tuple[Tuple[str, ...], Tuple[_Step, ...]]] = {
    P.TYPICAL: (("Linf", "K", "t0"), (_linf_k, _t0)),
    P.ORIGINAL: (("Linf", "K", "L0"), (_linf_k, _l0)),
    P.GQ: (("omega", "K", "t0"), (_linf_k, _t0, _omega)),
    P.MOOIJ: (("Linf", "L0", "omega"), (_linf_k, _l0, _omega)),
    P.WEISBERG: (("Linf", "t50", "t0"), (_linf_k, _t0, _t50)),
    P.OGLE: (("Linf", "K"), (_linf_k, _ogle_reference)),
    P.SCHNUTE: (("L1", "L3", "K"), (_endpoints(("L1", "L3")), _k_only)),
    P.FRANCIS: (("L1", "L2", "L3"), (_endpoints(("L1", "L2", "L3")),)),
    P.SOMERS: (("Linf", "K", "t0", "C", "ts"), (_linf_k, _t0, _SEASONAL)),
    P.SOMERS2: (("Linf", "K", "t0", "C", "WP"), (_linf_k, _t0, _SEASONAL_WP)),
    P.PAULY: (("Linf", "Kpr", "t0", "ts", "NGT"), (_linf_k, _t0, _NO_GROWTH, _kpr)),
}


def _parse_val_ogle(val_ogle: Any) -> Tuple[str, float]:
    if val_ogle is None:
        raise ValueError("The Ogle parameterization needs val_ogle={'tr': age} or {'Lr': length}.")
    if not isinstance(val_ogle, Mapping) or len(val_ogle) != 1:
        raise ValueError("'val_ogle' must be a mapping with exactly one item, 'tr' or 'Lr'.")
    name, value = next(iter(val_ogle.items()))
    if name not in ("tr", "Lr"):
        raise ValueError(f"The name in 'val_ogle' must be 'tr' or 'Lr' (got {name!r}).")
    try:
        value = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError("The value in 'val_ogle' must be numeric.") from exc
    return name, value


def starts_names(param: Any, val_ogle: Optional[Mapping[str, float]] = None) -> Tuple[str, ...]:
    """Ordered parameter names returned by `vb_starts` for `param`."""
    p = Parameterization.parse(param)
    names, _ = _RECIPES[p]
    if p is P.OGLE:
        given, _ = _parse_val_ogle(val_ogle)
        names = names + (("Lr",) if given == "tr" else ("tr",))
    return names


def _validate_fixed(
    fixed: Any, allowed: Sequence[str], p: Parameterization
) -> Dict[str, float]:
    if fixed is None:
        return {}
    if not isinstance(fixed, Mapping):
        raise ValueError(
            "'fixed' must be a mapping of parameter names to values, e.g. {'Linf': 500}."
        )
    out: Dict[str, float] = {}
    for name, value in fixed.items():
        if name not in allowed:
            raise ValueError(
                f"'fixed' contains {name!r}, which the {p.value} parameterization does not "
                f"use. Allowed names: {', '.join(allowed)}."
            )
        if isinstance(value, (bool, np.bool_)):
            raise ValueError(f"fixed[{name!r}] must be a number.")
        try:
            v = float(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"fixed[{name!r}] must be a number (got {value!r}).") from exc
        if not np.isfinite(v):
            raise ValueError(f"fixed[{name!r}] must be finite.")
        out[name] = v
    return out


def vb_starts(
    age: Any,
    length: Any = None,
    *,
    data: Optional[pd.DataFrame] = None,
    param: Any = "Typical",
    fixed: Optional[Mapping[str, float]] = None,
    meth0: Literal["yngAge", "poly"] = "yngAge",
    meth_linf: Literal["Walford", "oldAge", "longFish"] = "Walford",
    num4linf: int = 1,
    ages2use: Optional[Sequence[float]] = None,
    meth_ev: Literal["means", "poly"] = "means",
    val_ogle: Optional[Mapping[str, float]] = None,
    plot: bool = False,
    ax: Optional[Any] = None,
) -> Dict[str, float]:
    """Find reasonable starting values for a von Bertalanffy growth model.

    Parameters
    ----------
    age, length : array-like or str
        Paired observations, or column names in `data`. `age` may also be a
        `GrowthObservations` (then `length` is omitted).
    param : str or Parameterization
        Growth parameterization (e.g. "Typical", "Original", "GQ", "Schnute",
        "Francis", "Ogle", "Pauly"); common aliases are accepted.
    fixed : mapping, optional
        Values to use instead of computed ones. Fixed values are never checked.
    meth0 : {"yngAge", "poly"}
        How t0 or L0 is found.
    meth_linf : {"Walford", "oldAge", "longFish"}
        How Linf is found; `num4linf` sets how many ages/fish are averaged.
    ages2use : pair of float, optional
        Reference ages for Schnute/Francis (defaults to the youngest and
        oldest observed ages).
    meth_ev : {"means", "poly"}
        How the Schnute/Francis endpoint lengths are found.
    val_ogle : mapping, optional
        ``{"tr": age}`` or ``{"Lr": length}`` for the Ogle parameterization.
    plot : bool
        Draw the data with the curve at the starting values.

    Returns
    -------
    dict
        Parameter name -> starting value, in the evaluator's parameter order.
    """
    if isinstance(age, GrowthObservations):
        if length is not None:
            raise TypeError("If age is GrowthObservations, do not also pass length.")
        obs = age
    else:
        if length is None:
            raise TypeError("vb_starts() missing required argument: length")
        obs = GrowthObservations(
            column(age, data=data, name="age"), column(length, data=data, name="length")
        )

    p = Parameterization.parse(param)
    if meth0 not in _ZERO_METHODS:
        raise ValueError(f"meth0 must be one of {_ZERO_METHODS} (got {meth0!r}).")
    if meth_linf not in _LINF_METHODS:
        raise ValueError(f"meth_linf must be one of {_LINF_METHODS} (got {meth_linf!r}).")
    if meth_ev not in _ENDPOINT_METHODS:
        raise ValueError(f"meth_ev must be one of {_ENDPOINT_METHODS} (got {meth_ev!r}).")

    names, steps = _RECIPES[p]
    ogle = None
    allowed = [n for s in steps for n in s.produces]  # type: ignore[attr-defined]
    if p is P.OGLE:
        ogle = _parse_val_ogle(val_ogle)
        names = starts_names(p, val_ogle)
        allowed = [n for n in allowed if n != ogle[0]]
    elif val_ogle is not None:
        raise ValueError("'val_ogle' is only used with the Ogle parameterization.")

    d = _Derivation(
        obs=obs,
        param=p,
        fixed=_validate_fixed(fixed, allowed, p),
        meth0=meth0,
        meth_linf=meth_linf,
        num4linf=num4linf,
        ages2use=ages2use,
        meth_ev=meth_ev,
        val_ogle=ogle,
    )
    for step in steps:
        step(d)
    out = {n: d.values[n] for n in names}

    if plot:
        from .plotting import plot_starts

        ref = d.reference_ages if p in (P.SCHNUTE, P.FRANCIS) else None
        plot_starts(
            obs.age,
            obs.length,
            out,
            p,
            ages2use=None if ref is None else (ref[0], ref[-1]),
            val_ogle=val_ogle,
            ax=ax,
        )
    return out
