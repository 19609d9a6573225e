"""von Bertalanffy growth functions in their common parameterizations.

Each evaluator takes age first and the parameters in the order returned by
`vb_starts` for the same parameterization, so starting values can be bound
by name or by position. Schnute and Francis curves are anchored at two
reference ages (t1, t3) that are fixed constants, not parameters, so they are
built with `growth_function(..., t1=, t3=)`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

import numpy as np

__all__ = [
    "Parameterization",
    "vb_typical",
    "vb_original",
    "vb_gq",
    "vb_mooij",
    "vb_weisberg",
    "vb_ogle",
    "vb_somers",
    "vb_somers2",
    "vb_pauly",
    "schnute_function",
    "francis_function",
    "growth_function",
]


class Parameterization(str, Enum):
    TYPICAL = "Typical"
    ORIGINAL = "Original"
    GQ = "GQ"
    MOOIJ = "Mooij"
    WEISBERG = "Weisberg"
    OGLE = "Ogle"
    SCHNUTE = "Schnute"
    FRANCIS = "Francis"
    SOMERS = "Somers"
    SOMERS2 = "Somers2"
    PAULY = "Pauly"

    @classmethod
    def parse(cls, name: Any) -> "Parameterization":
        """Resolve a parameterization from its name or a common alias."""
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower()
        try:
            return _ALIASES[key]
        except KeyError:
            known = sorted({*(p.value for p in cls), *_EXTRA_ALIASES})
            raise ValueError(
                f"Unknown growth parameterization {name!r}. Choose one of: {', '.join(known)}."
            ) from None


_EXTRA_ALIASES: Dict[str, Parameterization] = {
    "Traditional": Parameterization.TYPICAL,
    "BevertonHolt": Parameterization.TYPICAL,
    "vonBertalanffy": Parameterization.ORIGINAL,
    "GallucciQuinn": Parameterization.GQ,
}
_ALIASES: Dict[str, Parameterization] = {
    **{p.value.lower(): p for p in Parameterization},
    **{k.lower(): v for k, v in _EXTRA_ALIASES.items()},
}


def vb_typical(t, Linf, K, t0):
    """Beverton-Holt form: Linf * (1 - exp(-K (t - t0)))."""
    return Linf * (1.0 - np.exp(-K * (t - t0)))


def vb_original(t, Linf, K, L0):
    """von Bertalanffy's form: Linf - (Linf - L0) exp(-K t)."""
    return Linf - (Linf - L0) * np.exp(-K * t)


def vb_gq(t, omega, K, t0):
    """Gallucci-Quinn form with omega = Linf * K."""
    return (omega / K) * (1.0 - np.exp(-K * (t - t0)))


def vb_mooij(t, Linf, L0, omega):
    return Linf - (Linf - L0) * np.exp(-(omega / Linf) * t)


def vb_weisberg(t, Linf, t50, t0):
    """Weisberg form; t50 is the age at half of Linf."""
    return Linf * (1.0 - np.exp(-(np.log(2.0) / (t50 - t0)) * (t - t0)))


def vb_ogle(t, Linf, K, tr, Lr):
    """Ogle-Isermann form anchored at reference age tr with length Lr."""
    return Lr + (Linf - Lr) * (1.0 - np.exp(-K * (t - tr)))


def vb_somers(t, Linf, K, t0, C, ts):
    """Seasonal growth (Somers 1988); ts is the start of the sine wave."""
    amp = C * K / (2.0 * np.pi)
    St = amp * np.sin(2.0 * np.pi * (t - ts))
    St0 = amp * np.sin(2.0 * np.pi * (t0 - ts))
    return Linf * (1.0 - np.exp(-K * (t - t0) - St + St0))


def vb_somers2(t, Linf, K, t0, C, WP):
    """Seasonal growth parameterized by the winter point WP = ts + 0.5."""
    return vb_somers(t, Linf, K, t0, C, WP - 0.5)


def _growth_time(t, ts, NGT):
    """Age with the yearly no-growth period (fraction NGT) removed."""
    u = np.asarray(t, dtype=float) - ts
    whole = np.floor(u)
    return ts + whole * (1.0 - NGT) + np.minimum(u - whole, 1.0 - NGT)


def vb_pauly(t, Linf, Kpr, t0, ts, NGT):
    """Seasonal growth with a no-growth period (Pauly et al. 1992)."""
    tpr = _growth_time(t, ts, NGT)
    span = 1.0 - NGT
    amp = Kpr * span / (2.0 * np.pi)
    q = (
        Kpr * (tpr - t0)
        + amp * np.sin((2.0 * np.pi / span) * (tpr - ts))
        - amp * np.sin((2.0 * np.pi / span) * (t0 - ts))
    )
    return Linf * (1.0 - np.exp(-q))


def _check_ref_ages(t1: Optional[float], t3: Optional[float], form: str) -> Tuple[float, float]:
    if t1 is None or t3 is None:
        raise ValueError(f"The {form} parameterization requires reference ages t1= and t3=.")
    t1, t3 = float(t1), float(t3)
    if t3 <= t1:
        raise ValueError(f"{form}: t3 must be larger than t1 (got t1={t1:g}, t3={t3:g}).")
    return t1, t3


def schnute_function(t1: float, t3: float) -> Callable[..., Any]:
    """Schnute (1981) curve through (t1, L1) and (t3, L3)."""
    t1, t3 = _check_ref_ages(t1, t3, "Schnute")

    def vb_schnute(t, L1, L3, K):
        return L1 + (L3 - L1) * (
            (1.0 - np.exp(-K * (t - t1))) / (1.0 - np.exp(-K * (t3 - t1)))
        )

    return vb_schnute


def francis_function(t1: float, t3: float) -> Callable[..., Any]:
    """Francis (1988) curve through lengths at t1, the midpoint age and t3."""
    t1, t3 = _check_ref_ages(t1, t3, "Francis")

    def vb_francis(t, L1, L2, L3):
        r = (L3 - L2) / (L2 - L1)
        return L1 + (L3 - L1) * (
            (1.0 - r ** (2.0 * ((t - t1) / (t3 - t1)))) / (1.0 - r**2)
        )

    return vb_francis


_EVALUATORS: Dict[Parameterization, Callable[..., Any]] = {
    Parameterization.TYPICAL: vb_typical,
    Parameterization.ORIGINAL: vb_original,
    Parameterization.GQ: vb_gq,
    Parameterization.MOOIJ: vb_mooij,
    Parameterization.WEISBERG: vb_weisberg,
    Parameterization.OGLE: vb_ogle,
    Parameterization.SOMERS: vb_somers,
    Parameterization.SOMERS2: vb_somers2,
    Parameterization.PAULY: vb_pauly,
}


def growth_function(
    param: Any, *, t1: Optional[float] = None, t3: Optional[float] = None
) -> Callable[..., Any]:
    """Return the evaluator `f(t, *params)` for a parameterization."""
    p = Parameterization.parse(param)
    if p is Parameterization.SCHNUTE:
        return schnute_function(t1, t3)  # type: ignore[arg-type]
    if p is Parameterization.FRANCIS:
        return francis_function(t1, t3)  # type: ignore[arg-type]
    return _EVALUATORS[p]
