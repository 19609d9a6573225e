from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import numpy as np

from ..growth import Parameterization, growth_function
from ..model import Model
from ..starts import _parse_val_ogle, vb_starts

P = Parameterization

# Post-fit quantities that a parameterization does not carry directly.
_DERIVED: Dict[Parameterization, Dict[str, Any]] = {
    P.GQ: {"Linf": lambda p: p["omega"] / p["K"]},
    P.MOOIJ: {"K": lambda p: p["omega"] / p["Linf"]},
    P.WEISBERG: {"K": lambda p: np.log(2.0) / (p["t50"] - p["t0"])},
}


def von_bertalanffy(
    param: Any = "Typical",
    *,
    t1: Optional[float] = None,
    t3: Optional[float] = None,
    val_ogle: Optional[Mapping[str, float]] = None,
    name: Optional[str] = None,
    **starts_options: Any,
) -> Model:
    """Return a von Bertalanffy growth Model seeded by `vb_starts`.

    Parameters
    ----------
    param : str or Parameterization
        Growth parameterization; see `fishfit.growth`.
    t1, t3 : float
        Reference ages, required for "Schnute" and "Francis".
    val_ogle : mapping
        ``{"tr": age}`` or ``{"Lr": length}`` for "Ogle"; that value is held
        fixed during fitting.
    **starts_options :
        Passed to `vb_starts` by the guesser (e.g. ``meth_linf="oldAge"``).

    Fit with ``model.fit(age, length)``; lengths are the response.
    """
    p = Parameterization.parse(param)
    func = growth_function(p, t1=t1, t3=t3)
    if p in (P.SCHNUTE, P.FRANCIS):
        starts_options.setdefault("ages2use", (t1, t3))
    elif t1 is not None or t3 is not None:
        raise ValueError(f"t1/t3 are only used with Schnute or Francis (got {p.value}).")

    model = Model.from_function(func, name=name or f"von Bertalanffy ({p.value})")

    if p is P.OGLE:
        given, value = _parse_val_ogle(val_ogle)
        model = model.fix(**{given: value})
        starts_options["val_ogle"] = {given: value}
    elif val_ogle is not None:
        raise ValueError("'val_ogle' is only used with the Ogle parameterization.")

    def guess_growth(x, y, g) -> None:
        starts = vb_starts(x, y, param=p, **starts_options)
        for k, v in starts.items():
            if g.is_unset(k):
                setattr(g, k, v)

    model = model.with_guesser(guess_growth)
    for dname, fn in _DERIVED.get(p, {}).items():
        model = model.derive(dname, fn)
    return model
