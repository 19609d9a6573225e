from __future__ import annotations

import inspect
from typing import Any, Callable, Tuple

import numpy as np


def infer_param_names(func: Callable[..., Any]) -> Tuple[str, ...]:
    """Infer parameter names from a function signature.

    Conventions:
    - first arg is the independent variable (age, cumulative catch, ...)
    - remaining positional/keyword parameters are fit parameters

    Restriction:
    - no *args/**kwargs in model functions
    """
    sig = inspect.signature(func)
    params = list(sig.parameters.values())

    if len(params) < 2:
        raise TypeError("Model function must have at least (x, p1, ...).")

    bad_kinds = {inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD}
    for p in params:
        if p.kind in bad_kinds:
            raise TypeError("*args/**kwargs are not supported in model functions.")

    names = [p.name for p in params[1:]]
    if len(set(names)) != len(names):
        raise TypeError("Duplicate parameter names in function signature.")
    return tuple(names)


def safe_float(x: Any) -> float:
    """Convert numpy scalar / 0-d array to python float."""
    if isinstance(x, np.ndarray) and x.shape == ():
        return float(x.item())
    return float(x)


def check_conf_level(level: float) -> float:
    """Validate a confidence level in (0, 1)."""
    level = safe_float(level)
    if not (0.0 < level < 1.0):
        raise ValueError(f"'level' must be between 0 and 1 (got {level!r}).")
    return level


def ci_labels(level: float) -> Tuple[str, str]:
    """Column labels for a central interval, e.g. ('95% LCI', '95% UCI')."""
    pct = f"{100.0 * level:g}"
    return (f"{pct}% LCI", f"{pct}% UCI")


def is_integral(values: np.ndarray) -> bool:
    """True when every finite entry of a float array is a whole number."""
    a = np.asarray(values, dtype=float)
    a = a[np.isfinite(a)]
    return bool(a.size == 0 or np.all(a == np.round(a)))


def ols(x: np.ndarray, y: np.ndarray, degree: int = 1) -> np.ndarray:
    """Least-squares polynomial coefficients, lowest order first."""
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.size <= degree:
        raise ValueError(
            f"A degree-{degree} polynomial needs more than {degree} points (got {x.size})."
        )
    A = np.vander(x, degree + 1, increasing=True)
    coef, *_ = np.linalg.lstsq(A, y, rcond=None)
    return coef
