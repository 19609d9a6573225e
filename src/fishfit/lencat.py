"""Length categorization.

Lengths are binned into half-open categories identified by their minimum
length. Breaks come either from a fixed width (``w=``) or from an explicit
ascending sequence / ``{name: minimum}`` mapping (``breaks=``). Lengths at or
above the highest break fall into a terminal, open-ended category.

Both lengths and breaks are compared on a fixed-precision integer grid
(``round(x * 10**decimals)``) so that a length equal to a break always opens
that break's category regardless of floating point noise.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional, Sequence, Tuple, Union
from warnings import warn

import numpy as np
import pandas as pd

from .data import column

BreaksLike = Union[Sequence[float], Mapping[str, float], np.ndarray]

__all__ = ["lencat", "add_lencat", "normalize_breaks", "width_breaks"]


def _fixed(x: Any, decimals: int) -> np.ndarray:
    return np.rint(np.asarray(x, dtype=float) * (10.0**decimals))


def normalize_breaks(breaks: BreaksLike) -> Tuple[np.ndarray, Optional[Tuple[str, ...]]]:
    """Return (ascending break minimums, names or None)."""
    names: Optional[Tuple[str, ...]] = None
    if isinstance(breaks, pd.Series):
        breaks = breaks.to_dict()
    if isinstance(breaks, Mapping):
        if not breaks:
            raise ValueError("'breaks' must contain at least one value.")
        items = sorted(((str(k), float(v)) for k, v in breaks.items()), key=lambda kv: kv[1])
        names = tuple(k for k, _ in items)
        values = np.asarray([v for _, v in items], dtype=float)
        if np.any(np.diff(values) <= 0):
            raise ValueError("Named 'breaks' contain duplicated minimum lengths.")
    else:
        try:
            values = np.asarray(breaks, dtype=float).reshape(-1)
        except (TypeError, ValueError) as exc:
            raise ValueError("'breaks' must be numeric.") from exc
        if values.size == 0:
            raise ValueError("'breaks' must contain at least one value.")
        if np.any(np.diff(values) <= 0):
            raise ValueError("'breaks' must be strictly ascending with no duplicates.")
    if not np.all(np.isfinite(values)):
        raise ValueError("'breaks' must be finite.")
    return values, names


def width_breaks(
    observed: np.ndarray, w: float, startcat: Optional[float] = None, decimals: int = 6
) -> np.ndarray:
    """Fixed-width breaks from `startcat` up to the largest observed length."""
    w = float(w)
    if not np.isfinite(w) or w <= 0:
        raise ValueError(f"'w' must be a positive number (got {w!r}).")
    if observed.size == 0:
        raise ValueError("Cannot build width-based breaks without any observed lengths.")
    lo = float(np.min(observed))
    hi = float(np.max(observed))
    if startcat is None:
        startcat = math.floor(round(lo / w, decimals)) * w
    startcat = float(startcat)
    if _fixed(startcat, decimals) > _fixed(lo, decimals):
        raise ValueError(
            f"'startcat' ({startcat:g}) is larger than the minimum length ({lo:g}); "
            "lower 'startcat' or omit it."
        )
    n = int(math.floor(round((hi - startcat) / w, decimals)))
    return np.round(startcat + w * np.arange(n + 1), decimals)


def _bin(
    x: np.ndarray, breaks: np.ndarray, *, right: bool, decimals: int
) -> np.ndarray:
    """Category index per value (-1 for missing values)."""
    missing = np.isnan(x)
    xi = _fixed(np.where(missing, 0.0, x), decimals)
    bi = _fixed(breaks, decimals)
    if right:
        idx = np.searchsorted(bi, xi, side="left") - 1
        # the lowest break itself belongs to the first category
        idx = np.maximum(idx, 0)
    else:
        idx = np.searchsorted(bi, xi, side="right") - 1
    idx = np.asarray(idx, dtype=int)
    idx[missing] = -1
    return idx


def _categorize(
    x: np.ndarray,
    breaks: BreaksLike,
    *,
    right: bool = False,
    decimals: int = 6,
    check: bool = True,
) -> Tuple[np.ndarray, np.ndarray, Optional[Tuple[str, ...]]]:
    """Categorize without diagnostics. Returns (index, breaks, names)."""
    values, names = normalize_breaks(breaks)
    observed = x[~np.isnan(x)]
    if check and observed.size:
        if _fixed(values[0], decimals) > _fixed(np.min(observed), decimals):
            raise ValueError(
                "Lowest break is larger than the minimum length "
                f"({values[0]:g} > {np.min(observed):g}); the break range does not "
                "cover observed data. Add a lower break or remove the short fish."
            )
    return _bin(x, values, right=right, decimals=decimals), values, names


def lencat(
    lengths: Any,
    *,
    w: Optional[float] = None,
    startcat: Optional[float] = None,
    breaks: Optional[BreaksLike] = None,
    right: bool = False,
    use_names: bool = False,
    as_categorical: bool = False,
    drop_unused: bool = False,
    decimals: int = 6,
) -> Union[np.ndarray, pd.Categorical]:
    """Assign each length to a length category.

    Parameters
    ----------
    lengths : array-like
        Numeric lengths; missing values propagate as missing categories.
    w, startcat : float, optional
        Fixed category width and (optional) minimum of the first category.
        `startcat` defaults to the minimum length rounded down to a multiple of `w`.
    breaks : sequence or mapping, optional
        Ascending category minimums, or a ``{name: minimum}`` mapping.
    right : bool
        Use right-inclusive ``(b_i, b_{i+1}]`` intervals instead of ``[b_i, b_{i+1})``.
    use_names : bool
        Return category names instead of minimums (requires named breaks).
    as_categorical : bool
        Return a ``pandas.Categorical`` with every break as a category.
    drop_unused : bool
        With `as_categorical`, keep only categories that occur.
    decimals : int
        Precision of the integer grid used for boundary comparisons.
    """
    x = column(lengths, name="lengths", allow_missing=True)
    observed = x[~np.isnan(x)]

    if (w is None) == (breaks is None):
        raise ValueError("Supply exactly one of w= or breaks=.")
    explicit = breaks is not None
    if breaks is None:
        breaks = width_breaks(observed, w, startcat, decimals)  # type: ignore[arg-type]
    elif startcat is not None:
        raise ValueError("'startcat' is only used with w=; include it in 'breaks' instead.")

    idx, values, names = _categorize(x, breaks, right=right, decimals=decimals)

    if explicit and observed.size and _fixed(np.max(observed), decimals) > _fixed(values[-1], decimals):
        warn(
            f"Maximum length ({np.max(observed):g}) is larger than the highest break "
            f"({values[-1]:g}); lengths above it are placed in an all-inclusive "
            f"'{values[-1]:g}+' category.",
            UserWarning,
            stacklevel=2,
        )

    if use_names:
        if names is None:
            raise ValueError("use_names=True requires named breaks ({name: minimum}).")
        labels: Sequence[Any] = names
    else:
        labels = values

    missing = idx < 0
    if use_names:
        out = np.empty(idx.shape, dtype=object)
        out[~missing] = np.asarray(labels, dtype=object)[idx[~missing]]
        out[missing] = None
    else:
        out = np.full(idx.shape, np.nan)
        out[~missing] = values[idx[~missing]]

    if not as_categorical:
        return out

    cats = list(labels)
    if drop_unused:
        used = set(np.unique(idx[~missing]).tolist())
        cats = [c for j, c in enumerate(cats) if j in used]
    return pd.Categorical(out, categories=cats, ordered=True)


def add_lencat(
    data: pd.DataFrame, length: str, *, vname: str = "LCat", **options: Any
) -> pd.DataFrame:
    """Return a copy of `data` with a length-category column appended."""
    if length not in data.columns:
        raise ValueError(f"Column {length!r} is not in 'data'.")
    out = data.copy()
    out[vname] = lencat(data[length], **options)
    return out
