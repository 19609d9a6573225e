"""Proportional size distribution (PSD) indices and Gabelhouse categories.

Breaks are supplied by the caller as ``{name: minimum length}`` mappings,
typically the Gabelhouse five-cell lengths ``stock``, ``quality``,
``preferred``, ``memorable`` and ``trophy`` for a species.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple
from warnings import warn

import numpy as np
import pandas as pd

from .data import column
from .lencat import _categorize, normalize_breaks

__all__ = ["GABELHOUSE", "psd_calc", "psd_add"]

GABELHOUSE = ("stock", "quality", "preferred", "memorable", "trophy")


def _psd_breaks(breaks: Any) -> Tuple[np.ndarray, Tuple[str, ...]]:
    if not isinstance(breaks, (Mapping, pd.Series)):
        raise ValueError(
            "'breaks' must map category names to minimum lengths, e.g. "
            "{'stock': 130, 'quality': 200}."
        )
    values, names = normalize_breaks(breaks)
    assert names is not None
    if values.size < 2:
        raise ValueError("'breaks' must contain at least two length categories.")
    if names[0] != "stock":
        raise ValueError(
            f"The smallest break must be named 'stock' (got {names[0]!r})."
        )
    return values, names


def _abbreviate(names: Tuple[str, ...]) -> List[str]:
    """Gabelhouse names become their capital initial; other names are kept."""
    return [n[0].upper() if n in GABELHOUSE else n for n in names]


def psd_calc(
    length: Any,
    breaks: Mapping[str, float],
    *,
    data: Optional[pd.DataFrame] = None,
    what: Literal["all", "traditional", "incremental", "none"] = "all",
    drop0_est: bool = True,
    show_intermediate: bool = False,
    digits: int = 0,
) -> pd.DataFrame:
    """Traditional (PSD-X) and incremental (PSD X-Y) indices, in percent.

    Fish shorter than stock length and fish with missing lengths are removed
    first. With ``what="none"`` all rows are returned unrounded.
    """
    if what not in ("all", "traditional", "incremental", "none"):
        raise ValueError(f"Unknown value for 'what': {what!r}")
    values, names = _psd_breaks(breaks)

    x = column(length, data=data, name="length", allow_missing=True)
    if x.size == 0:
        raise ValueError("'length' does not contain any values.")
    x = x[~np.isnan(x)]
    x = x[x >= values[0]]
    if x.size == 0:
        raise ValueError("There are no stock-length fish in the sample.")

    idx, _, _ = _categorize(x, dict(zip(names, values)))
    n = x.size
    k = len(names)
    counts = np.bincount(idx, minlength=k).astype(float)
    props = counts / n
    if props[0] >= 1.0:
        warn("No fish in larger than 'stock' categories.", UserWarning, stacklevel=2)

    abb = _abbreviate(names)
    labels = [f"PSD-{a}" for a in abb[1:]] + [
        f"PSD {abb[i]}-{abb[i + 1]}" for i in range(k - 1)
    ]
    nums = np.concatenate(
        [[counts[i:].sum() for i in range(1, k)], counts[: k - 1]]
    )
    res = pd.DataFrame(
        {"num": nums, "stock": float(n), "Estimate": 100.0 * nums / n}, index=labels
    )
    if not show_intermediate:
        res = res[["Estimate"]]

    if what == "traditional":
        res = res.iloc[: k - 1]
    elif what == "incremental":
        res = res.iloc[k - 1 :]
    if drop0_est:
        res = res[res["Estimate"] > 0]
    if what == "none":
        return res
    return res.round(digits)


def psd_add(
    length: Any,
    species: Any,
    breaks: Mapping[Any, Mapping[str, float]],
    *,
    data: Optional[pd.DataFrame] = None,
    use_names: bool = True,
    as_categorical: Optional[bool] = None,
) -> pd.Series:
    """Gabelhouse length category of each fish, by species.

    Parameters
    ----------
    length, species : array-like or str
        Lengths and species per fish, or column names in `data`.
    breaks : mapping
        ``{species: {name: minimum}}``; each species' smallest break is stock.
        Fish shorter than stock are ``"substock"`` (or 0 with ``use_names=False``).
    use_names : bool
        Return category names instead of category minimum lengths.
    as_categorical : bool, optional
        Return an ordered categorical (defaults to `use_names`).

    Species without breaks, and fish with a missing species, get a missing
    category and a warning naming them. Row order is preserved.
    """
    lens = column(length, data=data, name="length", allow_missing=True)
    if isinstance(species, str) and data is not None:
        if species not in data.columns:
            raise ValueError(f"Column {species!r} is not in 'data'.")
        spp = data[species]
    else:
        spp = pd.Series(species)
    if pd.api.types.is_numeric_dtype(spp.dtype) and not spp.isna().all():
        raise ValueError("'species' must be character or categorical, not numeric.")
    spp = spp.astype(object).where(spp.notna(), None).to_numpy()
    if spp.shape[0] != lens.shape[0]:
        raise ValueError("'length' and 'species' must have the same length.")
    if as_categorical is None:
        as_categorical = use_names

    out = np.full(lens.shape, None if use_names else np.nan, dtype=object if use_names else float)
    order: List[Any] = ["substock", *GABELHOUSE] if use_names else []
    unknown: List[str] = []
    present = pd.unique(pd.Series(spp, dtype=object))
    for sp in present:
        if sp is None:
            unknown.append("NA")
            continue
        if sp not in breaks:
            unknown.append(str(sp))
            continue
        values, names = _psd_breaks(breaks[sp])
        full: Dict[str, float] = {"substock": 0.0, **dict(zip(names, values))}
        rows = np.flatnonzero(np.asarray([s == sp for s in spp], dtype=bool))
        x = lens[rows]
        idx, cat_values, cat_names = _categorize(x, full, check=False)
        ok = idx >= 0
        if use_names:
            out[rows[ok]] = np.asarray(cat_names, dtype=object)[idx[ok]]
            order.extend(n for n in names if n not in order)
        else:
            out[rows[ok]] = cat_values[idx[ok]]
    if unknown:
        warn(
            "Species in the data with no Gabelhouse (PSD) lengths: "
            + ", ".join(unknown)
            + ".",
            UserWarning,
            stacklevel=2,
        )

    index = data.index if data is not None else None
    if not as_categorical:
        return pd.Series(out, index=index, name="PSD")
    cats = order if use_names else sorted({float(v) for v in out if not pd.isna(v)})
    return pd.Series(
        pd.Categorical(out, categories=cats, ordered=True), index=index, name="PSD"
    )
