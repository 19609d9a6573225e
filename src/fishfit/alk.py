"""Age-length keys and individual age assignment.

An age-length key is a DataFrame whose index holds length-category minimums
and whose columns hold ages; each row is the conditional age distribution of
fish in that length category. `assign_ages` uses a key to give every fish in
an unaged length sample an individual age, following the semi-random ("SR")
or completely-random ("CR") approaches of Isermann & Knight (2005).
"""

from __future__ import annotations

from typing import Any, Literal, Optional
from warnings import warn

import numpy as np
import pandas as pd

from .data import column
from .lencat import BreaksLike, _categorize, _fixed, lencat
from .util import is_integral

__all__ = ["check_key", "make_key", "assign_ages"]

# Absorbs representation error in n * p before truncation (e.g. 10 * 0.7).
_FLOOR_TOL = 1e-9


def _numeric_labels(labels: pd.Index, what: str, meaning: str) -> np.ndarray:
    try:
        return np.asarray(pd.to_numeric(labels), dtype=float)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"The {what} labels of 'key' must be numeric {meaning}.") from exc


def check_key(key: Any) -> pd.DataFrame:
    """Validate an age-length key and rescale its rows to proportions.

    Rows and columns are sorted, all-zero rows are dropped with a warning,
    and each remaining row is divided by its sum.
    """
    if not isinstance(key, pd.DataFrame):
        try:
            key = pd.DataFrame(key)
        except (TypeError, ValueError) as exc:
            raise TypeError("'key' must be a table (pandas DataFrame).") from exc
    if key.shape[0] == 0 or key.shape[1] == 0:
        raise ValueError("'key' must have at least one row and one column.")

    rows = _numeric_labels(key.index, "row", "length-category minimums")
    cols = _numeric_labels(key.columns, "column", "ages")
    if len(np.unique(rows)) != rows.size:
        raise ValueError("'key' has duplicated length categories (row labels).")
    if len(np.unique(cols)) != cols.size:
        raise ValueError("'key' has duplicated ages (column labels).")

    try:
        values = key.to_numpy(dtype=float)
    except (TypeError, ValueError) as exc:
        raise ValueError("Entries of 'key' must be numeric.") from exc
    if np.any(np.isnan(values)):
        raise ValueError("'key' contains missing entries; replace them with 0.")
    if np.any(values < 0):
        raise ValueError("'key' contains negative entries; proportions must be >= 0.")

    row_labels = rows.astype(int) if is_integral(rows) else rows
    col_labels = cols.astype(int) if is_integral(cols) else cols
    out = pd.DataFrame(values, index=row_labels, columns=col_labels)
    out = out.sort_index(axis=0).sort_index(axis=1)

    sums = out.sum(axis=1)
    empty = sums <= 0
    if bool(empty.any()):
        dropped = ", ".join(f"{v:g}" for v in out.index[empty.to_numpy()])
        warn(
            f"'key' contained rows with no fish for length categories {dropped}; "
            "these rows were removed.",
            UserWarning,
            stacklevel=2,
        )
        out = out.loc[~empty.to_numpy()]
        sums = sums[~empty]
    if out.shape[0] == 0:
        raise ValueError("Every row of 'key' sums to zero; no ages can be assigned.")

    out = out.div(sums, axis=0)
    out.index.name = key.index.name
    out.columns.name = key.columns.name
    return out


def make_key(
    data: pd.DataFrame,
    length: str,
    age: str,
    *,
    w: Optional[float] = None,
    startcat: Optional[float] = None,
    breaks: Optional[BreaksLike] = None,
) -> pd.DataFrame:
    """Build an age-length key from an aged sample.

    Rows with a missing age are ignored; the remaining fish are categorized
    with `lencat` and cross-tabulated into row proportions.
    """
    ages = column(age, data=data, name=age, allow_missing=True)
    aged = ~np.isnan(ages)
    if not np.any(aged):
        raise ValueError(f"No fish in 'data' have a value for {age!r}.")
    lens = column(length, data=data, name=length, allow_missing=True)[aged]
    if np.any(np.isnan(lens)):
        raise ValueError(f"Aged fish with a missing {length!r} must be removed first.")
    cats = lencat(lens, w=w, startcat=startcat, breaks=breaks)
    a = ages[aged]
    key = pd.crosstab(
        pd.Series(cats, name="LCat"),
        pd.Series(a.astype(int) if is_integral(a) else a, name=age),
        normalize="index",
    )
    if is_integral(key.index.to_numpy(dtype=float)):
        key.index = key.index.astype(int)
    return key


def _semi_random(
    ages: np.ndarray, p: np.ndarray, n: int, rng: np.random.Generator
) -> np.ndarray:
    """Ages for `n` fish of one category, matching n*p up to integer rounding."""
    expected = n * p
    counts = np.floor(expected + _FLOOR_TOL).astype(int)
    short = n - int(counts.sum())
    if short > 0:
        # Top up one fish per age, favouring the largest fractional parts, so
        # each age ends with floor(n*p) or ceil(n*p) fish.
        remainder = np.clip(expected - counts, 0.0, None)
        extra = rng.choice(ages.size, size=short, replace=False, p=remainder / remainder.sum())
        counts[extra] += 1
    return rng.permutation(np.repeat(ages, counts))


def assign_ages(
    key: Any,
    data: pd.DataFrame,
    length: str,
    *,
    age: str = "age",
    method: Literal["SR", "CR"] = "SR",
    breaks: Optional[BreaksLike] = None,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> pd.DataFrame:
    """Assign an individual age to every fish in a length sample.

    Parameters
    ----------
    key : DataFrame
        Age-length key (rows: length-category minimums, columns: ages).
    data : DataFrame
        Unaged sample; must contain the `length` column with no missing values.
    length : str
        Name of the length column.
    age : str
        Name of the column receiving ages (created or overwritten).
    method : {"SR", "CR"}
        Semi-random or completely-random assignment.
    breaks : sequence or mapping, optional
        Category minimums to use instead of the key's row labels (needed when
        the key was built with uneven category widths).
    seed, rng :
        `seed` creates a generator for this call only; `rng` supplies one.

    Returns
    -------
    DataFrame
        A copy of `data` (same index and row order) with the `age` column.
    """
    m = str(method).upper()
    if m in ("S", "SR"):
        m = "SR"
    elif m in ("C", "CR"):
        m = "CR"
    else:
        raise ValueError(f"method must be 'SR' or 'CR' (got {method!r}).")
    if seed is not None and rng is not None:
        raise ValueError("Provide only one of seed= or rng=.")
    if rng is None:
        rng = np.random.default_rng(seed)

    key = check_key(key)
    if not isinstance(data, pd.DataFrame):
        raise TypeError("'data' must be a pandas DataFrame.")
    lengths = column(length, data=data, name=length, allow_missing=True)
    if np.any(np.isnan(lengths)):
        raise ValueError(
            f"Length variable {length!r} contains missing values; remove these fish "
            "from the length sample before assigning ages."
        )

    out = data.copy()
    if lengths.size == 0:
        out[age] = pd.Series(dtype=float, index=out.index)
        return out

    key_cats = key.index.to_numpy(dtype=float)
    lo = float(np.min(lengths))
    hi = float(np.max(lengths))
    if lo < key_cats[0]:
        raise ValueError(
            f"The minimum observed length in the length sample ({lo:g}) is less than "
            f"the smallest length category in the age-length key ({key_cats[0]:g}). "
            "Include fish of these lengths in the age sample or exclude them from "
            "the length sample."
        )
    min_w = float(np.min(np.diff(key_cats))) if key_cats.size > 1 else 0.0
    if hi > key_cats[-1] + min_w:
        warn(
            f"The maximum observed length in the length sample ({hi:g}) is greater "
            f"than the largest length category in the age-length key ({key_cats[-1]:g}). "
            "The last length category will be treated as all-inclusive.",
            UserWarning,
            stacklevel=2,
        )

    idx, cat_values, _ = _categorize(
        lengths, key_cats if breaks is None else breaks, check=breaks is not None
    )
    row_of = {int(v): j for j, v in enumerate(_fixed(key_cats, 6))}
    cat_fixed = _fixed(cat_values, 6)
    key_row = np.empty(lengths.shape, dtype=int)
    for c in np.unique(idx):
        r = row_of.get(int(cat_fixed[c]))
        if r is None:
            raise ValueError(
                f"Length category {cat_values[c]:g} from 'breaks' is not a row of 'key'."
            )
        key_row[idx == c] = r

    ages = key.columns.to_numpy(dtype=float)
    probs = key.to_numpy(dtype=float)
    assigned = np.empty(lengths.shape, dtype=float)
    for r in np.unique(key_row):
        members = np.flatnonzero(key_row == r)
        if m == "SR":
            assigned[members] = _semi_random(ages, probs[r], members.size, rng)
        else:
            assigned[members] = rng.choice(ages, size=members.size, p=probs[r])

    out[age] = assigned.astype(int) if is_integral(ages) else assigned
    return out
