from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class Dataset:
    x: np.ndarray
    format: str  # only "normal" (least squares) is supported
    payload: Dict[str, Any]
    y_for_seed: np.ndarray


def column(
    values: Any,
    *,
    data: Optional[pd.DataFrame] = None,
    name: str = "x",
    allow_missing: bool = False,
) -> np.ndarray:
    """Resolve a numeric 1D vector from an array-like or a column of `data`.

    `values` may be array-like, or a column name when `data` is a DataFrame.
    Missing values are a hard failure unless `allow_missing=True`.
    """
    label = name
    if isinstance(values, str):
        if data is None:
            raise TypeError(
                f"{name}={values!r} looks like a column name; pass the table via data=..."
            )
        if values not in data.columns:
            raise ValueError(f"Column {values!r} is not in 'data'.")
        label = values
        values = data[values]

    if isinstance(values, pd.Series):
        if not (
            pd.api.types.is_numeric_dtype(values.dtype)
            and not pd.api.types.is_bool_dtype(values.dtype)
        ):
            raise ValueError(f"{label!r} must be numeric (got dtype {values.dtype}).")
        arr = values.to_numpy(dtype=float, na_value=np.nan)
    else:
        try:
            arr = np.asarray(values, dtype=float)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{label!r} must be numeric.") from exc

    if arr.ndim == 0:
        arr = arr.reshape(1)
    if arr.ndim != 1:
        raise ValueError(f"{label!r} must be one-dimensional (got shape {arr.shape}).")
    if not allow_missing and np.any(np.isnan(arr)):
        raise ValueError(
            f"{label!r} contains missing values; remove these rows before calling."
        )
    return arr


def paired(arrays: Sequence[np.ndarray], names: Sequence[str]) -> None:
    """Require that paired vectors have equal lengths."""
    sizes = {n: int(np.asarray(a).shape[0]) for a, n in zip(arrays, names)}
    if len(set(sizes.values())) > 1:
        desc = ", ".join(f"{n}={s}" for n, s in sizes.items())
        raise ValueError(f"Paired vectors must have the same length ({desc}).")


def prepare_dataset(x: Any, data: Any) -> Dataset:
    """Normalize fit inputs into a single least-squares Dataset.

    `data` is either y, or a tuple (y, sigma).
    """
    sigma = None
    if isinstance(data, tuple):
        if len(data) != 2:
            raise TypeError("Tuple payloads must be (y, sigma).")
        data, sigma = data

    x_arr = column(x, name="x")
    y_arr = column(data, name="y")
    paired([x_arr, y_arr], ["x", "y"])

    sigma_val: Any = None
    if sigma is not None:
        s = np.asarray(sigma, dtype=float)
        if s.shape == ():
            sigma_val = np.full(y_arr.shape, float(s))
        elif s.shape == y_arr.shape:
            sigma_val = s
        else:
            raise ValueError("sigma must be scalar or have the same shape as y.")
        if np.any(~np.isfinite(sigma_val)) or np.any(sigma_val <= 0):
            raise ValueError("sigma must be finite and positive.")

    return Dataset(
        x=x_arr,
        format="normal",
        payload={"y": y_arr, "sigma": sigma_val},
        y_for_seed=y_arr,
    )

