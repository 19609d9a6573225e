"""Chapman-Robson estimates of annual survival and instantaneous mortality."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional, Sequence

import numpy as np
import pandas as pd
from scipy import stats

from .data import column, paired
from .util import check_conf_level, ci_labels

__all__ = ["ChapmanRobson", "chapman_robson"]

_ZMETHODS = ("Smithetal", "Hoenigetal", "original")


@dataclass(frozen=True)
class ChapmanRobson:
    age: np.ndarray
    catch: np.ndarray
    age_used: np.ndarray
    catch_used: np.ndarray
    age_recoded: np.ndarray
    n: float
    T: float
    zmethod: str
    est: pd.DataFrame

    def coef(self) -> pd.Series:
        return self.est["Estimate"].copy()

    def summary(self) -> pd.DataFrame:
        """S (percent) and Z with standard errors."""
        return self.est.copy()

    def confint(self, level: float = 0.95, *, incl_est: bool = False) -> pd.DataFrame:
        """Normal-theory intervals for S and Z."""
        level = check_conf_level(level)
        z = stats.norm.ppf(1.0 - (1.0 - level) / 2.0)
        lo_name, hi_name = ci_labels(level)
        est = self.est["Estimate"]
        se = self.est["Std. Error"]
        out = pd.DataFrame({lo_name: est - z * se, hi_name: est + z * se})
        if incl_est:
            out.insert(0, "Est", est)
        return out


def _rows_for(age: np.ndarray, ages2use: Optional[Sequence[float]]) -> np.ndarray:
    if ages2use is None:
        return np.ones(age.shape, dtype=bool)
    want = np.unique(np.asarray(ages2use, dtype=float).reshape(-1))
    absent = [a for a in want if not np.any(age == a)]
    if absent:
        raise ValueError(
            "Some 'ages2use' are not in the data: "
            + ", ".join(f"{a:g}" for a in absent)
            + "."
        )
    return np.isin(age, want)


def chapman_robson(
    age: Any,
    catch: Any = None,
    *,
    data: Optional[pd.DataFrame] = None,
    ages2use: Optional[Sequence[float]] = None,
    zmethod: Literal["Smithetal", "Hoenigetal", "original"] = "Smithetal",
) -> ChapmanRobson:
    """Chapman-Robson survival and mortality from catch at age on the descending limb.

    Parameters
    ----------
    age, catch : array-like or str
        Ages and catches, or column names in `data`.
    ages2use : sequence of float, optional
        Ages of the descending limb of the catch curve (default: all ages).
    zmethod : {"Smithetal", "Hoenigetal", "original"}
        How Z and its standard error are computed from S. "Hoenigetal" is
        bias corrected; "Smithetal" also inflates the SE by the chi-square
        lack of fit of the geometric catch model.
    """
    if zmethod not in _ZMETHODS:
        raise ValueError(f"zmethod must be one of {_ZMETHODS} (got {zmethod!r}).")
    if catch is None:
        raise TypeError("chapman_robson() missing required argument: catch")

    a = column(age, data=data, name="age")
    c = column(catch, data=data, name="catch", allow_missing=True)
    paired([a, c], ["age", "catch"])
    if a.size < 2:
        raise ValueError("Fewer than 2 data points.")

    rows = _rows_for(a, ages2use)
    age_e = a[rows]
    catch_e = c[rows]
    if age_e.size < 2:
        raise ValueError("Fewer than 2 data points after applying 'ages2use'.")
    age_r = age_e - np.min(age_e)

    n = float(np.nansum(catch_e))
    T = float(np.nansum(age_r * catch_e))
    S = T / (n + T - 1.0)
    S_se = float(np.sqrt(S * (S - (T - 1.0) / (n + T - 2.0))))

    if zmethod == "original":
        Z = -np.log(S)
        Z_se = S_se / S
    else:
        Z = -np.log(S) - ((n - 1.0) * (n - 2.0)) / (n * (T + 1.0) * (n + T - 1.0))
        Z_se = (1.0 - np.exp(-Z)) / np.sqrt(n * np.exp(-Z))
        if zmethod == "Smithetal":
            expected = catch_e[0] * S**age_r
            chi = np.nansum((catch_e - expected) ** 2 / expected)
            # Degrees of freedom use every non-missing catch, not only ages2use.
            vif = chi / (np.count_nonzero(~np.isnan(c)) - 1)
            Z_se = Z_se * np.sqrt(vif)

    est = pd.DataFrame(
        {"Estimate": [100.0 * S, float(Z)], "Std. Error": [100.0 * S_se, float(Z_se)]},
        index=["S", "Z"],
    )
    return ChapmanRobson(
        age=a,
        catch=c,
        age_used=age_e,
        catch_used=catch_e,
        age_recoded=age_r,
        n=n,
        T=T,
        zmethod=zmethod,
        est=est,
    )
