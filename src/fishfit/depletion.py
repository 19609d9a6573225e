"""Leslie and DeLury depletion estimates of initial population size.

Both methods regress catch-per-effort on what has already been removed
(catch for Leslie, effort for DeLury); the slope is the catchability `q` and
the intercept scales to the initial abundance `No`. Standard errors of `No`
follow Seber (2002, pp. 298 and 303).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional
from warnings import warn

import numpy as np
import pandas as pd
from scipy import stats

from .data import column, paired
from .util import check_conf_level, ci_labels

__all__ = ["Depletion", "depletion"]


@dataclass(frozen=True)
class Depletion:
    method: str
    catch: np.ndarray
    effort: np.ndarray
    cpe: np.ndarray
    removed: np.ndarray  # prior cumulative catch (Leslie) or effort (DeLury)
    regression: Any  # scipy.stats LinregressResult
    sigma: float  # residual standard error of the regression
    est: pd.DataFrame

    @property
    def df_residual(self) -> int:
        return int(self.catch.size - 2)

    def coef(self) -> pd.Series:
        return self.est["Estimate"].copy()

    def summary(self) -> pd.DataFrame:
        """Estimates and standard errors of `No` and `q`."""
        return self.est.copy()

    def confint(self, level: float = 0.95, *, incl_est: bool = False) -> pd.DataFrame:
        """t-based intervals using the regression's residual degrees of freedom."""
        level = check_conf_level(level)
        t = stats.t.ppf(1.0 - (1.0 - level) / 2.0, self.df_residual)
        lo_name, hi_name = ci_labels(level)
        est = self.est["Estimate"]
        se = self.est["Std. Err."]
        out = pd.DataFrame({lo_name: est - t * se, hi_name: est + t * se})
        if incl_est:
            out.insert(0, "Est", est)
        return out

    def rsquared(self) -> float:
        return float(self.regression.rvalue**2)

    def plot(self, *, ax: Optional[Any] = None):
        """Regression of CPE (or log CPE) on removals with the fitted line."""
        import matplotlib.pyplot as plt

        if ax is None:
            fig, ax = plt.subplots()
        else:
            fig = ax.figure
        y = self.cpe if self.method == "Leslie" else np.log(self.cpe)
        ax.plot(self.removed, y, "o", color="black")
        xg = np.linspace(0.0, float(np.max(self.removed)), 50)
        ax.plot(xg, self.regression.intercept + self.regression.slope * xg, color="0.6")
        ax.set_xlabel("Cumulative Catch" if self.method == "Leslie" else "Cumulative Effort")
        ax.set_ylabel("CPE" if self.method == "Leslie" else "log(CPE)")
        ax.set_title(f"No={self.est.loc['No', 'Estimate']:.0f}, q={self.est.loc['q', 'Estimate']:.4f}")
        return fig, ax


def _check_slope(reg: Any) -> None:
    if reg.slope > 0:
        warn(
            "Estimates are suspect as model did not exhibit a negative slope.",
            UserWarning,
            stacklevel=3,
        )
    elif reg.pvalue > 0.05:
        warn(
            "Estimates are suspect as model did not exhibit a significantly (p>0.05) "
            "negative slope.",
            UserWarning,
            stacklevel=3,
        )


def depletion(
    catch: Any,
    effort: Any = None,
    *,
    data: Optional[pd.DataFrame] = None,
    method: Literal["Leslie", "DeLury", "Delury"] = "Leslie",
    ricker_mod: bool = False,
) -> Depletion:
    """Estimate initial abundance with the Leslie or DeLury method.

    Parameters
    ----------
    catch, effort : array-like or str
        Catch and effort per removal event, or column names in `data`.
    method : {"Leslie", "DeLury"}
        "Delury" is accepted as a spelling of "DeLury".
    ricker_mod : bool
        Use Ricker's modification (half of the current catch or effort is
        counted as already removed).
    """
    if method == "Delury":
        method = "DeLury"
    if method not in ("Leslie", "DeLury"):
        raise ValueError(f"method must be 'Leslie' or 'DeLury' (got {method!r}).")
    if effort is None:
        raise TypeError("depletion() missing required argument: effort")

    c = column(catch, data=data, name="catch")
    e = column(effort, data=data, name="effort")
    if np.any(c < 0):
        raise ValueError("All 'catch' must be non-negative.")
    if np.any(e <= 0):
        raise ValueError("All 'effort' must be positive.")
    paired([c, e], ["catch", "effort"])
    if c.size < 3:
        raise ValueError("Must have at least 3 values in 'catch'.")

    n = c.size
    cpe = c / e
    if method == "Leslie":
        removed = np.cumsum(c) - (c / 2.0 if ricker_mod else c)
        reg = stats.linregress(removed, cpe)
        q = -reg.slope
        N0 = reg.intercept / q
    else:
        if np.any(c == 0):
            raise ValueError("Can't have zero catches with the 'DeLury' method.")
        removed = np.cumsum(e) - (e / 2.0 if ricker_mod else e)
        reg = stats.linregress(removed, np.log(cpe))
        q = -reg.slope
        N0 = np.exp(reg.intercept) / q

    fitted = reg.intercept + reg.slope * removed
    y = cpe if method == "Leslie" else np.log(cpe)
    sigma = float(np.sqrt(np.sum((y - fitted) ** 2) / (n - 2)))
    ss = float(np.sum((removed - removed.mean()) ** 2))
    if method == "Leslie":
        N0_se = sigma / q * np.sqrt(1.0 / n + (N0 - removed.mean()) ** 2 / ss)
    else:
        N0_se = sigma * N0 * np.sqrt(1.0 / n + ((q * removed.mean() - 1.0) / q) ** 2 / ss)

    _check_slope(reg)

    est = pd.DataFrame(
        {"Estimate": [N0, q], "Std. Err.": [N0_se, reg.stderr]},
        index=["No", "q"],
    )
    return Depletion(
        method=method,
        catch=c,
        effort=e,
        cpe=cpe,
        removed=removed,
        regression=reg,
        sigma=sigma,
        est=est,
    )
