"""Extra sum-of-squares and likelihood-ratio tests for nested fitted models."""

from __future__ import annotations

from typing import Any, List, Optional, Sequence
from warnings import warn

import numpy as np
import pandas as pd
from scipy import stats

from .run import Run

__all__ = ["extra_ss", "lrt"]


def _check_runs(sim: Sequence[Run], com: Run) -> None:
    if not sim:
        raise TypeError("Provide at least one simpler fitted model.")
    for r in (*sim, com):
        if not isinstance(r, Run):
            raise TypeError(f"Expected fitted Run objects (got {type(r).__name__}).")
    n = {r.nobs for r in (*sim, com)}
    if len(n) > 1:
        raise ValueError(
            "Models were fitted to different numbers of observations "
            f"({', '.join(str(v) for v in sorted(n))}); they cannot be compared."
        )
    if not all(com.df_residual < r.df_residual for r in sim):
        warn(
            "'com' model does not appear to be more complex than all models in 'sim'. "
            "Check results carefully.",
            UserWarning,
            stacklevel=3,
        )


def _heading(sim: Sequence[Run], com: Run, sim_names: Optional[Sequence[str]],
             com_name: Optional[str]) -> str:
    if sim_names is not None:
        if isinstance(sim_names, str):
            sim_names = [sim_names]
        if len(sim_names) != len(sim):
            raise ValueError(
                "Length of 'sim_names' differs from number of simple models provided."
            )
        names: List[str] = list(sim_names)
    else:
        names = [r.model.name for r in sim]
    lines = [f"Model {i}: {nm}" for i, nm in enumerate(names, start=1)]
    lines.append(f"Model A: {com_name if com_name is not None else com.model.name}")
    return "\n".join(lines)


def extra_ss(
    *sim: Run,
    com: Run,
    sim_names: Optional[Sequence[str]] = None,
    com_name: Optional[str] = None,
) -> pd.DataFrame:
    """Extra sum-of-squares F test of each simpler model against `com`."""
    _check_runs(sim, com)
    rows = []
    for r in sim:
        df_o, rss_o = r.df_residual, r.rss
        df_a, rss_a = com.df_residual, com.rss
        df = df_o - df_a
        ss = rss_o - rss_a
        F = (ss / df) / (rss_a / df_a) if df != 0 else np.nan
        p = stats.f.sf(F, df, df_a) if df > 0 else np.nan
        rows.append([df_o, rss_o, df_a, rss_a, df, ss, F, p])
    res = pd.DataFrame(
        rows,
        columns=["DfO", "RSSO", "DfA", "RSSA", "Df", "SS", "F", "Pr(>F)"],
        index=[f"{i}vA" for i in range(1, len(sim) + 1)],
    )
    res.attrs["heading"] = _heading(sim, com, sim_names, com_name)
    return res


def lrt(
    *sim: Run,
    com: Run,
    sim_names: Optional[Sequence[str]] = None,
    com_name: Optional[str] = None,
) -> pd.DataFrame:
    """Likelihood-ratio test of each simpler model against `com`."""
    _check_runs(sim, com)
    rows = []
    for r in sim:
        df_o, ll_o = r.df_residual, r.loglik
        df_a, ll_a = com.df_residual, com.loglik
        df = df_o - df_a
        chisq = 2.0 * (ll_a - ll_o)
        p = stats.chi2.sf(chisq, df) if df > 0 else np.nan
        rows.append([df_o, ll_o, df_a, ll_a, df, ll_o - ll_a, chisq, p])
    res = pd.DataFrame(
        rows,
        columns=["DfO", "logLikO", "DfA", "logLikA", "Df", "logLik", "Chisq", "Pr(>Chisq)"],
        index=[f"{i}vA" for i in range(1, len(sim) + 1)],
    )
    res.attrs["heading"] = _heading(sim, com, sim_names, com_name)
    return res
