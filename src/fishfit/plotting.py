from __future__ import annotations

from collections import Counter
from typing import Any, Mapping, Optional, Sequence, Tuple

import numpy as np

from .growth import Parameterization, growth_function
from .util import infer_param_names


def plot_fit(
    *,
    ax: Optional[Any] = None,
    x: Any,
    y: Any,
    yerr: Optional[Any] = None,
    run: Optional[Any] = None,
    which: str = "fit",
    xg: Optional[np.ndarray] = None,
    data_kwargs: Optional[Mapping[str, Any]] = None,
    line_kwargs: Optional[Mapping[str, Any]] = None,
    show_params: bool = True,
    param_names: Optional[Sequence[str]] = None,
    text_kwargs: Optional[Mapping[str, Any]] = None,
) -> Tuple[Any, Any]:
    """Plot data points and an optional fitted curve on a Matplotlib Axes.

    Parameters
    ----------
    ax : matplotlib.axes.Axes, optional
        If None, a new figure/axes is created.
    x, y : array-like
        1D data to plot.
    yerr : array-like, optional
        Symmetric error bars. Scalar or array-like.
    run : Run, optional
        Run object providing predict(). Required for the curve.
    which : {"fit", "seed"}
        Use fitted params or seed params for the curve.
    xg : ndarray, optional
        Grid for the curve. Defaults to 400 points over the x range.
    show_params : bool
        Annotate free parameters as ``name=value±stderr``.
    """
    import matplotlib.pyplot as plt

    if ax is None:
        fig, ax = plt.subplots()
    else:
        fig = ax.figure

    data_kwargs = dict(data_kwargs or {})
    line_kwargs = dict(line_kwargs or {})
    text_kwargs = dict(text_kwargs or {})

    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    if x_arr.ndim != 1 or x_arr.shape != y_arr.shape:
        raise ValueError("plot_fit requires 1D x and y arrays of the same shape.")

    if yerr is None:
        data_kwargs.setdefault("marker", "o")
        data_kwargs.setdefault("linestyle", "none")
        data_kwargs.setdefault("alpha", 0.5)
        ax.plot(x_arr, y_arr, **data_kwargs)
    else:
        data_kwargs.setdefault("fmt", "o")
        data_kwargs.setdefault("ms", 4)
        data_kwargs.setdefault("capsize", 2)
        ax.errorbar(x_arr, y_arr, yerr=yerr, **data_kwargs)

    if run is not None:
        if xg is None:
            xg = np.linspace(float(np.min(x_arr)), float(np.max(x_arr)), 400)
        line_kwargs.setdefault("label", "fit" if which == "fit" else "seed")
        ax.plot(xg, run.predict(xg, which=which), **line_kwargs)

        if show_params:
            params = run.results.params if which == "fit" else run.results.seed
            if param_names is None:
                names = [n for n, pv in params.items() if not pv.fixed and not pv.derived]
            else:
                names = list(param_names)
            lines = []
            for name in names:
                pv = params[name]
                if pv.stderr is None or not np.isfinite(pv.stderr):
                    lines.append(f"{name}={float(pv.value):.4g}")
                else:
                    lines.append(f"{name}={pv.u:.2uP}")
            if lines:
                text_kwargs.setdefault("ha", "left")
                text_kwargs.setdefault("va", "top")
                text_kwargs.setdefault("fontsize", 9)
                text_kwargs.setdefault("transform", ax.transAxes)
                text_kwargs.setdefault(
                    "bbox",
                    {"boxstyle": "round", "facecolor": "white", "alpha": 0.7, "edgecolor": "none"},
                )
                ax.text(0.02, 0.98, "\n".join(lines), **text_kwargs)

    return fig, ax


def _point_alpha(age: np.ndarray, length: np.ndarray) -> float:
    """Transparency that keeps stacked (age, length) points readable."""
    m = max(Counter(zip(age.tolist(), length.tolist())).values())
    if m <= 2:
        return 1.0
    if m < 20:
        return 2.0 / m
    return 0.1


def plot_starts(
    age: Any,
    length: Any,
    starts: Mapping[str, float],
    param: Any,
    *,
    ages2use: Optional[Sequence[float]] = None,
    val_ogle: Optional[Mapping[str, float]] = None,
    ax: Optional[Any] = None,
) -> Tuple[Any, Any]:
    """Scatter length on age with the growth curve at starting values."""
    import matplotlib.pyplot as plt

    if ax is None:
        fig, ax = plt.subplots()
    else:
        fig = ax.figure

    p = Parameterization.parse(param)
    age = np.asarray(age, dtype=float)
    length = np.asarray(length, dtype=float)
    ax.plot(
        age, length, marker="o", linestyle="none", color="black", alpha=_point_alpha(age, length)
    )

    values = dict(starts)
    if p is Parameterization.OGLE and val_ogle is not None:
        values.update({k: float(v) for k, v in val_ogle.items()})
    if p in (Parameterization.SCHNUTE, Parameterization.FRANCIS):
        if ages2use is None:
            ages2use = (float(np.min(age)), float(np.max(age)))
        f = growth_function(p, t1=ages2use[0], t3=ages2use[-1])
    else:
        f = growth_function(p)

    names = infer_param_names(f)
    t = np.linspace(float(np.min(age)), float(np.max(age)), 200)
    ax.plot(t, f(t, *(values[n] for n in names)), color="red", linewidth=2)

    label = "\n".join(f"{k}={v:.2f}" for k, v in starts.items())
    ax.text(
        0.98,
        0.02,
        label,
        transform=ax.transAxes,
        ha="right",
        va="bottom",
        fontsize=9,
        bbox={"boxstyle": "round", "facecolor": "white", "alpha": 0.7, "edgecolor": "none"},
    )
    ax.set_xlabel("Age")
    ax.set_ylabel("Length")
    ax.set_title(f"von B ({p.value}) STARTING VALUES")
    return fig, ax
