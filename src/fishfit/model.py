from __future__ import annotations

from dataclasses import dataclass, replace
import inspect
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple
from warnings import warn

import numpy as np

from .backends import get_backend
from .data import prepare_dataset
from .params import DerivedSpec, GuessState, ParameterSpec, ParamView, ParamsView, _UncContext
from .run import Results, Run
from .util import infer_param_names

Guesser = Callable[[Any, Any, GuessState], None]


@dataclass
class Model:
    """A model wraps a callable and parameter metadata."""

    name: str
    func: Callable[..., Any]
    param_names: Tuple[str, ...]
    params: Tuple[ParameterSpec, ...]
    guessers: Tuple[Guesser, ...] = ()
    derived: Tuple[DerivedSpec, ...] = ()

    # ---- constructor ----
    @staticmethod
    def from_function(
        func: Callable[..., Any], *, name: Optional[str] = None
    ) -> "Model":
        """Construct a Model from a plain function signature.

        Numeric defaults in the signature become weak guesses.
        """
        names = infer_param_names(func)
        sig = inspect.signature(func)
        specs = []
        for n in names:
            d = sig.parameters[n].default
            g = None
            if d is not inspect.Parameter.empty:
                if isinstance(d, (int, float, np.number)) and not isinstance(d, bool):
                    g = float(d)
            specs.append(ParameterSpec(name=n, weak_guess=g))
        return Model(
            name=name or getattr(func, "__name__", "model"),
            func=func,
            param_names=names,
            params=tuple(specs),
        )

    # ---- evaluation ----
    def eval(
        self, x: Any, *, params: Optional[Mapping[str, Any]] = None, **kwargs
    ) -> Any:
        """Evaluate the model function at x with given parameters."""
        values: Dict[str, Any] = {}
        if params is not None:
            for k, v in params.items():
                values[k] = v.value if isinstance(v, ParamView) else v
        values.update(kwargs)

        for spec in self.params:
            if spec.fixed and spec.name not in values:
                values[spec.name] = spec.fixed_value

        missing = [n for n in self.param_names if n not in values]
        if missing:
            raise TypeError(f"Missing parameter values for: {missing}")

        args = [x] + [values[n] for n in self.param_names]
        return self.func(*args)

    # ---- builders (pure; return new model) ----
    def _update(self, what: str, changes: Mapping[str, Any], make) -> "Model":
        m = {p.name: p for p in self.params}
        for k, v in changes.items():
            if k not in m:
                raise KeyError(f"{self.name} has no parameter {k!r} to {what}.")
            m[k] = make(m[k], v)
        return replace(self, params=tuple(m[n] for n in self.param_names))

    def fix(self, **fixed: float) -> "Model":
        """Return a new Model with parameters fixed to values."""
        return self._update(
            "fix", fixed, lambda s, v: replace(s, fixed=True, fixed_value=float(v))
        )

    def bound(self, **bounds: Tuple[Optional[float], Optional[float]]) -> "Model":
        """Return a new Model with parameter bounds applied."""
        return self._update("bound", bounds, lambda s, b: replace(s, bounds=(b[0], b[1])))

    def guess(self, **guesses: float) -> "Model":
        """Return a new Model with strong parameter guesses."""
        return self._update("guess", guesses, lambda s, g: replace(s, guess=float(g)))

    def weak_guess(self, **guesses: float) -> "Model":
        """Set weak (low-precedence) guesses.

        Weak guesses are used only if guessers don't provide a value for that
        parameter. Strong guesses set via .guess(...) override guessers.
        """
        return self._update("guess", guesses, lambda s, g: replace(s, weak_guess=float(g)))

    def derive(
        self, name: str, func: Callable[[Mapping[str, float]], float], *, doc: str = ""
    ) -> "Model":
        """Return a new Model with a post-fit derived parameter."""
        if name in self.param_names:
            raise ValueError(
                f"Derived name {name!r} conflicts with an existing parameter."
            )
        return replace(
            self, derived=self.derived + (DerivedSpec(name=name, func=func, doc=doc),)
        )

    def with_guesser(self, fn: Guesser) -> "Model":
        """Return a new Model with `fn` appended to the guesser list."""
        return replace(self, guessers=self.guessers + (fn,))

    def seed(
        self,
        x: Any,
        data: Any = None,
        *,
        seed_override: Optional[Mapping[str, float]] = None,
    ) -> ParamsView:
        """Compute parameter seeds without running the optimiser."""
        run = self.fit(x, data, seed_override=seed_override, optimise=False)
        return run.results.seed

    # ---- fitting ----
    def fit(
        self,
        x: Any,
        data: Any = None,
        *,
        backend: str = "scipy.curve_fit",
        seed_override: Optional[Mapping[str, float]] = None,
        optimise: bool = True,
        backend_options: Optional[Dict[str, Any]] = None,
    ) -> Run:
        """Fit the model to data and return a Run.

        `data` is y, or a tuple (y, sigma) for weighted least squares.
        """
        if data is None:
            raise TypeError("fit() missing required argument: data")
        ds = prepare_dataset(x, data)

        free_names, fixed_map = _free_and_fixed(self.params)
        p0_map = _compute_seed_map(
            self, ds.x, np.asarray(ds.y_for_seed, dtype=float), free_names,
            seed_override=seed_override,
        )
        p0 = np.asarray([float(p0_map[n]) for n in free_names], dtype=float)
        bounds = _bounds_for_free(self.params, free_names)

        seed_values = {**{n: float(p0_map[n]) for n in free_names}, **fixed_map}

        if not optimise:
            values = dict(seed_values)
            cov = None
            success, message, stats = True, "optimise=False (seed only)", {}
        else:
            r = get_backend(backend).fit_one(
                model=self,
                dataset=ds,
                free_names=free_names,
                fixed_map=fixed_map,
                p0=p0,
                bounds=bounds,
                options=dict(backend_options or {}),
            )
            theta = np.asarray(r.theta, dtype=float)
            values = {**dict(zip(free_names, (float(t) for t in theta))), **fixed_map}
            cov = None if r.cov is None else np.asarray(r.cov, dtype=float)
            success, message, stats = bool(r.success), str(r.message), dict(r.stats or {})
            if not success:
                warn(f"{self.name}: fit did not converge ({message}).", UserWarning)

        stderrs: Dict[str, Optional[float]] = {n: None for n in self.param_names}
        if cov is not None:
            perr = np.sqrt(np.clip(np.diag(cov), 0.0, np.inf))
            stderrs.update(zip(free_names, (float(e) for e in perr)))

        ctx = _UncContext(values=values, cov=cov, free_names=tuple(free_names))
        items: Dict[str, ParamView] = {}
        seed_items: Dict[str, ParamView] = {}
        for spec in self.params:
            n = spec.name
            items[n] = ParamView(
                name=n,
                value=float(values[n]),
                stderr=stderrs[n],
                fixed=spec.fixed,
                bounds=spec.bounds,
                _context=ctx,
            )
            seed_items[n] = ParamView(
                name=n, value=float(seed_values[n]), fixed=spec.fixed, bounds=spec.bounds
            )
        items.update(_derived_items(self, items))

        results = Results(
            params=ParamsView(items, _context=ctx),
            seed=ParamsView(seed_items),
            cov=cov,
            backend=backend,
            stats=stats,
        )
        return Run(
            model=self,
            results=results,
            backend=backend,
            data={"x": x, "data": data, "dataset": ds},
            success=success,
            message=message,
        )


def _derived_items(model: Model, items: Mapping[str, ParamView]) -> Dict[str, ParamView]:
    """Evaluate post-fit derived params, propagating errors when all are known."""
    if not model.derived:
        return {}
    use_unc = all(
        items[s.name].stderr is not None and np.isfinite(items[s.name].stderr)
        for s in model.params
        if not s.fixed
    )
    base = {n: float(pv.value) for n, pv in items.items()}
    base_unc = (
        {n: (pv.value if pv.fixed else pv.u) for n, pv in items.items()} if use_unc else None
    )
    out: Dict[str, ParamView] = {}
    for d in model.derived:
        if base_unc is not None:
            dv = d.func(base_unc)
            if hasattr(dv, "nominal_value") and hasattr(dv, "std_dev"):
                val, err = float(dv.nominal_value), float(dv.std_dev)
            else:
                val, err = float(dv), None
        else:
            val, err = float(d.func(base)), None
        out[d.name] = ParamView(name=d.name, value=val, stderr=err, fixed=True, derived=True)
    return out


def _free_and_fixed(
    params: Tuple[ParameterSpec, ...]
) -> Tuple[List[str], Dict[str, float]]:
    """Split parameters into free names and fixed name->value mapping."""
    free: List[str] = []
    fixed: Dict[str, float] = {}
    for p in params:
        if p.fixed:
            if p.fixed_value is None:
                raise ValueError(f"Parameter {p.name} is fixed but has no fixed_value.")
            fixed[p.name] = float(p.fixed_value)
        else:
            free.append(p.name)
    return free, fixed


def _bounds_for_free(
    params: Tuple[ParameterSpec, ...], free_names: List[str]
) -> Tuple[np.ndarray, np.ndarray]:
    """Return (lo, hi) arrays of bounds for free parameters."""
    pmap = {p.name: p for p in params}
    lo: List[float] = []
    hi: List[float] = []
    for n in free_names:
        b = pmap[n].bounds
        if b is None:
            lo.append(-np.inf)
            hi.append(np.inf)
        else:
            lo.append(-np.inf if b[0] is None else float(b[0]))
            hi.append(np.inf if b[1] is None else float(b[1]))
    return (np.array(lo, dtype=float), np.array(hi, dtype=float))


def _compute_seed_map(
    model: Model,
    x: Any,
    y: np.ndarray,
    free_names: Sequence[str],
    seed_override: Optional[Mapping[str, float]] = None,
) -> Dict[str, float]:
    """Compute initial seeds for one dataset.

    Precedence per free parameter:

      1) per-call `seed_override`
      2) strong guess via model.guess(...)
      3) model guessers (with_guesser)
      4) weak guess via model.weak_guess(...) (and function defaults)
      5) midpoint of finite bounds (with a warning)
      6) else: raise ValueError
    """
    pmap = {p.name: p for p in model.params}
    seeds: Dict[str, float] = {}

    for n in free_names:
        if pmap[n].guess is not None:
            seeds[n] = float(pmap[n].guess)

    if model.guessers:
        gs = GuessState()
        for fn in model.guessers:
            fn(x, y, gs)
        for n, v in gs.to_dict().items():
            if n in free_names and n not in seeds:
                seeds[n] = float(v)

    for n in free_names:
        if n not in seeds and pmap[n].weak_guess is not None:
            seeds[n] = float(pmap[n].weak_guess)

    if seed_override is not None:
        for n, v in seed_override.items():
            if n in free_names:
                seeds[n] = float(v)

    # Guessers may report NaN when the data do not support a value.
    seeds = {n: v for n, v in seeds.items() if np.isfinite(v)}

    filled_from_bounds: List[str] = []
    for n in free_names:
        if n in seeds or pmap[n].bounds is None:
            continue
        lo, hi = pmap[n].bounds
        if lo is not None and hi is not None and np.isfinite(lo) and np.isfinite(hi):
            seeds[n] = 0.5 * (float(lo) + float(hi))
            filled_from_bounds.append(n)
    if filled_from_bounds:
        warn(
            "Using mid-point of bounds as seed for parameters: "
            + ", ".join(filled_from_bounds),
            UserWarning,
        )

    clipped: List[str] = []
    for n, v0 in list(seeds.items()):
        b = pmap[n].bounds
        if b is None:
            continue
        lo, hi = b
        v = v0
        if lo is not None and np.isfinite(lo):
            v = max(v, float(lo))
        if hi is not None and np.isfinite(hi):
            v = min(v, float(hi))
        if v != v0:
            seeds[n] = v
            clipped.append(n)
    if clipped:
        warn("Clipped seed values into bounds for: " + ", ".join(clipped), UserWarning)

    missing = [n for n in free_names if n not in seeds]
    if missing:
        raise ValueError(
            "Could not determine initial seeds for parameters: "
            + ", ".join(missing)
            + ". Provide seed_override=..., model.guess(...), a guesser, or finite bounds."
        )
    return seeds
