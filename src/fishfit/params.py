from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np
import uncertainties


__all__ = [
    "ParameterSpec",
    "DerivedSpec",
    "ParamView",
    "ParamsView",
    "GuessState",
]


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    fixed: bool = False
    fixed_value: Optional[float] = None
    bounds: Optional[Tuple[Optional[float], Optional[float]]] = None
    # Strong guess: overrides guessers
    guess: Optional[float] = None
    # Weak guess: used only if guessers don't provide a value
    weak_guess: Optional[float] = None


@dataclass(frozen=True)
class DerivedSpec:
    """Post-fit derived parameter.

    Computed only after fitting, from fitted parameters (not other derived ones).
    """

    name: str
    func: Any  # Callable[[Mapping[str, float]], float]
    doc: str = ""


@dataclass
class _UncContext:
    values: Mapping[str, float]
    cov: Optional[np.ndarray]
    free_names: Tuple[str, ...]
    _cache: Optional[Dict[str, Any]] = field(default=None, init=False, repr=False)

    def _build_cache(self) -> None:
        if self._cache is not None or self.cov is None:
            return
        cov_arr = np.asarray(self.cov, dtype=float)
        n = len(self.free_names)
        if cov_arr.shape != (n, n):
            return
        vals = [float(self.values[name]) for name in self.free_names]
        try:
            corr = uncertainties.correlated_values(vals, cov_arr)
        except (np.linalg.LinAlgError, ValueError):
            return
        self._cache = dict(zip(self.free_names, corr))

    def u_for(self, name: str) -> Optional[Any]:
        if name not in self.free_names:
            return None
        self._build_cache()
        if self._cache is None:
            return None
        return self._cache.get(name)


@dataclass(frozen=True)
class ParamView:
    """A single parameter view."""

    name: str
    value: float
    stderr: Optional[float] = None
    fixed: bool = False
    bounds: Optional[Tuple[Optional[float], Optional[float]]] = None
    derived: bool = False
    _context: Optional[_UncContext] = field(default=None, repr=False, compare=False)

    @property
    def u(self):
        """Return an uncertainties ufloat (correlated with the other fitted params)."""
        if self.stderr is None:
            raise ValueError(f"No stderr available for parameter {self.name!r}.")
        if not np.isfinite(self.stderr):
            raise ValueError(f"stderr for {self.name!r} is not finite.")
        if self._context is not None:
            correlated = self._context.u_for(self.name)
            if correlated is not None:
                return correlated
        return uncertainties.ufloat(self.value, self.stderr)

    def __getitem__(self, key: str) -> Any:
        if key == "value":
            return self.value
        if key == "stderr":
            return self.stderr
        if key == "fixed":
            return self.fixed
        if key == "bounds":
            return self.bounds
        if key == "derived":
            return self.derived
        raise KeyError(key)


class ParamsView(Mapping[str, ParamView]):
    """Mapping name -> ParamView; integer keys index by position."""

    def __init__(
        self,
        items: Mapping[str, ParamView],
        *,
        _context: Optional[_UncContext] = None,
    ):
        self._items = dict(items)
        self._names = tuple(self._items.keys())
        self._context = _context

    def __getitem__(self, key):  # type: ignore[override]
        if isinstance(key, str):
            return self._items[key]
        if isinstance(key, int):
            return self._items[self._names[key]]
        raise KeyError(key)

    def __iter__(self):
        return iter(self._items)

    def __len__(self):
        return len(self._items)

    def items(self):
        return self._items.items()

    def as_dict(self) -> Dict[str, float]:
        """Return name->value (extracting .value)."""
        return {k: v.value for k, v in self._items.items()}


class GuessState:
    """Mutable guess state passed to guessers.

    Supports:
        g.Linf = 500.0
        g.is_unset("Linf")
    """

    def __init__(self):
        object.__setattr__(self, "_d", {})

    def __getattr__(self, name: str) -> Any:
        d = object.__getattribute__(self, "_d")
        if name in d:
            return d[name]
        raise AttributeError(name)

    def __setattr__(self, name: str, value: Any) -> None:
        d = object.__getattribute__(self, "_d")
        d[name] = value

    def is_unset(self, name: str) -> bool:
        d = object.__getattribute__(self, "_d")
        return name not in d

    def to_dict(self) -> Dict[str, Any]:
        return dict(object.__getattribute__(self, "_d"))
