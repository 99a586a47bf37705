from __future__ import annotations
from typing import Dict, Iterator, List, Optional, Sequence, Tuple
import numpy as np

from .errors import InvalidArgument
from .romu import SeedLike, make_engine

Bounds = List[Tuple[float, float]]


def default_bounds(dims: int) -> Bounds:
    return [(0.0, 1.0)] * int(dims)


def validate_bounds(bounds: Bounds) -> Bounds:
    if bounds is None or len(bounds) == 0:
        raise InvalidArgument("bounds must give at least one (min, max) pair")
    out: Bounds = []
    for d, b in enumerate(bounds):
        if len(b) != 2:
            raise InvalidArgument(f"bounds[{d}] must be a (min, max) pair, got {b!r}")
        lo, hi = float(b[0]), float(b[1])
        if not (np.isfinite(lo) and np.isfinite(hi)):
            raise InvalidArgument(f"bounds[{d}] must be finite, got ({lo}, {hi})")
        if lo > hi:
            raise InvalidArgument(f"bounds[{d}] has min > max: ({lo}, {hi})")
        out.append((lo, hi))
    return out


class Optimizer:
    """
    Solver-agnostic ask/tell interface to enable clean separation between
    candidate proposal (ask) and objective evaluation (tell).

    `seed` may be raw engine seed bytes, an int, or None for OS entropy.
    """
    def __init__(self, bounds: Bounds, seed: SeedLike = None, options: Optional[Dict] = None):
        self.bounds: Bounds = validate_bounds(bounds)
        self.D: int = len(self.bounds)
        self.options: Dict = options or {}
        self.rng = make_engine(seed, self.options.get("engine"))

    @property
    def dims(self) -> int:
        return self.D

    def ask(self) -> Iterator[np.ndarray]:
        raise NotImplementedError

    def tell(self, objectives: Sequence[float]) -> float:
        raise NotImplementedError

    def best(self) -> Dict:
        raise NotImplementedError

    def state(self) -> Dict:
        return {}
