from __future__ import annotations
import itertools
from typing import Dict, Iterator, Optional, Sequence
import numpy as np

from .base import Optimizer, Bounds
from .dense import DenseMatrix
from .errors import InvalidArgument
from .floats import scale_to_range, standard_normal, uniform, uniform_array
from .romu import SeedLike


class PSO(Optimizer):
    """
    Particle Swarm Optimisation (continuous, global-best topology)
    - velocity decay (inertia), cognitive and social factors
    - positions sampled uniformly in bounds, never clamped afterwards
    - velocities seeded as N(0, 1) * init_speed
    - all randomness from one Romu engine, so a seed fixes the whole run
      up to the Gaussian velocity seeding
    """
    def __init__(self, bounds: Bounds, seed: SeedLike = None, options: Optional[Dict] = None):
        super().__init__(bounds, seed, options)
        opt = self.options

        self.n_particles: int = int(opt.get("n_particles", 20))
        self.cognitive_factor: float = float(opt.get("cognitive_factor", 0.1))
        self.social_factor: float = float(opt.get("social_factor", 0.1))
        self.velocity_decay_factor: float = float(opt.get("velocity_decay_factor", 0.8))
        self.init_speed: float = float(opt.get("init_speed", 0.1))

        if self.n_particles <= 0:
            raise InvalidArgument(f"n_particles must be positive, got {self.n_particles}")
        if self.init_speed < 0:
            raise InvalidArgument(f"init_speed must be >= 0, got {self.init_speed}")
        if self.rng.WORD_BITS != 64:
            raise InvalidArgument(f"{type(self.rng).__name__} cannot drive PSO: 64-bit draws required")

        rng = self.rng
        n, D = self.n_particles, self.D

        # row-major: dimension index cycles fastest
        ranges = itertools.cycle(self.bounds)

        def sample_position() -> float:
            lo, hi = next(ranges)
            return scale_to_range(uniform(rng), lo, hi)

        self.positions = DenseMatrix.new_with(n, D, sample_position)
        self.best_positions = self.positions.copy()

        self.velocities = DenseMatrix(n, D)
        self.velocities.data_mut()[:] = standard_normal(rng, n * D) * self.init_speed

        self.best_objectives = np.full(n, np.inf)

        self._iter_best = np.inf
        self._iter_mean = np.inf
        self._iter_std = np.inf
        self._evals_total = 0
        self._iters = 0

    @property
    def global_best_index(self) -> int:
        # argmin with ties going to the highest index
        b = self.best_objectives
        return len(b) - 1 - int(np.argmin(b[::-1]))

    def ask(self) -> Iterator[np.ndarray]:
        """Read-only position rows, one per particle; valid until the next tell()."""
        return self.positions.iter_rows()

    def tell(self, objectives: Sequence[float]) -> float:
        f_arr = np.array(objectives, dtype=float)
        if f_arr.ndim != 1 or f_arr.shape[0] != self.n_particles:
            raise InvalidArgument(
                f"expected {self.n_particles} objectives, got shape {f_arr.shape}"
            )
        f_arr[np.isnan(f_arr)] = np.inf

        # 1) personal bests (strict improvement only)
        improved = f_arr < self.best_objectives
        for i in np.flatnonzero(improved):
            self.best_objectives[i] = f_arr[i]
            self.best_positions.row_view_mut(i)[:] = self.positions.row_view(i)

        # 2) global best
        g_idx = self.global_best_index
        g = self.best_positions.row_view(g_idx)
        g_f = float(self.best_objectives[g_idx])

        # 3) velocity & position updates; r1, r2 drawn per particle per dimension
        n, D = self.n_particles, self.D
        r = uniform_array(self.rng, 2 * n * D).reshape(n, D, 2)

        w, c1, c2 = self.velocity_decay_factor, self.cognitive_factor, self.social_factor
        for i in range(n):
            x = self.positions.row_view_mut(i)
            v = self.velocities.row_view_mut(i)
            p = self.best_positions.row_view(i)
            r1 = r[i, :, 0]
            r2 = r[i, :, 1]

            v[:] = w * v + c1 * r1 * (p - x) + c2 * r2 * (g - x)
            x += v

        # 4) iteration stats
        valid_mask = np.isfinite(f_arr)
        if np.any(valid_mask):
            valid_f = f_arr[valid_mask]
            self._iter_best = float(np.min(valid_f))
            self._iter_mean = float(np.mean(valid_f))
            self._iter_std = float(np.std(valid_f))
        else:
            self._iter_best = float(np.inf)
            self._iter_mean = float(np.inf)
            self._iter_std = 0.0
        self._evals_total += n
        self._iters += 1

        return g_f

    def best(self) -> Dict:
        g_idx = self.global_best_index
        return {
            "x": self.best_positions.row_view(g_idx).copy(),
            "f": float(self.best_objectives[g_idx]),
        }

    def state(self) -> Dict:
        g_idx = self.global_best_index
        return {
            "iter": self._iters,
            "evals_total": self._evals_total,
            "f_best": self._iter_best,
            "f_mean": self._iter_mean,
            "f_std": self._iter_std,
            "gbest_f": float(self.best_objectives[g_idx]),
            "gbest_index": g_idx,
        }
