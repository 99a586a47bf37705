from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


# Project root: the directory holding optimizer/, benchmarks/, experiments/
PROJECT_ROOT = Path(__file__).resolve().parents[1]

DATA_ROOT = PROJECT_ROOT / "data"
RESULTS_ROOT = DATA_ROOT / "results"


@dataclass
class RunConfig:
    """Minimal run configuration metadata to store with each run."""
    problem: str             # e.g. "dixonprice", "griewank"
    engine: str              # e.g. "romu_duo_jr"
    n_particles: int
    n_generations: int
    dim: int
    seed: Optional[int]      # None when seeded from OS entropy
    cognitive_factor: float
    social_factor: float
    velocity_decay_factor: float
    init_speed: float


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def create_run_dir(problem: str, root: Optional[Path] = None) -> Path:
    """
    Create and return a unique directory for a single run.

    Structure:
        {root}/{problem}/run_YYYYmmdd_HHMMSS_XXXX/

    root defaults to data/results under the project root.
    """
    if not problem:
        raise ValueError("problem name must be non-empty")

    base = Path(root) if root is not None else RESULTS_ROOT
    base = base / problem
    _ensure_dir(base)

    now = datetime.now()
    # microsecond suffix keeps back-to-back runs apart
    run_name = f"run_{now.strftime('%Y%m%d_%H%M%S')}_{now.strftime('%f')[-4:]}"

    run_dir = base / run_name
    suffix = 1
    while run_dir.exists():
        run_dir = base / f"{run_name}_{suffix}"
        suffix += 1
    _ensure_dir(run_dir)
    return run_dir


def save_run_metadata(run_dir: Path, config: RunConfig, extra: Dict[str, Any] | None = None) -> Path:
    """
    Save run configuration and optional extra info to metadata.json.
    """
    meta: Dict[str, Any] = asdict(config)
    if extra:
        meta.update(extra)

    path = Path(run_dir) / "metadata.json"
    with path.open("w") as f:
        json.dump(meta, f, indent=2, allow_nan=False)
    return path
