import struct

import numpy as np
import pytest

from optimizer.base import default_bounds
from optimizer.errors import InvalidArgument, InvalidSeed
from optimizer.floats import scale_to_range, uniform
from optimizer.pso import PSO
from optimizer.romu import RomuDuoJr, RomuTrio
from benchmarks.griewank import griewank


def sphere(x: np.ndarray) -> float:
    return float(np.sum(np.asarray(x) ** 2))


def snapshot(opt: PSO):
    return (
        opt.positions.to_array(),
        opt.velocities.to_array(),
        opt.best_positions.to_array(),
        opt.best_objectives.copy(),
        opt.rng.state,
    )


def test_defaults():
    opt = PSO(default_bounds(3), seed=0)
    assert opt.n_particles == 20
    assert opt.dims == 3
    assert opt.cognitive_factor == 0.1
    assert opt.social_factor == 0.1
    assert opt.velocity_decay_factor == 0.8
    assert opt.init_speed == 0.1
    assert isinstance(opt.rng, RomuDuoJr)
    assert opt.positions.shape == opt.velocities.shape == opt.best_positions.shape == (20, 3)


def test_initial_state():
    bounds = [(-5.0, 5.0), (0.0, 1.0), (100.0, 101.0)]
    opt = PSO(bounds, seed=11, options={"n_particles": 15})
    X = opt.positions.to_array()
    assert np.all(np.isinf(opt.best_objectives))
    assert np.array_equal(opt.best_positions.to_array(), X)
    for d, (lo, hi) in enumerate(bounds):
        assert np.all(X[:, d] >= lo)
        assert np.all(X[:, d] < hi)
    assert np.all(np.isfinite(opt.velocities.to_array()))


def test_positions_drawn_row_major_from_engine():
    seed = struct.pack("<2Q", 0x1234, 0xABCDEF)
    bounds = [(-1.0, 1.0), (10.0, 20.0)]
    opt = PSO(bounds, seed=seed, options={"n_particles": 4})
    e = RomuDuoJr.from_seed(seed)
    expected = [[scale_to_range(uniform(e), lo, hi) for lo, hi in bounds] for _ in range(4)]
    assert np.array_equal(opt.positions.to_array(), np.array(expected))


def test_init_speed_zero_gives_still_swarm():
    opt = PSO(default_bounds(2), seed=1, options={"init_speed": 0.0})
    assert np.all(opt.velocities.to_array() == 0.0)


def test_same_seed_same_run():
    bounds = [(-5.0, 5.0)] * 3
    a = PSO(bounds, seed=42, options={"n_particles": 8})
    b = PSO(bounds, seed=42, options={"n_particles": 8})
    for _ in range(10):
        fa = [sphere(x) for x in a.ask()]
        fb = [sphere(x) for x in b.ask()]
        assert fa == fb
        assert a.tell(fa) == b.tell(fb)
    assert np.array_equal(a.positions.to_array(), b.positions.to_array())
    assert np.array_equal(a.best()["x"], b.best()["x"])


def test_seed_bytes_length_checked():
    with pytest.raises(InvalidSeed):
        PSO(default_bounds(2), seed=b"short")
    with pytest.raises(InvalidSeed):
        PSO(default_bounds(2), seed=bytes(16), options={"engine": "romu_trio"})
    opt = PSO(default_bounds(2), seed=bytes(range(24)), options={"engine": "romu_trio"})
    assert isinstance(opt.rng, RomuTrio)


def test_ask_yields_read_only_rows():
    opt = PSO(default_bounds(4), seed=3, options={"n_particles": 5})
    rows = list(opt.ask())
    assert len(rows) == 5
    assert all(r.shape == (4,) for r in rows)
    with pytest.raises(ValueError):
        rows[0][0] = 1.0
    # each ask() starts a fresh pass
    again = list(opt.ask())
    assert all(np.array_equal(a, b) for a, b in zip(rows, again))


def test_tell_returns_non_increasing_global_best():
    opt = PSO([(-5.0, 5.0)] * 2, seed=5, options={"n_particles": 10})
    history = []
    for _ in range(50):
        history.append(opt.tell([sphere(x) for x in opt.ask()]))
    assert all(b <= a for a, b in zip(history, history[1:]))
    assert history[-1] == opt.best()["f"]
    assert np.isclose(sphere(opt.best()["x"]), opt.best()["f"])


def test_personal_best_strict_improvement():
    opt = PSO(default_bounds(1), seed=2, options={"n_particles": 3})
    X0 = opt.positions.to_array()
    opt.tell([3.0, 2.0, 1.0])
    assert np.array_equal(opt.best_objectives, [3.0, 2.0, 1.0])
    assert np.array_equal(opt.best_positions.to_array(), X0)

    X1 = opt.positions.to_array()
    # equal objective does not replace the personal best; smaller one does
    opt.tell([3.0, 1.5, 5.0])
    assert np.array_equal(opt.best_objectives, [3.0, 1.5, 1.0])
    P = opt.best_positions.to_array()
    assert np.array_equal(P[0], X0[0])
    assert np.array_equal(P[1], X1[1])
    assert np.array_equal(P[2], X0[2])


def test_global_best_tie_goes_to_last_index():
    n = 6
    opt = PSO(default_bounds(2), seed=8, options={"n_particles": n})
    X0 = opt.positions.to_array()
    assert opt.tell([0.5] * n) == 0.5
    assert opt.global_best_index == n - 1
    assert np.array_equal(opt.best()["x"], X0[n - 1])


def test_global_best_prefers_later_of_equal_minima():
    opt = PSO(default_bounds(1), seed=8, options={"n_particles": 4})
    opt.tell([2.0, 1.0, 3.0, 1.0])
    assert opt.global_best_index == 3
    assert opt.state()["gbest_index"] == 3


def test_degenerate_swarm_moves_at_constant_velocity():
    opt = PSO(default_bounds(1), seed=99, options={
        "n_particles": 3,
        "cognitive_factor": 0.0,
        "social_factor": 0.0,
        "velocity_decay_factor": 1.0,
    })
    v0 = opt.velocities.to_array()
    expected = opt.positions.to_array()
    objectives = np.random.default_rng(0).random((25, 3))
    for t in range(25):
        opt.tell(objectives[t])
        expected = expected + v0
        assert np.array_equal(opt.velocities.to_array(), v0)
        assert np.array_equal(opt.positions.to_array(), expected)


def test_mismatched_tell_fails_without_mutation():
    opt = PSO(default_bounds(2), seed=4, options={"n_particles": 3})
    opt.tell([1.0, 2.0, 3.0])
    before = snapshot(opt)
    for bad in ([1.0, 2.0], [1.0, 2.0, 3.0, 4.0], [], [[1.0, 2.0, 3.0]]):
        with pytest.raises(InvalidArgument):
            opt.tell(bad)
    after = snapshot(opt)
    for a, b in zip(before[:4], after[:4]):
        assert np.array_equal(a, b)
    assert before[4] == after[4]
    assert opt.state()["iter"] == 1


def test_nan_objective_never_becomes_best():
    opt = PSO(default_bounds(2), seed=6, options={"n_particles": 3})
    opt.tell([np.nan, 4.0, np.nan])
    assert np.isinf(opt.best_objectives[0])
    assert opt.best_objectives[1] == 4.0
    assert opt.global_best_index == 1
    st = opt.state()
    assert st["f_best"] == 4.0
    assert st["evals_total"] == 3


def test_tell_does_not_modify_caller_array():
    opt = PSO(default_bounds(2), seed=6, options={"n_particles": 2})
    f = np.array([np.nan, 1.0])
    opt.tell(f)
    assert np.isnan(f[0])


def test_positions_may_leave_bounds():
    opt = PSO([(0.0, 1.0)], seed=7, options={"n_particles": 4, "init_speed": 50.0})
    opt.tell([1.0, 2.0, 3.0, 4.0])
    X = opt.positions.to_array()
    assert np.any((X < 0.0) | (X >= 1.0))


def test_best_before_any_tell():
    opt = PSO(default_bounds(3), seed=1, options={"n_particles": 4})
    best = opt.best()
    assert best["f"] == np.inf
    assert best["x"].shape == (3,)


@pytest.mark.parametrize("bounds,options", [
    ([], {}),
    ([(1.0, 0.0)], {}),
    ([(0.0, np.inf)], {}),
    ([(0.0, 1.0, 2.0)], {}),
    ([(0.0, 1.0)], {"n_particles": 0}),
    ([(0.0, 1.0)], {"init_speed": -0.1}),
    ([(0.0, 1.0)], {"engine": "nope"}),
    ([(0.0, 1.0)], {"engine": "romu_trio32"}),
])
def test_invalid_construction(bounds, options):
    with pytest.raises(InvalidArgument):
        PSO(bounds, seed=0, options=options)


def test_pso_converges_on_sphere():
    opt = PSO([(-5.0, 5.0)] * 2, seed=123, options={
        "n_particles": 20,
        "velocity_decay_factor": 0.7,
        "cognitive_factor": 1.4,
        "social_factor": 1.4,
    })
    for _ in range(100):
        best = opt.tell([sphere(x) for x in opt.ask()])
    assert best < 1e-2, f"Sphere minimum not reached, f_best={best}"


def test_pso_runs_and_improves_on_griewank():
    opt = PSO([(-600.0, 600.0)] * 2, seed=0, options={"n_particles": 20})
    first = opt.tell([griewank(x) for x in opt.ask()])
    for _ in range(30):
        best = opt.tell([griewank(x) for x in opt.ask()])
        assert np.isfinite(best)
    assert best <= first
    st = opt.state()
    assert st["iter"] == 31
    assert st["evals_total"] == 31 * 20
    assert st["gbest_f"] == best


def test_all_zero_seed_keeps_swarm_finite():
    opt = PSO([(0.0, 1.0)], seed=bytes(16), options={"n_particles": 3})
    assert np.all(np.isfinite(opt.velocities.to_array()))
    for _ in range(5):
        best = opt.tell([sphere(x) for x in opt.ask()])
    assert np.isfinite(best)
    assert np.all(np.isfinite(opt.positions.to_array()))
