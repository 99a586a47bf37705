import numpy as np
from benchmarks.griewank import griewank
from benchmarks.dixonprice import dixonprice, dixonprice_optimum

def test_griewank_zero():
    assert griewank(np.zeros(5)) == 0.0

def test_dixonprice_known_values():
    assert dixonprice(np.array([1.0])) == 0.0
    # (0 - 1)^2 + 2 * (0 - 0)^2
    assert dixonprice(np.zeros(2)) == 1.0
    # (2 - 1)^2 + 2 * (2*1 - 2)^2 + 3 * (2*4 - 1)^2
    assert dixonprice(np.array([2.0, 1.0, 2.0])) == 1.0 + 0.0 + 3 * 49.0

def test_dixonprice_optimum():
    for D in (2, 5, 30):
        assert np.isclose(dixonprice(dixonprice_optimum(D)), 0.0, atol=1e-12)

def test_accepts_readonly_rows():
    x = np.array([0.5, -0.25])
    x.flags.writeable = False
    assert np.isfinite(dixonprice(x))
    assert np.isfinite(griewank(x))
