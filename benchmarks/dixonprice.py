import numpy as np

def dixonprice(x: np.ndarray) -> float:
    """
    Dixon-Price benchmark function.
    f(x) = (x_1 - 1)^2 + sum_{i=2}^{D} i * (2 x_i^2 - x_{i-1})^2
    Global minimum f = 0 at x_i = 2^(-(2^i - 2) / 2^i). Bounds typically [-10, 10]^D.
    """
    x = np.asarray(x, dtype=float)
    i = np.arange(2, len(x) + 1, dtype=float)
    return float((x[0] - 1.0) ** 2 + np.sum(i * (2.0 * x[1:] ** 2 - x[:-1]) ** 2))


def dixonprice_optimum(D: int) -> np.ndarray:
    i = np.arange(1, D + 1, dtype=float)
    return 2.0 ** (-(2.0 ** i - 2.0) / 2.0 ** i)
