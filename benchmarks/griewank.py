import numpy as np

def griewank(x: np.ndarray) -> float:
    """
    Griewank benchmark function.
    f(x) = 1 + sum x_i^2 / 4000 - prod cos(x_i / sqrt(i))
    Global minimum f = 0 at x = 0. Many regularly spaced local minima; bounds typically [-600, 600]^D.
    """
    x = np.asarray(x, dtype=float)
    i = np.arange(1, len(x) + 1, dtype=float)
    return float(1.0 + np.dot(x, x) / 4000.0 - np.prod(np.cos(x / np.sqrt(i))))
