"""Turning raw engine words into floating-point deviates."""
from __future__ import annotations
import struct
from typing import Optional
import numpy as np
from scipy.stats import norm

from .romu import RomuEngine

MANTISSA_BITS = 52
MANTISSA_MASK = (1 << MANTISSA_BITS) - 1
# bit pattern of 1.0: exponent bias shifted into place
ONE_BITS = (1 << 62) - (1 << MANTISSA_BITS)
MAX_LEADING_ZEROS = 1022
SMALLEST_OPEN01 = float(np.finfo(np.float64).tiny)


def bits_to_double(bits: int) -> float:
    return struct.unpack("<d", struct.pack("<Q", bits))[0]


def leading_zeros64(value: int) -> int:
    return 64 - value.bit_length()


def uniform_fast(bits: int) -> float:
    """
    Map a 64-bit word to [0, 1): the top 52 bits become the mantissa of a
    double in [1, 2), then 1.0 is subtracted. Resolution is 2**-52.
    """
    return bits_to_double((bits >> (64 - MANTISSA_BITS)) + ONE_BITS) - 1.0


def uniform_precise(engine: RomuEngine) -> float:
    """
    Uniform double in [0, 1) with extended precision near zero.

    The exponent comes from the leading-zero count of a draw. When that count
    reaches 12 the mantissa bits no longer cover it, so further draws extend
    the count (one extra draw almost always suffices; the total is capped at
    1022). The mantissa is always the low 52 bits of the first draw.
    """
    rand = engine.next_u64()
    lz = leading_zeros64(rand)
    if lz >= 12:
        lz = 12
        while True:
            extra = leading_zeros64(engine.next_u64())
            lz += extra
            if extra != 64:
                break
            if lz >= MAX_LEADING_ZEROS:
                lz = MAX_LEADING_ZEROS
                break
    mantissa = rand & MANTISSA_MASK
    exponent = (MAX_LEADING_ZEROS - lz) << MANTISSA_BITS
    return bits_to_double(exponent | mantissa)


def uniform(engine: RomuEngine) -> float:
    return uniform_fast(engine.next_u64())


def uniform_array(engine: RomuEngine, size: int) -> np.ndarray:
    """
    `size` values of `uniform(engine)` in draw order; the bit conversion is
    done on the whole batch and matches `uniform_fast` exactly.
    """
    size = int(size)
    next_u64 = engine.next_u64
    bits = np.fromiter((next_u64() for _ in range(size)), dtype=np.uint64, count=size)
    bits = (bits >> np.uint64(64 - MANTISSA_BITS)) | np.uint64(ONE_BITS)
    return bits.view(np.float64) - 1.0


def scale_to_range(u, lo, hi):
    return u * (hi - lo) + lo


def _open01(u):
    # ppf(0) is -inf; an all-zero engine state draws zeros forever, so clamp
    return np.maximum(u, SMALLEST_OPEN01)


def standard_normal(engine: RomuEngine, size: Optional[int] = None):
    """
    Standard-normal deviates by inverse CDF of `uniform_precise` draws.
    Returns a float for size=None, else an array of `size` values in draw order.
    A zero draw is raised to the smallest normal double so results stay finite.
    """
    if size is None:
        return float(norm.ppf(_open01(uniform_precise(engine))))
    u = np.fromiter((uniform_precise(engine) for _ in range(int(size))), dtype=float, count=int(size))
    return norm.ppf(_open01(u))
