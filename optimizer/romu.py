"""
Romu family of small-state pseudo-random generators.

Fast multiply/rotate recurrences with a large (unspecified) period. Good
enough for search heuristics, not for anything adversarial. State words are
plain Python ints kept reduced modulo 2**WORD_BITS.
"""
from __future__ import annotations
from typing import Dict, Optional, Tuple, Type, Union
import numpy as np

from .errors import InvalidArgument, InvalidSeed, UnsupportedOperation

MASK64 = (1 << 64) - 1
MASK32 = (1 << 32) - 1

SeedLike = Union[None, int, bytes, bytearray, memoryview]


def rotl(value: int, k: int, bits: int) -> int:
    mask = (1 << bits) - 1
    return ((value << k) | (value >> (bits - k))) & mask


class RomuEngine:
    """
    Shared capability of every engine: draw the next native-width word and
    advance state. Subclasses set NUM_FIELDS / WORD_BITS and implement
    `_next_word`; narrowing, byte filling and seeding live here.
    """
    NUM_FIELDS: int = 0
    WORD_BITS: int = 64
    FIELDS: Tuple[str, ...] = ()

    def __init__(self, *words: int):
        if len(words) != self.NUM_FIELDS:
            raise InvalidSeed(f"{type(self).__name__} needs {self.NUM_FIELDS} state words, got {len(words)}")
        mask = (1 << self.WORD_BITS) - 1
        for name, w in zip(self.FIELDS, words):
            setattr(self, name, int(w) & mask)

    @classmethod
    def word_bytes(cls) -> int:
        return cls.WORD_BITS // 8

    @classmethod
    def seed_size(cls) -> int:
        return cls.NUM_FIELDS * cls.word_bytes()

    # ---- seeding ----
    @classmethod
    def from_seed(cls, seed: Union[bytes, bytearray, memoryview]) -> "RomuEngine":
        """Decode exactly NUM_FIELDS little-endian words and assign them as x, y[, z]."""
        if not isinstance(seed, (bytes, bytearray, memoryview)):
            raise InvalidSeed(f"seed must be a byte buffer, got {type(seed).__name__}")
        seed = bytes(seed)
        if len(seed) != cls.seed_size():
            raise InvalidSeed(f"{cls.__name__} seed must be {cls.seed_size()} bytes, got {len(seed)}")
        words = np.frombuffer(seed, dtype=f"<u{cls.word_bytes()}")
        return cls(*(int(w) for w in words))

    @classmethod
    def _from_seed_sequence(cls, ss: np.random.SeedSequence) -> "RomuEngine":
        dtype = np.uint64 if cls.WORD_BITS == 64 else np.uint32
        state = ss.generate_state(cls.NUM_FIELDS, dtype=dtype)
        return cls.from_seed(state.astype(f"<u{cls.word_bytes()}").tobytes())

    @classmethod
    def seed_from_int(cls, seed: int) -> "RomuEngine":
        """Deterministic state from an integer seed (expanded by numpy's SeedSequence)."""
        if int(seed) < 0:
            raise InvalidSeed(f"integer seed must be non-negative, got {seed}")
        return cls._from_seed_sequence(np.random.SeedSequence(int(seed)))

    @classmethod
    def from_entropy(cls) -> "RomuEngine":
        return cls._from_seed_sequence(np.random.SeedSequence())

    # ---- draws ----
    def _next_word(self) -> int:
        raise NotImplementedError

    def next_u64(self) -> int:
        if self.WORD_BITS != 64:
            raise UnsupportedOperation(f"{type(self).__name__} cannot produce 64-bit draws")
        return self._next_word()

    def next_u32(self) -> int:
        if self.WORD_BITS == 32:
            return self._next_word()
        # top half of a 64-bit draw
        return self._next_word() >> 32

    def fill_bytes(self, dest: Union[bytearray, memoryview]) -> None:
        """
        Fill `dest` with native-width draws packed little-endian, in draw
        order. On 64-bit engines a tail of 4 bytes or fewer comes from
        `next_u32()` (top half of a draw); a longer tail from a full word.
        """
        wb = self.word_bytes()
        n = len(dest)
        for start in range(0, n, wb):
            stop = min(start + wb, n)
            if wb == 8 and stop - start <= 4:
                chunk = self.next_u32().to_bytes(4, "little")
            else:
                chunk = self._next_word().to_bytes(wb, "little")
            dest[start:stop] = chunk[: stop - start]

    def random_bytes(self, n: int) -> bytes:
        buf = bytearray(n)
        self.fill_bytes(buf)
        return bytes(buf)

    @property
    def state(self) -> Tuple[int, ...]:
        return tuple(getattr(self, name) for name in self.FIELDS)

    def __repr__(self) -> str:
        return f"{type(self).__name__}{self.state}"


class RomuDuoJr(RomuEngine):
    NUM_FIELDS = 2
    WORD_BITS = 64
    FIELDS = ("x", "y")

    def _next_word(self) -> int:
        xp = self.x
        self.x = (self.y * 15241094284759029579) & MASK64
        self.y = rotl((self.y - xp) & MASK64, 27, 64)
        return xp


class RomuTrio(RomuEngine):
    NUM_FIELDS = 3
    WORD_BITS = 64
    FIELDS = ("x", "y", "z")

    def _next_word(self) -> int:
        xp, yp, zp = self.x, self.y, self.z
        self.x = (zp * 15241094284759029579) & MASK64
        self.y = rotl((yp - xp) & MASK64, 12, 64)
        self.z = rotl((zp - yp) & MASK64, 44, 64)
        return xp


class RomuTrio32(RomuEngine):
    NUM_FIELDS = 3
    WORD_BITS = 32
    FIELDS = ("x", "y", "z")

    def _next_word(self) -> int:
        xp, yp, zp = self.x, self.y, self.z
        self.x = (zp * 3323815723) & MASK32
        self.y = rotl((yp - xp) & MASK32, 6, 32)
        self.z = rotl((zp - yp) & MASK32, 22, 32)
        return xp


ENGINES: Dict[str, Type[RomuEngine]] = {
    "romu_duo_jr": RomuDuoJr,
    "romu_trio": RomuTrio,
    "romu_trio32": RomuTrio32,
}

DefaultEngine = RomuDuoJr


def make_engine(seed: SeedLike = None, name: Optional[str] = None) -> RomuEngine:
    """
    Build an engine by registry name from raw seed bytes, an int, or fresh
    OS entropy (seed=None).
    """
    if name is None:
        cls = DefaultEngine
    elif name in ENGINES:
        cls = ENGINES[name]
    else:
        raise InvalidArgument(f"Unknown engine: {name!r} (choose from {sorted(ENGINES)})")

    if seed is None:
        return cls.from_entropy()
    if isinstance(seed, (bytes, bytearray, memoryview)):
        return cls.from_seed(seed)
    if isinstance(seed, (int, np.integer)) and not isinstance(seed, bool):
        return cls.seed_from_int(int(seed))
    raise InvalidSeed(f"Unsupported seed type: {type(seed).__name__}")
