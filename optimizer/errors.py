"""Error kinds raised by the optimizer core. All are precondition violations."""


class InvalidArgument(ValueError):
    """Bad construction parameter or objectives of the wrong length."""


class IndexOutOfRange(IndexError):
    """Row index outside [0, rows)."""


class InvalidSeed(ValueError):
    """Seed buffer that does not match the engine's word count x word width."""


class UnsupportedOperation(NotImplementedError):
    """Native-width draw the engine cannot produce (64-bit from a 32-bit engine)."""
