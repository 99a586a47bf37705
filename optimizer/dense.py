from __future__ import annotations
from typing import Callable, Iterator, Tuple
import numpy as np

from .errors import IndexOutOfRange, InvalidArgument


class DenseMatrix:
    """
    Row-major matrix over a single contiguous numpy buffer of rows * cols
    elements. Row i is the half-open slice [i*cols, i*cols + cols).
    """
    def __init__(self, rows: int, cols: int, dtype=float):
        rows, cols = int(rows), int(cols)
        if rows <= 0 or cols <= 0:
            raise InvalidArgument(f"shape must be positive, got ({rows}, {cols})")
        self._shape: Tuple[int, int] = (rows, cols)
        self._data = np.zeros(rows * cols, dtype=dtype)

    @classmethod
    def new_with(cls, rows: int, cols: int, generator: Callable[[], float], dtype=float) -> "DenseMatrix":
        """
        Fill by calling `generator` exactly rows * cols times, row 0 left to
        right, then row 1, ... Draw order is part of the contract when the
        generator pulls from a shared random engine.
        """
        m = cls(rows, cols, dtype=dtype)
        m._data[:] = np.fromiter((generator() for _ in range(m.total)), dtype=dtype, count=m.total)
        return m

    @property
    def shape(self) -> Tuple[int, int]:
        return self._shape

    @property
    def rows(self) -> int:
        return self._shape[0]

    @property
    def cols(self) -> int:
        return self._shape[1]

    @property
    def total(self) -> int:
        return self._shape[0] * self._shape[1]

    def __len__(self) -> int:
        return self.rows

    def _row_range(self, i: int) -> slice:
        if not 0 <= i < self.rows:
            raise IndexOutOfRange(f"row {i} out of range for {self.rows} rows")
        start = i * self.cols
        return slice(start, start + self.cols)

    def row_view(self, i: int) -> np.ndarray:
        view = self._data[self._row_range(i)]
        view.flags.writeable = False
        return view

    def row_view_mut(self, i: int) -> np.ndarray:
        return self._data[self._row_range(i)]

    def iter_rows(self) -> Iterator[np.ndarray]:
        # generator: single pass, call again to restart
        for i in range(self.rows):
            yield self.row_view(i)

    @property
    def data(self) -> np.ndarray:
        """Read-only flat view of the whole buffer."""
        view = self._data.view()
        view.flags.writeable = False
        return view

    def data_mut(self) -> np.ndarray:
        return self._data

    def copy(self) -> "DenseMatrix":
        m = DenseMatrix.__new__(DenseMatrix)
        m._shape = self._shape
        m._data = self._data.copy()
        return m

    def to_array(self) -> np.ndarray:
        """2-D copy, shape (rows, cols)."""
        return self._data.reshape(self._shape).copy()

    def __repr__(self) -> str:
        return f"DenseMatrix(rows={self.rows}, cols={self.cols}, dtype={self._data.dtype})"
