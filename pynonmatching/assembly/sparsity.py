"""pynonmatching.assembly.sparsity
Row-wise growable sparsity pattern.
"""
from typing import Iterable, List, Set, Tuple

import numpy as np
import scipy.sparse as sp


class DynamicSparsityPattern:
    """
    Boolean relation between row and column indices of a fixed shape.

    Insertion is idempotent: adding an entry twice leaves the pattern
    unchanged. Rows are kept as Python sets until :meth:`to_csr` compresses
    them.
    """

    def __init__(self, n_rows: int, n_cols: int):
        if n_rows < 0 or n_cols < 0:
            raise ValueError("Sparsity pattern dimensions must be non-negative.")
        self.n_rows = int(n_rows)
        self.n_cols = int(n_cols)
        self._rows: List[Set[int]] = [set() for _ in range(self.n_rows)]
        self.n_unmatched_points = 0

    @property
    def shape(self) -> Tuple[int, int]:
        return self.n_rows, self.n_cols

    def _check(self, i, j):
        if not (0 <= i < self.n_rows and 0 <= j < self.n_cols):
            raise IndexError(f"Entry ({i}, {j}) outside pattern of shape {self.shape}.")

    def add(self, i: int, j: int) -> None:
        i, j = int(i), int(j)
        self._check(i, j)
        self._rows[i].add(j)

    def add_entries(self, rows: Iterable[int], cols: Iterable[int]) -> None:
        """Add the full block ``rows x cols``."""
        cols = [int(j) for j in cols]
        for j in cols:
            if not 0 <= j < self.n_cols:
                raise IndexError(f"Column {j} outside pattern of shape {self.shape}.")
        for i in rows:
            i = int(i)
            if not 0 <= i < self.n_rows:
                raise IndexError(f"Row {i} outside pattern of shape {self.shape}.")
            self._rows[i].update(cols)

    def exists(self, i: int, j: int) -> bool:
        return int(j) in self._rows[int(i)]

    def row(self, i: int) -> np.ndarray:
        """Sorted column indices of row *i*."""
        return np.array(sorted(self._rows[int(i)]), dtype=np.int64)

    def n_nonzero_elements(self) -> int:
        return sum(len(r) for r in self._rows)

    def entries(self) -> List[Tuple[int, int]]:
        return [(i, j) for i, r in enumerate(self._rows) for j in sorted(r)]

    def to_csr(self) -> sp.csr_matrix:
        """Pattern as a boolean ``scipy.sparse.csr_matrix``."""
        indptr = np.zeros(self.n_rows + 1, dtype=np.int64)
        indptr[1:] = np.cumsum([len(r) for r in self._rows])
        indices = np.fromiter((j for r in self._rows for j in sorted(r)),
                              dtype=np.int64, count=int(indptr[-1]))
        data = np.ones(len(indices), dtype=bool)
        return sp.csr_matrix((data, indices, indptr), shape=self.shape)

    def __eq__(self, other):
        if not isinstance(other, DynamicSparsityPattern):
            return NotImplemented
        return self.shape == other.shape and self._rows == other._rows

    def __repr__(self):
        return f"<DynamicSparsityPattern {self.n_rows}x{self.n_cols}, nnz={self.n_nonzero_elements()}>"
