"""pynonmatching.assembly.global_matrix"""
import logging

import numpy as np
import scipy.sparse as sp

from pynonmatching.assembly.local_assembler import mass_matrix

logger = logging.getLogger(__name__)


class GlobalMatrix:
    """
    Fixed-shape sparse matrix accumulated from local blocks.

    Blocks are stored as COO triplets; duplicates are summed when the matrix
    is converted with :meth:`tocsr`.
    """

    def __init__(self, n_rows: int, n_cols: int, dtype=np.float64):
        if n_rows < 0 or n_cols < 0:
            raise ValueError("Matrix dimensions must be non-negative.")
        self.n_rows = int(n_rows)
        self.n_cols = int(n_cols)
        self.dtype = np.dtype(dtype)
        self._rows, self._cols, self._data = [], [], []
        self.n_unmatched_points = 0

    @property
    def shape(self):
        return self.n_rows, self.n_cols

    def add_block(self, rows, cols, block) -> None:
        rows = np.asarray(rows, dtype=np.int64)
        cols = np.asarray(cols, dtype=np.int64)
        block = np.asarray(block)
        if block.shape != (len(rows), len(cols)):
            raise ValueError(f"Block of shape {block.shape} for {len(rows)}x{len(cols)} indices.")
        if rows.size and (rows.min() < 0 or rows.max() >= self.n_rows):
            raise IndexError(f"Row index outside matrix of shape {self.shape}.")
        if cols.size and (cols.min() < 0 or cols.max() >= self.n_cols):
            raise IndexError(f"Column index outside matrix of shape {self.shape}.")
        R, C = np.meshgrid(rows, cols, indexing='ij')
        self._rows.append(R.ravel())
        self._cols.append(C.ravel())
        self._data.append(block.astype(self.dtype, copy=False).ravel())

    def add(self, i: int, j: int, value) -> None:
        self.add_block([i], [j], np.array([[value]]))

    def tocsr(self) -> sp.csr_matrix:
        if self._data:
            rows = np.concatenate(self._rows)
            cols = np.concatenate(self._cols)
            data = np.concatenate(self._data)
        else:
            rows = cols = np.empty(0, dtype=np.int64)
            data = np.empty(0, dtype=self.dtype)
        M = sp.csr_matrix((data, (rows, cols)), shape=self.shape, dtype=self.dtype)
        M.sum_duplicates()
        return M

    def toarray(self) -> np.ndarray:
        return self.tocsr().toarray()

    def __repr__(self):
        return f"<GlobalMatrix {self.n_rows}x{self.n_cols} dtype={self.dtype}>"


def assemble_mass_matrix(dof_handler, quadrature=None, mapping=None, constraints=None,
                         dtype=np.float64) -> GlobalMatrix:
    """Standard ``∫ φ_i φ_j`` mass matrix of one space (equal components only)."""
    n = dof_handler.n_dofs()
    M = GlobalMatrix(n, n, dtype=dtype)
    for handle in dof_handler.cells():
        if not dof_handler.mesh.is_locally_owned(handle):
            continue
        Me = mass_matrix(dof_handler, handle, quadrature=quadrature, mapping=mapping)
        dofs = dof_handler.dof_indices(handle)
        if constraints is None:
            M.add_block(dofs, dofs, Me)
        else:
            constraints.distribute_local_to_global(Me, dofs, dofs, M, col_constraints=constraints)
    logger.debug("Assembled %dx%d mass matrix", n, n)
    return M
