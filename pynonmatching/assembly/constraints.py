"""pynonmatching.assembly.constraints
Homogeneous and inhomogeneous affine constraints ``x_i = Σ_j w_ij x_j + b_i``.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)


class AffineConstraints:
    """
    Linear constraints between the dofs of one space.

    A constrained dof ``i`` is expressed through its *masters*
    ``[(j, w_ij), ...]``; a dof with no masters is pinned to its
    inhomogeneity (Dirichlet-like). After :meth:`close`, chains
    ``i -> j -> k`` are resolved so that every master is unconstrained.

    Assembly helpers follow the usual condensation rules: local entries
    belonging to a constrained row are moved onto the rows of its masters,
    scaled by the weights. Column indices may be condensed with a second
    constraint object of the column space.
    """

    def __init__(self):
        self._lines: Dict[int, List[Tuple[int, float]]] = {}
        self._inhomogeneity: Dict[int, float] = {}
        self._closed = False

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------
    def add_line(self, i: int) -> None:
        if self._closed:
            raise RuntimeError("Cannot add constraints after close().")
        self._lines.setdefault(int(i), [])

    def add_entry(self, i: int, j: int, weight: float) -> None:
        """Add ``weight * x_j`` to the right-hand side of constraint *i*."""
        i, j = int(i), int(j)
        if i == j:
            raise ValueError(f"Dof {i} cannot constrain itself.")
        self.add_line(i)
        self._lines[i].append((j, float(weight)))

    def set_inhomogeneity(self, i: int, value: float) -> None:
        self.add_line(i)
        self._inhomogeneity[int(i)] = float(value)

    def close(self) -> "AffineConstraints":
        """Resolve chains of constraints and merge duplicate masters."""
        if self._closed:
            return self
        resolved: Dict[int, List[Tuple[int, float]]] = {}

        def expand(i, depth):
            if depth > len(self._lines):
                raise RuntimeError(f"Cyclic constraint involving dof {i}.")
            if i in resolved:
                return resolved[i], self._inhomogeneity.get(i, 0.0)
            acc: Dict[int, float] = {}
            inhom = self._inhomogeneity.get(i, 0.0)
            for j, w in self._lines[i]:
                if j in self._lines:
                    sub, sub_b = expand(j, depth + 1)
                    inhom += w * sub_b
                    for k, wk in sub:
                        acc[k] = acc.get(k, 0.0) + w * wk
                else:
                    acc[j] = acc.get(j, 0.0) + w
            entries = sorted(acc.items())
            resolved[i] = entries
            self._inhomogeneity[i] = inhom
            return entries, inhom

        for i in sorted(self._lines):
            expand(i, 0)
        self._lines = resolved
        self._closed = True
        logger.debug("AffineConstraints closed with %d constrained dofs", len(self._lines))
        return self

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def is_closed(self) -> bool:
        return self._closed

    def n_constraints(self) -> int:
        return len(self._lines)

    def is_constrained(self, i: int) -> bool:
        return int(i) in self._lines

    def constraint_entries(self, i: int) -> List[Tuple[int, float]]:
        return list(self._lines.get(int(i), []))

    def get_inhomogeneity(self, i: int) -> float:
        return self._inhomogeneity.get(int(i), 0.0)

    def resolve(self, i: int) -> List[Tuple[int, float]]:
        """Masters of *i* with weights, or ``[(i, 1.0)]`` if *i* is free."""
        i = int(i)
        if i in self._lines:
            return self._lines[i]
        return [(i, 1.0)]

    def _require_closed(self):
        if self._lines and not self._closed:
            raise RuntimeError("AffineConstraints must be closed before use.")

    # ------------------------------------------------------------------
    # Assembly helpers
    # ------------------------------------------------------------------
    def add_entries_local_to_global(self, row_dofs: Iterable[int], col_dofs: Iterable[int],
                                    sparsity, keep_constrained_entries: bool = True,
                                    col_constraints: Optional["AffineConstraints"] = None) -> None:
        """
        Record the couplings of a local block in *sparsity*.

        Every ``(row, col)`` pair is expanded onto the masters of constrained
        rows (and of constrained columns when *col_constraints* is given).
        With *keep_constrained_entries* the original pair is kept as well,
        so the pattern does not depend on how the constraints are later used.
        """
        self._require_closed()
        if col_constraints is not None:
            col_constraints._require_closed()
        row_dofs = [int(r) for r in row_dofs]
        col_dofs = [int(c) for c in col_dofs]
        rows = []
        for r in row_dofs:
            if keep_constrained_entries or not self.is_constrained(r):
                rows.append(r)
            if self.is_constrained(r):
                rows.extend(j for j, _ in self._lines[r])
        cols = []
        for c in col_dofs:
            constrained = col_constraints is not None and col_constraints.is_constrained(c)
            if keep_constrained_entries or not constrained:
                cols.append(c)
            if constrained:
                cols.extend(j for j, _ in col_constraints.resolve(c))
        sparsity.add_entries(sorted(set(rows)), sorted(set(cols)))

    def distribute_local_to_global(self, local_matrix: np.ndarray, row_dofs, col_dofs,
                                   matrix, col_constraints: Optional["AffineConstraints"] = None) -> None:
        """
        Add a local block to *matrix*, condensing constrained rows and columns.

        Entry ``(a, b)`` goes to ``(r, c)`` with weight ``w_r * w_c`` for every
        master ``r`` of ``row_dofs[a]`` and ``c`` of ``col_dofs[b]``. Entries of
        a row constrained to an inhomogeneity only are dropped.
        """
        self._require_closed()
        if col_constraints is not None:
            col_constraints._require_closed()
        local_matrix = np.asarray(local_matrix)
        row_dofs = np.asarray(row_dofs, dtype=np.int64)
        col_dofs = np.asarray(col_dofs, dtype=np.int64)
        if local_matrix.shape != (len(row_dofs), len(col_dofs)):
            raise ValueError(f"Local block {local_matrix.shape} does not match "
                             f"{len(row_dofs)}x{len(col_dofs)} dof indices.")

        # Row and column condensation operators: local index -> global entries.
        R = _condensation(row_dofs, self)
        C = _condensation(col_dofs, col_constraints)
        if not R or not C:
            return
        r_idx, r_loc, r_w = (np.array(v) for v in zip(*R))
        c_idx, c_loc, c_w = (np.array(v) for v in zip(*C))
        block = local_matrix[np.ix_(r_loc, c_loc)] * np.outer(r_w, c_w)
        matrix.add_block(r_idx, c_idx, block)

    def __repr__(self):
        return f"<AffineConstraints n_constraints={self.n_constraints()}, closed={self._closed}>"


def _condensation(dofs: np.ndarray, constraints: Optional[AffineConstraints]):
    """List of ``(global, local, weight)`` for a local dof list."""
    out = []
    for a, d in enumerate(dofs):
        masters = [(int(d), 1.0)] if constraints is None else constraints.resolve(d)
        for g, w in masters:
            out.append((g, a, w))
    return out
