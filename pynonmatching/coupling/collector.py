"""pynonmatching.coupling.collector
Flat, cell-major buffer of immersed quadrature points in physical space.
"""
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from pynonmatching.fem.mapping import MappingQ1


@dataclass(frozen=True)
class PointBatch:
    """
    Physical quadrature points of every immersed cell.

    Point ``p`` belongs to immersed cell ``p // n_q`` at local quadrature
    index ``p % n_q``. No other layout is used anywhere in the coupling code.
    """
    points: np.ndarray     # (n_cells * n_q, spacedim)
    n_cells: int
    n_q: int

    def __len__(self):
        return self.n_cells * self.n_q

    def owner(self, p: int) -> Tuple[int, int]:
        """``(immersed_cell, local_q)`` of flat point *p*."""
        return divmod(int(p), self.n_q)

    def cell_points(self, cell: int) -> np.ndarray:
        start = int(cell) * self.n_q
        return self.points[start:start + self.n_q]


def collect_quadrature_points(mesh, quadrature, mapping=None) -> PointBatch:
    """Push *quadrature* through *mapping* on every cell of *mesh*, in mesh order."""
    mapping = mapping or MappingQ1()
    n_q = quadrature.size()
    points = np.empty((mesh.n_cells * n_q, mesh.spacedim))
    for c, handle in enumerate(mesh.cells()):
        points[c * n_q:(c + 1) * n_q] = mapping.transform_points(mesh, handle, quadrature.points)
    return PointBatch(points, mesh.n_cells, n_q)
