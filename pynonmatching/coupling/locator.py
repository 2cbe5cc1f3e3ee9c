"""pynonmatching.coupling.locator
Batched point location in a background mesh.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from scipy.spatial import cKDTree

from pynonmatching.config import get_settings
from pynonmatching.core.topology import CellHandle
from pynonmatching.errors import InverseMappingError
from pynonmatching.fem.mapping import MappingQ1
from pynonmatching.fem.reference import get_reference

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PointLocations:
    """
    Result of a batched location query.

    Attributes
    ----------
    cells : ndarray (n_points,)
        Index of the background cell holding each point, ``-1`` if none.
    ref_points : ndarray (n_points, dim)
        Reference coordinates in that cell; NaN rows for unmatched points.
    """
    cells: np.ndarray
    ref_points: np.ndarray

    def __len__(self):
        return len(self.cells)

    @property
    def n_unmatched(self) -> int:
        return int(np.count_nonzero(self.cells < 0))


class SpatialLocator:
    """
    Locate physical points in the cells of a mesh of full dimension.

    A k-d tree over cell centroids returns, for every query point, the cells
    whose centroid lies within the largest centroid-to-vertex distance of
    the mesh. Those candidates are tried in ascending index order: bounding
    box, Newton inverse mapping, then the reference inclusion test with
    tolerance. The first match wins, so a point on a shared face or vertex
    always goes to the lowest-indexed cell containing it.

    Ghost cells take part in the search. The mesh is only read.

    Parameters
    ----------
    mesh : Mesh
        Background mesh, ``dim == spacedim``.
    mapping : MappingQ1, optional
        Geometry of the background cells.
    tol : float, optional
        Inclusion slack; defaults to ``Settings.locator_tol``.
    """

    def __init__(self, mesh, mapping: Optional[MappingQ1] = None, tol: Optional[float] = None):
        if mesh.dim != mesh.spacedim:
            raise ValueError("Points can only be located in a mesh with dim == spacedim.")
        self.mesh = mesh
        self.mapping = mapping or MappingQ1()
        settings = get_settings()
        self.tol = settings.locator_tol if tol is None else float(tol)
        self.newton_tol = settings.newton_tol
        self.newton_maxiter = settings.newton_maxiter
        self._ref = get_reference(mesh.cell_type, 1)

        self._tree = None
        self._radius = 0.0
        if mesh.n_cells:
            coords = np.stack([self.mapping.cell_coords(mesh, h) for h in mesh.cells()])
            self._centroids = coords.mean(axis=1)
            self._lower = coords.min(axis=1)
            self._upper = coords.max(axis=1)
            self._extent = (self._upper - self._lower).max(axis=1)
            radii = np.linalg.norm(coords - self._centroids[:, None, :], axis=2).max(axis=1)
            self._radius = float(radii.max()) * (1.0 + self.tol) + self.tol
            self._tree = cKDTree(self._centroids)
        logger.debug(f"SpatialLocator over {mesh.n_cells} cells, search radius {self._radius:.3g}")

    # ------------------------------------------------------------------
    def _try_cell(self, c: int, x: np.ndarray) -> Optional[np.ndarray]:
        slack = self.tol * max(self._extent[c], 1.0)
        if np.any(x < self._lower[c] - slack) or np.any(x > self._upper[c] + slack):
            return None
        try:
            xi = self.mapping.inverse_map(self.mesh, CellHandle(c), x,
                                           tol=self.newton_tol, maxiter=self.newton_maxiter)
        except InverseMappingError:
            return None
        if not self._ref.contains(xi, self.tol)[0]:
            return None
        return xi

    def locate_point(self, x) -> Optional[Tuple[CellHandle, np.ndarray]]:
        """``(handle, reference point)`` of the cell holding *x*, or None."""
        locs = self.locate(np.asarray(x, dtype=float).reshape(1, -1))
        if locs.cells[0] < 0:
            return None
        return CellHandle(int(locs.cells[0])), locs.ref_points[0]

    def candidates(self, points) -> List[List[int]]:
        """Sorted indices of the cells worth testing for each point."""
        points = np.asarray(points, dtype=float).reshape(-1, self.mesh.spacedim)
        if self._tree is None:
            return [[] for _ in range(len(points))]
        return [sorted(c) for c in self._tree.query_ball_point(points, r=self._radius)]

    def locate(self, points) -> PointLocations:
        """Locate a batch of points, shape (n_points, spacedim)."""
        points = np.asarray(points, dtype=float).reshape(-1, self.mesh.spacedim)
        n = len(points)
        cells = np.full(n, -1, dtype=np.int64)
        ref_points = np.full((n, self.mesh.dim), np.nan)
        if self._tree is None or n == 0:
            return PointLocations(cells, ref_points)

        for p, (x, cand) in enumerate(zip(points, self.candidates(points))):
            for c in cand:
                xi = self._try_cell(c, x)
                if xi is not None:
                    cells[p] = c
                    ref_points[p] = xi
                    break
        result = PointLocations(cells, ref_points)
        logger.debug("Located %d of %d points", n - result.n_unmatched, n)
        return result
