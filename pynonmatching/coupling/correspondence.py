"""pynonmatching.coupling.correspondence
Grouping of located immersed quadrature points by immersed and background cell.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set

import numpy as np

from pynonmatching.config import get_settings
from pynonmatching.core.topology import CellHandle
from pynonmatching.coupling.collector import collect_quadrature_points
from pynonmatching.coupling.locator import PointLocations, SpatialLocator

logger = logging.getLogger(__name__)


@dataclass
class PointBucket:
    """Quadrature points of one immersed cell that fall in one background cell."""
    cell: CellHandle
    ref_points: list = field(default_factory=list)    # background reference coords
    q_indices: list = field(default_factory=list)     # local immersed quadrature index

    def __len__(self):
        return len(self.q_indices)

    def append(self, ref_point, q: int) -> None:
        self.ref_points.append(ref_point)
        self.q_indices.append(q)

    def freeze(self, dim: int) -> "PointBucket":
        self.ref_points = np.asarray(self.ref_points, dtype=float).reshape(-1, dim)
        self.q_indices = np.asarray(self.q_indices, dtype=np.int64)
        return self


class _CellAccumulator:
    """Running state for one immersed cell while the point stream is walked."""
    __slots__ = ("cells", "buckets", "last_cell")

    def __init__(self):
        self.cells: Set[CellHandle] = set()
        self.buckets: List[PointBucket] = []
        self.last_cell: Optional[CellHandle] = None

    def add(self, cell: CellHandle, ref_point, q: int) -> None:
        # compact form: runs of points in one cell are inserted once
        if cell != self.last_cell:
            self.cells.add(cell)
            self.last_cell = cell

        # expanded form: newest bucket, then scan, then open a new one
        if self.buckets and self.buckets[-1].cell == cell:
            self.buckets[-1].append(ref_point, q)
            return
        for bucket in self.buckets:
            if bucket.cell == cell:
                bucket.append(ref_point, q)
                return
        bucket = PointBucket(cell)
        bucket.append(ref_point, q)
        self.buckets.append(bucket)


@dataclass
class Correspondence:
    """
    Per immersed cell: the background cells it touches and the matched points.

    Attributes
    ----------
    cell_sets : list of set of CellHandle
        Compact form, one set per immersed cell.
    buckets : list of list of PointBucket
        Expanded form, one ordered bucket list per immersed cell.
    n_q : int
        Quadrature points per immersed cell.
    n_unmatched : int
        Points outside every background cell.
    """
    cell_sets: List[Set[CellHandle]]
    buckets: List[List[PointBucket]]
    n_q: int
    n_unmatched: int = 0

    @property
    def n_immersed_cells(self) -> int:
        return len(self.cell_sets)

    def touched_cells(self) -> Set[CellHandle]:
        """Union of all background cells touched by the immersed mesh."""
        out: Set[CellHandle] = set()
        for s in self.cell_sets:
            out |= s
        return out


def build_correspondence(locations: PointLocations, n_cells: int, n_q: int,
                         dim: int) -> Correspondence:
    """
    Group located points in a single pass over the flat point stream.

    Point ``p`` is quadrature point ``p % n_q`` of immersed cell ``p // n_q``.
    Unmatched points are counted and otherwise ignored.
    """
    if len(locations) != n_cells * n_q:
        raise ValueError(f"{len(locations)} locations for {n_cells} cells x {n_q} points.")
    accumulators = [_CellAccumulator() for _ in range(n_cells)]
    n_unmatched = 0
    for p, c in enumerate(locations.cells):
        if c < 0:
            n_unmatched += 1
            continue
        cell, q = divmod(p, n_q)
        accumulators[cell].add(CellHandle(int(c)), locations.ref_points[p], q)

    return Correspondence(
        cell_sets=[acc.cells for acc in accumulators],
        buckets=[[b.freeze(dim) for b in acc.buckets] for acc in accumulators],
        n_q=n_q,
        n_unmatched=n_unmatched,
    )


def _check_buckets(corr: Correspondence, batch, locator: SpatialLocator) -> None:
    """Map every bucket back to physical space and compare with the collected points."""
    for im_cell, buckets in enumerate(corr.buckets):
        expected = batch.cell_points(im_cell)
        for bucket in buckets:
            x = locator.mapping.transform_points(locator.mesh, bucket.cell, bucket.ref_points)
            scale = max(float(np.abs(expected).max()), 1.0)
            err = float(np.abs(x - expected[bucket.q_indices]).max())
            if err > 1e3 * locator.tol * scale:
                raise RuntimeError(f"Immersed cell {im_cell}: points in {bucket.cell!r} "
                                   f"map back with error {err:.3e}.")


def compute_correspondence(background_mesh, immersed_mesh, quadrature,
                           background_mapping=None, immersed_mapping=None,
                           locator: Optional[SpatialLocator] = None) -> Correspondence:
    """Collect, locate and group the immersed quadrature points."""
    if locator is None:
        locator = SpatialLocator(background_mesh, background_mapping)
    elif locator.mesh is not background_mesh:
        raise ValueError("The locator was built for a different background mesh.")
    batch = collect_quadrature_points(immersed_mesh, quadrature, immersed_mapping)
    locations = locator.locate(batch.points)
    corr = build_correspondence(locations, batch.n_cells, batch.n_q, background_mesh.dim)
    if get_settings().debug:
        _check_buckets(corr, batch, locator)
    if corr.n_unmatched:
        logger.info("%d of %d immersed quadrature points lie outside the background mesh",
                    corr.n_unmatched, len(batch))
    return corr
