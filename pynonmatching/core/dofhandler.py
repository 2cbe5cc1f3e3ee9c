# dofhandler.py

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

import numpy as np

from pynonmatching.core.mesh import Mesh
from pynonmatching.core.topology import CellHandle
from pynonmatching.fem.element import FiniteElement
from pynonmatching.fem.mapping import MappingQ1

logger = logging.getLogger(__name__)


def _q(x: float, ndp: int = 12) -> float:
    """Quantize a coordinate for dictionary keys (robust to tiny FP noise)."""
    return float(round(x, ndp)) + 0.0


# -----------------------------------------------------------------------------
#  Main class
# -----------------------------------------------------------------------------
class DofHandler:
    """Dof numbering of one finite-element space on one mesh."""

    # .........................................................................
    def __init__(self, mesh: Mesh, fe: FiniteElement, method: str = "cg"):
        """
        Initialize a DOF handler.

        Parameters
        ----------
        mesh : Mesh
            Mesh the space lives on. Its cell type must match ``fe.cell_type``.
        fe : FiniteElement
            Scalar or vector Lagrange element.
        method : {'cg', 'dg'}, default 'cg'
            - 'cg' shares dofs between cells at coinciding support points.
            - 'dg' gives every cell its own block of dofs.

        Attributes set
        --------------
        cell_dofs : ndarray (n_cells, dofs_per_cell)
            Local→global dof map of every cell, in local dof order.
        total_dofs : int
            Size of the global space.
        _support_coords : ndarray (n_scalar_dofs, spacedim)
            Physical position of each scalar support point.

        Notes
        -----
        Global numbering is component-blocked: all dofs of component 0, then
        all dofs of component 1, and so on. Within a component, support
        points are numbered in order of first appearance while walking the
        cells in mesh order, so the numbering is deterministic.
        """
        if method not in {"cg", "dg"}:
            raise ValueError("method must be 'cg' or 'dg'")
        if not isinstance(mesh, Mesh):
            raise TypeError("'mesh' must be a pynonmatching Mesh instance.")
        if fe.cell_type != mesh.cell_type:
            raise ValueError(f"Element on '{fe.cell_type}' cells cannot live on a "
                             f"'{mesh.cell_type}' mesh.")
        self.mesh: Mesh = mesh
        self.fe: FiniteElement = fe
        self.method: str = method
        self.dof_tags: Dict[str, np.ndarray] = {}
        if method == "cg":
            scalar_map = self._build_scalar_map_cg()
        else:
            scalar_map = self._build_scalar_map_dg()
        self.n_scalar_dofs: int = len(self._support_coords)

        blocks = [scalar_map + c * self.n_scalar_dofs for c in range(fe.n_components)]
        self.cell_dofs: np.ndarray = (np.hstack(blocks) if blocks
                                      else np.empty((mesh.n_cells, 0), dtype=np.int64))
        self.total_dofs: int = self.n_scalar_dofs * fe.n_components
        logger.debug("DofHandler(%s): %d cells, %d dofs", method, mesh.n_cells, self.total_dofs)

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------
    def _physical_support_points(self, handle: CellHandle) -> np.ndarray:
        return MappingQ1().transform_points(self.mesh, handle, self.fe.support_points())

    def _build_scalar_map_cg(self) -> np.ndarray:
        """
        One scalar dof per distinct physical support point.

        Returns the (n_cells, n_base) scalar map and fills ``_support_coords``.
        """
        key_to_dof: Dict[tuple, int] = {}
        coords = []
        scalar_map = np.empty((self.mesh.n_cells, self.fe.n_base), dtype=np.int64)
        for handle in self.mesh.cells():
            pts = self._physical_support_points(handle)
            for a, x in enumerate(pts):
                key = tuple(_q(v) for v in x)
                dof = key_to_dof.get(key)
                if dof is None:
                    dof = len(coords)
                    key_to_dof[key] = dof
                    coords.append(x)
                scalar_map[int(handle), a] = dof
        self._support_coords = np.array(coords).reshape(-1, self.mesh.spacedim)
        return scalar_map

    def _build_scalar_map_dg(self) -> np.ndarray:
        n_base = self.fe.n_base
        scalar_map = np.arange(self.mesh.n_cells * n_base, dtype=np.int64).reshape(-1, n_base)
        coords = [self._physical_support_points(h) for h in self.mesh.cells()]
        self._support_coords = (np.vstack(coords) if coords
                                else np.empty((0, self.mesh.spacedim)))
        return scalar_map

    # ------------------------------------------------------------------
    #  Function-space contract
    # ------------------------------------------------------------------
    def n_dofs(self) -> int:
        return self.total_dofs

    def n_components(self) -> int:
        return self.fe.n_components

    def dofs_per_cell(self) -> int:
        return self.fe.dofs_per_cell

    def component_of(self, i: int) -> int:
        return self.fe.component_of(i)

    def dof_indices(self, handle: CellHandle) -> np.ndarray:
        """Global dofs of a cell in local dof order."""
        return self.cell_dofs[int(handle)]

    def shape_values(self, ref_points) -> np.ndarray:
        return self.fe.shape_values(ref_points)

    def cells(self):
        return self.mesh.cells()

    # ------------------------------------------------------------------
    #  Public helpers
    # ------------------------------------------------------------------
    def dof_component(self, dof: int) -> int:
        """Vector component of a global dof."""
        if not 0 <= dof < self.total_dofs:
            raise IndexError(f"Dof {dof} out of range.")
        return int(dof // self.n_scalar_dofs)

    def component_dofs(self, component: int) -> np.ndarray:
        """All global dofs of one vector component, sorted."""
        if not 0 <= component < self.fe.n_components:
            raise IndexError(f"Component {component} out of range.")
        start = component * self.n_scalar_dofs
        return np.arange(start, start + self.n_scalar_dofs)

    def get_dof_coords(self) -> np.ndarray:
        """Physical support point of every global dof, (total_dofs, spacedim)."""
        return np.tile(self._support_coords, (self.fe.n_components, 1))

    def locate_dofs(self, locator: Callable[[np.ndarray], bool],
                    component: Optional[int] = None) -> np.ndarray:
        """Global dofs whose support point satisfies ``locator(x)``."""
        coords = self.get_dof_coords()
        hits = np.array([bool(locator(x)) for x in coords], dtype=bool)
        if component is not None:
            hits &= (np.arange(self.total_dofs) // max(self.n_scalar_dofs, 1)) == component
        return np.flatnonzero(hits)

    def tag_dofs(self, tag: str, locator: Callable[[np.ndarray], bool],
                 component: Optional[int] = None) -> np.ndarray:
        """Store :meth:`locate_dofs` under *tag* and return the dofs."""
        dofs = self.locate_dofs(locator, component)
        self.dof_tags[tag] = dofs
        return dofs

    def __repr__(self) -> str:
        return (f"<DofHandler method='{self.method}', n_dofs={self.total_dofs}, "
                f"fe={self.fe!r}, mesh={self.mesh!r}>")
