"""pynonmatching.fem.mapping
Reference → physical mapping for linear (P1/Q1) cell geometry.
"""
import numpy as np
from typing import Optional

from pynonmatching.config import get_settings
from pynonmatching.errors import InverseMappingError
from pynonmatching.fem.reference import get_reference


class MappingQ1:
    """
    Degree-1 geometry mapping of a cell, optionally displaced.

    ``x(ξ) = Σ_k N_k(ξ) (X_k + d_k)`` where ``X_k`` are the cell vertices and
    ``d_k`` an optional per-vertex displacement. The displacement lets a
    moving immersed geometry be coupled without rebuilding its mesh.

    Parameters
    ----------
    vertex_displacement : ndarray (n_nodes, spacedim), optional
        Displacement of every mesh vertex.
    """

    def __init__(self, vertex_displacement: Optional[np.ndarray] = None):
        self.vertex_displacement = (None if vertex_displacement is None
                                    else np.asarray(vertex_displacement, dtype=float))

    def cell_coords(self, mesh, cell) -> np.ndarray:
        """Displaced vertex coordinates of *cell*, (n_vertices, spacedim)."""
        conn = mesh.cell_connectivity[int(cell)]
        coords = mesh.nodes_pos[conn]
        if self.vertex_displacement is not None:
            if self.vertex_displacement.shape != mesh.nodes_pos.shape:
                raise ValueError("vertex_displacement must match the mesh node array shape.")
            coords = coords + self.vertex_displacement[conn]
        return coords

    def transform_points(self, mesh, cell, ref_points) -> np.ndarray:
        """Push reference points forward: (n_pts, dim) → (n_pts, spacedim)."""
        ref = get_reference(mesh.cell_type, 1)
        N = ref.shape(ref_points)                 # (n_pts, n_vertices)
        return N @ self.cell_coords(mesh, cell)

    def jacobians(self, mesh, cell, ref_points) -> np.ndarray:
        """dx/dξ at each point, shape (n_pts, spacedim, dim)."""
        ref = get_reference(mesh.cell_type, 1)
        dN = ref.grad(ref_points)                 # (n_pts, n_vertices, dim)
        return np.einsum('kx,pkd->pxd', self.cell_coords(mesh, cell), dN)

    def jxw(self, mesh, cell, quadrature) -> np.ndarray:
        """
        Quadrature weights times the measure of the Jacobian.

        For ``dim == spacedim`` this is ``|det J|``; for cells of lower
        dimension (curves, surfaces) it is the Gram determinant
        ``sqrt(det(J^T J))``.
        """
        J = self.jacobians(mesh, cell, quadrature.points)
        if J.shape[1] == J.shape[2]:
            meas = np.abs(np.linalg.det(J))
        else:
            meas = np.sqrt(np.linalg.det(np.einsum('pxd,pxe->pde', J, J)))
        return quadrature.weights * meas

    def inverse_map(self, mesh, cell, x, tol=None, maxiter=None) -> np.ndarray:
        """
        Reference coordinates of physical point *x* in *cell* (Newton).

        Requires ``dim == spacedim``. Affine cells converge in one step.

        Raises
        ------
        InverseMappingError
            If the Jacobian is singular or Newton does not converge.
        """
        if tol is None or maxiter is None:
            settings = get_settings()
            tol = settings.newton_tol if tol is None else tol
            maxiter = settings.newton_maxiter if maxiter is None else maxiter
        if mesh.dim != mesh.spacedim:
            raise ValueError("inverse_map needs a cell of full dimension "
                             f"(dim={mesh.dim}, spacedim={mesh.spacedim}).")
        ref = get_reference(mesh.cell_type, 1)
        coords = self.cell_coords(mesh, cell)
        x = np.asarray(x, dtype=float)
        # Use the reference centre as initial guess
        xi = ref.center().astype(float)
        scale = max(float(np.ptp(coords, axis=0).max()), 1e-300)
        for it in range(maxiter):
            X = ref.shape(xi)[0] @ coords
            J = np.einsum('kx,kd->xd', coords, ref.grad(xi)[0])
            try:
                delta = np.linalg.solve(J, x - X)
            except np.linalg.LinAlgError:
                raise InverseMappingError(
                    f"Jacobian singular at iteration {it} for cell {int(cell)}, x={x}") from None
            xi += delta
            if np.linalg.norm(delta) < tol or np.linalg.norm(x - X) < tol * scale:
                break
        else:
            raise InverseMappingError(
                f"Inverse mapping did not converge after {maxiter} iterations for "
                f"cell {int(cell)}, x={x}, residual={np.linalg.norm(x - X)}")
        return xi
