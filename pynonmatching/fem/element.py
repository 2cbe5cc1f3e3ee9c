"""
Vector-valued Lagrange elements built from one scalar reference basis.

A :class:`FiniteElement` replicates a scalar Lagrange basis of degree ``p``
over ``n_components`` vector components. Local dofs are stacked component
by component (all dofs of component 0, then component 1, ...), so local dof
``i`` belongs to component ``i // n_base`` and evaluates base function
``i % n_base``. Every basis function is *primitive*: it is nonzero in exactly
one component.
"""

from typing import Tuple

import numpy as np

from pynonmatching.fem.reference import get_reference


class FiniteElement:
    """Lagrange element system on one cell type.

    Parameters
    ----------
    cell_type
        Reference cell, one of ``'line'``, ``'tri'``, ``'quad'``, ``'hex'``.
    degree
        Polynomial degree of the scalar base element.
    n_components
        Number of vector components (1 for a scalar field).
    """

    def __init__(self, cell_type: str, degree: int = 1, n_components: int = 1) -> None:
        if int(n_components) < 1:
            raise ValueError("'n_components' must be at least 1.")
        if int(degree) < 0:
            raise ValueError("'degree' must be non-negative.")
        self.cell_type: str = cell_type
        self.degree: int = int(degree)
        self.n_components: int = int(n_components)
        self.base = get_reference(cell_type, self.degree)
        self.dim: int = self.base.dim
        self.n_base: int = self.base.n_basis
        self.dofs_per_cell: int = self.n_base * self.n_components

        # local dof index -> (component, base index)
        self._system_to_component: Tuple[Tuple[int, int], ...] = tuple(
            divmod(i, self.n_base) for i in range(self.dofs_per_cell))
    # ..................................................................
    def component_of(self, i: int) -> int:
        """Vector component in which local dof *i* is nonzero."""
        return self._system_to_component[i][0]

    def system_to_component_index(self, i: int) -> Tuple[int, int]:
        """``(component, base_index)`` of local dof *i*."""
        return self._system_to_component[i]

    def support_points(self) -> np.ndarray:
        """Reference support points of the scalar base, (n_base, dim)."""
        return self.base.support_points

    def shape_values(self, ref_points) -> np.ndarray:
        """
        Nonzero-component value of every local basis function.

        Returns an array (n_pts, dofs_per_cell); column ``i`` is base function
        ``i % n_base`` evaluated at the points.
        """
        vals = self.base.shape(ref_points)
        return np.tile(vals, (1, self.n_components))

    def __repr__(self):
        return (f"<FiniteElement {self.cell_type} Q/P{self.degree}"
                f"^{self.n_components} dofs_per_cell={self.dofs_per_cell}>")
