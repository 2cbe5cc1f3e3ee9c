"""pynonmatching.assembly.local_assembler
Cell mass matrix for Lagrange systems on line, tri, quad and hex cells.
"""
import numpy as np

from pynonmatching.fem.mapping import MappingQ1
from pynonmatching.integration.quadrature import gauss


def mass_matrix(dof_handler, handle, *, quadrature=None, mapping=None):
    # Choose quadrature automatically: degree+2 Gauss points per direction
    fe = dof_handler.fe
    if quadrature is None:
        quadrature = gauss(fe.cell_type, fe.degree + 2)
    mapping = mapping or MappingQ1()

    N = fe.shape_values(quadrature.points)             # (n_q, n_loc)
    JxW = mapping.jxw(dof_handler.mesh, handle, quadrature)
    Me = np.einsum('qi,qj,q->ij', N, N, JxW)
    comp = np.array([fe.component_of(i) for i in range(fe.dofs_per_cell)])
    Me *= comp[:, None] == comp[None, :]
    return Me
