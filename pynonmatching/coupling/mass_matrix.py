"""pynonmatching.coupling.mass_matrix"""
import logging

import numpy as np

from pynonmatching.assembly.constraints import AffineConstraints
from pynonmatching.assembly.global_matrix import GlobalMatrix
from pynonmatching.coupling.correspondence import compute_correspondence
from pynonmatching.coupling.kernels import accumulate_coupling_block, local_pair_mask
from pynonmatching.coupling.masks import component_coupling_map
from pynonmatching.coupling.preconditions import check_coupling_inputs
from pynonmatching.fem.mapping import MappingQ1

logger = logging.getLogger(__name__)


def build_coupling_mass_matrix(background_dh, immersed_dh, quadrature, matrix=None,
                               constraints=None, space_mask=None, immersed_mask=None,
                               background_mapping=None, immersed_mapping=None,
                               locator=None, dtype=np.float64):
    """
    Coupling mass matrix ``M_ij = ∫_Γ φ_i ψ_j dΓ``.

    ``φ_i`` are the background basis functions, ``ψ_j`` the immersed ones and
    Γ the immersed domain, integrated with *quadrature* on the immersed
    cells. A background dof and an immersed dof couple only when their
    components have the same index after compaction by the masks.

    Parameters are those of :func:`build_coupling_sparsity`, plus

    matrix : GlobalMatrix, optional
        Matrix of shape ``(n_background_dofs, n_immersed_dofs)`` to add to.
    dtype : numpy dtype, default float64
        Scalar type of a newly created matrix.

    Returns
    -------
    GlobalMatrix
        With ``n_unmatched_points`` set.
    """
    space_mask, immersed_mask = check_coupling_inputs(
        background_dh, immersed_dh, quadrature, space_mask, immersed_mask, matrix)
    if matrix is None:
        matrix = GlobalMatrix(background_dh.n_dofs(), immersed_dh.n_dofs(), dtype=dtype)
    constraints = constraints if constraints is not None else AffineConstraints().close()
    immersed_mapping = immersed_mapping or MappingQ1()

    bg_mesh, im_mesh = background_dh.mesh, immersed_dh.mesh
    pair_mask = local_pair_mask(
        background_dh.fe, immersed_dh.fe,
        component_coupling_map(space_mask, background_dh.n_components(),
                               immersed_mask, immersed_dh.n_components()))
    corr = compute_correspondence(bg_mesh, im_mesh, quadrature,
                                  background_mapping, immersed_mapping, locator)

    im_values = np.ascontiguousarray(immersed_dh.shape_values(quadrature.points))
    n_bg, n_im = background_dh.dofs_per_cell(), immersed_dh.dofs_per_cell()
    block = np.zeros((n_bg, n_im), dtype=matrix.dtype)
    for im_cell, buckets in zip(immersed_dh.cells(), corr.buckets):
        if not buckets:
            continue
        jxw = immersed_mapping.jxw(im_mesh, im_cell, quadrature)
        dofs = immersed_dh.dof_indices(im_cell)
        for bucket in buckets:
            # Make sure we act only on locally owned cells
            if not bg_mesh.is_locally_owned(bucket.cell):
                continue
            bg_values = np.ascontiguousarray(background_dh.shape_values(bucket.ref_points))
            block[:] = 0
            accumulate_coupling_block(block, bg_values, im_values, jxw,
                                      bucket.q_indices, pair_mask)
            constraints.distribute_local_to_global(block, background_dh.dof_indices(bucket.cell),
                                                   dofs, matrix)
    matrix.n_unmatched_points = corr.n_unmatched
    logger.debug("Coupling mass matrix %s assembled (%d unmatched points)",
                 matrix.shape, corr.n_unmatched)
    return matrix
