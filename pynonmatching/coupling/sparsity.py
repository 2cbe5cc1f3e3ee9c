"""pynonmatching.coupling.sparsity"""
import logging

from pynonmatching.assembly.constraints import AffineConstraints
from pynonmatching.assembly.sparsity import DynamicSparsityPattern
from pynonmatching.coupling.correspondence import compute_correspondence
from pynonmatching.coupling.preconditions import check_coupling_inputs

logger = logging.getLogger(__name__)


def build_coupling_sparsity(background_dh, immersed_dh, quadrature, sparsity=None,
                            constraints=None, space_mask=None, immersed_mask=None,
                            background_mapping=None, immersed_mapping=None, locator=None):
    """
    Sparsity pattern of the coupling between a background and an immersed space.

    Parameters
    ----------
    background_dh, immersed_dh : DofHandler
        Spaces on the background mesh (``dim0 == spacedim``) and the immersed
        mesh (``dim1 <= dim0``, not partitioned).
    quadrature : Quadrature
        Rule on the immersed reference cell.
    sparsity : DynamicSparsityPattern, optional
        Pattern of shape ``(n_background_dofs, n_immersed_dofs)`` to add to.
    constraints : AffineConstraints, optional
        Constraints of the background space.
    space_mask, immersed_mask : ComponentMask or sequence of bool, optional
        Component selection; checked for size only. The pattern couples
        every component pair, so it may contain entries that the mass matrix
        never fills.
    background_mapping, immersed_mapping : MappingQ1, optional
    locator : SpatialLocator, optional
        Prebuilt locator on the background mesh, reused across calls.

    Returns
    -------
    DynamicSparsityPattern
        With ``n_unmatched_points`` set to the number of immersed quadrature
        points outside the background mesh.
    """
    check_coupling_inputs(background_dh, immersed_dh, quadrature,
                          space_mask, immersed_mask, sparsity)
    if sparsity is None:
        sparsity = DynamicSparsityPattern(background_dh.n_dofs(), immersed_dh.n_dofs())
    constraints = constraints if constraints is not None else AffineConstraints().close()

    bg_mesh = background_dh.mesh
    corr = compute_correspondence(bg_mesh, immersed_dh.mesh, quadrature,
                                  background_mapping, immersed_mapping, locator)
    for im_cell, cells in zip(immersed_dh.cells(), corr.cell_sets):
        dofs = immersed_dh.dof_indices(im_cell)
        for cell in sorted(cells):
            # Make sure we act only on locally owned cells
            if not bg_mesh.is_locally_owned(cell):
                continue
            constraints.add_entries_local_to_global(background_dh.dof_indices(cell), dofs,
                                                    sparsity, keep_constrained_entries=True)
    sparsity.n_unmatched_points = corr.n_unmatched
    logger.debug(f"Coupling sparsity {sparsity.shape}: {sparsity.n_nonzero_elements()} entries")
    return sparsity
