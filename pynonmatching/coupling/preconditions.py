"""pynonmatching.coupling.preconditions
Eager input checks shared by the public coupling operations.
"""
from pynonmatching.coupling.masks import as_mask
from pynonmatching.errors import PreconditionViolation

# (background dim, immersed dim, ambient dim)
SUPPORTED_DIMENSIONS = frozenset({
    (1, 1, 1),
    (2, 1, 2), (2, 2, 2),
    (3, 1, 3), (3, 2, 3), (3, 3, 3),
})


def check_coupling_inputs(background_dh, immersed_dh, quadrature,
                          space_mask=None, immersed_mask=None, container=None):
    """
    Validate the inputs of a coupling operation before any geometric work.

    Returns the two masks as :class:`ComponentMask` objects.

    Raises
    ------
    PreconditionViolation
        On any inconsistency; the message names the violated condition.
    """
    bg_mesh, im_mesh = background_dh.mesh, immersed_dh.mesh
    dim0, dim1 = bg_mesh.dim, im_mesh.dim
    if dim1 > dim0:
        raise PreconditionViolation(
            f"Immersed dimension {dim1} exceeds background dimension {dim0}.")
    if bg_mesh.spacedim != im_mesh.spacedim:
        raise PreconditionViolation(
            f"Meshes live in different spaces ({bg_mesh.spacedim}-D and {im_mesh.spacedim}-D).")
    dims = (dim0, dim1, bg_mesh.spacedim)
    if dims not in SUPPORTED_DIMENSIONS:
        raise PreconditionViolation(f"Unsupported (dim0, dim1, spacedim) = {dims}.")
    if im_mesh.is_partitioned():
        raise PreconditionViolation("The immersed mesh must not be partitioned.")
    if quadrature.dim != dim1:
        raise PreconditionViolation(
            f"Quadrature of dimension {quadrature.dim} on a {dim1}-D immersed mesh.")
    if quadrature.cell_type and quadrature.cell_type != im_mesh.cell_type:
        raise PreconditionViolation(
            f"Quadrature for '{quadrature.cell_type}' cells on a '{im_mesh.cell_type}' mesh.")

    space_mask, immersed_mask = as_mask(space_mask), as_mask(immersed_mask)
    space_mask.check_size(background_dh.n_components(), "space_mask")
    immersed_mask.check_size(immersed_dh.n_components(), "immersed_mask")

    if container is not None:
        expected = (background_dh.n_dofs(), immersed_dh.n_dofs())
        if tuple(container.shape) != expected:
            raise PreconditionViolation(
                f"Output has shape {tuple(container.shape)}, expected {expected}.")
    return space_mask, immersed_mask
