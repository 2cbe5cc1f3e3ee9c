"""pynonmatching.errors"""


class PreconditionViolation(ValueError):
    """Raised before any geometric work when the coupling inputs are inconsistent.

    Covers a wrong dimension ordering, an unsupported dimension combination,
    mask sizes that do not match the component counts, output containers that
    are not sized ``(n_background_dofs, n_immersed_dofs)``, and a partitioned
    immersed mesh.
    """
    pass


class InverseMappingError(RuntimeError):
    """Raised when the Newton inverse of a cell mapping does not converge."""
    pass
