"""pynonmatching: coupling operators between non-matching finite-element meshes."""
from pynonmatching.core import Mesh, DofHandler, CellHandle
from pynonmatching.fem import FiniteElement, MappingQ1
from pynonmatching.integration import Quadrature, gauss
from pynonmatching.assembly import AffineConstraints, DynamicSparsityPattern, GlobalMatrix
from pynonmatching.coupling import (
    ComponentMask,
    SpatialLocator,
    build_coupling_mass_matrix,
    build_coupling_sparsity,
    compute_correspondence,
)
from pynonmatching.errors import InverseMappingError, PreconditionViolation

__version__ = "0.1.0"

__all__ = [
    "Mesh", "DofHandler", "CellHandle", "FiniteElement", "MappingQ1",
    "Quadrature", "gauss",
    "AffineConstraints", "DynamicSparsityPattern", "GlobalMatrix",
    "ComponentMask", "SpatialLocator",
    "build_coupling_sparsity", "build_coupling_mass_matrix", "compute_correspondence",
    "PreconditionViolation", "InverseMappingError",
]
