"""Coupling operators between a background mesh and an immersed mesh."""
from .masks import ComponentMask, component_coupling_map
from .collector import PointBatch, collect_quadrature_points
from .locator import PointLocations, SpatialLocator
from .correspondence import Correspondence, PointBucket, build_correspondence, compute_correspondence
from .preconditions import SUPPORTED_DIMENSIONS, check_coupling_inputs
from .sparsity import build_coupling_sparsity
from .mass_matrix import build_coupling_mass_matrix

__all__ = [
    "ComponentMask", "component_coupling_map",
    "PointBatch", "collect_quadrature_points",
    "PointLocations", "SpatialLocator",
    "Correspondence", "PointBucket", "build_correspondence", "compute_correspondence",
    "SUPPORTED_DIMENSIONS", "check_coupling_inputs",
    "build_coupling_sparsity", "build_coupling_mass_matrix",
]
