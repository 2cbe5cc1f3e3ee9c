from .constraints import AffineConstraints
from .sparsity import DynamicSparsityPattern
from .global_matrix import GlobalMatrix, assemble_mass_matrix

__all__ = ["AffineConstraints", "DynamicSparsityPattern", "GlobalMatrix", "assemble_mass_matrix"]
