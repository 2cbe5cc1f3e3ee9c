from .topology import Cell, CellHandle
from .mesh import Mesh
from .dofhandler import DofHandler

__all__ = ["Cell", "CellHandle", "Mesh", "DofHandler"]
