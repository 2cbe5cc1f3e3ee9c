import numpy as np
from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True, order=True, slots=True)
class CellHandle:
    """Opaque, value-equal reference to one cell of a mesh.

    Handles compare and hash by cell index only, so they can be used as set
    members and dictionary keys. They are issued by :meth:`Mesh.cells` and
    must only be resolved against the mesh that issued them.
    """
    index: int

    def __int__(self) -> int:
        return self.index

    def __repr__(self):
        return f"CellHandle({self.index})"


@dataclass(slots=True)
class Cell:
    id: int                        # Cell index in the mesh
    nodes: Tuple[int, ...]         # Global vertex indices, reference ordering
    cell_type: str = "quad"
    owner: int = 0                 # Rank owning this cell
    tag: str = ""
    centroid: np.ndarray = field(default=None, repr=False)
