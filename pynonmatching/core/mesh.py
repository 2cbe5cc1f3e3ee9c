import numpy as np
from typing import Iterator, List, Optional

from pynonmatching.core.topology import Cell, CellHandle


class Mesh:
    """
    Cells of a single type embedded in an ambient space of dimension
    ``spacedim``, together with their distributed ownership.

    Every process holds the full geometry (owned and ghost cells alike);
    ``owners[c]`` names the rank that owns cell ``c`` and ``rank`` is the rank
    of the holder. A mesh is *partitioned* when ownership is split across
    several ranks. Coupling only ever writes through locally owned cells, but
    point location reads the geometry of every cell.
    """
    # Topological dimension and vertex count of each supported cell type.
    _CELL_TABLE = {
        'line': (1, 2),
        'tri':  (2, 3),
        'quad': (2, 4),
        'hex':  (3, 8),
    }

    def __init__(self,
                 nodes: np.ndarray,
                 cell_connectivity: np.ndarray,
                 *,
                 cell_type: str = 'quad',
                 owners: Optional[np.ndarray] = None,
                 rank: int = 0,
                 partitioned: bool = False):
        """
        Parameters
        ----------
        nodes : ndarray (n_nodes, spacedim)
            Vertex coordinates. A 1-D array is read as points on a line.
        cell_connectivity : ndarray (n_cells, n_vertices)
            Vertex indices per cell. Tensor-product cells list their vertices
            in lattice order (first reference coordinate fastest); triangles
            in the order (0,0), (1,0), (0,1).
        cell_type : {'line', 'tri', 'quad', 'hex'}
        owners : ndarray (n_cells,), optional
            Owning rank per cell; defaults to every cell owned by *rank*.
        rank : int
            Rank of the process holding this mesh.
        partitioned : bool
            Whether ownership is distributed over several ranks.
        """
        if cell_type not in self._CELL_TABLE:
            raise KeyError(f"Unsupported cell type '{cell_type}'.")
        nodes = np.asarray(nodes, dtype=float)
        if nodes.ndim == 1:
            nodes = nodes[:, None]
        conn = np.asarray(cell_connectivity, dtype=np.int64)
        if conn.ndim != 2:
            raise ValueError("cell_connectivity must be a 2-D array.")

        self.cell_type: str = cell_type
        self.dim, n_vertices = self._CELL_TABLE[cell_type]
        if conn.shape[1] != n_vertices:
            raise ValueError(f"A '{cell_type}' cell has {n_vertices} vertices, "
                             f"connectivity has {conn.shape[1]} columns.")
        if conn.size and (conn.min() < 0 or conn.max() >= len(nodes)):
            raise IndexError("cell_connectivity references a missing node.")
        self.spacedim: int = nodes.shape[1]
        if self.dim > self.spacedim:
            raise ValueError(f"A '{cell_type}' mesh cannot live in {self.spacedim}-D space.")

        self.nodes_pos: np.ndarray = nodes
        self.cell_connectivity: np.ndarray = conn
        self.n_cells: int = len(conn)
        self.rank: int = int(rank)
        self.owners: np.ndarray = (np.full(self.n_cells, self.rank, dtype=np.int64)
                                   if owners is None else np.asarray(owners, dtype=np.int64))
        if self.owners.shape != (self.n_cells,):
            raise ValueError("owners must hold one rank per cell.")
        self._partitioned: bool = bool(partitioned)
        self.cells_list: List[Cell] = []
        self._build_cells()

    def _build_cells(self):
        centroids = self.nodes_pos[self.cell_connectivity].mean(axis=1)
        for cid, cell_nodes in enumerate(self.cell_connectivity):
            self.cells_list.append(Cell(
                id=cid,
                nodes=tuple(int(n) for n in cell_nodes),
                cell_type=self.cell_type,
                owner=int(self.owners[cid]),
                centroid=centroids[cid],
            ))

    # --- Ownership ---

    def is_partitioned(self) -> bool:
        """True when cell ownership is split over more than one rank."""
        return self._partitioned

    def is_locally_owned(self, handle: CellHandle) -> bool:
        return bool(self.owners[int(handle)] == self.rank)

    @property
    def n_locally_owned_cells(self) -> int:
        return int(np.count_nonzero(self.owners == self.rank))

    def partition(self, n_parts: int, rank: int) -> "Mesh":
        """
        View of this mesh as seen by *rank* out of *n_parts* processes.

        Cells are dealt out in contiguous blocks of the cell order. The
        geometry is shared, so non-owned cells behave as ghost cells.
        """
        if n_parts < 1:
            raise ValueError("n_parts must be positive.")
        if not 0 <= rank < n_parts:
            raise ValueError(f"rank {rank} outside [0, {n_parts}).")
        owners = np.minimum(np.arange(self.n_cells) * n_parts // max(self.n_cells, 1),
                            n_parts - 1)
        return Mesh(self.nodes_pos, self.cell_connectivity, cell_type=self.cell_type,
                    owners=owners, rank=rank, partitioned=n_parts > 1)

    # --- Cell access ---

    def cells(self) -> Iterator[CellHandle]:
        """Handles of all cells (owned and ghost) in index order."""
        for cid in range(self.n_cells):
            yield CellHandle(cid)

    def cell(self, handle: CellHandle) -> Cell:
        cid = int(handle)
        if not 0 <= cid < self.n_cells:
            raise IndexError(f"Cell {cid} out of range.")
        return self.cells_list[cid]

    def cell_vertices(self, handle) -> np.ndarray:
        """Vertex coordinates (n_vertices, spacedim) of one cell."""
        return self.nodes_pos[self.cell_connectivity[int(handle)]]

    def centroids(self) -> np.ndarray:
        return np.array([c.centroid for c in self.cells_list]).reshape(self.n_cells, self.spacedim)

    def bounding_boxes(self) -> np.ndarray:
        """Axis-aligned boxes, shape (n_cells, 2, spacedim): [lower, upper]."""
        coords = self.nodes_pos[self.cell_connectivity]
        return np.stack([coords.min(axis=1), coords.max(axis=1)], axis=1)

    def measures(self) -> np.ndarray:
        """Length, area or volume of every cell."""
        from pynonmatching.fem.mapping import MappingQ1
        from pynonmatching.integration.quadrature import gauss
        quad = gauss(self.cell_type, 2)
        mapping = MappingQ1()
        return np.array([mapping.jxw(self, h, quad).sum() for h in self.cells()])

    def __repr__(self):
        return (f"<Mesh n_nodes={len(self.nodes_pos)}, "
                f"n_cells={self.n_cells}, "
                f"cell_type='{self.cell_type}', "
                f"dim={self.dim}, spacedim={self.spacedim}, "
                f"rank={self.rank}, partitioned={self._partitioned}>")
