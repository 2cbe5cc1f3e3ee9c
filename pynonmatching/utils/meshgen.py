"""pynonmatching.utils.meshgen
Mesh generators for quick tests.

Every generator returns raw ``(nodes, connectivity)`` arrays ready for
:class:`pynonmatching.core.Mesh`. Tensor-product cells list their vertices
in lattice order (x fastest, then y, then z).
"""
import numpy as np
import numba
from scipy.spatial import Delaunay
from typing import Optional, Sequence, Tuple

__all__ = ["structured_line", "polyline", "structured_quad", "structured_triangles",
           "structured_hex", "delaunay_rectangle"]


@numba.njit(cache=True)
def _translate_coords(coords: np.ndarray, offset: np.ndarray):
    """Translates all node coordinates by a given offset vector."""
    for d in range(coords.shape[1]):
        coords[:, d] += offset[d]
    return coords


def _apply_offset(nodes: np.ndarray, offset) -> np.ndarray:
    if offset is None:
        return nodes
    offset = np.asarray(offset, dtype=np.float64)
    if offset.shape != (nodes.shape[1],):
        raise ValueError(f"offset must have {nodes.shape[1]} entries.")
    return _translate_coords(np.ascontiguousarray(nodes), offset)


def structured_line(start: Sequence[float], end: Sequence[float], n: int):
    """*n* equal segments from *start* to *end*, in a space of ``len(start)`` dims."""
    if n < 1:
        raise ValueError("A line needs at least one segment.")
    start = np.atleast_1d(np.asarray(start, dtype=float))
    end = np.atleast_1d(np.asarray(end, dtype=float))
    t = np.linspace(0.0, 1.0, n + 1)[:, None]
    nodes = (1.0 - t) * start + t * end
    conn = np.column_stack([np.arange(n), np.arange(1, n + 1)])
    return nodes, conn


def polyline(points, closed: bool = False):
    """Segments joining consecutive *points*, optionally back to the first."""
    nodes = np.atleast_2d(np.asarray(points, dtype=float))
    n = len(nodes)
    if n < 2:
        raise ValueError("A polyline needs at least two points.")
    idx = np.arange(n)
    conn = np.column_stack([idx[:-1], idx[1:]])
    if closed:
        conn = np.vstack([conn, [n - 1, 0]])
    return nodes, conn


def structured_quad(Lx: float, Ly: float, *, nx: int, ny: int,
                    offset: Optional[Tuple[float, ...]] = None, z: Optional[float] = None):
    """
    ``nx x ny`` quadrilaterals on ``[0, Lx] x [0, Ly]``.

    With *z* given the grid is placed in the plane ``z = const`` of 3-D
    space, which gives a surface mesh for 3-D coupling.
    """
    if nx < 1 or ny < 1:
        raise ValueError("nx and ny must be positive.")
    x = np.linspace(0.0, Lx, nx + 1)
    y = np.linspace(0.0, Ly, ny + 1)
    X, Y = np.meshgrid(x, y)             # row j, column i -> node j*(nx+1)+i
    nodes = np.column_stack([X.ravel(), Y.ravel()])
    if z is not None:
        nodes = np.column_stack([nodes, np.full(len(nodes), float(z))])

    def n(i, j):
        return j * (nx + 1) + i

    conn = np.array([[n(i, j), n(i + 1, j), n(i, j + 1), n(i + 1, j + 1)]
                     for j in range(ny) for i in range(nx)], dtype=np.int64)
    return _apply_offset(nodes, offset), conn


def structured_triangles(Lx: float, Ly: float, *, nx_quads: int, ny_quads: int,
                         offset: Optional[Tuple[float, ...]] = None):
    """Each quad of a ``nx_quads x ny_quads`` grid split along its anti-diagonal."""
    nodes, quads = structured_quad(Lx, Ly, nx=nx_quads, ny=ny_quads, offset=offset)
    tris = []
    for v00, v10, v01, v11 in quads:
        tris.append([v00, v10, v01])
        tris.append([v11, v01, v10])
    return nodes, np.array(tris, dtype=np.int64)


def structured_hex(Lx: float, Ly: float, Lz: float, *, nx: int, ny: int, nz: int,
                   offset: Optional[Tuple[float, ...]] = None):
    """``nx x ny x nz`` hexahedra on ``[0, Lx] x [0, Ly] x [0, Lz]``."""
    if min(nx, ny, nz) < 1:
        raise ValueError("nx, ny and nz must be positive.")
    x = np.linspace(0.0, Lx, nx + 1)
    y = np.linspace(0.0, Ly, ny + 1)
    z = np.linspace(0.0, Lz, nz + 1)
    Z, Y, X = np.meshgrid(z, y, x, indexing='ij')
    nodes = np.column_stack([X.ravel(), Y.ravel(), Z.ravel()])

    def n(i, j, k):
        return (k * (ny + 1) + j) * (nx + 1) + i

    conn = np.array([[n(i + a, j + b, k + c) for c in (0, 1) for b in (0, 1) for a in (0, 1)]
                     for k in range(nz) for j in range(ny) for i in range(nx)], dtype=np.int64)
    return _apply_offset(nodes, offset), conn


def delaunay_rectangle(length: float, height: float, nx: int = 10, ny: int = 10):
    """Delaunay triangulation of an ``nx x ny`` point lattice, counter-clockwise cells."""
    x = np.linspace(0.0, length, nx)
    y = np.linspace(0.0, height, ny)
    X, Y = np.meshgrid(x, y)
    pts = np.column_stack([X.ravel(), Y.ravel()])
    tri = Delaunay(pts)
    elems = tri.simplices.copy()

    # make triangles CCW
    def signed_area(a, b, c):
        return (b[0]-a[0])*(c[1]-a[1]) - (b[1]-a[1])*(c[0]-a[0])
    for t in elems:
        a, b, c = pts[t]
        if signed_area(a, b, c) < 0:
            t[1], t[2] = t[2], t[1]
    return pts, elems
