"""pynonmatching.integration.quadrature
Gauss quadrature on the reference line, quad, hex and triangle.
"""
# pynonmatching.integration.quadrature
import numpy as np
from dataclasses import dataclass
from functools import lru_cache
from itertools import product
from numpy.polynomial.legendre import leggauss


@dataclass(frozen=True)
class Quadrature:
    """Points (n_q, dim) and weights (n_q,) on a reference cell."""
    points: np.ndarray
    weights: np.ndarray
    cell_type: str = ""

    def __post_init__(self):
        pts = np.atleast_2d(np.asarray(self.points, dtype=float))
        wts = np.asarray(self.weights, dtype=float).ravel()
        if len(pts) != len(wts):
            raise ValueError(f"{len(pts)} points but {len(wts)} weights.")
        object.__setattr__(self, "points", pts)
        object.__setattr__(self, "weights", wts)

    @property
    def dim(self) -> int:
        return self.points.shape[1]

    def size(self) -> int:
        return len(self.weights)

    def __len__(self):
        return len(self.weights)


# -------------------------------------------------------------------------
# 1‑D Gauss–Legendre
# -------------------------------------------------------------------------
def gauss_legendre(order: int):
    if order < 1:
        raise ValueError(order)
    return leggauss(order)  # (points, weights)

# -------------------------------------------------------------------------
# Tensor‑product construction helpers
# -------------------------------------------------------------------------
@lru_cache(maxsize=None)
def tensor_rule(order: int, dim: int):
    """Gauss rule on [-1,1]^dim, first coordinate fastest."""
    xi, wi = gauss_legendre(order)
    idx = [tuple(reversed(t)) for t in product(range(order), repeat=dim)]
    pts = np.array([[xi[i] for i in t] for t in idx])
    wts = np.array([np.prod([wi[i] for i in t]) for t in idx])
    return pts, wts

@lru_cache(maxsize=None)
def tri_rule(order: int):
    """Collapsed (Duffy) Gauss rule on the reference triangle, exact to degree 2*order-1."""
    xi, wi = gauss_legendre(order)
    u = 0.5 * (xi + 1.0)   # [0,1]
    w_u = 0.5 * wi
    pts = []
    wts = []
    for i, ui in enumerate(u):
        for j, vj in enumerate(u):
            r = ui
            s = vj * (1.0 - ui)
            weight = w_u[i] * w_u[j] * (1.0 - ui)
            pts.append([r, s])
            wts.append(weight)
    return np.array(pts), np.array(wts)

# -------------------------------------------------------------------------
# Public API
# -------------------------------------------------------------------------
_TENSOR_DIM = {'line': 1, 'quad': 2, 'hex': 3}


def gauss(cell_type: str, order: int = 2) -> Quadrature:
    """
    Gauss rule with *order* points per direction on the reference *cell_type*.

    Tensor cells use the Gauss–Legendre product rule (exact to degree
    ``2*order-1`` per direction); triangles use the collapsed rule with
    ``order**2`` points.
    """
    if cell_type in _TENSOR_DIM:
        pts, wts = tensor_rule(int(order), _TENSOR_DIM[cell_type])
    elif cell_type == 'tri':
        pts, wts = tri_rule(int(order))
    else:
        raise KeyError(cell_type)
    return Quadrature(pts, wts, cell_type)
