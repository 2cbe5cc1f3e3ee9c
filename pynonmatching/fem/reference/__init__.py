# pynonmatching.fem.reference
"""
Order-agnostic reference-element factory.

Reference cells: line [-1,1], quad [-1,1]^2, hex [-1,1]^3 and the unit
triangle (0,0)-(1,0)-(0,1).
"""
from functools import lru_cache
from importlib import import_module
import numpy as np

_REF_DIM = {'line': 1, 'tri': 2, 'quad': 2, 'hex': 3}


class Ref:
    def __init__(self, cell_type, degree, support_points, shape_fn, grad_fn):
        self.cell_type = cell_type
        self.degree = degree
        self.dim = _REF_DIM[cell_type]
        self.support_points = support_points
        self.n_basis = len(support_points)
        self._shape_fn = shape_fn
        self._grad_fn = grad_fn

    def shape(self, points) -> np.ndarray:
        """Basis values, shape (n_pts, n_basis)."""
        return self._shape_fn(np.asarray(points, dtype=float).reshape(-1, self.dim))

    def grad(self, points) -> np.ndarray:
        """Reference gradients, shape (n_pts, n_basis, dim)."""
        return self._grad_fn(np.asarray(points, dtype=float).reshape(-1, self.dim))

    def contains(self, points, tol: float = 0.0) -> np.ndarray:
        """Inclusion test of reference coordinates, with slack *tol*."""
        points = np.asarray(points, dtype=float).reshape(-1, self.dim)
        if self.cell_type == 'tri':
            return ((points[:, 0] >= -tol) & (points[:, 1] >= -tol)
                    & (points[:, 0] + points[:, 1] <= 1.0 + tol))
        return np.all(np.abs(points) <= 1.0 + tol, axis=1)

    def center(self) -> np.ndarray:
        if self.cell_type == 'tri':
            return np.array([1/3, 1/3])
        return np.zeros(self.dim)

    def __repr__(self):
        return f"<Ref {self.cell_type} degree={self.degree} n_basis={self.n_basis}>"


def _tri_tables(degree):
    support, shape_l, grad_l = import_module("pynonmatching.fem.reference.tri_pn").tri_pn(degree)

    def _col(f, xi, eta):
        return np.broadcast_to(np.asarray(f(xi, eta), dtype=float), xi.shape)

    def shape(points):
        xi, eta = points[:, 0], points[:, 1]
        return np.stack([_col(f, xi, eta) for f in shape_l], axis=-1)

    def grad(points):
        xi, eta = points[:, 0], points[:, 1]
        return np.stack([np.stack([_col(fx, xi, eta), _col(fy, xi, eta)], axis=-1)
                         for fx, fy in grad_l], axis=1)

    return support, shape, grad


@lru_cache(maxsize=None)
def get_reference(cell_type: str, degree: int = 1) -> Ref:
    if cell_type in ("line", "quad", "hex"):
        support, shape, grad = import_module("pynonmatching.fem.reference.tensor_qn").tensor_qn(
            degree, _REF_DIM[cell_type])
    elif cell_type == "tri":
        support, shape, grad = _tri_tables(degree)
    else:
        raise KeyError(cell_type)
    return Ref(cell_type, degree, support, shape, grad)
