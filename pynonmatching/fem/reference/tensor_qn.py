from functools import lru_cache
from itertools import product
import sympy as sp
import numpy as np


@lru_cache(maxsize=None)
def _lagrange_basis_1d(n: int):
    """Return 1D Lagrange nodes on [-1,1], basis and first derivatives as NUMPY-callable lambdas."""
    x = sp.symbols('x')
    nodes = np.array([0.0]) if n == 0 else np.linspace(-1.0, 1.0, n+1)
    L, dL = [], []
    for i, xi in enumerate(nodes):
        num = sp.Integer(1)
        den = 1.0
        for j, xj in enumerate(nodes):
            if i == j:
                continue
            num *= (x - xj)
            den *= (xi - xj)
        Li = sp.expand(num/den)
        # lambdify shape & derivative (SymPy → numpy functions)
        L.append(sp.lambdify(x, Li, 'numpy'))
        dL.append(sp.lambdify(x, sp.diff(Li, x), 'numpy'))
    return nodes, tuple(L), tuple(dL)


def _eval_1d(fns, z):
    # constant polynomials lambdify to scalars; output shape (n_pts, n+1)
    return np.stack([np.broadcast_to(np.asarray(f(z), dtype=float), z.shape) for f in fns],
                    axis=-1)


def _tensor(factors):
    """Tensor product of per-axis tables (n_pts, m), first axis fastest."""
    out = factors[0]
    for f in factors[1:]:
        out = (f[:, :, None] * out[:, None, :]).reshape(out.shape[0], -1)
    return out


@lru_cache(maxsize=None)
def tensor_qn(n: int, dim: int):
    """
    Tensor-product Q_n on [-1,1]^dim.
    Returns: (support_points, shape_fn, grad_fn) where
      support_points -> ((n+1)^dim, dim)
      shape_fn(points) -> (n_pts, (n+1)^dim)
      grad_fn(points)  -> (n_pts, (n+1)^dim, dim)
    Stacking order is lattice order, first coordinate fastest:
    index = i0 + (n+1)*i1 + (n+1)^2*i2
    """
    if n < 0:
        raise ValueError("Polynomial order n must be non-negative.")
    if dim not in (1, 2, 3):
        raise ValueError(f"Tensor-product cells exist in 1, 2 or 3 dimensions, not {dim}.")
    nodes1d, L, dL = _lagrange_basis_1d(n)
    support = np.array([tuple(reversed(idx)) for idx in product(nodes1d, repeat=dim)], dtype=float)

    def shape(points):
        points = np.asarray(points, dtype=float).reshape(-1, dim)
        return _tensor([_eval_1d(L, points[:, a]) for a in range(dim)])

    def grad(points):
        points = np.asarray(points, dtype=float).reshape(-1, dim)
        vals = [_eval_1d(L, points[:, a]) for a in range(dim)]
        ders = [_eval_1d(dL, points[:, a]) for a in range(dim)]
        cols = []
        for d in range(dim):
            cols.append(_tensor([ders[a] if a == d else vals[a] for a in range(dim)]))
        return np.stack(cols, axis=-1)

    return support, shape, grad
