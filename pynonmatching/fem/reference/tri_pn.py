from functools import lru_cache
import sympy as sp
import numpy as np


@lru_cache(maxsize=None)
def tri_pn(n: int):
    """
    Return support points, lambdified shape functions and first derivatives for Pn triangles.

    Args:
        n: Polynomial order of the Pn element.

    Returns:
        tuple: (support_points, shape_lambdas, grad_lambdas)
            - support_points: (N, 2) nodal points on the reference triangle (0,0)-(1,0)-(0,1).
            - shape_lambdas: tuple of N callables phi_k(xi, eta).
            - grad_lambdas: tuple of N pairs (d phi_k/d xi, d phi_k/d eta).
    """
    if n < 0:
        raise ValueError("Polynomial order n must be non-negative.")
    xi_sym, eta_sym = sp.symbols("xi eta")

    # 1. Define Pn nodal points on the reference triangle (0,0)-(1,0)-(0,1)
    nodes_ref_coords = []
    if n == 0:  # P0 element has one node, at the centroid
        nodes_ref_coords.append((sp.Rational(1, 3), sp.Rational(1, 3)))
    else:
        for j_level in range(n + 1):  # eta-like rows
            for i_level in range(n + 1 - j_level):  # xi-like within rows
                nodes_ref_coords.append((sp.Rational(i_level, n), sp.Rational(j_level, n)))

    num_nodes = len(nodes_ref_coords)

    # 2. Define monomial basis for polynomials of degree <= n in 2D
    monomials_sym = []
    for total_degree in range(n + 1):
        for pow_xi in range(total_degree + 1):
            pow_eta = total_degree - pow_xi
            monomials_sym.append(xi_sym**pow_xi * eta_sym**pow_eta)

    if len(monomials_sym) != num_nodes:
        raise RuntimeError(f"Internal error: Mismatch between number of nodes ({num_nodes}) "
                           f"and number of monomials ({len(monomials_sym)}) for order n={n}.")

    # 3. Construct the Vandermonde-like matrix V
    V_matrix = sp.zeros(num_nodes, num_nodes)
    for i_node, (node_xi, node_eta) in enumerate(nodes_ref_coords):
        for j_monomial, monomial in enumerate(monomials_sym):
            V_matrix[i_node, j_monomial] = sp.sympify(monomial).subs({xi_sym: node_xi, eta_sym: node_eta})

    # 4. Compute coefficients for Lagrange basis functions
    coeffs_matrix = (V_matrix.T).inv()

    # 5. Construct symbolic Lagrange basis functions
    monomials_matrix_col = sp.Matrix(monomials_sym)
    basis_sym_list = [sp.expand((coeffs_matrix.row(k) * monomials_matrix_col)[0, 0])
                      for k in range(num_nodes)]

    # 6. Lambdify shape functions and first derivatives
    shape_lambdas = tuple(sp.lambdify((xi_sym, eta_sym), phi, "numpy") for phi in basis_sym_list)
    grad_lambdas = tuple(
        (sp.lambdify((xi_sym, eta_sym), sp.diff(phi, xi_sym), "numpy"),
         sp.lambdify((xi_sym, eta_sym), sp.diff(phi, eta_sym), "numpy"))
        for phi in basis_sym_list
    )
    support = np.array([[float(a), float(b)] for a, b in nodes_ref_coords], dtype=float)
    return support, shape_lambdas, grad_lambdas
