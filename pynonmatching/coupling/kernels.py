"""pynonmatching.coupling.kernels
Compiled inner loops of the coupling assembly.
"""
import numba
import numpy as np


@numba.njit(cache=True)
def accumulate_coupling_block(block, bg_values, im_values, jxw, q_indices, pair_mask):
    """
    ``block[i, j] += Σ_k bg_values[k, i] * im_values[q_k, j] * jxw[q_k]``

    for every pair with ``pair_mask[i, j]``. Row ``k`` of *bg_values* is the
    background basis at the k-th matched point, whose immersed quadrature
    index is ``q_indices[k]``.
    """
    n_i, n_j = block.shape
    for i in range(n_i):
        for j in range(n_j):
            if not pair_mask[i, j]:
                continue
            for k in range(q_indices.shape[0]):
                q = q_indices[k]
                block[i, j] += bg_values[k, i] * im_values[q, j] * jxw[q]
    return block


def local_pair_mask(background_fe, immersed_fe, coupling_map: np.ndarray) -> np.ndarray:
    """Expand a component coupling table to local dof pairs."""
    comp_i = np.array([background_fe.component_of(i) for i in range(background_fe.dofs_per_cell)],
                      dtype=np.int64)
    comp_j = np.array([immersed_fe.component_of(j) for j in range(immersed_fe.dofs_per_cell)],
                      dtype=np.int64)
    return np.ascontiguousarray(coupling_map[np.ix_(comp_i, comp_j)])
