import numpy as np
import pytest
import scipy.sparse as sp

from pynonmatching.assembly import (AffineConstraints, DynamicSparsityPattern, GlobalMatrix,
                                    assemble_mass_matrix)
from pynonmatching.core import DofHandler
from pynonmatching.fem import FiniteElement


def test_sparsity_pattern_is_idempotent():
    dsp = DynamicSparsityPattern(3, 4)
    dsp.add_entries([0, 2], [1, 3])
    dsp.add_entries([0], [1])
    dsp.add(2, 3)
    assert dsp.n_nonzero_elements() == 4
    assert dsp.exists(2, 1) and not dsp.exists(1, 1)
    assert dsp.row(0).tolist() == [1, 3]
    csr = dsp.to_csr()
    assert isinstance(csr, sp.csr_matrix)
    assert csr.shape == (3, 4) and csr.nnz == 4
    with pytest.raises(IndexError):
        dsp.add(3, 0)


def test_global_matrix_sums_duplicates():
    M = GlobalMatrix(2, 3)
    M.add_block([0, 1], [2, 2], np.array([[1.0, 2.0], [3.0, 4.0]]))
    M.add(0, 2, 0.5)
    A = M.toarray()
    assert np.allclose(A, [[0, 0, 3.5], [0, 0, 7.0]])
    assert GlobalMatrix(2, 2, dtype=np.complex128).tocsr().dtype == np.complex128
    with pytest.raises(IndexError):
        M.add(2, 0, 1.0)


def test_constraints_close_resolves_chains():
    cm = AffineConstraints()
    cm.add_entry(0, 1, 0.5)
    cm.add_entry(0, 2, 0.5)
    cm.add_entry(1, 3, 1.0)
    cm.set_inhomogeneity(1, 2.0)
    cm.close()
    assert cm.constraint_entries(0) == [(2, 0.5), (3, 0.5)]
    assert np.isclose(cm.get_inhomogeneity(0), 1.0)
    assert cm.is_constrained(1) and not cm.is_constrained(3)
    with pytest.raises(RuntimeError):
        cm.add_line(5)


def test_constraints_reject_cycles():
    cm = AffineConstraints()
    cm.add_entry(0, 1, 1.0)
    cm.add_entry(1, 0, 1.0)
    with pytest.raises(RuntimeError):
        cm.close()


def test_distribute_local_to_global_moves_constrained_rows():
    cm = AffineConstraints()
    cm.add_entry(1, 0, 0.25)
    cm.add_entry(1, 2, 0.75)
    cm.close()
    M = GlobalMatrix(3, 2)
    local = np.array([[1.0, 2.0], [4.0, 8.0]])
    cm.distribute_local_to_global(local, [0, 1], [0, 1], M)
    assert np.allclose(M.toarray(), [[2.0, 4.0], [0.0, 0.0], [3.0, 6.0]])

    dsp = DynamicSparsityPattern(3, 2)
    cm.add_entries_local_to_global([1], [0], dsp)
    assert sorted(dsp.entries()) == [(0, 0), (1, 0), (2, 0)]


def test_unclosed_constraints_are_rejected():
    cm = AffineConstraints()
    cm.add_entry(0, 1, 1.0)
    with pytest.raises(RuntimeError):
        cm.distribute_local_to_global(np.ones((1, 1)), [0], [0], GlobalMatrix(2, 2))


def test_mass_matrix_integrates_area(unit_square):
    dh = DofHandler(unit_square, FiniteElement('quad', 1))
    M = assemble_mass_matrix(dh).tocsr()
    assert M.shape == (9, 9)
    assert np.isclose(M.sum(), 1.0)
    assert np.allclose(M.toarray(), M.toarray().T)

    vec = DofHandler(unit_square, FiniteElement('quad', 1, n_components=2))
    Mv = assemble_mass_matrix(vec).toarray()
    assert np.isclose(Mv.sum(), 2.0)
    assert np.allclose(Mv[:9, 9:], 0.0)
