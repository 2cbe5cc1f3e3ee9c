# conftest.py
import matplotlib
import pytest

from pynonmatching.core import DofHandler, Mesh
from pynonmatching.fem import FiniteElement
from pynonmatching.utils.meshgen import structured_line, structured_quad


@pytest.fixture(autouse=True)
def mpl_test_backend():
    """Switch to a non-interactive backend for all tests."""
    matplotlib.use('Agg')


@pytest.fixture
def unit_square():
    """2x2 quadrilaterals on the unit square."""
    nodes, quads = structured_quad(1.0, 1.0, nx=2, ny=2)
    return Mesh(nodes, quads, cell_type='quad')


@pytest.fixture
def unit_square_q1(unit_square):
    return DofHandler(unit_square, FiniteElement('quad', 1))


@pytest.fixture
def diagonal_q1():
    """Two segments along the diagonal of the unit square, scalar Q1."""
    nodes, segs = structured_line([0.0, 0.0], [1.0, 1.0], 2)
    return DofHandler(Mesh(nodes, segs, cell_type='line'), FiniteElement('line', 1))
