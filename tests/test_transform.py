import numpy as np
import pytest

from pynonmatching.core import CellHandle, Mesh
from pynonmatching.errors import InverseMappingError
from pynonmatching.fem.mapping import MappingQ1
from pynonmatching.integration import gauss


def test_reference_to_global_mapping_tri():
    mesh = Mesh(np.array([[0, 0], [2, 0], [0, 1]]), [[0, 1, 2]], cell_type='tri')
    x = MappingQ1().transform_points(mesh, CellHandle(0), [1/3, 1/3])
    # Barycentre of the physical triangle
    assert np.allclose(x, [[2/3, 1/3]])
    assert np.isclose(MappingQ1().jxw(mesh, CellHandle(0), gauss('tri', 2)).sum(), 1.0)


def test_inverse_map_distorted_quad():
    nodes = np.array([[0.0, 0.0], [2.0, 0.2], [0.1, 1.0], [1.7, 1.5]])
    mesh = Mesh(nodes, [[0, 1, 2, 3]], cell_type='quad')
    mapping = MappingQ1()
    xi = np.array([0.3, -0.6])
    x = mapping.transform_points(mesh, CellHandle(0), xi)[0]
    assert np.allclose(mapping.inverse_map(mesh, CellHandle(0), x), xi, atol=1e-10)


def test_segment_jxw_is_length():
    mesh = Mesh(np.array([[0.0, 0.0], [3.0, 4.0]]), [[0, 1]], cell_type='line')
    assert np.isclose(MappingQ1().jxw(mesh, CellHandle(0), gauss('line', 2)).sum(), 5.0)


def test_vertex_displacement_moves_geometry():
    mesh = Mesh(np.array([[0.0, 0.0], [1.0, 0.0]]), [[0, 1]], cell_type='line')
    mapping = MappingQ1(vertex_displacement=np.array([[0.0, 1.0], [0.0, 1.0]]))
    assert np.allclose(mapping.transform_points(mesh, 0, [[0.0]]), [[0.5, 1.0]])
    with pytest.raises(ValueError):
        MappingQ1(np.zeros((3, 2))).cell_coords(mesh, 0)


def test_inverse_map_failures():
    degenerate = Mesh(np.zeros((4, 2)), [[0, 1, 2, 3]], cell_type='quad')
    with pytest.raises(InverseMappingError):
        MappingQ1().inverse_map(degenerate, CellHandle(0), [0.5, 0.5])
    curve = Mesh(np.array([[0.0, 0.0], [1.0, 1.0]]), [[0, 1]], cell_type='line')
    with pytest.raises(ValueError):
        MappingQ1().inverse_map(curve, CellHandle(0), [0.5, 0.5])


def test_inverse_map_with_explicit_controls(monkeypatch):
    nodes = np.array([[0.0, 0.0], [2.0, 0.2], [0.1, 1.0], [1.7, 1.5]])
    mesh = Mesh(nodes, [[0, 1, 2, 3]], cell_type='quad')
    mapping = MappingQ1()
    xi = np.array([-0.4, 0.5])
    x = mapping.transform_points(mesh, CellHandle(0), xi)[0]
    # explicit controls do not consult the environment
    monkeypatch.setenv("PYNONMATCHING_NEWTON_MAXITER", "many")
    assert np.allclose(mapping.inverse_map(mesh, CellHandle(0), x, tol=1e-12, maxiter=20),
                       xi, atol=1e-10)
    with pytest.raises(ValueError):
        mapping.inverse_map(mesh, CellHandle(0), x)
    with pytest.raises(InverseMappingError):
        mapping.inverse_map(mesh, CellHandle(0), x, tol=1e-14, maxiter=1)
