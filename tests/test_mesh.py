import numpy as np
import pytest

from pynonmatching.core import CellHandle, Mesh
from pynonmatching.utils.meshgen import (delaunay_rectangle, polyline, structured_hex,
                                          structured_line, structured_quad, structured_triangles)


def test_mesh_basic(unit_square):
    mesh = unit_square
    assert mesh.n_cells == 4
    assert (mesh.dim, mesh.spacedim) == (2, 2)
    assert [int(h) for h in mesh.cells()] == [0, 1, 2, 3]
    assert np.allclose(mesh.centroids()[3], [0.75, 0.75])
    assert np.allclose(mesh.bounding_boxes()[1], [[0.5, 0.0], [1.0, 0.5]])
    assert np.allclose(mesh.measures(), 0.25)
    assert not mesh.is_partitioned()
    assert all(mesh.is_locally_owned(h) for h in mesh.cells())


def test_cell_handles_are_values():
    a, b = CellHandle(3), CellHandle(3)
    assert a == b and a is not b
    assert len({a, b, CellHandle(1)}) == 2
    assert sorted([CellHandle(2), CellHandle(0)]) == [CellHandle(0), CellHandle(2)]


def test_partition_ownership(unit_square):
    parts = [unit_square.partition(2, r) for r in range(2)]
    for r, part in enumerate(parts):
        assert part.is_partitioned()
        assert part.rank == r
        assert part.n_locally_owned_cells == 2
    owned = [[int(h) for h in p.cells() if p.is_locally_owned(h)] for p in parts]
    assert owned == [[0, 1], [2, 3]]
    assert not unit_square.partition(1, 0).is_partitioned()
    with pytest.raises(ValueError):
        unit_square.partition(2, 2)


def test_invalid_meshes():
    with pytest.raises(ValueError):
        Mesh(np.zeros((4, 2)), [[0, 1, 2]], cell_type='quad')
    with pytest.raises(IndexError):
        Mesh(np.zeros((2, 2)), [[0, 5]], cell_type='line')
    with pytest.raises(ValueError):
        Mesh(np.zeros((8, 2)), [list(range(8))], cell_type='hex')
    with pytest.raises(KeyError):
        Mesh(np.zeros((3, 2)), [[0, 1, 2]], cell_type='polygon')


def test_generators():
    nodes, lines = structured_line([0, 0, 0], [1, 2, 2], 3)
    mesh = Mesh(nodes, lines, cell_type='line')
    assert (mesh.dim, mesh.spacedim) == (1, 3)
    assert np.isclose(mesh.measures().sum(), 3.0)

    nodes, tris = structured_triangles(2.0, 1.0, nx_quads=2, ny_quads=2)
    assert np.isclose(Mesh(nodes, tris, cell_type='tri').measures().sum(), 2.0)

    nodes, hexes = structured_hex(1.0, 1.0, 2.0, nx=2, ny=1, nz=2, offset=(1.0, 0.0, 0.0))
    mesh = Mesh(nodes, hexes, cell_type='hex')
    assert np.isclose(mesh.measures().sum(), 2.0)
    assert np.allclose(mesh.nodes_pos.min(axis=0), [1.0, 0.0, 0.0])

    nodes, quads = structured_quad(1.0, 1.0, nx=2, ny=3, z=0.25)
    mesh = Mesh(nodes, quads, cell_type='quad')
    assert mesh.spacedim == 3
    assert np.isclose(mesh.measures().sum(), 1.0)

    nodes, tris = delaunay_rectangle(1.0, 1.0, nx=4, ny=4)
    assert np.isclose(Mesh(nodes, tris, cell_type='tri').measures().sum(), 1.0)

    nodes, segs = polyline([[0, 0], [1, 0], [1, 1]], closed=True)
    assert segs.tolist() == [[0, 1], [1, 2], [2, 0]]
