import numpy as np
import pytest

from pynonmatching.core import CellHandle, Mesh
from pynonmatching.coupling import (SpatialLocator, build_correspondence,
                                    collect_quadrature_points, compute_correspondence)
from pynonmatching.coupling.locator import PointLocations
from pynonmatching.integration import gauss
from pynonmatching.utils.meshgen import structured_hex, structured_line, structured_quad


def test_locate_interior_point(unit_square):
    loc = SpatialLocator(unit_square)
    handle, xi = loc.locate_point([0.25, 0.75])
    assert handle == CellHandle(2)
    assert np.allclose(xi, [0.0, 0.0])


@pytest.mark.parametrize("x,cell", [
    ([0.5, 0.5], 0),     # vertex shared by all four cells
    ([0.5, 0.25], 0),    # edge shared by cells 0 and 1
    ([0.75, 0.5], 1),    # edge shared by cells 1 and 3
    ([1.0, 1.0], 3),
])
def test_shared_boundaries_go_to_lowest_index(unit_square, x, cell):
    loc = SpatialLocator(unit_square)
    first = loc.locate_point(x)
    assert first[0] == CellHandle(cell)
    # the same query always gives the same answer
    assert loc.locate_point(x)[0] == first[0]


def test_outside_points_are_unmatched(unit_square):
    loc = SpatialLocator(unit_square)
    assert loc.locate_point([1.5, 0.5]) is None
    res = loc.locate(np.array([[0.1, 0.1], [-0.2, 0.3], [2.0, 2.0]]))
    assert res.cells.tolist() == [0, -1, -1]
    assert res.n_unmatched == 2
    assert np.isnan(res.ref_points[1]).all()


def test_locator_in_3d_and_1d():
    nodes, hexes = structured_hex(1.0, 1.0, 1.0, nx=2, ny=2, nz=2)
    loc = SpatialLocator(Mesh(nodes, hexes, cell_type='hex'))
    handle, xi = loc.locate_point([0.75, 0.25, 0.75])
    assert handle == CellHandle(5)
    assert np.allclose(xi, 0.0)

    nodes, segs = structured_line([0.0], [1.0], 4)
    loc = SpatialLocator(Mesh(nodes, segs, cell_type='line'))
    assert loc.locate_point([0.6])[0] == CellHandle(2)


def test_locator_needs_full_dimension():
    nodes, segs = structured_line([0.0, 0.0], [1.0, 1.0], 2)
    with pytest.raises(ValueError):
        SpatialLocator(Mesh(nodes, segs, cell_type='line'))


def test_locator_keeps_settings_from_construction(unit_square, monkeypatch):
    monkeypatch.setenv("PYNONMATCHING_NEWTON_TOL", "1e-11")
    loc = SpatialLocator(unit_square)
    assert loc.newton_tol == 1e-11
    monkeypatch.setenv("PYNONMATCHING_NEWTON_MAXITER", "many")
    res = loc.locate(np.array([[0.1, 0.2], [0.6, 0.9]]))
    assert res.cells.tolist() == [0, 3]
    assert res.n_unmatched == 0


def test_tree_narrows_candidates():
    nodes, quads = structured_quad(1.0, 1.0, nx=20, ny=20)
    mesh = Mesh(nodes, quads, cell_type='quad')
    loc = SpatialLocator(mesh)
    points = np.random.default_rng(3).uniform(0.01, 0.99, size=(200, 2))
    candidates = loc.candidates(points)
    assert len(candidates) == len(points)
    # centroids are 0.05 apart, the search ball reaches at most a 2x2 block
    assert max(len(c) for c in candidates) <= 4
    assert max(len(c) for c in candidates) < mesh.n_cells // 10

    expected = (np.floor(points[:, 1] / 0.05) * 20 + np.floor(points[:, 0] / 0.05)).astype(int)
    assert all(e in c for e, c in zip(expected, candidates))
    res = loc.locate(points)
    assert res.n_unmatched == 0
    assert res.cells.tolist() == expected.tolist()


def test_collector_is_cell_major(diagonal_q1):
    rule = gauss('line', 2)
    batch = collect_quadrature_points(diagonal_q1.mesh, rule)
    assert len(batch) == 4
    assert batch.owner(3) == (1, 1)
    t = 0.5 * (1.0 + rule.points[:, 0])
    assert np.allclose(batch.cell_points(1)[:, 0], 0.5 + 0.5 * t)


def test_correspondence_groups_points():
    cells = np.array([0, 0, 1, 0, -1, 2, 2, 2])
    refs = np.arange(16, dtype=float).reshape(8, 2)
    corr = build_correspondence(PointLocations(cells, refs), n_cells=2, n_q=4, dim=2)
    assert corr.n_unmatched == 1
    assert corr.cell_sets == [{CellHandle(0), CellHandle(1)}, {CellHandle(2)}]

    first = corr.buckets[0]
    assert [b.cell for b in first] == [CellHandle(0), CellHandle(1)]
    # the point after the excursion to cell 1 lands in the existing bucket
    assert first[0].q_indices.tolist() == [0, 1, 3]
    assert np.allclose(first[0].ref_points, refs[[0, 1, 3]])
    assert corr.buckets[1][0].q_indices.tolist() == [1, 2, 3]
    assert corr.touched_cells() == {CellHandle(0), CellHandle(1), CellHandle(2)}


def test_correspondence_of_diagonal(unit_square, diagonal_q1):
    corr = compute_correspondence(unit_square, diagonal_q1.mesh, gauss('line', 2))
    assert corr.n_unmatched == 0
    assert corr.cell_sets == [{CellHandle(0)}, {CellHandle(3)}]
    assert [len(b) for b in corr.buckets[0]] == [2]


def test_debug_mode_checks_buckets(unit_square, diagonal_q1, monkeypatch):
    monkeypatch.setenv("PYNONMATCHING_DEBUG", "1")
    corr = compute_correspondence(unit_square, diagonal_q1.mesh, gauss('line', 3))
    assert corr.n_q == 3


def test_locator_built_for_another_mesh(unit_square, diagonal_q1):
    other = SpatialLocator(unit_square.partition(2, 0))
    with pytest.raises(ValueError):
        compute_correspondence(unit_square, diagonal_q1.mesh, gauss('line', 2), locator=other)
