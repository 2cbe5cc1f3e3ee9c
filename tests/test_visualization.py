import matplotlib.pyplot as plt
import pytest

from pynonmatching.coupling import SpatialLocator, collect_quadrature_points, compute_correspondence
from pynonmatching.integration import gauss
from pynonmatching.io.visualization import plot_coupling


def test_plot_coupling(unit_square, diagonal_q1):
    rule = gauss('line', 2)
    batch = collect_quadrature_points(diagonal_q1.mesh, rule)
    locations = SpatialLocator(unit_square).locate(batch.points)
    corr = compute_correspondence(unit_square, diagonal_q1.mesh, rule)
    ax = plot_coupling(unit_square, diagonal_q1.mesh, correspondence=corr,
                       points=batch.points, locations=locations)
    # background, touched cells and immersed mesh
    assert len(ax.collections) == 3
    plt.close(ax.figure)


def test_plot_rejects_3d(diagonal_q1):
    from pynonmatching.core import Mesh
    from pynonmatching.utils.meshgen import structured_hex
    nodes, hexes = structured_hex(1.0, 1.0, 1.0, nx=1, ny=1, nz=1)
    with pytest.raises(ValueError):
        plot_coupling(Mesh(nodes, hexes, cell_type='hex'), diagonal_q1.mesh)
