"""pynonmatching.io.visualization"""
import numpy as np
from matplotlib.collections import LineCollection, PolyCollection
import matplotlib.pyplot as plt
from typing import Iterable, Optional

# Corner order that walks the boundary of each 2-D cell
_POLYGON_ORDER = {
    "quad": [0, 1, 3, 2],
    "tri": [0, 1, 2],
}

_COLORS = {
    "background": "black",
    "immersed": "tab:blue",
    "touched": (1.0, 0.55, 0.0, 0.35),
    "matched": "tab:green",
    "unmatched": "tab:red",
}


def _cell_polys(mesh, cells: Optional[Iterable] = None):
    """Corner polygons (in boundary order) of the given cells of a 2-D mesh."""
    order = _POLYGON_ORDER[mesh.cell_type]
    ids = range(mesh.n_cells) if cells is None else (int(c) for c in cells)
    return [mesh.cell_vertices(c)[order, :2] for c in ids]


def _immersed_artist(mesh, color):
    if mesh.cell_type == "line":
        segs = [mesh.cell_vertices(c)[:, :2] for c in range(mesh.n_cells)]
        return LineCollection(segs, colors=color, linewidths=2.0, zorder=5)
    return PolyCollection(_cell_polys(mesh), facecolors="none", edgecolors=color,
                          linewidths=1.5, zorder=5)


def plot_coupling(background_mesh, immersed_mesh, *, correspondence=None, points=None,
                  locations=None, ax=None, show=False, title="Non-matching coupling"):
    """
    Draw a 2-D background mesh with an immersed mesh on top.

    Args:
        background_mesh (Mesh): Triangles or quadrilaterals in 2-D.
        immersed_mesh (Mesh): Lines, triangles or quadrilaterals in 2-D.
        correspondence (Correspondence, optional): Background cells touched by
            the immersed mesh are filled.
        points (np.ndarray, optional): Immersed quadrature points (n, 2).
        locations (PointLocations, optional): Colours *points* by whether
            they were located.
        ax (matplotlib.axes.Axes, optional): Axes to draw on.
        show (bool): Call ``plt.show()`` at the end.

    Returns:
        matplotlib.axes.Axes
    """
    if background_mesh.spacedim != 2 or background_mesh.cell_type not in _POLYGON_ORDER:
        raise ValueError("plot_coupling draws 2-D triangle or quadrilateral background meshes only.")
    if ax is None:
        _, ax = plt.subplots(figsize=(7, 7))
    ax.set_aspect('equal')
    ax.set_title(title, fontsize=10)

    ax.add_collection(PolyCollection(_cell_polys(background_mesh), facecolors="none",
                                     edgecolors=_COLORS["background"], linewidths=0.8, zorder=1))
    if correspondence is not None:
        touched = sorted(correspondence.touched_cells())
        if touched:
            ax.add_collection(PolyCollection(_cell_polys(background_mesh, touched),
                                             facecolors=_COLORS["touched"], edgecolors="none",
                                             zorder=0))
    ax.add_collection(_immersed_artist(immersed_mesh, _COLORS["immersed"]))

    if points is not None:
        points = np.asarray(points)
        if locations is None:
            ax.plot(points[:, 0], points[:, 1], 'o', color=_COLORS["matched"], ms=3, zorder=6)
        else:
            hit = locations.cells >= 0
            ax.plot(points[hit, 0], points[hit, 1], 'o', color=_COLORS["matched"],
                    ms=3, zorder=6, label="located")
            ax.plot(points[~hit, 0], points[~hit, 1], 'x', color=_COLORS["unmatched"],
                    ms=4, zorder=6, label="outside")
            ax.legend(loc="best", fontsize=8)

    ax.autoscale_view()
    if show:
        plt.show()
    return ax
