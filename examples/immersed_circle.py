#!/usr/bin/env python
# coding: utf-8

# # Coupling a circle to a square background mesh
#
# A closed polyline approximating a circle of radius 0.3 is immersed in a
# Q1 discretization of the unit square. The coupling matrix sums to the
# polyline length, and the row sums give the trace of the constant function.

import logging

import matplotlib.pyplot as plt
import numpy as np

from pynonmatching.core.mesh import Mesh
from pynonmatching.core.dofhandler import DofHandler
from pynonmatching.fem import FiniteElement
from pynonmatching.integration import gauss
from pynonmatching.coupling import (SpatialLocator, build_coupling_mass_matrix,
                                    build_coupling_sparsity, collect_quadrature_points,
                                    compute_correspondence)
from pynonmatching.io.visualization import plot_coupling
from pynonmatching.utils.meshgen import polyline, structured_quad

logging.basicConfig(level=logging.INFO)

# --- Background: Q1 on the unit square ---
nodes, quads = structured_quad(1.0, 1.0, nx=12, ny=12)
background = DofHandler(Mesh(nodes, quads, cell_type='quad'), FiniteElement('quad', 1))

# --- Immersed: circle of radius 0.3 around (0.5, 0.5) ---
theta = np.linspace(0.0, 2 * np.pi, 40, endpoint=False)
circle_nodes = np.column_stack([0.5 + 0.3 * np.cos(theta), 0.5 + 0.3 * np.sin(theta)])
nodes, segs = polyline(circle_nodes, closed=True)
immersed = DofHandler(Mesh(nodes, segs, cell_type='line'), FiniteElement('line', 1))

rule = gauss('line', 3)
locator = SpatialLocator(background.mesh)

sparsity = build_coupling_sparsity(background, immersed, rule, locator=locator)
M = build_coupling_mass_matrix(background, immersed, rule, locator=locator).tocsr()

length = np.linalg.norm(np.diff(np.vstack([circle_nodes, circle_nodes[:1]]), axis=0), axis=1).sum()
print(f"Coupling matrix {M.shape}, {M.nnz} nonzeros, pattern holds {sparsity.n_nonzero_elements()}")
print(f"Sum of entries {M.sum():.12f}, polyline length {length:.12f}")

# --- Plot ---
batch = collect_quadrature_points(immersed.mesh, rule)
corr = compute_correspondence(background.mesh, immersed.mesh, rule, locator=locator)
plot_coupling(background.mesh, immersed.mesh, correspondence=corr, points=batch.points,
              locations=locator.locate(batch.points))
plt.show()
