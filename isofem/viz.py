# isofem/viz.py
"""
VISUALIZATION: Sparsity Patterns and 2D Meshes
==============================================

Two quick looks at a model:

- plot_sparsity: where the global matrix has entries. Bandwidth and
  element coupling show up immediately; a row with no entries means an
  unconnected node.
- plot_mesh_2d: element outlines of a plane/axisymmetric mesh, optionally
  coloured by a per-element value (e.g. von Mises stress).
"""

from typing import Optional, Sequence

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.collections import PolyCollection

from .kernel.sparse import SparseMatrix


def plot_sparsity(K, ax: Optional[plt.Axes] = None, markersize: float = 2.0) -> plt.Axes:
    """
    Spy plot of a global matrix (SparseMatrix, scipy sparse or dense).

    Returns the axes drawn on.
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(5, 5))
    if isinstance(K, SparseMatrix):
        K = K.tocsr()
    ax.spy(K, markersize=markersize)
    ax.set_title(f"{K.shape[0]}x{K.shape[1]}")
    return ax


def plot_mesh_2d(
    nodes,
    connectivity: Sequence[Sequence[int]],
    ax: Optional[plt.Axes] = None,
    values: Optional[Sequence[float]] = None,
    cmap: str = "viridis",
    show_nodes: bool = True,
) -> plt.Axes:
    """
    Draw element outlines of a 2D mesh.

    Parameters:
    -----------
    nodes : array-like, shape (N, 2+)
        Node coordinates; only x and y are used
    connectivity : sequence of node index lists
        Corner nodes in boundary order (Quad8/Triangle6 midside nodes
        should be left out)
    values : sequence of float, optional
        One value per element; fills the elements with a colour map
    """
    nodes = np.asarray(nodes, dtype=float)[:, :2]
    if ax is None:
        _, ax = plt.subplots(figsize=(6, 6))

    polys = [nodes[list(element)] for element in connectivity]
    coll = PolyCollection(polys, edgecolors="black", linewidths=0.8)
    if values is not None:
        values = np.asarray(values, dtype=float)
        assert len(values) == len(polys), \
            f"{len(values)} values for {len(polys)} elements"
        coll.set_array(values)
        coll.set_cmap(cmap)
        plt.colorbar(coll, ax=ax)
    else:
        coll.set_facecolor("none")
    ax.add_collection(coll)

    if show_nodes:
        ax.plot(nodes[:, 0], nodes[:, 1], "k.", markersize=3)
    ax.autoscale_view()
    ax.set_aspect('equal')
    return ax
