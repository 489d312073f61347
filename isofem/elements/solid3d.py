# isofem/elements/solid3d.py
"""
3D ISOPARAMETRIC SOLID ELEMENTS
===============================

    Tetra4    linear tetrahedron,          reference corners (0,0,0) (1,0,0) (0,1,0) (0,0,1)
    Tetra10   quadratic tetrahedron,       4 corners + 6 edge midpoints
    Hexa8     trilinear hexahedron,        [-1, 1]^3
    Hexa20    serendipity hexahedron,      8 corners + 12 edge midpoints

Tetrahedral quadrature weights add up to 1 (see quadrature.py), so their
reference_measure() is 1.
"""

from dataclasses import dataclass

import numpy as np

from isofem.kernel.dof import DofsFlag
from isofem.kernel.element import Isoparametric
from .quadrature import tetra_quadrature, uniform_gauss_quad
from .shape import lagrange_linear, serendipity, simplex_linear, simplex_quadratic

_TETRA_CORNERS = np.array([
    [0, 0, 0],
    [1, 0, 0],
    [0, 1, 0],
    [0, 0, 1],
], dtype=float)

# Edge nodes of Tetra10 as (corner, corner) pairs
_TETRA10_EDGES = [(0, 1), (0, 2), (0, 3), (1, 2), (2, 3), (1, 3)]

_HEXA8_NODES = np.array([
    [-1, -1, -1],
    [1, -1, -1],
    [1, 1, -1],
    [-1, 1, -1],
    [-1, -1, 1],
    [1, -1, 1],
    [1, 1, 1],
    [-1, 1, 1],
], dtype=float)

_HEXA20_NODES = np.array([
    [-1, -1, -1],
    [-1, 1, -1],
    [1, 1, -1],
    [1, -1, -1],
    [-1, -1, 1],
    [-1, 1, 1],
    [1, 1, 1],
    [1, -1, 1],
    [-1, 0, -1],
    [0, 1, -1],
    [1, 0, -1],
    [0, -1, -1],
    [-1, 0, 1],
    [0, 1, 1],
    [1, 0, 1],
    [0, -1, 1],
    [-1, -1, 0],
    [-1, 1, 0],
    [1, 1, 0],
    [1, -1, 0],
], dtype=float)


@dataclass(frozen=True)
class Tetra4(Isoparametric):
    """
    Linear strain tetrahedron of 4 nodes.

    Attributes:
    -----------
    node_dofs : DofsFlag
        DOFs per node; POS by default, a single DOF for conduction
    """
    node_dofs: DofsFlag = DofsFlag.POS

    def node_count(self) -> int:
        return 4

    def dofs(self) -> DofsFlag:
        return self.node_dofs

    def isoparametric_nodes(self) -> np.ndarray:
        return _TETRA_CORNERS.copy()

    def basis(self, point) -> np.ndarray:
        return simplex_linear(point, 3)[0]

    def basis_diff(self, point) -> np.ndarray:
        return simplex_linear(point, 3)[1]

    def quadrature(self):
        return tetra_quadrature(1)

    def reference_measure(self) -> float:
        return 1.0

    def __str__(self) -> str:
        return "TETRA4"


@dataclass(frozen=True)
class Tetra10(Isoparametric):
    """Quadratic strain tetrahedron: 4 corner nodes and 6 edge nodes."""

    def node_count(self) -> int:
        return 10

    def dofs(self) -> DofsFlag:
        return DofsFlag.POS

    def isoparametric_nodes(self) -> np.ndarray:
        edges = [(_TETRA_CORNERS[a] + _TETRA_CORNERS[b]) / 2 for a, b in _TETRA10_EDGES]
        return np.vstack([_TETRA_CORNERS, edges])

    def basis(self, point) -> np.ndarray:
        return simplex_quadratic(point, 3, _TETRA10_EDGES)[0]

    def basis_diff(self, point) -> np.ndarray:
        return simplex_quadratic(point, 3, _TETRA10_EDGES)[1]

    def quadrature(self):
        return tetra_quadrature(2)

    def reference_measure(self) -> float:
        return 1.0

    def __str__(self) -> str:
        return "TETRA10"


@dataclass(frozen=True)
class Hexa8(Isoparametric):
    """
    Trilinear hexahedron of 8 nodes.

    Attributes:
    -----------
    quadrature_order : int
        Gauss points per axis (default 2, i.e. 2x2x2)
    node_dofs : DofsFlag
        DOFs per node; POS by default
    """
    quadrature_order: int = 2
    node_dofs: DofsFlag = DofsFlag.POS

    def node_count(self) -> int:
        return 8

    def dofs(self) -> DofsFlag:
        return self.node_dofs

    def isoparametric_nodes(self) -> np.ndarray:
        return _HEXA8_NODES.copy()

    def basis(self, point) -> np.ndarray:
        return lagrange_linear(_HEXA8_NODES, point)[0]

    def basis_diff(self, point) -> np.ndarray:
        return lagrange_linear(_HEXA8_NODES, point)[1]

    def quadrature(self):
        q = self.quadrature_order
        return uniform_gauss_quad(q, q, q)

    def reference_measure(self) -> float:
        return 8.0

    def __str__(self) -> str:
        return f"HEXA8(order={self.quadrature_order})"


@dataclass(frozen=True)
class Hexa20(Isoparametric):
    """Serendipity quadratic hexahedron: 8 corner nodes and 12 edge nodes."""
    quadrature_order: int = 3

    def node_count(self) -> int:
        return 20

    def dofs(self) -> DofsFlag:
        return DofsFlag.POS

    def isoparametric_nodes(self) -> np.ndarray:
        return _HEXA20_NODES.copy()

    def basis(self, point) -> np.ndarray:
        return serendipity(_HEXA20_NODES, point)[0]

    def basis_diff(self, point) -> np.ndarray:
        return serendipity(_HEXA20_NODES, point)[1]

    def quadrature(self):
        q = self.quadrature_order
        return uniform_gauss_quad(q, q, q)

    def reference_measure(self) -> float:
        return 8.0

    def __str__(self) -> str:
        return f"HEXA20(order={self.quadrature_order})"
