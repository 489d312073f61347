# isofem/elements/plane.py
"""
2D ISOPARAMETRIC ELEMENTS
=========================

Used for plane stress, plane strain, axisymmetric (x = radius, y = axis)
and 2D conduction problems.

    Quad4       bilinear quadrilateral,   [-1, 1]^2, 2x2 Gauss by default
    Quad8       serendipity quadrilateral, 3x3 Gauss by default
    Triangle3   linear triangle,          corners (0,0) (1,0) (0,1)
    Triangle6   quadratic triangle,       corners then edge midpoints 0-1, 1-2, 2-0
"""

from dataclasses import dataclass

import numpy as np

from isofem.kernel.dof import DofsFlag
from isofem.kernel.element import Isoparametric
from .quadrature import triangle_quadrature, uniform_gauss_quad
from .shape import lagrange_linear, serendipity, simplex_linear, simplex_quadratic

PLANE_DOFS = DofsFlag.POS_X | DofsFlag.POS_Y

_QUAD4_NODES = np.array([
    [-1, -1],
    [1, -1],
    [1, 1],
    [-1, 1],
], dtype=float)

_QUAD8_NODES = np.array([
    [-1, -1],
    [1, -1],
    [1, 1],
    [-1, 1],
    [0, -1],
    [1, 0],
    [0, 1],
    [-1, 0],
], dtype=float)

_TRIANGLE_CORNERS = np.array([
    [0, 0],
    [1, 0],
    [0, 1],
], dtype=float)

_TRIANGLE6_EDGES = [(0, 1), (1, 2), (2, 0)]


@dataclass(frozen=True)
class Quad4(Isoparametric):
    """
    Bilinear quadrilateral of 4 nodes.

    Attributes:
    -----------
    quadrature_order : int
        Gauss points per axis (default 2)
    node_dofs : DofsFlag
        DOFs per node; POS_X | POS_Y by default, POS_X alone for conduction
    """
    quadrature_order: int = 2
    node_dofs: DofsFlag = PLANE_DOFS

    def node_count(self) -> int:
        return 4

    def dofs(self) -> DofsFlag:
        return self.node_dofs

    def isoparametric_nodes(self) -> np.ndarray:
        return _QUAD4_NODES.copy()

    def basis(self, point) -> np.ndarray:
        return lagrange_linear(_QUAD4_NODES, point)[0]

    def basis_diff(self, point) -> np.ndarray:
        return lagrange_linear(_QUAD4_NODES, point)[1]

    def quadrature(self):
        q = self.quadrature_order
        return uniform_gauss_quad(q, q)

    def reference_measure(self) -> float:
        return 4.0

    def __str__(self) -> str:
        return f"QUAD4(order={self.quadrature_order})"


@dataclass(frozen=True)
class Quad8(Isoparametric):
    """Serendipity quadrilateral: 4 corner nodes and 4 edge nodes."""
    quadrature_order: int = 3

    def node_count(self) -> int:
        return 8

    def dofs(self) -> DofsFlag:
        return PLANE_DOFS

    def isoparametric_nodes(self) -> np.ndarray:
        return _QUAD8_NODES.copy()

    def basis(self, point) -> np.ndarray:
        return serendipity(_QUAD8_NODES, point)[0]

    def basis_diff(self, point) -> np.ndarray:
        return serendipity(_QUAD8_NODES, point)[1]

    def quadrature(self):
        q = self.quadrature_order
        return uniform_gauss_quad(q, q)

    def reference_measure(self) -> float:
        return 4.0

    def __str__(self) -> str:
        return f"QUAD8(order={self.quadrature_order})"


@dataclass(frozen=True)
class Triangle3(Isoparametric):
    """Linear (constant strain) triangle of 3 nodes."""
    quadrature_order: int = 1

    def node_count(self) -> int:
        return 3

    def dofs(self) -> DofsFlag:
        return PLANE_DOFS

    def isoparametric_nodes(self) -> np.ndarray:
        return _TRIANGLE_CORNERS.copy()

    def basis(self, point) -> np.ndarray:
        return simplex_linear(point, 2)[0]

    def basis_diff(self, point) -> np.ndarray:
        return simplex_linear(point, 2)[1]

    def quadrature(self):
        return triangle_quadrature(self.quadrature_order)

    def reference_measure(self) -> float:
        return 0.5

    def __str__(self) -> str:
        return f"TRI3(order={self.quadrature_order})"


@dataclass(frozen=True)
class Triangle6(Isoparametric):
    """Quadratic triangle: 3 corner nodes and 3 edge midpoint nodes."""
    quadrature_order: int = 2

    def node_count(self) -> int:
        return 6

    def dofs(self) -> DofsFlag:
        return PLANE_DOFS

    def isoparametric_nodes(self) -> np.ndarray:
        edges = [(_TRIANGLE_CORNERS[a] + _TRIANGLE_CORNERS[b]) / 2 for a, b in _TRIANGLE6_EDGES]
        return np.vstack([_TRIANGLE_CORNERS, edges])

    def basis(self, point) -> np.ndarray:
        return simplex_quadratic(point, 2, _TRIANGLE6_EDGES)[0]

    def basis_diff(self, point) -> np.ndarray:
        return simplex_quadratic(point, 2, _TRIANGLE6_EDGES)[1]

    def quadrature(self):
        return triangle_quadrature(self.quadrature_order)

    def reference_measure(self) -> float:
        return 0.5

    def __str__(self) -> str:
        return f"TRI6(order={self.quadrature_order})"
