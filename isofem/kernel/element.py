# isofem/kernel/element.py
"""
ELEMENT AND CONSTITUTIVE INTERFACES
===================================

PURPOSE:
--------
The assembler never looks at a concrete element or material class. It only
talks to the capabilities declared here:

    Element         node_count(), dofs()
    Isoparametric   + isoparametric_nodes(), basis(), basis_diff(), quadrature()
    Element3        + stiffness(nodes)   (closed-form local stiffness)

    Constituter     constitutive()       (material matrix C)
    IsoConstituter  + set_strain_displacement(B, elem_nodes, dN, N) -> scale

ARRAY CONVENTIONS:
------------------
For an element with n nodes integrated over d reference dimensions:

    basis(p)          shape (n,)
    basis_diff(p)     shape (d, n)     row k = dN/d(xi_k)
    quadrature()      positions (q, d), weights (q,)

Reference points may be passed with more components than the element
needs (the assembler probes with a 3-vector); elements read only the
first d components.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np

from .dof import DofsFlag


class Element(ABC):
    """Anything the assembler can scatter into the global matrix."""

    @abstractmethod
    def node_count(self) -> int:
        """Number of nodes of the element."""

    @abstractmethod
    def dofs(self) -> DofsFlag:
        """Degrees of freedom carried by each node of the element."""


class Isoparametric(Element):
    """Element whose geometry and field share the same shape functions."""

    @abstractmethod
    def isoparametric_nodes(self) -> np.ndarray:
        """Node positions in reference coordinates, shape (n, d)."""

    @abstractmethod
    def basis(self, point) -> np.ndarray:
        """Shape functions evaluated at a reference point, shape (n,)."""

    @abstractmethod
    def basis_diff(self, point) -> np.ndarray:
        """Shape function derivatives at a reference point, shape (d, n)."""

    @abstractmethod
    def quadrature(self) -> Tuple[np.ndarray, np.ndarray]:
        """Integration points (q, d) and weights (q,)."""

    @abstractmethod
    def reference_measure(self) -> float:
        """Length/area/volume the quadrature weights add up to."""

    def spatial_dims(self) -> int:
        return int(np.shape(self.basis_diff(np.zeros(3)))[0])


class Element3(Element):
    """Non-isoparametric 3D element supplying its own stiffness matrix."""

    @abstractmethod
    def stiffness(self, nodes: np.ndarray) -> np.ndarray:
        """
        Local stiffness matrix for an element with the given node positions.

        `nodes` has shape (node_count, 3). The result is square with side
        node_count * dofs().count().
        """


class Constituter(ABC):
    """Material law exposing its constitutive matrix."""

    @abstractmethod
    def constitutive(self) -> np.ndarray:
        """
        Square constitutive matrix C.

        Raises ConstitutiveError when the parameters leave C undefined.
        """


class IsoConstituter(Constituter):
    """Constituter that also knows how to build its strain-displacement matrix."""

    @abstractmethod
    def set_strain_displacement(self, dst_B: np.ndarray, elem_nodes: np.ndarray,
                                dN: np.ndarray, N: np.ndarray) -> float:
        """
        Fill dst_B (dimC, n*dofs_per_node) in place.

        dN holds the physical shape function derivatives (d, n), N the
        shape function values (n,) and elem_nodes the element coordinates
        (n, d). Returns the factor that multiplies the integration weight
        (1 for Cartesian and plane laws, the radius for axisymmetry).
        """

    def layout(self) -> Optional[Tuple[int, int]]:
        """
        (spatial dims, dofs per node) the B builder is written for.

        None means unknown; the assembler then trusts the caller.
        """
        return None
