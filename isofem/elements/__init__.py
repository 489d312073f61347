# isofem/elements - Concrete element library
"""
Concrete elements consumed by GeneralAssembler through the
Isoparametric / Element3 interfaces.
"""

from .solid3d import Tetra4, Tetra10, Hexa8, Hexa20
from .plane import Quad4, Quad8, Triangle3, Triangle6, PLANE_DOFS
from .beam import Beam6Dof, SolidProperties, solid_properties
from .quadrature import gauss_1d, uniform_gauss_quad, triangle_quadrature, tetra_quadrature

__all__ = [
    'Tetra4', 'Tetra10', 'Hexa8', 'Hexa20',
    'Quad4', 'Quad8', 'Triangle3', 'Triangle6', 'PLANE_DOFS',
    'Beam6Dof', 'SolidProperties', 'solid_properties',
    'gauss_1d', 'uniform_gauss_quad', 'triangle_quadrature', 'tetra_quadrature',
]
