# isofem/constitution - Material laws
"""
Constitutive laws consumed by GeneralAssembler through the
Constituter / IsoConstituter interfaces.
"""

from .strain import (
    strain_displacement_xyz,
    strain_displacement_plane,
    strain_displacement_axisymmetric,
    gradient_matrix,
    gradient_matrix_axisymmetric,
)
from .solids import IsoConstitutive, Isotropic, TransverselyIsotropic
from .thermal import IsotropicConductivity

__all__ = [
    'strain_displacement_xyz', 'strain_displacement_plane',
    'strain_displacement_axisymmetric', 'gradient_matrix', 'gradient_matrix_axisymmetric',
    'IsoConstitutive', 'Isotropic', 'TransverselyIsotropic', 'IsotropicConductivity',
]
