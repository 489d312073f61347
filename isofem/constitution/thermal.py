# isofem/constitution/thermal.py
"""
Isotropic heat conduction.

The "stiffness" assembled with these laws is the conductivity matrix
K = ∫ Bᵀ·k·B, B being the temperature gradient operator. Elements carry a
single DOF per node (e.g. Quad4(node_dofs=DofsFlag.POS_X)).
"""

from dataclasses import dataclass

import numpy as np

from isofem.kernel.element import Constituter
from isofem.kernel.errors import ConstitutiveError
from .solids import IsoConstitutive
from .strain import gradient_matrix, gradient_matrix_axisymmetric


@dataclass(frozen=True)
class IsotropicConductivity(Constituter):
    """
    Thermal conductivity k, equal in every direction.

    >>> IsotropicConductivity(45).plane().constitutive()
    array([[45.,  0.],
           [ 0., 45.]])
    """
    k: float

    def _diag(self, dims: int) -> np.ndarray:
        if not np.isfinite(self.k):
            raise ConstitutiveError(f"non-finite conductivity {self.k}")
        return np.eye(dims) * self.k

    def constitutive(self) -> np.ndarray:
        return self._diag(3)

    def solid3d(self) -> IsoConstitutive:
        return IsoConstitutive(self._diag(3), gradient_matrix, dims=3, dofs_per_node=1)

    def plane(self) -> IsoConstitutive:
        return IsoConstitutive(self._diag(2), gradient_matrix, dims=2, dofs_per_node=1)

    def axisymmetric(self) -> IsoConstitutive:
        """Radial/axial conduction; each point is weighted by its radius."""
        return IsoConstitutive(self._diag(2), gradient_matrix_axisymmetric, dims=2, dofs_per_node=1)
