# isofem/elements/beam.py
"""
BEAM6DOF: Closed-Form 3D Beam Element
=====================================

A 2-node Euler-Bernoulli beam with 6 DOFs per node
[ux, uy, uz, rx, ry, rz]. The local stiffness is written along the local
x axis (node 0 -> node 1):

    axial     EA/L
    bending   12EI/L^3, 6EI/L^2, 4EI/L, 2EI/L   about local y and z
    torsion   GJ/L

GeneralAssembler.add_element3 rotates it into the global frame when the
element is given local x/y orientation vectors.
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from isofem.kernel.dof import DofsFlag
from isofem.kernel.element import Constituter, Element3
from isofem.kernel.errors import ConfigurationError, ConstitutiveError


@dataclass
class SolidProperties:
    """Engineering constants read back from a 6x6 constitutive matrix."""
    Ex: float
    Ey: float
    Ez: float
    Vxy: float
    Vxz: float
    Vyz: float
    Gyz: float
    Gxz: float
    Gxy: float


def solid_properties(c: Constituter) -> SolidProperties:
    """
    Invert C into the compliance matrix S and read the engineering constants.

    Voigt order [xx, yy, zz, xy, yz, xz] (shear terms at 3, 4, 5).
    """
    C = np.asarray(c.constitutive(), dtype=float)
    if C.shape != (6, 6):
        raise ConfigurationError(f"expected 6x6 constitutive matrix, got {C.shape}")
    try:
        S = np.linalg.inv(C)
    except np.linalg.LinAlgError as e:
        raise ConstitutiveError(f"singular constitutive matrix: {e}") from e
    Ey = 1 / S[1, 1]
    Ez = 1 / S[2, 2]
    return SolidProperties(
        Ex=1 / S[0, 0],
        Ey=Ey,
        Ez=Ez,
        Vxy=-Ey * S[0, 1],
        Vxz=-Ez * S[0, 2],
        Vyz=-Ez * S[1, 2],
        Gxy=1 / S[3, 3],
        Gyz=1 / S[4, 4],
        Gxz=1 / S[5, 5],
    )


@dataclass
class Beam6Dof(Element3):
    """
    3D beam element with 6 DOFs per node.

    Attributes:
    -----------
    A : float
        Cross-sectional area (local yz plane)
    Iy, Iz : float
        Area moments of inertia for bending about local y and z
    J : float
        Torsional constant about local x
    """
    A: float
    Iy: float
    Iz: float
    J: float
    E: Optional[float] = field(default=None)
    G: Optional[float] = field(default=None)

    def node_count(self) -> int:
        return 2

    def dofs(self) -> DofsFlag:
        return DofsFlag.ALL

    def set_constitutive(self, c: Constituter) -> None:
        """
        Take E and G from a 3D material.

        Anisotropic materials are averaged over the three axes.
        """
        props = solid_properties(c)
        self.E = (props.Ex + props.Ey + props.Ez) / 3
        self.G = (props.Gxy + props.Gxz + props.Gyz) / 3

    def stiffness(self, nodes: np.ndarray) -> np.ndarray:
        if self.E is None or self.G is None:
            raise ConfigurationError("beam material not set; call set_constitutive first")
        nodes = np.asarray(nodes, dtype=float)
        if len(nodes) != 2:
            raise ConfigurationError(f"beam needs 2 nodes, got {len(nodes)}")
        L = np.linalg.norm(nodes[1] - nodes[0])
        if L == 0:
            raise ConfigurationError("zero length beam")

        E, G = self.E, self.G
        X = self.A * E / L
        Y4 = 2 * E * self.Iz / L
        Y3 = 2 * Y4
        Y2 = 3 * Y4 / L
        Y1 = 2 * Y2 / L
        Z4 = 2 * E * self.Iy / L
        Z3 = 2 * Z4
        Z2 = 3 * Z4 / L
        Z1 = 2 * Z2 / L
        S = G * self.J / L
        return np.array([
            [X, 0, 0, 0, 0, 0, -X, 0, 0, 0, 0, 0],
            [0, Y1, 0, 0, 0, Y2, 0, -Y1, 0, 0, 0, Y2],
            [0, 0, Z1, 0, -Z2, 0, 0, 0, -Z1, 0, -Z2, 0],
            [0, 0, 0, S, 0, 0, 0, 0, 0, -S, 0, 0],
            [0, 0, -Z2, 0, Z3, 0, 0, 0, Z2, 0, Z4, 0],
            [0, Y2, 0, 0, 0, Y3, 0, -Y2, 0, 0, 0, Y4],
            [-X, 0, 0, 0, 0, 0, X, 0, 0, 0, 0, 0],
            [0, -Y1, 0, 0, 0, -Y2, 0, Y1, 0, 0, 0, -Y2],
            [0, 0, -Z1, 0, Z2, 0, 0, 0, Z1, 0, Z2, 0],
            [0, 0, 0, -S, 0, 0, 0, 0, 0, S, 0, 0],
            [0, 0, -Z2, 0, Z4, 0, 0, 0, Z2, 0, Z3, 0],
            [0, Y2, 0, 0, 0, Y4, 0, -Y2, 0, 0, 0, Y3],
        ], dtype=float)

    def __str__(self) -> str:
        return "BEAM6DOF"
