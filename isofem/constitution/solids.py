# isofem/constitution/solids.py
"""
SOLID MATERIALS: Elastic Constitutive Laws
==========================================

    Isotropic(E, poisson)
        constitutive()   6x6 3D stiffness
        solid3d()        IsoConstituter, 6x6, Cartesian B
        plane_stress()   IsoConstituter, 3x3, plane B
        plane_strain()   IsoConstituter, 3x3, plane B
        axisymmetric()   IsoConstituter, 4x4, axisymmetric B (scale = radius)

    TransverselyIsotropic(ex, exy, gxy, poisson_xy, poisson_yz)
        X is the longitudinal (fibre) direction.

Example (room temperature steel):
    >>> steel = Isotropic(E=200e9, poisson=0.3)
    >>> steel.shear_modulus()
    76923076923.07692
"""

import math
from dataclasses import dataclass
from typing import Callable

import numpy as np

from isofem.kernel.element import Constituter, IsoConstituter
from isofem.kernel.errors import ConstitutiveError
from .strain import (
    strain_displacement_axisymmetric,
    strain_displacement_plane,
    strain_displacement_xyz,
)


class IsoConstitutive(IsoConstituter):
    """
    A constitutive matrix paired with its strain-displacement builder.

    A deferred ConstitutiveError is raised from constitutive(), which the
    assembler calls before integrating anything.
    """

    def __init__(self, C: np.ndarray, strain: Callable, error: Exception = None,
                 dims: int = None, dofs_per_node: int = None):
        self._C = C
        self._strain = strain
        self._error = error
        self._layout = (dims, dofs_per_node) if dims is not None else None

    def constitutive(self) -> np.ndarray:
        if self._error is not None:
            raise self._error
        return self._C.copy()

    def set_strain_displacement(self, dst_B, elem_nodes, dN, N) -> float:
        return self._strain(dst_B, elem_nodes, dN, N)

    def layout(self):
        return self._layout


def _finite(name: str, *values: float) -> None:
    for v in values:
        if math.isnan(v) or math.isinf(v):
            raise ConstitutiveError(f"{name}: material parameters give a singular constitutive matrix")


@dataclass(frozen=True)
class Isotropic(Constituter):
    """
    Material with no preferential direction.

    Attributes:
    -----------
    E : float
        Young's modulus
    poisson : float
        Poisson ratio (nu). nu = 0.5 and nu = -1 are rejected.
    """
    E: float
    poisson: float

    def shear_modulus(self) -> float:
        return self.E / (2 + 2 * self.poisson)

    def lame_lambda(self) -> float:
        denom = (1 + self.poisson) * (1 - 2 * self.poisson)
        if denom == 0:
            return math.inf
        return self.E * self.poisson / denom

    def constitutive(self) -> np.ndarray:
        # (1 + nu)(1 - 2nu) = 0 covers both nu = -1 and nu = 0.5
        lam = self.lame_lambda()
        _finite("Isotropic", lam)
        G = self.shear_modulus()
        C = np.zeros((6, 6))
        C[:3, :3] = lam
        C[[0, 1, 2], [0, 1, 2]] = lam + 2 * G
        C[[3, 4, 5], [3, 4, 5]] = G
        return C

    def _iso(self, build: Callable[[], np.ndarray], strain: Callable, dims: int) -> IsoConstitutive:
        try:
            return IsoConstitutive(build(), strain, dims=dims, dofs_per_node=dims)
        except ConstitutiveError as e:
            return IsoConstitutive(None, strain, error=e, dims=dims, dofs_per_node=dims)

    def solid3d(self) -> IsoConstitutive:
        return self._iso(self.constitutive, strain_displacement_xyz, 3)

    def plane_stress(self) -> IsoConstitutive:
        def build():
            nu = self.poisson
            if nu * nu == 1:
                raise ConstitutiveError("plane stress undefined for poisson = +-1")
            f = self.E / (1 - nu * nu)
            return np.array([
                [f, f * nu, 0],
                [f * nu, f, 0],
                [0, 0, f * (1 - nu) / 2],
            ])
        return self._iso(build, strain_displacement_plane, 2)

    def plane_strain(self) -> IsoConstitutive:
        def build():
            nu = self.poisson
            denom = (1 + nu) * (1 - 2 * nu)
            if denom == 0:
                raise ConstitutiveError("plane strain undefined for poisson = 0.5 or -1")
            f = self.E / denom
            return np.array([
                [f * (1 - nu), f * nu, 0],
                [f * nu, f * (1 - nu), 0],
                [0, 0, f * (1 - 2 * nu) / 2],
            ])
        return self._iso(build, strain_displacement_plane, 2)

    def axisymmetric(self) -> IsoConstitutive:
        def build():
            nu = self.poisson
            denom = (1 + nu) * (1 - 2 * nu)
            if denom == 0 or nu == 1:
                raise ConstitutiveError("axisymmetric law undefined for poisson = 0.5, 1 or -1")
            f = self.E * (1 - nu) / denom
            a = f * nu / (1 - nu)
            g = f * (1 - 2 * nu) / (2 * (1 - nu))
            return np.array([
                [f, a, a, 0],
                [a, f, a, 0],
                [a, a, f, 0],
                [0, 0, 0, g],
            ])
        return self._iso(build, strain_displacement_axisymmetric, 2)


@dataclass(frozen=True)
class TransverselyIsotropic(Constituter):
    """
    Transversely isotropic material, X being the longitudinal direction.

    i.e. AS4 carbon fibre: ex=235GPa, exy=14GPa, gxy=28GPa, vxy=0.2, vyz=0.25

    Attributes:
    -----------
    ex : float
        Longitudinal Young's modulus (E_1)
    exy : float
        Transverse Young's modulus, YZ plane (E_2)
    gxy : float
        Longitudinal shear modulus (equal to Gxz)
    poisson_xy : float
        Transverse contraction for a load along X
    poisson_yz : float
        Contraction along Z for a load along Y
    """
    ex: float
    exy: float
    gxy: float
    poisson_xy: float
    poisson_yz: float

    def constitutive(self) -> np.ndarray:
        tol = 1e-10
        Ex, Exy, Gxy = self.ex, self.exy, self.gxy
        vxy, vyz = self.poisson_xy, self.poisson_yz
        vxy2 = vxy * vxy
        div1 = 2 * Exy * vxy2 - Ex + Ex * vyz
        div2 = 2 * Exy * vxy2 * vyz + 2 * Exy * vxy2 + Ex * vyz * vyz - Ex
        if abs(div1) < tol or abs(div2) < tol:
            raise ConstitutiveError(
                f"singular transversely isotropic compliance (divisors {div1:.3g}, {div2:.3g})"
            )
        c11 = (Ex * Ex * vyz - Ex * Ex) / div1
        c12 = -(Ex * Exy * vxy) / div1
        c22 = -(Exy * (-Exy * vxy2 + Ex)) / div2
        c23 = -(Exy * (Exy * vxy2 + Ex * vyz)) / div2
        Gyz = Exy / (2 * (vyz + 1))
        return np.array([
            [c11, c12, c12, 0, 0, 0],
            [c12, c22, c23, 0, 0, 0],
            [c12, c23, c22, 0, 0, 0],
            [0, 0, 0, Gxy, 0, 0],
            [0, 0, 0, 0, Gyz, 0],
            [0, 0, 0, 0, 0, Gxy],
        ])

    def solid3d(self) -> IsoConstitutive:
        try:
            return IsoConstitutive(self.constitutive(), strain_displacement_xyz, dims=3, dofs_per_node=3)
        except ConstitutiveError as e:
            return IsoConstitutive(None, strain_displacement_xyz, error=e, dims=3, dofs_per_node=3)
