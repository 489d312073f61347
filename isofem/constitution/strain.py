# isofem/constitution/strain.py
"""
Strain-displacement (B) matrix builders.

Each builder fills dst_B in place from the physical shape function
derivatives dN (d, n) and returns the integration scale factor. Voigt order:

    3D           [exx, eyy, ezz, gxy, gyz, gxz]
    plane        [exx, eyy, gxy]
    axisymmetric [err, ett, ezz, grz]    (x = radius, y = axial)
"""

import numpy as np


def strain_displacement_xyz(dst_B: np.ndarray, elem_nodes: np.ndarray,
                            dN: np.ndarray, N: np.ndarray = None) -> float:
    n = dN.shape[1]
    dst_B.fill(0)
    for i in range(n):
        dx, dy, dz = dN[0, i], dN[1, i], dN[2, i]
        c = 3 * i
        dst_B[0, c] = dx
        dst_B[1, c + 1] = dy
        dst_B[2, c + 2] = dz
        dst_B[3, c] = dy
        dst_B[3, c + 1] = dx
        dst_B[4, c + 1] = dz
        dst_B[4, c + 2] = dy
        dst_B[5, c] = dz
        dst_B[5, c + 2] = dx
    return 1.0


def strain_displacement_plane(dst_B: np.ndarray, elem_nodes: np.ndarray,
                              dN: np.ndarray, N: np.ndarray = None) -> float:
    n = dN.shape[1]
    dst_B.fill(0)
    for i in range(n):
        dx, dy = dN[0, i], dN[1, i]
        c = 2 * i
        dst_B[0, c] = dx
        dst_B[1, c + 1] = dy
        dst_B[2, c] = dy
        dst_B[2, c + 1] = dx
    return 1.0


def strain_displacement_axisymmetric(dst_B: np.ndarray, elem_nodes: np.ndarray,
                                     dN: np.ndarray, N: np.ndarray) -> float:
    """
    Axisymmetric B matrix. Returns the radius at the integration point.

    A point on the axis (radius 0) gives an infinite hoop term; the returned
    scale is then 0 and the assembler integrates nothing there.
    """
    n = dN.shape[1]
    radius = float(np.dot(elem_nodes[:, 0], N))
    dst_B.fill(0)
    for i in range(n):
        dr, dz = dN[0, i], dN[1, i]
        c = 2 * i
        dst_B[0, c] = dr
        dst_B[1, c] = N[i] / radius if radius != 0 else 0.0
        dst_B[2, c + 1] = dz
        dst_B[3, c] = dz
        dst_B[3, c + 1] = dr
    return radius


def gradient_matrix(dst_B: np.ndarray, elem_nodes: np.ndarray,
                    dN: np.ndarray, N: np.ndarray = None) -> float:
    """Scalar field gradient: B is dN itself (conduction, one DOF per node)."""
    dst_B[:, :] = dN
    return 1.0


def gradient_matrix_axisymmetric(dst_B: np.ndarray, elem_nodes: np.ndarray,
                                 dN: np.ndarray, N: np.ndarray) -> float:
    """Radial/axial gradient weighted by the radius."""
    dst_B[:, :] = dN
    return float(np.dot(elem_nodes[:, 0], N))
