# isofem/elements/shape.py
"""
Shape function families shared by the concrete elements.

All functions return (N, dN): N of shape (n,), dN of shape (d, n) with
row k the derivative with respect to reference axis k.
"""

import numpy as np


def _point(point, dims: int) -> np.ndarray:
    return np.asarray(point, dtype=float).ravel()[:dims]


def lagrange_linear(corners: np.ndarray, point):
    """
    Multilinear shape functions of a [-1, 1]^d cell with the given corners.

        N_i = 1/2^d * prod_k (1 + x_k c_ik)
    """
    n, d = corners.shape
    x = _point(point, d)
    factors = 1 + corners * x          # (n, d)
    N = np.prod(factors, axis=1) / 2 ** d
    dN = np.empty((d, n))
    for a in range(d):
        others = np.prod(np.delete(factors, a, axis=1), axis=1)
        dN[a] = corners[:, a] * others / 2 ** d
    return N, dN


def serendipity(nodes: np.ndarray, point):
    """
    Quadratic serendipity functions (Quad8, Hexa20).

    Corner nodes (no zero coordinate):
        N = 1/2^d * prod(1 + x c) * (sum(x c) - (d - 1))
    Edge nodes (coordinate m is zero):
        N = 1/2^(d-1) * (1 - x_m^2) * prod_{k != m}(1 + x_k c_k)
    """
    n, d = nodes.shape
    x = _point(point, d)
    N = np.empty(n)
    dN = np.empty((d, n))
    for i, c in enumerate(nodes):
        f = 1 + c * x
        zero = np.flatnonzero(c == 0)
        if len(zero) == 0:
            s = np.dot(x, c) - (d - 1)
            p = np.prod(f)
            N[i] = p * s / 2 ** d
            for a in range(d):
                pa = np.prod(np.delete(f, a))
                dN[a, i] = (c[a] * pa * s + p * c[a]) / 2 ** d
        else:
            m = zero[0]
            g = 1 - x[m] ** 2
            rest = np.delete(f, m)
            N[i] = g * np.prod(rest) / 2 ** (d - 1)
            for a in range(d):
                if a == m:
                    dN[a, i] = -2 * x[m] * np.prod(rest) / 2 ** (d - 1)
                else:
                    pa = np.prod(np.delete(f, [a, m]))
                    dN[a, i] = g * c[a] * pa / 2 ** (d - 1)
    return N, dN


def _barycentric(point, dims: int):
    x = _point(point, dims)
    L = np.concatenate([[1 - x.sum()], x])
    dL = np.hstack([-np.ones((dims, 1)), np.eye(dims)])   # (d, d+1)
    return L, dL


def simplex_linear(point, dims: int):
    """Linear triangle/tetrahedron: N_i = L_i."""
    L, dL = _barycentric(point, dims)
    return L, dL


def simplex_quadratic(point, dims: int, edges):
    """
    Quadratic triangle/tetrahedron.

    Corners: N_i = L_i (2 L_i - 1). Edge (a, b): N = 4 L_a L_b.
    Nodes are ordered corners first, then `edges`.
    """
    L, dL = _barycentric(point, dims)
    nc = dims + 1
    N = np.empty(nc + len(edges))
    dN = np.empty((dims, nc + len(edges)))
    N[:nc] = L * (2 * L - 1)
    dN[:, :nc] = dL * (4 * L - 1)
    for k, (a, b) in enumerate(edges):
        N[nc + k] = 4 * L[a] * L[b]
        dN[:, nc + k] = 4 * (L[b] * dL[:, a] + L[a] * dL[:, b])
    return N, dN
