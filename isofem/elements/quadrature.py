# isofem/elements/quadrature.py
"""
Quadrature rules on reference elements.

    uniform_gauss_quad(2, 2)     2x2 Gauss-Legendre on [-1, 1]^2
    triangle_quadrature(order)   unit right triangle, weights sum to 1/2
    tetra_quadrature(order)      unit tetrahedron, weights sum to 1

Tetrahedral weights are normalized to 1 rather than to the reference volume
(1/6), so tetrahedral stiffness matrices carry that factor of 6.
"""

import itertools
from typing import Tuple

import numpy as np


def gauss_1d(n: int) -> Tuple[np.ndarray, np.ndarray]:
    """Gauss-Legendre points and weights on [-1, 1]."""
    if n < 1:
        raise ValueError(f"Gauss quadrature order must be positive, got {n}")
    return np.polynomial.legendre.leggauss(n)


def uniform_gauss_quad(*orders: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Tensor-product Gauss rule with orders[k] points along axis k.

    Returns positions (prod(orders), len(orders)) and weights. Points are
    ordered with the last axis varying fastest.
    """
    rules = [gauss_1d(n) for n in orders]
    positions = []
    weights = []
    for combo in itertools.product(*[range(n) for n in orders]):
        positions.append([rules[axis][0][i] for axis, i in enumerate(combo)])
        weights.append(np.prod([rules[axis][1][i] for axis, i in enumerate(combo)]))
    return np.array(positions), np.array(weights)


# https://mathsfromnothing.au/triangle-quadrature-rules/
# Weights normalized to 1; halved on the way out.
_TRIANGLE_RULES = {
    1: (
        [[1 / 3, 1 / 3]],
        [1.0],
    ),
    2: (
        [[1 / 6, 2 / 3], [1 / 6, 1 / 6], [2 / 3, 1 / 6]],
        [1 / 3, 1 / 3, 1 / 3],
    ),
    3: (
        [[1 / 3, 1 / 3], [0.2, 0.6], [0.2, 0.2], [0.6, 0.2]],
        [-27 / 48, 25 / 48, 25 / 48, 25 / 48],
    ),
    4: (
        [
            [0.445948490915965, 0.108103018168070],
            [0.445948490915965, 0.445948490915965],
            [0.108103018168070, 0.445948490915965],
            [0.091576213509771, 0.816847572980459],
            [0.091576213509771, 0.091576213509771],
            [0.816847572980459, 0.091576213509771],
        ],
        [0.223381589678011] * 3 + [0.109951743655322] * 3,
    ),
}


def triangle_quadrature(order: int) -> Tuple[np.ndarray, np.ndarray]:
    if order not in _TRIANGLE_RULES:
        raise ValueError(f"triangle quadrature order {order} not implemented (1-4)")
    nodes, weights = _TRIANGLE_RULES[order]
    return np.array(nodes, dtype=float), 0.5 * np.array(weights, dtype=float)


def tetra_quadrature(order: int) -> Tuple[np.ndarray, np.ndarray]:
    if order == 1:
        return np.array([[0.25, 0.25, 0.25]]), np.array([1.0])
    if order == 2:
        a = (5 + 3 * np.sqrt(5)) / 20
        b = (5 - np.sqrt(5)) / 20
        positions = np.array([
            [a, b, b],
            [b, b, b],
            [b, b, a],
            [b, a, b],
        ])
        return positions, np.full(4, 0.25)
    raise ValueError(f"tetrahedral quadrature order {order} not implemented (1-2)")
