# isofem/kernel/solve.py
"""
SOLVER FACADE: Essential Boundary Conditions and Linear Solution
================================================================

PURPOSE:
--------
Solves K·u = F for a model where some DOFs have imposed values (essential
or Dirichlet conditions) and the rest carry loads (natural or Neumann
conditions). The system is partitioned:

    free  f:  K_ff · u_f = F_f - K_fc · u_c
    fixed c:  u_c = imposed values

The reduced system is handed to a LinearSolver (sparse direct by default);
global_solution() scatters u_f back next to the imposed u_c.

USAGE:
------
    gs = GeneralSolution()
    gs.solve(ga.ksolid(), F, fixity)
    u = gs.global_solution()
    R = gs.reactions()
"""

from typing import Protocol, Tuple

import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla

from isofem import logger
from isofem.config import CONFIG, Config
from .errors import ConfigurationError, MechanismError, UnsupportedImposedBCError
from .sparse import SparseMatrix


class LinearSolver(Protocol):
    """Capability consumed by the facade: solve matrix·x = vector."""

    def solve_vec(self, matrix, vector: np.ndarray) -> np.ndarray:
        ...


class EssentialBC(Protocol):
    """Per-DOF query interface of essential boundary condition containers."""

    def at_dof(self, i: int) -> Tuple[bool, float]:
        ...

    def number_of_dofs(self) -> int:
        ...


class SparseDirectSolver:
    """Direct sparse LU solve with scipy.sparse.linalg.spsolve."""

    def solve_vec(self, matrix, vector: np.ndarray) -> np.ndarray:
        A = sp.csc_matrix(matrix)
        x = np.atleast_1d(spla.spsolve(A, np.asarray(vector, dtype=float)))
        if not np.all(np.isfinite(x)):
            raise MechanismError("Singular system. Check supports.")
        return x


class DenseSolver:
    """
    Dense solve with a condition number check.

    Parameters:
    -----------
    cond_limit : float, optional
        Max condition number before raising MechanismError. When omitted
        the limit comes from the owning GeneralSolution's config, or from
        the package CONFIG when used on its own.
    """

    def __init__(self, cond_limit: float = None):
        self.cond_limit = cond_limit

    def limit(self) -> float:
        return self.cond_limit if self.cond_limit is not None else CONFIG.solver.cond_limit

    def solve_vec(self, matrix, vector: np.ndarray) -> np.ndarray:
        A = matrix.toarray() if sp.issparse(matrix) else np.asarray(matrix, dtype=float)
        limit = self.limit()
        cond = np.linalg.cond(A)
        if not np.isfinite(cond) or cond > limit:
            raise MechanismError(
                f"Unstable system (cond={cond:.2e}). Check supports. Need cond < {limit:.0e}."
            )
        return np.linalg.solve(A, np.asarray(vector, dtype=float))


# ----------------------------------------------------------------------
# DOF partition helpers
# ----------------------------------------------------------------------

def fixed_mask(ebc: EssentialBC, allow_imposed: bool = True) -> Tuple[np.ndarray, np.ndarray]:
    """
    Query every DOF of an essential BC container.

    Returns:
    --------
    fixed : np.ndarray of bool
        True where the DOF value is imposed
    imposed : np.ndarray of float
        Imposed value at fixed DOFs, zero elsewhere

    Raises:
    -------
    UnsupportedImposedBCError
        allow_imposed is False and a fixed DOF carries a nonzero value
    ConfigurationError
        A free DOF reports a nonzero imposed value
    """
    total = ebc.number_of_dofs()
    fixed = np.zeros(total, dtype=bool)
    imposed = np.zeros(total)
    for i in range(total):
        is_fixed, value = ebc.at_dof(i)
        if value != 0:
            if not is_fixed:
                raise ConfigurationError(f"dof {i} is free but has imposed value {value}")
            if not allow_imposed:
                raise UnsupportedImposedBCError(
                    f"nonzero imposed essential boundary condition at dof {i} ({value})"
                )
        fixed[i] = is_fixed
        imposed[i] = value if is_fixed else 0.0
    return fixed, imposed


def free_indices(mask: np.ndarray) -> np.ndarray:
    """Ascending indices where mask is False."""
    return np.flatnonzero(~np.asarray(mask, dtype=bool))


def extract_free(K, F: np.ndarray, mask: np.ndarray):
    """Rows/columns of K and entries of F that are not fixed."""
    free = free_indices(mask)
    if sp.issparse(K):
        K = sp.csr_matrix(K)
        Kff = K[free][:, free]
    else:
        Kff = np.asarray(K)[np.ix_(free, free)]
    return Kff, np.asarray(F, dtype=float)[free]


def scatter_free(dst: np.ndarray, src: np.ndarray, mask: np.ndarray) -> None:
    """Write src into the free (mask False) positions of dst, in order."""
    free = free_indices(mask)
    assert len(src) == len(free), f"{len(src)} values for {len(free)} free dofs"
    dst[free] = src


def _as_matrix(K):
    if isinstance(K, SparseMatrix):
        return K.tocsr()
    if sp.issparse(K):
        return sp.csr_matrix(K)
    return np.asarray(K, dtype=float)


class GeneralSolution:
    """
    Finite element solution under mixed essential/natural conditions.

    Parameters:
    -----------
    solver : LinearSolver, optional
        Backend for the reduced system; SparseDirectSolver by default
    config : Config, optional
        Solver options; defaults to the package CONFIG
    """

    def __init__(self, solver: LinearSolver = None, config: Config = None):
        self.solver = solver if solver is not None else SparseDirectSolver()
        self.config = config if config is not None else CONFIG
        if isinstance(self.solver, DenseSolver) and self.solver.cond_limit is None:
            self.solver = DenseSolver(self.config.solver.cond_limit)
        self._K = None
        self._F = None
        self._fixed = None
        self._imposed = None
        self._reduced = None

    def solve(self, K, natural, ebc: EssentialBC) -> None:
        """
        Solve K·u = F with the DOFs of `ebc` held at their imposed values.

        Raises:
        -------
        ConfigurationError
            Dimension mismatch between K, natural and ebc
        UnsupportedImposedBCError
            Imposed values present while config.solver.allow_imposed is False
        MechanismError
            The reduced system is singular
        """
        if K is None or natural is None or ebc is None:
            raise TypeError("K, natural and ebc must not be None")
        K = _as_matrix(K)
        F = np.asarray(natural, dtype=float).ravel()
        r, c = K.shape
        if r == 0 or c == 0:
            raise ConfigurationError("got zero dimension in global matrix")
        if r != c:
            raise ConfigurationError(f"global matrix not square, got {r}x{c}")
        total = ebc.number_of_dofs()
        if total != r:
            raise ConfigurationError(
                f"global matrix dimension {r} differs from essential BC dofs {total}"
            )
        if len(F) != r:
            raise ConfigurationError(f"natural BC length {len(F)} differs from matrix dimension {r}")

        fixed, imposed = fixed_mask(ebc, self.config.solver.allow_imposed)
        Kff, Ff = extract_free(K, F, fixed)
        if np.any(imposed != 0):
            free = free_indices(fixed)
            fixed_idx = np.flatnonzero(fixed)
            Kfc = K[free][:, fixed_idx] if sp.issparse(K) else K[np.ix_(free, fixed_idx)]
            Ff = Ff - Kfc @ imposed[fixed_idx]

        logger.debug("Solving %d free dofs (%d fixed)", Kff.shape[0], int(fixed.sum()))
        if Kff.shape[0] == 0:
            reduced = np.zeros(0)
        else:
            reduced = np.asarray(self.solver.solve_vec(Kff, Ff), dtype=float).ravel()

        self._K = K
        self._F = F
        self._fixed = fixed
        self._imposed = imposed
        self._reduced = reduced

    def _check_solved(self):
        if self._reduced is None:
            raise RuntimeError("solve() has not been called")

    def global_solution(self) -> np.ndarray:
        """Full-length solution: solved free DOFs, imposed values at fixed DOFs."""
        self._check_solved()
        u = self._imposed.copy()
        scatter_free(u, self._reduced, self._fixed)
        return u

    def reactions(self) -> np.ndarray:
        """R = K·u - F. Nonzero only at fixed DOFs (up to round-off)."""
        self._check_solved()
        return self._K @ self.global_solution() - self._F

    @property
    def fixed(self) -> np.ndarray:
        self._check_solved()
        return self._fixed.copy()
