# isofem/bc.py
"""
ESSENTIAL BOUNDARY CONDITIONS: Per-Node Fixity
==============================================

Fixity records, for every node, which of the model's DOFs are held and at
what value. It answers the EssentialBC queries used by GeneralSolution:

    at_dof(i)         -> (is_fixed, imposed_value)
    number_of_dofs()  -> n_nodes * dofs.count()

Global DOF numbering matches GeneralAssembler: node * dofs.count() + k,
k counting the model's DOFs in bit order.

USAGE:
------
    fix = Fixity(DofsFlag.POS_X | DofsFlag.POS_Y, n_nodes=4)
    fix.fix(0, DofsFlag.POS_X | DofsFlag.POS_Y)     # pinned
    fix.fix(1, DofsFlag.POS_Y)                      # roller
    fix.impose(2, DofsFlag.POS_X, 1e-3)             # prescribed displacement
"""

from typing import Dict, List, Tuple

import numpy as np

from .kernel.dof import DofsFlag, dof_mapping
from .kernel.errors import ConfigurationError, IncompatibleDofsError


class Fixity:
    """
    Essential boundary conditions of a model.

    Parameters:
    -----------
    dofs : DofsFlag
        Model DOFs per node
    n_nodes : int
        Number of model nodes
    """

    def __init__(self, dofs: DofsFlag, n_nodes: int):
        if n_nodes < 0:
            raise ValueError(f"negative node count {n_nodes}")
        self._dofs = DofsFlag(int(dofs))
        self._mapping = dof_mapping(self._dofs, self._dofs)
        self._fixed = np.zeros(n_nodes, dtype=np.int64)
        self._imposed: Dict[int, float] = {}

    def dofs(self) -> DofsFlag:
        return self._dofs

    @property
    def n_nodes(self) -> int:
        return len(self._fixed)

    def _check(self, node: int, dofs) -> int:
        if not 0 <= node < self.n_nodes:
            raise IndexError(f"node {node} out of range for {self.n_nodes} nodes")
        flag = DofsFlag(int(dofs))
        if not self._dofs.has(flag):
            raise IncompatibleDofsError(self._dofs, flag)
        return int(flag)

    def _global(self, node: int, bit: int) -> int:
        return node * len(self._mapping) + self._mapping.index(bit)

    def fix(self, node: int, dofs) -> None:
        """Hold `dofs` of `node` at zero (or at a value set with impose)."""
        self._fixed[node] |= self._check(node, dofs)

    def free(self, node: int, dofs) -> None:
        """Release `dofs` of `node`, dropping any imposed values."""
        flag = self._check(node, dofs)
        self._fixed[node] &= ~flag
        for bit in DofsFlag(flag).bits():
            self._imposed.pop(self._global(node, bit), None)

    def impose(self, node: int, dof, value: float) -> None:
        """Fix a single DOF of `node` at a nonzero value."""
        flag = DofsFlag(int(dof))
        if flag.count() != 1:
            raise ConfigurationError(f"impose takes a single dof, got {flag!s}")
        self.fix(node, flag)
        i = self._global(node, flag.bits()[0])
        if value == 0:
            self._imposed.pop(i, None)
        else:
            self._imposed[i] = float(value)

    def number_of_dofs(self) -> int:
        return self.n_nodes * len(self._mapping)

    def at_dof(self, i: int) -> Tuple[bool, float]:
        per_node = len(self._mapping)
        node, k = divmod(i, per_node)
        if not 0 <= node < self.n_nodes:
            raise IndexError(f"dof {i} out of range for {self.number_of_dofs()} dofs")
        is_fixed = bool(self._fixed[node] >> self._mapping[k] & 1)
        return is_fixed, self._imposed.get(i, 0.0)

    def fixed_dofs(self) -> List[int]:
        """Ascending global indices of fixed DOFs."""
        return [i for i in range(self.number_of_dofs()) if self.at_dof(i)[0]]

    def free_dofs(self) -> List[int]:
        """Ascending global indices of free DOFs."""
        return [i for i in range(self.number_of_dofs()) if not self.at_dof(i)[0]]

    def imposed_values(self) -> np.ndarray:
        """Full-length vector of imposed values (zero where free or held at zero)."""
        values = np.zeros(self.number_of_dofs())
        for i, v in self._imposed.items():
            values[i] = v
        return values
