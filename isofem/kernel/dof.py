# isofem/kernel/dof.py
"""
DOF MODEL: Bitset Degrees of Freedom and Index Mapping
======================================================

PURPOSE:
--------
Nodes, elements and models describe the unknowns they carry with a small
bitset. The bit position IS the physical quantity:

    bit 0  POS_X    bit 3  ROT_X
    bit 1  POS_Y    bit 4  ROT_Y
    bit 2  POS_Z    bit 5  ROT_Z

An element may use a subset of the model's DOFs (a thermal element with a
single DOF inside a 3-DOF displacement model, for instance). dof_mapping()
tells which model DOF each local element DOF lands on, and DOFManager turns
(node, local DOF) pairs into global indices.

USAGE:
------
    model = DofsFlag.POS
    mapping = dof_mapping(model, DofsFlag.POS_X | DofsFlag.POS_Y)   # [0, 1]

    dof = DOFManager(model)
    dof.element_dof_map([2, 5], mapping)    # [6, 7, 15, 16]
"""

import enum
from dataclasses import dataclass
from typing import List, Optional

from .errors import IncompatibleDofsError, EmptyMappingError

# Bounds every per-node DOF array in the library
MAX_DOFS_PER_NODE = 6

_BIT_CHARS = "xyzXYZ"


class DofsFlag(enum.IntFlag):
    """Set of degrees of freedom a node, element or model carries."""

    POS_X = 1 << 0
    POS_Y = 1 << 1
    POS_Z = 1 << 2
    ROT_X = 1 << 3
    ROT_Y = 1 << 4
    ROT_Z = 1 << 5

    POS = POS_X | POS_Y | POS_Z
    ROT = ROT_X | ROT_Y | ROT_Z
    ALL = POS | ROT

    def count(self) -> int:
        """Number of set bits."""
        return bin(int(self)).count("1")

    def has(self, other) -> bool:
        """True if every bit of `other` is also set in self."""
        other = int(other)
        return int(self) & other == other

    def bits(self) -> List[int]:
        """Ascending bit positions that are set."""
        return [i for i in range(MAX_DOFS_PER_NODE) if int(self) >> i & 1]

    def __str__(self) -> str:
        return "".join(
            _BIT_CHARS[i] if int(self) >> i & 1 else "-"
            for i in range(MAX_DOFS_PER_NODE)
        )


def _as_flag(dofs) -> DofsFlag:
    # Accept elements (anything with dofs()) as well as raw flags
    if hasattr(dofs, "dofs"):
        dofs = dofs.dofs()
    return DofsFlag(int(dofs))


def dof_mapping(model_dofs, element_dofs) -> List[int]:
    """
    Map an element's local per-node DOFs onto the model's per-node DOFs.

    Parameters:
    -----------
    model_dofs : DofsFlag
        DOFs carried by every node of the model
    element_dofs : DofsFlag or Element
        DOFs the element uses at each of its nodes

    Returns:
    --------
    List[int]
        Ascending bit positions present in both flags. Its length equals
        element_dofs.count().

    Raises:
    -------
    IncompatibleDofsError
        The model does not carry every DOF the element needs
    EmptyMappingError
        The element carries no DOFs at all
    """
    model = _as_flag(model_dofs)
    elem = _as_flag(element_dofs)
    if not model.has(elem):
        raise IncompatibleDofsError(model, elem)

    mapping = [i for i in range(MAX_DOFS_PER_NODE) if int(model) >> i & 1 and int(elem) >> i & 1]
    if len(mapping) == 0:
        raise EmptyMappingError(f"element DOFs {elem!s} map onto no model DOF")
    return mapping


@dataclass
class DOFManager:
    """
    Global DOF indexing for a model whose nodes all carry the same DOFs.

    Global index of a node's DOF = dof_per_node * node + model bit position,
    where the bit position is counted among the model's own DOFs. For a model
    with POS_X | POS_Z the DOFs of node 1 are global indices 2 and 3.

    Attributes:
    -----------
    dofs : DofsFlag
        DOFs of each model node

    Examples:
    ---------
    >>> dof = DOFManager(DofsFlag.POS)
    >>> dof.idx(1, 0)
    3
    >>> dof.ndof(4)
    12
    """
    dofs: DofsFlag

    @property
    def dof_per_node(self) -> int:
        return DofsFlag(int(self.dofs)).count()

    def idx(self, node_id: int, local_dof: int) -> int:
        """Global index of `local_dof` (0..dof_per_node-1) at `node_id`."""
        return self.dof_per_node * node_id + local_dof

    def ndof(self, n_nodes: int) -> int:
        """Total DOFs for a system with n_nodes."""
        return self.dof_per_node * n_nodes

    def node_dofs(self, node_id: int) -> List[int]:
        """All global DOF indices of one node."""
        base = self.dof_per_node * node_id
        return list(range(base, base + self.dof_per_node))

    def element_dof_map(self, node_ids: List[int], mapping: Optional[List[int]] = None) -> List[int]:
        """
        Flattened global DOF indices for an element connecting `node_ids`.

        When `mapping` is given (see dof_mapping) only those per-node DOFs are
        listed, node by node, in mapping order.
        """
        if mapping is None:
            slots = list(range(self.dof_per_node))
        else:
            bits = DofsFlag(int(self.dofs)).bits()
            slots = [bits.index(b) for b in mapping]
        result = []
        for node_id in node_ids:
            for j in slots:
                result.append(self.dof_per_node * node_id + j)
        return result
