# isofem/kernel - Element-agnostic assembly and solution core
"""
KERNEL: THE ELEMENT-AGNOSTIC FOUNDATION
=======================================

Assembly and solution never depend on a concrete element or material.
They need:
- A DOF bitset and the mapping from element DOFs to model DOFs
- Elements exposing shape functions and a quadrature rule (or a
  closed-form stiffness matrix)
- Materials exposing C and their strain-displacement matrix
- A sparse matrix that sums element triplets
- Essential boundary conditions that answer "is DOF i fixed?"

Concrete elements live in isofem.elements, materials in
isofem.constitution.
"""

from .dof import DofsFlag, DOFManager, dof_mapping, MAX_DOFS_PER_NODE
from .element import Element, Isoparametric, Element3, Constituter, IsoConstituter
from .sparse import SparseAccum, SparseMatrix
from .assemble import (
    GeneralAssembler,
    element_getter,
    element_rotator,
    gather_element_dofs,
    gather_element_nodes,
    isoparametric_stiffness,
)
from .solve import (
    GeneralSolution,
    SparseDirectSolver,
    DenseSolver,
    fixed_mask,
    free_indices,
    extract_free,
    scatter_free,
)
from .errors import (
    FEMError,
    ConfigurationError,
    IncompatibleDofsError,
    EmptyMappingError,
    ConstitutiveError,
    ConnectivityError,
    ElementGeometryError,
    BadElementOrderingError,
    DegenerateElementError,
    SingularJacobianError,
    InvalidScaleError,
    UnsupportedFeatureError,
    UnsupportedImposedBCError,
    MechanismError,
)

__all__ = [
    'DofsFlag', 'DOFManager', 'dof_mapping', 'MAX_DOFS_PER_NODE',
    'Element', 'Isoparametric', 'Element3', 'Constituter', 'IsoConstituter',
    'SparseAccum', 'SparseMatrix',
    'GeneralAssembler', 'element_getter', 'element_rotator',
    'gather_element_dofs', 'gather_element_nodes', 'isoparametric_stiffness',
    'GeneralSolution', 'SparseDirectSolver', 'DenseSolver',
    'fixed_mask', 'free_indices', 'extract_free', 'scatter_free',
    'FEMError', 'ConfigurationError', 'IncompatibleDofsError', 'EmptyMappingError',
    'ConstitutiveError', 'ConnectivityError', 'ElementGeometryError',
    'BadElementOrderingError', 'DegenerateElementError', 'SingularJacobianError',
    'InvalidScaleError', 'UnsupportedFeatureError', 'UnsupportedImposedBCError',
    'MechanismError',
]
