# isofem - Isoparametric finite element assembly and linear solution
"""
ISOFEM: Generalized Isoparametric FEM Assembler
===============================================

This package provides:
- A bitset degree-of-freedom model shared by nodes, elements and models
- Isoparametric element assembly for any element/constitutive pairing
- Closed-form (non-isoparametric) element assembly with orientation
- A sparse global stiffness matrix built from batched element triplets
- A solver facade that partitions essential boundary conditions

ARCHITECTURE:
-------------
    kernel/         DOF model, element interfaces, sparse matrix, assembler, solver
    elements/       Tetra4/10, Hexa8/20, Quad4/8, Triangle3/6, Beam6Dof
    constitution/   Isotropic, transversely isotropic, thermal conductivity
    bc.py           Per-node essential boundary conditions
    post.py         Tabular results (pandas)
    viz.py          Sparsity and 2D mesh plots (matplotlib)
    config.py       Tolerances and solver options
"""

from .logger_setup import setup_logger

# LOGGING
logger = setup_logger(__name__)

from .config import CONFIG
from .kernel import (
    DofsFlag,
    dof_mapping,
    DOFManager,
    GeneralAssembler,
    GeneralSolution,
    SparseMatrix,
    MechanismError,
    FEMError,
)
from .bc import Fixity

__version__ = "0.1.0"
