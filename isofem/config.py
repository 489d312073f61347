# isofem/config.py
"""
Numerical tolerances and solver options.
"""

from dataclasses import dataclass, field


@dataclass
class AssemblyConfig:
    """Options used while integrating element stiffness matrices."""

    # Jacobian determinants in [0, det_tolerance) are treated as collapsed
    det_tolerance: float = 1e-12


@dataclass
class SolverConfig:
    """Options used by the solver facade."""

    # Dense solves refuse systems above this condition number
    cond_limit: float = 1e12

    # When False, nonzero imposed essential values raise instead of being applied
    allow_imposed: bool = True


@dataclass
class Config:
    """Global configuration."""

    assembly: AssemblyConfig = field(default_factory=AssemblyConfig)
    solver: SolverConfig = field(default_factory=SolverConfig)


# Global config instance
CONFIG = Config()
