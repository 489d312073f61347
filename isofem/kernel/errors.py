# isofem/kernel/errors.py
"""
ERRORS: Failure Taxonomy for Assembly and Solution
==================================================

Every failure the library detects derives from FEMError, so callers can
catch one type. The subclasses tell apart:

    ConfigurationError      model/element/constitutive pairing is unusable
    ConnectivityError       an element reported the wrong number of nodes
    ElementGeometryError    a specific element has a bad Jacobian or scale
    UnsupportedFeatureError a requested feature is not implemented
    MechanismError          the reduced system cannot be solved

Programmer errors (None collaborators, wrong scratch buffer sizes) are not
part of this hierarchy: they raise TypeError / AssertionError.
"""


class FEMError(RuntimeError):
    """Base class for all isofem failures."""
    pass


class ConfigurationError(FEMError):
    """Raised when the inputs cannot be combined into an assembly."""
    pass


class IncompatibleDofsError(ConfigurationError):
    """Raised when the model lacks DOFs that the element requires."""

    def __init__(self, model_dofs, element_dofs):
        self.model_dofs = model_dofs
        self.element_dofs = element_dofs
        super().__init__(
            f"incompatible DOFs: model {model_dofs!s} does not contain element {element_dofs!s}"
        )


class EmptyMappingError(ConfigurationError):
    """Raised when an element shares no DOFs with the model."""
    pass


class ConstitutiveError(ConfigurationError):
    """Raised when material parameters give an undefined constitutive matrix."""
    pass


class ConnectivityError(FEMError):
    """Raised when get_element returns the wrong number of node indices."""

    def __init__(self, element: int, expected: int, got: int):
        self.element = element
        self.expected = expected
        self.got = got
        super().__init__(
            f"element {element}: expected {expected} node indices, got {got}"
        )


class ElementGeometryError(FEMError):
    """Base for per-element geometric failures. Carries the element index."""

    reason = "invalid element geometry"

    def __init__(self, element: int, detail: str = ""):
        self.element = element
        self.detail = detail
        msg = f"element {element}: {self.reason}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class BadElementOrderingError(ElementGeometryError):
    """Negative Jacobian determinant: nodes are ordered the wrong way round."""
    reason = "negative Jacobian determinant, bad node ordering"


class DegenerateElementError(ElementGeometryError):
    """Jacobian determinant at or near zero: the element has collapsed."""
    reason = "degenerate element, Jacobian determinant near zero"


class SingularJacobianError(ElementGeometryError):
    """The Jacobian could not be used to solve for physical derivatives."""
    reason = "singular Jacobian"


class InvalidScaleError(ElementGeometryError):
    """The constitutive law returned a NaN integration scale."""
    reason = "strain-displacement scale is NaN"


class UnsupportedFeatureError(FEMError):
    """Raised for features that are recognised but not implemented."""
    pass


class UnsupportedImposedBCError(UnsupportedFeatureError):
    """Raised when nonzero imposed essential values are disabled by config."""
    pass


class MechanismError(FEMError):
    """Raised when structure is unstable or ill-conditioned."""
    pass
