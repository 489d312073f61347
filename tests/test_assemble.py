# tests/test_assemble.py
"""
ASSEMBLER TESTS
===============

Reference matrices:
- Single unit tetrahedron, steel, position DOFs (5 significant figures)
- Unit square Quad4, E=1, nu=0.3, plane stress (3 decimals)
- Axisymmetric Quad4 ring section, E=1000, nu=0.33 (3 significant figures)

Behaviour:
- Global K is symmetric and superposes across calls
- Geometry failures name the element and leave K untouched
- DOF subsets scatter into the right model columns
"""

import numpy as np
import pytest

from isofem.constitution import Isotropic, IsotropicConductivity
from isofem.elements import Beam6Dof, Hexa8, Hexa20, Quad4, Quad8, Tetra4, Tetra10, Triangle3, Triangle6
from isofem.kernel import (
    DofsFlag,
    GeneralAssembler,
    element_getter,
    element_rotator,
    gather_element_dofs,
    gather_element_nodes,
    isoparametric_stiffness,
)
from isofem.kernel.element import IsoConstituter
from isofem.kernel.errors import (
    BadElementOrderingError,
    ConfigurationError,
    ConnectivityError,
    DegenerateElementError,
    ElementGeometryError,
    FEMError,
    IncompatibleDofsError,
    InvalidScaleError,
    UnsupportedFeatureError,
)

PLANE = DofsFlag.POS_X | DofsFlag.POS_Y

UNIT_TETRA = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]], dtype=float)

TETRA_REFERENCE = np.array([
    [4.2308e11, 1.9231e11, 1.9231e11, -2.6923e11, -7.6923e10, -7.6923e10,
     -7.6923e10, -1.1538e11, 0, -7.6923e10, 0, -1.1538e11],
    [1.9231e11, 4.2308e11, 1.9231e11, -1.1538e11, -7.6923e10, 0,
     -7.6923e10, -2.6923e11, -7.6923e10, 0, -7.6923e10, -1.1538e11],
    [1.9231e11, 1.9231e11, 4.2308e11, -1.1538e11, 0, -7.6923e10,
     0, -1.1538e11, -7.6923e10, -7.6923e10, -7.6923e10, -2.6923e11],
    [-2.6923e11, -1.1538e11, -1.1538e11, 2.6923e11, 0, 0,
     0, 1.1538e11, 0, 0, 0, 1.1538e11],
    [-7.6923e10, -7.6923e10, 0, 0, 7.6923e10, 0,
     7.6923e10, 0, 0, 0, 0, 0],
    [-7.6923e10, 0, -7.6923e10, 0, 0, 7.6923e10,
     0, 0, 0, 7.6923e10, 0, 0],
    [-7.6923e10, -7.6923e10, 0, 0, 7.6923e10, 0,
     7.6923e10, 0, 0, 0, 0, 0],
    [-1.1538e11, -2.6923e11, -1.1538e11, 1.1538e11, 0, 0,
     0, 2.6923e11, 0, 0, 0, 1.1538e11],
    [0, -7.6923e10, -7.6923e10, 0, 0, 0,
     0, 0, 7.6923e10, 0, 7.6923e10, 0],
    [-7.6923e10, 0, -7.6923e10, 0, 0, 7.6923e10,
     0, 0, 0, 7.6923e10, 0, 0],
    [0, -7.6923e10, -7.6923e10, 0, 0, 0,
     0, 0, 7.6923e10, 0, 7.6923e10, 0],
    [-1.1538e11, -1.1538e11, -2.6923e11, 1.1538e11, 0, 0,
     0, 1.1538e11, 0, 0, 0, 2.6923e11],
])

UNIT_SQUARE = np.array([[0, 0], [1, 0], [1, 1], [0, 1]], dtype=float)

QUAD4_REFERENCE = np.array([
    [0.495, 0.179, -0.302, -0.014, -0.247, -0.179, 0.055, 0.014],
    [0.179, 0.495, 0.014, 0.055, -0.179, -0.247, -0.014, -0.302],
    [-0.302, 0.014, 0.495, -0.179, 0.055, -0.014, -0.247, 0.179],
    [-0.014, 0.055, -0.179, 0.495, 0.014, -0.302, 0.179, -0.247],
    [-0.247, -0.179, 0.055, 0.014, 0.495, 0.179, -0.302, -0.014],
    [-0.179, -0.247, -0.014, -0.302, 0.179, 0.495, 0.014, 0.055],
    [0.055, -0.014, -0.247, 0.179, -0.302, 0.014, 0.495, -0.179],
    [0.014, -0.302, 0.179, -0.247, -0.014, 0.055, -0.179, 0.495],
])

RING_SECTION = np.array([[20, 0], [30, 0], [30, 1], [20, 1]], dtype=float)

AXISYMMETRIC_REFERENCE = np.array([
    [2.93e4, 5.23e3, 1.45e4, 2.06e3, -1.63e4, -6.45e3, -2.77e4, -848],
    [5.23e3, 1.11e5, -2.36e3, 6.14e4, -7.37e3, -6.19e4, 848, -1.11e5],
    [1.45e4, -2.36e3, 3.6e4, -8.59e3, -3.37e4, 3.58e3, -1.63e4, 7.37e3],
    [2.06e3, 6.14e4, -8.59e3, 1.36e5, -3.58e3, -1.36e5, 6.45e3, -6.19e4],
    [-1.63e4, -7.37e3, -3.37e4, -3.58e3, 3.6e4, 8.59e3, 1.45e4, 2.36e3],
    [-6.45e3, -6.19e4, 3.58e3, -1.36e5, 8.59e3, 1.36e5, -2.06e3, 6.14e4],
    [-2.77e4, 848, -1.63e4, 6.45e3, 1.45e4, -2.06e3, 2.93e4, -5.23e3],
    [-848, -1.11e5, 7.37e3, -6.19e4, 2.36e3, 6.14e4, -5.23e3, 1.11e5],
])


def two_quad_strip():
    """Two unit squares side by side: nodes 0-5, elements [0,1,4,3], [1,2,5,4]."""
    nodes = np.array([[0, 0], [1, 0], [2, 0], [0, 1], [1, 1], [2, 1]], dtype=float)
    elems = [[0, 1, 4, 3], [1, 2, 5, 4]]
    return nodes, elems


class NaNScale(IsoConstituter):
    """Plane law whose strain builder returns NaN at every point."""

    def constitutive(self):
        return np.eye(3)

    def set_strain_displacement(self, dst_B, elem_nodes, dN, N):
        dst_B.fill(0)
        return float("nan")


# =============================================================================
# REFERENCE MATRICES
# =============================================================================

class TestReferenceMatrices:

    def test_single_tetrahedron(self):
        ga = GeneralAssembler(UNIT_TETRA, DofsFlag.POS)
        ga.add_isoparametric(Tetra4(), Isotropic(200e9, 0.3).solid3d(), 1,
                             element_getter([[0, 1, 2, 3]]))
        K = ga.ksolid().toarray()
        assert K.shape == (12, 12)
        np.testing.assert_allclose(K, TETRA_REFERENCE, rtol=1e-4, atol=1e6)
        # Structural zeros stay absent from the sparse matrix
        assert ga.ksolid().count_nonzero() == np.count_nonzero(TETRA_REFERENCE)

    def test_quad4_plane_stress(self):
        ga = GeneralAssembler(UNIT_SQUARE, PLANE)
        ga.add_isoparametric(Quad4(), Isotropic(1.0, 0.3).plane_stress(), 1,
                             element_getter([[0, 1, 2, 3]]))
        np.testing.assert_allclose(ga.ksolid().toarray(), QUAD4_REFERENCE, atol=6e-4)

    def test_quad4_axisymmetric(self):
        ga = GeneralAssembler(RING_SECTION, PLANE)
        ga.add_isoparametric(Quad4(), Isotropic(1000, 0.33).axisymmetric(), 1,
                             element_getter([[0, 1, 2, 3]]))
        np.testing.assert_allclose(ga.ksolid().toarray(), AXISYMMETRIC_REFERENCE, rtol=5e-3)

    def test_single_element_helper_matches_assembler(self):
        Ke = isoparametric_stiffness(Quad4(), Isotropic(1.0, 0.3).plane_stress(), UNIT_SQUARE)
        np.testing.assert_allclose(Ke, QUAD4_REFERENCE, atol=6e-4)
        with pytest.raises(ConfigurationError):
            isoparametric_stiffness(Quad4(), Isotropic(1.0, 0.3).plane_stress(), UNIT_TETRA)


# =============================================================================
# GENERIC PROPERTIES
# =============================================================================

ELEMENT_CASES = [
    (Tetra4(), UNIT_TETRA),
    (Tetra10(), np.vstack([UNIT_TETRA, [(UNIT_TETRA[a] + UNIT_TETRA[b]) / 2 for a, b in
                                        [(0, 1), (0, 2), (0, 3), (1, 2), (2, 3), (1, 3)]]])),
    (Hexa8(), Hexa8().isoparametric_nodes() * [1.0, 2.0, 0.5] + 3.0),
    (Hexa20(), Hexa20().isoparametric_nodes() * 0.5),
]


class TestStiffnessProperties:

    @pytest.mark.parametrize("elem, nodes", ELEMENT_CASES, ids=[str(e) for e, _ in ELEMENT_CASES])
    def test_symmetric_with_rigid_body_null_space(self, elem, nodes):
        ga = GeneralAssembler(nodes, DofsFlag.POS)
        n = elem.node_count()
        ga.add_isoparametric(elem, Isotropic(1.0, 0.25).solid3d(), 1, element_getter([list(range(n))]))
        K = ga.ksolid().toarray()
        np.testing.assert_allclose(K, K.T, atol=1e-12)
        # Rigid translations produce no forces
        for axis in range(3):
            u = np.zeros(3 * n)
            u[axis::3] = 1.0
            np.testing.assert_allclose(K @ u, 0.0, atol=1e-10)
        # Six rigid body modes, the rest positive
        eig = np.linalg.eigvalsh(K)
        assert np.sum(np.abs(eig) < 1e-9 * eig.max()) == 6
        assert eig.min() > -1e-9 * eig.max()

    @pytest.mark.parametrize("elem", [Quad4(), Quad8(), Triangle3(), Triangle6()], ids=str)
    def test_plane_elements_three_rigid_modes(self, elem):
        nodes = elem.isoparametric_nodes() * 2.0
        ga = GeneralAssembler(nodes, PLANE)
        ga.add_isoparametric(elem, Isotropic(1.0, 0.3).plane_strain(), 1,
                             element_getter([list(range(elem.node_count()))]))
        eig = np.linalg.eigvalsh(ga.ksolid().toarray())
        assert np.sum(np.abs(eig) < 1e-9 * eig.max()) == 3

    def test_superposition(self):
        """One call with both elements equals two single-element calls."""
        nodes, elems = two_quad_strip()
        law = Isotropic(1.0, 0.3).plane_stress()

        together = GeneralAssembler(nodes, PLANE)
        together.add_isoparametric(Quad4(), law, 2, element_getter(elems))

        apart = GeneralAssembler(nodes, PLANE)
        apart.add_isoparametric(Quad4(), law, 1, element_getter(elems[:1]))
        apart.add_isoparametric(Quad4(), law, 1, element_getter(elems[1:]))

        np.testing.assert_allclose(together.ksolid().toarray(), apart.ksolid().toarray(), atol=1e-14)
        # Shared nodes 1 and 4 get contributions from both elements
        assert np.isclose(together.ksolid().at(2, 2), 2 * QUAD4_REFERENCE[0, 0], atol=2e-3)

    def test_mixed_regions(self):
        """Different materials in one model superpose linearly."""
        nodes, elems = two_quad_strip()
        ga = GeneralAssembler(nodes, PLANE)
        ga.add_isoparametric(Quad4(), Isotropic(1.0, 0.3).plane_stress(), 1, element_getter(elems[:1]))
        ga.add_isoparametric(Quad4(), Isotropic(3.0, 0.3).plane_stress(), 1, element_getter(elems[1:]))
        K = ga.ksolid().toarray()
        # Node 2 only belongs to the stiffer element
        assert np.isclose(K[4, 4], 3 * QUAD4_REFERENCE[1, 1], atol=2e-3)

    def test_zero_elements_is_noop(self):
        ga = GeneralAssembler(UNIT_SQUARE, PLANE)
        ga.add_isoparametric(Quad4(), Isotropic(1.0, 0.3).plane_stress(), 0, element_getter([]))
        assert ga.ksolid().count_nonzero() == 0
        assert ga.ksolid().shape == (8, 8)

    def test_two_dimensional_nodes_padded(self):
        ga = GeneralAssembler(UNIT_SQUARE, PLANE)
        assert ga.nodes.shape == (4, 3)
        assert np.all(ga.nodes[:, 2] == 0)
        assert ga.total_dofs() == 8
        with pytest.raises(ValueError):
            ga.nodes[0, 0] = 5.0


# =============================================================================
# FIXED-DIMENSION VARIANTS
# =============================================================================

class TestFixedDimensionVariants:

    def test_add_isoparametric3_matches_generic(self):
        nodes = Hexa8().isoparametric_nodes() + 1.0
        mat = Isotropic(210e9, 0.29)
        get = element_getter([list(range(8))])

        generic = GeneralAssembler(nodes, DofsFlag.POS)
        generic.add_isoparametric(Hexa8(), mat.solid3d(), 1, get)
        fixed = GeneralAssembler(nodes, DofsFlag.POS)
        fixed.add_isoparametric3(Hexa8(), mat, 1, get)
        np.testing.assert_allclose(fixed.ksolid().toarray(), generic.ksolid().toarray(), rtol=1e-12)

    def test_add_isoparametric2_matches_generic(self):
        nodes, elems = two_quad_strip()
        law = Isotropic(1.0, 0.3).plane_stress()
        generic = GeneralAssembler(nodes, PLANE)
        generic.add_isoparametric(Quad4(), law, 2, element_getter(elems))
        fixed = GeneralAssembler(nodes, PLANE)
        fixed.add_isoparametric2(Quad4(), law, 2, element_getter(elems))
        np.testing.assert_allclose(fixed.ksolid().toarray(), generic.ksolid().toarray(), rtol=1e-12)

    def test_add_isoparametric3_wrong_matrix(self):
        ga = GeneralAssembler(UNIT_TETRA, DofsFlag.POS)
        with pytest.raises(ConfigurationError):
            ga.add_isoparametric3(Tetra4(), Isotropic(1.0, 0.3).plane_stress(), 1,
                                  element_getter([[0, 1, 2, 3]]))

    def test_add_isoparametric3_wrong_element(self):
        ga = GeneralAssembler(UNIT_SQUARE, DofsFlag.POS)
        with pytest.raises(ConfigurationError):
            ga.add_isoparametric3(Quad4(), Isotropic(1.0, 0.3), 1, element_getter([[0, 1, 2, 3]]))

    def test_add_isoparametric2_wrong_element(self):
        ga = GeneralAssembler(UNIT_TETRA, DofsFlag.POS)
        with pytest.raises(ConfigurationError):
            ga.add_isoparametric2(Tetra4(), Isotropic(1.0, 0.3).plane_stress(), 1,
                                  element_getter([[0, 1, 2, 3]]))


# =============================================================================
# FAILURES
# =============================================================================

class TestFailures:

    def test_inverted_element(self):
        ga = GeneralAssembler(UNIT_SQUARE, PLANE)
        with pytest.raises(BadElementOrderingError) as info:
            ga.add_isoparametric(Quad4(), Isotropic(1.0, 0.3).plane_stress(), 1,
                                 element_getter([[0, 3, 2, 1]]))
        assert info.value.element == 0
        assert isinstance(info.value, ElementGeometryError)

    def test_degenerate_element(self):
        nodes = np.array([[0, 0], [1, 0], [2, 0], [3, 0]], dtype=float)
        ga = GeneralAssembler(nodes, PLANE)
        with pytest.raises(DegenerateElementError):
            ga.add_isoparametric(Quad4(), Isotropic(1.0, 0.3).plane_stress(), 1,
                                 element_getter([[0, 1, 2, 3]]))

    def test_failure_leaves_matrix_untouched(self):
        """Element 1 is inverted: nothing from element 0 may be added."""
        nodes, elems = two_quad_strip()
        ga = GeneralAssembler(nodes, PLANE)
        bad = [elems[0], elems[1][::-1]]
        with pytest.raises(BadElementOrderingError) as info:
            ga.add_isoparametric(Quad4(), Isotropic(1.0, 0.3).plane_stress(), 2, element_getter(bad))
        assert info.value.element == 1
        assert ga.ksolid().count_nonzero() == 0

    def test_failure_keeps_previous_calls(self):
        nodes, elems = two_quad_strip()
        ga = GeneralAssembler(nodes, PLANE)
        law = Isotropic(1.0, 0.3).plane_stress()
        ga.add_isoparametric(Quad4(), law, 1, element_getter(elems[:1]))
        before = ga.ksolid().toarray()
        with pytest.raises(FEMError):
            ga.add_isoparametric(Quad4(), law, 1, element_getter([elems[1][::-1]]))
        np.testing.assert_array_equal(ga.ksolid().toarray(), before)

    def test_connectivity_error(self):
        ga = GeneralAssembler(UNIT_SQUARE, PLANE)
        with pytest.raises(ConnectivityError) as info:
            ga.add_isoparametric(Quad4(), Isotropic(1.0, 0.3).plane_stress(), 1,
                                 element_getter([[0, 1, 2]]))
        assert info.value.element == 0
        assert info.value.expected == 4
        assert info.value.got == 3

    def test_orientation_not_supported(self):
        ga = GeneralAssembler(UNIT_SQUARE, PLANE)
        get = element_getter([[0, 1, 2, 3]], orient_x=[1, 0, 0], orient_y=[0, 1, 0])
        with pytest.raises(UnsupportedFeatureError, match="orientation"):
            ga.add_isoparametric(Quad4(), Isotropic(1.0, 0.3).plane_stress(), 1, get)

    def test_zero_orientation_accepted(self):
        ga = GeneralAssembler(UNIT_SQUARE, PLANE)
        get = element_getter([[0, 1, 2, 3]], orient_x=[0, 0, 0], orient_y=[0, 0, 0])
        ga.add_isoparametric(Quad4(), Isotropic(1.0, 0.3).plane_stress(), 1, get)
        assert ga.ksolid().count_nonzero() > 0

    def test_incompatible_dofs(self):
        ga = GeneralAssembler(UNIT_TETRA, PLANE)
        with pytest.raises(IncompatibleDofsError):
            ga.add_isoparametric(Tetra4(), Isotropic(1.0, 0.3).solid3d(), 1,
                                 element_getter([[0, 1, 2, 3]]))

    def test_non_square_constitutive(self):
        class Rectangular(NaNScale):
            def constitutive(self):
                return np.zeros((3, 4))

        ga = GeneralAssembler(UNIT_SQUARE, PLANE)
        with pytest.raises(ConfigurationError):
            ga.add_isoparametric(Quad4(), Rectangular(), 1, element_getter([[0, 1, 2, 3]]))

    def test_plane_law_on_solid_element(self):
        """A 3-row plane B cannot describe a 3D element; nothing is assembled."""
        ga = GeneralAssembler(UNIT_TETRA, DofsFlag.POS)
        with pytest.raises(ConfigurationError):
            ga.add_isoparametric(Tetra4(), Isotropic(1.0, 0.3).plane_stress(), 1,
                                 element_getter([[0, 1, 2, 3]]))
        assert ga.ksolid().count_nonzero() == 0

    def test_solid_law_on_plane_element(self):
        ga = GeneralAssembler(UNIT_SQUARE, PLANE)
        with pytest.raises(ConfigurationError):
            ga.add_isoparametric(Quad4(), Isotropic(1.0, 0.3).solid3d(), 1,
                                 element_getter([[0, 1, 2, 3]]))
        with pytest.raises(ConfigurationError):
            ga.add_isoparametric(Triangle3(), Isotropic(1.0, 0.3).axisymmetric(), 0,
                                 element_getter([]))

    def test_conduction_law_needs_one_dof_per_node(self):
        ga = GeneralAssembler(UNIT_SQUARE, PLANE)
        with pytest.raises(ConfigurationError):
            ga.add_isoparametric(Quad4(), IsotropicConductivity(1.0).plane(), 1,
                                 element_getter([[0, 1, 2, 3]]))

    def test_layout_checked_by_recovery_and_single_element(self):
        ga = GeneralAssembler(UNIT_SQUARE, PLANE)
        with pytest.raises(ConfigurationError):
            ga.isoparametric_strains(np.zeros(8), Quad4(), Isotropic(1.0, 0.3).solid3d(), 1,
                                     element_getter([[0, 1, 2, 3]]), lambda i, s: None)
        with pytest.raises(ConfigurationError):
            isoparametric_stiffness(Tetra4(), Isotropic(1.0, 0.3).plane_strain(), UNIT_TETRA)

    def test_nan_scale(self):
        ga = GeneralAssembler(UNIT_SQUARE, PLANE)
        with pytest.raises(InvalidScaleError):
            ga.add_isoparametric(Quad4(), NaNScale(), 1, element_getter([[0, 1, 2, 3]]))

    def test_none_collaborators(self):
        ga = GeneralAssembler(UNIT_SQUARE, PLANE)
        with pytest.raises(TypeError):
            ga.add_isoparametric(None, Isotropic(1.0, 0.3).plane_stress(), 1, element_getter([]))
        with pytest.raises(TypeError):
            GeneralAssembler(None, PLANE)


# =============================================================================
# DOF SUBSETS AND GATHERING
# =============================================================================

class TestDofMappingIntoModel:

    def test_gather_helpers(self):
        all_nodes = np.arange(15, dtype=float).reshape(5, 3)
        dst = np.zeros(4)
        gather_element_nodes(dst, all_nodes, [4, 1], 2)
        np.testing.assert_array_equal(dst, [12, 13, 3, 4])

        dofs = np.zeros(4, dtype=int)
        gather_element_dofs(dofs, [4, 1], [0, 2], 6)
        np.testing.assert_array_equal(dofs, [24, 26, 6, 8])

    def test_gather_wrong_buffer(self):
        with pytest.raises(AssertionError):
            gather_element_nodes(np.zeros(3), np.zeros((5, 3)), [0, 1], 2)

    def test_for_each_element(self):
        nodes, elems = two_quad_strip()
        ga = GeneralAssembler(nodes, DofsFlag.POS)
        seen = []

        def callback(i, elem_nodes, elem_dofs):
            seen.append((i, elem_nodes.copy(), list(elem_dofs)))

        ga.for_each_element(Quad4(), 2, 2, lambda i: elems[i], callback)
        assert [s[0] for s in seen] == [0, 1]
        np.testing.assert_array_equal(seen[1][1], nodes[elems[1]])
        # Quad4 uses x and y out of the 3 model DOFs per node
        assert seen[0][2] == [0, 1, 3, 4, 12, 13, 9, 10]

    def test_for_each_element_sparse_model(self):
        """An x-only element in an x-z model lands on slot 0 of 2 per node."""
        nodes, elems = two_quad_strip()
        ga = GeneralAssembler(nodes, DofsFlag.POS_X | DofsFlag.POS_Z)
        seen = []
        ga.for_each_element(Quad4(node_dofs=DofsFlag.POS_X), 2, 1, lambda i: elems[i],
                            lambda i, elem_nodes, elem_dofs: seen.append(list(elem_dofs)))
        assert seen[0] == [2 * n for n in elems[0]]

    def test_thermal_element_in_structural_model(self):
        """A POS_X-only element only touches every other model DOF."""
        ga = GeneralAssembler(UNIT_SQUARE, PLANE)
        ga.add_isoparametric(Quad4(node_dofs=DofsFlag.POS_X), IsotropicConductivity(2.0).plane(), 1,
                             element_getter([[0, 1, 2, 3]]))
        K = ga.ksolid().toarray()
        assert np.all(K[1::2, :] == 0)
        assert np.all(K[:, 1::2] == 0)
        Kt = K[::2, ::2]
        # Constant temperature carries no heat
        np.testing.assert_allclose(Kt @ np.ones(4), 0.0, atol=1e-14)
        assert np.isclose(Kt[0, 0], 2.0 * 2 / 3)

    def test_axisymmetric_conduction_is_consistent(self):
        ga = GeneralAssembler(RING_SECTION, DofsFlag.POS_X)
        ga.add_isoparametric(Quad4(node_dofs=DofsFlag.POS_X), IsotropicConductivity(1.0).axisymmetric(), 1,
                             element_getter([[0, 1, 2, 3]]))
        K = ga.ksolid().toarray()
        np.testing.assert_allclose(K, K.T, atol=1e-12)
        np.testing.assert_allclose(K @ np.ones(4), 0.0, atol=1e-10)


# =============================================================================
# CLOSED-FORM ELEMENTS
# =============================================================================

class TestAddElement3:

    def make_beam(self):
        beam = Beam6Dof(A=0.01, Iy=2e-5, Iz=8e-6, J=1e-5)
        beam.set_constitutive(Isotropic(200e9, 0.3))
        return beam

    def test_local_frame(self):
        nodes = np.array([[0, 0, 0], [2, 0, 0]], dtype=float)
        ga = GeneralAssembler(nodes, DofsFlag.ALL)
        beam = self.make_beam()
        ga.add_element3(beam, 1, element_getter([[0, 1]]))
        np.testing.assert_allclose(ga.ksolid().toarray(), beam.stiffness(nodes))

    def test_rotated_beam(self):
        """Beam along global Y: axial stiffness appears on the uy DOFs."""
        nodes = np.array([[0, 0, 0], [0, 2, 0]], dtype=float)
        ga = GeneralAssembler(nodes, DofsFlag.ALL)
        ga.add_element3(self.make_beam(), 1,
                        element_getter([[0, 1]], orient_x=[0, 1, 0], orient_y=[-1, 0, 0]))
        K = ga.ksolid().toarray()
        EA_L = 200e9 * 0.01 / 2
        assert np.isclose(K[7, 7], EA_L)
        assert np.isclose(K[1, 7], -EA_L)
        assert np.isclose(K[6, 6], 12 * 200e9 * 8e-6 / 8)
        np.testing.assert_allclose(K, K.T, atol=1e-3)

    def test_rotator_is_orthogonal(self):
        R = element_rotator([1, 1, 0], [0, 0, 1], 2, list(range(6)))
        np.testing.assert_allclose(R @ R.T, np.eye(12), atol=1e-14)

    def test_rotator_restricted_to_mapping(self):
        R = element_rotator([0, 1, 0], [-1, 0, 0], 2, [0, 1])
        assert R.shape == (4, 4)

    def test_rotator_bad_vectors(self):
        with pytest.raises(ConfigurationError):
            element_rotator([1, 0, 0], [2, 0, 0], 2, [0, 1, 2])
        with pytest.raises(ConfigurationError):
            element_rotator([1, 0, 0], None, 2, [0, 1, 2])

    def test_stiffness_shape_checked(self):
        class Wrong(Beam6Dof):
            def stiffness(self, nodes):
                return np.eye(3)

        nodes = np.array([[0, 0, 0], [1, 0, 0]], dtype=float)
        ga = GeneralAssembler(nodes, DofsFlag.ALL)
        with pytest.raises(ConfigurationError):
            ga.add_element3(Wrong(1, 1, 1, 1), 1, element_getter([[0, 1]]))


# =============================================================================
# STRAIN / STRESS RECOVERY
# =============================================================================

class TestRecovery:

    def test_uniform_stretch(self):
        nodes, elems = two_quad_strip()
        ga = GeneralAssembler(nodes, PLANE)
        law = Isotropic(10.0, 0.0).plane_stress()
        # u = 0.01 x, v = 0
        u = np.zeros(12)
        u[0::2] = 0.01 * nodes[:, 0]

        strains, stresses = {}, {}
        ga.isoparametric_strains(u, Quad4(), law, 2, element_getter(elems),
                                 lambda i, s: strains.update({i: s}))
        ga.isoparametric_stresses(u, Quad4(), law, 2, element_getter(elems),
                                  lambda i, s: stresses.update({i: s}))
        assert sorted(strains) == [0, 1]
        for i in (0, 1):
            assert strains[i].shape == (4, 3)
            np.testing.assert_allclose(strains[i], [[0.01, 0, 0]] * 4, atol=1e-15)
            np.testing.assert_allclose(stresses[i], [[0.1, 0, 0]] * 4, atol=1e-14)

    def test_wrong_length(self):
        nodes, elems = two_quad_strip()
        ga = GeneralAssembler(nodes, PLANE)
        with pytest.raises(ConfigurationError):
            ga.isoparametric_strains(np.zeros(5), Quad4(), Isotropic(1.0, 0.3).plane_stress(), 2,
                                     element_getter(elems), lambda i, s: None)
