# isofem/kernel/assemble.py
"""
ASSEMBLY: Generalized Isoparametric Element Assembler
=====================================================

PURPOSE:
--------
Builds the global stiffness (or conductivity) matrix of a model from
per-element contributions. The assembler is generic over:

- element topology (any Isoparametric: Tetra4, Hexa20, Quad8, ...)
- spatial dimension (1D/2D/3D, read from the element's basis_diff shape)
- DOFs per node (displacements, rotations, a single temperature)
- material law (any IsoConstituter: 3D solid, plane, axisymmetric, thermal)

ALGORITHM (add_isoparametric):
------------------------------
    evaluate N and dN/dxi at every quadrature point ONCE per element type
    for each element:
        Ke = 0
        gather element node coordinates X (n x d) and global DOF indices
        for each quadrature point q:
            J      = dN_q · X                 (d x d Jacobian)
            detJ   > 0 or the element is rejected
            dN_xyz = solve(J, dN_q)           (physical derivatives)
            B, s   = law-specific B and weight scale
            Ke    += Bᵀ·C·B · detJ · w_q · s
        write Ke into its own slice of the triplet batch
    fold the batch into the global sparse matrix (sums duplicates)

The global matrix is only touched after every element integrated without
error, so a failed call leaves it exactly as it was. Repeated add_* calls
superpose (different material regions, element types, ...).

USAGE:
------
    ga = GeneralAssembler(nodes, DofsFlag.POS)
    ga.add_isoparametric(Tetra4(), Isotropic(200e9, 0.3).solid3d(),
                         len(elems), element_getter(elems))
    K = ga.ksolid()
"""

import math
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from isofem import logger
from isofem.config import CONFIG, Config
from isofem.constitution.strain import strain_displacement_plane, strain_displacement_xyz
from .dof import DofsFlag, dof_mapping
from .element import Element, Element3, IsoConstituter, Isoparametric
from .errors import (
    BadElementOrderingError,
    ConfigurationError,
    ConnectivityError,
    DegenerateElementError,
    InvalidScaleError,
    SingularJacobianError,
    UnsupportedFeatureError,
)
from .sparse import SparseAccum, SparseMatrix

ORIENTATION_NOT_IMPLEMENTED = "arbitrary constitutive orientation not implemented"


def gather_element_nodes(dst: np.ndarray, all_nodes: np.ndarray,
                         node_indices: Sequence[int], dims: int) -> None:
    """
    Copy the first `dims` coordinates of each element node into a flat buffer.

    dst[k*dims + j] = all_nodes[node_indices[k], j]
    """
    assert len(dst) == dims * len(node_indices), \
        f"node buffer length {len(dst)} != {dims} x {len(node_indices)}"
    dst.reshape(len(node_indices), dims)[:] = all_nodes[node_indices, :dims]


def gather_element_dofs(dst: np.ndarray, node_indices: Sequence[int],
                        mapping: Sequence[int], model_dofs_per_node: int) -> None:
    """
    Global row/column indices of an element's local DOFs.

    dst[k*len(mapping) + j] = model_dofs_per_node * node_indices[k] + mapping[j]
    """
    m = len(mapping)
    assert len(dst) == m * len(node_indices), \
        f"dof buffer length {len(dst)} != {m} x {len(node_indices)}"
    for k, node in enumerate(node_indices):
        start = model_dofs_per_node * node
        for j, offset in enumerate(mapping):
            dst[k * m + j] = start + offset


def element_getter(connectivity, orient_x=None, orient_y=None) -> Callable:
    """
    Wrap a connectivity table as a get_element function for the add_* methods.

    >>> get = element_getter([[0, 1, 2, 3]])
    >>> get(0)
    ([0, 1, 2, 3], None, None)
    """
    def get_element(i: int):
        return list(connectivity[i]), orient_x, orient_y
    return get_element


def _is_zero(v) -> bool:
    return v is None or not np.any(np.asarray(v, dtype=float))


def _require(*args) -> None:
    for name, value in args:
        if value is None:
            raise TypeError(f"{name} must not be None")


def _square_constitutive(constitutive, expected: Optional[int] = None) -> np.ndarray:
    C = np.asarray(constitutive.constitutive(), dtype=float)
    if C.ndim != 2 or C.shape[0] != C.shape[1]:
        raise ConfigurationError(f"expected constitutive matrix to be square, got shape {C.shape}")
    if expected is not None and C.shape[0] != expected:
        raise ConfigurationError(
            f"expected constitutive matrix to be {expected}x{expected}, got {C.shape[0]}x{C.shape[1]}"
        )
    return C


def _check_layout(elem_type: Isoparametric, constitutive: IsoConstituter) -> None:
    # B is laid out for a fixed dimension and dofs per node; a mismatch
    # either writes out of bounds or leaves columns silently empty
    layout = constitutive.layout()
    if layout is None:
        return
    dims, dpn = layout
    got_dims = elem_type.spatial_dims()
    got_dpn = elem_type.dofs().count()
    if (got_dims, got_dpn) != (dims, dpn):
        raise ConfigurationError(
            f"{type(constitutive).__name__} expects {dims}D elements with {dpn} dofs per node, "
            f"got {type(elem_type).__name__} ({got_dims}D, {got_dpn} dofs per node)"
        )


class _IsoIntegrator:
    """
    Per element-type integration state.

    Shape functions are evaluated once here; the Jacobian, physical
    derivative and B buffers are reused for every element.
    """

    def __init__(self, elem_type: Isoparametric, dim_c: int, strain: Callable,
                 det_tolerance: float):
        positions, weights = elem_type.quadrature()
        weights = np.asarray(weights, dtype=float).ravel()
        positions = np.asarray(positions, dtype=float)
        if len(weights) == 0 or len(positions) != len(weights):
            raise ConfigurationError(
                f"bad quadrature from isoparametric element: {len(positions)} points, {len(weights)} weights"
            )

        self.n_nodes = elem_type.node_count()
        self.dims = elem_type.spatial_dims()
        self.dofs_per_node = elem_type.dofs().count()
        self.ndofe = self.n_nodes * self.dofs_per_node
        self.weights = weights
        self.N = [np.asarray(elem_type.basis(p), dtype=float) for p in positions]
        self.dN = [
            np.asarray(elem_type.basis_diff(p), dtype=float).reshape(self.dims, self.n_nodes)
            for p in positions
        ]
        self.strain = strain
        self.det_tolerance = det_tolerance

        self.jac = np.zeros((self.dims, self.dims))
        self.dNxyz = np.zeros((self.dims, self.n_nodes))
        self.B = np.zeros((dim_c, self.ndofe))

    def points(self, iele: int, elem_nodes: np.ndarray):
        """Yield (index, B, detJ*weight*scale) for each quadrature point of one element."""
        tol = self.det_tolerance
        for ipg, (N, dN, w) in enumerate(zip(self.N, self.dN, self.weights)):
            np.matmul(dN, elem_nodes, out=self.jac)
            det = np.linalg.det(self.jac)
            if det < -tol:
                raise BadElementOrderingError(iele, f"detJ={det:.3e} at quadrature point {ipg}")
            if det < tol:
                raise DegenerateElementError(iele, f"detJ={det:.3e} at quadrature point {ipg}")
            try:
                self.dNxyz[:] = np.linalg.solve(self.jac, dN)
            except np.linalg.LinAlgError as e:
                raise SingularJacobianError(iele, str(e)) from e

            scale = self.strain(self.B, elem_nodes, self.dNxyz, N)
            if math.isnan(scale):
                raise InvalidScaleError(iele, f"quadrature point {ipg}")
            yield ipg, self.B, det * w * scale


class GeneralAssembler:
    """
    Owns node coordinates, model DOF layout and the global stiffness matrix.

    Parameters:
    -----------
    nodes : array-like, shape (N, 1), (N, 2) or (N, 3)
        Node coordinates. Missing components are stored as zero.
    model_dofs : DofsFlag
        DOFs carried by every node. The global matrix is
        (N * model_dofs.count()) square.
    config : Config, optional
        Tolerances; defaults to the package CONFIG
    """

    def __init__(self, nodes, model_dofs: DofsFlag, config: Config = None):
        _require(("nodes", nodes), ("model_dofs", model_dofs))
        nodes = np.asarray(nodes, dtype=float)
        if nodes.ndim != 2 or not 1 <= nodes.shape[1] <= 3:
            raise ConfigurationError(f"nodes must have shape (N, 1..3), got {nodes.shape}")
        padded = np.zeros((len(nodes), 3))
        padded[:, :nodes.shape[1]] = nodes
        padded.flags.writeable = False

        self._nodes = padded
        self._dofs = DofsFlag(int(model_dofs))
        self._config = config if config is not None else CONFIG
        total = self.total_dofs()
        self._ksolid = SparseMatrix(total, total)

    @property
    def nodes(self) -> np.ndarray:
        return self._nodes

    @property
    def dofs(self) -> DofsFlag:
        return self._dofs

    def total_dofs(self) -> int:
        return len(self._nodes) * self._dofs.count()

    def ksolid(self) -> SparseMatrix:
        """Global stiffness matrix assembled so far."""
        return self._ksolid

    def dof_mapping(self, element: Element):
        return dof_mapping(self._dofs, element)

    # ------------------------------------------------------------------
    # Element iteration
    # ------------------------------------------------------------------

    def for_each_element(self, elem_type: Element, dims: int, n_elem: int,
                         get_element: Callable[[int], Sequence[int]],
                         callback: Callable[[int, np.ndarray, np.ndarray], None]) -> None:
        """
        Call callback(i, elem_nodes, elem_dofs) for every element.

        elem_nodes is an (n, dims) view of the gathered coordinates and
        elem_dofs the global DOF indices of the element. Both buffers are
        reused between elements. The first error raised by the
        connectivity check or by the callback stops the iteration.

        Raises:
        -------
        ConnectivityError
            get_element(i) returned the wrong number of node indices
        """
        _require(("elem_type", elem_type), ("get_element", get_element), ("callback", callback))
        if n_elem < 0:
            raise ValueError(f"negative element count {n_elem}")
        mapping = dof_mapping(self._dofs, elem_type)
        # Bit positions -> slots among the model's own per-node DOFs
        model_bits = self._dofs.bits()
        slots = [model_bits.index(b) for b in mapping]
        n = elem_type.node_count()
        model_dpn = len(model_bits)

        node_buf = np.zeros(dims * n)
        dof_buf = np.zeros(len(mapping) * n, dtype=np.intp)
        elem_nodes = node_buf.reshape(n, dims)
        for i in range(n_elem):
            element = get_element(i)
            if len(element) != n:
                raise ConnectivityError(i, n, len(element))
            gather_element_nodes(node_buf, self._nodes, element, dims)
            gather_element_dofs(dof_buf, element, slots, model_dpn)
            callback(i, elem_nodes, dof_buf)

    def _oriented_getter(self, get_element, orientation: list, allow_orientation: bool):
        # Strips orientation from get_element results, keeping the last one seen
        def node_indices(i):
            element, x, y = get_element(i)
            if not allow_orientation and not (_is_zero(x) and _is_zero(y)):
                raise UnsupportedFeatureError(ORIENTATION_NOT_IMPLEMENTED)
            orientation[0], orientation[1] = x, y
            return element
        return node_indices

    # ------------------------------------------------------------------
    # Isoparametric assembly
    # ------------------------------------------------------------------

    def add_isoparametric(self, elem_type: Isoparametric, constitutive: IsoConstituter,
                          n_elem: int, get_element: Callable) -> None:
        """
        Integrate and add isoparametric elements to the global matrix.

        Parameters:
        -----------
        elem_type : Isoparametric
            Element shared by all n_elem elements
        constitutive : IsoConstituter
            Material law; builds B and supplies C
        n_elem : int
            Number of elements
        get_element : callable
            get_element(i) -> (node_indices, orient_x, orient_y). Orientation
            vectors must be None or zero.

        Raises:
        -------
        ConfigurationError
            C not square, law written for another element layout, bad
            quadrature, incompatible DOFs
        ConnectivityError, ElementGeometryError
            Per-element failures; carry the element index
        UnsupportedFeatureError
            An element requested a material orientation
        """
        _require(("elem_type", elem_type), ("constitutive", constitutive), ("get_element", get_element))
        _check_layout(elem_type, constitutive)
        C = _square_constitutive(constitutive)
        integ = _IsoIntegrator(elem_type, C.shape[0], constitutive.set_strain_displacement,
                               self._config.assembly.det_tolerance)
        self._integrate_stiffness(elem_type, C, integ, n_elem, get_element)

    def add_isoparametric3(self, elem_type: Isoparametric, constitutive, n_elem: int,
                           get_element: Callable) -> None:
        """
        3D-only variant: 6x6 C and the Cartesian strain-displacement matrix.

        Any Constituter works here; no law-specific B is needed.
        """
        _require(("elem_type", elem_type), ("constitutive", constitutive), ("get_element", get_element))
        C = _square_constitutive(constitutive, expected=6)
        self._check_fixed_dims(elem_type, 3)
        integ = _IsoIntegrator(elem_type, 6, strain_displacement_xyz,
                               self._config.assembly.det_tolerance)
        self._integrate_stiffness(elem_type, C, integ, n_elem, get_element)

    def add_isoparametric2(self, elem_type: Isoparametric, constitutive, n_elem: int,
                           get_element: Callable) -> None:
        """2D-only variant: 3x3 C and the plane strain-displacement matrix."""
        _require(("elem_type", elem_type), ("constitutive", constitutive), ("get_element", get_element))
        C = _square_constitutive(constitutive, expected=3)
        self._check_fixed_dims(elem_type, 2)
        integ = _IsoIntegrator(elem_type, 3, strain_displacement_plane,
                               self._config.assembly.det_tolerance)
        self._integrate_stiffness(elem_type, C, integ, n_elem, get_element)

    @staticmethod
    def _check_fixed_dims(elem_type: Isoparametric, dims: int) -> None:
        got_dims = elem_type.spatial_dims()
        if got_dims != dims:
            raise ConfigurationError(f"expected a {dims}D element, got {got_dims}D")
        dpn = elem_type.dofs().count()
        if dpn != dims:
            raise ConfigurationError(f"expected element to have {dims} dofs per node, got {dpn}")

    def _integrate_stiffness(self, elem_type, C, integ: _IsoIntegrator, n_elem, get_element):
        # Fails before any work on an unusable element/model pairing
        dof_mapping(self._dofs, elem_type)
        if n_elem < 0:
            raise ValueError(f"negative element count {n_elem}")
        if n_elem == 0:
            return

        ndofe = integ.ndofe
        nval = ndofe * ndofe
        dim_c = C.shape[0]
        logger.debug("Integrating %d %s elements (%d dofs each)",
                     n_elem, type(elem_type).__name__, ndofe)

        accum = SparseAccum(nval * n_elem)
        Ke = np.zeros((ndofe, ndofe))
        aux1 = np.zeros((ndofe, dim_c))
        aux2 = np.zeros((ndofe, ndofe))

        def integrate(iele, elem_nodes, elem_dofs):
            Ke.fill(0)
            for _, B, factor in integ.points(iele, elem_nodes):
                # Ke += Bᵀ·C·B · detJ·w·scale
                np.matmul(B.T, C, out=aux1)
                np.matmul(aux1, B, out=aux2)
                np.multiply(aux2, factor, out=aux2)
                np.add(Ke, aux2, out=Ke)
            accum.set_block(iele * nval, elem_dofs, Ke)

        orientation = [None, None]
        self.for_each_element(elem_type, integ.dims, n_elem,
                              self._oriented_getter(get_element, orientation, False),
                              integrate)
        self._ksolid.accumulate(accum)
        logger.debug("Assembled %d elements, global nonzeros=%d",
                     n_elem, self._ksolid.count_nonzero())

    # ------------------------------------------------------------------
    # Closed-form elements
    # ------------------------------------------------------------------

    def add_element3(self, elem_type: Element3, n_elem: int, get_element: Callable) -> None:
        """
        Add elements that supply their own local stiffness matrix.

        When get_element(i) returns both orientation vectors, the local
        matrix is rotated into the global frame: Ke' = Rᵀ·Ke·R, with R the
        block-diagonal repetition of the 3x3 direction-cosine matrix over
        every translational and rotational triple.
        """
        _require(("elem_type", elem_type), ("get_element", get_element))
        mapping = dof_mapping(self._dofs, elem_type)
        if n_elem < 0:
            raise ValueError(f"negative element count {n_elem}")
        if n_elem == 0:
            return
        n = elem_type.node_count()
        ndofe = n * len(mapping)
        nval = ndofe * ndofe
        accum = SparseAccum(nval * n_elem)
        orientation = [None, None]

        def scatter(iele, elem_nodes, elem_dofs):
            Ke = np.asarray(elem_type.stiffness(elem_nodes.copy()), dtype=float)
            if Ke.shape != (ndofe, ndofe):
                raise ConfigurationError(
                    f"element #{iele}: stiffness shape {Ke.shape}, expected {ndofe}x{ndofe}"
                )
            x, y = orientation
            if not (_is_zero(x) and _is_zero(y)):
                R = element_rotator(x, y, n, mapping)
                Ke = R.T @ Ke @ R
            accum.set_block(iele * nval, elem_dofs, Ke)

        self.for_each_element(elem_type, 3, n_elem,
                              self._oriented_getter(get_element, orientation, True),
                              scatter)
        self._ksolid.accumulate(accum)
        logger.debug("Added %d %s elements", n_elem, type(elem_type).__name__)

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------

    def isoparametric_strains(self, displacements, elem_type: Isoparametric,
                              constitutive: IsoConstituter, n_elem: int,
                              get_element: Callable, callback: Callable) -> None:
        """
        Strains B·u_e at every quadrature point of every element.

        callback(iele, strains) receives an array of shape (q, dimC).
        """
        self._recover(displacements, elem_type, constitutive, n_elem, get_element,
                      callback, stresses=False)

    def isoparametric_stresses(self, displacements, elem_type: Isoparametric,
                               constitutive: IsoConstituter, n_elem: int,
                               get_element: Callable, callback: Callable) -> None:
        """Stresses C·B·u_e at every quadrature point, same layout as strains."""
        self._recover(displacements, elem_type, constitutive, n_elem, get_element,
                      callback, stresses=True)

    def _recover(self, displacements, elem_type, constitutive, n_elem, get_element,
                 callback, stresses: bool):
        _require(("displacements", displacements), ("elem_type", elem_type),
                 ("constitutive", constitutive), ("get_element", get_element),
                 ("callback", callback))
        _check_layout(elem_type, constitutive)
        u = np.asarray(displacements, dtype=float).ravel()
        if len(u) != self.total_dofs():
            raise ConfigurationError(
                f"displacements length {len(u)} does not match total number of dofs {self.total_dofs()}"
            )
        C = _square_constitutive(constitutive)
        integ = _IsoIntegrator(elem_type, C.shape[0], constitutive.set_strain_displacement,
                               self._config.assembly.det_tolerance)
        values = np.zeros((len(integ.weights), C.shape[0]))

        def recover(iele, elem_nodes, elem_dofs):
            ue = u[elem_dofs]
            for ipg, B, _ in integ.points(iele, elem_nodes):
                values[ipg] = B @ ue
            if stresses:
                callback(iele, values @ C.T)
            else:
                callback(iele, values.copy())

        orientation = [None, None]
        self.for_each_element(elem_type, integ.dims, n_elem,
                              self._oriented_getter(get_element, orientation, False),
                              recover)


def element_rotator(orient_x, orient_y, n_nodes: int, mapping: Sequence[int]) -> np.ndarray:
    """
    Rotation R for an element whose local x/y axes are orient_x/orient_y.

    R is built for 6 DOFs per node (two 3x3 blocks per node) and then
    restricted to the per-node DOFs listed in `mapping`.
    """
    if _is_zero(orient_x) or _is_zero(orient_y):
        raise ConfigurationError("element orientation needs both local x and y vectors")
    ex = np.asarray(orient_x, dtype=float)
    ex = ex / np.linalg.norm(ex)
    ez = np.cross(ex, np.asarray(orient_y, dtype=float))
    norm_z = np.linalg.norm(ez)
    if norm_z < 1e-12:
        raise ConfigurationError("element orientation vectors are parallel")
    ez = ez / norm_z
    ey = np.cross(ez, ex)
    T3 = np.vstack([ex, ey, ez])

    full = np.kron(np.eye(2 * n_nodes), T3)
    idx = [6 * k + m for k in range(n_nodes) for m in mapping]
    return full[np.ix_(idx, idx)]


def isoparametric_stiffness(elem_type: Isoparametric, constitutive: IsoConstituter,
                            elem_nodes, config: Config = None) -> np.ndarray:
    """
    Local stiffness matrix of a single element with the given node coordinates.

    elem_nodes has shape (node_count, dims). Raises the same geometry errors
    as GeneralAssembler.add_isoparametric (element index 0).
    """
    config = config if config is not None else CONFIG
    _check_layout(elem_type, constitutive)
    C = _square_constitutive(constitutive)
    integ = _IsoIntegrator(elem_type, C.shape[0], constitutive.set_strain_displacement,
                           config.assembly.det_tolerance)
    elem_nodes = np.asarray(elem_nodes, dtype=float)
    if elem_nodes.shape != (integ.n_nodes, integ.dims):
        raise ConfigurationError(
            f"expected element nodes of shape {(integ.n_nodes, integ.dims)}, got {elem_nodes.shape}"
        )
    Ke = np.zeros((integ.ndofe, integ.ndofe))
    for _, B, factor in integ.points(0, elem_nodes):
        Ke += B.T @ C @ B * factor
    return Ke
