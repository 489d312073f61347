# isofem/post.py
"""
POST-PROCESSING: Tabular Nodal and Element Results
==================================================

Turns solution vectors and recovered strains/stresses into pandas
DataFrames for inspection, filtering and export:

    df = nodal_results(ga.nodes, gs.global_solution(), DofsFlag.POS)
    df.sort_values("magnitude").tail()

    strains = {}
    ga.isoparametric_strains(u, elem, law, n, get, lambda i, s: strains.update({i: s}))
    element_results(strains, STRAIN_LABELS_3D)
"""

from typing import Dict, Sequence

import numpy as np
import pandas as pd

from .kernel.dof import DofsFlag

# Column name for each DOF bit position
DOF_LABELS = ("ux", "uy", "uz", "rx", "ry", "rz")

STRAIN_LABELS_3D = ("exx", "eyy", "ezz", "gxy", "gyz", "gxz")
STRAIN_LABELS_PLANE = ("exx", "eyy", "gxy")
STRAIN_LABELS_AXISYMMETRIC = ("err", "ett", "ezz", "grz")
STRESS_LABELS_3D = ("sxx", "syy", "szz", "txy", "tyz", "txz")
STRESS_LABELS_PLANE = ("sxx", "syy", "txy")


def nodal_results(nodes, solution, dofs: DofsFlag) -> pd.DataFrame:
    """
    One row per node: coordinates, one column per model DOF and the
    magnitude of the translational DOFs.

    Parameters:
    -----------
    nodes : array-like, shape (N, 1..3)
        Node coordinates
    solution : array-like, shape (N * dofs.count(),)
        Global solution vector
    dofs : DofsFlag
        Model DOFs per node
    """
    nodes = np.asarray(nodes, dtype=float)
    dofs = DofsFlag(int(dofs))
    bits = dofs.bits()
    values = np.asarray(solution, dtype=float).reshape(len(nodes), len(bits))

    data = {}
    for axis, name in enumerate("xyz"):
        data[name] = nodes[:, axis] if axis < nodes.shape[1] else np.zeros(len(nodes))
    for k, bit in enumerate(bits):
        data[DOF_LABELS[bit]] = values[:, k]
    translational = [k for k, bit in enumerate(bits) if bit < 3]
    data["magnitude"] = np.linalg.norm(values[:, translational], axis=1)

    df = pd.DataFrame(data)
    df.index.name = "node"
    return df


def element_results(values_by_element: Dict[int, np.ndarray],
                    labels: Sequence[str]) -> pd.DataFrame:
    """
    One row per (element, quadrature point) with one column per component.

    values_by_element maps element index to a (q, len(labels)) array as
    passed to the isoparametric_strains / isoparametric_stresses callbacks.
    """
    rows = []
    for iele in sorted(values_by_element):
        block = np.atleast_2d(np.asarray(values_by_element[iele], dtype=float))
        assert block.shape[1] == len(labels), \
            f"element {iele}: {block.shape[1]} components for {len(labels)} labels"
        for ipg, row in enumerate(block):
            rows.append({"element": iele, "point": ipg, **dict(zip(labels, row))})
    df = pd.DataFrame(rows, columns=["element", "point", *labels])
    return df.set_index(["element", "point"])


def von_mises(stresses: pd.DataFrame) -> pd.Series:
    """Von Mises equivalent stress from STRESS_LABELS_3D or STRESS_LABELS_PLANE columns."""
    s = stresses
    if "szz" in s:
        return np.sqrt(
            0.5 * ((s.sxx - s.syy) ** 2 + (s.syy - s.szz) ** 2 + (s.szz - s.sxx) ** 2)
            + 3 * (s.txy ** 2 + s.tyz ** 2 + s.txz ** 2)
        )
    return np.sqrt(s.sxx ** 2 - s.sxx * s.syy + s.syy ** 2 + 3 * s.txy ** 2)


