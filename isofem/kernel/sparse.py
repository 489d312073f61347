# isofem/kernel/sparse.py
"""
SPARSE ACCUMULATION: Triplet Batches and the Global Sparse Matrix
=================================================================

PURPOSE:
--------
Element assembly produces the same (row, col, value) pattern for every
element: dofs_per_element**2 entries. Instead of touching the global matrix
once per entry, an assembly call writes every element's entries into a
pre-sized SparseAccum at offset element_index * dofs_per_element**2 and
folds the whole batch into the SparseMatrix at the very end.

    accum = SparseAccum(n_elem * ndofe**2)
    for iele in range(n_elem):
        accum.set_block(iele * ndofe**2, elem_dofs, Ke)
    K.accumulate(accum)       # duplicates are summed, zeros skipped

Each element owns a disjoint slice of the accumulator, so elements could be
integrated in any order (or concurrently) without locking. Only the final
fold touches shared state.

SparseMatrix wraps a scipy.sparse CSR matrix and never stores explicit zeros.
"""

from typing import Iterator, Tuple

import numpy as np
import scipy.sparse as sp


class SparseAccum:
    """
    Fixed-capacity batch of (row, col, value) triplets.

    Attributes:
    -----------
    rows, cols : np.ndarray of int
        Global coordinates of each entry
    values : np.ndarray of float
        Entry values. Unwritten slots stay zero and are skipped when folding.
    """

    def __init__(self, capacity: int):
        assert capacity >= 1, f"SparseAccum capacity must be positive, got {capacity}"
        self.rows = np.zeros(capacity, dtype=np.intp)
        self.cols = np.zeros(capacity, dtype=np.intp)
        self.values = np.zeros(capacity, dtype=float)

    def __len__(self) -> int:
        return len(self.values)

    def set(self, offset: int, row: int, col: int, value: float) -> None:
        """Write one triplet at a fixed position. The batch never grows."""
        self.rows[offset] = row
        self.cols[offset] = col
        self.values[offset] = value

    def set_block(self, offset: int, dofs, Ke: np.ndarray) -> None:
        """
        Write a whole element matrix starting at `offset`.

        Entry Ke[a, b] lands at offset + a*n + b with coordinates
        (dofs[a], dofs[b]). Structural zeros are written too.
        """
        dofs = np.asarray(dofs, dtype=np.intp)
        n = len(dofs)
        assert Ke.shape == (n, n), \
            f"Element Ke shape {Ke.shape} doesn't match dof map length {n}"
        end = offset + n * n
        self.rows[offset:end] = np.repeat(dofs, n)
        self.cols[offset:end] = np.tile(dofs, n)
        self.values[offset:end] = Ke.ravel()

    def zero(self) -> None:
        self.rows[:] = 0
        self.cols[:] = 0
        self.values[:] = 0

    def fold_into(self, matrix: "SparseMatrix") -> None:
        """Add every recorded triplet to `matrix` (matrix[row, col] += value)."""
        matrix.accumulate(self)


class SparseMatrix:
    """
    Persistent sparse matrix with additive accumulation.

    Parameters:
    -----------
    rows, cols : int
        Matrix dimensions

    Examples:
    ---------
    >>> K = SparseMatrix(3, 3)
    >>> acc = SparseAccum(2)
    >>> acc.set(0, 1, 1, 2.0)
    >>> acc.set(1, 1, 1, 3.0)
    >>> K.accumulate(acc)
    >>> K.at(1, 1)
    5.0
    """

    def __init__(self, rows: int, cols: int):
        if rows < 0 or cols < 0:
            raise ValueError(f"negative sparse matrix dimensions {rows}x{cols}")
        self._m = sp.csr_matrix((rows, cols), dtype=float)

    @property
    def shape(self) -> Tuple[int, int]:
        return self._m.shape

    def _check(self, i: int, j: int) -> None:
        r, c = self.shape
        if not 0 <= i < r:
            raise IndexError(f"row index {i} out of range for {r} rows")
        if not 0 <= j < c:
            raise IndexError(f"column index {j} out of range for {c} columns")

    def at(self, i: int, j: int) -> float:
        self._check(i, j)
        return float(self._m[i, j])

    def set(self, i: int, j: int, value: float) -> None:
        """Overwrite a single entry. Setting zero removes it."""
        self._check(i, j)
        delta = value - self._m[i, j]
        if delta != 0:
            self._m = self._m + sp.csr_matrix(([delta], ([i], [j])), shape=self.shape)
            self._m.eliminate_zeros()

    def accumulate(self, accum: SparseAccum, trans: bool = False,
                   row_offset: int = 0, col_offset: int = 0) -> None:
        """
        Sum a triplet batch into the matrix.

        Exact zeros are skipped (zero is the identity of the sum). Duplicate
        coordinates add up. With trans=True rows and columns are swapped
        before the offsets are applied.

        Raises:
        -------
        IndexError
            A non-zero triplet falls outside the matrix
        """
        keep = accum.values != 0
        rows = accum.rows[keep]
        cols = accum.cols[keep]
        if trans:
            rows, cols = cols, rows
        rows = rows + row_offset
        cols = cols + col_offset
        vals = accum.values[keep]
        if len(vals) == 0:
            return

        r, c = self.shape
        if rows.min() < 0 or rows.max() >= r:
            raise IndexError(f"accumulated row index out of range for {r} rows")
        if cols.min() < 0 or cols.max() >= c:
            raise IndexError(f"accumulated column index out of range for {c} columns")

        # coo -> csr sums duplicate coordinates
        batch = sp.coo_matrix((vals, (rows, cols)), shape=self.shape).tocsr()
        self._m = self._m + batch
        self._m.eliminate_zeros()

    def resize(self, rows: int, cols: int) -> None:
        """Change dimensions. Entries outside the new bounds are dropped."""
        if rows < 0 or cols < 0:
            raise ValueError(f"negative sparse matrix dimensions {rows}x{cols}")
        coo = self._m.tocoo()
        keep = (coo.row < rows) & (coo.col < cols)
        self._m = sp.csr_matrix(
            (coo.data[keep], (coo.row[keep], coo.col[keep])), shape=(rows, cols)
        )

    def zero(self) -> None:
        self._m = sp.csr_matrix(self.shape, dtype=float)

    def count_nonzero(self) -> int:
        return int(self._m.count_nonzero())

    def nonzero_items(self) -> Iterator[Tuple[int, int, float]]:
        """Yield (row, col, value) for every stored entry, row-major."""
        coo = self._m.tocoo()
        order = np.lexsort((coo.col, coo.row))
        for k in order:
            yield int(coo.row[k]), int(coo.col[k]), float(coo.data[k])

    def tocsr(self) -> sp.csr_matrix:
        return self._m.copy()

    def toarray(self) -> np.ndarray:
        return self._m.toarray()

    def dot(self, x) -> np.ndarray:
        return self._m @ np.asarray(x, dtype=float)

    def __repr__(self) -> str:
        r, c = self.shape
        return f"SparseMatrix({r}x{c}, nnz={self.count_nonzero()})"
