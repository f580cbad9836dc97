"""Mathematic utilities.

Including the combinatorics needed to enumerate Cartesian components of force
constants, rotation coefficients of tensor components and sparse linear
algebra for constraint rows.
"""

__author__ = "fcsym developers"

from collections import Counter
from functools import reduce
from operator import mul

import numpy as np
from scipy.linalg import null_space
from scipy.sparse import csr_matrix

# Global numerical tolerance in this module.
NUM_TOL = 1e-6


def _next_permutation(seq):
    """Rearrange a list in place into its next lexicographic permutation.

    Returns:
        bool: False if seq was already the last permutation, in which case it
        is left sorted ascending.
    """
    i = len(seq) - 2
    while i >= 0 and seq[i] >= seq[i + 1]:
        i -= 1
    if i < 0:
        seq.reverse()
        return False
    j = len(seq) - 1
    while seq[j] <= seq[i]:
        j -= 1
    seq[i], seq[j] = seq[j], seq[i]
    seq[i + 1 :] = reversed(seq[i + 1 :])
    return True


def next_partial_permutations(sequence, n):
    """Yield the distinct arrangements of n elements drawn from a multiset.

    Arrangements are yielded in lexicographic order, each exactly once, even if
    the multiset has repeated elements. Every call starts over from the sorted
    multiset.

    Args:
        sequence (Sequence):
            the multiset of elements to draw from.
        n (int):
            number of elements in each arrangement.

    Yields:
        tuple: the first n elements of the next distinct arrangement.
    """
    seq = sorted(sequence)
    if n > len(seq):
        raise ValueError(
            f"Cannot draw {n} elements from a multiset of size {len(seq)}."
        )
    yield tuple(seq[:n])
    while True:
        # reversing the tail makes the next permutation skip all orderings
        # that only differ beyond the first n positions
        seq[n:] = reversed(seq[n:])
        if not _next_permutation(seq):
            return
        yield tuple(seq[:n])


def get_xyz_components(n):
    """Get all assignments of Cartesian axes to n slots.

    Args:
        n (int):
            number of slots, order + 2 for force constants.

    Returns:
        ndarray: integer array of shape (3**n, n) with values in {0, 1, 2}
    """
    multiset = [0] * n + [1] * n + [2] * n
    return np.array(list(next_partial_permutations(multiset, n)), dtype=int).reshape(
        3**n, n
    )


def coef_sym(rotation, old_components, new_components):
    """Get the coefficient linking two Cartesian component assignments.

    The product over all slots of rotation[new, old].

    Args:
        rotation (ndarray):
            3 x 3 rotation matrix.
        old_components (Sequence):
            Cartesian components of the original tensor element.
        new_components (Sequence):
            Cartesian components of the rotated tensor element.

    Returns:
        float
    """
    return reduce(
        mul,
        (rotation[new, old] for old, new in zip(old_components, new_components)),
        1.0,
    )


def coef_sym_all(rotation, old_components, xyz_components):
    """Get the rotation coefficients for all rows of an xyz component table.

    Args:
        rotation (ndarray):
            3 x 3 rotation matrix.
        old_components (Sequence):
            Cartesian components of the original tensor element.
        xyz_components (ndarray):
            array of shape (m, n) of new component assignments.

    Returns:
        ndarray: coefficients of shape (m,)
    """
    old_components = np.asarray(old_components, dtype=int)
    return np.prod(rotation[xyz_components, old_components[None, :]], axis=1)


def factorial(n):
    """Compute n! iteratively."""
    if n < 0:
        raise ValueError("factorial is not defined for negative values.")
    result = 1
    for i in range(2, n + 1):
        result *= i
    return result


def permutation_degeneracy(indices):
    """Get the degeneracy factor of a force constant index.

    The number of slots equal to the leading index, divided by the product of
    the factorials of the multiplicities of each distinct index. Used to
    weight force constant entries when assembling displacement matrices.

    Args:
        indices (Sequence of int):
            combined (atom, component) indices.

    Returns:
        float
    """
    counts = Counter(indices)
    denom = 1
    for count in counts.values():
        denom *= factorial(count)
    return counts[indices[0]] / denom


def is_allzero(vec, tol=NUM_TOL):
    """Check if all entries of a vector are zero within tolerance.

    Returns:
        tuple: (bool, int) True and -1 if all entries are below tol, otherwise
        False and the location of the first entry above tol.
    """
    nonzero = np.flatnonzero(np.abs(vec) > tol)
    if len(nonzero) == 0:
        return True, -1
    return False, int(nonzero[0])


def rref_sparse(rows, ncols, tolerance=NUM_TOL):
    """Compute the reduced row echelon form of a set of sparse rows.

    Gauss-Jordan elimination with partial pivoting. Columns whose largest
    remaining magnitude is below tolerance are skipped as non-pivots, and
    rows that end up with all entries below tolerance are removed.

    Args:
        rows (list of dict):
            sparse rows given as {column: value} dictionaries.
        ncols (int):
            total number of columns.
        tolerance (float):
            pivot threshold.

    Returns:
        list of dict: the nonzero rows of the rref, sorted by pivot column,
        with each pivot equal to 1.
    """
    if not rows or ncols == 0:
        return []

    mat = np.zeros((len(rows), ncols))
    for i, row in enumerate(rows):
        for col, val in row.items():
            mat[i, col] = val

    nrows = mat.shape[0]
    pivot_row = 0
    for col in range(ncols):
        if pivot_row >= nrows:
            break
        imax = pivot_row + int(np.argmax(np.abs(mat[pivot_row:, col])))
        if abs(mat[imax, col]) < tolerance:
            mat[pivot_row:, col] = 0.0
            continue
        if imax != pivot_row:
            mat[[pivot_row, imax]] = mat[[imax, pivot_row]]
        mat[pivot_row] /= mat[pivot_row, col]
        mat[pivot_row, col] = 1.0
        for i in range(nrows):
            if i != pivot_row and mat[i, col] != 0.0:
                mat[i] -= mat[i, col] * mat[pivot_row]
                mat[i, col] = 0.0
        pivot_row += 1

    reduced = []
    for row in mat[:pivot_row]:
        cols = np.flatnonzero(np.abs(row) >= tolerance)
        if len(cols) > 0:
            reduced.append({int(c): float(row[c]) for c in cols})
    return reduced


def sparse_rows_to_matrix(rows, ncols):
    """Assemble sparse {column: value} rows into a csr matrix.

    Args:
        rows (list of dict):
            sparse rows.
        ncols (int):
            total number of columns.

    Returns:
        csr_matrix: of shape (len(rows), ncols)
    """
    data, indices, indptr = [], [], [0]
    for row in rows:
        for col in sorted(row):
            indices.append(col)
            data.append(row[col])
        indptr.append(len(indices))
    return csr_matrix(
        (np.array(data, dtype=float), np.array(indices, dtype=int), indptr),
        shape=(len(rows), ncols),
    )


def get_free_basis(rows, ncols, tolerance=NUM_TOL):
    """Get an orthonormal basis of the vectors satisfying all sparse rows.

    Args:
        rows (list of dict):
            sparse homogeneous constraint rows.
        ncols (int):
            total number of columns.
        tolerance (float):
            relative singular value threshold.

    Returns:
        ndarray: of shape (ncols, nfree), columns spanning the null space.
    """
    if not rows:
        return np.eye(ncols)
    mat = sparse_rows_to_matrix(rows, ncols).toarray()
    return null_space(mat, rcond=tolerance)
