"""Linear constraints among irreducible force constants from symmetry.

The force constant table of a basis is built only with the symmetry
operations compatible with that basis (for example the 3-fold rotations of a
hexagonal crystal are not compatible with a Cartesian basis). The remaining
operations still relate the irreducible parameters to each other, and these
relations are derived here as homogeneous sparse linear constraints.
"""

__author__ = "fcsym developers"

import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from fcsym import constants
from fcsym.fcs.index import ForceConstantIndex
from fcsym.fcs.symmetry import check_basis
from fcsym.utils.math import (
    NUM_TOL,
    coef_sym_all,
    get_xyz_components,
    is_allzero,
    rref_sparse,
)
from fcsym.utils.numthreads import SetNumThreads

logger = logging.getLogger(__name__)


def canonicalize_constraints(rows):
    """Normalize, sort and deduplicate sparse constraint rows.

    Each row is divided by its first (lowest column) coefficient, so that
    coefficient is exactly one. Rows are then sorted by content and exact
    duplicates are dropped, so the result does not depend on the order in
    which rows were found.

    Args:
        rows (Iterable):
            sparse rows, each either a {column: value} dict or a sequence of
            (column, value) pairs. Rows must not be empty.

    Returns:
        list of dict: canonical rows ordered by column.
    """
    normalized = set()
    for row in rows:
        items = sorted(row.items() if isinstance(row, dict) else row)
        if not items:
            continue
        factor = 1.0 / items[0][1]
        normalized.add(
            ((int(items[0][0]), 1.0),)
            + tuple((int(col), float(val) * factor) for col, val in items[1:])
        )
    return [dict(row) for row in sorted(normalized)]


def _derive_rows(
    entries, lookup, rotations, map_sym, primitive, xyz_components, nparams
):
    """Derive the candidate constraint rows of a chunk of table entries.

    Only reads its inputs, and returns the rows it found as a new list.
    """
    rows = []
    coeffs = np.empty(nparams)
    for entry in entries:
        atoms = entry.elems.atoms
        components = entry.elems.components

        for isym, rotation in enumerate(rotations):
            atoms_mapped = map_sym[atoms, isym]
            if not primitive.any_in_primitive(atoms_mapped):
                continue

            coeffs[:] = 0.0
            coeffs[entry.mother] = -entry.sign

            coefs = coef_sym_all(rotation, components, xyz_components)
            for xyz_new, coef in zip(xyz_components, coefs):
                mapped = ForceConstantIndex.canonical(
                    3 * atoms_mapped + xyz_new, primitive
                )
                found = lookup.get(mapped)
                if found is not None:
                    mother, sign = found
                    coeffs[mother] += sign * coef

            allzero, loc = is_allzero(coeffs, constants.ZERO_TOL)
            if allzero:
                continue
            if coeffs[loc] < 0.0:
                coeffs *= -1.0
            cols = np.flatnonzero(np.abs(coeffs) >= constants.ZERO_TOL)
            rows.append(tuple((int(col), float(coeffs[col])) for col in cols))
    return rows


class ConstraintDeriver:
    """Deriver of symmetry constraints among irreducible force constants.

    Attributes:
        symmetry (SymmetryData):
            symmetry operations and atom mapping tables.
        basis (str):
            basis of the force constant tables the constraints apply to.
        tolerance (float):
            pivot threshold used when reducing the constraint rows.
        do_rref (bool):
            whether the canonical rows are reduced to row echelon form.
        reducer (Callable):
            function (rows, ncols, tolerance) -> rows used to reduce.
        num_threads (int):
            number of threads used to derive rows.
    """

    num_threads = SetNumThreads()

    def __init__(
        self,
        symmetry,
        basis="Cartesian",
        tolerance=NUM_TOL,
        do_rref=False,
        reducer=None,
        num_threads=None,
    ):
        """Initialize a ConstraintDeriver.

        Args:
            symmetry (SymmetryData):
                symmetry operations and atom mapping tables.
            basis (str):
                "Cartesian" or "Lattice".
            tolerance (float):
                pivot threshold for the row reduction.
            do_rref (bool):
                if True reduce the canonical rows with the reducer.
            reducer (Callable): optional
                sparse row echelon reducer, rref_sparse by default.
            num_threads (int): optional
                number of threads, the package default if not given.
        """
        check_basis(basis)
        self.symmetry = symmetry
        self.basis = basis
        self.tolerance = tolerance
        self.do_rref = do_rref
        self.reducer = rref_sparse if reducer is None else reducer
        self.num_threads = num_threads

    def derive(self, order, fc_table, nparams):
        """Derive the constraint rows of one interaction order.

        Args:
            order (int):
                interaction order of the table.
            fc_table (Sequence of FcProperty):
                finalized live force constant table of that order.
            nparams (int):
                number of irreducible parameters of that order.

        Returns:
            list of dict: sparse constraint rows {parameter: coefficient}.
        """
        if order < 0 or nparams == 0 or len(fc_table) == 0:
            return []

        rotations, map_sym = self.symmetry.get_available_symmops(
            self.basis, use_compatible=False
        )
        if len(rotations) == 0:
            return []

        for entry in fc_table:
            if not 0 <= entry.mother < nparams:
                raise ValueError(
                    f"Entry {entry} refers to parameter {entry.mother}, but only "
                    f"{nparams} parameters are given."
                )

        lookup = {}
        for entry in fc_table:
            lookup.setdefault(entry.elems, (entry.mother, entry.sign))

        xyz_components = get_xyz_components(order + 2)
        args = (
            lookup,
            rotations,
            map_sym,
            self.symmetry.primitive,
            xyz_components,
            nparams,
        )

        nchunks = min(self.num_threads, len(fc_table))
        bounds = np.linspace(0, len(fc_table), nchunks + 1, dtype=int)
        chunks = [fc_table[start:stop] for start, stop in zip(bounds[:-1], bounds[1:])]
        if nchunks == 1:
            results = [_derive_rows(chunks[0], *args)]
        else:
            with ThreadPoolExecutor(max_workers=nchunks) as executor:
                results = list(
                    executor.map(lambda chunk: _derive_rows(chunk, *args), chunks)
                )

        candidates = [row for rows in results for row in rows]
        constraints = canonicalize_constraints(candidates)
        logger.debug(
            "Order %d: %d candidate constraint rows, %d unique.",
            order,
            len(candidates),
            len(constraints),
        )

        if self.do_rref:
            constraints = self.reducer(constraints, nparams, self.tolerance)
        return constraints


def get_constraint_symmetry(
    order,
    fc_table,
    symmetry,
    nparams,
    basis="Cartesian",
    tolerance=NUM_TOL,
    do_rref=False,
    num_threads=None,
    reducer=None,
):
    """Derive symmetry constraints among the parameters of one order.

    Convenience function wrapping ConstraintDeriver.derive. See
    ConstraintDeriver for details.

    Returns:
        list of dict: sparse constraint rows {parameter: coefficient}.
    """
    deriver = ConstraintDeriver(
        symmetry,
        basis=basis,
        tolerance=tolerance,
        do_rref=do_rref,
        reducer=reducer,
        num_threads=num_threads,
    )
    return deriver.derive(order, fc_table, nparams)
