"""Implementation of the symmetry reduced force constant table.

The table of a given interaction order lists every force constant element
related by symmetry to an irreducible parameter (the mother of its orbit),
together with the coefficient (sign) relating the element to the parameter.
Orbits that vanish identically by symmetry are removed from the table.
"""

__author__ = "fcsym developers"

import logging
from dataclasses import dataclass

import numpy as np
from monty.json import MSONable
from tqdm import tqdm

from fcsym import constants
from fcsym.fcs.index import ForceConstantIndex, is_ascending
from fcsym.fcs.symmetry import check_basis
from fcsym.utils.math import coef_sym_all, get_xyz_components, permutation_degeneracy

logger = logging.getLogger(__name__)


@dataclass
class FcProperty(MSONable):
    """A force constant element tagged by its irreducible parameter.

    The value of the element is sign times the value of parameter mother.

    Attributes:
        elems (ForceConstantIndex):
            combined (atom, component) indices of the element.
        sign (float):
            coefficient relating the element to its parameter.
        mother (int):
            id of the irreducible parameter, or ZERO_MOTHER for elements of
            symmetry-zero orbits.
    """

    elems: ForceConstantIndex
    sign: float
    mother: int

    def __post_init__(self):
        """Cast fields to their value types."""
        self.elems = ForceConstantIndex(self.elems)
        self.sign = float(self.sign)
        self.mother = int(self.mother)

    @property
    def sort_key(self):
        """Get the key defining the total order of entries."""
        return tuple(self.elems), self.sign

    @property
    def is_zero(self):
        """Check if the element belongs to a symmetry-zero orbit."""
        return self.mother == constants.ZERO_MOTHER

    @property
    def degeneracy(self):
        """Get the permutation degeneracy factor of the element."""
        return permutation_degeneracy(self.elems)

    def as_dict(self):
        """Get Json-serialization dict representation.

        Returns:
            MSONable dict
        """
        return {
            "@module": self.__class__.__module__,
            "@class": self.__class__.__name__,
            "elems": list(self.elems),
            "sign": self.sign,
            "mother": self.mother,
        }

    @classmethod
    def from_dict(cls, d):
        """Create an FcProperty from serialized dict."""
        return cls(d["elems"], d["sign"], d["mother"])


def _permutation_entries(elems, sign, mother, primitive):
    """Get copies of an entry led by each other primitive cell index.

    A fitting consumer assembles one row per primitive cell atom, and reads
    the table by the leading index only, so an element involving more than
    one primitive cell index must be listed once per distinct leading index.
    """
    entries = []
    searched = {elems[0]}
    for i in range(1, len(elems)):
        index = elems[i]
        if index not in searched and primitive.contains(index // 3):
            entries.append(FcProperty(elems.move_to_front(i), sign, mother))
            searched.add(index)
    return entries


class OrbitBuilder:
    """Builder of symmetry reduced force constant tables.

    Each call to build partitions every (cluster, Cartesian component)
    element of one interaction order into orbits using the symmetry
    operations compatible with the basis.

    Attributes:
        symmetry (SymmetryData):
            symmetry operations and atom mapping tables.
        basis (str):
            "Cartesian" or "Lattice".
        store_zeros (bool):
            whether elements of symmetry-zero orbits are kept apart.
    """

    def __init__(self, symmetry, basis="Cartesian", store_zeros=True, progress=False):
        """Initialize an OrbitBuilder.

        Args:
            symmetry (SymmetryData):
                symmetry operations and atom mapping tables.
            basis (str):
                "Cartesian" or "Lattice".
            store_zeros (bool):
                if True keep the elements of symmetry-zero orbits.
            progress (bool):
                if True show a progress bar over clusters.
        """
        check_basis(basis)
        self.symmetry = symmetry
        self.basis = basis
        self.store_zeros = store_zeros
        self.progress = progress

    def build(self, order, clusters):
        """Build the force constant table of one interaction order.

        Args:
            order (int):
                interaction order, 0 for harmonic (pair) force constants.
            clusters (Iterable of Sequence of int):
                atom sorted clusters of order + 2 atoms.

        Returns:
            tuple: (list of FcProperty, list of int, list of FcProperty)
            the live table, the number of entries per orbit (one orbit per
            irreducible parameter) and the entries of symmetry-zero orbits.
        """
        fc_table, nequiv, fc_zeros = [], [], []
        if order < 0:
            return fc_table, nequiv, fc_zeros

        nelems = order + 2
        primitive = self.symmetry.primitive
        rotations, map_sym = self.symmetry.get_available_symmops(
            self.basis, use_compatible=True
        )
        xyz_components = get_xyz_components(nelems)
        # canonical indices registered to any orbit of this order
        list_found = set()
        nmother = 0

        clusters = list(clusters)
        for cluster in tqdm(
            clusters, desc=f"Order {order} orbits", disable=not self.progress
        ):
            atoms = np.array(cluster, dtype=int)
            if len(atoms) != nelems:
                raise ValueError(
                    f"Cluster {tuple(cluster)} has {len(atoms)} atoms, but "
                    f"{nelems} are needed for order {order}."
                )
            atoms_mapped_all = map_sym[atoms]

            for xyz_old in xyz_components:
                indices = 3 * atoms + xyz_old
                if not is_ascending(indices):
                    continue

                canonical = ForceConstantIndex.canonical(indices, primitive)
                if canonical in list_found:
                    continue

                is_zero = False
                orbit_entries = []
                for isym, rotation in enumerate(rotations):
                    atoms_mapped = atoms_mapped_all[:, isym]
                    if not primitive.any_in_primitive(atoms_mapped):
                        continue

                    coefs = coef_sym_all(rotation, xyz_old, xyz_components)
                    for inew in np.flatnonzero(np.abs(coefs) > constants.COEF_TOL):
                        coef = float(coefs[inew])
                        mapped = ForceConstantIndex.canonical(
                            3 * atoms_mapped + xyz_components[inew], primitive
                        )

                        if (
                            not is_zero
                            and mapped == canonical
                            and abs(coef + 1.0) < constants.ZERO_TOL
                        ):
                            is_zero = True

                        if mapped in list_found:
                            continue
                        list_found.add(mapped)
                        orbit_entries.append(FcProperty(mapped, coef, nmother))
                        orbit_entries.extend(
                            _permutation_entries(mapped, coef, nmother, primitive)
                        )

                if is_zero:
                    if self.store_zeros:
                        fc_zeros.extend(
                            FcProperty(entry.elems, entry.sign, constants.ZERO_MOTHER)
                            for entry in orbit_entries
                        )
                else:
                    fc_table.extend(orbit_entries)
                    nequiv.append(len(orbit_entries))
                    nmother += 1

        # sort each orbit so that its first entry is a deterministic exemplar
        start = 0
        for ndup in nequiv:
            fc_table[start : start + ndup] = sorted(
                fc_table[start : start + ndup], key=lambda entry: entry.sort_key
            )
            start += ndup

        logger.debug(
            "Order %d: %d clusters, %d parameters, %d entries, %d zero entries.",
            order,
            len(clusters),
            len(nequiv),
            len(fc_table),
            len(fc_zeros),
        )
        return fc_table, nequiv, fc_zeros


def generate_force_constant_table(
    order, clusters, symmetry, basis="Cartesian", store_zeros=True
):
    """Generate the symmetry reduced force constant table of one order.

    Convenience function wrapping OrbitBuilder.build. See OrbitBuilder for
    details.

    Returns:
        tuple: (fc_table, nequiv, fc_zeros)
    """
    builder = OrbitBuilder(symmetry, basis=basis, store_zeros=store_zeros)
    return builder.build(order, clusters)
