"""Implementation of force constant indices and their canonical form.

A force constant element of order n + 2 is labeled by n + 2 combined indices
3 * atom + component. Since force constants are symmetric under permutation of
their indices, every element is stored in a canonical form, which is used as
the identity of the element throughout table construction and lookups.
"""

__author__ = "fcsym developers"

import numpy as np


class PrimitiveCellMap:
    """Membership table of supercell atoms in the primitive cell.

    Built from the primitive to supercell mapping, where map_p2s[i] lists the
    supercell atoms that are translations of primitive atom i and map_p2s[i][0]
    is the representative atom lying inside the primitive cell.

    Attributes:
        nat (int): number of atoms in the supercell.
        nat_prim (int): number of atoms in the primitive cell.
        prim_atoms (ndarray): representative supercell atom of each primitive atom.
    """

    def __init__(self, map_p2s, nat):
        """Initialize a PrimitiveCellMap.

        Args:
            map_p2s (Sequence of Sequence of int):
                primitive to supercell atom mapping.
            nat (int):
                total number of atoms in the supercell.
        """
        self.nat = nat
        self.prim_atoms = np.array([atoms[0] for atoms in map_p2s], dtype=int)
        self.nat_prim = len(self.prim_atoms)
        if np.any(self.prim_atoms >= nat) or np.any(self.prim_atoms < 0):
            raise ValueError(
                f"Primitive cell atoms {self.prim_atoms} out of range for {nat} atoms."
            )
        self._prim_index = np.full(nat, -1, dtype=int)
        self._prim_index[self.prim_atoms] = np.arange(self.nat_prim)

    def contains(self, atom):
        """Check if an atom is the representative of a primitive cell atom."""
        return self._prim_index[atom] >= 0

    def any_in_primitive(self, atoms):
        """Check if any of the given atoms lies in the primitive cell."""
        return bool(np.any(self._prim_index[atoms] >= 0))

    def primitive_index(self, atom):
        """Get the primitive cell index of an atom, or -1 if it is not in it."""
        return int(self._prim_index[atom])

    def inprim_index(self, index):
        """Get the combined primitive index 3 * i_prim + component.

        Args:
            index (int):
                combined supercell index 3 * atom + component.

        Returns:
            int: combined primitive index or -1 if the atom is not in the
            primitive cell.
        """
        i_prim = self._prim_index[index // 3]
        if i_prim < 0:
            return -1
        return int(3 * i_prim + index % 3)


def is_ascending(indices):
    """Check if a sequence of indices is weakly ascending."""
    return all(a <= b for a, b in zip(indices[:-1], indices[1:]))


def get_minimum_index_in_primitive(indices, primitive):
    """Get the position of the smallest index whose atom is in the primitive cell.

    Indices of atoms outside the primitive cell are taken as 3 * nat, so if
    no atom lies in the primitive cell the first position is returned.

    Args:
        indices (Sequence of int):
            combined indices 3 * atom + component.
        primitive (PrimitiveCellMap):
            primitive cell membership table.

    Returns:
        int
    """
    default = 3 * primitive.nat
    minval, minloc = default, 0
    for i, index in enumerate(indices):
        if primitive.contains(index // 3) and index < minval:
            minval, minloc = index, i
    return minloc


class ForceConstantIndex(tuple):
    """Combined (atom, component) indices of a force constant element.

    A plain tuple of ints, so equality and hashing are structural. Instances
    created with ForceConstantIndex.canonical are in canonical form: the
    smallest index of an atom in the primitive cell leads and the remaining
    indices are sorted ascending.
    """

    __slots__ = ()

    def __new__(cls, indices=()):
        """Create an index from a sequence of combined indices."""
        return super().__new__(cls, (int(i) for i in indices))

    @classmethod
    def canonical(cls, indices, primitive):
        """Create the canonical form of the given combined indices.

        Args:
            indices (Sequence of int):
                combined indices 3 * atom + component in any order.
            primitive (PrimitiveCellMap):
                primitive cell membership table.

        Returns:
            ForceConstantIndex
        """
        indices = [int(i) for i in indices]
        i_prim = get_minimum_index_in_primitive(indices, primitive)
        indices[0], indices[i_prim] = indices[i_prim], indices[0]
        return cls([indices[0]] + sorted(indices[1:]))

    @classmethod
    def from_atoms_components(cls, atoms, components, primitive=None):
        """Create an index from atom indices and Cartesian components.

        Args:
            atoms (Sequence of int):
                atom index of each slot.
            components (Sequence of int):
                Cartesian component (0, 1 or 2) of each slot.
            primitive (PrimitiveCellMap): optional
                if given the canonical form is returned.
        """
        indices = [3 * atom + comp for atom, comp in zip(atoms, components)]
        if primitive is None:
            return cls(indices)
        return cls.canonical(indices, primitive)

    @property
    def atoms(self):
        """Get the atom index of each slot."""
        return np.array([i // 3 for i in self], dtype=int)

    @property
    def components(self):
        """Get the Cartesian component of each slot."""
        return np.array([i % 3 for i in self], dtype=int)

    def move_to_front(self, position):
        """Get a new index with the given slot swapped to the front.

        The remaining indices are sorted, so the result is the canonical-like
        form of the same element led by another slot.
        """
        indices = list(self)
        indices[0], indices[position] = indices[position], indices[0]
        return ForceConstantIndex([indices[0]] + sorted(indices[1:]))

    def __repr__(self):
        """Get the index representation."""
        return f"{self.__class__.__name__}({tuple(self)})"
