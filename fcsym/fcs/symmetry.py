"""Symmetry operations and atom mapping tables of a crystal supercell.

Symmetry operations are not searched for here. They are given, for example
from a pymatgen SpacegroupAnalyzer, together with the permutation of supercell
atoms induced by each operation and the mapping of primitive cell atoms to
supercell atoms.
"""

__author__ = "fcsym developers"

import numpy as np
from monty.json import MSONable
from pymatgen.core.operations import SymmOp

from fcsym import constants
from fcsym.fcs.index import PrimitiveCellMap
from fcsym.utils.exceptions import (
    BASIS_ERROR_MESSAGE,
    BasisError,
    SymmetryDataError,
)

BASES = ("cartesian", "lattice")


def check_basis(basis):
    """Get the normalized name of a basis or raise a BasisError."""
    name = basis.lower() if isinstance(basis, str) else basis
    if name not in BASES:
        raise BasisError(BASIS_ERROR_MESSAGE.format(basis=basis))
    return name


def is_compatible(matrix, tol=None):
    """Check if a rotation matrix maps basis vectors onto basis vectors.

    A rotation is compatible with a basis if it has exactly one nonzero
    element per row in that basis, i.e. it only permutes and flips the basis
    vectors.
    """
    tol = constants.ZERO_TOL if tol is None else tol
    return int(np.sum(np.abs(matrix) > tol)) == 3


class SymmetryOperation(MSONable):
    """A point symmetry operation of a crystal.

    Attributes:
        rotation_cart (ndarray):
            3 x 3 rotation in Cartesian coordinates.
        rotation (ndarray):
            3 x 3 rotation in fractional (lattice) coordinates.
        compatible_with_cartesian (bool):
            True if the rotation only permutes and flips Cartesian axes.
        compatible_with_lattice (bool):
            True if the rotation only permutes and flips lattice vectors.
    """

    def __init__(
        self,
        rotation_cart,
        rotation=None,
        compatible_with_cartesian=None,
        compatible_with_lattice=None,
    ):
        """Initialize a SymmetryOperation.

        Args:
            rotation_cart (ArrayLike):
                3 x 3 Cartesian rotation matrix.
            rotation (ArrayLike): optional
                3 x 3 fractional rotation matrix. If not given the Cartesian
                rotation is used, which is correct for orthonormal lattices.
            compatible_with_cartesian (bool): optional
                compatibility flag, determined from rotation_cart if not given.
            compatible_with_lattice (bool): optional
                compatibility flag, determined from rotation if not given.
        """
        self.rotation_cart = np.array(rotation_cart, dtype=float).reshape(3, 3)
        if rotation is None:
            rotation = self.rotation_cart
        self.rotation = np.array(rotation, dtype=float).reshape(3, 3)

        if compatible_with_cartesian is None:
            compatible_with_cartesian = is_compatible(self.rotation_cart)
        if compatible_with_lattice is None:
            compatible_with_lattice = is_compatible(self.rotation)
        self.compatible_with_cartesian = bool(compatible_with_cartesian)
        self.compatible_with_lattice = bool(compatible_with_lattice)

    @classmethod
    def from_symmop(cls, symmop, lattice=None):
        """Create a SymmetryOperation from a pymatgen SymmOp.

        Args:
            symmop (SymmOp):
                a Cartesian symmetry operation. The translation is ignored.
            lattice (Lattice): optional
                pymatgen Lattice to obtain the fractional rotation.
        """
        rotation_cart = symmop.rotation_matrix
        if lattice is None:
            return cls(rotation_cart)
        # lattice vectors are the rows of the lattice matrix
        latt_t = lattice.matrix.T
        rotation = np.linalg.inv(latt_t) @ rotation_cart @ latt_t
        return cls(rotation_cart, np.rint(rotation))

    def get_rotation(self, basis):
        """Get the rotation matrix in the given basis."""
        if check_basis(basis) == "cartesian":
            return self.rotation_cart
        return self.rotation

    def is_compatible_with(self, basis):
        """Check compatibility with the given basis."""
        if check_basis(basis) == "cartesian":
            return self.compatible_with_cartesian
        return self.compatible_with_lattice

    def to_symmop(self):
        """Get a pymatgen SymmOp with the Cartesian rotation and no translation."""
        return SymmOp.from_rotation_and_translation(self.rotation_cart, np.zeros(3))

    def __repr__(self):
        """Get SymmetryOperation representation."""
        rows = "\n".join(
            "  " + " ".join(f"{x:8.4f}" for x in row) for row in self.rotation_cart
        )
        return (
            f"SymmetryOperation (cartesian: {self.compatible_with_cartesian}, "
            f"lattice: {self.compatible_with_lattice})\n{rows}"
        )

    def as_dict(self):
        """Get Json-serialization dict representation.

        Returns:
            MSONable dict
        """
        return {
            "@module": self.__class__.__module__,
            "@class": self.__class__.__name__,
            "rotation_cart": self.rotation_cart.tolist(),
            "rotation": self.rotation.tolist(),
            "compatible_with_cartesian": self.compatible_with_cartesian,
            "compatible_with_lattice": self.compatible_with_lattice,
        }

    @classmethod
    def from_dict(cls, d):
        """Create a SymmetryOperation from serialized dict."""
        return cls(
            d["rotation_cart"],
            d["rotation"],
            d["compatible_with_cartesian"],
            d["compatible_with_lattice"],
        )


class SymmetryData(MSONable):
    """Symmetry operations of a supercell with their atom mapping tables.

    Attributes:
        symops (tuple of SymmetryOperation):
            all symmetry operations.
        map_sym (ndarray):
            integer array of shape (nat, nsym), map_sym[i, isym] is the atom
            that atom i is mapped to by operation isym.
        map_p2s (list of list of int):
            primitive to supercell atom mapping.
        primitive (PrimitiveCellMap):
            primitive cell membership table.
    """

    def __init__(self, symops, map_sym, map_p2s):
        """Initialize SymmetryData.

        Args:
            symops (Sequence of SymmetryOperation):
                symmetry operations of the crystal.
            map_sym (ArrayLike):
                atom permutation table of shape (nat, nsym).
            map_p2s (Sequence of Sequence of int):
                primitive to supercell atom mapping.
        """
        self.symops = tuple(symops)
        self.map_sym = np.array(map_sym, dtype=int)
        if self.map_sym.ndim != 2 or self.map_sym.shape[1] != len(self.symops):
            raise SymmetryDataError(
                f"Atom mapping table of shape {self.map_sym.shape} does not match "
                f"{len(self.symops)} symmetry operations."
            )
        if np.any(self.map_sym < 0) or np.any(self.map_sym >= self.nat):
            raise SymmetryDataError(
                f"Atom mapping table has entries out of range for {self.nat} atoms."
            )
        self.map_p2s = [[int(i) for i in atoms] for atoms in map_p2s]
        try:
            self.primitive = PrimitiveCellMap(self.map_p2s, self.nat)
        except ValueError as error:
            raise SymmetryDataError(str(error)) from error

    @property
    def nat(self):
        """Get the number of atoms in the supercell."""
        return self.map_sym.shape[0]

    @property
    def nat_prim(self):
        """Get the number of atoms in the primitive cell."""
        return self.primitive.nat_prim

    @property
    def nsym(self):
        """Get the number of symmetry operations."""
        return len(self.symops)

    def get_available_symmops(self, basis, use_compatible=True):
        """Get the rotations and atom mappings of a subset of operations.

        Args:
            basis (str):
                "Cartesian" or "Lattice".
            use_compatible (bool):
                if True, the operations compatible with the basis are
                returned (used to build force constant tables), otherwise the
                incompatible operations (used to derive constraints).

        Returns:
            tuple: (ndarray, ndarray) rotations of shape (nsym_avail, 3, 3)
            in the given basis and atom mappings of shape (nat, nsym_avail).
        """
        basis = check_basis(basis)
        inds = [
            i
            for i, symop in enumerate(self.symops)
            if symop.is_compatible_with(basis) == use_compatible
        ]
        rotations = np.array(
            [self.symops[i].get_rotation(basis) for i in inds], dtype=float
        ).reshape(len(inds), 3, 3)
        return rotations, self.map_sym[:, inds]

    def __len__(self):
        """Get number of symmetry operations."""
        return self.nsym

    def __str__(self):
        """Pretty print symmetry data."""
        ncart = sum(symop.compatible_with_cartesian for symop in self.symops)
        nlatt = sum(symop.compatible_with_lattice for symop in self.symops)
        outs = [
            "Symmetry Data",
            f"      No. atoms : {self.nat:<4}",
            f" No. prim atoms : {self.nat_prim:<4}",
            f"No. symmetry ops : {self.nsym:<4}",
            f"  Cartesian compatible : {ncart:<4}",
            f"    Lattice compatible : {nlatt:<4}",
        ]
        return "\n".join(outs)

    def as_dict(self):
        """Get Json-serialization dict representation.

        Returns:
            MSONable dict
        """
        return {
            "@module": self.__class__.__module__,
            "@class": self.__class__.__name__,
            "symops": [symop.as_dict() for symop in self.symops],
            "map_sym": self.map_sym.tolist(),
            "map_p2s": self.map_p2s,
        }

    @classmethod
    def from_dict(cls, d):
        """Create SymmetryData from serialized dict."""
        return cls(
            [SymmetryOperation.from_dict(sd) for sd in d["symops"]],
            np.array(d["map_sym"], dtype=int),
            d["map_p2s"],
        )
