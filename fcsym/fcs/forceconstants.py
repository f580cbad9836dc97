"""Implementation of the ForceConstants class.

ForceConstants gathers the symmetry reduced tables of all interaction orders
of a crystal, and is the object a fitting code reads the irreducible
parameters, their expanded entries and the symmetry constraints from.
"""

__author__ = "fcsym developers"

import logging
from collections import defaultdict

from monty.json import MSONable

from fcsym.constants import get_ordername
from fcsym.fcs.constraint import ConstraintDeriver
from fcsym.fcs.symmetry import SymmetryData, check_basis
from fcsym.fcs.table import FcProperty, OrbitBuilder
from fcsym.utils.math import NUM_TOL, get_free_basis, sparse_rows_to_matrix
from fcsym.utils.numthreads import SetNumThreads

logger = logging.getLogger(__name__)


class ForceConstants(MSONable):
    """Symmetry reduced force constants up to a maximum interaction order.

    Attributes:
        symmetry (SymmetryData):
            symmetry operations and atom mapping tables.
        cluster_lists (list of list of tuple):
            atom clusters of each order, order 0 being pairs.
        basis (str):
            "Cartesian" or "Lattice".
        store_zeros (bool):
            whether entries of symmetry-zero orbits are kept.
        num_threads (int):
            number of threads used when deriving constraints.
    """

    num_threads = SetNumThreads()

    def __init__(
        self,
        symmetry,
        cluster_lists,
        basis="Cartesian",
        store_zeros=True,
        num_threads=None,
    ):
        """Initialize ForceConstants.

        Tables are not built until generate is called.

        Args:
            symmetry (SymmetryData):
                symmetry operations and atom mapping tables.
            cluster_lists (Sequence of Iterable):
                for each order, the atom sorted clusters of order + 2 atoms.
            basis (str):
                "Cartesian" or "Lattice".
            store_zeros (bool):
                if True keep entries of orbits that vanish by symmetry.
            num_threads (int): optional
                number of threads used when deriving constraints.
        """
        check_basis(basis)
        self.symmetry = symmetry
        self.cluster_lists = [
            sorted({tuple(int(i) for i in cluster) for cluster in clusters})
            for clusters in cluster_lists
        ]
        self.basis = basis
        self.store_zeros = store_zeros
        self.num_threads = num_threads

        self._fc_table = None
        self._nequiv = None
        self._fc_zeros = None

    @property
    def maxorder(self):
        """Get the number of interaction orders."""
        return len(self.cluster_lists)

    @property
    def is_generated(self):
        """Check if the force constant tables have been built."""
        return self._fc_table is not None

    @property
    def fc_table(self):
        """Get the live force constant table of each order."""
        self._check_generated()
        return self._fc_table

    @property
    def nequiv(self):
        """Get the number of entries of each irreducible parameter per order."""
        self._check_generated()
        return self._nequiv

    @property
    def fc_zeros(self):
        """Get the entries of symmetry-zero orbits of each order."""
        self._check_generated()
        return self._fc_zeros

    @property
    def num_params(self):
        """Get the number of irreducible parameters of each order."""
        return [len(nequiv) for nequiv in self.nequiv]

    @property
    def total_num_params(self):
        """Get the total number of irreducible parameters."""
        return sum(self.num_params)

    def generate(self, progress=False):
        """Build the force constant tables of all orders.

        Args:
            progress (bool):
                if True show a progress bar per order.

        Returns:
            ForceConstants: self
        """
        builder = OrbitBuilder(
            self.symmetry,
            basis=self.basis,
            store_zeros=self.store_zeros,
            progress=progress,
        )
        self._fc_table, self._nequiv, self._fc_zeros = [], [], []
        for order, clusters in enumerate(self.cluster_lists):
            fc_table, nequiv, fc_zeros = builder.build(order, clusters)
            self._fc_table.append(fc_table)
            self._nequiv.append(nequiv)
            self._fc_zeros.append(fc_zeros)

        for order, nequiv in enumerate(self._nequiv):
            logger.info(
                "Number of %9s FCs : %d", get_ordername(order), len(nequiv)
            )
        return self

    def get_orbits(self, order):
        """Get the entries of an order grouped by irreducible parameter.

        Returns:
            list of list of FcProperty: one list per parameter, the first
            entry of each list being the orbit exemplar.
        """
        orbits, start = [], 0
        for ndup in self.nequiv[order]:
            orbits.append(self.fc_table[order][start : start + ndup])
            start += ndup
        return orbits

    def get_entries_by_primitive_atom(self, order):
        """Get the entries of each parameter keyed by their leading index.

        Keys are combined primitive cell indices 3 * i_prim + component of the
        leading slot of each entry. Every primitive cell index appearing in any
        slot of an entry is a key of its parameter, so the contribution of a
        parameter to the force on each primitive atom can be read directly.

        Returns:
            list of dict: for each parameter a dict of primitive index to the
            list of entries led by that index.
        """
        primitive = self.symmetry.primitive
        mappings = []
        for orbit in self.get_orbits(order):
            by_atom = defaultdict(list)
            for entry in orbit:
                by_atom[primitive.inprim_index(entry.elems[0])].append(entry)
            mappings.append(dict(by_atom))
        return mappings

    def get_constraint_symmetry(self, order, tolerance=NUM_TOL, do_rref=False):
        """Derive constraints among the parameters of an order.

        The constraints come from the symmetry operations that are not
        compatible with the basis, which were not used to build the table.

        Args:
            order (int):
                interaction order.
            tolerance (float):
                pivot threshold for the row reduction.
            do_rref (bool):
                if True reduce the rows to row echelon form.

        Returns:
            list of dict: sparse constraint rows {parameter: coefficient}.
        """
        deriver = ConstraintDeriver(
            self.symmetry,
            basis=self.basis,
            tolerance=tolerance,
            do_rref=do_rref,
            num_threads=self.num_threads,
        )
        return deriver.derive(order, self.fc_table[order], self.num_params[order])

    def get_constraint_matrix(self, order, tolerance=NUM_TOL, do_rref=True):
        """Get the symmetry constraints of an order as a sparse matrix.

        Returns:
            csr_matrix: of shape (nconstraints, num_params[order])
        """
        rows = self.get_constraint_symmetry(order, tolerance, do_rref)
        return sparse_rows_to_matrix(rows, self.num_params[order])

    def get_free_parameter_basis(self, order, tolerance=NUM_TOL):
        """Get a basis of parameter vectors satisfying all symmetry constraints.

        A fit can be done over the coefficients of these basis vectors
        instead of the parameters, so that the constraints hold exactly.

        Returns:
            ndarray: of shape (num_params[order], nfree)
        """
        rows = self.get_constraint_symmetry(order, tolerance, do_rref=True)
        return get_free_basis(rows, self.num_params[order], tolerance)

    def _check_generated(self):
        if self._fc_table is None:
            raise RuntimeError(
                "Force constant tables have not been generated. Call generate first."
            )

    def __str__(self):
        """Pretty print the number of parameters per order."""
        outs = [
            " FORCE CONSTANT",
            " ==============",
            f" Basis : {self.basis}",
        ]
        if self.is_generated:
            for order, nparams in enumerate(self.num_params):
                outs.append(f"  Number of {get_ordername(order):>9} FCs : {nparams}")
        else:
            outs.append("  Tables not generated.")
        return "\n".join(outs)

    def as_dict(self):
        """Get Json-serialization dict representation.

        Returns:
            MSONable dict
        """
        fcs_d = {
            "@module": self.__class__.__module__,
            "@class": self.__class__.__name__,
            "symmetry": self.symmetry.as_dict(),
            "cluster_lists": [
                [list(cluster) for cluster in clusters]
                for clusters in self.cluster_lists
            ],
            "basis": self.basis,
            "store_zeros": self.store_zeros,
            "num_threads": self.num_threads,
        }
        if self.is_generated:
            fcs_d["fc_table"] = [
                [entry.as_dict() for entry in table] for table in self._fc_table
            ]
            fcs_d["nequiv"] = self._nequiv
            fcs_d["fc_zeros"] = [
                [entry.as_dict() for entry in table] for table in self._fc_zeros
            ]
        return fcs_d

    @classmethod
    def from_dict(cls, d):
        """Create ForceConstants from serialized dict."""
        fcs = cls(
            SymmetryData.from_dict(d["symmetry"]),
            d["cluster_lists"],
            basis=d["basis"],
            store_zeros=d["store_zeros"],
            num_threads=d.get("num_threads"),
        )
        if "fc_table" in d:
            fcs._fc_table = [
                [FcProperty.from_dict(ed) for ed in table] for table in d["fc_table"]
            ]
            fcs._nequiv = [list(nequiv) for nequiv in d["nequiv"]]
            fcs._fc_zeros = [
                [FcProperty.from_dict(ed) for ed in table] for table in d["fc_zeros"]
            ]
        return fcs
