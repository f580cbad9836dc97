import numpy as np
import pytest
from pymatgen.core import Lattice, Structure
from pymatgen.core.operations import SymmOp
from pymatgen.symmetry.analyzer import SpacegroupAnalyzer

from fcsym.fcs import SymmetryData, SymmetryOperation

MIRROR_Y = np.diag([1.0, -1.0, 1.0])


@pytest.fixture(scope="package")
def chain_symmetry():
    """Periodic two atom chain along x, with one atom per primitive cell.

    The mirror flipping y combined with the translation by one atom exchanges
    the two atoms. Operations are given as the full supercell group.
    """
    symops = [
        SymmetryOperation(np.eye(3)),
        SymmetryOperation(np.eye(3)),  # translation
        SymmetryOperation(MIRROR_Y),  # mirror exchanging the atoms
        SymmetryOperation(MIRROR_Y),  # mirror keeping the atoms
    ]
    map_sym = [[0, 1, 1, 0], [1, 0, 0, 1]]
    return SymmetryData(symops, map_sym, map_p2s=[[0, 1]])


@pytest.fixture(scope="package")
def chain_clusters():
    return [[(0, 0), (0, 1)], [(0, 0, 0), (0, 0, 1), (0, 1, 1)]]


@pytest.fixture(scope="package")
def cubic_symmetry():
    """Single atom simple cubic crystal with the full Oh point group."""
    structure = Structure(Lattice.cubic(3.0), ["Po"], [[0, 0, 0]])
    sga = SpacegroupAnalyzer(structure)
    symops = [
        SymmetryOperation.from_symmop(op, structure.lattice)
        for op in sga.get_point_group_operations(cartesian=True)
    ]
    return SymmetryData(symops, np.zeros((1, len(symops)), dtype=int), [[0]])


@pytest.fixture(scope="package")
def trigonal_symmetry():
    """Single atom with a 3-fold axis along z.

    The 3-fold rotations are not compatible with the Cartesian basis, so the
    table is built with the identity only and the rotations give constraints.
    """
    symops = [
        SymmetryOperation.from_symmop(
            SymmOp.from_axis_angle_and_translation([0, 0, 1], angle)
        )
        for angle in (0, 120, 240)
    ]
    return SymmetryData(symops, np.zeros((1, 3), dtype=int), [[0]])


@pytest.fixture(scope="package")
def dimer_symmetry():
    """Two atoms both in the primitive cell related by inversion."""
    symops = [SymmetryOperation(np.eye(3)), SymmetryOperation(-np.eye(3))]
    return SymmetryData(symops, [[0, 1], [1, 0]], [[0], [1]])


SEED = None


@pytest.fixture(scope="module")
def rng():
    """Seed and return an RNG for test reproducibility"""
    return np.random.default_rng(SEED)
