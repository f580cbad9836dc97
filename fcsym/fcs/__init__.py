"""Classes to build symmetry reduced tables of anharmonic force constants.

Contains the classes and functions necessary to partition force constant
elements into symmetry orbits, pick one irreducible parameter per orbit and
derive the remaining symmetry constraints among the irreducible parameters.
"""

from .constraint import (
    ConstraintDeriver,
    canonicalize_constraints,
    get_constraint_symmetry,
)
from .forceconstants import ForceConstants
from .index import ForceConstantIndex, PrimitiveCellMap
from .symmetry import SymmetryData, SymmetryOperation
from .table import FcProperty, OrbitBuilder, generate_force_constant_table

__all__ = [
    "ForceConstants",
    "ForceConstantIndex",
    "PrimitiveCellMap",
    "FcProperty",
    "OrbitBuilder",
    "ConstraintDeriver",
    "SymmetryData",
    "SymmetryOperation",
    "generate_force_constant_table",
    "get_constraint_symmetry",
    "canonicalize_constraints",
]
