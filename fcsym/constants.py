"""Definitions of global numerical constants used throughout fcsym."""

import sys

# Tolerances are module level so they can be tightened or loosened at runtime
# in a script before any tables are generated, i.e.
# import fcsym.constants
# fcsym.constants.ZERO_TOL = your_desired_value

# absolute tolerance to screen a single product of rotation matrix entries.
# Products below this are treated as exact zeros and never mapped.
COEF_TOL = 1e-12

# absolute tolerance for any accumulated or compared value: the -1 test for
# symmetry-zero orbits, the all-zero test of constraint vectors and the
# removal of vanishing coefficients from sparse constraint rows.
ZERO_TOL = 1e-8

# parameter id given to entries of orbits that vanish by symmetry
ZERO_MOTHER = sys.maxsize

# names used when reporting the number of parameters per interaction order
ORDER_NAMES = ("harmonic", "anharm3", "anharm4", "anharm5", "anharm6")


def get_ordername(order):
    """Get the name of an interaction order (0 is harmonic)."""
    if order < len(ORDER_NAMES):
        return ORDER_NAMES[order]
    return f"anharm{order + 2}"
