"""Definitions of specific exceptions raised elsewhere."""


BASIS_ERROR_MESSAGE = (
    "Invalid basis {basis!r}. "
    "Force constant tables can only be built in the "
    "'Cartesian' or the 'Lattice' basis."
)


class BasisError(ValueError):
    """Exception for an unrecognized coordinate basis selector.

    This is a configuration error and is never recovered from locally. Any
    operation that receives an invalid basis raises it before doing any work.
    """


class SymmetryDataError(ValueError):
    """Raised when symmetry operations and atom mapping tables do not agree."""
