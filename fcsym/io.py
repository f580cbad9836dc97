"""Input and output functions.

Convenience functions to store the results of a symmetry reduction, for
example the ForceConstants and SymmetryData objects, in a single json file
that a fitting code can read later.
"""

__author__ = "fcsym developers"

from monty.json import MSONable
from monty.serialization import dumpfn, loadfn


def save_work(file_path, *msonables):
    """Save MSONable objects of a symmetry reduction in one json file.

    Objects are keyed by class name, so only one object per class can be
    stored in a file.

    Args:
        file_path (str):
            file path, compressed if it ends in .gz or .bz2
        *msonables (monty.MSONable):
            objects to save.
    """
    work_d = {}
    for msonable in msonables:
        if not isinstance(msonable, MSONable):
            raise TypeError(f"Cannot save an object that is not MSONable: {msonable}")
        name = msonable.__class__.__name__
        if name in work_d:
            raise ValueError(f"Only one {name} object can be saved per file.")
        work_d[name] = msonable
    dumpfn(work_d, file_path)


def load_work(file_path):
    """Load the objects saved with save_work.

    Args:
        file_path (str):
            file path

    Returns:
        dict: class name to deserialized object
    """
    return loadfn(file_path)
