"""
A few testing utilities to check force constant tables against the symmetry
operations they were built with.
"""

import json
import pickle

import numpy as np
from monty.json import MontyDecoder, MSONable

from fcsym.fcs import ForceConstantIndex


def assert_msonable(obj, skip_keys=None):
    """Test that obj round trips through its dict and json representations."""
    assert isinstance(obj, MSONable)
    skip_keys = [] if skip_keys is None else skip_keys
    d1 = obj.as_dict()
    d2 = obj.__class__.from_dict(d1).as_dict()
    for key in d1.keys():
        if key in skip_keys:
            continue
        assert d1[key] == d2[key]

    decoded = json.loads(obj.to_json(), cls=MontyDecoder)
    assert isinstance(decoded, obj.__class__)


def assert_pickles(obj):
    """Test that obj pickles into an object of the same class and content."""
    obj_copy = pickle.loads(pickle.dumps(obj))
    assert isinstance(obj_copy, obj.__class__)
    assert obj_copy.as_dict() == obj.as_dict()


def map_entry(elems, rotation, atom_map, primitive):
    """Apply a symmetry operation to a force constant element.

    Yields:
        tuple: (ForceConstantIndex, float) canonical mapped index and the
        rotation coefficient, for all components with nonzero coefficient.
    """
    elems = ForceConstantIndex(elems)
    atoms = atom_map[elems.atoms]
    for new in np.ndindex(*(3,) * len(elems)):
        coef = np.prod([rotation[n, o] for n, o in zip(new, elems.components)])
        if abs(coef) > 1e-12:
            yield ForceConstantIndex.from_atoms_components(atoms, new, primitive), coef


def random_parameters(fc_table, nparams, rng):
    """Get random values of all entries consistent with the table."""
    params = rng.random(nparams)
    return {entry.elems: entry.sign * params[entry.mother] for entry in fc_table}
