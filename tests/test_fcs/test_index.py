import pickle

import numpy as np
import numpy.testing as npt
import pytest

from fcsym.fcs.index import (
    ForceConstantIndex,
    PrimitiveCellMap,
    get_minimum_index_in_primitive,
    is_ascending,
)


@pytest.fixture
def primitive():
    # 4 atom supercell of a 2 atom primitive cell
    return PrimitiveCellMap([[1, 3], [2, 0]], nat=4)


def test_primitive_cell_map(primitive):
    assert primitive.nat_prim == 2
    npt.assert_array_equal(primitive.prim_atoms, [1, 2])
    assert [primitive.contains(i) for i in range(4)] == [False, True, True, False]
    assert [primitive.primitive_index(i) for i in range(4)] == [-1, 0, 1, -1]
    assert primitive.any_in_primitive(np.array([0, 3, 2]))
    assert not primitive.any_in_primitive(np.array([0, 3]))
    # atom 2 is the second primitive atom, component z
    assert primitive.inprim_index(3 * 2 + 2) == 5
    assert primitive.inprim_index(3 * 0 + 1) == -1


def test_primitive_cell_map_bad_atoms():
    with pytest.raises(ValueError):
        PrimitiveCellMap([[4]], nat=4)


def test_is_ascending():
    assert is_ascending([0, 1, 1, 5])
    assert is_ascending([3])
    assert not is_ascending([0, 2, 1])


def test_minimum_index_in_primitive(primitive):
    # atoms 0 and 3 are not in the primitive cell
    assert get_minimum_index_in_primitive([0, 9, 7, 3], primitive) == 3
    assert get_minimum_index_in_primitive([8, 6, 4], primitive) == 2
    # ties resolve to the first position
    assert get_minimum_index_in_primitive([5, 3, 3], primitive) == 1
    # no atom in the primitive cell
    assert get_minimum_index_in_primitive([9, 0, 10], primitive) == 0


def test_canonical(primitive):
    index = ForceConstantIndex.canonical([11, 0, 7, 4], primitive)
    assert index == (4, 0, 7, 11)
    assert isinstance(index, ForceConstantIndex)
    # canonical form does not depend on the order of the slots
    for perm in ([0, 4, 7, 11], [7, 11, 4, 0], [4, 11, 0, 7]):
        assert ForceConstantIndex.canonical(perm, primitive) == index
        assert hash(ForceConstantIndex.canonical(perm, primitive)) == hash(index)
    assert ForceConstantIndex.canonical(index, primitive) == index


def test_atoms_components(primitive):
    index = ForceConstantIndex.from_atoms_components([3, 1, 2], [0, 2, 1])
    assert index == (9, 5, 7)
    npt.assert_array_equal(index.atoms, [3, 1, 2])
    npt.assert_array_equal(index.components, [0, 2, 1])
    canonical = ForceConstantIndex.from_atoms_components(
        [3, 1, 2], [0, 2, 1], primitive
    )
    assert canonical == (5, 7, 9)


def test_move_to_front():
    index = ForceConstantIndex([3, 0, 5, 7])
    assert index.move_to_front(2) == (5, 0, 3, 7)
    assert index.move_to_front(0) == index


def test_value_semantics():
    index = ForceConstantIndex([0, 3])
    assert {index: 1}[ForceConstantIndex((0, 3))] == 1
    assert ForceConstantIndex([0, 3]) < ForceConstantIndex([0, 4])
    assert pickle.loads(pickle.dumps(index)) == index
    assert "ForceConstantIndex" in repr(index)
