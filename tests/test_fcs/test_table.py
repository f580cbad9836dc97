from collections import defaultdict

import numpy as np
import pytest

from fcsym.constants import ZERO_MOTHER
from fcsym.fcs import FcProperty, ForceConstantIndex, OrbitBuilder
from fcsym.fcs.table import generate_force_constant_table
from fcsym.utils.exceptions import BasisError
from tests.utils import assert_msonable, map_entry

# expected pair table of the two atom chain, one list of (elems, sign) per
# irreducible parameter
CHAIN_PAIR_ORBITS = [
    [((0, 0), 1.0)],
    [((0, 2), 1.0), ((2, 0), 1.0)],
    [((1, 1), 1.0)],
    [((2, 2), 1.0)],
    [((0, 3), 1.0)],
    [((0, 5), 1.0), ((2, 3), 1.0)],
    [((1, 4), 1.0)],
    [((2, 5), 1.0)],
]


def get_orbits(fc_table, nequiv):
    orbits, start = [], 0
    for ndup in nequiv:
        orbits.append(fc_table[start : start + ndup])
        start += ndup
    return orbits


@pytest.fixture(
    params=[("chain", 0), ("chain", 1), ("cubic", 0), ("cubic", 1), ("dimer", 0)]
)
def system(request, chain_symmetry, chain_clusters, cubic_symmetry, dimer_symmetry):
    name, order = request.param
    if name == "chain":
        return chain_symmetry, order, chain_clusters[order]
    if name == "cubic":
        return cubic_symmetry, order, [(0,) * (order + 2)]
    return dimer_symmetry, order, [(0, 0), (0, 1), (1, 1)]


@pytest.fixture
def table(system):
    symmetry, order, clusters = system
    return generate_force_constant_table(order, clusters, symmetry, "Cartesian")


def test_chain_pair_table(chain_symmetry, chain_clusters):
    fc_table, nequiv, fc_zeros = generate_force_constant_table(
        0, chain_clusters[0], chain_symmetry
    )
    assert nequiv == [len(orbit) for orbit in CHAIN_PAIR_ORBITS]
    for mother, (orbit, expected) in enumerate(
        zip(get_orbits(fc_table, nequiv), CHAIN_PAIR_ORBITS)
    ):
        assert [(tuple(e.elems), e.sign) for e in orbit] == expected
        assert all(e.mother == mother for e in orbit)

    # xy and yz elements are odd under the mirror keeping the atoms
    zero_elems = {tuple(e.elems) for e in fc_zeros}
    assert zero_elems == {
        (0, 1),
        (1, 0),
        (1, 2),
        (2, 1),
        (0, 4),
        (1, 3),
        (1, 5),
        (2, 4),
    }
    assert all(e.mother == ZERO_MOTHER and e.is_zero for e in fc_zeros)


def test_chain_mirror_pair(chain_symmetry):
    # (0, 1, x, x) is equivalent to (1, 0, x, x) by the mirror, one parameter
    fc_table, nequiv, _ = generate_force_constant_table(0, [(0, 1)], chain_symmetry)
    xx = ForceConstantIndex.from_atoms_components(
        [1, 0], [0, 0], chain_symmetry.primitive
    )
    assert xx == (0, 3)
    owners = [e.mother for e in fc_table if e.elems == xx]
    assert len(owners) == 1
    assert sum(1 for e in fc_table if e.mother == owners[0]) == 1

    # x on atom 0 and y on atom 1 is odd under the mirror
    xy = ForceConstantIndex([0, 4])
    assert xy not in {e.elems for e in fc_table}
    assert len(nequiv) == 4


def test_store_zeros(chain_symmetry, chain_clusters):
    fc_table, nequiv, fc_zeros = generate_force_constant_table(
        0, chain_clusters[0], chain_symmetry, store_zeros=False
    )
    assert fc_zeros == []
    assert len(nequiv) == len(CHAIN_PAIR_ORBITS)


def test_cubic_tables(cubic_symmetry):
    # harmonic on-site force constants of a cubic site are a multiple of identity
    fc_table, nequiv, fc_zeros = generate_force_constant_table(
        0, [(0, 0)], cubic_symmetry
    )
    assert nequiv == [3]
    assert [tuple(e.elems) for e in fc_table] == [(0, 0), (1, 1), (2, 2)]
    np.testing.assert_allclose([e.sign for e in fc_table], 1.0)
    assert len(fc_zeros) > 0

    # odd order force constants vanish with inversion symmetry
    fc_table, nequiv, fc_zeros = generate_force_constant_table(
        1, [(0, 0, 0)], cubic_symmetry
    )
    assert fc_table == []
    assert nequiv == []
    assert len({e.elems for e in fc_zeros}) == len(fc_zeros) > 0


def test_unique_orbit_membership(table):
    fc_table, nequiv, fc_zeros = table
    all_elems = [e.elems for e in fc_table + fc_zeros]
    assert len(all_elems) == len(set(all_elems))


def test_duplicate_counts(table):
    fc_table, nequiv, _ = table
    assert sum(nequiv) == len(fc_table)
    mothers = [e.mother for e in fc_table]
    # parameters are dense and assigned block by block
    assert mothers == sorted(mothers)
    assert sorted(set(mothers)) == list(range(len(nequiv)))
    for orbit in get_orbits(*table[:2]):
        keys = [e.sort_key for e in orbit]
        assert keys == sorted(keys)


def test_orbit_closure(system, table):
    symmetry, _, _ = system
    fc_table, _, fc_zeros = table
    primitive = symmetry.primitive
    rotations, map_sym = symmetry.get_available_symmops("Cartesian")
    lookup = {e.elems: e for e in fc_table}
    zeros = {e.elems for e in fc_zeros}

    for entry in fc_table:
        for isym, rotation in enumerate(rotations):
            if not primitive.any_in_primitive(map_sym[entry.elems.atoms, isym]):
                continue
            for mapped, coef in map_entry(
                entry.elems, rotation, map_sym[:, isym], primitive
            ):
                assert mapped not in zeros
                other = lookup[mapped]
                assert other.mother == entry.mother
                assert other.sign == pytest.approx(coef * entry.sign)


def test_zero_orbits_self_map(system, table):
    symmetry, _, _ = system
    fc_table, _, fc_zeros = table
    primitive = symmetry.primitive
    rotations, map_sym = symmetry.get_available_symmops("Cartesian")

    for entry in fc_zeros:
        if entry.elems != ForceConstantIndex.canonical(entry.elems, primitive):
            continue
        assert any(
            mapped == entry.elems and abs(coef + 1) < 1e-8
            for isym, rotation in enumerate(rotations)
            for mapped, coef in map_entry(
                entry.elems, rotation, map_sym[:, isym], primitive
            )
        )


def test_entries_per_primitive_index(system, table):
    symmetry, _, _ = system
    fc_table, nequiv, _ = table
    primitive = symmetry.primitive
    for orbit in get_orbits(fc_table, nequiv):
        leading = defaultdict(set)
        for entry in orbit:
            leading[entry.elems[0]].add(tuple(sorted(entry.elems)))
        for entry in orbit:
            for index in entry.elems:
                if primitive.contains(index // 3):
                    # an entry led by each primitive index of every element
                    assert tuple(sorted(entry.elems)) in leading[index]


def test_dimer_permutation_entries(dimer_symmetry):
    fc_table, nequiv, _ = generate_force_constant_table(0, [(0, 1)], dimer_symmetry)
    # both atoms lie in the primitive cell, so each element is listed twice
    assert all(n % 2 == 0 for n in nequiv)
    orbit = get_orbits(fc_table, nequiv)[0]
    assert [tuple(e.elems) for e in orbit] == [(0, 3), (3, 0)]


def test_invalid_basis(chain_symmetry):
    with pytest.raises(BasisError):
        OrbitBuilder(chain_symmetry, basis="Spherical")
    with pytest.raises(BasisError):
        generate_force_constant_table(0, [(0, 1)], chain_symmetry, basis="xyz")


def test_bad_cluster(chain_symmetry):
    with pytest.raises(ValueError):
        OrbitBuilder(chain_symmetry).build(1, [(0, 1)])


def test_empty_inputs(chain_symmetry):
    builder = OrbitBuilder(chain_symmetry)
    assert builder.build(0, []) == ([], [], [])
    assert builder.build(-1, [(0, 1)]) == ([], [], [])


def test_lattice_basis(chain_symmetry, chain_clusters):
    # orthonormal operations give the same tables in both bases
    cart = generate_force_constant_table(0, chain_clusters[0], chain_symmetry)
    latt = generate_force_constant_table(
        0, chain_clusters[0], chain_symmetry, basis="Lattice"
    )
    assert cart == latt


def test_fcproperty():
    entry = FcProperty([0, 3, 3], -1, 2)
    assert isinstance(entry.elems, ForceConstantIndex)
    assert entry.sign == -1.0 and isinstance(entry.sign, float)
    assert entry.degeneracy == pytest.approx(0.5)
    assert not entry.is_zero
    assert_msonable(entry)
    assert FcProperty.from_dict(entry.as_dict()) == entry
    np.testing.assert_array_equal(entry.elems.atoms, [0, 1, 1])
