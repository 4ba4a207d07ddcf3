import dataclasses

import pytest

from IsoMesh.canonical import (
    SQUARE,
    CellSymmetry,
    TransformSequence,
    build_canonical_table,
    cube_table,
    permute_bits,
    regular_cell_table,
    square_table,
    transition_table,
)
from IsoMesh.errors import CanonicalTableError, TopologyIndexError
from IsoMesh.topology import cube

TABLES = [
    (cube_table, 15),
    (regular_cell_table, 18),
    (square_table, 4),
    (transition_table, 73),
]


@pytest.mark.parametrize("table_factory, classes", TABLES)
def test_class_counts(table_factory, classes):
    assert table_factory().class_count == classes


@pytest.mark.parametrize("table_factory, classes", TABLES)
def test_transform_reproduces_every_configuration(table_factory, classes):
    table = table_factory()
    symmetry = table.symmetry
    for configuration in range(1 << symmetry.bits):
        assert table.reproduce(configuration) == configuration, (
            f"{symmetry.name}: {configuration:#x} is not reproduced by "
            f"{table.transforms[configuration]}"
        )
        sequence = table.transforms[configuration]
        assert symmetry.to_canonical(sequence, configuration) == table.canonical(
            configuration
        )


@pytest.mark.parametrize("table_factory, classes", TABLES)
def test_representative_is_smallest_member(table_factory, classes):
    table = table_factory()
    for configuration in range(1 << table.symmetry.bits):
        assert table.canonical(configuration) <= configuration
    assert list(table.canonical_configurations) == sorted(
        table.canonical_configurations
    )
    for canonical_id, representative in enumerate(table.canonical_configurations):
        assert table.canonical_id[representative] == canonical_id
        assert table.transforms[representative].is_identity


def test_cube_representatives():
    assert cube_table().canonical_configurations == (
        0x00,
        0x01,
        0x03,
        0x05,
        0x07,
        0x0F,
        0x14,
        0x15,
        0x17,
        0x1A,
        0x1B,
        0x1D,
        0x1E,
        0x3C,
        0x5A,
    )
    assert square_table().canonical_configurations == (0x0, 0x1, 0x3, 0x6)


def test_trivial_configurations():
    table = cube_table()
    assert table.canonical(0x00) == 0x00
    canonical_id, sequence = table.classify(0xFF)
    assert canonical_id == 0
    assert sequence.inversion


def test_single_outside_corner_is_inverted_single_corner():
    # corner 0 inside, all others outside
    canonical_id, sequence = cube_table().classify(0xFE)
    assert cube_table().canonical_configurations[canonical_id] == 0x01
    assert sequence.inversion


def test_ambiguous_configurations_are_never_inverted():
    table = regular_cell_table()
    for configuration in range(256):
        if cube.has_ambiguous_face(configuration):
            assert not table.transforms[configuration].inversion
    table = transition_table()
    assert table.canonical(0x011) != table.canonical(~0x011 & 0x1FF)


def test_wrong_class_count_is_fatal():
    broken = dataclasses.replace(SQUARE, expected_classes=5)
    with pytest.raises(CanonicalTableError):
        build_canonical_table(broken)


def test_out_of_range_configuration():
    with pytest.raises(TopologyIndexError):
        cube_table().classify(256)
    with pytest.raises(TopologyIndexError):
        square_table().canonical(16)


def test_tables_are_built_once():
    assert cube_table() is cube_table()
    with pytest.raises(dataclasses.FrozenInstanceError):
        cube_table().canonical_configurations = ()


def test_permute_bits():
    assert permute_bits(0b0001, (1, 3, 0, 2)) == 0b0010
    assert permute_bits(0b0110, (1, 3, 0, 2)) == 0b1001


def test_transform_order():
    # mirror before rotation: mirrored corner 0 lands on 2, rotated onto 8
    symmetry = transition_table().symmetry
    sequence = TransformSequence(rotations=(1,), mirror=True, inversion=False)
    assert symmetry.from_canonical(sequence, 0x001) == 1 << 8
    assert symmetry.to_canonical(sequence, 1 << 8) == 0x001


def test_custom_symmetry_without_expected_count():
    # a square without rotations only merges complements
    symmetry = CellSymmetry(
        name="inversion only",
        bits=2,
        generators=((0, 1),),
        rotation_words=((0,),),
    )
    table = build_canonical_table(symmetry)
    assert table.canonical_configurations == (0, 1)
    assert table.canonical(0b11) == 0
    assert table.canonical(0b10) == 1


if __name__ == "__main__":
    for factory, count in TABLES:
        test_class_counts(factory, count)
        test_transform_reproduces_every_configuration(factory, count)
    test_cube_representatives()
