import numpy as np
import pytest
import torch

from IsoMesh.SDF import FunctionField, as_field
from IsoMesh.classification import (
    Lattice,
    classify_cell,
    classify_lattice,
    classify_square,
    classify_transition,
    is_trivial,
    pack_samples,
)
from IsoMesh.sdf_primitives import SphereSDF
from IsoMesh.topology import cube


def corner_field(x, y, z, aux):
    # corner 0 of the unit cell is inside, all other corners outside
    return -1.0 if (x, y, z) == (0.0, 0.0, 0.0) else 1.0


@pytest.fixture
def unit_lattice():
    return Lattice(2, [[0, 0, 0], [1, 1, 1]])


def test_lattice_geometry():
    lattice = Lattice((3, 5, 2), [[0, -1, 0], [1, 1, 2]])
    assert lattice.cell_shape == (2, 4, 1)
    assert lattice.cell_count == 8
    np.testing.assert_allclose(lattice.cell_size, [0.5, 0.5, 2.0])
    np.testing.assert_allclose(lattice.cell_center(1, 0, 0), [0.75, -0.75, 1.0])
    points = lattice.sample_points()
    assert points.shape == (30, 3)
    np.testing.assert_allclose(points[0], [0, -1, 0])
    np.testing.assert_allclose(points[-1], [1, 1, 2])


@pytest.mark.parametrize(
    "resolution, bounds",
    [
        (1, [[0, 0, 0], [1, 1, 1]]),
        ((2, 2), [[0, 0, 0], [1, 1, 1]]),
        (4, [[0, 0, 0], [1, 1]]),
        (4, [[0, 0, 0], [1, 0, 1]]),
    ],
)
def test_invalid_lattice(resolution, bounds):
    with pytest.raises(ValueError):
        Lattice(resolution, bounds)


def test_single_corner_cell(unit_lattice):
    configuration = classify_cell(corner_field, unit_lattice, 0, 0, 0)
    assert configuration == 0xFE
    assert not is_trivial(configuration)


def test_zero_counts_as_outside(unit_lattice):
    assert classify_cell(lambda x, y, z, aux: 0.0, unit_lattice, 0, 0, 0) == 0xFF
    assert pack_samples([0.0, -0.1, 2.0, -3.0]) == 0b0101


def test_aux_is_forwarded(unit_lattice):
    def plane(x, y, z, height):
        return z - height

    assert classify_cell(plane, unit_lattice, 0, 0, 0, aux=0.5) == 0xF0
    assert classify_cell(plane, unit_lattice, 0, 0, 0, aux=2.0) == 0x00


def test_cell_out_of_lattice(unit_lattice):
    with pytest.raises(IndexError):
        classify_cell(corner_field, unit_lattice, 1, 0, 0)


def test_lattice_matches_single_cells():
    sphere = SphereSDF(center=[0.1, 0.0, -0.1], radius=0.55)
    lattice = Lattice(5, [[-1, -1, -1], [1, 1, 1]])
    values, configurations = classify_lattice(sphere, lattice)
    assert values.shape == (5, 5, 5)
    assert configurations.shape == (4, 4, 4)
    for x, y, z in np.ndindex(*configurations.shape):
        assert configurations[x, y, z] == classify_cell(sphere, lattice, x, y, z)
    assert np.any((configurations != 0) & (configurations != 0xFF))


def test_square_and_transition_packing():
    assert classify_square([1, -1, -1, -1]) == 0x1
    assert classify_transition([-1] * 8 + [1]) == 0x100
    with pytest.raises(ValueError):
        classify_square([1, 1, 1])


def test_trivial():
    assert is_trivial(0x00) and is_trivial(0xFF)
    assert is_trivial(0xF, bits=4) and is_trivial(0x1FF, bits=9)
    assert not is_trivial(0x0F)


def test_function_field():
    field = as_field(lambda x, y, z, aux: x + 2 * y + aux, aux=1.0)
    assert isinstance(field, FunctionField)
    values = field(torch.tensor([[1.0, 1.0, 0.0]], dtype=torch.float64))
    assert torch.allclose(values, torch.tensor([[4.0]], dtype=torch.float64))
    np.testing.assert_allclose(field.gradient(np.zeros((1, 3))), [[1, 2, 0]], atol=1e-6)
    with pytest.raises(TypeError):
        FunctionField(3.0)
    with pytest.raises(ValueError):
        as_field(SphereSDF([0, 0, 0], 1.0), aux=1.0)


def test_corner_offsets_follow_topology(unit_lattice):
    for vertex in range(cube.VERTEX_COUNT):
        target = tuple(float(c) for c in cube.vertex_position(vertex))

        def field(x, y, z, aux):
            return 1.0 if (x, y, z) == target else -1.0

        assert classify_cell(field, unit_lattice, 0, 0, 0) == 1 << vertex


if __name__ == "__main__":
    test_lattice_geometry()
    test_lattice_matches_single_cells()
