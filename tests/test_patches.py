import numpy as np
import pytest

from IsoMesh.canonical import regular_cell_table
from IsoMesh.errors import TopologyIndexError
from IsoMesh.patches import CANONICAL_PATCHES, cube_patch_table, cube_patches
from IsoMesh.topology import cube


def _midpoint(edge):
    a, b = cube.edge_vertices(edge)
    return 0.5 * (np.array(cube.vertex_position(a)) + np.array(cube.vertex_position(b)))


def _newell_normal(points):
    return np.cross(points, np.roll(points, -1, axis=0)).sum(axis=0)


def test_one_template_per_class():
    assert set(CANONICAL_PATCHES) == set(regular_cell_table().canonical_configurations)


@pytest.mark.parametrize("configuration", range(256))
def test_patches_cover_crossing_edges_once(configuration):
    patches = cube_patches(configuration)
    edges = [edge for patch in patches for edge in patch]
    assert len(edges) == len(set(edges))
    assert set(edges) == cube.crossing_edges(configuration)


@pytest.mark.parametrize("configuration", range(256))
def test_patch_normals_point_outside(configuration):
    for patch in cube_patches(configuration):
        points = np.array([_midpoint(edge) for edge in patch])
        normal = _newell_normal(points)
        toward_outside = 0.0
        for edge, midpoint in zip(patch, points):
            a, b = cube.edge_vertices(edge)
            outside = a if configuration >> a & 1 else b
            toward_outside += normal @ (np.array(cube.vertex_position(outside)) - midpoint)
        assert toward_outside > 0, f"Patch {patch} of {configuration:#x} faces inward"


def test_trivial_configurations_have_no_patches():
    assert cube_patches(0x00) == ()
    assert cube_patches(0xFF) == ()


def test_single_corner():
    patches = cube_patches(0xFE)
    assert len(patches) == 1
    assert set(patches[0]) == {0, 3, 8}
    # inversion reverses the winding of the template
    assert patches[0] != CANONICAL_PATCHES[0x01][0]
    assert set(cube_patches(0x01)[0]) == {0, 3, 8}


def test_patch_table_is_cached():
    assert cube_patch_table() is cube_patch_table()
    assert len(cube_patch_table()) == 256


def test_out_of_range():
    with pytest.raises(TopologyIndexError):
        cube_patches(256)

def _face_cuts(configuration, axis, side):
    """Directed patch segments lying on one cube face.

    Segment ends are given as edge midpoints in the two coordinates spanning
    the face, so the cuts of two cells sharing the face can be compared.
    """
    others = [i for i in range(3) if i != axis]
    cuts = set()
    for patch in cube_patches(configuration):
        for a, b in zip(patch, patch[1:] + patch[:1]):
            pa, pb = _midpoint(a), _midpoint(b)
            if pa[axis] == side and pb[axis] == side:
                cuts.add((tuple(pa[others]), tuple(pb[others])))
    return cuts


def _face_pattern(configuration, axis, side):
    """Outside corners of one cube face, in face coordinates."""
    pattern = set()
    for vertex in range(cube.VERTEX_COUNT):
        position = cube.vertex_position(vertex)
        if configuration >> vertex & 1 and position[axis] == side:
            pattern.add(tuple(c for i, c in enumerate(position) if i != axis))
    return frozenset(pattern)


@pytest.mark.parametrize("axis", range(3))
def test_neighbor_cells_agree_on_shared_faces(axis):
    # the cut of a face may only depend on the signs of its own corners
    lower, upper = {}, {}
    for configuration in range(256):
        for side, seen in ((0, lower), (1, upper)):
            pattern = _face_pattern(configuration, axis, side)
            cuts = _face_cuts(configuration, axis, side)
            assert seen.setdefault(pattern, cuts) == cuts, (
                f"{configuration:#x} cuts face {side} of axis {axis} differently"
            )
    # the cell above traverses every shared segment in reverse
    assert len(upper) == 16
    for pattern, cuts in upper.items():
        assert {(b, a) for a, b in cuts} == lower[pattern]


def test_diagonal_face_cuts_off_outside_corners():
    # corners 0 and 2 outside on the front face, inside everywhere else
    assert {frozenset(patch) for patch in cube_patches(0x05)} == {
        frozenset({0, 3, 8}),
        frozenset({1, 2, 11}),
    }
    # the complement joins the two inside corners through the face
    patches = cube_patches(0xFA)
    assert len(patches) == 1
    assert set(patches[0]) == {0, 1, 2, 3, 8, 11}


if __name__ == "__main__":
    for c in range(256):
        test_patches_cover_crossing_edges_once(c)
        test_patch_normals_point_outside(c)
