from collections import Counter

import numpy as np
import pytest

from IsoMesh.algorithms import (
    Algorithm,
    cuberille,
    dual_marching_cubes,
    elastic_surface_nets,
    extract_isosurface,
    marching_cubes,
    surface_nets,
)
from IsoMesh.classification import Lattice
from IsoMesh.dual import incident_faces
from IsoMesh.sdf_primitives import PlaneSDF, SphereSDF

CENTER = np.array([0.0, 0.0, 0.0])
RADIUS = 0.6


@pytest.fixture
def sphere():
    return SphereSDF(center=CENTER.tolist(), radius=RADIUS)


@pytest.fixture
def coarse_lattice():
    return Lattice(4, [[-1, -1, -1], [1, 1, 1]])


def _directed_edges(mesh):
    edges = Counter()
    for face in mesh.faces:
        for i in range(len(face)):
            edges[(face[i], face[(i + 1) % len(face)])] += 1
    return edges


def _assert_closed_and_oriented(mesh):
    edges = _directed_edges(mesh)
    assert all(count == 1 for count in edges.values()), "Edge used twice in one direction"
    for a, b in edges:
        assert (b, a) in edges, f"Edge {(a, b)} has no opposite"


def _outward_fraction(mesh):
    vertices = mesh.vertices
    outward = 0
    for face in mesh.faces:
        points = vertices[list(face)]
        normal = np.cross(points, np.roll(points, -1, axis=0)).sum(axis=0)
        outward += normal @ (points.mean(axis=0) - CENTER) > 0
    return outward / mesh.face_count


@pytest.mark.parametrize("algorithm", list(Algorithm))
def test_sphere_on_coarse_lattice(sphere, coarse_lattice, algorithm):
    mesh = extract_isosurface(sphere, coarse_lattice, algorithm)
    assert mesh.vertex_count > 0
    assert mesh.face_count > 0
    diagonal = np.linalg.norm(coarse_lattice.cell_size)
    distance = np.abs(np.linalg.norm(mesh.vertices - CENTER, axis=1) - RADIUS)
    assert np.all(distance <= diagonal)


@pytest.mark.parametrize("triangulate", [True, False])
def test_marching_cubes_sphere_is_closed(sphere, coarse_lattice, triangulate):
    mesh = marching_cubes(sphere, coarse_lattice, triangulate=triangulate)
    assert mesh.is_triangle_mesh == triangulate
    _assert_closed_and_oriented(mesh)
    assert _outward_fraction(mesh) == 1.0


def test_marching_cubes_vertices_on_surface(sphere):
    lattice = Lattice(16, [[-1, -1, -1], [1, 1, 1]])
    mesh = marching_cubes(sphere, lattice)
    distance = np.abs(np.linalg.norm(mesh.vertices, axis=1) - RADIUS)
    assert distance.max() < 0.5 * np.linalg.norm(lattice.cell_size)
    # gradient normals point away from the centre
    assert np.all(np.sum(mesh.normals * mesh.vertices, axis=1) > 0)


def test_midpoint_marching_cubes(sphere, coarse_lattice):
    mesh = marching_cubes(sphere, coarse_lattice, interpolate=False)
    step = coarse_lattice.cell_size[0]
    offsets = (mesh.vertices - coarse_lattice.bounds[0]) / step
    # one coordinate sits halfway between samples, the others on samples
    halves = np.isclose(offsets % 1.0, 0.5)
    assert np.all(halves.sum(axis=1) == 1)


def test_surface_nets_sphere(sphere):
    lattice = Lattice(10, [[-1, -1, -1], [1, 1, 1]])
    mesh = surface_nets(sphere, lattice, relax_iterations=0)
    assert all(len(face) == 4 for face in mesh.faces)
    _assert_closed_and_oriented(mesh)
    assert _outward_fraction(mesh) == 1.0

    relaxed = surface_nets(sphere, lattice)
    _assert_closed_and_oriented(relaxed)
    assert _outward_fraction(relaxed) > 0.9


def test_relaxation_smooths_sphere(sphere):
    lattice = Lattice(10, [[-1, -1, -1], [1, 1, 1]])
    raw = surface_nets(sphere, lattice, relax_iterations=0)
    relaxed = surface_nets(sphere, lattice)
    assert raw.face_count == relaxed.face_count
    assert not np.allclose(raw.vertices, relaxed.vertices)


def test_elastic_surface_nets_with_callback():
    lattice = Lattice(6, [[0, 0, 0], [1, 1, 1]])

    def plane(x, y, z, height):
        return z - height

    mesh = elastic_surface_nets(plane, lattice, iterations=20, aux=0.5)
    # one layer of 5 x 5 nodes, 4 x 4 quads
    assert mesh.vertex_count == 25
    assert mesh.face_count == 16
    np.testing.assert_allclose(mesh.vertices[:, 2], 0.5)
    np.testing.assert_allclose(mesh.normals, np.tile([0, 0, 1.0], (25, 1)), atol=1e-6)
    normals = np.array(
        [np.cross(mesh.vertices[f[1]] - mesh.vertices[f[0]], mesh.vertices[f[3]] - mesh.vertices[f[0]]) for f in mesh.faces]
    )
    assert np.all(normals[:, 2] > 0)


def test_cuberille_faces_are_axis_aligned(sphere, coarse_lattice):
    mesh = cuberille(sphere, coarse_lattice)
    assert mesh.vertex_count == 4 * mesh.face_count
    for face in mesh.faces:
        normals = mesh.normals[list(face)]
        assert np.all(normals == normals[0])
        assert np.count_nonzero(normals[0]) == 1
        points = mesh.vertices[list(face)]
        axis = int(np.flatnonzero(normals[0])[0])
        assert np.allclose(points[:, axis], points[0, axis])
        assert normals[0] @ (points.mean(axis=0) - CENTER) > 0


def test_cuberille_plane():
    lattice = Lattice(5, [[0, 0, 0], [1, 1, 1]])
    plane = PlaneSDF(point=[0, 0, 0.3], normal=[0, 0, -1])
    mesh = cuberille(plane, lattice)
    # interior sample edges of a 5 x 5 layer with neighbors on both sides
    assert mesh.face_count == 9
    assert np.all(mesh.normals[:, 2] == -1)


def test_dual_marching_cubes_counts(sphere):
    lattice = Lattice(8, [[-1, -1, -1], [1, 1, 1]])
    primal = marching_cubes(sphere, lattice, interpolate=False, triangulate=False)
    dual = dual_marching_cubes(sphere, lattice)
    assert dual.vertex_count == primal.face_count
    valence = [len(faces) for faces in incident_faces(primal)]
    assert dual.face_count == sum(v >= 3 for v in valence)
    # every crossing lattice edge is shared by four cells
    assert all(len(face) == 4 for face in dual.faces)


def test_selector_accepts_names(sphere, coarse_lattice):
    by_enum = extract_isosurface(sphere, coarse_lattice, Algorithm.PATCH_MARCHING_CUBES)
    by_name = extract_isosurface(sphere, coarse_lattice, "patch_marching_cubes")
    assert by_enum.face_count == by_name.face_count
    assert not by_enum.is_triangle_mesh
    with pytest.raises(ValueError):
        extract_isosurface(sphere, coarse_lattice, "transvoxel")


def test_field_without_surface(coarse_lattice):
    empty = SphereSDF(center=[5, 5, 5], radius=0.1)
    for algorithm in Algorithm:
        mesh = extract_isosurface(empty, coarse_lattice, algorithm)
        assert mesh.vertex_count == 0
        assert mesh.face_count == 0

def _unmatched_half_edges(mesh):
    edges = _directed_edges(mesh)
    return sum(abs(count - edges[(b, a)]) for (a, b), count in edges.items())


def _sampled(x, y, z, samples):
    """Nearest sample of an array spread over the unit cube."""
    index = tuple(
        min(max(int(round(c * (n - 1))), 0), n - 1)
        for c, n in zip((x, y, z), samples.shape)
    )
    return samples[index]


@pytest.mark.parametrize("diagonal", [((0, 0), (1, 1)), ((0, 1), (1, 0))])
def test_cells_sharing_a_diagonal_face(diagonal):
    lattice = Lattice((3, 2, 2), [[0, 0, 0], [1, 1, 1]])
    others = [(x, y, z) for x in (0, 2) for y in (0, 1) for z in (0, 1)]
    for signs in range(1 << len(others)):
        samples = -np.ones((3, 2, 2))
        for y, z in diagonal:
            samples[1, y, z] = 1.0
        for bit, index in enumerate(others):
            if signs >> bit & 1:
                samples[index] = 1.0
        mesh = marching_cubes(
            _sampled, lattice, interpolate=False, triangulate=False, aux=samples
        )
        on_face = np.isclose(mesh.vertices[:, 0], 0.5)
        shared = Counter(
            {
                (a, b): count
                for (a, b), count in _directed_edges(mesh).items()
                if on_face[a] and on_face[b]
            }
        )
        assert len(shared) == 4, f"Face not cut twice for signs {signs:#x}"
        for (a, b), count in shared.items():
            assert count == 1 and shared[(b, a)] == 1, (
                f"Crack across the shared face for signs {signs:#x}"
            )


@pytest.mark.parametrize("seed", range(5))
@pytest.mark.parametrize(
    "algorithm",
    [
        Algorithm.MARCHING_CUBES,
        Algorithm.PATCH_MARCHING_CUBES,
        Algorithm.DUAL_MARCHING_CUBES,
    ],
)
def test_random_field_is_closed(algorithm, seed):
    samples = np.random.default_rng(seed).uniform(-1.0, 1.0, (8, 8, 8))
    samples[[0, -1], :, :] = 1.0
    samples[:, [0, -1], :] = 1.0
    samples[:, :, [0, -1]] = 1.0
    lattice = Lattice(8, [[0, 0, 0], [1, 1, 1]])
    mesh = extract_isosurface(_sampled, lattice, algorithm, aux=samples)
    assert mesh.face_count > 0
    assert _unmatched_half_edges(mesh) == 0


if __name__ == "__main__":
    s = SphereSDF(center=[0, 0, 0], radius=RADIUS)
    lat = Lattice(4, [[-1, -1, -1], [1, 1, 1]])
    for alg in Algorithm:
        test_sphere_on_coarse_lattice(s, lat, alg)
