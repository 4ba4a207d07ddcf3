"""
Marching Cubes
==============

Cuts every active cell with the surface patches of its configuration
(:mod:`IsoMesh.patches`). Surface vertices sit on lattice edges and are
shared between all cells touching the edge, so the output is a connected
mesh. With ``triangulate=True`` the patches are split into triangle fans
(classic marching cubes), otherwise the patch polygons are kept.
"""

import logging

import numpy as np

import IsoMesh
from IsoMesh.SDF import as_field
from IsoMesh.classification import Lattice, classify_lattice
from IsoMesh.mesh import Mesh, fan_triangulate
from IsoMesh.patches import cube_patch_table
from IsoMesh.topology import cube

logger = logging.getLogger(IsoMesh.__name__)

# lattice offsets of the corners of every cube edge
_EDGE_CORNERS = tuple(
    (np.array(cube.vertex_position(a)), np.array(cube.vertex_position(b)))
    for a, b in cube.EDGES
)


class _EdgeVertices:
    """Surface vertices keyed by the lattice edge they lie on."""

    def __init__(self, lattice: Lattice, values: np.ndarray, interpolate: bool):
        self.lattice = lattice
        self.values = values
        self.interpolate = interpolate
        self.index = {}
        self.positions = []
        self.edges = []

    def get(self, cell, edge) -> int:
        offset_a, offset_b = _EDGE_CORNERS[edge]
        a = tuple(cell + offset_a)
        b = tuple(cell + offset_b)
        lower, upper = sorted((a, b))
        axis = cube.edge_axis(edge)
        vertex = self.index.get((lower, axis))
        if vertex is None:
            vertex = len(self.positions)
            self.index[(lower, axis)] = vertex
            self.positions.append(self._place(a, b))
            self.edges.append((lower, upper, axis))
        return vertex

    def _place(self, a, b):
        t = 0.5
        if self.interpolate:
            va, vb = self.values[a], self.values[b]
            t = va / (va - vb)
        pa = self.lattice.sample_position(*a)
        pb = self.lattice.sample_position(*b)
        return pa + t * (pb - pa)

    def directions(self) -> np.ndarray:
        """Lattice axis of every vertex, pointing toward its outside sample."""
        directions = np.zeros((len(self.edges), 3))
        for vertex, (_, upper, axis) in enumerate(self.edges):
            directions[vertex, axis] = 1.0 if self.values[upper] >= 0 else -1.0
        return directions


def extract_patches(field, lattice: Lattice, interpolate: bool = True):
    """Cut every active cell with its patches.

    Returns
    -------
    polygons : list of list of int
        Edge vertex cycles, one per patch.
    edge_vertices : _EdgeVertices
        Shared surface vertices with their positions and lattice edges.
    """
    values, configurations = classify_lattice(field, lattice)
    patch_table = cube_patch_table()
    edge_vertices = _EdgeVertices(lattice, values, interpolate)

    polygons = []
    for cell in np.argwhere((configurations != 0) & (configurations != 0xFF)):
        for patch in patch_table[int(configurations[tuple(cell)])]:
            polygons.append([edge_vertices.get(cell, edge) for edge in patch])
    return polygons, edge_vertices


def marching_cubes(
    field,
    lattice: Lattice,
    interpolate: bool = True,
    triangulate: bool = True,
    aux=None,
) -> Mesh:
    """Extract the zero level set with marching cubes.

    Parameters
    ----------
    field : ScalarField or callable
        Scalar field, plain callables are called as ``field(x, y, z, aux)``.
    lattice : Lattice
        Sampling lattice.
    interpolate : bool, default True
        Place edge vertices by linear interpolation of the samples, otherwise
        at the edge midpoint.
    triangulate : bool, default True
        Split patches into triangles.
    aux : any, optional
        Auxiliary argument for plain callbacks.

    Returns
    -------
    Mesh
        Surface mesh, normals taken from the field gradient.
    """
    field = as_field(field, aux)
    polygons, edge_vertices = extract_patches(field, lattice, interpolate)

    mesh = Mesh()
    positions = np.array(edge_vertices.positions).reshape(-1, 3)
    for position, normal in zip(positions, field.normals(positions)):
        mesh.add_vertex(position, normal)
    for polygon in polygons:
        if triangulate:
            for triangle in fan_triangulate(polygon):
                mesh.add_face(triangle)
        else:
            mesh.add_face(polygon)
    logger.info(
        f"Marching cubes: {mesh.vertex_count} vertices, {mesh.face_count} faces"
    )
    return mesh
