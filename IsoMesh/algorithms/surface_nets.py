"""
Surface Nets
============

Places one vertex per active cell and joins the four vertices around every
lattice edge whose two samples differ in sign into a quad. The four cells
around such an edge are found from the cell at the lower corner of the edge
by following the links of its surface node.

``surface_nets`` relaxes the nodes with full weight toward their neighbor
centroid, ``elastic_surface_nets`` uses many small steps instead.
"""

import logging

import numpy as np

import IsoMesh
from IsoMesh.SDF import as_field
from IsoMesh.classification import Lattice, classify_lattice
from IsoMesh.errors import LinkError
from IsoMesh.mesh import Mesh
from IsoMesh.relaxation import relax
from IsoMesh.surface_net import LOWER_DIRECTION, SurfaceNet, build_surface_net

logger = logging.getLogger(IsoMesh.__name__)

SURFACE_NET_ITERATIONS = 300
SURFACE_NET_WEIGHT = 1.0
ELASTIC_ITERATIONS = 3000
ELASTIC_WEIGHT = 0.001


def surface_quads(net: SurfaceNet, values: np.ndarray):
    """Yield ``(quad, axis)`` for every sign-changing lattice edge.

    ``quad`` holds four node indices wound so that the quad normal points
    along the edge toward its outside sample.
    """
    outside = values >= 0
    lattice_coordinates = net.gather("lattice")
    for index, (x, y, z) in enumerate(lattice_coordinates):
        cell = (x, y, z)
        for axis in range(3):
            upper = list(cell)
            upper[axis] += 1
            lower_outside = outside[cell]
            if lower_outside == outside[tuple(upper)]:
                continue
            j, k = (axis + 1) % 3, (axis + 2) % 3
            if cell[j] == 0 or cell[k] == 0:
                continue
            a = net.neighbor(index, LOWER_DIRECTION[j])
            b = net.neighbor(index, LOWER_DIRECTION[k])
            c = None if a is None else net.neighbor(a, LOWER_DIRECTION[k])
            if a is None or b is None or c is None:
                raise LinkError(f"Node {index} misses a neighbor around axis {axis}")
            if lower_outside:
                yield (index, b, c, a), axis
            else:
                yield (index, a, c, b), axis


def emit_surface_net(net: SurfaceNet, values: np.ndarray, field) -> Mesh:
    """One vertex per node, one quad per sign-changing lattice edge."""
    mesh = Mesh()
    positions = net.gather("position")
    for node, position, normal in zip(net.nodes(), positions, field.normals(positions)):
        node.vertex_index = mesh.add_vertex(position, normal)
    vertex_index = net.gather("vertex_index")
    for quad, _ in surface_quads(net, values):
        mesh.add_face(vertex_index[list(quad)])
    return mesh


def surface_nets(
    field,
    lattice: Lattice,
    relax_iterations: int = SURFACE_NET_ITERATIONS,
    weight: float = SURFACE_NET_WEIGHT,
    aux=None,
) -> Mesh:
    """Extract the zero level set as a quad mesh of relaxed surface nodes.

    Parameters
    ----------
    field : ScalarField or callable
        Scalar field, plain callables are called as ``field(x, y, z, aux)``.
    lattice : Lattice
        Sampling lattice.
    relax_iterations : int, default SURFACE_NET_ITERATIONS
        Relaxation iterations, 0 keeps the nodes at the cell centres.
    weight : float, default SURFACE_NET_WEIGHT
        Relaxation blend factor.
    aux : any, optional
        Auxiliary argument for plain callbacks.
    """
    field = as_field(field, aux)
    values, configurations = classify_lattice(field, lattice)
    net = build_surface_net(configurations, lattice)
    if relax_iterations:
        relax(net, lattice, relax_iterations, weight)
    mesh = emit_surface_net(net, values, field)
    logger.info(f"Surface nets: {mesh.vertex_count} vertices, {mesh.face_count} faces")
    return mesh


def elastic_surface_nets(
    field,
    lattice: Lattice,
    iterations: int = ELASTIC_ITERATIONS,
    weight: float = ELASTIC_WEIGHT,
    aux=None,
) -> Mesh:
    return surface_nets(field, lattice, iterations, weight, aux=aux)
