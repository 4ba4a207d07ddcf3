"""
Cuberille
=========

Treats every lattice sample as a small box centred on it and emits the box
faces separating inside from outside samples. The corners of those faces are
the centres of the four lattice cells around the sample edge, so the quads
are found with the same surface net walk as :mod:`surface_nets`, only without
relaxation. Every quad gets its own four vertices with the axis-aligned face
normal, which gives the blocky flat-shaded look of the method.
"""

import logging

import numpy as np

import IsoMesh
from IsoMesh.SDF import as_field
from IsoMesh.algorithms.surface_nets import surface_quads
from IsoMesh.classification import Lattice, classify_lattice
from IsoMesh.mesh import Mesh
from IsoMesh.surface_net import build_surface_net

logger = logging.getLogger(IsoMesh.__name__)


def cuberille(field, lattice: Lattice, aux=None) -> Mesh:
    """Extract the blocky boundary between inside and outside samples.

    Parameters
    ----------
    field : ScalarField or callable
        Scalar field, plain callables are called as ``field(x, y, z, aux)``.
    lattice : Lattice
        Sampling lattice.
    aux : any, optional
        Auxiliary argument for plain callbacks.
    """
    field = as_field(field, aux)
    values, configurations = classify_lattice(field, lattice)
    net = build_surface_net(configurations, lattice)
    positions = net.gather("position")

    mesh = Mesh()
    for quad, axis in surface_quads(net, values):
        corners = positions[list(quad)]
        normal = np.cross(corners[1] - corners[0], corners[3] - corners[0])
        normal = np.where(np.arange(3) == axis, np.sign(normal), 0.0)
        mesh.add_face([mesh.add_vertex(corner, normal) for corner in corners])
    logger.info(f"Cuberille: {mesh.face_count} quads")
    return mesh
