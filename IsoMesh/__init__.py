"""
IsoMesh - Isosurface Extraction on Regular Lattices
===================================================

IsoMesh extracts polygonal surface meshes approximating the zero level set of
a scalar field sampled on a regular 3D lattice. All extraction algorithms share
one substrate: the combinatorial topology of the reference cell, the reduction
of corner sign configurations to canonical symmetry classes, a stable-addressed
graph of surface nodes with elastic relaxation, and a topological dual mesh
constructor.

Key Components
--------------

Cell Topology
    - ``IsoMesh.topology``: Cube, square and transition cell incidence tables
    - ``IsoMesh.canonical``: Symmetry classes and transform sequences
    - ``IsoMesh.patches``: Surface patches for every cube configuration

Scalar Fields
    - ``IsoMesh.SDF``: Abstract scalar field and callback adapter
    - ``IsoMesh.sdf_primitives``: Spheres, planes, tori and cylinders
    - ``IsoMesh.classification``: Lattices and corner classification

Surface Construction
    - ``IsoMesh.surface_net``: Surface node pool and lattice sweep
    - ``IsoMesh.relaxation``: Elastic relaxation of surface nodes
    - ``IsoMesh.dual``: Dual mesh constructor
    - ``IsoMesh.mesh``: Output mesh container and export
    - ``IsoMesh.algorithms``: Marching cubes, surface nets, cuberille, dual
      marching cubes

Utilities
    - ``IsoMesh.utils``: Logging configuration
    - ``IsoMesh.errors``: Invariant violation errors

Examples
--------
Extract a sphere with marching cubes::

    from IsoMesh.sdf_primitives import SphereSDF
    from IsoMesh.classification import Lattice
    from IsoMesh.algorithms import extract_isosurface, Algorithm

    sphere = SphereSDF(center=[0, 0, 0], radius=0.5)
    lattice = Lattice(32, [[-1, -1, -1], [1, 1, 1]])
    mesh = extract_isosurface(sphere, lattice, Algorithm.MARCHING_CUBES)

Use a plain callback as scalar field::

    from IsoMesh.algorithms import elastic_surface_nets

    def plane(x, y, z, offset):
        return z - offset

    mesh = elastic_surface_nets(plane, lattice, aux=0.5, iterations=100)
"""

import IsoMesh.utils

IsoMesh.utils.configure_logging()

__version__ = "0.4.0"
__author__ = "IsoMesh developers"
