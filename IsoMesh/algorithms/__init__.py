"""
Extraction Algorithms
=====================

All algorithms take a scalar field and a :class:`IsoMesh.classification.Lattice`
and return a :class:`IsoMesh.mesh.Mesh`. :func:`extract_isosurface` selects one
by :class:`Algorithm`.
"""

from enum import Enum

from IsoMesh.algorithms.cuberille import cuberille
from IsoMesh.algorithms.dual_marching_cubes import dual_marching_cubes
from IsoMesh.algorithms.marching_cubes import marching_cubes
from IsoMesh.algorithms.surface_nets import elastic_surface_nets, surface_nets


class Algorithm(Enum):
    MARCHING_CUBES = "marching_cubes"
    PATCH_MARCHING_CUBES = "patch_marching_cubes"
    SURFACE_NETS = "surface_nets"
    ELASTIC_SURFACE_NETS = "elastic_surface_nets"
    CUBERILLE = "cuberille"
    DUAL_MARCHING_CUBES = "dual_marching_cubes"


def _patch_marching_cubes(field, lattice, **kwargs):
    return marching_cubes(field, lattice, triangulate=False, **kwargs)


_EXTRACTORS = {
    Algorithm.MARCHING_CUBES: marching_cubes,
    Algorithm.PATCH_MARCHING_CUBES: _patch_marching_cubes,
    Algorithm.SURFACE_NETS: surface_nets,
    Algorithm.ELASTIC_SURFACE_NETS: elastic_surface_nets,
    Algorithm.CUBERILLE: cuberille,
    Algorithm.DUAL_MARCHING_CUBES: dual_marching_cubes,
}


def extract_isosurface(field, lattice, algorithm=Algorithm.MARCHING_CUBES, **kwargs):
    """Run the extraction algorithm selected by ``algorithm``.

    ``algorithm`` may be an :class:`Algorithm` or its string value, keyword
    arguments are forwarded to the algorithm.
    """
    return _EXTRACTORS[Algorithm(algorithm)](field, lattice, **kwargs)


__all__ = [
    "Algorithm",
    "extract_isosurface",
    "marching_cubes",
    "surface_nets",
    "elastic_surface_nets",
    "cuberille",
    "dual_marching_cubes",
]
