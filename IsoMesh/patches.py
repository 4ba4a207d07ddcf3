"""
Surface Patches
===============

Every non-trivial cube configuration is cut by one or more surface patches.
A patch is a closed cycle of cube edges; the surface vertex of each edge lies
somewhere between its two corners.

Patches are stored once per canonical class of
:func:`IsoMesh.canonical.regular_cell_table` and mapped onto a concrete
configuration through the recorded transform. The templates are wound
counter-clockwise when seen from the outside, so polygon normals point toward
the corners classified as outside (sample >= 0). Inversion swaps inside and
outside and therefore reverses the winding.

A face with two outside corners on one diagonal can be cut in two ways. The
templates always cut off each outside corner on its own, and inversion is
never applied to such configurations, so two cells sharing the face agree on
the cut.
"""

import functools

from IsoMesh.canonical import regular_cell_table
from IsoMesh.topology import cube

# edge cycles keyed by the canonical configuration of each class
CANONICAL_PATCHES = {
    0x00: (),
    0x01: ((0, 8, 3),),
    0x03: ((1, 9, 8, 3),),
    0x05: ((0, 8, 3), (1, 2, 11)),
    0x07: ((2, 11, 9, 8, 3),),
    0x0F: ((8, 10, 11, 9),),
    0x14: ((1, 2, 11), (4, 7, 8)),
    0x15: ((0, 4, 7, 3), (1, 2, 11)),
    0x17: ((2, 11, 9, 4, 7, 3),),
    0x1A: ((1, 9, 0), (2, 3, 10), (4, 7, 8)),
    0x1B: ((1, 9, 4, 7, 10, 2),),
    0x1D: ((0, 4, 7, 10, 11, 1),),
    0x1E: ((3, 10, 11, 9, 0), (4, 7, 8)),
    0x3C: ((3, 10, 11, 1), (5, 7, 8, 9)),
    # inside corners 1, 6 and 7 joined across the right face
    0x3D: ((0, 9, 5, 7, 10, 11, 1),),
    0x5A: ((0, 1, 9), (2, 3, 10), (4, 7, 8), (5, 11, 6)),
    0x5B: ((4, 7, 10, 2, 1, 9), (6, 5, 11)),
    # inside corners 5 and 7 joined across the back face
    0x5F: ((4, 7, 10, 6, 5, 9),),
}


def map_patch(patch, permutation, reverse=False) -> tuple[int, ...]:
    """Move an edge cycle with a corner permutation."""
    mapped = tuple(
        cube.vertices_to_edge(
            permutation[cube.EDGES[edge][0]], permutation[cube.EDGES[edge][1]]
        )
        for edge in patch
    )
    if reverse:
        mapped = mapped[::-1]
    return mapped


def cube_patches(configuration: int) -> tuple[tuple[int, ...], ...]:
    """Return the edge cycles cutting the cell with the given configuration.

    Parameters
    ----------
    configuration : int
        8-bit corner classification.

    Returns
    -------
    tuple of tuple of int
        One edge cycle per surface patch, empty for trivial configurations.
    """
    cube.check_configuration(configuration)
    return cube_patch_table()[configuration]


@functools.lru_cache(maxsize=None)
def cube_patch_table() -> tuple[tuple[tuple[int, ...], ...], ...]:
    """Patches of all 256 configurations, built once from the templates."""
    table = regular_cell_table()
    patches = []
    for configuration in range(cube.CONFIGURATION_COUNT):
        _, sequence = table.classify(configuration)
        templates = CANONICAL_PATCHES[table.canonical(configuration)]
        permutation = table.symmetry.rotation_permutation(sequence.rotations)
        patches.append(
            tuple(
                map_patch(patch, permutation, reverse=sequence.inversion)
                for patch in templates
            )
        )
    return tuple(patches)
