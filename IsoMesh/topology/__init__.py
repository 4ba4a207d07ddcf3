"""
Cell Topology
=============

Combinatorial tables of the reference cells used by the extraction
algorithms:

- ``IsoMesh.topology.cube``: the 8-corner voxel
- ``IsoMesh.topology.square``: the 4-corner square
- ``IsoMesh.topology.transition``: the 9-sample transvoxel transition face
"""

from IsoMesh.topology import cube, square, transition

__all__ = ["cube", "square", "transition"]
