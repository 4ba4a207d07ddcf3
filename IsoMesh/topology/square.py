"""
Square Topology
===============

Incidence tables of the 2x2 reference square. Vertex ``i`` sits at
``(i & 1, i >> 1)``, edges run counter-clockwise::

    2---2---3
    |       |
    3       1
    |       |
    0---0---1
"""

from IsoMesh.errors import TopologyIndexError

VERTEX_COUNT = 4
EDGE_COUNT = 4

EDGES = ((0, 1), (1, 3), (3, 2), (2, 0))

_EDGE_LOOKUP = {frozenset(pair): edge for edge, pair in enumerate(EDGES)}


def _check_range(value, count, name):
    if not 0 <= value < count:
        raise TopologyIndexError(f"{name} index {value} out of range [0, {count})")


def vertex_index(x: int, y: int) -> int:
    for coordinate in (x, y):
        if coordinate not in (0, 1):
            raise TopologyIndexError(f"Corner coordinate {coordinate} is not 0 or 1")
    return x | y << 1


def vertex_position(vertex: int) -> tuple[int, int]:
    _check_range(vertex, VERTEX_COUNT, "Vertex")
    return vertex & 1, vertex >> 1


def edge_vertices(edge: int) -> tuple[int, int]:
    _check_range(edge, EDGE_COUNT, "Edge")
    return EDGES[edge]


def vertices_to_edge(a: int, b: int) -> int:
    _check_range(a, VERTEX_COUNT, "Vertex")
    _check_range(b, VERTEX_COUNT, "Vertex")
    try:
        return _EDGE_LOOKUP[frozenset((a, b))]
    except KeyError:
        raise TopologyIndexError(f"Vertices {a} and {b} do not share an edge")


def adjacent_vertices(vertex: int) -> tuple[int, int]:
    _check_range(vertex, VERTEX_COUNT, "Vertex")
    return tuple(
        b if a == vertex else a for a, b in EDGES if vertex in (a, b)
    )


# quarter turn counter-clockwise, vertex v moves to ROTATE[v]
ROTATE = tuple(
    vertex_index(1 - (v >> 1), v & 1) for v in range(VERTEX_COUNT)
)
