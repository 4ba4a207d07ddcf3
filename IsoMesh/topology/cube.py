"""
Cube Topology
=============

Static incidence tables of the reference voxel and the small graph routines
that operate on a single cell.

Vertices sit on the corners of the unit cube. Vertices 0 to 3 run
counter-clockwise around the ``z = 0`` face, vertices 4 to 7 sit above them::

        7-------6
       /|      /|
      4-------5 |
      | 3-----|-2
      |/      |/
      0-------1

Edges 0 to 3 run around the bottom ring, 4 to 7 around the top ring and
8 to 11 are the vertical edges. Faces follow the die convention, opposite faces
always sum to five.

All lookups check their arguments and raise
:class:`IsoMesh.errors.TopologyIndexError` for out-of-range indices.
"""

from IsoMesh.errors import TopologyIndexError

VERTEX_COUNT = 8
EDGE_COUNT = 12
FACE_COUNT = 6
CONFIGURATION_COUNT = 1 << VERTEX_COUNT

FRONT, LEFT, TOP, BOTTOM, RIGHT, BACK = range(FACE_COUNT)

# maps x | y << 1 | z << 2 to the counter-clockwise numbering, self-inverse
_ENCODE = (0, 1, 3, 2, 4, 5, 7, 6)

EDGES = (
    (0, 1),
    (1, 2),
    (2, 3),
    (0, 3),
    (4, 5),
    (5, 6),
    (6, 7),
    (4, 7),
    (0, 4),
    (1, 5),
    (3, 7),
    (2, 6),
)

# (axis, coordinate) of the plane containing each face
FACE_PLANES = {
    FRONT: (2, 0),
    LEFT: (0, 0),
    TOP: (1, 1),
    BOTTOM: (1, 0),
    RIGHT: (0, 1),
    BACK: (2, 1),
}


def _check_range(value, count, name):
    if not 0 <= value < count:
        raise TopologyIndexError(f"{name} index {value} out of range [0, {count})")


def check_configuration(configuration: int, bits: int = VERTEX_COUNT):
    if not 0 <= configuration < 1 << bits:
        raise TopologyIndexError(
            f"Configuration {configuration:#x} does not fit into {bits} bits"
        )


def vertex_index(x: int, y: int, z: int) -> int:
    """Return the vertex number of the corner at relative position (x, y, z)."""
    for coordinate in (x, y, z):
        if coordinate not in (0, 1):
            raise TopologyIndexError(f"Corner coordinate {coordinate} is not 0 or 1")
    return _ENCODE[x | y << 1 | z << 2]


_POSITIONS = tuple(
    (code & 1, code >> 1 & 1, code >> 2 & 1)
    for code in (_ENCODE[v] for v in range(VERTEX_COUNT))
)


def vertex_position(vertex: int) -> tuple[int, int, int]:
    """Return the relative (x, y, z) position of a vertex."""
    _check_range(vertex, VERTEX_COUNT, "Vertex")
    return _POSITIONS[vertex]


_EDGE_LOOKUP = {frozenset(pair): edge for edge, pair in enumerate(EDGES)}


def edge_vertices(edge: int) -> tuple[int, int]:
    _check_range(edge, EDGE_COUNT, "Edge")
    return EDGES[edge]


def vertices_to_edge(a: int, b: int) -> int:
    """Return the edge joining vertices ``a`` and ``b`` in either order."""
    _check_range(a, VERTEX_COUNT, "Vertex")
    _check_range(b, VERTEX_COUNT, "Vertex")
    try:
        return _EDGE_LOOKUP[frozenset((a, b))]
    except KeyError:
        raise TopologyIndexError(f"Vertices {a} and {b} do not share an edge")


def edge_axis(edge: int) -> int:
    """Return the axis (0=x, 1=y, 2=z) an edge runs along."""
    a, b = edge_vertices(edge)
    pa, pb = _POSITIONS[a], _POSITIONS[b]
    return next(axis for axis in range(3) if pa[axis] != pb[axis])


def _on_face(vertex, face):
    axis, coordinate = FACE_PLANES[face]
    return _POSITIONS[vertex][axis] == coordinate


_EDGE_FACES = tuple(
    tuple(
        face
        for face in range(FACE_COUNT)
        if _on_face(a, face) and _on_face(b, face)
    )
    for a, b in EDGES
)

_VERTEX_EDGES = tuple(
    tuple(edge for edge, pair in enumerate(EDGES) if vertex in pair)
    for vertex in range(VERTEX_COUNT)
)

_ADJACENT_VERTICES = tuple(
    tuple(
        EDGES[edge][1] if EDGES[edge][0] == vertex else EDGES[edge][0]
        for edge in _VERTEX_EDGES[vertex]
    )
    for vertex in range(VERTEX_COUNT)
)


def _face_cycle(face):
    members = [v for v in range(VERTEX_COUNT) if _on_face(v, face)]
    cycle = [min(members)]
    while len(cycle) < len(members):
        candidates = [
            v
            for v in _ADJACENT_VERTICES[cycle[-1]]
            if v in members and v not in cycle
        ]
        cycle.append(min(candidates))
    return tuple(cycle)


_FACE_VERTICES = tuple(_face_cycle(face) for face in range(FACE_COUNT))


def edge_faces(edge: int) -> tuple[int, int]:
    _check_range(edge, EDGE_COUNT, "Edge")
    return _EDGE_FACES[edge]


def vertex_edges(vertex: int) -> tuple[int, int, int]:
    _check_range(vertex, VERTEX_COUNT, "Vertex")
    return _VERTEX_EDGES[vertex]


def adjacent_vertices(vertex: int) -> tuple[int, int, int]:
    _check_range(vertex, VERTEX_COUNT, "Vertex")
    return _ADJACENT_VERTICES[vertex]


def face_vertices(face: int) -> tuple[int, int, int, int]:
    """Return the four corners of a face in cyclic order."""
    _check_range(face, FACE_COUNT, "Face")
    return _FACE_VERTICES[face]


def opposite_face(face: int) -> int:
    _check_range(face, FACE_COUNT, "Face")
    return FACE_COUNT - 1 - face


def _bit(configuration, vertex):
    return configuration >> vertex & 1


def vertex_closure(vertex: int, configuration: int) -> frozenset:
    """Collect the vertices connected to ``vertex`` through same-sign edges.

    Parameters
    ----------
    vertex : int
        Start vertex of the flood fill.
    configuration : int
        8-bit corner classification of the cell.

    Returns
    -------
    frozenset
        All vertices reachable from ``vertex`` without crossing the surface,
        ``vertex`` included.
    """
    _check_range(vertex, VERTEX_COUNT, "Vertex")
    check_configuration(configuration)
    side = _bit(configuration, vertex)
    visited = {vertex}
    stack = [vertex]
    while stack:
        current = stack.pop()
        for neighbor in _ADJACENT_VERTICES[current]:
            if neighbor not in visited and _bit(configuration, neighbor) == side:
                visited.add(neighbor)
                stack.append(neighbor)
    return frozenset(visited)


def boundary_edges(vertex: int, configuration: int) -> frozenset:
    """Collect the edges cut by the surface around the region of ``vertex``.

    Walks the same region as :func:`vertex_closure` and returns every edge
    leading from that region to a corner of the other sign.
    """
    _check_range(vertex, VERTEX_COUNT, "Vertex")
    check_configuration(configuration)
    side = _bit(configuration, vertex)
    visited = {vertex}
    stack = [vertex]
    edges = set()
    while stack:
        current = stack.pop()
        for neighbor in _ADJACENT_VERTICES[current]:
            if _bit(configuration, neighbor) != side:
                edges.add(_EDGE_LOOKUP[frozenset((current, neighbor))])
            elif neighbor not in visited:
                visited.add(neighbor)
                stack.append(neighbor)
    return frozenset(edges)


def crossing_edges(configuration: int) -> frozenset:
    """Return all edges whose two corners differ in classification."""
    check_configuration(configuration)
    return frozenset(
        edge
        for edge, (a, b) in enumerate(EDGES)
        if _bit(configuration, a) != _bit(configuration, b)
    )


def has_ambiguous_face(configuration: int) -> bool:
    """True if any face has its corners alternating diagonally."""
    check_configuration(configuration)
    for a, b, c, d in _FACE_VERTICES:
        ba, bb = _bit(configuration, a), _bit(configuration, b)
        bc, bd = _bit(configuration, c), _bit(configuration, d)
        if ba == bc and bb == bd and ba != bb:
            return True
    return False


def _rotation_permutation(turn):
    return tuple(vertex_index(*turn(*_POSITIONS[v])) for v in range(VERTEX_COUNT))


# quarter turns about the cube centre, vertex v moves to ROTATE_*[v]
ROTATE_X = _rotation_permutation(lambda x, y, z: (x, 1 - z, y))
ROTATE_Y = _rotation_permutation(lambda x, y, z: (z, y, 1 - x))
ROTATE_Z = _rotation_permutation(lambda x, y, z: (1 - y, x, z))
