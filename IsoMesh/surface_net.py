"""
Surface Net Graph
=================

A surface net holds one node per lattice cell that intersects the surface.
Nodes are linked to the nodes of the face-adjacent cells in the six
directions of the cube faces (see :mod:`IsoMesh.topology.cube`):

========  ======  ==================
Axis      Lower   Upper
========  ======  ==================
x         LEFT    RIGHT
y         BOTTOM  TOP
z         FRONT   BACK
========  ======  ==================

Node storage is a pool of fixed-size blocks of numpy arrays. Blocks are only
ever appended, so a node keeps its slot for the lifetime of the net and the
flat node index stays a valid neighbor reference while the net grows.
"""

import logging

import numpy as np

import IsoMesh
from IsoMesh.classification import Lattice, is_trivial
from IsoMesh.errors import LinkError, NodeIndexError
from IsoMesh.topology import cube

logger = logging.getLogger(IsoMesh.__name__)

BLOCK_SIZE = 1024
NO_NEIGHBOR = -1
DIRECTION_COUNT = cube.FACE_COUNT

#: direction towards the lower and upper neighbor along each axis
LOWER_DIRECTION = (cube.LEFT, cube.BOTTOM, cube.FRONT)
UPPER_DIRECTION = (cube.RIGHT, cube.TOP, cube.BACK)

_FIELDS = {
    "position": ((3,), np.float64, 0.0),
    "previous_position": ((3,), np.float64, 0.0),
    "lattice": ((3,), np.int64, 0),
    "neighbors": ((DIRECTION_COUNT,), np.int64, NO_NEIGHBOR),
    "vertex_index": ((), np.int64, -1),
}


class _NodeBlock:
    def __init__(self, size):
        for name, (shape, dtype, fill) in _FIELDS.items():
            setattr(self, name, np.full((size,) + shape, fill, dtype=dtype))


class SurfaceNode:
    """View onto one node slot of a :class:`SurfaceNet`.

    The node data lives in the pool, the view only keeps the net and the
    flat index. Writing through the properties updates the pool.
    """

    __slots__ = ("net", "index")

    def __init__(self, net: "SurfaceNet", index: int):
        self.net = net
        self.index = index

    def _slot(self):
        block, offset = self.net.locate(self.index)
        return self.net._blocks[block], offset

    @property
    def handle(self) -> tuple[int, int]:
        return self.net.locate(self.index)

    @property
    def position(self) -> np.ndarray:
        block, offset = self._slot()
        return block.position[offset].copy()

    @position.setter
    def position(self, value):
        block, offset = self._slot()
        block.position[offset] = value

    @property
    def previous_position(self) -> np.ndarray:
        block, offset = self._slot()
        return block.previous_position[offset].copy()

    @property
    def lattice(self) -> tuple[int, int, int]:
        block, offset = self._slot()
        return tuple(int(c) for c in block.lattice[offset])

    @property
    def neighbors(self) -> tuple:
        block, offset = self._slot()
        return tuple(
            None if n == NO_NEIGHBOR else int(n) for n in block.neighbors[offset]
        )

    @property
    def degree(self) -> int:
        return sum(n is not None for n in self.neighbors)

    @property
    def vertex_index(self) -> int:
        block, offset = self._slot()
        return int(block.vertex_index[offset])

    @vertex_index.setter
    def vertex_index(self, value: int):
        block, offset = self._slot()
        block.vertex_index[offset] = value

    def neighbor(self, direction: int):
        index = self.net.neighbor(self.index, direction)
        return None if index is None else self.net.node(index)

    def __repr__(self):
        return f"SurfaceNode(index={self.index}, lattice={self.lattice})"


class SurfaceNet:
    """Block pool of surface nodes.

    Parameters
    ----------
    block_size : int, default BLOCK_SIZE
        Number of node slots per block.
    """

    def __init__(self, block_size: int = BLOCK_SIZE):
        if block_size < 1:
            raise ValueError(f"Block size must be positive, got {block_size}")
        self.block_size = block_size
        self._blocks = []
        self._count = 0

    def __len__(self):
        return self._count

    @property
    def block_count(self) -> int:
        return len(self._blocks)

    def locate(self, index: int) -> tuple[int, int]:
        """Return the (block, offset) handle of a flat node index."""
        if not 0 <= index < self._count:
            raise NodeIndexError(f"Node {index} not in net of {self._count} nodes")
        return divmod(index, self.block_size)

    def add_node(self, position, lattice) -> int:
        """Allocate a node and return its flat index."""
        block, offset = divmod(self._count, self.block_size)
        if block == len(self._blocks):
            self._blocks.append(_NodeBlock(self.block_size))
        slot = self._blocks[block]
        slot.position[offset] = position
        slot.previous_position[offset] = position
        slot.lattice[offset] = lattice
        self._count += 1
        return self._count - 1

    def node(self, index: int) -> SurfaceNode:
        self.locate(index)
        return SurfaceNode(self, index)

    def nodes(self):
        for index in range(self._count):
            yield SurfaceNode(self, index)

    def neighbor(self, index: int, direction: int):
        """Flat index of the neighbor in ``direction`` or None."""
        block, offset = self.locate(index)
        if not 0 <= direction < DIRECTION_COUNT:
            raise NodeIndexError(f"Direction {direction} out of range")
        n = int(self._blocks[block].neighbors[offset, direction])
        return None if n == NO_NEIGHBOR else n

    def link(self, a: int, b: int, direction: int):
        """Link ``a`` to ``b`` in ``direction`` and ``b`` back to ``a``.

        Raises
        ------
        LinkError
            If either of the two slots is already linked.
        """
        opposite = cube.opposite_face(direction)
        block_a, offset_a = self.locate(a)
        block_b, offset_b = self.locate(b)
        neighbors_a = self._blocks[block_a].neighbors
        neighbors_b = self._blocks[block_b].neighbors
        if neighbors_a[offset_a, direction] != NO_NEIGHBOR:
            raise LinkError(f"Node {a} is already linked in direction {direction}")
        if neighbors_b[offset_b, opposite] != NO_NEIGHBOR:
            raise LinkError(f"Node {b} is already linked in direction {opposite}")
        neighbors_a[offset_a, direction] = b
        neighbors_b[offset_b, opposite] = a

    def gather(self, name: str) -> np.ndarray:
        """Copy one node attribute of all nodes into a contiguous array."""
        shape, dtype, _ = _FIELDS[name]
        if not self._blocks:
            return np.zeros((0,) + shape, dtype=dtype)
        stacked = np.concatenate([getattr(block, name) for block in self._blocks])
        return stacked[: self._count].copy()

    def scatter(self, name: str, values: np.ndarray):
        """Write one node attribute of all nodes back into the pool."""
        values = np.asarray(values)
        if len(values) != self._count:
            raise ValueError(f"Expected {self._count} values, got {len(values)}")
        for i, block in enumerate(self._blocks):
            start = i * self.block_size
            stop = min(start + self.block_size, self._count)
            if start >= stop:
                break
            getattr(block, name)[: stop - start] = values[start:stop]


def build_surface_net(
    configurations: np.ndarray, lattice: Lattice, block_size: int = BLOCK_SIZE
) -> SurfaceNet:
    """Sweep the lattice and create one linked node per active cell.

    The sweep runs z outer, y middle, x inner. Each new node is linked to the
    already visited nodes below it on every axis: the z - 1 neighbor comes
    from a slice buffer, the y - 1 neighbor from a line buffer and the x - 1
    neighbor from the previous cell.

    Parameters
    ----------
    configurations : np.ndarray
        Cube configurations of shape ``lattice.cell_shape``.
    lattice : Lattice
        Lattice the configurations were sampled on.

    Returns
    -------
    SurfaceNet
        Net with nodes at the cell centres.
    """
    if configurations.shape != lattice.cell_shape:
        raise ValueError(
            f"Configurations of shape {configurations.shape} do not match "
            f"lattice cells {lattice.cell_shape}"
        )
    net = SurfaceNet(block_size)
    x_cells, y_cells, z_cells = lattice.cell_shape
    slice_buffer = np.full(x_cells * y_cells, NO_NEIGHBOR, dtype=np.int64)
    for z in range(z_cells):
        line_buffer = np.full(x_cells, NO_NEIGHBOR, dtype=np.int64)
        for y in range(y_cells):
            previous = NO_NEIGHBOR
            for x in range(x_cells):
                node = NO_NEIGHBOR
                if not is_trivial(int(configurations[x, y, z])):
                    node = net.add_node(lattice.cell_center(x, y, z), (x, y, z))
                    if previous != NO_NEIGHBOR:
                        net.link(node, previous, cube.LEFT)
                    if line_buffer[x] != NO_NEIGHBOR:
                        net.link(node, int(line_buffer[x]), cube.BOTTOM)
                    if slice_buffer[y * x_cells + x] != NO_NEIGHBOR:
                        net.link(node, int(slice_buffer[y * x_cells + x]), cube.FRONT)
                previous = node
                line_buffer[x] = node
                slice_buffer[y * x_cells + x] = node
    logger.debug(f"Built surface net with {len(net)} nodes in {net.block_count} blocks")
    return net
