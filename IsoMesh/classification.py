"""
Scalar Classification
=====================

Samples a scalar field at the corners of lattice cells and packs the signs
into configuration bit masks. Corner ``v`` of a cube maps to bit ``v`` and is
set when the sample is ``>= 0`` (outside).

:func:`classify_cell` samples one cell without any caching. The extraction
algorithms use :func:`classify_lattice`, which samples every lattice point
once in a single batched field evaluation and derives all cell
configurations from that array.
"""

import logging
from typing import Sequence

import numpy as np

import IsoMesh
from IsoMesh.SDF import as_field
from IsoMesh.topology import cube, transition

logger = logging.getLogger(IsoMesh.__name__)


class Lattice:
    """Regular sampling lattice over an axis-aligned box.

    Parameters
    ----------
    resolution : int or sequence of 3 ints
        Number of samples per axis, at least 2.
    bounds : array-like of shape (2, 3)
        ``[[xmin, ymin, zmin], [xmax, ymax, zmax]]``.

    Examples
    --------
    >>> lattice = Lattice(5, [[0, 0, 0], [1, 1, 1]])
    >>> lattice.cell_size
    array([0.25, 0.25, 0.25])
    >>> lattice.cell_shape
    (4, 4, 4)
    """

    def __init__(self, resolution: int | Sequence[int], bounds):
        if np.isscalar(resolution):
            resolution = (resolution,) * 3
        resolution = tuple(int(r) for r in resolution)
        if len(resolution) != 3:
            raise ValueError(f"Expected 3 resolutions, got {resolution}")
        if any(r < 2 for r in resolution):
            raise ValueError(f"Resolution must be at least 2 per axis, got {resolution}")
        bounds = np.asarray(bounds, dtype=np.float64)
        if bounds.shape != (2, 3):
            raise ValueError(f"Bounds should be of shape (2, 3), got {bounds.shape}")
        if np.any(bounds[1] <= bounds[0]):
            raise ValueError(f"Upper bounds must exceed lower bounds, got {bounds}")
        self.resolution = resolution
        self.bounds = bounds

    @classmethod
    def from_field(cls, field, resolution):
        """Lattice spanning the domain bounds of a scalar field."""
        return cls(resolution, field._get_domain_bounds())

    @property
    def cell_size(self) -> np.ndarray:
        return (self.bounds[1] - self.bounds[0]) / (np.array(self.resolution) - 1)

    @property
    def cell_shape(self) -> tuple[int, int, int]:
        return tuple(r - 1 for r in self.resolution)

    @property
    def cell_count(self) -> int:
        return int(np.prod(self.cell_shape))

    def sample_position(self, x, y, z) -> np.ndarray:
        return self.bounds[0] + np.array([x, y, z]) * self.cell_size

    def cell_origin(self, x, y, z) -> np.ndarray:
        return self.sample_position(x, y, z)

    def cell_center(self, x, y, z) -> np.ndarray:
        return self.cell_origin(x, y, z) + 0.5 * self.cell_size

    def cell_bounds(self, x, y, z) -> tuple[np.ndarray, np.ndarray]:
        lower = self.cell_origin(x, y, z)
        return lower, lower + self.cell_size

    def sample_points(self) -> np.ndarray:
        """All lattice points, shape (N, 3), x varying slowest."""
        axes = [
            np.linspace(self.bounds[0, i], self.bounds[1, i], self.resolution[i])
            for i in range(3)
        ]
        grid = np.meshgrid(*axes, indexing="ij")
        return np.stack(grid, axis=-1).reshape(-1, 3)


def is_trivial(configuration: int, bits: int = cube.VERTEX_COUNT) -> bool:
    """True if all corners share one classification."""
    return configuration == 0 or configuration == (1 << bits) - 1


def pack_samples(samples) -> int:
    """Pack a sequence of corner samples, bit ``i`` set for ``samples[i] >= 0``."""
    configuration = 0
    for bit, value in enumerate(samples):
        if value >= 0:
            configuration |= 1 << bit
    return configuration


def classify_cell(field, lattice: Lattice, x: int, y: int, z: int, aux=None) -> int:
    """Sample the 8 corners of cell (x, y, z) and return its configuration.

    Parameters
    ----------
    field : ScalarField or callable
        Field to sample, a plain callable is called as ``field(x, y, z, aux)``.
    lattice : Lattice
        Sampling lattice.
    x, y, z : int
        Cell coordinate, ``0 <= x < lattice.cell_shape[0]`` and so on.
    aux : any, optional
        Auxiliary argument for plain callbacks.
    """
    for coordinate, count in zip((x, y, z), lattice.cell_shape):
        if not 0 <= coordinate < count:
            raise IndexError(f"Cell {(x, y, z)} outside lattice {lattice.cell_shape}")
    field = as_field(field, aux)
    origin = lattice.cell_origin(x, y, z)
    corners = np.array(
        [
            origin + np.array(cube.vertex_position(v)) * lattice.cell_size
            for v in range(cube.VERTEX_COUNT)
        ]
    )
    return pack_samples(field.evaluate(corners))


def classify_square(samples) -> int:
    if len(samples) != 4:
        raise ValueError(f"A square has 4 samples, got {len(samples)}")
    return pack_samples(samples)


def classify_transition(samples) -> int:
    if len(samples) != transition.SAMPLE_COUNT:
        raise ValueError(
            f"A transition cell has {transition.SAMPLE_COUNT} samples, got {len(samples)}"
        )
    return pack_samples(samples)


def sample_lattice(field, lattice: Lattice, aux=None) -> np.ndarray:
    """Field values at every lattice point, shape ``lattice.resolution``."""
    field = as_field(field, aux)
    values = field.evaluate(lattice.sample_points())
    return values.reshape(lattice.resolution)


def configurations_from_samples(values: np.ndarray) -> np.ndarray:
    """Cube configurations of all cells of a sampled lattice.

    Parameters
    ----------
    values : np.ndarray
        Samples of shape (nx, ny, nz).

    Returns
    -------
    np.ndarray
        Integer configurations of shape (nx - 1, ny - 1, nz - 1).
    """
    outside = values >= 0
    nx, ny, nz = outside.shape
    configurations = np.zeros((nx - 1, ny - 1, nz - 1), dtype=np.int64)
    for vertex in range(cube.VERTEX_COUNT):
        dx, dy, dz = cube.vertex_position(vertex)
        corner = outside[dx : nx - 1 + dx, dy : ny - 1 + dy, dz : nz - 1 + dz]
        configurations |= corner.astype(np.int64) << vertex
    return configurations


def classify_lattice(field, lattice: Lattice, aux=None):
    """Sample the whole lattice once and classify every cell.

    Returns
    -------
    values : np.ndarray
        Samples of shape ``lattice.resolution``.
    configurations : np.ndarray
        Configurations of shape ``lattice.cell_shape``.
    """
    values = sample_lattice(field, lattice, aux)
    configurations = configurations_from_samples(values)
    active = np.count_nonzero((configurations != 0) & (configurations != 0xFF))
    logger.debug(
        f"Classified {lattice.cell_count} cells, {active} intersect the surface"
    )
    return values, configurations
