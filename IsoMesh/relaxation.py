"""
Elastic Relaxation
==================

Moves surface net nodes toward the centroid of their neighbors to smooth
the surface while keeping every node inside the lattice cell it was created
in.

Each iteration first snapshots all positions. The update of a node then
reads only that snapshot and writes only its own position, so all nodes are
updated at once with vectorized array operations:

1. ``E_old = sum |p_prev(n) - p_prev|^2`` over the neighbors ``n``
2. ``p = (1 - w) p_prev + w centroid(p_prev(n))``, clamped to the cell
3. ``E_new = sum |p_prev(n) - p|^2``
4. keep ``p`` only if ``E_new < E_old``, otherwise revert to ``p_prev``

Nodes without neighbors never move.
"""

import logging

import numpy as np

import IsoMesh
from IsoMesh.classification import Lattice
from IsoMesh.surface_net import SurfaceNet

logger = logging.getLogger(IsoMesh.__name__)

DEFAULT_WEIGHT = 0.001
DEFAULT_ITERATIONS = 3000


def _energy(points, reference, neighbors, linked):
    diff = reference[neighbors] - points[:, None, :]
    return ((diff**2).sum(axis=-1) * linked).sum(axis=1)


def _neighbor_arrays(net: SurfaceNet):
    neighbors = net.gather("neighbors")
    linked = neighbors >= 0
    return np.where(linked, neighbors, 0), linked


def node_energy(net: SurfaceNet, positions: np.ndarray | None = None) -> np.ndarray:
    """Energy of every node against the previous position snapshot.

    Parameters
    ----------
    net : SurfaceNet
        Relaxed net.
    positions : np.ndarray, optional
        Node positions to evaluate, the current positions by default.

    Returns
    -------
    np.ndarray
        Sum of squared distances to the snapshotted neighbor positions.
    """
    reference = net.gather("previous_position")
    if positions is None:
        positions = net.gather("position")
    neighbors, linked = _neighbor_arrays(net)
    return _energy(np.asarray(positions), reference, neighbors, linked)


def relax(
    net: SurfaceNet,
    lattice: Lattice,
    iterations: int = DEFAULT_ITERATIONS,
    weight: float = DEFAULT_WEIGHT,
) -> SurfaceNet:
    """Run a fixed number of relaxation iterations on ``net`` in place.

    Parameters
    ----------
    net : SurfaceNet
        Net built by :func:`IsoMesh.surface_net.build_surface_net`.
    lattice : Lattice
        Lattice the net was built on, used for the cell bounds.
    iterations : int, default DEFAULT_ITERATIONS
        Number of iterations, there is no convergence check.
    weight : float, default DEFAULT_WEIGHT
        Blend factor toward the neighbor centroid, in (0, 1].

    Returns
    -------
    SurfaceNet
        The same net, for chaining.
    """
    if iterations < 0:
        raise ValueError(f"Iteration count must not be negative, got {iterations}")
    if not 0 < weight <= 1:
        raise ValueError(f"Weight must lie in (0, 1], got {weight}")
    if len(net) == 0 or iterations == 0:
        return net

    neighbors, linked = _neighbor_arrays(net)
    counts = linked.sum(axis=1)
    movable = counts > 0
    cells = net.gather("lattice")
    lower = lattice.bounds[0] + cells * lattice.cell_size
    upper = lower + lattice.cell_size

    position = net.gather("position")
    previous = position
    for _ in range(iterations):
        previous = position.copy()
        old_energy = _energy(previous, previous, neighbors, linked)
        centroid = (previous[neighbors] * linked[..., None]).sum(axis=1) / np.maximum(
            counts, 1
        )[:, None]
        candidate = np.clip((1 - weight) * previous + weight * centroid, lower, upper)
        new_energy = _energy(candidate, previous, neighbors, linked)
        improved = movable & (new_energy < old_energy)
        position = np.where(improved[:, None], candidate, previous)

    net.scatter("previous_position", previous)
    net.scatter("position", position)
    logger.debug(f"Relaxed {len(net)} nodes for {iterations} iterations")
    return net
