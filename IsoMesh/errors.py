"""
Invariant Violations
====================

Contract violations inside IsoMesh are programmer errors and are not
recoverable. They are raised as subclasses of :class:`InvariantViolation` so
callers can tell them apart from argument errors (``ValueError``,
``TypeError``). Expected degenerate cases such as trivial cells or
low-valence dual vertices are handled by plain branches and never raise.
"""


class InvariantViolation(RuntimeError):
    """An internal consistency check failed."""


class TopologyIndexError(InvariantViolation, IndexError):
    """Vertex, edge, face or configuration index outside its table."""


class CanonicalTableError(InvariantViolation):
    """Two orbit paths disagree or the class count is wrong."""


class LinkError(InvariantViolation):
    """A surface node slot is linked twice or a required link is missing."""


class NodeIndexError(InvariantViolation, IndexError):
    """A surface node handle does not address an allocated node."""


class IncidenceOverflowError(InvariantViolation):
    """A vertex has more incident faces than the structural bound allows."""


class MeshIndexError(InvariantViolation, IndexError):
    """A face references a vertex that does not exist."""
