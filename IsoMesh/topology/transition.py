"""
Transition Cell Topology
========================

The transvoxel transition cell has nine samples on its full resolution face,
laid out on a 3x3 grid with sample ``i`` at ``(i % 3, i // 3)``::

    6---7---8
    |   |   |
    3---4---5
    |   |   |
    0---1---2

The ambiguity test looks at the low resolution face spanned by the four
corner samples and at the four full resolution quadrants.
"""

from IsoMesh.errors import TopologyIndexError

SAMPLE_COUNT = 9

# corners of every face in cyclic order
AMBIGUITY_FACES = (
    (0, 2, 8, 6),
    (0, 1, 4, 3),
    (1, 2, 5, 4),
    (3, 4, 7, 6),
    (4, 5, 8, 7),
)


def sample_index(x: int, y: int) -> int:
    for coordinate in (x, y):
        if coordinate not in (0, 1, 2):
            raise TopologyIndexError(f"Sample coordinate {coordinate} is not 0, 1 or 2")
    return x + 3 * y


def sample_position(sample: int) -> tuple[int, int]:
    if not 0 <= sample < SAMPLE_COUNT:
        raise TopologyIndexError(
            f"Sample index {sample} out of range [0, {SAMPLE_COUNT})"
        )
    return sample % 3, sample // 3


def has_ambiguous_face(configuration: int) -> bool:
    """True if any face of the cell has its corners alternating diagonally."""
    if not 0 <= configuration < 1 << SAMPLE_COUNT:
        raise TopologyIndexError(
            f"Configuration {configuration:#x} does not fit into {SAMPLE_COUNT} bits"
        )
    for face in AMBIGUITY_FACES:
        a, b, c, d = (configuration >> sample & 1 for sample in face)
        if a == c and b == d and a != b:
            return True
    return False


# quarter turn counter-clockwise and reflection about the vertical centre line
ROTATE = tuple(
    sample_index(2 - (s // 3), s % 3) for s in range(SAMPLE_COUNT)
)
MIRROR = tuple(
    sample_index(2 - (s % 3), s // 3) for s in range(SAMPLE_COUNT)
)
