"""
Symmetry Canonicalization
=========================

Reduces the ``2**n`` corner configurations of a cell to a small number of
canonical classes under rotations, an optional reflection and bitwise
inversion.

Every configuration ``c`` is stored with the id of its class and the
:class:`TransformSequence` that maps the class representative onto ``c``.
Going from canonical to actual applies inversion, then reflection, then
rotation. Going back undoes rotation, then reflection, then inversion.

Tables are built on first use and cached. They are immutable afterwards and
can be shared between threads without locking.

Examples
--------
>>> from IsoMesh.canonical import cube_table
>>> table = cube_table()
>>> table.class_count
15
>>> canonical_id, sequence = table.classify(0xFE)
>>> hex(table.canonical_configurations[canonical_id])
'0x1'
>>> sequence.inversion
True
"""

import functools
import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Sequence

import IsoMesh
from IsoMesh.errors import CanonicalTableError, TopologyIndexError
from IsoMesh.topology import cube, square, transition

logger = logging.getLogger(IsoMesh.__name__)


def permute_bits(configuration: int, permutation: Sequence[int]) -> int:
    """Move bit ``i`` of ``configuration`` to bit ``permutation[i]``."""
    result = 0
    for bit, target in enumerate(permutation):
        if configuration >> bit & 1:
            result |= 1 << target
    return result


def invert_permutation(permutation: Sequence[int]) -> tuple[int, ...]:
    inverse = [0] * len(permutation)
    for source, target in enumerate(permutation):
        inverse[target] = source
    return tuple(inverse)


def compose_permutations(first, second) -> tuple[int, ...]:
    """Permutation applying ``first`` and then ``second``."""
    return tuple(second[target] for target in first)


@dataclass(frozen=True)
class TransformSequence:
    """Maps a canonical representative onto one member of its class.

    Parameters
    ----------
    rotations : tuple of int
        Quarter turn count (0 to 3) per rotation generator of the cell.
    mirror : bool
        Whether the reflection is applied.
    inversion : bool
        Whether all corner classifications are flipped.
    """

    rotations: tuple[int, ...] = ()
    mirror: bool = False
    inversion: bool = False

    @property
    def is_identity(self) -> bool:
        return not any(self.rotations) and not self.mirror and not self.inversion


@dataclass(frozen=True)
class CellSymmetry:
    """Symmetry group of one cell type.

    Parameters
    ----------
    name : str
        Name used in log messages.
    bits : int
        Number of corner samples.
    generators : tuple
        Quarter turn permutations, applied in the given order.
    rotation_words : tuple
        Turn counts per generator; together they enumerate every rotation
        of the cell exactly once.
    mirror : tuple, optional
        Reflection permutation.
    ambiguous : callable, optional
        Predicate marking configurations for which inversion is not a
        valid symmetry.
    expected_classes : int, optional
        Known number of classes, checked after the table is built.
    """

    name: str
    bits: int
    generators: tuple[tuple[int, ...], ...]
    rotation_words: tuple[tuple[int, ...], ...]
    mirror: Optional[tuple[int, ...]] = None
    ambiguous: Optional[Callable[[int], bool]] = None
    expected_classes: Optional[int] = None

    @property
    def mask(self) -> int:
        return (1 << self.bits) - 1

    def rotation_permutation(self, rotations: Sequence[int]) -> tuple[int, ...]:
        """Corner permutation performed by a rotation word."""
        permutation = tuple(range(self.bits))
        for generator, turns in zip(self.generators, rotations):
            for _ in range(turns):
                permutation = compose_permutations(permutation, generator)
        return permutation

    def from_canonical(self, sequence: TransformSequence, configuration: int) -> int:
        if sequence.inversion:
            configuration = ~configuration & self.mask
        if sequence.mirror:
            configuration = permute_bits(configuration, self.mirror)
        return permute_bits(
            configuration, self.rotation_permutation(sequence.rotations)
        )

    def to_canonical(self, sequence: TransformSequence, configuration: int) -> int:
        configuration = permute_bits(
            configuration,
            invert_permutation(self.rotation_permutation(sequence.rotations)),
        )
        if sequence.mirror:
            configuration = permute_bits(
                configuration, invert_permutation(self.mirror)
            )
        if sequence.inversion:
            configuration = ~configuration & self.mask
        return configuration

    def sequences(self, configuration: int) -> Iterator[TransformSequence]:
        """Enumerate the transforms spanning the orbit of ``configuration``.

        Inversion is the outer loop and is dropped for ambiguous
        configurations, the reflection is the middle loop and the rotation
        words are the inner loop.
        """
        inversions = (False, True)
        if self.ambiguous is not None and self.ambiguous(configuration):
            inversions = (False,)
        mirrors = (False, True) if self.mirror is not None else (False,)
        for inversion in inversions:
            for mirror in mirrors:
                for rotations in self.rotation_words:
                    yield TransformSequence(rotations, mirror, inversion)


@dataclass(frozen=True)
class CanonicalTable:
    """Canonical class and transform of every configuration of a cell."""

    symmetry: CellSymmetry
    canonical_id: tuple[int, ...]
    transforms: tuple[TransformSequence, ...]
    canonical_configurations: tuple[int, ...]

    @property
    def class_count(self) -> int:
        return len(self.canonical_configurations)

    def _check(self, configuration):
        if not 0 <= configuration <= self.symmetry.mask:
            raise TopologyIndexError(
                f"Configuration {configuration:#x} does not fit into "
                f"{self.symmetry.bits} bits"
            )

    def classify(self, configuration: int) -> tuple[int, TransformSequence]:
        self._check(configuration)
        return self.canonical_id[configuration], self.transforms[configuration]

    def canonical(self, configuration: int) -> int:
        """Return the representative of the class of ``configuration``."""
        self._check(configuration)
        return self.canonical_configurations[self.canonical_id[configuration]]

    def reproduce(self, configuration: int) -> int:
        """Apply the recorded transform to the representative."""
        return self.symmetry.from_canonical(
            self.transforms[configuration], self.canonical(configuration)
        )


def build_canonical_table(symmetry: CellSymmetry) -> CanonicalTable:
    """Walk the orbit of every configuration and assign canonical classes.

    Configurations are visited in ascending order, so every representative
    is the smallest member of its class.

    Raises
    ------
    CanonicalTableError
        If two members of one orbit carry different class ids, or if the
        number of classes differs from ``symmetry.expected_classes``.
    """
    size = 1 << symmetry.bits
    canonical_id = [None] * size
    transforms = [None] * size
    representatives = []

    for configuration in range(size):
        found = None
        recorded = None
        for sequence in symmetry.sequences(configuration):
            member = symmetry.to_canonical(sequence, configuration)
            member_id = canonical_id[member]
            if member_id is None:
                continue
            if found is None:
                found = member_id
            elif member_id != found:
                raise CanonicalTableError(
                    f"{symmetry.name}: configuration {configuration:#x} reaches "
                    f"classes {found} and {member_id}"
                )
            if recorded is None and member == representatives[found]:
                recorded = sequence

        if found is None:
            found = len(representatives)
            representatives.append(configuration)
            recorded = TransformSequence((0,) * len(symmetry.generators))
        elif recorded is None:
            raise CanonicalTableError(
                f"{symmetry.name}: no transform maps class {found} "
                f"onto configuration {configuration:#x}"
            )
        canonical_id[configuration] = found
        transforms[configuration] = recorded

    if (
        symmetry.expected_classes is not None
        and len(representatives) != symmetry.expected_classes
    ):
        raise CanonicalTableError(
            f"{symmetry.name}: found {len(representatives)} canonical classes, "
            f"expected {symmetry.expected_classes}"
        )
    logger.debug(
        f"Built {symmetry.name} table with {len(representatives)} canonical classes"
    )
    return CanonicalTable(
        symmetry=symmetry,
        canonical_id=tuple(canonical_id),
        transforms=tuple(transforms),
        canonical_configurations=tuple(representatives),
    )


# pick the face that ends up in front, then spin about y
_CUBE_WORDS = tuple(
    (z_turns, x_turns, y_turns)
    for z_turns, x_turns in ((0, 0), (1, 0), (2, 0), (3, 0), (0, 1), (0, 3))
    for y_turns in range(4)
)
_PLANAR_WORDS = tuple((turns,) for turns in range(4))

CUBE = CellSymmetry(
    name="cube",
    bits=cube.VERTEX_COUNT,
    generators=(cube.ROTATE_Z, cube.ROTATE_X, cube.ROTATE_Y),
    rotation_words=_CUBE_WORDS,
    expected_classes=15,
)

REGULAR_CELL = CellSymmetry(
    name="regular cell",
    bits=cube.VERTEX_COUNT,
    generators=(cube.ROTATE_Z, cube.ROTATE_X, cube.ROTATE_Y),
    rotation_words=_CUBE_WORDS,
    ambiguous=cube.has_ambiguous_face,
    expected_classes=18,
)

SQUARE = CellSymmetry(
    name="square",
    bits=square.VERTEX_COUNT,
    generators=(square.ROTATE,),
    rotation_words=_PLANAR_WORDS,
    expected_classes=4,
)

TRANSITION_CELL = CellSymmetry(
    name="transition cell",
    bits=transition.SAMPLE_COUNT,
    generators=(transition.ROTATE,),
    rotation_words=_PLANAR_WORDS,
    mirror=transition.MIRROR,
    ambiguous=transition.has_ambiguous_face,
    expected_classes=73,
)


@functools.lru_cache(maxsize=None)
def cube_table() -> CanonicalTable:
    return build_canonical_table(CUBE)


@functools.lru_cache(maxsize=None)
def regular_cell_table() -> CanonicalTable:
    return build_canonical_table(REGULAR_CELL)


@functools.lru_cache(maxsize=None)
def square_table() -> CanonicalTable:
    return build_canonical_table(SQUARE)


@functools.lru_cache(maxsize=None)
def transition_table() -> CanonicalTable:
    return build_canonical_table(TRANSITION_CELL)
