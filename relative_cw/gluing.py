"""relative_cw.gluing

Gluing continuous maps along a finite closed cover.

Given closed sets S_i covering a space α and continuous maps φ_i : S_i -> β
that agree on every overlap, the map

    Φ(x) = φ_i(x)    for any i with x ∈ S_i

is well defined (the φ_i agree on overlaps) and total (the S_i cover α). It
is continuous because, for a closed Y ⊆ β,

    Φ^-1(Y) = ⋃_i ι_i(φ_i^-1(Y))

where each φ_i^-1(Y) is closed in S_i, each ι_i : S_i -> α is the inclusion
of a closed subspace (a closed map), and a finite union of closed sets is
closed. `GluedMap.preimage` builds exactly that union.

The finiteness of the index set is essential. Arbitrary unions of closed sets
are not closed in general, so covers are only accepted as finite mappings.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from itertools import combinations
from typing import Any, Dict, FrozenSet, Hashable, List, Optional, Tuple

from .config import make_rng, resolve_config
from .errors import GluingError, InfiniteCoverError
from .maps import ContinuousMap
from .spaces import (
    ClosedSubset,
    FiniteUnion,
    ImageInAmbient,
    Intersection,
    Point,
    Sampler,
    Space,
    Subspace,
    complementary,
)

logger = logging.getLogger(__name__)


class ClosedCover:
    """A finite family of closed subsets of `space`, keyed by index."""

    def __init__(self, space: Space, sets: Mapping, overlap_samplers: Optional[Mapping] = None):
        if not isinstance(sets, Mapping):
            raise InfiniteCoverError(
                f"a closed cover is a finite mapping index -> closed set, got {type(sets).__name__}"
            )
        self.space = space
        self.sets: Dict[Hashable, ClosedSubset] = dict(sets)
        self.indices: Tuple[Hashable, ...] = tuple(self.sets)
        # samplers for thin overlaps, keyed by frozenset({i, j})
        self.overlap_samplers: Dict[FrozenSet[Hashable], Sampler] = {
            frozenset(pair): s for pair, s in (overlap_samplers or {}).items()
        }

    def __len__(self) -> int:
        return len(self.indices)

    def __getitem__(self, i: Hashable) -> ClosedSubset:
        return self.sets[i]

    def subspace(self, i: Hashable) -> Subspace:
        return self.space.subspace(self.sets[i])

    def overlap(self, i: Hashable, j: Hashable) -> Intersection:
        sampler = self.overlap_samplers.get(frozenset((i, j)))
        return Intersection(self.space, (self.sets[i], self.sets[j]), sampler=sampler)

    def covers_exactly(self) -> Optional[bool]:
        """Decide the cover condition without sampling, when possible.

        True if some pair of sets is a complementary sublevel/superlevel pair,
        or if the space is finite and every point is covered; False if a
        point of a finite space is missed; None when undecided.
        """
        for i, j in combinations(self.indices, 2):
            if complementary(self.sets[i], self.sets[j]):
                return True
        pts = self.space.enumerate()
        if pts is None:
            return None
        return all(any(s.contains(p) for s in self.sets.values()) for p in pts)

    def __repr__(self) -> str:
        return f"<ClosedCover of {self.space.name} by {list(self.indices)}>"


def _as_piece(cover: ClosedCover, i: Hashable, phi: ContinuousMap) -> ContinuousMap:
    """A piece may be given on S_i or on the whole space (then it is restricted)."""
    if phi.domain is cover.space:
        return phi.restrict(cover.sets[i])
    return phi


def validate_cover(
    cover: ClosedCover,
    pieces: Mapping,
    codomain: Space,
    *,
    config: Optional[Dict[str, Any]] = None,
) -> List[str]:
    """Return a list of problems with (cover, pieces); empty if gluable.

    Checks that:
    - every set is closed in the space
    - the sets cover the space (exactly where decidable, else on samples)
    - every piece is a map S_i -> codomain
    - pieces agree on every pairwise overlap (exactly on finite spaces, else on
      samples of the overlap)
    - every overlap of a continuous space could actually be sampled; a seam
      found only by rejection sampling needs an entry in `overlap_samplers`
    """
    cfg = resolve_config(config)
    rng = make_rng(int(cfg["random_seed"]))
    k = int(cfg["num_samples"])
    problems: List[str] = []

    if set(pieces) != set(cover.indices):
        problems.append(f"pieces {sorted(map(str, pieces))} do not match cover indices {sorted(map(str, cover.indices))}")
        return problems

    for i in cover.indices:
        if not cover.space.is_closed(cover.sets[i]):
            problems.append(f"set {i!r} is not closed in {cover.space.name}")
    if problems:
        return problems

    resolved: Dict[Hashable, ContinuousMap] = {}
    for i in cover.indices:
        phi = _as_piece(cover, i, pieces[i])
        if phi.domain is not cover.subspace(i):
            problems.append(f"piece {i!r} is defined on {phi.domain.name}, not on set {i!r}")
        elif phi.codomain is not codomain:
            problems.append(f"piece {i!r} lands in {phi.codomain.name}, not {codomain.name}")
        resolved[i] = phi
    if problems:
        return problems

    exact = cover.covers_exactly()
    if exact is False:
        problems.append(f"sets do not cover {cover.space.name}")
    elif exact is None and not cover.space.is_empty():
        for p in cover.space.sample(k, rng):
            if not any(s.contains(p) for s in cover.sets.values()):
                problems.append(f"point {p!r} is not covered")
                break

    for i, j in combinations(cover.indices, 2):
        overlap = cover.overlap(i, j)
        pts = [p for p in overlap.sample(k, rng) if overlap.contains(p)]
        if not pts and not overlap.samples_exactly():
            problems.append(
                f"overlap of {i!r} and {j!r} could not be sampled; pass an overlap sampler for it"
            )
            continue
        for p in pts:
            a, b = resolved[i](p), resolved[j](p)
            if not codomain.same_point(a, b):
                problems.append(f"pieces {i!r} and {j!r} disagree at {p!r}: {a!r} != {b!r}")
                break
    return problems


class GluedMap(ContinuousMap):
    """The map on the whole space assembled from the pieces of a closed cover."""

    def __init__(self, cover: ClosedCover, pieces: Dict[Hashable, ContinuousMap], codomain: Space,
                 name: str = "Φ"):
        super().__init__(cover.space, codomain, self._evaluate, name=name,
                         reason="glued over a finite closed cover")
        self.cover = cover
        self.pieces = pieces

    def _evaluate(self, x: Point) -> Point:
        for i in self.cover.indices:
            if self.cover.sets[i].contains(x):
                return self.pieces[i](x)
        raise ValueError(f"{x!r} is not a point of {self.domain.name}")

    def eval_at(self, x: Point, i: Hashable) -> Point:
        """φ_i(x), for callers that already know x ∈ S_i."""
        if not self.cover.sets[i].contains(x):
            raise ValueError(f"{x!r} is not in set {i!r}")
        return self.pieces[i](x)

    def preimage(self, closed: ClosedSubset) -> ClosedSubset:
        """Φ^-1(Y) as the finite union of the images of the φ_i^-1(Y)."""
        parts = [
            ImageInAmbient(self.cover.subspace(i), self.pieces[i].preimage(closed))
            for i in self.cover.indices
        ]
        return FiniteUnion(self.domain, parts)


def glue(
    cover: ClosedCover,
    pieces: Mapping,
    codomain: Optional[Space] = None,
    *,
    config: Optional[Dict[str, Any]] = None,
    name: str = "Φ",
) -> GluedMap:
    """Glue compatible continuous pieces into one continuous map.

    Raises `GluingError` when a set is not closed, the sets fail to cover the
    space, or two pieces disagree on an overlap.
    """
    if not isinstance(pieces, Mapping):
        raise InfiniteCoverError("pieces must be a finite mapping index -> map")
    if codomain is None:
        if not pieces:
            raise ValueError("cannot infer the codomain of an empty family of pieces")
        codomain = next(iter(pieces.values())).codomain
    problems = validate_cover(cover, pieces, codomain, config=config)
    if problems:
        raise GluingError(problems)
    resolved = {i: _as_piece(cover, i, pieces[i]) for i in cover.indices}
    logger.debug("glued %d pieces over %s", len(resolved), cover.space.name)
    return GluedMap(cover, resolved, codomain, name=name)


def restriction_pieces(f: ContinuousMap, cover: ClosedCover) -> Dict[Hashable, ContinuousMap]:
    """φ_i = f|S_i; gluing these gives back f pointwise."""
    return {i: f.restrict(cover.sets[i]) for i in cover.indices}
