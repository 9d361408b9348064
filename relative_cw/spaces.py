"""relative_cw.spaces

Spaces and closed subsets.

A space here is a concrete point set that can answer four questions:

- does it contain a point (`contains`)
- are two points the same point of the space (`same_point`)
- is a candidate subset closed (`is_closed`)
- what do a few of its points look like (`sample` / `enumerate`)

Continuity and closedness are not decidable for general Euclidean subsets, so
closed subsets are *witnesses*: every `ClosedSubset` subclass is closed for a
stated reason (sublevel set of a continuous function, preimage of a closed set,
finite union, ...). Finite spaces are the exception: there the topology is an
explicit family of closed sets and closedness of any subset is decided exactly.
"""

from __future__ import annotations

from collections.abc import Collection
from itertools import combinations, islice, product
from typing import Any, Callable, Dict, FrozenSet, Hashable, Iterable, List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from .errors import InfiniteCoverError
from .utils import as_point, points_close


Point = Any
Sampler = Callable[[int, np.random.Generator], List[Point]]

_DEFAULT_TOL = 1e-9


# =============================================================================
# Spaces
# =============================================================================

class Space:
    """Base class for all spaces."""

    def __init__(self, name: str, tol: float = _DEFAULT_TOL):
        self.name = name
        self.tol = float(tol)
        self._subspaces: Dict[int, Tuple["ClosedSubset", "Subspace"]] = {}

    def contains(self, p: Point) -> bool:
        raise NotImplementedError

    def same_point(self, p: Point, q: Point) -> bool:
        return p == q

    def is_closed(self, subset: Any) -> bool:
        """True if `subset` carries a closedness witness for this space."""
        return isinstance(subset, ClosedSubset) and subset.space is self

    def subspace(self, subset: "ClosedSubset") -> "Subspace":
        """The subspace on a closed subset; the same object for the same subset."""
        if not self.is_closed(subset):
            raise ValueError(f"{subset!r} is not a closed subset of {self.name}")
        cached = self._subspaces.get(id(subset))
        if cached is None:
            cached = (subset, Subspace(self, subset))
            self._subspaces[id(subset)] = cached
        return cached[1]

    def enumerate(self) -> Optional[List[Point]]:
        """All points, when the space is finite and listable; else None."""
        return None

    def sample(self, k: int, rng: np.random.Generator) -> List[Point]:
        raise NotImplementedError(f"{type(self).__name__} cannot be sampled")

    def embed(self, p: Point) -> NDArray[np.float64]:
        raise NotImplementedError(f"{type(self).__name__} has no coordinates")

    def is_empty(self) -> bool:
        pts = self.enumerate()
        return pts is not None and len(pts) == 0

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class EuclideanSubspace(Space):
    """A subset of R^dim cut out by constraints `h(x) <= 0` with h continuous."""

    def __init__(
        self,
        dim: int,
        name: str,
        constraints: Sequence[Callable[[NDArray[np.float64]], float]] = (),
        *,
        sampler: Optional[Sampler] = None,
        points: Optional[Sequence[Sequence[float]]] = None,
        tol: float = _DEFAULT_TOL,
    ):
        super().__init__(name, tol=tol)
        self.dim = int(dim)
        self.constraints = tuple(constraints)
        self._sampler = sampler
        # explicit listing for finite subsets (S^0, S^-1, D^0)
        self._points = None if points is None else [as_point(p).reshape(self.dim) for p in points]

    def contains(self, p: Point) -> bool:
        try:
            x = as_point(p)
        except (TypeError, ValueError):
            return False
        if x.shape != (self.dim,) or not np.all(np.isfinite(x)):
            return False
        return all(float(h(x)) <= self.tol for h in self.constraints)

    def same_point(self, p: Point, q: Point) -> bool:
        return points_close(p, q, self.tol)

    def enumerate(self) -> Optional[List[Point]]:
        if self._points is None:
            return None
        return [x.copy() for x in self._points]

    def sample(self, k: int, rng: np.random.Generator) -> List[Point]:
        pts = self.enumerate()
        if pts is not None:
            return pts
        if self._sampler is None:
            raise NotImplementedError(f"no sampler for {self.name}")
        return self._sampler(k, rng)

    def embed(self, p: Point) -> NDArray[np.float64]:
        return as_point(p)


class RealLine(Space):
    """R with float points; codomain of the functions defining sublevel sets."""

    def __init__(self, name: str = "R", tol: float = _DEFAULT_TOL):
        super().__init__(name, tol=tol)

    def contains(self, p: Point) -> bool:
        try:
            return bool(np.isfinite(float(p)))
        except (TypeError, ValueError):
            return False

    def same_point(self, p: Point, q: Point) -> bool:
        return abs(float(p) - float(q)) <= self.tol

    def sample(self, k: int, rng: np.random.Generator) -> List[Point]:
        return [float(v) for v in rng.normal(scale=2.0, size=k)]

    def embed(self, p: Point) -> NDArray[np.float64]:
        return np.array([float(p)])


class UnitInterval(RealLine):
    """[0, 1] with float points."""

    def __init__(self, name: str = "I", tol: float = _DEFAULT_TOL):
        super().__init__(name, tol=tol)

    def contains(self, p: Point) -> bool:
        if not super().contains(p):
            return False
        t = float(p)
        return -self.tol <= t <= 1.0 + self.tol

    def sample(self, k: int, rng: np.random.Generator) -> List[Point]:
        inner = [float(v) for v in rng.uniform(0.0, 1.0, size=max(k - 2, 0))]
        return [0.0, 1.0] + inner


class FiniteSpace(Space):
    """A finite topological space given by its closed sets.

    With `closed_sets=None` the space is discrete. Otherwise the family must
    contain the empty set and the whole space and be closed under pairwise
    unions and intersections (which, for a finite family, is all of it).
    """

    def __init__(
        self,
        points: Iterable[Hashable],
        closed_sets: Optional[Iterable[Iterable[Hashable]]] = None,
        name: str = "finite",
    ):
        super().__init__(name)
        self.points: Tuple[Hashable, ...] = tuple(dict.fromkeys(points))
        whole = frozenset(self.points)
        if closed_sets is None:
            self.discrete = True
            self.closed_sets: FrozenSet[FrozenSet[Hashable]] = frozenset()
        else:
            self.discrete = False
            family = {frozenset(c) for c in closed_sets} | {frozenset(), whole}
            for c in family:
                if not c <= whole:
                    raise ValueError(f"closed set {set(c)} is not contained in {self.name}")
            for a in family:
                for b in family:
                    if a | b not in family or a & b not in family:
                        raise ValueError(f"closed sets of {self.name} are not closed under finite unions/intersections")
            self.closed_sets = frozenset(family)

    def contains(self, p: Point) -> bool:
        try:
            return p in self.points
        except (TypeError, ValueError):
            return False

    def is_closed(self, subset: Any) -> bool:
        """Decide closedness exactly from the points the subset contains."""
        if isinstance(subset, ClosedSubset):
            if subset.space is not self:
                return False
            members = frozenset(p for p in self.points if subset.contains(p))
        else:
            members = frozenset(subset)
            if not members <= frozenset(self.points):
                return False
        if self.discrete:
            return True
        return members in self.closed_sets

    def closed_family(self) -> List[FrozenSet[Hashable]]:
        if self.discrete:
            pts = list(self.points)
            return [frozenset(c) for r in range(len(pts) + 1) for c in combinations(pts, r)]
        return sorted(self.closed_sets, key=len)

    def enumerate(self) -> Optional[List[Point]]:
        return list(self.points)

    def sample(self, k: int, rng: np.random.Generator) -> List[Point]:
        return list(self.points)


def empty_space(name: str = "∅") -> FiniteSpace:
    return FiniteSpace([], name=name)


class ProductSpace(Space):
    """left x right, with points `(a, b)`."""

    def __init__(self, left: Space, right: Space, name: Optional[str] = None):
        super().__init__(name or f"{left.name}×{right.name}", tol=max(left.tol, right.tol))
        self.left = left
        self.right = right

    def contains(self, p: Point) -> bool:
        try:
            a, b = p
        except (TypeError, ValueError):
            return False
        return self.left.contains(a) and self.right.contains(b)

    def same_point(self, p: Point, q: Point) -> bool:
        return self.left.same_point(p[0], q[0]) and self.right.same_point(p[1], q[1])

    def enumerate(self) -> Optional[List[Point]]:
        ls, rs = self.left.enumerate(), self.right.enumerate()
        if (ls is not None and not ls) or (rs is not None and not rs):
            return []
        if ls is None or rs is None:
            return None
        return list(product(ls, rs))

    def sample(self, k: int, rng: np.random.Generator) -> List[Point]:
        pts = self.enumerate()
        if pts is not None:
            return pts
        ls, rs = self.left.sample(k, rng), self.right.sample(k, rng)
        if not ls or not rs:
            return []
        if len(ls) * len(rs) <= 4 * k:
            return list(product(ls, rs))
        li = rng.integers(0, len(ls), size=k)
        ri = rng.integers(0, len(rs), size=k)
        # keep the explicit corner points (boundary / endpoints) of each factor
        out = [(ls[i], rs[0]) for i in range(min(len(ls), k // 4))]
        out.extend((ls[int(a)], rs[int(b)]) for a, b in zip(li, ri))
        return out

    def embed(self, p: Point) -> NDArray[np.float64]:
        return np.concatenate([self.left.embed(p[0]), self.right.embed(p[1])])


class DisjointUnion(Space):
    """Coproduct of copies of `component` indexed by `indices`, points `(i, p)`.

    `indices` only has to support `in` and iteration, so infinite index sets
    (a huge `range`, a custom container) are allowed.
    """

    def __init__(self, indices: Any, component: Space, name: Optional[str] = None):
        super().__init__(name or f"⊔{component.name}", tol=component.tol)
        self.indices = indices
        self.component = component

    def contains(self, p: Point) -> bool:
        try:
            i, x = p
        except (TypeError, ValueError):
            return False
        try:
            if i not in self.indices:
                return False
        except TypeError:
            return False
        return self.component.contains(x)

    def same_point(self, p: Point, q: Point) -> bool:
        return p[0] == q[0] and self.component.same_point(p[1], q[1])

    def index_sample(self, limit: int) -> List[Any]:
        return list(islice(iter(self.indices), limit))

    def enumerate(self) -> Optional[List[Point]]:
        if not isinstance(self.indices, Collection) or len(self.indices) > 10_000:
            return None
        if len(self.indices) == 0:
            return []
        comp = self.component.enumerate()
        if comp is None:
            return None
        return [(i, x) for i in self.indices for x in comp]

    def sample(self, k: int, rng: np.random.Generator) -> List[Point]:
        pts = self.enumerate()
        if pts is not None:
            return pts
        idx = self.index_sample(k)
        if not idx:
            return []
        per = max(1, k // len(idx))
        return [(i, x) for i in idx for x in self.component.sample(per, rng)]

    def is_empty(self) -> bool:
        return _is_empty_container(self.indices) or self.component.is_empty()


def _is_empty_container(c: Any) -> bool:
    if isinstance(c, Collection):
        return len(c) == 0
    for _ in c:
        return False
    return True


class Subspace(Space):
    """The subspace topology on a closed subset; points are ambient points."""

    def __init__(self, ambient: Space, subset: "ClosedSubset"):
        super().__init__(f"{ambient.name}|{subset.label}", tol=ambient.tol)
        self.ambient = ambient
        self.subset = subset
        self._inclusion = None

    def contains(self, p: Point) -> bool:
        return self.ambient.contains(p) and self.subset.contains(p)

    def same_point(self, p: Point, q: Point) -> bool:
        return self.ambient.same_point(p, q)

    def enumerate(self) -> Optional[List[Point]]:
        pts = self.ambient.enumerate()
        if pts is None:
            return None
        return [p for p in pts if self.subset.contains(p)]

    def sample(self, k: int, rng: np.random.Generator) -> List[Point]:
        return self.subset.sample(k, rng)

    def embed(self, p: Point) -> NDArray[np.float64]:
        return self.ambient.embed(p)


# =============================================================================
# Closed subsets (closedness witnesses)
# =============================================================================

class ClosedSubset:
    """A subset of `space` together with the reason it is closed."""

    reason = "closed"

    def __init__(self, space: Space, label: str, sampler: Optional[Sampler] = None):
        self.space = space
        self.label = label
        self._sampler = sampler

    def contains(self, p: Point) -> bool:
        raise NotImplementedError

    def sample(self, k: int, rng: np.random.Generator) -> List[Point]:
        pts = self.space.enumerate()
        if pts is not None:
            return [p for p in pts if self.contains(p)]
        if self._sampler is not None:
            return self._sampler(k, rng)
        return [p for p in self.space.sample(4 * k, rng) if self.contains(p)][:k]

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.label} ⊆ {self.space.name}>"


class WholeSpace(ClosedSubset):
    reason = "the whole space is closed"

    def __init__(self, space: Space):
        super().__init__(space, "all")

    def contains(self, p: Point) -> bool:
        return self.space.contains(p)


class EmptySubset(ClosedSubset):
    reason = "the empty set is closed"

    def __init__(self, space: Space):
        super().__init__(space, "∅")

    def contains(self, p: Point) -> bool:
        return False

    def sample(self, k: int, rng: np.random.Generator) -> List[Point]:
        return []


def _check_real_valued(space: Space, g: Any) -> None:
    if getattr(g, "domain", None) is not space or not isinstance(getattr(g, "codomain", None), RealLine):
        raise ValueError(f"{g!r} is not a continuous real-valued map on {space.name}")


class SublevelSet(ClosedSubset):
    """{p : g(p) <= level}, the preimage of (-inf, level] under a continuous g."""

    reason = "preimage of a closed ray under a continuous function"

    def __init__(
        self,
        space: Space,
        g: Any,
        level: float = 0.0,
        *,
        label: Optional[str] = None,
        sampler: Optional[Sampler] = None,
        level_sampler: Optional[Sampler] = None,
    ):
        _check_real_valued(space, g)
        super().__init__(space, label or f"{getattr(g, 'name', 'g')}≤{level:g}", sampler)
        self.g = g
        self.level = float(level)
        # samples of {g = level}, shared with the complementary superlevel set
        self.level_sampler = level_sampler

    def contains(self, p: Point) -> bool:
        return self.space.contains(p) and float(self.g(p)) <= self.level + self.space.tol


class SuperlevelSet(SublevelSet):
    """{p : g(p) >= level}, the preimage of [level, inf) under a continuous g."""

    def contains(self, p: Point) -> bool:
        return self.space.contains(p) and float(self.g(p)) >= self.level - self.space.tol


def complementary(a: ClosedSubset, b: ClosedSubset) -> bool:
    """True when {a, b} is {g <= c, g >= c} for one g, so a ∪ b is everything."""
    pair = {type(a), type(b)}
    if pair != {SublevelSet, SuperlevelSet}:
        return False
    return a.space is b.space and a.g is b.g and a.level == b.level


class PointSet(ClosedSubset):
    """A finite set of points of a finite space; closed iff the space says so."""

    reason = "member of the closed-set family"

    def __init__(self, space: FiniteSpace, points: Iterable[Hashable], label: Optional[str] = None):
        pts = frozenset(points)
        super().__init__(space, label or "{" + ", ".join(sorted(map(str, pts))) + "}")
        self.points = pts

    def contains(self, p: Point) -> bool:
        try:
            return p in self.points
        except (TypeError, ValueError):
            return False


class Preimage(ClosedSubset):
    """f^-1(C) for a continuous f and a closed C of its codomain."""

    reason = "preimage of a closed set under a continuous map"

    def __init__(self, f: Any, closed: ClosedSubset):
        if closed.space is not f.codomain:
            raise ValueError(f"{closed!r} is not a subset of the codomain of {f!r}")
        super().__init__(f.domain, f"{f.name}⁻¹({closed.label})")
        self.f = f
        self.closed = closed

    def contains(self, p: Point) -> bool:
        return self.space.contains(p) and self.closed.contains(self.f(p))


class ImageInAmbient(ClosedSubset):
    """A closed set of a closed subspace, seen in the ambient space.

    Closed because the inclusion of a closed subspace is a closed map.
    """

    reason = "image of a closed set under a closed embedding"

    def __init__(self, subspace: Subspace, closed: ClosedSubset):
        if closed.space is not subspace:
            raise ValueError(f"{closed!r} is not a subset of {subspace.name}")
        super().__init__(subspace.ambient, closed.label)
        self.subspace = subspace
        self.closed = closed

    def contains(self, p: Point) -> bool:
        return self.subspace.contains(p) and self.closed.contains(p)


def _finite_parts(parts: Any) -> Tuple[ClosedSubset, ...]:
    # generators and other one-shot iterables cannot be known to be finite
    if not isinstance(parts, Collection) or isinstance(parts, (str, bytes)):
        raise InfiniteCoverError(
            "only finite families of closed sets may be combined; "
            f"got {type(parts).__name__}"
        )
    return tuple(parts)


class FiniteUnion(ClosedSubset):
    """A finite union of closed sets.

    Finiteness is load-bearing: an arbitrary union of closed sets need not be
    closed, so only sized collections are accepted.
    """

    reason = "finite union of closed sets"

    def __init__(self, space: Space, parts: Collection):
        members = _finite_parts(parts)
        for c in members:
            if c.space is not space:
                raise ValueError(f"{c!r} is not a subset of {space.name}")
        super().__init__(space, " ∪ ".join(c.label for c in members) or "∅")
        self.parts = members

    def contains(self, p: Point) -> bool:
        return any(c.contains(p) for c in self.parts)


class Intersection(ClosedSubset):
    reason = "intersection of closed sets"

    def __init__(self, space: Space, parts: Collection, sampler: Optional[Sampler] = None):
        members = _finite_parts(parts)
        for c in members:
            if c.space is not space:
                raise ValueError(f"{c!r} is not a subset of {space.name}")
        super().__init__(space, " ∩ ".join(c.label for c in members) or "all", sampler)
        self.parts = members

    def contains(self, p: Point) -> bool:
        return self.space.contains(p) and all(c.contains(p) for c in self.parts)

    def _level_sampler(self) -> Optional[Sampler]:
        if len(self.parts) == 2 and complementary(*self.parts):
            return self.parts[0].level_sampler or self.parts[1].level_sampler
        return None

    def samples_exactly(self) -> bool:
        """True when `sample` does not rely on rejection from the ambient space.

        A rejection sample of a thin set (a seam) is almost surely empty, so an
        empty result only means "no points" when this holds.
        """
        return (
            self.space.enumerate() is not None
            or self._sampler is not None
            or self._level_sampler() is not None
        )

    def sample(self, k: int, rng: np.random.Generator) -> List[Point]:
        level_sampler = self._level_sampler()
        if level_sampler is not None:
            return level_sampler(k, rng)
        return super().sample(k, rng)
