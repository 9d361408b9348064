"""relative_cw.attachment

Attaching n+1 cells to a space, as a pushout.

Given X, a dimension n, an index set of cells and one attaching map
`phi_c : S^n -> X` per cell, the attached space X' is the pushout of

    ⊔_c S^n  --⊔∂-->  ⊔_c D^(n+1)
       |                   |
     [phi_c]              inl
       v                   v
       X  ------inr------> X'

Points of X' are stored in canonical form:

- `("skeleton", x)` for the image of a point x of X
- `("cell", (c, d))` for an interior point d of the disk of cell c

A disk point on the boundary sphere is the same point of X' as the image of
its attaching point, so `canonical` rewrites it to `("skeleton", phi_c(d))`.
Every point of X' is therefore hit by `inl` or by `inr`, which is what makes
the universal factorization unique.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterator, Mapping
from dataclasses import dataclass, field
from itertools import islice
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from .config import make_rng, resolve_config
from .errors import CompatibilityError
from .maps import ContinuousMap, Homeomorphism, coproduct_map, disjoint_sum, empty_map, identity
from .primitives import disk, sphere, sphere_inclusion
from .spaces import DisjointUnion, Point, Space
from .utils import as_point, norm, normalize_to_unit_sphere, points_close

logger = logging.getLogger(__name__)

SKELETON = "skeleton"
CELL = "cell"

AttachingMaps = Union[Mapping, Callable[[Any], ContinuousMap]]


@dataclass
class CellData:
    """What to attach at one level: cells and their attaching maps."""
    cells: Any = ()
    attaching_maps: AttachingMaps = field(default_factory=dict)


def no_cells() -> CellData:
    return CellData((), {})


def count_cells(cells: Any) -> Optional[int]:
    """Number of cells, or None when the index set has no length."""
    if isinstance(cells, Collection):
        return len(cells)
    return None


def _cell_sample(cells: Any, limit: int) -> List[Any]:
    return list(islice(iter(cells), limit))


class AttachedSpace(Space):
    """X with n+1 cells attached; see the module docstring for its points."""

    def __init__(self, base: Space, n: int, cells: Any, attaching_map: Callable[[Any], ContinuousMap],
                 boundary_tol: float, point_tol: float, name: Optional[str] = None):
        super().__init__(name or f"{base.name}∪e^{n + 1}", tol=point_tol)
        self.base = base
        self.n = n
        self.cells = cells
        self.cell_disk = disk(n + 1)
        self._attaching_map = attaching_map
        self.boundary_tol = float(boundary_tol)

    def canonical(self, p: Point) -> Point:
        tag, payload = p
        if tag == CELL:
            c, d = payload
            d = as_point(d)
            # D^0 has no boundary; its single point is always interior
            if d.size and norm(d) >= 1.0 - self.boundary_tol:
                s = normalize_to_unit_sphere(d)
                return (SKELETON, self._attaching_map(c)(s))
            return (CELL, (c, d))
        return p

    def contains(self, p: Point) -> bool:
        try:
            tag, payload = p
        except (TypeError, ValueError):
            return False
        if tag == SKELETON:
            return self.base.contains(payload)
        if tag == CELL:
            try:
                c, d = payload
                return c in self.cells and self.cell_disk.contains(d)
            except (TypeError, ValueError):
                return False
        return False

    def same_point(self, p: Point, q: Point) -> bool:
        p, q = self.canonical(p), self.canonical(q)
        if p[0] != q[0]:
            return False
        if p[0] == SKELETON:
            return self.base.same_point(p[1], q[1])
        (c1, d1), (c2, d2) = p[1], q[1]
        return c1 == c2 and points_close(d1, d2, self.tol)

    def enumerate(self) -> Optional[List[Point]]:
        base_pts = self.base.enumerate()
        count = count_cells(self.cells)
        if base_pts is None or count is None:
            return None
        if count and self.n + 1 > 0:
            return None
        # only 0-cells keep the space finite
        return [(SKELETON, x) for x in base_pts] + [(CELL, (c, np.zeros(0))) for c in self.cells]

    def sample(self, k: int, rng: np.random.Generator) -> List[Point]:
        pts = self.enumerate()
        if pts is not None:
            return pts
        out: List[Point] = []
        if not self.base.is_empty():
            out.extend((SKELETON, x) for x in self.base.sample(max(1, k // 2), rng))
        cells = _cell_sample(self.cells, k)
        if cells:
            per = max(1, (k - len(out)) // len(cells))
            for c in cells:
                out.extend(self.canonical((CELL, (c, d))) for d in self.cell_disk.sample(per, rng))
        return out


class CellAttachment:
    """The result of `attach_cells`: the pushout square and its universal property."""

    def __init__(self, base: Space, n: int, cells: Any, attaching_maps: AttachingMaps,
                 config: Optional[Dict[str, Any]] = None, name: Optional[str] = None):
        self.config = resolve_config(config)
        self.base = base
        self.n = int(n)
        self.cells = cells
        if isinstance(attaching_maps, Mapping):
            self._lookup: Callable[[Any], ContinuousMap] = attaching_maps.__getitem__
        else:
            self._lookup = attaching_maps
        self._checked: Dict[Any, ContinuousMap] = {}

        self.spheres = DisjointUnion(cells, sphere(self.n), name=f"⊔S^{self.n}")
        self.disks = DisjointUnion(cells, disk(self.n + 1), name=f"⊔D^{self.n + 1}")
        self.space = AttachedSpace(base, self.n, cells, self.attaching_map_of,
                                   boundary_tol=float(self.config["boundary_tol"]),
                                   point_tol=float(self.config["point_tol"]), name=name)

        # span legs
        self.boundary_inclusion = disjoint_sum(self.spheres, self.disks, sphere_inclusion(self.n))
        self.attaching_map = coproduct_map(self.spheres, base, self.attaching_map_of, name="[φ_c]")

        # pushout legs
        self.inl = ContinuousMap(
            self.disks, self.space,
            lambda p: self.space.canonical((CELL, (p[0], p[1]))),
            name=f"inl[{self.n}]", reason="pushout leg",
        )
        self.inr = ContinuousMap(
            base, self.space,
            lambda x: (SKELETON, x),
            name=f"inr[{self.n}]", reason="pushout leg",
        )

        for c in _cell_sample(cells, int(self.config["num_samples"])):
            self.attaching_map_of(c)
        logger.debug("attached %s %d-cells to %s", _count_label(cells), self.n + 1, base.name)

    def attaching_map_of(self, cell: Any) -> ContinuousMap:
        phi = self._checked.get(cell)
        if phi is None:
            phi = self._lookup(cell)
            if phi.domain is not sphere(self.n) or phi.codomain is not self.base:
                raise ValueError(
                    f"attaching map for cell {cell!r} must be S^{self.n} -> {self.base.name}, "
                    f"got {phi.domain.name} -> {phi.codomain.name}"
                )
            self._checked[cell] = phi
        return phi

    @property
    def num_cells(self) -> Optional[int]:
        return count_cells(self.cells)

    def is_empty(self) -> bool:
        return self.spheres.is_empty() and self.disks.is_empty()

    # ------------------------------------------------------------------
    # Universal property
    # ------------------------------------------------------------------

    def _span_points(self, rng: np.random.Generator) -> Tuple[List[Point], bool]:
        pts = self.spheres.enumerate()
        if pts is not None:
            return pts, True
        return self.spheres.sample(int(self.config["num_samples"]), rng), False

    def span_violations(self, h: ContinuousMap, k: ContinuousMap) -> List[str]:
        """Points of ⊔S^n where `∂;h` and `φ;k` disagree."""
        if h.domain is not self.disks:
            return [f"{h.name} is not defined on {self.disks.name}"]
        if k.domain is not self.base:
            return [f"{k.name} is not defined on {self.base.name}"]
        if h.codomain is not k.codomain:
            return [f"{h.name} and {k.name} have different codomains"]
        W = h.codomain
        pts, _ = self._span_points(make_rng(int(self.config["random_seed"])))
        problems = []
        for p in pts:
            if not W.same_point(h(self.boundary_inclusion(p)), k(self.attaching_map(p))):
                problems.append(f"h and k disagree over cell {p[0]!r} at {p[1]!r}")
        return problems

    def factor(self, W: Space, h: ContinuousMap, k: ContinuousMap) -> ContinuousMap:
        """The unique d : X' -> W with `inl;d == h` and `inr;d == k`."""
        if h.codomain is not W or k.codomain is not W:
            raise ValueError(f"h and k must both land in {W.name}")
        problems = self.span_violations(h, k)
        if problems:
            raise CompatibilityError("maps do not agree on the attaching spheres: " + "; ".join(problems[:5]))

        space = self.space

        def _d(p: Point) -> Point:
            tag, payload = space.canonical(p)
            if tag == SKELETON:
                return k(payload)
            return h(payload)

        return ContinuousMap(space, W, _d, name=f"[{h.name},{k.name}]", reason="pushout factorization")

    def factorization_violations(self, d: ContinuousMap, h: ContinuousMap, k: ContinuousMap,
                                 rng: Optional[np.random.Generator] = None) -> List[str]:
        """Sampled failures of `inl;d == h` and `inr;d == k`."""
        rng = rng or make_rng(int(self.config["random_seed"]))
        W = h.codomain
        m = int(self.config["num_samples"])
        problems: List[str] = []
        if d.domain is not self.space or d.codomain is not W:
            return [f"{d.name} is not a map {self.space.name} -> {W.name}"]
        for p in self.disks.sample(m, rng):
            if not W.same_point(d(self.inl(p)), h(p)):
                problems.append(f"inl;d != h at {p!r}")
        if not self.base.is_empty():
            for x in self.base.sample(m, rng):
                if not W.same_point(d(self.inr(x)), k(x)):
                    problems.append(f"inr;d != k at {x!r}")
        return problems

    def factorizations_agree(self, d1: ContinuousMap, d2: ContinuousMap,
                             h: ContinuousMap, k: ContinuousMap) -> bool:
        """Uniqueness of the factorization, as a check.

        Both candidates must satisfy the two commuting conditions; they then
        have to agree on X', since every point of X' is `inl` or `inr` of
        something.
        """
        rng = make_rng(int(self.config["random_seed"]))
        if self.factorization_violations(d1, h, k, rng) or self.factorization_violations(d2, h, k, rng):
            return False
        W = h.codomain
        return all(W.same_point(d1(p), d2(p)) for p in self.space.sample(int(self.config["num_samples"]), rng))

    def __repr__(self) -> str:
        return f"<CellAttachment {_count_label(self.cells)} {self.n + 1}-cells on {self.base.name}>"


def _count_label(cells: Any) -> str:
    count = count_cells(cells)
    return "∞" if count is None else str(count)


def attach_cells(X: Space, n: int, cells: Any = (), attaching_maps: AttachingMaps = None,
                 *, config: Optional[Dict[str, Any]] = None, name: Optional[str] = None) -> CellAttachment:
    """Attach one (n+1)-cell to X per element of `cells`.

    Total for any index set: empty, finite or infinite (any container that
    supports `in` and iteration).
    """
    if n < -1:
        raise ValueError(f"cells are attached along S^n with n >= -1, got n={n}")
    if isinstance(cells, Iterator):
        # a one-shot iterator would be used up by the first look at its cells
        raise ValueError(
            "cells must be a re-iterable container supporting `in` (a list, range, set, ...), "
            f"not a one-shot {type(cells).__name__}"
        )
    if attaching_maps is None:
        attaching_maps = {}
    return CellAttachment(X, n, cells, attaching_maps, config=config, name=name)


def _same_span(a: CellAttachment, b: CellAttachment) -> bool:
    if a.base is not b.base or a.n != b.n:
        return False
    limit = int(a.config["num_samples"])
    ca, cb = _cell_sample(a.cells, limit), _cell_sample(b.cells, limit)
    if count_cells(a.cells) != count_cells(b.cells) or len(ca) != len(cb):
        return False
    return all(c in b.cells and a.attaching_map_of(c) is b.attaching_map_of(c) for c in ca)


def canonical_isomorphism(a: CellAttachment, b: CellAttachment) -> Homeomorphism:
    """The isomorphism between two pushouts of the same span.

    Both directions are universal factorizations, so the isomorphism commutes
    with both legs.
    """
    if not _same_span(a, b):
        raise ValueError("attachments are not pushouts of the same span")
    # the disjoint disks of a and b are equal by construction; transport each leg
    b_inl = ContinuousMap(a.disks, b.space, b.inl, name=b.inl.name, reason="pushout leg")
    a_inl = ContinuousMap(b.disks, a.space, a.inl, name=a.inl.name, reason="pushout leg")
    forward = a.factor(b.space, b_inl, b.inr)
    backward = b.factor(a.space, a_inl, a.inr)
    return Homeomorphism(forward, backward, name="pushout≅")


def empty_attachment_isomorphism(att: CellAttachment) -> Homeomorphism:
    """X ≅ X' when no cells are attached: `inr` one way, the factorization of
    (∅ -> X, id_X) the other."""
    if not att.is_empty():
        raise ValueError(f"{att!r} attaches cells")
    back = att.factor(att.base, empty_map(att.disks, att.base), identity(att.base))
    return Homeomorphism(att.inr, back, name="no-cells≅")
