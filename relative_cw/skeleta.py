"""relative_cw.skeleta

The skeletal sequence of a relative CW complex and its colimit.

A relative CW complex on a base space A is a family of skeleta

    A ≅ sk(-1) ⊆ sk(0) ⊆ sk(1) ⊆ ...

where sk(n+1) is sk(n) with (n+1)-cells attached along S^n. The family is
unbounded in principle, so it is kept as a memo table keyed by index and
filled in increasing order on demand: sk(n+1) cannot exist before the cells
attached to sk(n) are known.

Inclusions between arbitrary levels are composites of the consecutive `inr`
legs. They are cached by `(n, m)` and satisfy the functor laws exactly:

    inclusion(n, n) == identity(sk(n))
    inclusion(n, l) == inclusion(n, m).then(inclusion(m, l))     for n <= m <= l
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from .attachment import SKELETON, CellAttachment, CellData, attach_cells, count_cells, no_cells
from .config import make_rng, resolve_config
from .errors import CompatibilityError
from .maps import ContinuousMap, Homeomorphism, identity, identity_iso
from .spaces import ClosedSubset, Point, Space, empty_space

logger = logging.getLogger(__name__)

AttachmentsAt = Union[
    Callable[[int, Space], Optional[CellData]],
    Mapping,
]


def _attachment_source(attachments_at: AttachmentsAt) -> Callable[[int, Space], CellData]:
    if isinstance(attachments_at, Mapping):
        table = attachments_at

        def _from_table(n: int, skeleton: Space) -> CellData:
            make = table.get(n)
            return no_cells() if make is None else (make(skeleton) or no_cells())

        return _from_table

    def _from_callable(n: int, skeleton: Space) -> CellData:
        return attachments_at(n, skeleton) or no_cells()

    return _from_callable


class RelativeCWComplex:
    """Skeleta, attachments and inclusions of a relative CW complex on `base`."""

    def __init__(self, base: Space, attachments_at: AttachmentsAt,
                 *, config: Optional[Dict[str, Any]] = None, verbose: bool = False):
        self.config = resolve_config(config)
        self.base = base
        self.base_iso: Homeomorphism = identity_iso(base)
        self.verbose = verbose
        self._source = _attachment_source(attachments_at)
        self._skeleta: Dict[int, Space] = {-1: self.base_iso.codomain}
        self._attachments: Dict[int, CellAttachment] = {}
        self._level_isos: Dict[int, Homeomorphism] = {}
        self._inclusions: Dict[Tuple[int, int], ContinuousMap] = {}
        self._colimit: Optional["ColimitSpace"] = None

    @property
    def top(self) -> int:
        """Highest skeleton built so far."""
        return max(self._skeleta)

    @staticmethod
    def _check_index(n: int) -> None:
        if n < -1:
            raise ValueError(f"skeleta are indexed from -1, got {n}")

    def _attach_next(self) -> None:
        n = self.top
        skeleton = self._skeleta[n]
        data = self._source(n, skeleton)
        att = attach_cells(skeleton, n, data.cells, data.attaching_maps,
                           config=self.config, name=f"sk{n + 1}")
        self._attachments[n] = att
        self._level_isos[n] = identity_iso(att.space)
        self._skeleta[n + 1] = self._level_isos[n].codomain
        count = count_cells(data.cells)
        logger.debug("sk(%d) built from sk(%d) with %s cells", n + 1, n, "∞" if count is None else count)
        if self.verbose:
            print(f"[relative_cw] sk({n + 1}): {'∞' if count is None else count} cells of dimension {n + 1}")

    def sk(self, n: int) -> Space:
        self._check_index(n)
        while self.top < n:
            self._attach_next()
        return self._skeleta[n]

    def attachment(self, n: int) -> CellAttachment:
        """The attachment of (n+1)-cells to sk(n)."""
        self.sk(n + 1)
        return self._attachments[n]

    def level_iso(self, n: int) -> Homeomorphism:
        """The isomorphism between the pushout at level n and sk(n+1)."""
        self.sk(n + 1)
        return self._level_isos[n]

    def cells(self, n: int) -> Any:
        """Index set of the n-cells (attached to sk(n-1))."""
        return self.attachment(n - 1).cells

    def step(self, n: int) -> ContinuousMap:
        """sk(n) -> sk(n+1): the `inr` leg followed by the level isomorphism."""
        return self.attachment(n).inr.then(self.level_iso(n).forward)

    def inclusion(self, n: int, m: int) -> ContinuousMap:
        """The canonical map sk(n) -> sk(m) for n <= m.

        inclusion(j, m) = step(j).then(inclusion(j + 1, m)), computed for
        j = m, m-1, ..., n. The distance m - j runs from 0 up to m - n, so
        the loop terminates for any pair of levels.
        """
        self._check_index(n)
        if n > m:
            raise ValueError(f"no inclusion sk({n}) -> sk({m}) for n > m")
        cached = self._inclusions.get((n, m))
        if cached is not None:
            return cached
        self.sk(m)
        j = m
        current = self._inclusions.get((m, m))
        if current is None:
            current = identity(self._skeleta[m])
            self._inclusions[(m, m)] = current
        while j > n:
            j -= 1
            nxt = self._inclusions.get((j, m))
            if nxt is None:
                nxt = self.step(j).then(current)
                self._inclusions[(j, m)] = nxt
            current = nxt
        logger.debug("inclusion sk(%d) -> sk(%d) has %d steps", n, m, len(current.chain))
        return current

    def colimit(self) -> "ColimitSpace":
        if self._colimit is None:
            self._colimit = ColimitSpace(self)
        return self._colimit

    def __repr__(self) -> str:
        return f"<RelativeCWComplex on {self.base.name}, built to sk({self.top})>"


def build_complex(base: Space, attachments_at: AttachmentsAt, *,
                  config: Optional[Dict[str, Any]] = None, verbose: bool = False,
                  upto: Optional[int] = None) -> RelativeCWComplex:
    """Build a relative CW complex on `base`.

    Parameters
    ----------
    base:
        The space A; sk(-1) is A, tracked by the identity isomorphism `base_iso`.
    attachments_at:
        Either a callable `(n, sk(n)) -> CellData | None`, or a mapping
        `n -> (sk(n) -> CellData)`. Levels without data attach no cells.
    config:
        Overrides for `default_config()`.
    verbose:
        Print one line per skeleton as it is built.
    upto:
        Build skeleta eagerly up to this index; otherwise they are built on
        first use.
    """
    cx = RelativeCWComplex(base, attachments_at, config=config, verbose=verbose)
    if upto is not None:
        cx.sk(upto)
    return cx


def build_cw_complex(attachments_at: AttachmentsAt, **kwargs: Any) -> RelativeCWComplex:
    """A plain CW complex: the relative case over the empty space."""
    return build_complex(empty_space(), attachments_at, **kwargs)


# =============================================================================
# Colimit
# =============================================================================

class ColimitSpace(Space):
    """The union of all skeleta with the final topology.

    Points are `(level, point)` pairs; `(n, x)` and `(m, inclusion(n, m)(x))`
    are the same point. A subset is closed iff its trace on every skeleton is
    closed, so closed subsets are given levelwise (`LevelwiseSubset`).
    """

    def __init__(self, cx: RelativeCWComplex):
        super().__init__(f"colim[{cx.base.name}]", tol=cx.base.tol)
        self.complex = cx
        self._legs: Dict[int, ContinuousMap] = {}

    def canonical(self, p: Point) -> Point:
        """Lower a point to the least level at which it exists."""
        level, x = p
        while level > -1:
            att = self.complex.attachment(level - 1)
            x = att.space.canonical(self.complex.level_iso(level - 1).backward(x))
            if x[0] != SKELETON:
                x = self.complex.level_iso(level - 1).forward(x)
                break
            level, x = level - 1, x[1]
        return (level, x)

    def contains(self, p: Point) -> bool:
        try:
            level, x = p
            level = int(level)
        except (TypeError, ValueError):
            return False
        if level < -1:
            return False
        return self.complex.sk(level).contains(x)

    def same_point(self, p: Point, q: Point) -> bool:
        m = max(p[0], q[0])
        xp = self.complex.inclusion(p[0], m)(p[1])
        xq = self.complex.inclusion(q[0], m)(q[1])
        return self.complex.sk(m).same_point(xp, xq)

    def sample(self, k: int, rng: np.random.Generator) -> List[Point]:
        levels = range(-1, self.complex.top + 1)
        per = max(1, k // len(levels))
        out: List[Point] = []
        for n in levels:
            sk = self.complex.sk(n)
            if sk.is_empty():
                continue
            out.extend((n, x) for x in sk.sample(per, rng))
        return out

    def leg(self, n: int) -> ContinuousMap:
        """sk(n) -> colimit."""
        leg = self._legs.get(n)
        if leg is None:
            leg = ContinuousMap(self.complex.sk(n), self, lambda x, n=n: (n, x),
                                name=f"λ[{n}]", reason="colimit leg")
            self._legs[n] = leg
        return leg

    def is_closed(self, subset: Any, upto: Optional[int] = None) -> bool:
        """Closed iff every trace up to `upto` (default: the built top) is closed."""
        if not isinstance(subset, LevelwiseSubset) or subset.space is not self:
            return False
        top = self.complex.top if upto is None else upto
        for n in range(-1, top + 1):
            if not self.complex.sk(n).is_closed(subset.trace(n)):
                return False
        return not subset.trace_violations(top)

    def factor(self, W: Space, legs: Callable[[int], ContinuousMap], upto: Optional[int] = None) -> ContinuousMap:
        """The map out of the colimit induced by a compatible family of maps sk(n) -> W."""
        top = self.complex.top if upto is None else upto
        rng = make_rng(int(self.complex.config["random_seed"]))
        k = int(self.complex.config["num_samples"])
        for n in range(-1, top + 1):
            g_n = legs(n)
            if g_n.domain is not self.complex.sk(n) or g_n.codomain is not W:
                raise ValueError(f"leg {n} is not a map sk({n}) -> {W.name}")
        for n in range(-1, top):
            sk = self.complex.sk(n)
            if sk.is_empty():
                continue
            g_n, through_next = legs(n), self.complex.step(n).then(legs(n + 1))
            for x in sk.sample(k, rng):
                if not W.same_point(through_next(x), g_n(x)):
                    raise CompatibilityError(f"legs {n} and {n + 1} disagree at {x!r}")

        def _induced(p: Point) -> Point:
            level, x = p
            return legs(level)(x)

        return ContinuousMap(self, W, _induced, name="[g_n]", reason="colimit factorization")


class LevelwiseSubset(ClosedSubset):
    """A subset of the colimit given by its trace on each skeleton."""

    reason = "every skeletal trace is closed"

    def __init__(self, colimit: ColimitSpace, trace: Callable[[int], ClosedSubset], label: str = "F"):
        super().__init__(colimit, label)
        self.trace = trace

    def contains(self, p: Point) -> bool:
        level, x = p
        return self.trace(level).contains(x)

    def trace_violations(self, upto: int) -> List[str]:
        """Sampled failures of trace(n) == step(n)^-1(trace(n+1))."""
        cx = self.space.complex
        rng = make_rng(int(cx.config["random_seed"]))
        k = int(cx.config["num_samples"])
        problems = []
        for n in range(-1, upto):
            sk = cx.sk(n)
            if sk.is_empty():
                continue
            step = cx.step(n)
            for x in sk.sample(k, rng):
                if self.trace(n).contains(x) != self.trace(n + 1).contains(step(x)):
                    problems.append(f"trace {n} and trace {n + 1} disagree at {x!r}")
        return problems


def assemble_colimit(cx: RelativeCWComplex) -> ColimitSpace:
    """The colimit of the skeleta along their inclusions (cached on the complex)."""
    return cx.colimit()
