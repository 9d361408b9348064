"""relative_cw.jar

Homotopy extension for the boundary inclusion S^n -> D^(n+1).

Given f : D^(n+1) -> Y and a homotopy H : S^n × I -> Y that starts at f on
the boundary (f(x) = H(x, 0) for |x| = 1), build one map on the jar
J(n) = D^(n+1) × I restricting to f on the bottom and to H on the wall.

The jar is split along the cone |x| = 1 - y/2 into

    mid = {(x, y) : |x| <= 1 - y/2}    (contains the bottom y = 0)
    rim = {(x, y) : |x| >= 1 - y/2}    (contains the wall |x| = 1)

and each region is projected back onto a space where a map is already known:

    mid -> D^(n+1),   (x, y) ↦ 2x / (2 - y)
    rim -> S^n × I,   (x, y) ↦ (x / |x|, (y - 2) / |x| + 2)

On the seam |x| = 1 - y/2 both projections land on the same boundary point
q = x / |x|, at time 0 on the rim side, so f∘mid and H∘rim agree there and
the gluing engine assembles the extension.

For n = -1 the sphere is empty, the rim is empty (|x| = 0 < 1 - y/2) and the
extension is f∘mid alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, List, Optional

import numpy as np

from .config import make_rng, resolve_config
from .errors import CompatibilityError
from .gluing import ClosedCover, GluedMap, glue
from .maps import ContinuousMap, identity, product_map
from .primitives import disk, real_line, sphere, sphere_cylinder, sphere_inclusion, unit_interval
from .spaces import Point, ProductSpace, SublevelSet, SuperlevelSet, Subspace
from .utils import as_point, norm

MID = "mid"
RIM = "rim"


def _check_dim(n: int) -> None:
    if n < -1:
        raise ValueError(f"the jar is defined for n >= -1, got {n}")


@lru_cache(maxsize=None)
def jar(n: int) -> ProductSpace:
    """J(n) = D^(n+1) × I."""
    _check_dim(n)
    return ProductSpace(disk(n + 1), unit_interval(), name=f"J^{n + 1}")


@lru_cache(maxsize=None)
def seam_function(n: int) -> ContinuousMap:
    """(x, y) ↦ |x| - (1 - y/2); mid is where it is <= 0, rim where it is >= 0."""
    return ContinuousMap(
        jar(n),
        real_line(),
        lambda p: norm(as_point(p[0])) - (1.0 - float(p[1]) / 2.0),
        name="seam",
        reason="norm and affine functions are continuous",
    )


def _seam_sampler(n: int):
    def _sample(k: int, rng: np.random.Generator) -> List[Point]:
        if n < 0:
            return []
        dirs = sphere(n).sample(k, rng)
        ys = [0.0, 1.0] + [float(v) for v in rng.uniform(0.0, 1.0, size=max(k - 2, 0))]
        return [((1.0 - y / 2.0) * as_point(dirs[i % len(dirs)]), y) for i, y in enumerate(ys)]
    return _sample


@lru_cache(maxsize=None)
def mid_region(n: int) -> SublevelSet:
    return SublevelSet(jar(n), seam_function(n), 0.0, label=MID, level_sampler=_seam_sampler(n))


@lru_cache(maxsize=None)
def rim_region(n: int) -> SuperlevelSet:
    return SuperlevelSet(jar(n), seam_function(n), 0.0, label=RIM, level_sampler=_seam_sampler(n))


def mid_space(n: int) -> Subspace:
    return jar(n).subspace(mid_region(n))


def rim_space(n: int) -> Subspace:
    return jar(n).subspace(rim_region(n))


def _mid(p: Point) -> np.ndarray:
    x, y = as_point(p[0]), float(p[1])
    if not 2.0 - y > 0.0:
        raise ValueError(f"mid projection needs 2 - y > 0, got y={y}")
    v = (2.0 / (2.0 - y)) * x
    r = norm(v)
    # |x| <= 1 - y/2 up to tolerance; pull rounding overshoot back onto the sphere
    if r > 1.0:
        v = v / r
    return v


def _rim(p: Point) -> tuple:
    x, y = as_point(p[0]), float(p[1])
    r = norm(x)
    if not r > 0.0:
        raise ValueError(f"rim projection needs |x| > 0, got x={x!r}")
    t = (y - 2.0) / r + 2.0
    return (x / r, min(1.0, max(0.0, t)))


@lru_cache(maxsize=None)
def mid_projection(n: int) -> ContinuousMap:
    """mid -> D^(n+1), (x, y) ↦ 2x / (2 - y)."""
    return ContinuousMap(mid_space(n), disk(n + 1), _mid, name="π_mid",
                         reason="rational in (x, y) with non-vanishing denominator 2 - y")


@lru_cache(maxsize=None)
def rim_projection(n: int) -> ContinuousMap:
    """rim -> S^n × I, (x, y) ↦ (x / |x|, (y - 2)/|x| + 2)."""
    return ContinuousMap(rim_space(n), sphere_cylinder(n), _rim, name="π_rim",
                         reason="rational in (x, y, |x|) with |x| >= 1/2 on the rim")


@lru_cache(maxsize=None)
def bottom_inclusion(n: int) -> ContinuousMap:
    """D^(n+1) -> J(n), x ↦ (x, 0)."""
    return ContinuousMap(disk(n + 1), jar(n), lambda x: (x, 0.0), name="bottom",
                         reason="product of the identity and a constant")


@lru_cache(maxsize=None)
def wall_inclusion(n: int) -> ContinuousMap:
    """S^n × I -> J(n), the boundary inclusion crossed with the identity of I."""
    return product_map(sphere_inclusion(n), identity(unit_interval()),
                       codomain=jar(n), domain=sphere_cylinder(n))


@dataclass(frozen=True)
class BoundaryCompatibility:
    """Witness that f∘∂ = H(-, 0) on S^n; issued by `check_boundary_compatibility`."""
    n: int
    f: ContinuousMap
    H: ContinuousMap
    exact: bool             # every point of S^n was checked (S^-1, S^0)
    points_checked: int


def _check_maps(n: int, f: ContinuousMap, H: ContinuousMap) -> None:
    if f.domain is not disk(n + 1):
        raise ValueError(f"f must be defined on D^{n + 1}, got {f.domain.name}")
    if H.domain is not sphere_cylinder(n):
        raise ValueError(f"H must be defined on S^{n}×I, got {H.domain.name}")
    if f.codomain is not H.codomain:
        raise ValueError("f and H must have the same codomain")


def check_boundary_compatibility(
    n: int,
    f: ContinuousMap,
    H: ContinuousMap,
    *,
    config: Optional[Dict[str, Any]] = None,
) -> BoundaryCompatibility:
    """Check f(∂s) == H(s, 0) on S^n and return the witness.

    Exhaustive for n <= 0, sampled otherwise. Raises `CompatibilityError` on
    the first disagreement.
    """
    _check_dim(n)
    _check_maps(n, f, H)
    cfg = resolve_config(config)
    pts = sphere(n).enumerate()
    exact = pts is not None
    if pts is None:
        pts = sphere(n).sample(int(cfg["num_samples"]), make_rng(int(cfg["random_seed"])))
    Y = f.codomain
    incl = sphere_inclusion(n)
    for s in pts:
        a, b = f(incl(s)), H((s, 0.0))
        if not Y.same_point(a, b):
            raise CompatibilityError(f"f(∂s) != H(s, 0) at s={s!r}: {a!r} != {b!r}")
    return BoundaryCompatibility(n=n, f=f, H=H, exact=exact, points_checked=len(pts))


class JarExtension:
    """The glued map J(n) -> Y together with checks of its two laws."""

    def __init__(self, n: int, f: ContinuousMap, H: ContinuousMap,
                 compat: BoundaryCompatibility, glued: GluedMap, config: Dict[str, Any]):
        self.n = n
        self.f = f
        self.H = H
        self.compat = compat
        self.map = glued
        self.config = config

    def __call__(self, p: Point) -> Point:
        return self.map(p)

    def mid_value(self, p: Point) -> Point:
        return self.map.eval_at(p, MID)

    def rim_value(self, p: Point) -> Point:
        return self.map.eval_at(p, RIM)

    def bottom_violations(self) -> List[str]:
        """Points x of D^(n+1) where the extension at (x, 0) differs from f(x)."""
        rng = make_rng(int(self.config["random_seed"]))
        Y = self.f.codomain
        through = bottom_inclusion(self.n).then(self.map)
        return [
            f"bottom: {x!r}"
            for x in disk(self.n + 1).sample(int(self.config["num_samples"]), rng)
            if not Y.same_point(through(x), self.f(x))
        ]

    def wall_violations(self) -> List[str]:
        """Points (s, t) of S^n × I where the extension on the wall differs from H."""
        rng = make_rng(int(self.config["random_seed"]))
        Y = self.f.codomain
        through = wall_inclusion(self.n).then(self.map)
        return [
            f"wall: {p!r}"
            for p in sphere_cylinder(self.n).sample(int(self.config["num_samples"]), rng)
            if not Y.same_point(through(p), self.H(p))
        ]

    def bottom_law(self) -> bool:
        return not self.bottom_violations()

    def wall_law(self) -> bool:
        return not self.wall_violations()

    def __repr__(self) -> str:
        return f"<JarExtension n={self.n} into {self.f.codomain.name}>"


def extend(
    n: int,
    f: ContinuousMap,
    H: ContinuousMap,
    compat: BoundaryCompatibility,
    *,
    config: Optional[Dict[str, Any]] = None,
) -> JarExtension:
    """Extend (f, H) over the jar J(n) by gluing f∘π_mid and H∘π_rim."""
    _check_dim(n)
    if not isinstance(compat, BoundaryCompatibility) or compat.n != n or compat.f is not f or compat.H is not H:
        raise CompatibilityError("compatibility witness was not issued for these maps")
    cfg = resolve_config(config)
    cover = ClosedCover(jar(n), {MID: mid_region(n), RIM: rim_region(n)})
    pieces = {
        MID: mid_projection(n).then(f),
        RIM: rim_projection(n).then(H),
    }
    glued = glue(cover, pieces, f.codomain, config=cfg, name=f"ext[{f.name},{H.name}]")
    return JarExtension(n, f, H, compat, glued, cfg)


@dataclass(frozen=True)
class HomotopyExtensionProperty:
    """The homotopy extension property of S^n -> D^(n+1), one object per n.

    `extend` produces the extension; `holds_for` checks the bottom and wall
    laws of a produced extension.
    """
    n: int

    def extend(self, f: ContinuousMap, H: ContinuousMap,
               compat: Optional[BoundaryCompatibility] = None,
               *, config: Optional[Dict[str, Any]] = None) -> JarExtension:
        if compat is None:
            compat = check_boundary_compatibility(self.n, f, H, config=config)
        return extend(self.n, f, H, compat, config=config)

    def holds_for(self, ext: JarExtension) -> bool:
        return ext.n == self.n and ext.bottom_law() and ext.wall_law()


@lru_cache(maxsize=None)
def homotopy_extension_property(n: int) -> HomotopyExtensionProperty:
    _check_dim(n)
    return HomotopyExtensionProperty(n)
