"""relative_cw.checks

Checking maps against the laws they are supposed to satisfy.

Two regimes:

- exact: finite spaces carry their whole topology, so continuity and
  agreement are decided by enumeration
- sampled: on Euclidean-like spaces we evaluate on a seeded sample and look
  for pairs of nearby points whose images are far apart (a discrete modulus
  of continuity), using pairwise distance matrices
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray
from scipy.spatial.distance import pdist, squareform

from .config import make_rng, resolve_config
from .maps import ContinuousMap
from .spaces import FiniteSpace, Point, Space


def sample_points(space: Space, config: Optional[Dict[str, Any]] = None) -> Tuple[List[Point], bool]:
    """(points, exact): every point of a listable space, else a seeded sample."""
    pts = space.enumerate()
    if pts is not None:
        return pts, True
    cfg = resolve_config(config)
    return space.sample(int(cfg["num_samples"]), make_rng(int(cfg["random_seed"]))), False


def agreement_violations(
    f: ContinuousMap,
    g: ContinuousMap,
    points: Optional[Sequence[Point]] = None,
    *,
    config: Optional[Dict[str, Any]] = None,
) -> List[str]:
    """Points where two parallel maps differ."""
    if f.domain is not g.domain or f.codomain is not g.codomain:
        return [f"{f.name} and {g.name} are not parallel maps"]
    if points is None:
        points, _ = sample_points(f.domain, config)
    Y = f.codomain
    return [f"{p!r}: {f(p)!r} != {g(p)!r}" for p in points if not Y.same_point(f(p), g(p))]


def maps_agree(f: ContinuousMap, g: ContinuousMap, points: Optional[Sequence[Point]] = None,
               *, config: Optional[Dict[str, Any]] = None) -> bool:
    return not agreement_violations(f, g, points, config=config)


def finite_continuity_violations(f: ContinuousMap) -> List[str]:
    """Closed sets of the codomain whose preimage is not closed (finite spaces only)."""
    if not isinstance(f.domain, FiniteSpace) or not isinstance(f.codomain, FiniteSpace):
        raise ValueError("exact continuity checks need finite domain and codomain")
    problems = []
    for closed in f.codomain.closed_family():
        pre = frozenset(p for p in f.domain.points if f(p) in closed)
        if not f.domain.is_closed(pre):
            problems.append(
                f"preimage of {sorted(map(str, closed))} is {sorted(map(str, pre))}, not closed"
            )
    return problems


def _embedded(space: Space, pts: Sequence[Point]) -> NDArray[np.float64]:
    return np.stack([space.embed(p) for p in pts]).astype(np.float64)


def sampled_continuity_violations(
    f: ContinuousMap,
    points: Optional[Sequence[Point]] = None,
    *,
    config: Optional[Dict[str, Any]] = None,
) -> List[Tuple[int, int, float, float]]:
    """Pairs (i, j, |p_i - p_j|, |f(p_i) - f(p_j)|) breaking the sampled modulus.

    A pair breaks it when the points are within `continuity_delta` of each
    other but their images are more than `continuity_eps` apart.
    """
    cfg = resolve_config(config)
    if points is None:
        points, _ = sample_points(f.domain, cfg)
    points = list(points)
    if len(points) < 2:
        return []
    X = _embedded(f.domain, points)
    Y = _embedded(f.codomain, [f(p) for p in points])
    dx = squareform(pdist(X, metric="euclidean"))
    dy = squareform(pdist(Y, metric="euclidean"))
    near = dx <= float(cfg["continuity_delta"])
    far = dy > float(cfg["continuity_eps"])
    bad = np.argwhere(np.triu(near & far, k=1))
    return [(int(i), int(j), float(dx[i, j]), float(dy[i, j])) for i, j in bad]


def seam_gap(
    f: ContinuousMap,
    left: Callable[[float], Point],
    right: Callable[[float], Point],
    hs: Sequence[float],
) -> NDArray[np.float64]:
    """|f(left(h)) - f(right(h))| for each h.

    `left` and `right` are paths approaching the same seam point from the two
    sides as h -> 0; for a continuous f the gaps go to zero with h.
    """
    Y = f.codomain
    return np.array([
        float(np.linalg.norm(Y.embed(f(left(h))) - Y.embed(f(right(h))))) for h in hs
    ])
