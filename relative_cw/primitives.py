"""relative_cw.primitives

Disks, spheres and the unit interval as subsets of coordinate space.

    disk(n)   = {x in R^n     : |x| <= 1}      (disk(0) is a point)
    sphere(n) = {x in R^(n+1) : |x|  = 1}      (sphere(-1) is empty, sphere(0) = {-1, +1})

Every constructor is memoised per dimension: maps compare their domains by
identity, so `disk(2)` must be the same object every time it is asked for.
"""

from __future__ import annotations

from functools import lru_cache
from typing import List

import numpy as np
from numpy.typing import NDArray

from .maps import ContinuousMap
from .spaces import EuclideanSubspace, ProductSpace, RealLine, UnitInterval
from .utils import norm


def _unit_directions(k: int, dim: int, rng: np.random.Generator) -> NDArray[np.float64]:
    v = rng.normal(size=(k, dim))
    lengths = np.linalg.norm(v, axis=1, keepdims=True)
    lengths[lengths == 0] = 1.0
    return v / lengths


@lru_cache(maxsize=None)
def disk(n: int) -> EuclideanSubspace:
    """The closed unit n-disk D^n."""
    if n < 0:
        raise ValueError(f"disk dimension must be >= 0, got {n}")
    if n == 0:
        return EuclideanSubspace(0, "D^0", points=[np.zeros(0)])

    def _sample(k: int, rng: np.random.Generator) -> List[NDArray[np.float64]]:
        # uniform in the ball, plus the centre and a few boundary points
        n_boundary = max(1, k // 8)
        dirs = _unit_directions(k, n, rng)
        radii = rng.uniform(0.0, 1.0, size=(k, 1)) ** (1.0 / n)
        inner = dirs * radii
        pts = [np.zeros(n)] + [x for x in dirs[:n_boundary]] + [x for x in inner[: max(k - n_boundary - 1, 0)]]
        return pts

    return EuclideanSubspace(n, f"D^{n}", [lambda x: norm(x) - 1.0], sampler=_sample)


@lru_cache(maxsize=None)
def sphere(n: int) -> EuclideanSubspace:
    """The unit n-sphere S^n, the boundary of D^(n+1)."""
    if n < -1:
        raise ValueError(f"sphere dimension must be >= -1, got {n}")
    name = f"S^{n}"
    if n == -1:
        # R^0 has one point; the constraint 1 <= 0 fails there, leaving S^-1 empty
        return EuclideanSubspace(0, name, [lambda x: 1.0], points=[])
    if n == 0:
        return EuclideanSubspace(1, name, [lambda x: abs(norm(x) - 1.0)], points=[[-1.0], [1.0]])

    def _sample(k: int, rng: np.random.Generator) -> List[NDArray[np.float64]]:
        return [x for x in _unit_directions(k, n + 1, rng)]

    return EuclideanSubspace(n + 1, name, [lambda x: abs(norm(x) - 1.0)], sampler=_sample)


@lru_cache(maxsize=None)
def unit_interval() -> UnitInterval:
    return UnitInterval()


@lru_cache(maxsize=None)
def real_line() -> RealLine:
    return RealLine()


@lru_cache(maxsize=None)
def sphere_cylinder(n: int) -> ProductSpace:
    """S^n × I, the domain of a homotopy of maps out of S^n."""
    return ProductSpace(sphere(n), unit_interval())


@lru_cache(maxsize=None)
def sphere_inclusion(n: int) -> ContinuousMap:
    """The boundary inclusion S^n -> D^(n+1) (identity on coordinates)."""
    return ContinuousMap(
        sphere(n),
        disk(n + 1),
        lambda x: np.asarray(x, dtype=np.float64),
        name=f"∂[{n}]",
        reason="restriction of the identity of R^(n+1)",
    )
