"""relative_cw.maps

Continuous maps.

A `ContinuousMap` is a total function between two spaces plus a short
statement of why it is continuous (`reason`). Continuity is established by
construction: identities, inclusions, composites, products, coproducts,
glued maps and pushout/colimit factorizations are continuous for structural
reasons; anything else must be claimed by the caller when building the map.

Composition is stored as a flattened chain of atomic maps, with identities as
the empty chain. Equality of maps (`==`) compares domain, codomain and chain,
so associativity and the unit laws hold on the nose:

    f.then(g).then(h) == f.then(g.then(h))
    identity(A).then(f) == f == f.then(identity(B))
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Optional, Tuple

from .spaces import (
    ClosedSubset,
    DisjointUnion,
    Point,
    Preimage,
    ProductSpace,
    Space,
    Subspace,
)


class ContinuousMap:
    """An atomic continuous map `domain -> codomain`."""

    def __init__(
        self,
        domain: Space,
        codomain: Space,
        fn: Callable[[Point], Point],
        *,
        name: str = "f",
        reason: str = "claimed",
    ):
        self.domain = domain
        self.codomain = codomain
        self._fn = fn
        self.name = name
        self.reason = reason

    @property
    def chain(self) -> Tuple["ContinuousMap", ...]:
        return (self,)

    def __call__(self, p: Point) -> Point:
        return self._fn(p)

    def then(self, other: "ContinuousMap") -> "ContinuousMap":
        """Diagrammatic composite `self ; other` (first self, then other)."""
        if self.codomain is not other.domain:
            raise ValueError(
                f"cannot compose {self.name}: {self.domain.name} -> {self.codomain.name} "
                f"with {other.name}: {other.domain.name} -> {other.codomain.name}"
            )
        return from_chain(self.domain, other.codomain, self.chain + other.chain)

    def compose(self, other: "ContinuousMap") -> "ContinuousMap":
        """Classical composite `self ∘ other` (first other, then self)."""
        return other.then(self)

    def restrict(self, subset: ClosedSubset) -> "ContinuousMap":
        """Restriction to the subspace on a closed subset of the domain."""
        return inclusion(self.domain.subspace(subset)).then(self)

    def preimage(self, closed: ClosedSubset) -> ClosedSubset:
        return Preimage(self, closed)

    def _key(self) -> Tuple[int, int, Tuple[int, ...]]:
        return (id(self.domain), id(self.codomain), tuple(id(m) for m in self.chain))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ContinuousMap):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}: {self.domain.name} -> {self.codomain.name}>"


class ComposedMap(ContinuousMap):
    """A composite of at least two atomic maps."""

    def __init__(self, domain: Space, codomain: Space, chain: Tuple[ContinuousMap, ...]):
        name = ";".join(m.name for m in chain)
        super().__init__(domain, codomain, self._apply, name=name, reason="composite of continuous maps")
        self._chain = chain

    @property
    def chain(self) -> Tuple[ContinuousMap, ...]:
        return self._chain

    def _apply(self, p: Point) -> Point:
        for m in self._chain:
            p = m(p)
        return p


class IdentityMap(ContinuousMap):
    def __init__(self, space: Space):
        super().__init__(space, space, lambda p: p, name=f"id[{space.name}]", reason="identity")

    @property
    def chain(self) -> Tuple[ContinuousMap, ...]:
        return ()


def from_chain(domain: Space, codomain: Space, chain: Tuple[ContinuousMap, ...]) -> ContinuousMap:
    if not chain:
        if domain is not codomain:
            raise ValueError("an empty chain is only an identity")
        return IdentityMap(domain)
    if len(chain) == 1:
        return chain[0]
    return ComposedMap(domain, codomain, chain)


def identity(space: Space) -> ContinuousMap:
    return IdentityMap(space)


def inclusion(subspace: Subspace) -> ContinuousMap:
    """The inclusion of a subspace into its ambient space (one object per subspace)."""
    if subspace._inclusion is None:
        subspace._inclusion = ContinuousMap(
            subspace,
            subspace.ambient,
            lambda p: p,
            name=f"ι[{subspace.subset.label}]",
            reason="subspace inclusion",
        )
    return subspace._inclusion


def constant(domain: Space, codomain: Space, value: Point, name: str = "const") -> ContinuousMap:
    if not codomain.contains(value):
        raise ValueError(f"{value!r} is not a point of {codomain.name}")
    return ContinuousMap(domain, codomain, lambda p: value, name=name, reason="constant map")


def empty_map(domain: Space, codomain: Space) -> ContinuousMap:
    """The unique map out of an empty space."""
    if not domain.is_empty():
        raise ValueError(f"{domain.name} is not empty")

    def _never(p: Point) -> Point:
        raise ValueError(f"{domain.name} has no points")

    return ContinuousMap(domain, codomain, _never, name="∅→", reason="map out of the empty space")


def product_map(f: ContinuousMap, g: ContinuousMap, codomain: Optional[ProductSpace] = None,
                domain: Optional[ProductSpace] = None) -> ContinuousMap:
    """f × g : A × B -> C × D."""
    domain = domain or ProductSpace(f.domain, g.domain)
    codomain = codomain or ProductSpace(f.codomain, g.codomain)
    if domain.left is not f.domain or domain.right is not g.domain:
        raise ValueError("product domain does not match the factors")
    if codomain.left is not f.codomain or codomain.right is not g.codomain:
        raise ValueError("product codomain does not match the factors")
    return ContinuousMap(
        domain,
        codomain,
        lambda p: (f(p[0]), g(p[1])),
        name=f"({f.name}×{g.name})",
        reason="product of continuous maps",
    )


def coproduct_map(domain: DisjointUnion, codomain: Space,
                  component: Callable[[Any], ContinuousMap], name: str = "[f_i]") -> ContinuousMap:
    """⊔A_i -> B, `(i, p) ↦ f_i(p)`; continuous because each leg is."""
    return ContinuousMap(
        domain,
        codomain,
        lambda p: component(p[0])(p[1]),
        name=name,
        reason="copairing of continuous maps",
    )


def disjoint_sum(domain: DisjointUnion, codomain: DisjointUnion, f: ContinuousMap,
                 name: Optional[str] = None) -> ContinuousMap:
    """⊔f : ⊔A -> ⊔B over the same index set, `(i, p) ↦ (i, f(p))`."""
    if domain.indices is not codomain.indices:
        raise ValueError("disjoint sum needs a shared index set")
    if f.domain is not domain.component or f.codomain is not codomain.component:
        raise ValueError(f"{f!r} does not map {domain.component.name} to {codomain.component.name}")
    return ContinuousMap(
        domain,
        codomain,
        lambda p: (p[0], f(p[1])),
        name=name or f"⊔{f.name}",
        reason="disjoint sum of continuous maps",
    )


class Homeomorphism:
    """An explicitly tracked isomorphism: two maps claimed mutually inverse."""

    def __init__(self, forward: ContinuousMap, backward: ContinuousMap, name: str = "≅"):
        if forward.domain is not backward.codomain or forward.codomain is not backward.domain:
            raise ValueError("forward and backward maps do not form a round trip")
        self.forward = forward
        self.backward = backward
        self.name = name

    @property
    def domain(self) -> Space:
        return self.forward.domain

    @property
    def codomain(self) -> Space:
        return self.forward.codomain

    def inverse(self) -> "Homeomorphism":
        return Homeomorphism(self.backward, self.forward, name=f"{self.name}⁻¹")

    def then(self, other: "Homeomorphism") -> "Homeomorphism":
        return Homeomorphism(
            self.forward.then(other.forward),
            other.backward.then(self.backward),
            name=f"{self.name};{other.name}",
        )

    def is_identity(self) -> bool:
        return self.forward.chain == () and self.backward.chain == ()

    def violations(self, samples_there: Iterable[Point], samples_back: Iterable[Point]) -> List[str]:
        """Round-trip failures on the given points of domain and codomain."""
        problems: List[str] = []
        for p in samples_there:
            if not self.domain.same_point(self.backward(self.forward(p)), p):
                problems.append(f"backward(forward({p!r})) != {p!r}")
        for q in samples_back:
            if not self.codomain.same_point(self.forward(self.backward(q)), q):
                problems.append(f"forward(backward({q!r})) != {q!r}")
        return problems

    def __repr__(self) -> str:
        return f"<Homeomorphism {self.name}: {self.domain.name} ≅ {self.codomain.name}>"


def identity_iso(space: Space) -> Homeomorphism:
    return Homeomorphism(identity(space), identity(space), name=f"id[{space.name}]")
