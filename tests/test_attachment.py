import numpy as np
import pytest

from relative_cw.attachment import (
    CELL,
    SKELETON,
    attach_cells,
    canonical_isomorphism,
    empty_attachment_isomorphism,
)
from relative_cw.checks import maps_agree
from relative_cw.errors import CompatibilityError
from relative_cw.maps import ContinuousMap, constant, empty_map, identity
from relative_cw.primitives import disk, real_line, sphere
from relative_cw.spaces import FiniteSpace


class _Naturals:
    """An index set with no length."""

    def __contains__(self, c):
        return isinstance(c, int) and c >= 0

    def __iter__(self):
        n = 0
        while True:
            yield n
            n += 1


def _make_interval():
    """Two points a, b joined by one 1-cell: a copy of [-1, 1]."""
    X = FiniteSpace(["a", "b"], name="{a,b}")
    phi = ContinuousMap(sphere(0), X, lambda s: "a" if s[0] < 0 else "b", name="ends")
    att = attach_cells(X, 0, ["e"], {"e": phi})
    W = real_line()
    h = ContinuousMap(att.disks, W, lambda p: float(p[1][0]), name="coord")
    k = ContinuousMap(X, W, lambda x: -1.0 if x == "a" else 1.0, name="ends")
    return X, phi, att, h, k


def test_attached_space_identifies_boundary():
    X, phi, att, h, k = _make_interval()
    left_end = att.inl(("e", np.array([-1.0])))
    assert left_end == (SKELETON, "a")
    assert att.space.same_point((CELL, ("e", np.array([1.0]))), att.inr("b"))
    assert not att.space.same_point(att.inr("a"), att.inr("b"))
    inner = att.inl(("e", np.array([0.25])))
    assert inner[0] == CELL
    assert att.space.contains(inner)


def test_factor_satisfies_both_legs():
    X, phi, att, h, k = _make_interval()
    d = att.factor(real_line(), h, k)
    assert att.factorization_violations(d, h, k) == []
    assert d(att.inr("a")) == -1.0
    assert d(att.inl(("e", np.array([0.5])))) == pytest.approx(0.5)


def test_factorization_is_unique():
    X, phi, att, h, k = _make_interval()
    d1 = att.factor(real_line(), h, k)

    def _by_hand(p):
        tag, payload = p
        if tag == SKELETON:
            return {"a": -1.0, "b": 1.0}[payload]
        return float(payload[1][0])

    d2 = ContinuousMap(att.space, real_line(), _by_hand, name="by-hand")
    assert att.factorizations_agree(d1, d2, h, k)

    wrong = constant(att.space, real_line(), 0.0)
    assert not att.factorizations_agree(d1, wrong, h, k)


def test_factor_rejects_maps_disagreeing_on_span():
    X, phi, att, h, k = _make_interval()
    k_bad = ContinuousMap(X, real_line(), lambda x: 0.0, name="zero")
    assert att.span_violations(h, k_bad)
    with pytest.raises(CompatibilityError):
        att.factor(real_line(), h, k_bad)


def test_attaching_map_type_is_checked():
    X = FiniteSpace(["a"])
    bad = ContinuousMap(sphere(1), X, lambda s: "a")
    with pytest.raises(ValueError):
        attach_cells(X, 0, ["e"], {"e": bad})


def test_canonical_isomorphism_between_realizations():
    X, phi, att, h, k = _make_interval()
    other = attach_cells(X, 0, ["e"], {"e": phi})
    iso = canonical_isomorphism(att, other)
    pts = att.space.sample(32, np.random.default_rng(0))
    back = other.space.sample(32, np.random.default_rng(1))
    assert iso.violations(pts, back) == []
    assert maps_agree(att.inr.then(iso.forward), other.inr)


def test_canonical_isomorphism_needs_same_span():
    X, phi, att, h, k = _make_interval()
    swapped = ContinuousMap(sphere(0), X, lambda s: "b" if s[0] < 0 else "a")
    other = attach_cells(X, 0, ["e"], {"e": swapped})
    with pytest.raises(ValueError):
        canonical_isomorphism(att, other)


def test_zero_cells_gives_isomorphic_space():
    X = FiniteSpace(["a", "b"])
    att = attach_cells(X, 3, [], {})
    assert att.is_empty()
    iso = empty_attachment_isomorphism(att)
    assert iso.forward == att.inr
    assert iso.violations(list(X.points), att.space.enumerate()) == []
    assert maps_agree(att.inr.then(iso.backward), identity(X))


def test_zero_cells_attach_points():
    X = FiniteSpace(["a"])
    att = attach_cells(X, -1, ["p", "q"], lambda c: empty_map(sphere(-1), X))
    pts = att.space.enumerate()
    assert len(pts) == 3
    assert att.space.contains((CELL, ("p", np.zeros(0))))


def test_infinitely_many_cells():
    X = FiniteSpace(["x"])
    att = attach_cells(X, -1, _Naturals(), lambda c: empty_map(sphere(-1), X))
    assert att.num_cells is None
    assert att.space.contains((CELL, (10 ** 9, np.zeros(0))))
    assert not att.space.contains((CELL, (-3, np.zeros(0))))
    assert att.space.enumerate() is None
    assert len(att.space.sample(8, np.random.default_rng(0))) >= 2


def test_attachment_below_minus_one_rejected():
    with pytest.raises(ValueError):
        attach_cells(FiniteSpace(["a"]), -2)


def test_one_shot_cells_are_refused():
    X = FiniteSpace(["x"])
    with pytest.raises(ValueError):
        attach_cells(X, -1, (c for c in range(5)), lambda c: empty_map(sphere(-1), X))
    att = attach_cells(X, -1, range(5), lambda c: empty_map(sphere(-1), X))
    assert att.space.contains((CELL, (0, np.zeros(0))))
    assert not att.is_empty()
