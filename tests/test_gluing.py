import numpy as np
import pytest

from relative_cw.checks import finite_continuity_violations, maps_agree, sampled_continuity_violations, seam_gap
from relative_cw.errors import GluingError, InfiniteCoverError
from relative_cw.gluing import ClosedCover, glue, restriction_pieces, validate_cover
from relative_cw.maps import ContinuousMap, constant
from relative_cw.primitives import disk, real_line
from relative_cw.spaces import FiniteSpace, PointSet, SublevelSet, SuperlevelSet


def _make_finite():
    X = FiniteSpace([0, 1, 2], closed_sets=[{0}, {2}, {0, 2}, {0, 1}], name="X")
    Y = FiniteSpace(["p", "q"], closed_sets=[{"p"}], name="Sierpinski")
    cover = ClosedCover(X, {"a": PointSet(X, {0, 1}), "b": PointSet(X, {0, 2})})
    return X, Y, cover


def _make_halves():
    D = disk(1)
    g = ContinuousMap(D, real_line(), lambda x: float(x[0]), name="x0")
    cover = ClosedCover(D, {
        "left": SublevelSet(D, g, label="left"),
        "right": SuperlevelSet(D, g, label="right"),
    })
    return D, g, cover


def test_glue_finite_pieces():
    X, Y, cover = _make_finite()
    pieces = {
        "a": ContinuousMap(cover.subspace("a"), Y, {0: "p", 1: "q"}.__getitem__),
        "b": ContinuousMap(cover.subspace("b"), Y, lambda x: "p"),
    }
    phi = glue(cover, pieces, Y)
    assert [phi(x) for x in X.points] == ["p", "q", "p"]
    assert phi.eval_at(0, "a") == phi.eval_at(0, "b")
    assert finite_continuity_violations(phi) == []


def test_glued_preimage_is_witnessed_closed():
    X, Y, cover = _make_finite()
    pieces = {
        "a": ContinuousMap(cover.subspace("a"), Y, {0: "p", 1: "q"}.__getitem__),
        "b": ContinuousMap(cover.subspace("b"), Y, lambda x: "p"),
    }
    phi = glue(cover, pieces, Y)
    pre = phi.preimage(PointSet(Y, {"p"}))
    assert X.is_closed(pre)
    assert [x for x in X.points if pre.contains(x)] == [0, 2]


def test_pieces_disagreeing_on_overlap_are_rejected():
    X, Y, cover = _make_finite()
    pieces = {
        "a": ContinuousMap(cover.subspace("a"), Y, lambda x: "p"),
        "b": ContinuousMap(cover.subspace("b"), Y, {0: "q", 2: "p"}.__getitem__),
    }
    with pytest.raises(GluingError) as info:
        glue(cover, pieces, Y)
    assert any("disagree" in p for p in info.value.problems)


def test_non_closed_set_is_rejected():
    X, Y, _ = _make_finite()
    cover = ClosedCover(X, {"a": PointSet(X, {1}), "b": PointSet(X, {0, 2})})
    pieces = {"a": constant(X, Y, "p"), "b": constant(X, Y, "p")}
    problems = validate_cover(cover, pieces, Y)
    assert problems and "not closed" in problems[0]
    with pytest.raises(GluingError):
        glue(cover, pieces, Y)


def test_sets_must_cover():
    X, Y, _ = _make_finite()
    cover = ClosedCover(X, {"a": PointSet(X, {0}), "b": PointSet(X, {0, 1})})
    assert cover.covers_exactly() is False
    pieces = {"a": constant(X, Y, "p"), "b": constant(X, Y, "p")}
    with pytest.raises(GluingError) as info:
        glue(cover, pieces, Y)
    assert "do not cover" in str(info.value)


def test_pieces_must_match_indices():
    X, Y, cover = _make_finite()
    with pytest.raises(GluingError):
        glue(cover, {"a": constant(X, Y, "p")}, Y)


def test_unbounded_families_are_refused():
    X, Y, _ = _make_finite()
    sets = (PointSet(X, {x}) for x in X.points)
    with pytest.raises(InfiniteCoverError):
        ClosedCover(X, sets)
    _, _, cover = _make_finite()
    with pytest.raises(InfiniteCoverError):
        glue(cover, ((i, constant(X, Y, "p")) for i in "ab"), Y)


def test_glue_along_sublevel_seam():
    D, g, cover = _make_halves()
    assert cover.covers_exactly() is True
    pieces = {
        "left": ContinuousMap(D, real_line(), lambda x: -float(x[0]), name="-x"),
        "right": ContinuousMap(D, real_line(), lambda x: float(x[0]), name="x"),
    }
    phi = glue(cover, pieces)
    assert phi.codomain is real_line()
    assert phi(np.array([-0.5])) == pytest.approx(0.5)
    assert phi(np.array([0.25])) == pytest.approx(0.25)
    assert phi.eval_at(np.array([0.0]), "left") == phi.eval_at(np.array([0.0]), "right")

    hs = [10.0 ** -k for k in range(1, 7)]
    gaps = seam_gap(phi, lambda h: np.array([-h]), lambda h: np.array([h]), hs)
    assert np.allclose(gaps, 0.0)
    assert sampled_continuity_violations(phi) == []


def test_glue_rejects_jump_at_seam():
    D, g, cover = _make_halves()
    pieces = {
        "left": ContinuousMap(D, real_line(), lambda x: float(x[0])),
        "right": ContinuousMap(D, real_line(), lambda x: float(x[0]) + 1.0),
    }
    with pytest.raises(GluingError):
        glue(cover, pieces)


def test_restrictions_glue_back_to_the_map():
    D, g, cover = _make_halves()
    phi = glue(cover, restriction_pieces(g, cover))
    assert maps_agree(phi, g)


def _make_thin_seam():
    """Two sublevel sets of unrelated functions meeting only at x = 0.5."""
    D = disk(1)
    below = ContinuousMap(D, real_line(), lambda x: float(x[0]) - 0.5, name="x0-0.5")
    above = ContinuousMap(D, real_line(), lambda x: 0.5 - float(x[0]), name="0.5-x0")
    sets = {"left": SublevelSet(D, below, label="left"), "right": SublevelSet(D, above, label="right")}
    return D, sets


def test_unsampled_seam_is_not_accepted():
    D, sets = _make_thin_seam()
    cover = ClosedCover(D, sets)
    pieces = {"left": constant(D, real_line(), 0.0), "right": constant(D, real_line(), 1.0)}
    with pytest.raises(GluingError) as info:
        glue(cover, pieces)
    assert any("could not be sampled" in p for p in info.value.problems)


def test_seam_sampler_catches_disagreement():
    D, sets = _make_thin_seam()
    seam = {("left", "right"): lambda k, rng: [np.array([0.5])]}
    cover = ClosedCover(D, sets, overlap_samplers=seam)
    jump = {"left": constant(D, real_line(), 0.0), "right": constant(D, real_line(), 1.0)}
    with pytest.raises(GluingError) as info:
        glue(cover, jump)
    assert any("disagree" in p for p in info.value.problems)

    tent = {
        "left": ContinuousMap(D, real_line(), lambda x: float(x[0]), name="x0"),
        "right": ContinuousMap(D, real_line(), lambda x: 1.0 - float(x[0]), name="1-x0"),
    }
    phi = glue(cover, tent)
    assert phi(np.array([0.5])) == pytest.approx(0.5)
    assert phi(np.array([0.75])) == pytest.approx(0.25)
