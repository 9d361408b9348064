import numpy as np
import pytest

from relative_cw.attachment import (
    CELL,
    SKELETON,
    CellData,
    count_cells,
    empty_attachment_isomorphism,
)
from relative_cw.checks import maps_agree
from relative_cw.errors import CompatibilityError
from relative_cw.maps import ContinuousMap, constant, empty_map, identity
from relative_cw.primitives import real_line, sphere
from relative_cw.skeleta import LevelwiseSubset, assemble_colimit, build_complex, build_cw_complex
from relative_cw.spaces import FiniteSpace, WholeSpace

VERTEX = (CELL, ("v", np.zeros(0)))


def _sphere_cells(n, skeleton):
    """S^2 as one 0-cell and one 2-cell collapsed onto it."""
    if n == -1:
        return CellData(["v"], {"v": empty_map(sphere(-1), skeleton)})
    if n == 1:
        vertex = (SKELETON, VERTEX)
        return CellData(["e2"], {"e2": constant(sphere(1), skeleton, vertex)})
    return None


def _make_sphere(upto=3, **kwargs):
    return build_cw_complex(_sphere_cells, upto=upto, **kwargs)


def _interval_level(skeleton):
    ends = ContinuousMap(
        sphere(0),
        skeleton,
        lambda s: (SKELETON, "a") if s[0] < 0 else (SKELETON, "b"),
        name="ends",
    )
    return CellData(["e"], {"e": ends})


def test_skeleta_are_built_in_order():
    cx = _make_sphere(upto=1)
    assert cx.top == 1
    assert cx.sk(-1).is_empty()
    assert len(cx.sk(0).enumerate()) == 1
    assert cx.sk(2) is cx.sk(2)
    assert cx.top == 2
    assert list(cx.cells(0)) == ["v"]
    assert count_cells(cx.cells(1)) == 0
    assert list(cx.cells(2)) == ["e2"]


def test_negative_index_rejected():
    cx = _make_sphere(upto=0)
    with pytest.raises(ValueError):
        cx.sk(-2)
    with pytest.raises(ValueError):
        cx.inclusion(3, 1)


def test_inclusions_are_functorial():
    cx = _make_sphere(upto=3)
    levels = range(-1, 4)
    for n in levels:
        assert cx.inclusion(n, n) == identity(cx.sk(n))
    for n in levels:
        for m in levels:
            for l in levels:
                if n <= m <= l:
                    assert cx.inclusion(n, l) == cx.inclusion(n, m).then(cx.inclusion(m, l))


def test_inclusions_are_cached():
    cx = _make_sphere(upto=3)
    assert cx.inclusion(0, 3) is cx.inclusion(0, 3)
    assert len(cx.inclusion(-1, 3).chain) == 4


def test_boundary_of_two_cell_is_the_vertex():
    cx = _make_sphere(upto=2)
    att = cx.attachment(1)
    vertex_in_sk2 = cx.inclusion(0, 2)(VERTEX)
    on_boundary = att.inl(("e2", np.array([0.0, 1.0])))
    inside = att.inl(("e2", np.array([0.2, 0.1])))
    assert cx.sk(2).same_point(on_boundary, vertex_in_sk2)
    assert not cx.sk(2).same_point(inside, vertex_in_sk2)


def test_levels_without_cells_are_isomorphisms():
    cx = _make_sphere(upto=3)
    att = cx.attachment(0)
    assert att.is_empty()
    iso = empty_attachment_isomorphism(att)
    assert cx.step(0) == iso.forward
    assert iso.violations(cx.sk(0).enumerate(), cx.sk(1).enumerate()) == []
    assert cx.level_iso(2).is_identity()


def test_attachments_from_mapping():
    base = FiniteSpace(["a", "b"], name="{a,b}")
    cx = build_complex(base, {0: _interval_level}, upto=1)
    assert list(cx.cells(1)) == ["e"]
    assert cx.sk(1).contains((CELL, ("e", np.array([0.5]))))
    a_in_sk1 = cx.inclusion(-1, 1)("a")
    assert cx.sk(1).same_point(a_in_sk1, (CELL, ("e", np.array([-1.0]))))


def test_verbose_prints_each_level(capsys):
    build_cw_complex(_sphere_cells, upto=1, verbose=True)
    out = capsys.readouterr().out
    assert "[relative_cw] sk(0): 1 cells of dimension 0" in out
    assert "[relative_cw] sk(1)" in out


def test_boundary_tolerance_override():
    near_edge = (CELL, ("e2", np.array([0.95, 0.0])))
    loose = _make_sphere(upto=2, config={"boundary_tol": 0.1})
    strict = _make_sphere(upto=2)
    assert loose.attachment(1).space.canonical(near_edge)[0] == SKELETON
    assert strict.attachment(1).space.canonical(near_edge)[0] == CELL


def test_colimit_identifies_images():
    cx = _make_sphere(upto=3)
    col = assemble_colimit(cx)
    assert col is cx.colimit()
    x3 = cx.inclusion(0, 3)(VERTEX)
    assert col.same_point((0, VERTEX), (3, x3))
    level, _ = col.canonical((3, x3))
    assert level == 0

    interior = (CELL, ("e2", np.array([0.3, -0.2])))
    assert col.contains((2, interior))
    assert not col.contains((-5, interior))
    assert col.same_point((2, interior), (3, cx.inclusion(2, 3)(interior)))
    assert not col.same_point((2, interior), (0, VERTEX))
    assert col.canonical((3, cx.inclusion(2, 3)(interior)))[0] == 2


def test_colimit_lowers_boundary_points():
    cx = _make_sphere(upto=2)
    col = cx.colimit()
    edge = (CELL, ("e2", np.array([1.0, 0.0])))
    level, _ = col.canonical((2, edge))
    assert level == 0


def test_colimit_legs_commute_with_steps():
    cx = _make_sphere(upto=3)
    col = cx.colimit()
    for n in range(-1, 3):
        assert maps_agree(cx.step(n).then(col.leg(n + 1)), col.leg(n))


def test_colimit_factorization():
    cx = _make_sphere(upto=3)
    col = cx.colimit()
    d = col.factor(real_line(), lambda n: constant(cx.sk(n), real_line(), 1.0))
    assert d((2, (CELL, ("e2", np.array([0.1, 0.1]))))) == 1.0
    assert d((0, VERTEX)) == 1.0


def test_colimit_factorization_needs_compatible_legs():
    cx = _make_sphere(upto=3)
    col = cx.colimit()
    with pytest.raises(CompatibilityError):
        col.factor(real_line(), lambda n: constant(cx.sk(n), real_line(), float(n)))


def test_colimit_closed_sets_are_levelwise():
    cx = _make_sphere(upto=3)
    col = cx.colimit()
    whole = LevelwiseSubset(col, lambda n: WholeSpace(cx.sk(n)), label="all")
    assert col.is_closed(whole)
    unwitnessed = LevelwiseSubset(col, lambda n: set(), label="?")
    assert not col.is_closed(unwitnessed)
    assert not col.is_closed(WholeSpace(cx.sk(0)))
