import json

import numpy as np

from relative_cw.attachment import CellData, SKELETON
from relative_cw.io import complex_to_json, save_summary, summarize_complex, summarize_extension
from relative_cw.jar import homotopy_extension_property
from relative_cw.maps import ContinuousMap, constant, empty_map, identity
from relative_cw.pretty import print_complex_summary, print_extension_report
from relative_cw.primitives import disk, sphere, sphere_cylinder
from relative_cw.skeleta import build_cw_complex
from relative_cw.utils import to_jsonable


def _sphere_cells(n, skeleton):
    if n == -1:
        return CellData(["v"], {"v": empty_map(sphere(-1), skeleton)})
    if n == 1:
        vertex = (SKELETON, ("cell", ("v", np.zeros(0))))
        return CellData(["e2"], {"e2": constant(sphere(1), skeleton, vertex)})
    return None


def _make_extension():
    f = identity(disk(1))
    H = ContinuousMap(sphere_cylinder(0), disk(1), lambda p: np.asarray(p[0]), name="const")
    return homotopy_extension_property(0).extend(f, H)


def test_summary_counts_cells_per_level():
    cx = build_cw_complex(_sphere_cells)
    summary = summarize_complex(cx, upto=3)
    assert [lvl["new_cells"] for lvl in summary["levels"]] == [0, 1, 0, 1, 0]
    assert summary["total_cells"] == 2
    assert summary["top"] == 3


def test_complex_to_json_roundtrip():
    cx = build_cw_complex(_sphere_cells, upto=2)
    data = json.loads(complex_to_json(cx))
    assert data["top"] == 2
    assert data["levels"][0]["index"] == -1


def test_save_summary(tmp_path):
    cx = build_cw_complex(_sphere_cells, upto=2)
    path = save_summary(summarize_complex(cx), tmp_path / "out" / "sphere.json")
    assert path.exists()
    assert json.loads(path.read_text(encoding="utf-8"))["total_cells"] == 2


def test_to_jsonable_handles_numpy():
    out = to_jsonable({"a": np.float64(1.5), "b": np.arange(3), 2: (np.int64(4),)})
    assert out == {"a": 1.5, "b": [0, 1, 2], "2": [4]}


def test_extension_summary():
    s = summarize_extension(_make_extension())
    assert s["n"] == 0
    assert s["compatibility_exact"] is True
    assert s["bottom_law"] and s["wall_law"]


def test_printers(capsys):
    cx = build_cw_complex(_sphere_cells, upto=2)
    print_complex_summary(cx)
    print_extension_report(_make_extension())
    out = capsys.readouterr().out
    assert "total cells: 2" in out
    assert "bottom law" in out and "ok" in out
