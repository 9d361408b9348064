"""relative_cw.pretty

Pretty-print helpers for complexes and jar extensions.

Presentation only; the constructions never print unless asked to.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from .io import summarize_complex, summarize_extension
from .jar import JarExtension
from .skeleta import RelativeCWComplex


def _count(c: Optional[int]) -> str:
    return "∞" if c is None else str(c)


def print_complex_summary(cx: RelativeCWComplex, upto: Optional[int] = None) -> None:
    """Print one row per skeleton: index, space, cells added."""
    summary = summarize_complex(cx, upto)
    print(f"Relative CW complex on {summary['base']}")
    print("-" * 48)
    print(f"{'level':>6}  {'space':<20}  {'new cells':>9}")
    for lvl in summary["levels"]:
        print(f"{lvl['index']:>6}  {lvl['space']:<20}  {_count(lvl['new_cells']):>9}")
    print("-" * 48)
    print(f"  total cells: {_count(summary['total_cells'])}")


def _mark(ok: Any) -> str:
    return "ok" if ok else "FAILED"


def print_extension_report(ext: JarExtension) -> None:
    s: Mapping[str, Any] = summarize_extension(ext)
    print(f"Jar extension over {s['jar']} into {s['codomain']}")
    how = "exhaustive" if s["compatibility_exact"] else "sampled"
    print(f"  boundary compatibility: {how}, {s['compatibility_points']} points")
    print(f"  bottom law:             {_mark(s['bottom_law'])}")
    print(f"  wall law:               {_mark(s['wall_law'])}")
