"""relative_cw.io

JSON (de)serialisation helpers for complex summaries.

Spaces and maps are not serialised; what goes to disk is the shape of a
complex (cells per level) with provenance metadata.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import json

from .attachment import count_cells
from .config import get_library_versions
from .jar import JarExtension
from .schema import ComplexSummary, ExtensionSummary, LevelSummary
from .skeleta import RelativeCWComplex
from .utils import to_jsonable


def summarize_complex(cx: RelativeCWComplex, upto: Optional[int] = None) -> ComplexSummary:
    """Levels -1..upto (default: what has been built) with their cell counts."""
    top = cx.top if upto is None else upto
    cx.sk(top)
    levels: List[LevelSummary] = [
        {"index": -1, "space": cx.sk(-1).name, "new_cells": 0, "cell_dimension": -1}
    ]
    total: Optional[int] = 0
    for n in range(0, top + 1):
        count = count_cells(cx.cells(n))
        levels.append({"index": n, "space": cx.sk(n).name, "new_cells": count, "cell_dimension": n})
        total = None if total is None or count is None else total + count
    return {
        "base": cx.base.name,
        "top": top,
        "levels": levels,
        "total_cells": total,
        "library_versions": get_library_versions(),
    }


def summarize_extension(ext: JarExtension) -> ExtensionSummary:
    return {
        "n": ext.n,
        "jar": ext.map.domain.name,
        "codomain": ext.f.codomain.name,
        "compatibility_exact": ext.compat.exact,
        "compatibility_points": ext.compat.points_checked,
        "bottom_law": ext.bottom_law(),
        "wall_law": ext.wall_law(),
    }


def summary_to_json(summary: Dict[str, Any], indent: int = 2) -> str:
    return json.dumps(to_jsonable(summary), indent=indent, ensure_ascii=False)


def complex_to_json(cx: RelativeCWComplex, upto: Optional[int] = None, indent: int = 2) -> str:
    """Convert a complex summary to a JSON string."""
    return summary_to_json(summarize_complex(cx, upto), indent=indent)


def save_summary(summary: Dict[str, Any], path: str | Path, indent: int = 2) -> Path:
    """Save a summary to JSON on disk."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(summary_to_json(summary, indent=indent), encoding="utf-8")
    return path
