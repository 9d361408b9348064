"""relative_cw.schema

JSON-friendly summaries of complexes and extensions.

Results of the constructions are live Python objects (spaces, maps); these
TypedDicts name the plain-dict views produced for reports and files.
"""

from __future__ import annotations

from typing import Dict, List, Optional, TypedDict


class LevelSummary(TypedDict):
    index: int                  # skeleton index n
    space: str                  # name of sk(n)
    new_cells: Optional[int]    # n-cells attached to sk(n-1); None if the index set has no size
    cell_dimension: int


class ComplexSummary(TypedDict, total=False):
    base: str
    top: int
    levels: List[LevelSummary]
    total_cells: Optional[int]
    library_versions: Dict[str, str]


class ExtensionSummary(TypedDict, total=False):
    n: int
    jar: str
    codomain: str
    compatibility_exact: bool
    compatibility_points: int
    bottom_law: bool
    wall_law: bool
