"""Worked example: the 2-sphere as a CW complex

One 0-cell (a point) and one 2-cell whose whole boundary circle is collapsed
onto that point. Every skeleton is built on demand; the colimit identifies a
point with all of its images in higher skeleta.

Run:
    python examples/sphere_cells.py
"""

import numpy as np

from relative_cw import CellData, build_cw_complex, constant, empty_map, print_complex_summary, sphere
from relative_cw.attachment import CELL, SKELETON

VERTEX = (CELL, ("v", np.zeros(0)))


def sphere_cells(n, skeleton):
    if n == -1:
        return CellData(["v"], {"v": empty_map(sphere(-1), skeleton)})
    if n == 1:
        return CellData(["e2"], {"e2": constant(sphere(1), skeleton, (SKELETON, VERTEX), name="collapse")})
    return None


def main() -> None:
    cx = build_cw_complex(sphere_cells, upto=3, verbose=True)

    print("\n" + "=" * 48)
    print_complex_summary(cx)

    col = cx.colimit()
    north = (CELL, ("e2", np.array([0.0, 0.0])))
    edge = (CELL, ("e2", np.array([0.0, 1.0])))

    print("\nColimit points (level, point) lowered to their first level:")
    for label, p in [("vertex", (0, VERTEX)), ("cell centre", (2, north)), ("cell edge", (2, edge))]:
        level, _ = col.canonical(p)
        print(f"  {label:<12} first appears in sk({level})")

    same = col.same_point((2, edge), (3, cx.inclusion(0, 3)(VERTEX)))
    print(f"\nedge of e2 == vertex in the colimit: {same}")


if __name__ == "__main__":
    main()
