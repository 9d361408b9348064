"""Worked example: homotopy extension over the jar D^2 × I

Start from the identity of the disk D^2 and rotate its boundary circle by a
quarter turn. The jar engine extends the pair to one continuous map on
D^2 × I that is the identity on the bottom and the rotation on the wall.

Run:
    python examples/jar_extension.py
"""

import numpy as np

from relative_cw import ContinuousMap, disk, homotopy_extension_property, identity, sphere_cylinder
from relative_cw.checks import sampled_continuity_violations
from relative_cw.pretty import print_extension_report


def rotate(p):
    s, t = np.asarray(p[0]), float(p[1])
    c, sn = np.cos(np.pi * t / 2.0), np.sin(np.pi * t / 2.0)
    return np.array([c * s[0] - sn * s[1], sn * s[0] + c * s[1]])


def main() -> None:
    f = identity(disk(2))
    H = ContinuousMap(sphere_cylinder(1), disk(2), rotate, name="quarter-turn",
                      reason="rotation by a continuous angle")

    ext = homotopy_extension_property(1).extend(f, H)
    print_extension_report(ext)

    print("\nValues along the radius x = (r, 0) at height y = 0.5:")
    for r in np.linspace(0.0, 1.0, 6):
        p = (np.array([r, 0.0]), 0.5)
        v = ext(p)
        print(f"  r={r:.1f}  ->  ({v[0]:+.3f}, {v[1]:+.3f})")

    bad = sampled_continuity_violations(ext.map)
    print(f"\nsampled continuity violations: {len(bad)}")


if __name__ == "__main__":
    main()
