"""relative_cw.config

Centralised configuration + reproducibility helpers.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import numpy as np


def default_config() -> Dict[str, Any]:
    """Return a *copy* of the default configuration.

    Exact laws (map chains, finite spaces) never consult these values; they
    only steer the numerical side:
    - identification of disk points with their boundary sphere
    - point equality in Euclidean spaces
    - sampled cover / agreement / continuity checks

    You can override any key in the returned dict.
    """
    return {
        # --- tolerances ---
        "boundary_tol": 1e-9,           # |d| >= 1 - tol counts as a boundary point of a cell
        "point_tol": 1e-9,              # allclose tolerance for disk coordinates of cell points

        # --- sampled checks ---
        "num_samples": 64,
        "continuity_delta": 1e-3,       # neighbourhood radius in the domain
        "continuity_eps": 1e-2,         # allowed spread of images over that radius

        # --- reproducibility ---
        "random_seed": 0,
    }


def resolve_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Merge overrides into `default_config()`."""
    cfg = default_config()
    if config:
        cfg.update(config)
    return cfg


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Seeded generator for sampling; falls back to the configured seed."""
    if seed is None:
        seed = int(default_config()["random_seed"])
    return np.random.default_rng(seed)


def get_library_versions() -> Dict[str, str]:
    """Collect versions of key libraries for provenance."""
    versions: Dict[str, str] = {}

    def _add(pkg: str) -> None:
        import importlib.metadata as md
        try:
            versions[pkg] = md.version(pkg)
        except md.PackageNotFoundError:
            pass

    for pkg in ["numpy", "scipy"]:
        _add(pkg)
    return versions
