"""relative_cw.utils

Small utilities used throughout the codebase.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import NDArray


def as_point(x: Any) -> NDArray[np.float64]:
    """Coerce a scalar / sequence into a 1-D float64 coordinate vector."""
    arr = np.asarray(x, dtype=np.float64)
    if arr.ndim == 0:
        arr = arr.reshape(1)
    return arr.reshape(-1)


def norm(x: NDArray[np.float64]) -> float:
    return float(np.linalg.norm(x)) if x.size else 0.0


def normalize_to_unit_sphere(x: NDArray[np.float64]) -> NDArray[np.float64]:
    """Project a non-zero vector onto the unit sphere."""
    n = norm(x)
    if n > 0:
        return x / n
    return x


def points_close(p: Any, q: Any, tol: float) -> bool:
    a, b = as_point(p), as_point(q)
    if a.shape != b.shape:
        return False
    return bool(np.allclose(a, b, rtol=0.0, atol=tol))


def to_jsonable(obj: Any) -> Any:
    """Recursively convert numpy types into JSON-friendly python types."""
    if isinstance(obj, (str, int, float, bool)) or obj is None:
        return obj
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, (np.floating,)):
        return float(obj)
    if isinstance(obj, (np.integer,)):
        return int(obj)
    # fall back to string
    return str(obj)
