"""relative_cw

Relative CW complexes built by iterated cell attachment, together with the two
engines the construction leans on: gluing maps along finite closed covers and
extending homotopies over the jar D^(n+1) × I.

The public API is intentionally small:

- disk, sphere, sphere_inclusion, unit_interval
- attach_cells, canonical_isomorphism
- build_complex, build_cw_complex, assemble_colimit
- ClosedCover, glue, validate_cover
- check_boundary_compatibility, extend, homotopy_extension_property
- complex_to_json, save_summary, print_complex_summary
"""

from .config import default_config
from .errors import CompatibilityError, GluingError, InfiniteCoverError, PreconditionError
from .spaces import (
    FiniteSpace,
    ProductSpace,
    SublevelSet,
    SuperlevelSet,
    empty_space,
)
from .maps import ContinuousMap, Homeomorphism, constant, empty_map, identity
from .primitives import disk, real_line, sphere, sphere_cylinder, sphere_inclusion, unit_interval
from .attachment import CellData, attach_cells, canonical_isomorphism, empty_attachment_isomorphism
from .skeleta import RelativeCWComplex, assemble_colimit, build_complex, build_cw_complex
from .gluing import ClosedCover, glue, validate_cover
from .jar import check_boundary_compatibility, extend, homotopy_extension_property, jar
from .io import complex_to_json, save_summary
from .pretty import print_complex_summary, print_extension_report

__all__ = [
    "default_config",
    "CompatibilityError",
    "GluingError",
    "InfiniteCoverError",
    "PreconditionError",
    "FiniteSpace",
    "ProductSpace",
    "SublevelSet",
    "SuperlevelSet",
    "empty_space",
    "ContinuousMap",
    "Homeomorphism",
    "constant",
    "empty_map",
    "identity",
    "disk",
    "real_line",
    "sphere",
    "sphere_cylinder",
    "sphere_inclusion",
    "unit_interval",
    "CellData",
    "attach_cells",
    "canonical_isomorphism",
    "empty_attachment_isomorphism",
    "RelativeCWComplex",
    "assemble_colimit",
    "build_complex",
    "build_cw_complex",
    "ClosedCover",
    "glue",
    "validate_cover",
    "check_boundary_compatibility",
    "extend",
    "homotopy_extension_property",
    "jar",
    "complex_to_json",
    "save_summary",
    "print_complex_summary",
    "print_extension_report",
]
