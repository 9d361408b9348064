"""relative_cw.errors

Precondition failures. Every construction in the package is total once its
inputs are well formed, so these are raised at the call site and never from
inside an evaluation.
"""

from __future__ import annotations

from typing import List, Optional


class PreconditionError(ValueError):
    """An input violates a precondition of a construction."""


class CompatibilityError(PreconditionError):
    """Two maps disagree at a point where they are required to agree."""


class InfiniteCoverError(PreconditionError):
    """A cover was given with an index set that is not finite."""


class GluingError(PreconditionError):
    """A closed cover (or its family of piece maps) is not valid."""

    def __init__(self, problems: List[str], message: Optional[str] = None):
        self.problems = list(problems)
        if message is None:
            message = "invalid closed cover: " + "; ".join(self.problems)
        super().__init__(message)
