"""
Error Types for the Deduplication Pipeline.

Two families of failures exist:

1.  **Unsafe rewrites** (`RewriteError`): user-facing. One or more qualified
    references could not be renamed safely. The error aggregates every
    violation found in the file so the user can resolve them all at once.
2.  **Structural invariant violations** (`StructuralError`): programmer errors
    inside the core (e.g. querying a scope before it is sealed). These must
    never be swallowed or mistaken for "no duplicates found".
"""

from dataclasses import dataclass
from typing import List, Sequence


class StructuralError(RuntimeError):
  """
  Raised when an internal invariant of the pipeline is broken.
  """


class ScopeNotSealedError(StructuralError):
  """
  Raised when a scope is queried before construction finished, or mutated after.
  """


@dataclass(frozen=True)
class RewriteViolation:
  """
  A single qualified reference that could not be renamed.
  """

  filename: str
  line: int
  column: int
  from_name: str
  to_name: str
  message: str

  def __str__(self) -> str:
    return f"{self.filename}:{self.line}:{self.column}: {self.message}"


class RewriteError(ValueError):
  """
  Aggregate of every unsafe rewrite found in one file.

  Always carries at least one violation, even when only a single reference failed.
  """

  def __init__(self, violations: Sequence[RewriteViolation]):
    """
    Args:
        violations: The collected violations, in traversal order.

    Raises:
        ValueError: If `violations` is empty.
    """
    if not violations:
      raise ValueError("RewriteError requires at least one violation")
    self.violations: List[RewriteViolation] = list(violations)
    super().__init__(str(self))

  def __str__(self) -> str:
    return "\n".join(str(v) for v in self.violations)
