"""
Diagnostics and Fix-its.

Result models produced by the `MigrationEngine`. A `Diagnostic` is reported
once per matched span; when the rewrite succeeded it carries a `Suggestion`
whose offsets are local to the file text, so it can be applied directly.
"""

from enum import Enum
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field


class Applicability(str, Enum):
  """How safe it is to apply a suggestion without review."""

  MACHINE_APPLICABLE = "machine-applicable"
  MAYBE_INCORRECT = "maybe-incorrect"


class Level(str, Enum):
  WARNING = "warning"
  NOTE = "note"


class Suggestion(BaseModel):
  """
  Replace ``code[start:end]`` with `replacement`.
  """

  start: int
  end: int
  replacement: str
  label: str = "replace with"
  applicability: Applicability = Applicability.MACHINE_APPLICABLE


class Diagnostic(BaseModel):
  """
  One report about one builder span.
  """

  level: Level = Level.WARNING
  message: str
  file: str = "<input>"
  line: int = 0
  column: int = 0
  start: int = Field(default=0, description="Local start offset of the reported span.")
  end: int = Field(default=0, description="Local end offset of the reported span.")
  notes: List[str] = Field(default_factory=list)
  suggestion: Optional[Suggestion] = None

  @property
  def fixable(self) -> bool:
    return self.suggestion is not None


class MigrationResult(BaseModel):
  """
  Structured result of migrating a single file.
  """

  code: str = Field(default="", description="The migrated source code.")
  diagnostics: List[Diagnostic] = Field(default_factory=list, description="One entry per matched builder span.")
  errors: List[str] = Field(default_factory=list, description="Fatal problems, e.g. syntax errors.")
  success: bool = Field(default=True, description="False if the file could not be analysed.")

  @property
  def has_errors(self) -> bool:
    """
    Returns True if any errors were recorded.

    Returns:
        bool: True if errors list is non-empty.
    """
    return len(self.errors) > 0

  @property
  def suggestions(self) -> List[Suggestion]:
    return [d.suggestion for d in self.diagnostics if d.suggestion is not None]

  @property
  def pending(self) -> int:
    """Number of builder sites still written in the closure style."""
    return len(self.diagnostics)


def apply_suggestions(code: str, suggestions: Sequence[Suggestion]) -> str:
  """
  Substitutes every suggestion into `code`.

  Suggestions are applied from the end of the file backwards so earlier
  offsets stay valid. A suggestion overlapping one already applied is skipped.

  Args:
      code (str): Original file text.
      suggestions (Sequence[Suggestion]): Replacements with local offsets.

  Returns:
      str: The rewritten text.
  """
  result = code
  boundary = len(code) + 1
  for suggestion in sorted(suggestions, key=lambda s: (s.start, s.end), reverse=True):
    if suggestion.end > boundary or suggestion.start > suggestion.end:
      continue
    result = result[: suggestion.start] + suggestion.replacement + result[suggestion.end :]
    boundary = suggestion.start
  return result
