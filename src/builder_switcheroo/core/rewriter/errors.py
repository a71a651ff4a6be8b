"""
Rewrite Failures.

A `StructuralViolation` means a builder was recognized but its calls do not
fit the shape its rewriter expects. It is always recoverable: the caller
leaves the offending closure as written and records a note.
"""

from dataclasses import dataclass
from typing import Optional

from builder_switcheroo.host.spans import Span


class StructuralViolation(Exception):
  """
  Raised by rewriters when a recognized builder has an unsupported shape.

  Attributes:
      reason (str): Human-readable explanation.
      span (Optional[Span]): The closure or call the reason is about.
  """

  def __init__(self, reason: str, span: Optional[Span] = None) -> None:
    super().__init__(reason)
    self.reason = reason
    self.span = span


@dataclass(frozen=True)
class RewriteNote:
  """Something a reviewer should check in an otherwise successful rewrite."""

  message: str
  span: Optional[Span] = None
