"""
Spans, Syntax Contexts and the Source Map.

A `Span` is a half-open byte range ``[lo, hi)`` into the global position space
of a `SourceMap`, tagged with the `SyntaxContext` id it was produced in. Spans
produced inside a macro expansion carry a non-root context whose `ExpnData`
records the call site, so they can be walked back to the text the user wrote
(`walk_chain`).

Positions are global: every file registered in a `SourceMap` occupies its own
disjoint range, so a span that straddles two files can be detected and refused.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

ROOT_CTXT = 0
"""The syntax context of code written directly by the user."""


@dataclass(frozen=True)
class Span:
  """
  A region of source text.

  Attributes:
      lo (int): Global start position (inclusive).
      hi (int): Global end position (exclusive).
      ctxt (int): Syntax context id the span was produced in.
  """

  lo: int
  hi: int
  ctxt: int = ROOT_CTXT

  @property
  def is_dummy(self) -> bool:
    """True for the zero-width placeholder span used by synthesized nodes."""
    return self.lo == 0 and self.hi == 0

  def contains(self, other: "Span") -> bool:
    """
    Checks whether `other` lies entirely inside this span.

    Args:
        other (Span): The candidate inner span.

    Returns:
        bool: True when ``self.lo <= other.lo`` and ``other.hi <= self.hi``.
    """
    return self.lo <= other.lo and other.hi <= self.hi

  def to(self, end: "Span") -> "Span":
    """Returns the span from the start of `self` to the end of `end`."""
    return Span(self.lo, max(self.hi, end.hi), self.ctxt)


DUMMY_SPAN = Span(0, 0)


@dataclass(frozen=True)
class ExpnData:
  """
  Describes one macro expansion.

  Attributes:
      call_site (Span): Span of the macro invocation that produced the expansion.
      generated (bool): True for expansions whose output has no user-written text
          behind it (derives, proc-macro output). Spans in such contexts cannot be
          stitched back to source.
  """

  call_site: Span
  generated: bool = False


class HygieneData:
  """
  Registry of syntax contexts and their expansion data.

  Context ``0`` is the root context and never has expansion data.
  """

  def __init__(self) -> None:
    self._expansions: Dict[int, ExpnData] = {}

  def fresh_expansion(self, call_site: Span, generated: bool = False) -> int:
    """
    Registers a new expansion and returns its context id.

    Args:
        call_site (Span): Where the macro was invoked.
        generated (bool): Whether the expansion output is synthetic.

    Returns:
        int: The new syntax context id.
    """
    ctxt = len(self._expansions) + 1
    self._expansions[ctxt] = ExpnData(call_site=call_site, generated=generated)
    return ctxt

  def expn_data(self, ctxt: int) -> Optional[ExpnData]:
    return self._expansions.get(ctxt)

  def walk_chain(self, span: Span, to: int) -> Span:
    """
    Walks `span` outwards through its expansion call sites until it reaches
    context `to` or the root context.

    Args:
        span (Span): The span to walk.
        to (int): The syntax context to stop at.

    Returns:
        Span: The outermost span reached.
    """
    seen = set()
    while span.ctxt != to and span.ctxt != ROOT_CTXT and span.ctxt not in seen:
      seen.add(span.ctxt)
      data = self.expn_data(span.ctxt)
      if data is None or data.generated:
        break
      span = data.call_site
    return span

  def is_generated(self, ctxt: int) -> bool:
    data = self.expn_data(ctxt)
    return data is not None and data.generated


@dataclass
class SourceFile:
  """
  One file registered in a `SourceMap`.

  Attributes:
      name (str): Display name (usually the path).
      text (str): Full file contents.
      start_pos (int): Global position of the first character.
  """

  name: str
  text: str
  start_pos: int
  _line_starts: List[int] = field(default_factory=list, repr=False)

  def __post_init__(self) -> None:
    starts = [0]
    for idx, char in enumerate(self.text):
      if char == "\n":
        starts.append(idx + 1)
    self._line_starts = starts

  @property
  def end_pos(self) -> int:
    return self.start_pos + len(self.text)

  def contains_pos(self, pos: int) -> bool:
    return self.start_pos <= pos <= self.end_pos

  def line_col(self, pos: int) -> Tuple[int, int]:
    """
    Converts a global position into a 1-based (line, column) pair.
    """
    local = pos - self.start_pos
    lo, hi = 0, len(self._line_starts) - 1
    while lo < hi:
      mid = (lo + hi + 1) // 2
      if self._line_starts[mid] <= local:
        lo = mid
      else:
        hi = mid - 1
    return lo + 1, local - self._line_starts[lo] + 1


class SourceMap:
  """
  Owns the text of every analysed file and the hygiene table.
  """

  def __init__(self) -> None:
    self.files: List[SourceFile] = []
    self.hygiene = HygieneData()
    # Position 0 is reserved for DUMMY_SPAN.
    self._next_pos = 1

  def add_file(self, name: str, text: str) -> SourceFile:
    """
    Registers a file and assigns it a disjoint position range.

    Args:
        name (str): Display name.
        text (str): File contents.

    Returns:
        SourceFile: The registered file.
    """
    source_file = SourceFile(name=name, text=text, start_pos=self._next_pos)
    self.files.append(source_file)
    # Leave a one-position gap so no span can legally touch two files.
    self._next_pos = source_file.end_pos + 1
    return source_file

  def lookup_file(self, pos: int) -> Optional[SourceFile]:
    for source_file in self.files:
      if source_file.contains_pos(pos):
        return source_file
    return None

  def span_to_snippet(self, span: Span) -> Optional[str]:
    """
    Slices the source text covered by `span`.

    Returns None for dummy spans, inverted spans, spans in generated code and
    spans that do not fall inside a single file.
    """
    if span.is_dummy or span.hi < span.lo:
      return None
    if self.hygiene.is_generated(span.ctxt):
      return None
    source_file = self.lookup_file(span.lo)
    if source_file is None or span.hi > source_file.end_pos:
      return None
    return source_file.text[span.lo - source_file.start_pos : span.hi - source_file.start_pos]

  def line_col(self, pos: int) -> Tuple[str, int, int]:
    """
    Resolves a global position to (file name, line, column).
    """
    source_file = self.lookup_file(pos)
    if source_file is None:
      return "<unknown>", 0, 0
    line, col = source_file.line_col(pos)
    return source_file.name, line, col
