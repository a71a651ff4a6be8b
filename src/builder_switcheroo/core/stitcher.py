"""
Source Stitcher.

Turns spans back into the text the user wrote. A span produced inside a
macro expansion is first walked out to the syntax context of the enclosing
closure, then sliced from the `SourceMap`.
"""

from typing import Callable, Optional

from builder_switcheroo.config import RuntimeConfig
from builder_switcheroo.host.spans import ROOT_CTXT, SourceMap, Span


class SourceStitcher:
  """
  Narrow ``span -> text`` capability over one `SourceMap`.

  Args:
      source_map (SourceMap): Owns file text and hygiene data.
      config (RuntimeConfig): Supplies the placeholder text.
  """

  def __init__(self, source_map: SourceMap, config: RuntimeConfig) -> None:
    self.source_map = source_map
    self.config = config

  def resolve_snippet(self, span: Span, ctxt: int = ROOT_CTXT) -> Optional[str]:
    """
    Original source text behind `span`, or None when it cannot be recovered
    (generated code, spans across files, positions out of range).
    """
    walked = self.source_map.hygiene.walk_chain(span, ctxt)
    return self.source_map.span_to_snippet(walked)

  def snippet_or_placeholder(
    self,
    span: Span,
    ctxt: int = ROOT_CTXT,
    on_missing: Optional[Callable[[Span], None]] = None,
  ) -> str:
    """
    Whitespace-trimmed text behind `span`, else ``config.placeholder``.

    Args:
        span (Span): Span to recover.
        ctxt (int): Syntax context to walk the span out to.
        on_missing (Optional[Callable[[Span], None]]): Called with `span` when
            the placeholder is emitted.
    """
    snippet = self.resolve_snippet(span, ctxt)
    if snippet is None:
      if on_missing is not None:
        on_missing(span)
      return self.config.placeholder
    return snippet.strip()
