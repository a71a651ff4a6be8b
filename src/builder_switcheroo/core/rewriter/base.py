"""
Base Rewriter Implementation.

This module provides the `BuilderRewriter`, which turns the IR of one
recognized closure into serenity 0.12 source text:

1.  **Dispatch**: builders with a registered plugin use it; every other
    builder goes through `rewrite_generic` (``Builder::new(required...)``
    followed by setters).
2.  **Arguments**: `Literal` arguments are stitched back from source;
    `NestedClosure` arguments are rewritten recursively. A nested closure
    that raises `StructuralViolation` is emitted as written and noted.
3.  **Notes**: anything a reviewer should double-check is collected in
    `notes`; a rewrite with notes is not applied blindly.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from builder_switcheroo.config import RuntimeConfig
from builder_switcheroo.core.rewriter.errors import RewriteNote, StructuralViolation
from builder_switcheroo.core.rules import get_rewriter, required_fields
from builder_switcheroo.core.stitcher import SourceStitcher
from builder_switcheroo.core.structures import (
  BuilderArg,
  BuilderClosure,
  Call,
  CallChain,
  Literal,
  NestedClosure,
  PreludeStatement,
  Verbatim,
)
from builder_switcheroo.host.spans import ROOT_CTXT, Span


class BuilderRewriter:
  """
  Emits replacement text for builder closures and statement chains.

  Args:
      stitcher (SourceStitcher): Recovers argument and statement text.
      config (RuntimeConfig): Output layout, placeholder and required-field overrides.
      ctxt (int): Syntax context spans are walked back to.
  """

  def __init__(self, stitcher: SourceStitcher, config: RuntimeConfig, ctxt: int = ROOT_CTXT) -> None:
    self.stitcher = stitcher
    self.config = config
    self.ctxt = ctxt
    self.notes: List[RewriteNote] = []

  def note(self, message: str, span: Optional[Span] = None) -> None:
    self.notes.append(RewriteNote(message=message, span=span))

  # --- Dispatch ---

  def rewrite_closure(self, closure: BuilderClosure) -> str:
    """
    Rewrites one closure with its plugin, or generically.

    Raises:
        StructuralViolation: If the closure's shape is unsupported.
    """
    outer_ctxt = self.ctxt
    self.ctxt = closure.ctxt
    try:
      rewriter = get_rewriter(closure.builder_type)
      if rewriter is not None:
        return rewriter(closure, self)
      return self.rewrite_generic(closure)
    finally:
      self.ctxt = outer_ctxt

  def rewrite_generic(self, closure: BuilderClosure) -> str:
    """
    ``|b| b.name("n").colour(1)`` -> ``Builder::new("n").colour(1)``.

    With prelude statements the result is a block that declares the binding,
    replays the statements and yields the binding with the remaining setters.
    """
    required_args, setters = self.split_required(closure.builder_type, closure.call_chain.calls, closure.span)
    head = self.construct(closure.builder_type, required_args)
    if not closure.stmts:
      return head + self.render_setters(setters)

    lines = ["{", f"let mut {closure.binding} = {head};"]
    lines.extend(self.render_prelude(stmt) for stmt in closure.stmts)
    lines.append(closure.binding + self.render_setters(setters))
    lines.append("}")
    return "\n".join(lines)

  # --- Arguments ---

  def snippet(self, span: Span) -> str:
    return self.stitcher.snippet_or_placeholder(span, self.ctxt, on_missing=self._note_placeholder)

  def _note_placeholder(self, span: Span) -> None:
    self.note("original source text is unavailable; a placeholder was emitted", span)

  def render_arg(self, arg: BuilderArg) -> str:
    if isinstance(arg, Literal):
      return self.snippet(arg.span)
    try:
      return self.rewrite_closure(arg.closure)
    except StructuralViolation as violation:
      self.note(f"left unrewritten: {violation.reason}", violation.span or arg.closure.span)
      return self.snippet(arg.closure.span)

  def render_args(self, args: Iterable[BuilderArg]) -> str:
    return ", ".join(self.render_arg(arg) for arg in args)

  # --- Emission ---

  def split_required(
    self, builder_type: str, calls: Sequence[Call], span: Optional[Span] = None
  ) -> Tuple[List[str], List[Call]]:
    """
    Partitions `calls` into constructor arguments and trailing setters.

    Args:
        builder_type (str): Selects the required-field list.
        calls (Sequence[Call]): Calls in source order.
        span (Optional[Span]): Attached to notes about missing fields.

    Returns:
        Tuple[List[str], List[Call]]: Rendered required arguments in the
        declared field order, and the remaining calls in source order.
    """
    required = required_fields(builder_type, self.config)
    found: Dict[str, str] = {}
    setters: List[Call] = []
    for call in calls:
      if call.field in required:
        # A repeated required setter: the last call wins, as it did at runtime.
        found[call.field] = self.render_args(call.args)
      else:
        setters.append(call)

    args = []
    for name in required:
      if name in found:
        args.append(found[name])
      else:
        self.note(f"`{builder_type}::new` needs `{name}`, which the closure never sets", span)
    return args, setters

  @staticmethod
  def construct(builder_type: str, required_args: Sequence[str]) -> str:
    return f"{builder_type}::new({', '.join(required_args)})"

  def render_setters(self, calls: Iterable[Call]) -> str:
    sep = "\n" if self.config.multiline else ""
    return "".join(f"{sep}.{call.field}({self.render_args(call.args)})" for call in calls)

  def render_list(self, items: Sequence[str]) -> str:
    joiner = ",\n" if self.config.multiline else ", "
    return f"vec![{joiner.join(items)}]"

  def render_chain_stmt(self, chain: CallChain) -> str:
    """``b.f(x).g(y);`` -> ``b = b.f(x).g(y);``"""
    calls = "".join(f".{call.field}({self.render_args(call.args)})" for call in chain.calls)
    return f"{chain.receiver} = {chain.receiver}{calls};"

  def render_prelude(self, stmt: PreludeStatement) -> str:
    if isinstance(stmt, Verbatim):
      text = self.stitcher.resolve_snippet(stmt.span, self.ctxt)
      if text is None:
        self.note("statement text is unavailable; a placeholder was emitted", stmt.span)
        return f"{self.config.placeholder};"
      return text.strip()
    return self.render_chain_stmt(stmt.chain)

  # --- Shape checks for plugins ---

  @staticmethod
  def reject_prelude(closure: BuilderClosure) -> None:
    if closure.stmts:
      raise StructuralViolation(f"statements inside a {closure.builder_type} closure are not supported", closure.span)

  @staticmethod
  def expect_closure_arg(call: Call, span: Optional[Span] = None) -> BuilderClosure:
    """The single builder-closure argument of `call`."""
    if len(call.args) != 1 or not isinstance(call.args[0], NestedClosure):
      raise StructuralViolation(f"`{call.field}` must be given a builder closure", span)
    return call.args[0].closure

  @staticmethod
  def expect_literal_arg(call: Call, span: Optional[Span] = None) -> Literal:
    if len(call.args) != 1 or not isinstance(call.args[0], Literal):
      raise StructuralViolation(f"`{call.field}` must be given exactly one value", span)
    return call.args[0]
