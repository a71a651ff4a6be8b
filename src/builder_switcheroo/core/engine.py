"""
Migration Engine.

This module provides the `MigrationEngine`, the driver that turns one Rust
file into a `MigrationResult`:

1.  **Ingestion**: the file is registered in a `SourceMap` and parsed into a
    host tree. A syntax error fails the file, never the run.
2.  **Resolution**: a `SourceTypeResolver` pre-computes the types the
    recognizer asks about.
3.  **Visiting**: every function body is walked depth-first. Statements are
    tried as ``b.f(..);`` chains, closures as builder closures. A matched node
    is rewritten whole; its span joins the exclusion set and its children are
    not visited again.
4.  **Emission**: each match becomes a `Diagnostic`. Successful rewrites carry
    a `Suggestion`, which `apply_suggestions` substitutes into the text.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from rich.markup import escape

from builder_switcheroo.config import RuntimeConfig
from builder_switcheroo.core.diagnostics import (
  Applicability,
  Diagnostic,
  Level,
  MigrationResult,
  Suggestion,
  apply_suggestions,
)
from builder_switcheroo.core.recognizer import BuilderRecognizer
from builder_switcheroo.core.rewriter import BuilderRewriter, RewriteNote, StructuralViolation
from builder_switcheroo.core.stitcher import SourceStitcher
from builder_switcheroo.frontend.rust import RustSyntaxError, SourceTypeResolver, parse_source
from builder_switcheroo.host.nodes import ClosureExpr, Expr, Node, SourceModule, Stmt
from builder_switcheroo.host.resolver import TypeResolver
from builder_switcheroo.host.spans import ROOT_CTXT, SourceMap, Span
from builder_switcheroo.utils.console import log_warning

MESSAGE = "closure-style builders will break in the next version of serenity"
SUGGESTION_LABEL = "replace with"


@dataclass
class MigrationContext:
  """
  Everything `classify_and_rewrite` needs for one file.

  Attributes:
      recognizer (BuilderRecognizer): Classifies nodes.
      stitcher (SourceStitcher): Recovers source text.
      config (RuntimeConfig): Output and strictness options.
      notes (List[RewriteNote]): Notes of the most recent rewrite.
  """

  recognizer: BuilderRecognizer
  stitcher: SourceStitcher
  config: RuntimeConfig
  notes: List[RewriteNote] = field(default_factory=list)


def classify_and_rewrite(node: Union[Stmt, Expr], ctx: MigrationContext) -> Optional[Tuple[Span, str]]:
  """
  Classifies one node and, on a match, returns its span and replacement text.

  Statements match as ``b.f(..).g(..);`` on a builder-typed name (the receiver
  type is always required here); expressions match as builder closures.
  Notes recorded while rewriting replace ``ctx.notes``.

  Args:
      node (Union[Stmt, Expr]): Candidate node.
      ctx (MigrationContext): Per-file collaborators.

  Returns:
      Optional[Tuple[Span, str]]: None when the node is not a builder idiom.

  Raises:
      StructuralViolation: If the node is a builder idiom whose shape the
          rewriter does not support.
  """
  ctx.notes = []
  rewriter = BuilderRewriter(ctx.stitcher, ctx.config, ctxt=node.span.ctxt)

  if isinstance(node, Stmt):
    chain = ctx.recognizer.stmt_to_call_chain(node, strict=True)
    if chain is None:
      return None
    text = rewriter.render_chain_stmt(chain)
  else:
    closure = ctx.recognizer.parse_builder_closure(node)
    if closure is None:
      return None
    text = rewriter.rewrite_closure(closure)

  ctx.notes = list(rewriter.notes)
  return node.span, text


class MigrationEngine:
  """
  Migrates serenity 0.11 builder closures in one file at a time.

  Args:
      config (Optional[RuntimeConfig]): Runtime options. Loaded from the
          nearest ``pyproject.toml`` when omitted.
  """

  def __init__(self, config: Optional[RuntimeConfig] = None) -> None:
    self.config = config or RuntimeConfig.load()

  def run(self, code: str, path: str = "<input>") -> MigrationResult:
    """
    Executes the migration pipeline on one file.

    Args:
        code (str): Rust source text.
        path (str): Display name used in diagnostics.

    Returns:
        MigrationResult: Migrated code plus diagnostics. On a syntax error the
        code is returned unchanged with ``success=False``.
    """
    try:
      module, source_map = parse_source(code, path)
    except RustSyntaxError as e:
      return MigrationResult(code=code, errors=[f"{path}: {e}"], success=False)

    resolver = SourceTypeResolver(module, self.config)
    diagnostics = self.migrate_module(module, resolver, source_map)
    suggestions = [d.suggestion for d in diagnostics if d.suggestion is not None]
    return MigrationResult(code=apply_suggestions(code, suggestions), diagnostics=diagnostics)

  def migrate_module(self, module: SourceModule, resolver: TypeResolver, source_map: SourceMap) -> List[Diagnostic]:
    """
    Visits every function body of `module` and reports each builder site.

    Args:
        module (SourceModule): Parsed file.
        resolver (TypeResolver): Type answers for `module`.
        source_map (SourceMap): Text behind the module's spans.

    Returns:
        List[Diagnostic]: In source order of the matched spans.
    """
    ctx = MigrationContext(
      recognizer=BuilderRecognizer(resolver, self.config),
      stitcher=SourceStitcher(source_map, self.config),
      config=self.config,
    )
    visitor = _MigrationVisitor(ctx, source_map)
    visitor.visit(module)
    return visitor.diagnostics


class _MigrationVisitor:
  """Depth-first walk with an exclusion set of rewritten spans."""

  def __init__(self, ctx: MigrationContext, source_map: SourceMap) -> None:
    self.ctx = ctx
    self.source_map = source_map
    self.excluded: List[Span] = []
    self.diagnostics: List[Diagnostic] = []

  def visit(self, node: Node) -> None:
    if self._is_excluded(node.span):
      return
    if isinstance(node, (Stmt, ClosureExpr)) and self._try_node(node):
      return
    for child in node.children():
      self.visit(child)

  def _is_excluded(self, span: Span) -> bool:
    return any(done.contains(span) and done.ctxt == span.ctxt for done in self.excluded)

  def _try_node(self, node: Union[Stmt, ClosureExpr]) -> bool:
    try:
      match = classify_and_rewrite(node, self.ctx)
    except StructuralViolation as violation:
      self.excluded.append(node.span)
      self._report_violation(node.span, violation)
      return True
    if match is None:
      return False
    span, replacement = match
    self.excluded.append(span)
    self._report(span, replacement, self.ctx.notes)
    return True

  def _locate(self, span: Span) -> Diagnostic:
    walked = self.source_map.hygiene.walk_chain(span, ROOT_CTXT)
    name, line, column = self.source_map.line_col(walked.lo)
    source_file = self.source_map.lookup_file(walked.lo)
    start = end = 0
    if source_file is not None:
      start = walked.lo - source_file.start_pos
      end = walked.hi - source_file.start_pos
    return Diagnostic(message=MESSAGE, file=name, line=line, column=column, start=start, end=end)

  def _report(self, span: Span, replacement: str, notes: List[RewriteNote]) -> None:
    diagnostic = self._locate(span)
    diagnostic.notes = [note.message for note in notes]
    walked = self.source_map.hygiene.walk_chain(span, ROOT_CTXT)
    if self.source_map.span_to_snippet(walked) is None:
      diagnostic.notes.append("the builder is in generated code; no fix is offered")
    else:
      applicability = Applicability.MAYBE_INCORRECT if notes else Applicability.MACHINE_APPLICABLE
      diagnostic.suggestion = Suggestion(
        start=diagnostic.start,
        end=diagnostic.end,
        replacement=replacement,
        label=SUGGESTION_LABEL,
        applicability=applicability,
      )
    self.diagnostics.append(diagnostic)

  def _report_violation(self, span: Span, violation: StructuralViolation) -> None:
    diagnostic = self._locate(span)
    diagnostic.level = Level.NOTE
    diagnostic.notes = [f"not rewritten: {violation.reason}"]
    self.diagnostics.append(diagnostic)
    log_warning(f"{diagnostic.file}:{diagnostic.line}:{diagnostic.column}: {escape(violation.reason)}")
