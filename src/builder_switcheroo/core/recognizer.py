"""
Builder Recognizer.

Classifies host nodes as builder idiom instances and lifts them into the IR:

- `unravel_call_chain`: ``b.f(x).g(|e| ...)`` -> `CallChain` in source order.
- `stmt_to_call_chain`: the same for a ``;``-terminated statement.
- `parse_builder_closure`: ``|b| ...`` -> `BuilderClosure`.

Every method returns None on "no match"; classification never raises.
"""

from typing import Optional, Tuple

from builder_switcheroo.config import RuntimeConfig
from builder_switcheroo.core.structures import (
  BuilderArg,
  BuilderClosure,
  Call,
  CallChain,
  ChainedAssignment,
  Literal,
  NestedClosure,
  PreludeStatement,
  Verbatim,
)
from builder_switcheroo.core.types import as_builder_type, as_mut_builder_type
from builder_switcheroo.host.nodes import (
  BindingPat,
  BlockExpr,
  ClosureExpr,
  Expr,
  MethodCallExpr,
  SemiStmt,
  Stmt,
  expr_as_ident,
)
from builder_switcheroo.host.resolver import TypeResolver


class BuilderRecognizer:
  """
  Stateless classifier over one resolved host tree.

  Args:
      resolver (TypeResolver): Answers type queries.
      config (RuntimeConfig): Builder namespace and strictness.
  """

  def __init__(self, resolver: TypeResolver, config: RuntimeConfig) -> None:
    self.resolver = resolver
    self.config = config

  def unravel_call_chain(self, expr: MethodCallExpr, strict: Optional[bool] = None) -> Optional[CallChain]:
    """
    Rebuilds ``receiver.call1(..)...callN(..)`` as a `CallChain`.

    The receiver is unravelled first and the current call is appended, so
    the result lists calls leftmost first.

    Args:
        expr (MethodCallExpr): The outermost (last) call of the chain.
        strict (Optional[bool]): Require the receiver's type to be a builder.
            Defaults to ``config.strict_receiver_types``.

    Returns:
        Optional[CallChain]: The chain, or None when the chain does not start
        at a plain name (or, when strict, at a builder-typed name).
    """
    if strict is None:
      strict = self.config.strict_receiver_types

    receiver = expr.receiver
    if isinstance(receiver, MethodCallExpr):
      chain = self.unravel_call_chain(receiver, strict)
    else:
      chain = self._chain_base(receiver, strict)
    if chain is None:
      return None
    args = tuple(self._classify_arg(arg) for arg in expr.args)
    return chain.appended(Call(field=expr.method, args=args))

  def _chain_base(self, receiver: Expr, strict: bool) -> Optional[CallChain]:
    name = expr_as_ident(receiver)
    if name is None:
      return None
    builder = as_builder_type(self.resolver.expr_type(receiver), self.resolver, self.config)
    if builder is None and strict:
      return None
    return CallChain(receiver=name, receiver_type=builder)

  def _classify_arg(self, arg: Expr) -> BuilderArg:
    closure = self.parse_builder_closure(arg)
    if closure is not None:
      return NestedClosure(closure)
    return Literal(span=arg.span, expr=arg)

  def stmt_to_call_chain(self, stmt: Stmt, strict: Optional[bool] = None) -> Optional[CallChain]:
    """``b.f(..).g(..);`` -> `CallChain`; any other statement is no match."""
    if isinstance(stmt, SemiStmt) and isinstance(stmt.expr, MethodCallExpr):
      return self.unravel_call_chain(stmt.expr, strict)
    return None

  def parse_builder_closure(self, expr: Expr) -> Optional[BuilderClosure]:
    """
    Classifies ``|b| ...`` where ``b: &mut Builder``.

    Args:
        expr (Expr): Any expression.

    Returns:
        Optional[BuilderClosure]: The lifted closure, or None.
    """
    if not isinstance(expr, ClosureExpr) or len(expr.params) != 1:
      return None
    pattern = expr.params[0].pattern
    if not isinstance(pattern, BindingPat):
      return None
    builder = as_mut_builder_type(self.resolver.param_type(expr, 0), self.resolver, self.config)
    if builder is None:
      return None

    body = self._parse_closure_body(expr.body, pattern.name)
    if body is None:
      return None
    stmts, chain = body
    return BuilderClosure(
      builder_type=builder,
      binding=pattern.name,
      stmts=stmts,
      call_chain=chain,
      span=expr.span,
    )

  def _parse_closure_body(self, body: Expr, binding: str) -> Optional[Tuple[Tuple[PreludeStatement, ...], CallChain]]:
    if isinstance(body, MethodCallExpr):
      chain = self.unravel_call_chain(body)
      return ((), chain) if chain is not None else None

    if expr_as_ident(body) == binding:
      return (), CallChain(receiver=binding)

    if not isinstance(body, BlockExpr) or body.kind or body.tail is None:
      return None

    tail = body.tail
    if isinstance(tail, MethodCallExpr):
      chain = self.unravel_call_chain(tail)
      if chain is None:
        return None
    elif expr_as_ident(tail) == binding:
      chain = CallChain(receiver=binding)
    else:
      return None

    stmts = tuple(self._parse_stmt(stmt, binding) for stmt in body.stmts)
    return stmts, chain

  def _parse_stmt(self, stmt: Stmt, binding: str) -> PreludeStatement:
    # Statement chains always need a resolved receiver.
    chain = self.stmt_to_call_chain(stmt, strict=True)
    if chain is not None and chain.receiver == binding:
      return ChainedAssignment(chain=chain, span=stmt.span)
    return Verbatim(span=stmt.span)
