"""
Type Resolver Protocol.

The migration engine never infers types itself. It asks a resolver that was
populated before the engine ran (by a compiler, or by the Rust frontend's
`SourceTypeResolver`).
"""

from typing import Optional, Protocol, Tuple

from builder_switcheroo.host.nodes import ClosureExpr, Expr
from builder_switcheroo.host.ty import AdtTy, Ty


class TypeResolver(Protocol):
  """Read-only type queries over one host tree."""

  def expr_type(self, expr: Expr) -> Optional[Ty]:
    """Static type of `expr`, or None when unknown."""
    ...

  def param_type(self, closure: ClosureExpr, index: int) -> Optional[Ty]:
    """Declared or inferred type of the closure's `index`-th parameter."""
    ...

  def def_path(self, ty: AdtTy) -> Tuple[str, ...]:
    """Defining namespace path of a nominal type, crate name first."""
    ...
