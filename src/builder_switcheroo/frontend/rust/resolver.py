"""
Source-Level Type Resolver.

Implements the `TypeResolver` protocol for a parsed file by running one
scope-aware pass over every function body before the engine starts:

- Parameter annotations are resolved through the file's ``use`` imports
  (``CreateMessage`` -> ``serenity::builder::CreateMessage``).
- Unannotated closure parameters take the builder type from the
  `ClosureSignatures` table, keyed by the method the closure is passed to
  and the builder type of that method's receiver.
- A method call on a builder receiver returns ``&mut`` of the receiver's
  builder, as every serenity 0.11 setter does.
- Local names resolve to whatever the innermost binding recorded.

Anything else stays unknown, which the engine treats as "no match".
"""

from typing import Dict, Iterator, List, Optional, Tuple

from builder_switcheroo.config import RuntimeConfig
from builder_switcheroo.core.types import as_builder_type, strip_references
from builder_switcheroo.frontend.rust.signatures import ClosureSignatures
from builder_switcheroo.host.nodes import (
  BindingPat,
  BlockExpr,
  ClosureExpr,
  CompoundExpr,
  ContainerItem,
  Expr,
  FnItem,
  Item,
  ItemStmt,
  LetStmt,
  MethodCallExpr,
  Node,
  PathExpr,
  Pattern,
  SourceModule,
  Stmt,
  UseItem,
)
from builder_switcheroo.host.ty import AdtTy, OpaqueTy, PathTy, PrimTy, RefTy, TupleTy, Ty

PRIMITIVES = frozenset(
  {
    "bool",
    "char",
    "str",
    "f32",
    "f64",
    "i8",
    "i16",
    "i32",
    "i64",
    "i128",
    "isize",
    "u8",
    "u16",
    "u32",
    "u64",
    "u128",
    "usize",
  }
)


class _Scope:
  """One lexical scope of local bindings."""

  def __init__(self, parent: Optional["_Scope"] = None) -> None:
    self.parent = parent
    self.names: Dict[str, Optional[Ty]] = {}

  def bind(self, name: str, ty: Optional[Ty]) -> None:
    self.names[name] = ty

  def lookup(self, name: str) -> Optional[Ty]:
    scope: Optional[_Scope] = self
    while scope is not None:
      if name in scope.names:
        return scope.names[name]
      scope = scope.parent
    return None


def _iter_nodes(root: Node) -> Iterator[Node]:
  stack: List[Node] = [root]
  while stack:
    node = stack.pop()
    yield node
    stack.extend(reversed(node.children()))


class SourceTypeResolver:
  """
  Pre-computed type tables for one `SourceModule`.

  Args:
      module (SourceModule): The parsed file.
      config (Optional[RuntimeConfig]): Supplies the builder namespace and
          extra closure signatures.
  """

  def __init__(self, module: SourceModule, config: Optional[RuntimeConfig] = None) -> None:
    self.config = config or RuntimeConfig()
    self.signatures = ClosureSignatures(self.config)
    self._aliases: Dict[str, Tuple[str, ...]] = {}
    self._globs: List[Tuple[str, ...]] = []
    self._expr_types: Dict[Expr, Ty] = {}
    self._param_types: Dict[Tuple[ClosureExpr, int], Ty] = {}

    self._collect_imports(module)
    for item in module.items:
      self._visit_item(item)

  # --- TypeResolver protocol ---

  def expr_type(self, expr: Expr) -> Optional[Ty]:
    return self._expr_types.get(expr)

  def param_type(self, closure: ClosureExpr, index: int) -> Optional[Ty]:
    return self._param_types.get((closure, index))

  def def_path(self, ty: AdtTy) -> Tuple[str, ...]:
    return ty.path

  # --- Annotations ---

  def _collect_imports(self, module: SourceModule) -> None:
    # Imports are flattened file-wide, including those inside `mod` blocks and fn bodies.
    for node in _iter_nodes(module):
      if isinstance(node, UseItem):
        for path, local in node.imports:
          if local != "_":
            self._aliases[local] = path
        self._globs.extend(node.globs)

  def builder_path(self, name: str) -> Tuple[str, ...]:
    return (self.config.builder_crate, self.config.builder_module, name)

  def resolve_annotation(self, ty: Optional[Ty]) -> Optional[Ty]:
    """
    Converts a syntactic type into a resolved one.

    Args:
        ty (Optional[Ty]): The annotation as parsed, or None.

    Returns:
        Optional[Ty]: The resolved type, or None when there was no annotation.
    """
    if ty is None:
      return None
    if isinstance(ty, RefTy):
      inner = self.resolve_annotation(ty.inner)
      return RefTy(inner if inner is not None else OpaqueTy(str(ty.inner)), ty.mutable)
    if isinstance(ty, TupleTy):
      return TupleTy(tuple(self.resolve_annotation(e) or OpaqueTy(str(e)) for e in ty.elems))
    if isinstance(ty, PathTy):
      return self._resolve_path(ty.segments)
    return ty

  def _resolve_path(self, segments: Tuple[str, ...]) -> Ty:
    head, rest = segments[0], segments[1:]
    if not rest and head in PRIMITIVES:
      return PrimTy(head)
    if head in self._aliases:
      return AdtTy(self._aliases[head] + rest)
    if not rest and head in self.signatures.known_builders:
      builder_module = (self.config.builder_crate, self.config.builder_module)
      if builder_module in self._globs:
        return AdtTy(builder_module + (head,))
    return AdtTy(segments)

  # --- Walk ---

  def _visit_item(self, item: Item) -> None:
    if isinstance(item, FnItem):
      if item.body is None:
        return
      scope = _Scope()
      for param in item.params:
        self._bind(scope, param.pattern, self.resolve_annotation(param.ty))
      self._visit(item.body, scope)
    elif isinstance(item, ContainerItem):
      for inner in item.items:
        self._visit_item(inner)

  @staticmethod
  def _bind(scope: _Scope, pattern: Pattern, ty: Optional[Ty]) -> None:
    # Names inside destructuring patterns are invisible to us.
    if isinstance(pattern, BindingPat):
      scope.bind(pattern.name, ty)

  def _visit_stmt(self, stmt: Stmt, scope: _Scope) -> None:
    if isinstance(stmt, LetStmt):
      init_ty = self._visit(stmt.init, scope) if stmt.init is not None else None
      if stmt.else_block is not None:
        self._visit(stmt.else_block, scope)
      declared = self.resolve_annotation(stmt.ty)
      self._bind(scope, stmt.pattern, declared if declared is not None else init_ty)
    elif isinstance(stmt, ItemStmt):
      self._visit_item(stmt.item)
    else:
      for child in stmt.children():
        self._visit(child, scope)

  def _visit(self, node: Node, scope: _Scope) -> Optional[Ty]:
    """Records types below `node` and returns the type of `node` itself."""
    if isinstance(node, BlockExpr):
      inner = _Scope(scope)
      for stmt in node.stmts:
        self._visit_stmt(stmt, inner)
      if node.tail is not None:
        self._visit(node.tail, inner)
      return None

    if isinstance(node, PathExpr):
      name = node.single_ident
      ty = scope.lookup(name) if name is not None else None
      if ty is not None:
        self._expr_types[node] = ty
      return ty

    if isinstance(node, MethodCallExpr):
      return self._visit_method_call(node, scope)

    if isinstance(node, ClosureExpr):
      self._visit_closure(node, scope, None)
      return None

    if isinstance(node, CompoundExpr) and node.kind == "paren":
      ty = self._visit(node.parts[0], scope)
      if ty is not None:
        self._expr_types[node] = ty
      return ty

    if isinstance(node, Stmt):
      self._visit_stmt(node, scope)
      return None

    for child in node.children():
      self._visit(child, scope)
    return None

  def _visit_method_call(self, call: MethodCallExpr, scope: _Scope) -> Optional[Ty]:
    receiver_ty = self._visit(call.receiver, scope)
    receiver_builder = as_builder_type(receiver_ty, self, self.config)

    for arg in call.args:
      if isinstance(arg, ClosureExpr):
        builder = self.signatures.lookup(call.method, receiver_builder, receiver_known=receiver_ty is not None)
        self._visit_closure(arg, scope, builder)
      else:
        self._visit(arg, scope)

    if receiver_builder is None:
      return None
    result = RefTy(strip_references(receiver_ty), True)
    self._expr_types[call] = result
    return result

  def _visit_closure(self, closure: ClosureExpr, scope: _Scope, builder: Optional[str]) -> None:
    inner = _Scope(scope)
    for index, param in enumerate(closure.params):
      ty = self.resolve_annotation(param.ty)
      if ty is None and builder is not None and len(closure.params) == 1:
        ty = RefTy(AdtTy(self.builder_path(builder)), True)
      if ty is not None:
        self._param_types[(closure, index)] = ty
      self._bind(inner, param.pattern, ty)
    self._visit(closure.body, inner)
