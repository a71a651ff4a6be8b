"""
Host Expression Tree.

A deliberately small model of a Rust function body. Only the shapes the
migration engine inspects get their own class (closures, method calls, paths,
blocks); every other expression is a `CompoundExpr` that merely exposes its
children so drivers can keep walking.

Nodes compare and hash by identity, which lets a `TypeResolver` key its
pre-computed tables on the node objects themselves.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from builder_switcheroo.host.spans import Span
from builder_switcheroo.host.ty import Ty


@dataclass(eq=False)
class Node:
  span: Span

  def children(self) -> List["Node"]:
    """Direct sub-nodes in source order."""
    return []


# --- Patterns ---


@dataclass(eq=False)
class Pattern(Node):
  pass


@dataclass(eq=False)
class BindingPat(Pattern):
  """``name`` or ``mut name``."""

  name: str
  mutable: bool = False


@dataclass(eq=False)
class OtherPat(Pattern):
  """Any destructuring pattern; never inspected."""


# --- Expressions ---


@dataclass(eq=False)
class Expr(Node):
  pass


@dataclass(eq=False)
class PathExpr(Expr):
  """``a``, ``a::b::C``, ``self``."""

  segments: Tuple[str, ...]

  @property
  def single_ident(self) -> Optional[str]:
    if len(self.segments) == 1:
      return self.segments[0]
    return None


@dataclass(eq=False)
class LitExpr(Expr):
  """String, char, numeric and boolean literals."""

  kind: str


@dataclass(eq=False)
class MethodCallExpr(Expr):
  """``receiver.method(args...)``."""

  receiver: Expr
  method: str
  args: List[Expr] = field(default_factory=list)

  def children(self) -> List[Node]:
    return [self.receiver, *self.args]


@dataclass(eq=False)
class Param(Node):
  pattern: Pattern
  ty: Optional[Ty] = None


@dataclass(eq=False)
class ClosureExpr(Expr):
  params: List[Param]
  body: Expr
  is_move: bool = False

  def children(self) -> List[Node]:
    return [self.body]


@dataclass(eq=False)
class BlockExpr(Expr):
  """
  ``{ stmts; tail }``.

  Attributes:
      kind (str): ``""`` for plain blocks, else ``"unsafe"``, ``"async"``,
          ``"const"`` or ``"labeled"``.
  """

  stmts: List["Stmt"] = field(default_factory=list)
  tail: Optional[Expr] = None
  kind: str = ""

  def children(self) -> List[Node]:
    nodes: List[Node] = list(self.stmts)
    if self.tail is not None:
      nodes.append(self.tail)
    return nodes


@dataclass(eq=False)
class MacroCallExpr(Expr):
  """
  ``name!(...)``.

  Attributes:
      path (Tuple[str, ...]): Macro path, e.g. ``("tokio", "join")``.
      delimiter (str): Opening delimiter of the token tree.
      args (List[Expr]): The token tree parsed as ``,``/``;``-separated
          expressions. Empty when the tree is not an expression list.
  """

  path: Tuple[str, ...]
  delimiter: str = "("
  args: List[Expr] = field(default_factory=list)

  def children(self) -> List[Node]:
    return list(self.args)


@dataclass(eq=False)
class CompoundExpr(Expr):
  """
  Every other expression shape.

  Attributes:
      kind (str): e.g. ``"call"``, ``"field"``, ``"binary"``, ``"if"``, ``"match"``.
      parts (List[Node]): Sub-nodes in source order.
  """

  kind: str
  parts: List[Node] = field(default_factory=list)

  def children(self) -> List[Node]:
    return list(self.parts)


# --- Statements ---


@dataclass(eq=False)
class Stmt(Node):
  pass


@dataclass(eq=False)
class LetStmt(Stmt):
  pattern: Pattern
  ty: Optional[Ty] = None
  init: Optional[Expr] = None
  else_block: Optional[BlockExpr] = None

  def children(self) -> List[Node]:
    nodes: List[Node] = []
    if self.init is not None:
      nodes.append(self.init)
    if self.else_block is not None:
      nodes.append(self.else_block)
    return nodes


@dataclass(eq=False)
class SemiStmt(Stmt):
  """An expression terminated by ``;``. The span includes the semicolon."""

  expr: Expr

  def children(self) -> List[Node]:
    return [self.expr]


@dataclass(eq=False)
class ExprStmt(Stmt):
  """A block-like expression used as a statement without ``;``."""

  expr: Expr

  def children(self) -> List[Node]:
    return [self.expr]


@dataclass(eq=False)
class ItemStmt(Stmt):
  item: "Item"

  def children(self) -> List[Node]:
    return [self.item]


# --- Items ---


@dataclass(eq=False)
class Item(Node):
  pass


@dataclass(eq=False)
class FnItem(Item):
  name: str
  params: List[Param] = field(default_factory=list)
  body: Optional[BlockExpr] = None

  def children(self) -> List[Node]:
    return [self.body] if self.body is not None else []


@dataclass(eq=False)
class UseItem(Item):
  """
  A ``use`` declaration, flattened.

  Attributes:
      imports (List[Tuple[Tuple[str, ...], str]]): (full path, local name) pairs.
      globs (List[Tuple[str, ...]]): Prefixes imported with ``*``.
  """

  imports: List[Tuple[Tuple[str, ...], str]] = field(default_factory=list)
  globs: List[Tuple[str, ...]] = field(default_factory=list)


@dataclass(eq=False)
class ContainerItem(Item):
  """``impl``, ``trait`` and inline ``mod`` blocks."""

  kind: str
  items: List[Item] = field(default_factory=list)

  def children(self) -> List[Node]:
    return list(self.items)


@dataclass(eq=False)
class OtherItem(Item):
  """Structs, enums, consts and anything else the engine skips."""


@dataclass(eq=False)
class SourceModule(Node):
  """The root of one parsed file."""

  items: List[Item] = field(default_factory=list)
  file_name: str = "<input>"

  def children(self) -> List[Node]:
    return list(self.items)


def expr_as_ident(expr: Node) -> Optional[str]:
  """
  Returns the name when `expr` is a single-segment path, else None.
  """
  if isinstance(expr, PathExpr):
    return expr.single_ident
  return None


def last_path_segment(expr: Node) -> Optional[str]:
  """
  ``CreateInteractionResponseKind::Pong`` -> ``"Pong"``.
  """
  if isinstance(expr, PathExpr) and expr.segments:
    return expr.segments[-1]
  return None
