"""
Host Boundary.

Everything the migration core consumes from its environment: spans and the
source map, the expression tree, resolved types and the resolver protocol.
"""

from builder_switcheroo.host.nodes import (
  BindingPat,
  BlockExpr,
  ClosureExpr,
  CompoundExpr,
  ContainerItem,
  Expr,
  ExprStmt,
  FnItem,
  Item,
  ItemStmt,
  LetStmt,
  LitExpr,
  MacroCallExpr,
  MethodCallExpr,
  Node,
  OtherItem,
  OtherPat,
  Param,
  PathExpr,
  Pattern,
  SemiStmt,
  SourceModule,
  Stmt,
  UseItem,
  expr_as_ident,
  last_path_segment,
)
from builder_switcheroo.host.resolver import TypeResolver
from builder_switcheroo.host.spans import DUMMY_SPAN, ROOT_CTXT, ExpnData, HygieneData, SourceFile, SourceMap, Span
from builder_switcheroo.host.ty import AdtTy, OpaqueTy, ParamTy, PathTy, PrimTy, RefTy, TupleTy, Ty

__all__ = [
  "AdtTy",
  "BindingPat",
  "BlockExpr",
  "ClosureExpr",
  "CompoundExpr",
  "ContainerItem",
  "DUMMY_SPAN",
  "ExpnData",
  "Expr",
  "ExprStmt",
  "FnItem",
  "HygieneData",
  "Item",
  "ItemStmt",
  "LetStmt",
  "LitExpr",
  "MacroCallExpr",
  "MethodCallExpr",
  "Node",
  "OpaqueTy",
  "OtherItem",
  "OtherPat",
  "Param",
  "ParamTy",
  "PathExpr",
  "PathTy",
  "Pattern",
  "PrimTy",
  "ROOT_CTXT",
  "RefTy",
  "SemiStmt",
  "SourceFile",
  "SourceMap",
  "SourceModule",
  "Span",
  "Stmt",
  "TupleTy",
  "Ty",
  "TypeResolver",
  "UseItem",
  "expr_as_ident",
  "last_path_segment",
]
