"""
Rust Parser Implementation.

Parses a stream of `Token`s from the Lexer into the host expression tree.

The parser understands the subset of Rust needed to find builder closures
inside function bodies: items (``use``, ``fn``, ``impl``/``trait``/``mod``
bodies), statements, the full expression grammar with precedence climbing,
closures with typed parameters, reference/path/tuple types, and macro calls
whose arguments form an expression list. Everything else (struct definitions,
item macros, other macro token trees, generic argument lists, patterns) is
consumed as balanced token groups and kept opaque.
"""

from typing import List, Optional, Set, Tuple

from builder_switcheroo.frontend.rust.tokens import RustLexer, RustSyntaxError, Token, TokenType
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
  OtherItem,
  OtherPat,
  Param,
  PathExpr,
  Pattern,
  SemiStmt,
  SourceModule,
  Stmt,
  UseItem,
)
from builder_switcheroo.host.spans import Span
from builder_switcheroo.host.ty import OpaqueTy, PathTy, RefTy, TupleTy, Ty

_OPEN = {"(": ")", "[": "]", "{": "}"}
_CLOSE = {")", "]", "}"}

_BINARY_PRECEDENCE = {
  "||": 1,
  "&&": 2,
  "==": 3,
  "!=": 3,
  "<": 3,
  ">": 3,
  "<=": 3,
  ">=": 3,
  "|": 4,
  "^": 5,
  "&": 6,
  "+": 8,
  "-": 8,
  "*": 9,
  "/": 9,
  "%": 9,
}
_SHIFT_PRECEDENCE = 7
# `let` scrutinees in conditions bind tighter than `&&`.
_LET_SCRUTINEE_PRECEDENCE = 3

_ASSIGN_OPS = {"=", "+=", "-=", "*=", "/=", "%=", "^=", "&=", "|="}
_ITEM_KEYWORDS = {"fn", "use", "struct", "enum", "impl", "trait", "mod", "type", "extern", "pub"}
_BLOCK_LIKE_KINDS = {"if", "match", "loop", "while", "for", "labeled"}


class RustParser:
  """
  Recursive descent parser for Rust source files.
  """

  def __init__(self, code: str, start_pos: int = 0, file_name: str = "<input>") -> None:
    """
    Initialize the parser.

    Args:
        code (str): The raw Rust source string.
        start_pos (int): Global position of the first character (see `SourceMap.add_file`).
        file_name (str): Name recorded on the resulting module.
    """
    self.lexer = RustLexer()
    self.tokens = list(self.lexer.tokenize(code, start_pos))
    self.pos = 0
    self.file_name = file_name
    self._module_span = Span(start_pos, start_pos + len(code))

  def parse(self) -> SourceModule:
    """
    Parses the entire file.
    """
    items = self._parse_items(in_braces=False)
    return SourceModule(self._module_span, items=items, file_name=self.file_name)

  def parse_expression(self) -> Expr:
    """
    Parses the input as one standalone expression.
    """
    expr = self._parse_expr()
    if not self._is_eof():
      raise self._error(f"Unexpected token '{self._peek().value}'", self._peek())
    return expr

  # --- Token Helpers ---

  def _peek(self, offset: int = 0) -> Optional[Token]:
    """Looks ahead at the pending token."""
    if self.pos + offset < len(self.tokens):
      return self.tokens[self.pos + offset]
    return None

  def _peek_kind(self, offset: int = 0) -> Optional[TokenType]:
    token = self._peek(offset)
    return token.kind if token else None

  @property
  def _prev(self) -> Token:
    return self.tokens[self.pos - 1]

  def _is_eof(self) -> bool:
    return self.pos >= len(self.tokens)

  def _consume(self) -> Token:
    """Consumes the current token."""
    token = self._peek()
    if not token:
      raise RustSyntaxError("Unexpected End of File.")
    self.pos += 1
    return token

  def _at(self, value: str, offset: int = 0) -> bool:
    """Checks if the token at `offset` is the punctuation or keyword `value`."""
    token = self._peek(offset)
    return token is not None and token.kind in (TokenType.PUNCT, TokenType.IDENT) and token.value == value

  def _eat(self, value: str) -> Optional[Token]:
    if self._at(value):
      return self._consume()
    return None

  def _expect(self, value: str) -> Token:
    token = self._peek()
    if not token:
      raise RustSyntaxError(f"Unexpected End of File, expected '{value}'.")
    if not self._at(value):
      raise self._error(f"Expected '{value}', got '{token.value}'", token)
    return self._consume()

  def _expect_ident(self) -> Token:
    token = self._peek()
    if not token:
      raise RustSyntaxError("Unexpected End of File, expected identifier.")
    if token.kind != TokenType.IDENT:
      raise self._error(f"Expected identifier, got '{token.value}'", token)
    return self._consume()

  def _error(self, message: str, token: Optional[Token]) -> RustSyntaxError:
    if token is None:
      return RustSyntaxError(message)
    return RustSyntaxError(message, token.line, token.column)

  def _span(self, start: Token) -> Span:
    """Span from `start` to the most recently consumed token."""
    return Span(start.lo, self._prev.hi)

  @staticmethod
  def _adjacent(left: Token, right: Token) -> bool:
    return left.hi == right.lo

  # --- Skipping ---

  def _skip_token_tree(self) -> Token:
    """Consumes a balanced delimited group and returns its closing token."""
    open_tok = self._consume()
    if open_tok.kind != TokenType.PUNCT or open_tok.value not in _OPEN:
      raise self._error(f"Expected delimiter, got '{open_tok.value}'", open_tok)
    stack = [_OPEN[open_tok.value]]
    token = open_tok
    while stack:
      token = self._consume()
      if token.kind != TokenType.PUNCT:
        continue
      if token.value in _OPEN:
        stack.append(_OPEN[token.value])
      elif token.value in _CLOSE:
        if token.value != stack[-1]:
          raise self._error(f"Mismatched delimiter '{token.value}'", token)
        stack.pop()
    return token

  def _skip_attributes(self) -> None:
    while self._at("#") and (self._at("[", 1) or (self._at("!", 1) and self._at("[", 2))):
      self._consume()
      self._eat("!")
      self._skip_token_tree()

  def _skip_generics(self) -> None:
    """Consumes a balanced ``<...>`` group."""
    self._expect("<")
    depth = 1
    while depth:
      token = self._peek()
      if token is None:
        raise RustSyntaxError("Unexpected End of File inside generic arguments.")
      if token.kind == TokenType.PUNCT and token.value in _OPEN:
        self._skip_token_tree()
        continue
      self._consume()
      if token.kind != TokenType.PUNCT:
        continue
      if token.value == "<":
        depth += 1
      elif token.value == ">":
        depth -= 1

  def _skip_until(self, stops: Set[str]) -> None:
    """Consumes tokens (whole groups at a time) up to, not including, a stop token."""
    while not self._is_eof():
      token = self._peek()
      if token.kind in (TokenType.PUNCT, TokenType.IDENT) and token.value in stops:
        return
      if token.kind == TokenType.PUNCT and token.value in _OPEN:
        self._skip_token_tree()
        continue
      if token.kind == TokenType.PUNCT and token.value in _CLOSE:
        raise self._error(f"Unbalanced delimiter '{token.value}'", token)
      self._consume()
    raise RustSyntaxError(f"Unexpected End of File, expected one of {sorted(stops)}.")

  def _skip_item_rest(self) -> None:
    """Skips a struct/enum/extern item: up to `;` or through a trailing `{...}` group."""
    while True:
      token = self._peek()
      if token is None:
        raise RustSyntaxError("Unexpected End of File inside item.")
      if token.is_punct(";"):
        self._consume()
        return
      if token.is_punct("{"):
        self._skip_token_tree()
        self._eat(";")
        return
      if token.kind == TokenType.PUNCT and token.value in _OPEN:
        self._skip_token_tree()
        continue
      if token.kind == TokenType.PUNCT and token.value in _CLOSE:
        raise self._error(f"Unbalanced delimiter '{token.value}'", token)
      self._consume()

  # --- Items ---

  def _parse_items(self, in_braces: bool) -> List[Item]:
    items: List[Item] = []
    while True:
      self._skip_attributes()
      if self._is_eof():
        if in_braces:
          raise RustSyntaxError("Unexpected End of File, expected '}'.")
        break
      if in_braces and self._at("}"):
        break
      if self._eat(";"):
        continue
      items.append(self._parse_item())
    return items

  def _at_item_start(self) -> bool:
    token = self._peek()
    if token is None or token.kind != TokenType.IDENT:
      return False
    value = token.value
    if value in _ITEM_KEYWORDS:
      return True
    if value in ("const", "static"):
      return self._peek_kind(1) == TokenType.IDENT and not self._at("move", 1)
    if value in ("unsafe", "async"):
      return any(self._at(kw, 1) for kw in ("fn", "impl", "trait", "unsafe", "extern"))
    if value == "macro_rules":
      return self._at("!", 1)
    return False

  def _parse_item(self) -> Item:
    self._skip_attributes()
    start = self._peek()
    if self._eat("pub") and self._at("("):
      self._skip_token_tree()

    # Qualifiers: async, unsafe, const fn, extern "C" fn
    while True:
      if self._at("async") or self._at("unsafe"):
        self._consume()
      elif self._at("const") and any(self._at(kw, 1) for kw in ("fn", "unsafe", "async", "extern")):
        self._consume()
      elif self._at("extern") and (self._at("fn", 1) or (self._peek_kind(1) == TokenType.STRING and self._at("fn", 2))):
        self._consume()
        if self._peek_kind() == TokenType.STRING:
          self._consume()
      else:
        break

    token = self._peek()
    if token is None:
      raise RustSyntaxError("Unexpected End of File, expected item.")

    if token.is_keyword("fn"):
      return self._parse_fn(start)
    if token.is_keyword("use"):
      return self._parse_use(start)
    if token.value in ("impl", "trait", "mod") and token.kind == TokenType.IDENT:
      kind = self._consume().value
      self._skip_until({"{", ";"})
      if self._eat(";"):
        return OtherItem(self._span(start))
      self._expect("{")
      items = self._parse_items(in_braces=True)
      self._expect("}")
      return ContainerItem(self._span(start), kind=kind, items=items)
    if token.kind == TokenType.IDENT and self._at("!", 1):
      # Item macros: macro_rules! name { ... }, lazy_static! { ... }
      self._consume()
      self._consume()
      if self._peek_kind() == TokenType.IDENT:
        self._consume()
      self._skip_token_tree()
      self._eat(";")
      return OtherItem(self._span(start))
    if token.value in ("const", "static", "type") and token.kind == TokenType.IDENT:
      self._skip_until({";"})
      self._expect(";")
      return OtherItem(self._span(start))
    if token.kind == TokenType.IDENT:
      self._skip_item_rest()
      return OtherItem(self._span(start))
    raise self._error(f"Unexpected token '{token.value}'", token)

  def _parse_fn(self, start: Token) -> FnItem:
    self._expect("fn")
    name = self._expect_ident().value
    if self._at("<"):
      self._skip_generics()
    self._expect("(")
    params: List[Param] = []
    while not self._at(")"):
      params.append(self._parse_fn_param())
      if not self._eat(","):
        break
    self._expect(")")
    # Return type and where clause
    self._skip_until({"{", ";"})
    body = None
    if self._at("{"):
      body = self._parse_block()
    else:
      self._expect(";")
    return FnItem(self._span(start), name=name, params=params, body=body)

  def _parse_fn_param(self) -> Param:
    self._skip_attributes()
    start = self._peek()
    if start is None:
      raise RustSyntaxError("Unexpected End of File in parameter list.")

    # Receivers: self, mut self, &self, &'a mut self, self: Box<Self>
    idx = 0
    if self._at("&"):
      idx = 1
      if self._peek_kind(idx) == TokenType.LIFETIME:
        idx += 1
    if self._at("mut", idx):
      idx += 1
    if self._at("self", idx) and not self._at("::", idx + 1):
      for _ in range(idx + 1):
        self._consume()
      ty = self._parse_type() if self._eat(":") else None
      span = self._span(start)
      return Param(span, BindingPat(span, "self"), ty)

    pattern = self._parse_pattern({":", ",", ")"})
    ty = self._parse_type() if self._eat(":") else None
    return Param(self._span(start), pattern, ty)

  def _parse_use(self, start: Token) -> UseItem:
    self._expect("use")
    imports: List[Tuple[Tuple[str, ...], str]] = []
    globs: List[Tuple[str, ...]] = []
    self._parse_use_tree((), imports, globs)
    self._expect(";")
    return UseItem(self._span(start), imports=imports, globs=globs)

  def _parse_use_tree(
    self,
    prefix: Tuple[str, ...],
    imports: List[Tuple[Tuple[str, ...], str]],
    globs: List[Tuple[str, ...]],
  ) -> None:
    self._eat("::")
    if self._eat("{"):
      while not self._at("}"):
        self._parse_use_tree(prefix, imports, globs)
        if not self._eat(","):
          break
      self._expect("}")
      return
    if self._eat("*"):
      globs.append(prefix)
      return

    path = list(prefix)
    while True:
      name = self._expect_ident().value
      if self._eat("::"):
        path.append(name)
        if self._at("{") or self._at("*"):
          self._parse_use_tree(tuple(path), imports, globs)
          return
        continue
      if name == "self":
        full = tuple(path)
        local = path[-1] if path else name
      else:
        full = tuple(path + [name])
        local = name
      if self._eat("as"):
        local = self._expect_ident().value
      imports.append((full, local))
      return

  # --- Patterns & Types ---

  def _parse_pattern(self, stops: Set[str]) -> Pattern:
    """
    Consumes a pattern up to one of `stops` at nesting depth zero.

    Only ``name`` and ``mut name`` are understood; anything else is opaque.
    """
    begin = self.pos
    while not self._is_eof():
      token = self._peek()
      if token.kind in (TokenType.PUNCT, TokenType.IDENT) and token.value in stops:
        break
      if token.kind == TokenType.PUNCT and token.value in _OPEN:
        self._skip_token_tree()
        continue
      if token.kind == TokenType.PUNCT and token.value in _CLOSE:
        break
      self._consume()

    consumed = self.tokens[begin : self.pos]
    if not consumed:
      raise self._error("Expected pattern", self._peek())
    span = Span(consumed[0].lo, consumed[-1].hi)
    if len(consumed) == 1 and consumed[0].kind == TokenType.IDENT and consumed[0].value != "_":
      return BindingPat(span, consumed[0].value)
    if len(consumed) == 2 and consumed[0].is_keyword("mut") and consumed[1].kind == TokenType.IDENT:
      return BindingPat(span, consumed[1].value, mutable=True)
    return OtherPat(span)

  def _parse_type(self) -> Ty:
    token = self._peek()
    if token is None:
      raise RustSyntaxError("Unexpected End of File, expected type.")

    if token.is_punct("&") or token.is_punct("&&"):
      self._consume()
      if self._peek_kind() == TokenType.LIFETIME:
        self._consume()
      mutable = self._eat("mut") is not None
      ty: Ty = RefTy(self._parse_type(), mutable)
      if token.value == "&&":
        ty = RefTy(ty, False)
      return ty
    if token.is_punct("*"):
      self._consume()
      if not self._eat("const"):
        self._expect("mut")
      self._parse_type()
      return OpaqueTy("*ptr")
    if token.is_punct("("):
      self._consume()
      elems: List[Ty] = []
      trailing = False
      while not self._at(")"):
        elems.append(self._parse_type())
        trailing = self._eat(",") is not None
        if not trailing:
          break
      self._expect(")")
      if len(elems) == 1 and not trailing:
        return elems[0]
      return TupleTy(tuple(elems))
    if token.is_punct("["):
      self._skip_token_tree()
      return OpaqueTy("[_]")
    if token.is_punct("!"):
      self._consume()
      return OpaqueTy("!")
    if token.is_punct("<"):
      # Qualified path: <T as Trait>::Assoc
      self._skip_generics()
      while self._eat("::"):
        self._parse_path_type()
      return OpaqueTy("<qualified>")
    if token.is_keyword("impl") or token.is_keyword("dyn"):
      self._consume()
      self._parse_bounds()
      return OpaqueTy(token.value)
    if token.is_keyword("for"):
      self._consume()
      self._skip_generics()
      return self._parse_type()
    if token.is_keyword("fn") or token.is_keyword("unsafe") or token.is_keyword("extern"):
      self._eat("unsafe")
      if self._eat("extern") and self._peek_kind() == TokenType.STRING:
        self._consume()
      self._expect("fn")
      self._skip_token_tree()
      if self._eat("->"):
        self._parse_type()
      return OpaqueTy("fn")
    if token.kind == TokenType.LIFETIME:
      self._consume()
      return OpaqueTy(token.value)
    if token.kind == TokenType.IDENT or token.is_punct("::"):
      return self._parse_path_type()
    raise self._error(f"Expected type, got '{token.value}'", token)

  def _parse_path_type(self) -> PathTy:
    segments: List[str] = []
    self._eat("::")
    while True:
      segments.append(self._expect_ident().value)
      if self._at("<") or (self._at("::") and self._at("<", 1)):
        self._eat("::")
        self._skip_generics()
      elif self._at("(") and segments[-1] in ("Fn", "FnMut", "FnOnce"):
        self._skip_token_tree()
        if self._eat("->"):
          self._parse_type()
      if self._at("::") and self._peek_kind(1) == TokenType.IDENT:
        self._consume()
        continue
      break
    return PathTy(tuple(segments))

  def _parse_bounds(self) -> None:
    while True:
      self._eat("?")
      if self._peek_kind() == TokenType.LIFETIME:
        self._consume()
      elif self._at("("):
        self._skip_token_tree()
      else:
        if self._eat("for"):
          self._skip_generics()
        self._parse_path_type()
      if not self._eat("+"):
        break

  # --- Blocks & Statements ---

  def _parse_block(self, kind: str = "", start: Optional[Token] = None) -> BlockExpr:
    brace = self._expect("{")
    begin = start or brace
    self._skip_attributes()
    stmts: List[Stmt] = []
    tail: Optional[Expr] = None

    while not self._at("}"):
      if self._is_eof():
        raise RustSyntaxError("Unexpected End of File, expected '}'.")
      if self._eat(";"):
        continue
      self._skip_attributes()
      if self._at("}"):
        break
      if self._at("let"):
        stmts.append(self._parse_let())
        continue
      if self._at_item_start():
        item = self._parse_item()
        stmts.append(ItemStmt(item.span, item))
        continue

      stmt_start = self._peek()
      expr = self._parse_statement_expr()
      if self._eat(";"):
        stmts.append(SemiStmt(self._span(stmt_start), expr))
        continue
      if self._at("}"):
        tail = expr
        break
      if self._is_block_like(expr):
        stmts.append(ExprStmt(expr.span, expr))
        continue
      token = self._peek()
      raise self._error(f"Expected ';' or '}}', got '{token.value}'", token)

    self._expect("}")
    return BlockExpr(Span(begin.lo, self._prev.hi), stmts=stmts, tail=tail, kind=kind)

  def _parse_let(self) -> LetStmt:
    start = self._expect("let")
    pattern = self._parse_pattern({":", "=", ";"})
    ty = self._parse_type() if self._eat(":") else None
    init = None
    else_block = None
    if self._eat("="):
      init = self._parse_expr()
      if self._eat("else"):
        else_block = self._parse_block()
    self._expect(";")
    return LetStmt(self._span(start), pattern, ty=ty, init=init, else_block=else_block)

  @staticmethod
  def _is_block_like(expr: Expr) -> bool:
    if isinstance(expr, BlockExpr):
      return True
    if isinstance(expr, CompoundExpr):
      return expr.kind in _BLOCK_LIKE_KINDS
    if isinstance(expr, MacroCallExpr):
      return expr.delimiter == "{"
    return False

  def _starts_block_like(self) -> bool:
    token = self._peek()
    if token is None:
      return False
    if token.is_punct("{") or token.kind == TokenType.LIFETIME:
      return True
    if token.kind != TokenType.IDENT:
      return False
    if token.value in ("if", "match", "loop", "while", "for"):
      return True
    if token.value in ("unsafe", "const") and self._at("{", 1):
      return True
    if token.value == "async":
      return self._at("{", 1) or (self._at("move", 1) and self._at("{", 2))
    return False

  def _parse_statement_expr(self) -> Expr:
    """
    Parses an expression in statement position.

    A block-like expression ends the statement unless it is directly followed
    by a method call, field access or ``?``.
    """
    if self._starts_block_like():
      expr = self._parse_primary(no_struct=False)
      if self._at(".") or self._at("?"):
        expr = self._parse_postfix(expr)
        return self._parse_expr(lhs=expr)
      return expr
    return self._parse_expr()

  # --- Expressions ---

  def _parse_expr(self, no_struct: bool = False, lhs: Optional[Expr] = None) -> Expr:
    left = self._parse_range(no_struct, lhs)
    width = self._assign_op_width()
    if width:
      for _ in range(width):
        self._consume()
      right = self._parse_expr(no_struct)
      return CompoundExpr(left.span.to(right.span), "assign", [left, right])
    return left

  def _assign_op_width(self) -> int:
    token = self._peek()
    if token is None or token.kind != TokenType.PUNCT:
      return 0
    if token.value in _ASSIGN_OPS:
      return 1
    nxt = self._peek(1)
    if nxt is not None and self._adjacent(token, nxt):
      # `<<=` and `>>=` arrive as `<` `<=` and `>` `>=`
      if (token.value, nxt.value) in (("<", "<="), (">", ">=")):
        return 2
    return 0

  def _can_start_expr(self, no_struct: bool) -> bool:
    token = self._peek()
    if token is None:
      return False
    if token.kind == TokenType.PUNCT:
      if token.value == "{":
        return not no_struct
      return token.value in ("(", "[", "|", "||", "-", "!", "*", "&", "&&", "::", "<", "..", "#")
    if token.kind == TokenType.IDENT:
      return token.value not in ("as", "else", "in")
    return True

  def _parse_range(self, no_struct: bool, lhs: Optional[Expr] = None) -> Expr:
    if lhs is None and (self._at("..") or self._at("..=")):
      start = self._consume()
      if self._can_start_expr(no_struct):
        end = self._parse_bin(0, no_struct)
        return CompoundExpr(Span(start.lo, end.span.hi), "range", [end])
      return CompoundExpr(Span(start.lo, start.hi), "range", [])

    left = self._parse_bin(0, no_struct, lhs)
    if self._at("..") or self._at("..="):
      op = self._consume()
      if self._can_start_expr(no_struct):
        right = self._parse_bin(0, no_struct)
        return CompoundExpr(left.span.to(right.span), "range", [left, right])
      return CompoundExpr(Span(left.span.lo, op.hi), "range", [left])
    return left

  def _peek_binop(self) -> Optional[Tuple[int, int]]:
    """Returns (precedence, token width) of the pending binary operator."""
    token = self._peek()
    if token is None or token.kind != TokenType.PUNCT:
      return None
    nxt = self._peek(1)
    if token.value in ("<", ">") and nxt is not None and self._adjacent(token, nxt):
      if nxt.value == token.value:
        return _SHIFT_PRECEDENCE, 2
      if nxt.value in ("<=", ">="):
        return None
    if token.value in _BINARY_PRECEDENCE:
      return _BINARY_PRECEDENCE[token.value], 1
    return None

  def _parse_bin(self, min_prec: int, no_struct: bool, lhs: Optional[Expr] = None) -> Expr:
    left = lhs if lhs is not None else self._parse_cast(no_struct)
    while True:
      op = self._peek_binop()
      if op is None:
        break
      prec, width = op
      if prec < min_prec:
        break
      for _ in range(width):
        self._consume()
      right = self._parse_bin(prec + 1, no_struct)
      left = CompoundExpr(left.span.to(right.span), "binary", [left, right])
    return left

  def _parse_cast(self, no_struct: bool) -> Expr:
    expr = self._parse_unary(no_struct)
    while self._eat("as"):
      self._parse_type()
      expr = CompoundExpr(Span(expr.span.lo, self._prev.hi), "cast", [expr])
    return expr

  def _parse_unary(self, no_struct: bool) -> Expr:
    token = self._peek()
    if token is not None and token.kind == TokenType.PUNCT:
      if token.value in ("-", "!", "*"):
        self._consume()
        operand = self._parse_unary(no_struct)
        return CompoundExpr(Span(token.lo, operand.span.hi), "unary", [operand])
      if token.value in ("&", "&&"):
        self._consume()
        self._eat("mut")
        operand = self._parse_unary(no_struct)
        return CompoundExpr(Span(token.lo, operand.span.hi), "ref", [operand])
    return self._parse_postfix(self._parse_primary(no_struct))

  def _parse_postfix(self, expr: Expr) -> Expr:
    while True:
      if self._at("?"):
        token = self._consume()
        expr = CompoundExpr(Span(expr.span.lo, token.hi), "try", [expr])
        continue

      if self._at("."):
        self._consume()
        name_tok = self._peek()
        if name_tok is None:
          raise RustSyntaxError("Unexpected End of File after '.'.")
        if name_tok.kind == TokenType.NUMBER:
          self._consume()
          expr = CompoundExpr(Span(expr.span.lo, name_tok.hi), "field", [expr])
          continue
        name_tok = self._expect_ident()
        if name_tok.value == "await":
          expr = CompoundExpr(Span(expr.span.lo, name_tok.hi), "await", [expr])
          continue
        if self._at("::") and self._at("<", 1):
          self._consume()
          self._skip_generics()
        if self._at("("):
          args, end = self._parse_call_args()
          expr = MethodCallExpr(Span(expr.span.lo, end.hi), receiver=expr, method=name_tok.value, args=args)
          continue
        expr = CompoundExpr(Span(expr.span.lo, name_tok.hi), "field", [expr])
        continue

      if self._at("("):
        args, end = self._parse_call_args()
        expr = CompoundExpr(Span(expr.span.lo, end.hi), "call", [expr, *args])
        continue

      if self._at("["):
        self._consume()
        index = self._parse_expr()
        end = self._expect("]")
        expr = CompoundExpr(Span(expr.span.lo, end.hi), "index", [expr, index])
        continue

      return expr

  def _parse_call_args(self) -> Tuple[List[Expr], Token]:
    self._expect("(")
    args: List[Expr] = []
    while not self._at(")"):
      args.append(self._parse_expr())
      if not self._eat(","):
        break
    end = self._expect(")")
    return args, end

  def _parse_primary(self, no_struct: bool) -> Expr:
    token = self._peek()
    if token is None:
      raise RustSyntaxError("Unexpected End of File, expected expression.")

    if token.kind in (TokenType.STRING, TokenType.CHAR, TokenType.NUMBER):
      self._consume()
      return LitExpr(Span(token.lo, token.hi), kind=token.kind.name.lower())

    if token.kind == TokenType.LIFETIME:
      # Labeled loop or block: 'outer: loop { ... }
      self._consume()
      self._expect(":")
      inner = self._parse_primary(no_struct)
      return CompoundExpr(Span(token.lo, inner.span.hi), "labeled", [inner])

    if token.kind == TokenType.PUNCT:
      value = token.value
      if value in ("|", "||"):
        return self._parse_closure(token, no_struct)
      if value == "{":
        return self._parse_block()
      if value == "(":
        return self._parse_paren()
      if value == "[":
        return self._parse_array()
      if value == "#":
        self._skip_attributes()
        return self._parse_primary(no_struct)
      if value == "<":
        self._skip_generics()
        while self._eat("::"):
          self._expect_ident()
        return CompoundExpr(self._span(token), "qpath", [])
      if value == "::":
        return self._parse_path_expr(no_struct)
      raise self._error(f"Unexpected token '{value}'", token)

    value = token.value
    if value in ("true", "false"):
      self._consume()
      return LitExpr(Span(token.lo, token.hi), kind="bool")
    if value == "move" and (self._at("|", 1) or self._at("||", 1)):
      self._consume()
      return self._parse_closure(token, no_struct, is_move=True)
    if value == "async":
      if self._at("{", 1):
        self._consume()
        return self._parse_block("async", start=token)
      if self._at("move", 1) and self._at("{", 2):
        self._consume()
        self._consume()
        return self._parse_block("async", start=token)
      if self._at("move", 1) and (self._at("|", 2) or self._at("||", 2)):
        self._consume()
        self._consume()
        return self._parse_closure(token, no_struct, is_move=True)
      if self._at("|", 1) or self._at("||", 1):
        self._consume()
        return self._parse_closure(token, no_struct)
    if value in ("unsafe", "const") and self._at("{", 1):
      self._consume()
      return self._parse_block(value, start=token)
    if value == "if":
      return self._parse_if()
    if value == "match":
      return self._parse_match()
    if value == "loop":
      self._consume()
      body = self._parse_block()
      return CompoundExpr(self._span(token), "loop", [body])
    if value == "while":
      self._consume()
      cond = self._parse_expr(no_struct=True)
      body = self._parse_block()
      return CompoundExpr(self._span(token), "while", [cond, body])
    if value == "for":
      self._consume()
      self._parse_pattern({"in"})
      self._expect("in")
      iterable = self._parse_expr(no_struct=True)
      body = self._parse_block()
      return CompoundExpr(self._span(token), "for", [iterable, body])
    if value == "let":
      # Only valid inside `if`/`while` conditions.
      self._consume()
      self._parse_pattern({"="})
      self._expect("=")
      scrutinee = self._parse_bin(_LET_SCRUTINEE_PRECEDENCE, no_struct=True)
      return CompoundExpr(self._span(token), "let", [scrutinee])
    if value in ("return", "break", "continue", "yield"):
      self._consume()
      if value in ("break", "continue") and self._peek_kind() == TokenType.LIFETIME:
        self._consume()
      parts: List[Expr] = []
      if value != "continue" and self._can_start_expr(no_struct):
        parts.append(self._parse_expr(no_struct))
      return CompoundExpr(self._span(token), value, parts)

    return self._parse_path_expr(no_struct)

  def _parse_closure(self, start: Token, no_struct: bool, is_move: bool = False) -> ClosureExpr:
    params: List[Param] = []
    if self._eat("||") is None:
      self._expect("|")
      while not self._at("|"):
        self._skip_attributes()
        p_start = self._peek()
        pattern = self._parse_pattern({":", ",", "|"})
        ty = self._parse_type() if self._eat(":") else None
        params.append(Param(self._span(p_start), pattern, ty))
        if not self._eat(","):
          break
      self._expect("|")

    if self._eat("->"):
      self._parse_type()
      body: Expr = self._parse_block()
    else:
      body = self._parse_expr(no_struct)
    return ClosureExpr(Span(start.lo, body.span.hi), params=params, body=body, is_move=is_move)

  def _parse_paren(self) -> Expr:
    start = self._expect("(")
    elems: List[Expr] = []
    trailing = False
    while not self._at(")"):
      elems.append(self._parse_expr())
      trailing = self._eat(",") is not None
      if not trailing:
        break
    end = self._expect(")")
    span = Span(start.lo, end.hi)
    if len(elems) == 1 and not trailing:
      return CompoundExpr(span, "paren", elems)
    return CompoundExpr(span, "tuple", elems)

  def _parse_array(self) -> Expr:
    start = self._expect("[")
    elems: List[Expr] = []
    while not self._at("]"):
      elems.append(self._parse_expr())
      if self._eat(";"):
        elems.append(self._parse_expr())
        break
      if not self._eat(","):
        break
    end = self._expect("]")
    return CompoundExpr(Span(start.lo, end.hi), "array", elems)

  def _parse_path_expr(self, no_struct: bool) -> Expr:
    start = self._peek()
    segments: List[str] = []
    self._eat("::")
    while True:
      segments.append(self._expect_ident().value)
      if self._at("::") and self._at("<", 1):
        # Turbofish: Vec::<u8>::new
        self._consume()
        self._skip_generics()
      if self._at("::") and self._peek_kind(1) == TokenType.IDENT:
        self._consume()
        continue
      break

    nxt = self._peek(1)
    if self._at("!") and nxt is not None and nxt.kind == TokenType.PUNCT and nxt.value in _OPEN:
      self._consume()
      delimiter = nxt.value
      args = self._parse_macro_args()
      return MacroCallExpr(self._span(start), path=tuple(segments), delimiter=delimiter, args=args)

    if self._at("{") and not no_struct and self._looks_like_struct_literal():
      return self._parse_struct_literal(start)

    return PathExpr(self._span(start), segments=tuple(segments))

  def _parse_macro_args(self) -> List[Expr]:
    """
    Parses a macro token tree as ``,``/``;``-separated expressions, so that
    builder closures passed to ``tokio::join!(..)`` or ``vec![..]`` are seen.

    Trees that are not expression lists (``=>`` arms, patterns, custom
    syntax) are skipped whole and yield no arguments.
    """
    mark = self.pos
    close = _OPEN[self._consume().value]
    args: List[Expr] = []
    try:
      while not self._at(close):
        args.append(self._parse_expr())
        if self._eat(",") is None and self._eat(";") is None:
          break
      self._expect(close)
      return args
    except RustSyntaxError:
      self.pos = mark
      self._skip_token_tree()
      return []

  def _looks_like_struct_literal(self) -> bool:
    first = self._peek(1)
    if first is None:
      return False
    if first.is_punct("}") or first.is_punct(".."):
      return True
    if first.kind in (TokenType.IDENT, TokenType.NUMBER):
      second = self._peek(2)
      return second is not None and (second.is_punct(":") or second.is_punct(",") or second.is_punct("}"))
    return first.is_punct("#")

  def _parse_struct_literal(self, start: Token) -> Expr:
    self._expect("{")
    parts: List[Expr] = []
    while not self._at("}"):
      self._skip_attributes()
      if self._eat(".."):
        if not self._at("}"):
          parts.append(self._parse_expr())
        break
      self._consume()
      if self._eat(":"):
        parts.append(self._parse_expr())
      if not self._eat(","):
        break
    end = self._expect("}")
    return CompoundExpr(Span(start.lo, end.hi), "struct", parts)

  def _parse_if(self) -> Expr:
    start = self._expect("if")
    cond = self._parse_expr(no_struct=True)
    parts: List[Expr] = [cond, self._parse_block()]
    if self._eat("else"):
      parts.append(self._parse_if() if self._at("if") else self._parse_block())
    return CompoundExpr(self._span(start), "if", parts)

  def _parse_match(self) -> Expr:
    start = self._expect("match")
    parts: List[Expr] = [self._parse_expr(no_struct=True)]
    self._expect("{")
    self._skip_attributes()
    while not self._at("}"):
      self._skip_attributes()
      self._eat("|")
      self._parse_pattern({"=>", "if"})
      if self._eat("if"):
        parts.append(self._parse_expr())
      self._expect("=>")
      parts.append(self._parse_statement_expr())
      self._eat(",")
    self._expect("}")
    return CompoundExpr(self._span(start), "match", parts)
