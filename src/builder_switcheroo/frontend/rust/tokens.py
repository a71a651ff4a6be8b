"""
Rust Tokenizer Definition.

Provides a Regex-based Lexer (`RustLexer`) that decomposes Rust source text
into a stream of typed `Token` objects carrying global byte positions, so the
parser can attach exact `Span`s to every node.

Comments are dropped. Block comments nest, as they do in Rust. Raw strings are
matched by hand because their terminator depends on the opening ``#`` count.
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Generator, List, Tuple


class RustSyntaxError(SyntaxError):
  """Raised when the frontend cannot tokenize or parse its input."""

  def __init__(self, message: str, line: int = 0, column: int = 0) -> None:
    super().__init__(f"{message} (line {line}, col {column})" if line else message)
    self.line = line
    self.column = column


class TokenType(Enum):
  """Enumeration of valid Rust token types."""

  IDENT = auto()  # foo, self, r#type
  LIFETIME = auto()  # 'a, 'static
  STRING = auto()  # "x", b"x", r#"x"#
  CHAR = auto()  # 'x', b'x'
  NUMBER = auto()  # 42, 0xff, 1.5f32
  PUNCT = auto()  # :: -> { ...


@dataclass
class Token:
  """
  Represents a lexical unit.

  Attributes:
      kind (TokenType): The type of token.
      value (str): The raw string value (raw identifiers lose their ``r#``).
      lo (int): Global start position.
      hi (int): Global end position (exclusive).
      line (int): Line number in source (1-based).
      column (int): Column number in source (1-based).
  """

  kind: TokenType
  value: str
  lo: int
  hi: int
  line: int
  column: int

  def is_punct(self, value: str) -> bool:
    return self.kind == TokenType.PUNCT and self.value == value

  def is_keyword(self, value: str) -> bool:
    return self.kind == TokenType.IDENT and self.value == value


_PUNCTUATION = [
  "...",
  "..=",
  "::",
  "->",
  "=>",
  "==",
  "!=",
  "<=",
  ">=",
  "&&",
  "||",
  "+=",
  "-=",
  "*=",
  "/=",
  "%=",
  "^=",
  "&=",
  "|=",
  "..",
]


class RustLexer:
  """
  Regex-based Lexer for Rust source.
  """

  # Compiled Regex Patterns (Order determines priority)
  PATTERNS: List[Tuple[TokenType, str]] = [
    # 1. Strings (byte and plain); raw strings are handled before this table
    (TokenType.STRING, r'b?"(?:\\[\s\S]|[^"\\])*"'),
    # 2. Chars must win over lifetimes: 'a' vs 'a
    (TokenType.CHAR, r"b?'(?:\\(?:x[0-9a-fA-F]{2}|u\{[0-9a-fA-F_]*\}|.)|[^\\'\n])'"),
    (TokenType.LIFETIME, r"'[A-Za-z_][A-Za-z0-9_]*"),
    # 3. Numbers: 0x/0o/0b, decimals with optional fraction/exponent and type suffix.
    # A dot followed by another dot or an identifier is a range or a method call.
    (
      TokenType.NUMBER,
      r"(?:0x[0-9a-fA-F_]+|0o[0-7_]+|0b[01_]+|[0-9][0-9_]*(?:\.(?![.A-Za-z_])[0-9_]*)?(?:[eE][+-]?[0-9_]+)?)"
      r"(?:[A-Za-z_][A-Za-z0-9_]*)?",
    ),
    # 4. Identifiers (raw identifiers first)
    (TokenType.IDENT, r"r#[A-Za-z_][A-Za-z0-9_]*"),
    (TokenType.IDENT, r"[A-Za-z_][A-Za-z0-9_]*"),
    # 5. Punctuation, longest first
    (TokenType.PUNCT, "|".join(re.escape(p) for p in _PUNCTUATION)),
    (TokenType.PUNCT, r"[{}()\[\];,.:#!?@$~<>=+\-*/%^&|]"),
  ]

  _RAW_STRING_START = re.compile(r'b?r(#*)"')
  _WHITESPACE = re.compile(r"\s+")

  def __init__(self) -> None:
    """Initializes the lexer with compiled patterns."""
    self.regex_pairs = [(kind, re.compile(pattern)) for kind, pattern in self.PATTERNS]

  def tokenize(self, text: str, start_pos: int = 0) -> Generator[Token, None, None]:
    """
    Tokenizes the input string.

    Args:
        text (str): Raw Rust source code.
        start_pos (int): Global position of ``text[0]``.

    Yields:
        Token: Token objects.

    Raises:
        RustSyntaxError: On unterminated comments/strings or unknown characters.
    """
    pos = 0
    line_num = 1
    line_start = 0
    length = len(text)

    def advance_lines(upto: int) -> None:
      nonlocal line_num, line_start
      chunk = text[pos:upto]
      newlines = chunk.count("\n")
      if newlines:
        line_num += newlines
        line_start = pos + chunk.rfind("\n") + 1

    while pos < length:
      # Handle Whitespace
      match_ws = self._WHITESPACE.match(text, pos)
      if match_ws:
        end = match_ws.end()
        advance_lines(end)
        pos = end
        continue

      # Line comments (including doc comments)
      if text.startswith("//", pos):
        end = text.find("\n", pos)
        pos = length if end == -1 else end
        continue

      # Nested block comments
      if text.startswith("/*", pos):
        end = self._block_comment_end(text, pos, line_num)
        advance_lines(end)
        pos = end
        continue

      column = pos - line_start + 1

      raw = self._RAW_STRING_START.match(text, pos)
      if raw:
        terminator = '"' + raw.group(1)
        close = text.find(terminator, raw.end())
        if close == -1:
          raise RustSyntaxError("Unterminated raw string", line_num, column)
        end = close + len(terminator)
        yield Token(TokenType.STRING, text[pos:end], start_pos + pos, start_pos + end, line_num, column)
        advance_lines(end)
        pos = end
        continue

      match_found = False
      for kind, regex in self.regex_pairs:
        match = regex.match(text, pos)
        if match:
          val = match.group(0)
          end = match.end()
          value = val[2:] if kind == TokenType.IDENT and val.startswith("r#") else val
          yield Token(kind, value, start_pos + pos, start_pos + end, line_num, column)
          advance_lines(end)
          pos = end
          match_found = True
          break

      if not match_found:
        snippet = text[pos : min(pos + 10, length)]
        raise RustSyntaxError(f"Illegal character '{snippet}...'", line_num, column)

  @staticmethod
  def _block_comment_end(text: str, pos: int, line_num: int) -> int:
    depth = 0
    idx = pos
    while idx < len(text):
      if text.startswith("/*", idx):
        depth += 1
        idx += 2
      elif text.startswith("*/", idx):
        depth -= 1
        idx += 2
        if depth == 0:
          return idx
      else:
        idx += 1
    raise RustSyntaxError("Unterminated block comment", line_num)
