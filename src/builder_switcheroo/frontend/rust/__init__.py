"""
Rust Frontend Package.

Contains the lexer, parser and source-level type resolver that turn ``.rs``
text into host trees the migration core can classify.
"""

from typing import Optional, Tuple

from builder_switcheroo.frontend.rust.parser import RustParser
from builder_switcheroo.frontend.rust.resolver import SourceTypeResolver
from builder_switcheroo.frontend.rust.signatures import ClosureSignatures
from builder_switcheroo.frontend.rust.tokens import RustLexer, RustSyntaxError, Token, TokenType
from builder_switcheroo.host.nodes import SourceModule
from builder_switcheroo.host.spans import SourceMap


def parse_source(code: str, file_name: str = "<input>", source_map: Optional[SourceMap] = None) -> Tuple[SourceModule, SourceMap]:
  """
  Registers `code` in a source map and parses it.

  Args:
      code (str): Rust source text.
      file_name (str): Display name of the file.
      source_map (SourceMap): Map to register the file in. A fresh one is
          created when omitted.

  Returns:
      Tuple[SourceModule, SourceMap]: The parsed module and its source map.

  Raises:
      RustSyntaxError: If the text cannot be tokenized or parsed.
  """
  if source_map is None:
    source_map = SourceMap()
  source_file = source_map.add_file(file_name, code)
  module = RustParser(code, start_pos=source_file.start_pos, file_name=file_name).parse()
  return module, source_map


__all__ = [
  "ClosureSignatures",
  "RustLexer",
  "RustParser",
  "RustSyntaxError",
  "SourceTypeResolver",
  "Token",
  "TokenType",
  "parse_source",
]
