"""
builder-switcheroo Package.

A source-to-source migration engine that rewrites serenity 0.11
closure-style builders (``|m| m.content("hi")``) into the serenity 0.12
constructor-and-setter style (``CreateMessage::new().content("hi")``).

Usage
-----

Simple String Migration
^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    import builder_switcheroo as bs
    code = 'fn f(c: ChannelId, h: &Http) { c.send_message(h, |m| m.content("hi")); }'
    print(bs.migrate(code))
    # fn f(c: ChannelId, h: &Http) { c.send_message(h, CreateMessage::new().content("hi")); }

Advanced Usage (Engine)
^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    from builder_switcheroo import MigrationEngine, RuntimeConfig

    engine = MigrationEngine(RuntimeConfig(multiline=True))
    res = engine.run(code, "src/main.rs")
    for diagnostic in res.diagnostics:
        print(diagnostic.line, diagnostic.notes)
"""

from typing import Optional

from builder_switcheroo.config import RuntimeConfig
from builder_switcheroo.core.diagnostics import Diagnostic, MigrationResult
from builder_switcheroo.core.engine import MigrationEngine

__version__ = "0.1.0"


def migrate(code: str, strict: bool = True, multiline: bool = False, config: Optional[RuntimeConfig] = None) -> str:
  """
  Migrates the builder closures in one string of Rust code.

  This is a high-level convenience wrapper around the `MigrationEngine`. For
  file-based migrations use `builder_switcheroo.cli` or the engine directly.

  Args:
      code (str): Rust source text.
      strict (bool): Only unravel chains on receivers known to be builders.
      multiline (bool): Put each setter on its own line.
      config (RuntimeConfig, optional): Full configuration; overrides the flags.

  Returns:
      str: The migrated source code.

  Raises:
      ValueError: If the code cannot be parsed.
  """
  config = config or RuntimeConfig(strict_receiver_types=strict, multiline=multiline)
  result = MigrationEngine(config).run(code)
  if not result.success:
    error_msg = "\n".join(result.errors)
    raise ValueError(f"Migration failed:\n{error_msg}")
  return result.code


__all__ = [
  "Diagnostic",
  "MigrationEngine",
  "MigrationResult",
  "RuntimeConfig",
  "migrate",
  "__version__",
]
