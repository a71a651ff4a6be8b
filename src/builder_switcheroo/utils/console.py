"""
Console and Logging Output.

Every user-facing line goes through one Rich console: diagnostics are printed
with `console.print`, progress and failures with the ``log_*`` helpers, which
route standard `logging` records through a `RichHandler` bound to the same
console. Tests swap the destination with `set_console`.

Attributes:
    console (_ConsoleProxy): Stable handle on the active Rich console.
"""

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

# Between INFO and WARNING
SUCCESS_LEVEL_NUM = 25
logging.addLevelName(SUCCESS_LEVEL_NUM, "SUCCESS")

# Styles referenced by diagnostic markup in the report handler.
_THEME = Theme(
  {
    "logging.level.success": "green",
    "warning": "yellow",
    "error": "bold red",
    "note": "cyan",
    "path": "bold blue",
    "code": "bold magenta",
  }
)


class _ConsoleProxy:
  """
  Forwards `print` to the current backend so importers keep one reference
  while `set_console` replaces the console underneath.
  """

  def __init__(self) -> None:
    self._use(Console(theme=_THEME))

  def _use(self, backend: Console) -> None:
    self._backend = backend
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
      if isinstance(handler, RichHandler):
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.INFO)
    root_logger.addHandler(
      RichHandler(
        console=backend,
        show_time=False,
        show_path=False,
        markup=True,
        rich_tracebacks=True,
      )
    )

  def print(self, *args: Any, **kwargs: Any) -> None:
    self._backend.print(*args, **kwargs)


console = _ConsoleProxy()


def set_console(new_console: Console) -> None:
  """
  Sends console output and log records to `new_console`.

  Args:
      new_console (Console): e.g. ``Console(record=True)`` to capture output.
  """
  console._use(new_console)


def reset_console() -> None:
  """Restores a fresh stdout console."""
  console._use(Console(theme=_THEME))


def log_info(msg: str) -> None:
  logging.info(f"ℹ️  {msg}", extra={"markup": True})


def log_success(msg: str) -> None:
  logging.log(SUCCESS_LEVEL_NUM, f"✅ {msg}", extra={"markup": True})


def log_warning(msg: str) -> None:
  logging.warning(f"⚠️  {msg}", extra={"markup": True})


def log_error(msg: str) -> None:
  logging.error(f"❌ {msg}", extra={"markup": True})
