"""
Plugins Package.

Specialized builder rewriters. Every module in this directory is imported
automatically, so adding a file (e.g. ``create_poll.py``) registers its
rewriters without editing this one.
"""

import importlib
import logging
import pkgutil
import sys
from pathlib import Path

_pkg_dir = Path(__file__).parent


def load_modules() -> int:
  """
  Imports every plugin module, re-executing those already imported so their
  `register_rewriter` decorators run again after the registry was cleared.

  Returns:
      int: Number of modules loaded.
  """
  count = 0
  for _, module_name, _ in pkgutil.iter_modules([str(_pkg_dir)]):
    if module_name.startswith("_"):
      continue
    qualified = f"{__name__}.{module_name}"
    try:
      if qualified in sys.modules:
        importlib.reload(sys.modules[qualified])
      else:
        importlib.import_module(qualified)
      count += 1
    except ImportError as e:
      # One broken plugin must not take down the engine.
      logging.warning(f"Failed to load plugin '{module_name}': {e}")
  return count
