"""
Entry point for module execution (``python -m builder_switcheroo``).

This module delegates execution to the CLI handler in ``builder_switcheroo.cli.__main__``.
"""

import sys
from builder_switcheroo.cli.__main__ import main

if __name__ == "__main__":
  sys.exit(main())
