from .migrate import handle_check, handle_fix, collect_sources, _migrate_single_file
from .report import print_diagnostic, print_result, print_summary

__all__ = [
  "_migrate_single_file",
  "collect_sources",
  "handle_check",
  "handle_fix",
  "print_diagnostic",
  "print_result",
  "print_summary",
]
