"""
Main Entry Point for builder-switcheroo CLI.

This module handles argument parsing and dispatches to the command handlers
defined in `builder_switcheroo.cli.handlers`.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from builder_switcheroo.cli import handlers
from builder_switcheroo import __version__


def _add_common_options(cmd: argparse.ArgumentParser) -> None:
  cmd.add_argument("path", type=Path, help="Input .rs file or directory")
  cmd.add_argument(
    "--strict",
    dest="strict",
    action="store_true",
    default=None,
    help="Only unravel chains whose receiver is known to be a builder (Overrides config)",
  )
  cmd.add_argument(
    "--no-strict",
    dest="strict",
    action="store_false",
    help="Also unravel chains on receivers of unknown type (Overrides config)",
  )
  cmd.add_argument(
    "--multiline",
    action="store_true",
    default=None,
    help="Put each setter of a rewritten builder on its own line",
  )
  cmd.add_argument("--json", dest="json_output", action="store_true", help="Print results as JSON")


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Parses arguments via argparse and calls the appropriate handler function.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, non-zero for failure or pending migrations).
  """
  parser = argparse.ArgumentParser(description="builder-switcheroo: serenity 0.11 -> 0.12 builder migration")
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

  subparsers = parser.add_subparsers(dest="command", required=True)

  # --- Command: CHECK ---
  cmd_check = subparsers.add_parser("check", help="Report closure-style builders without changing files")
  _add_common_options(cmd_check)

  # --- Command: FIX ---
  cmd_fix = subparsers.add_parser("fix", help="Rewrite closure-style builders")
  _add_common_options(cmd_fix)
  cmd_fix.add_argument("--out", type=Path, default=None, help="Output destination (file or dir). Default: in place")
  cmd_fix.add_argument("--dry-run", action="store_true", help="Print migrated code without writing to disk")

  args = parser.parse_args(argv)

  if args.command == "check":
    return handlers.handle_check(args.path, args.strict, args.multiline, args.json_output)

  elif args.command == "fix":
    return handlers.handle_fix(args.path, args.out, args.dry_run, args.strict, args.multiline, args.json_output)

  return 0


if __name__ == "__main__":
  sys.exit(main())
