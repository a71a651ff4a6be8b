"""
Check and Fix Command Handlers.

This module implements the `builder-switcheroo check` and
`builder-switcheroo fix` commands. Both:
1. Load configuration (``pyproject.toml`` + CLI overrides).
2. Collect ``*.rs`` files, skipping the configured ``exclude`` globs.
3. Run the `MigrationEngine` on each file.
4. Report diagnostics and a summary table (or JSON).

`fix` additionally writes the migrated text, in place or under ``--out``.
"""

import json
from fnmatch import fnmatch
from pathlib import Path
from typing import Dict, List, Optional

from builder_switcheroo.config import RuntimeConfig
from builder_switcheroo.core.diagnostics import MigrationResult
from builder_switcheroo.core.engine import MigrationEngine
from builder_switcheroo.cli.handlers.report import print_result, print_summary
from builder_switcheroo.utils.console import log_error, log_info, log_success, log_warning


def handle_check(
  input_path: Path,
  strict: Optional[bool] = None,
  multiline: Optional[bool] = None,
  json_output: bool = False,
) -> int:
  """
  Handles the 'check' command execution.

  Args:
      input_path: Source file or directory.
      strict: Override for ``strict_receiver_types``.
      multiline: Override for ``multiline``.
      json_output: Print results as JSON instead of rich output.

  Returns:
      int: 0 when nothing needs migrating, 1 when builders are pending or a file failed.
  """
  results = _run(input_path, strict, multiline)
  if results is None:
    return 1

  _report(results, json_output, title="Check Report")
  if any(not r.success or r.pending for r in results.values()):
    return 1
  return 0


def handle_fix(
  input_path: Path,
  output_path: Optional[Path] = None,
  dry_run: bool = False,
  strict: Optional[bool] = None,
  multiline: Optional[bool] = None,
  json_output: bool = False,
) -> int:
  """
  Handles the 'fix' command execution.

  Args:
      input_path: Source file or directory.
      output_path: Destination directory, or destination file for a single
          input. Defaults to in place.
      dry_run: Report and print migrated code without writing.
      strict: Override for ``strict_receiver_types``.
      multiline: Override for ``multiline``.
      json_output: Print results as JSON instead of rich output.

  Returns:
      int: Exit code (0 for success, 1 if any file failed).
  """
  results = _run(input_path, strict, multiline)
  if results is None:
    return 1

  failed = False
  for rel_name, result in results.items():
    if not result.success:
      continue
    source = input_path if input_path.is_file() else input_path / rel_name
    if output_path is None:
      dest = source
    elif input_path.is_file():
      dest = output_path / input_path.name if output_path.is_dir() else output_path
    else:
      dest = output_path / rel_name

    if dry_run:
      if not json_output and result.suggestions:
        print(result.code)
      continue
    if dest == source and not result.suggestions:
      continue
    try:
      _write_output(dest, result.code)
    except OSError as e:
      log_error(f"Failed to write {dest}: {e}")
      failed = True
      continue
    log_success(f"Migrated: [path]{source}[/path] -> [path]{dest}[/path]")

  _report(results, json_output, title="Fix Report")
  if failed or any(not r.success for r in results.values()):
    return 1
  return 0


def collect_sources(input_path: Path, exclude: List[str]) -> List[Path]:
  """
  Lists ``*.rs`` files under `input_path`, relative to it, minus `exclude` globs.

  Args:
      input_path: A directory.
      exclude: Glob patterns matched against the relative POSIX path.

  Returns:
      List[Path]: Sorted relative paths.
  """
  found = []
  for src_file in sorted(input_path.rglob("*.rs")):
    rel_path = src_file.relative_to(input_path)
    if any(fnmatch(rel_path.as_posix(), pattern) or rel_path.match(pattern) for pattern in exclude):
      continue
    found.append(rel_path)
  return found


def _run(input_path: Path, strict: Optional[bool], multiline: Optional[bool]) -> Optional[Dict[str, MigrationResult]]:
  if not input_path.exists():
    log_error(f"Input not found: {input_path}")
    return None

  config = RuntimeConfig.load(
    strict_receiver_types=strict,
    multiline=multiline,
    search_path=input_path if input_path.is_dir() else input_path.parent,
  )
  engine = MigrationEngine(config)

  if input_path.is_file():
    return {input_path.name: _migrate_single_file(input_path, engine)}

  sources = collect_sources(input_path, config.exclude)
  if not sources:
    log_warning(f"No .rs files found in {input_path}")
    return {}

  log_info(f"Processing {len(sources)} files from {input_path}...")
  return {rel_path.as_posix(): _migrate_single_file(input_path / rel_path, engine) for rel_path in sources}


def _migrate_single_file(input_path: Path, engine: MigrationEngine) -> MigrationResult:
  """
  Helper to run the engine on a single file.

  Args:
      input_path: Source file path.
      engine: Configured engine.

  Returns:
      MigrationResult: Result object containing status, code and diagnostics.
  """
  try:
    with open(input_path, "rt", encoding="utf-8") as f:
      code = f.read()
  except (OSError, UnicodeDecodeError) as e:
    log_error(f"Failed to read {input_path}: {e}")
    return MigrationResult(success=False, errors=[str(e)])
  return engine.run(code, str(input_path))


def _write_output(dest: Path, code: str) -> None:
  dest.parent.mkdir(parents=True, exist_ok=True)
  with open(dest, "wt", encoding="utf-8") as f:
    f.write(code)


def _report(results: Dict[str, MigrationResult], json_output: bool, title: str) -> None:
  if json_output:
    payload = {name: result.model_dump(mode="json", exclude={"code"}) for name, result in results.items()}
    print(json.dumps(payload, indent=2))
    return
  for name, result in results.items():
    print_result(name, result)
  print_summary(results, title=title)
