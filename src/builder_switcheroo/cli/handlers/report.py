"""
Diagnostic Reporter.

Renders `MigrationResult`s to the console: one compiler-style block per
diagnostic and a summary table per run.
"""

from typing import Dict

from rich.markup import escape
from rich.table import Table

from builder_switcheroo.core.diagnostics import Diagnostic, Level, MigrationResult
from builder_switcheroo.utils.console import console, log_success


def print_diagnostic(diagnostic: Diagnostic) -> None:
  """
  Prints one diagnostic in a rustc-like layout.

  Args:
      diagnostic (Diagnostic): The diagnostic to render.
  """
  style = "note" if diagnostic.level == Level.NOTE else "warning"
  console.print(f"[{style}]{diagnostic.level.value}[/{style}]: {escape(diagnostic.message)}")
  console.print(f"  --> [path]{escape(diagnostic.file)}:{diagnostic.line}:{diagnostic.column}[/path]")
  for note in diagnostic.notes:
    console.print(f"   = [note]note[/note]: {escape(note)}")
  if diagnostic.suggestion is not None:
    suggestion = diagnostic.suggestion
    console.print(f"   = help: {suggestion.label} ({suggestion.applicability.value}):")
    for line in suggestion.replacement.splitlines():
      console.print(f"     [code]{escape(line)}[/code]")


def print_result(name: str, result: MigrationResult) -> None:
  for error in result.errors:
    console.print(f"[error]error[/error]: {escape(error)}")
  for diagnostic in result.diagnostics:
    print_diagnostic(diagnostic)


def print_summary(results: Dict[str, MigrationResult], title: str = "Migration Report") -> None:
  """
  Renders a summary table of migration results to the console.

  Args:
      results: Dictionary mapping filenames to migration results.
      title: Table title.
  """
  total = len(results)
  clean = sum(1 for r in results.values() if r.success and r.pending == 0)
  if clean == total:
    log_success(f"{total} file(s) checked, no closure-style builders found.")
    return

  table = Table(title=title)
  table.add_column("File", style="cyan")
  table.add_column("Status", justify="center")
  table.add_column("Builders", justify="right")
  table.add_column("Fixable", justify="right")
  table.add_column("Issues", style="red")

  for filename, res in results.items():
    if res.success and res.pending == 0:
      continue
    status = "❌ Failed" if not res.success else "⚠️ Pending"
    notes = sum(len(d.notes) for d in res.diagnostics)
    issues = "; ".join(res.errors) if res.errors else (f"{notes} note(s)" if notes else "")
    table.add_row(escape(filename), status, str(res.pending), str(len(res.suggestions)), escape(issues))

  console.print(table)
  console.print(f"\n[bold]Summary:[/bold] {clean} clean, {total - clean} with builders to migrate or errors.")
