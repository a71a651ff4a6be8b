"""
Tests for the 'check' and 'fix' commands.

Verifies:
1. Exit codes: pending builders fail `check`; only broken files fail `fix`.
2. In place, ``--out`` and ``--dry-run`` writing.
3. ``exclude`` globs from ``pyproject.toml``.
4. JSON output and argument dispatch.
"""

import io
import json
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from builder_switcheroo.cli.__main__ import main
from builder_switcheroo.cli.handlers import collect_sources, handle_check, handle_fix
from builder_switcheroo.utils.console import reset_console, set_console

LEGACY = 'fn f(c: ChannelId) { c.send_message(h, |m| m.content("hi")); }\n'
MIGRATED = 'fn f(c: ChannelId) { c.send_message(h, CreateMessage::new().content("hi")); }\n'


@pytest.fixture
def captured():
  recorder = Console(record=True, width=200, file=io.StringIO())
  set_console(recorder)
  yield recorder
  reset_console()


@pytest.fixture
def crate(tmp_path: Path) -> Path:
  (tmp_path / "src" / "commands").mkdir(parents=True)
  (tmp_path / "src" / "main.rs").write_text(LEGACY, encoding="utf-8")
  (tmp_path / "src" / "commands" / "ping.rs").write_text("fn ping() {}\n", encoding="utf-8")
  return tmp_path


# --- Check ---


def test_check_reports_pending(crate: Path, captured: Console) -> None:
  assert handle_check(crate / "src") == 1
  output = captured.export_text()
  assert "closure-style builders will break" in output
  assert "main.rs:1:" in output
  assert (crate / "src" / "main.rs").read_text(encoding="utf-8") == LEGACY


def test_check_clean_tree(tmp_path: Path, captured: Console) -> None:
  (tmp_path / "lib.rs").write_text(MIGRATED, encoding="utf-8")
  assert handle_check(tmp_path) == 0
  assert "no closure-style builders found" in captured.export_text()


def test_check_syntax_error(tmp_path: Path, captured: Console) -> None:
  broken = tmp_path / "broken.rs"
  broken.write_text("fn f( {", encoding="utf-8")
  assert handle_check(broken) == 1
  assert "error" in captured.export_text()


def test_check_missing_input(tmp_path: Path, captured: Console) -> None:
  assert handle_check(tmp_path / "nope") == 1
  assert "Input not found" in captured.export_text()


def test_check_json(crate: Path, captured: Console, capsys) -> None:
  assert handle_check(crate / "src", json_output=True) == 1
  payload = json.loads(capsys.readouterr().out)
  assert set(payload) == {"main.rs", "commands/ping.rs"}
  assert payload["commands/ping.rs"]["diagnostics"] == []
  (diagnostic,) = payload["main.rs"]["diagnostics"]
  assert diagnostic["suggestion"]["applicability"] == "machine-applicable"
  assert "code" not in payload["main.rs"]


# --- Fix ---


def test_fix_in_place(crate: Path, captured: Console) -> None:
  assert handle_fix(crate / "src") == 0
  assert (crate / "src" / "main.rs").read_text(encoding="utf-8") == MIGRATED
  assert (crate / "src" / "commands" / "ping.rs").read_text(encoding="utf-8") == "fn ping() {}\n"
  assert "Migrated" in captured.export_text()
  assert handle_check(crate / "src") == 0


def test_fix_to_output_dir(crate: Path, tmp_path: Path, captured: Console) -> None:
  out = tmp_path / "out"
  assert handle_fix(crate / "src", output_path=out) == 0
  assert (out / "main.rs").read_text(encoding="utf-8") == MIGRATED
  assert (out / "commands" / "ping.rs").exists()
  assert (crate / "src" / "main.rs").read_text(encoding="utf-8") == LEGACY


def test_fix_single_file_to_output_file(crate: Path, tmp_path: Path, captured: Console) -> None:
  out = tmp_path / "migrated.rs"
  assert handle_fix(crate / "src" / "main.rs", output_path=out) == 0
  assert out.read_text(encoding="utf-8") == MIGRATED


def test_fix_single_file_into_existing_dir(crate: Path, tmp_path: Path, captured: Console) -> None:
  out = tmp_path / "out"
  out.mkdir()
  assert main(["fix", str(crate / "src" / "main.rs"), "--out", str(out)]) == 0
  assert (out / "main.rs").read_text(encoding="utf-8") == MIGRATED
  assert (crate / "src" / "main.rs").read_text(encoding="utf-8") == LEGACY


def test_fix_unwritable_output(crate: Path, tmp_path: Path, captured: Console) -> None:
  blocker = tmp_path / "blocker"
  blocker.write_text("", encoding="utf-8")
  assert handle_fix(crate / "src" / "main.rs", output_path=blocker / "main.rs") == 1
  assert "Failed to write" in captured.export_text()
  assert blocker.read_text(encoding="utf-8") == ""


def test_fix_dry_run(crate: Path, captured: Console, capsys) -> None:
  assert handle_fix(crate / "src", dry_run=True) == 0
  assert MIGRATED.strip() in capsys.readouterr().out
  assert (crate / "src" / "main.rs").read_text(encoding="utf-8") == LEGACY


def test_fix_multiline_override(crate: Path, captured: Console) -> None:
  assert handle_fix(crate / "src" / "main.rs", multiline=True) == 0
  assert 'CreateMessage::new()\n.content("hi")' in (crate / "src" / "main.rs").read_text(encoding="utf-8")


def test_fix_fails_only_on_broken_files(tmp_path: Path, captured: Console) -> None:
  (tmp_path / "ok.rs").write_text(LEGACY, encoding="utf-8")
  (tmp_path / "bad.rs").write_text("fn f( {", encoding="utf-8")
  assert handle_fix(tmp_path) == 1
  assert (tmp_path / "ok.rs").read_text(encoding="utf-8") == MIGRATED
  assert (tmp_path / "bad.rs").read_text(encoding="utf-8") == "fn f( {"


# --- Sources ---


def test_collect_sources_with_exclude(crate: Path) -> None:
  (crate / "src" / "generated.rs").write_text(LEGACY, encoding="utf-8")
  found = collect_sources(crate / "src", ["commands/*", "generated.rs"])
  assert found == [Path("main.rs")]


def test_exclude_from_pyproject(crate: Path, captured: Console) -> None:
  (crate / "pyproject.toml").write_text('[tool.builder_switcheroo]\nexclude = ["main.rs"]\n', encoding="utf-8")
  assert handle_check(crate / "src") == 0


def test_empty_directory(tmp_path: Path, captured: Console) -> None:
  assert handle_check(tmp_path) == 0
  assert "No .rs files found" in captured.export_text()


# --- Argument Dispatch ---


@patch("builder_switcheroo.cli.handlers.handle_check")
def test_main_check_dispatch(mock_handle) -> None:
  mock_handle.return_value = 1
  assert main(["check", "src", "--no-strict", "--json"]) == 1
  mock_handle.assert_called_once_with(Path("src"), False, None, True)


@patch("builder_switcheroo.cli.handlers.handle_fix")
def test_main_fix_dispatch(mock_handle) -> None:
  mock_handle.return_value = 0
  assert main(["fix", "src", "--out", "dst", "--dry-run", "--multiline", "--strict"]) == 0
  mock_handle.assert_called_once_with(Path("src"), Path("dst"), True, True, True, False)


def test_main_requires_command() -> None:
  with pytest.raises(SystemExit):
    main([])
