"""
Tests for the Rewrite Rule Registry.

Verifies:
1. Required field table and config overrides.
2. Decorator registration and lazy plugin loading.
3. Registry reset re-imports the bundled plugins.
"""

from builder_switcheroo.config import RuntimeConfig
from builder_switcheroo.core import rules


def test_required_fields_table() -> None:
  assert rules.required_fields("CreateSelectMenuOption") == ("label", "value")
  assert rules.required_fields("CreateSticker") == ("name", "tags", "description", "file")
  assert rules.required_fields("CreateMessage") == ()


def test_required_fields_config_override() -> None:
  config = RuntimeConfig(required_fields={"CreateMessage": ["content"], "CreateButton": []})
  assert rules.required_fields("CreateMessage", config) == ("content",)
  assert rules.required_fields("CreateButton", config) == ()
  assert rules.required_fields("CreateThread", config) == ("name",)


def test_bundled_plugins_register_lazily() -> None:
  rules.clear_rewriters()
  for name in ("CreateInteractionResponse", "CreateComponents", "CreateActionRow", "CreateButton", "CreateSelectMenu"):
    assert rules.get_rewriter(name) is not None
  assert rules.get_rewriter("CreateEmbed") is None


def test_register_custom_rewriter() -> None:
  @rules.register_rewriter("CreatePoll")
  def rewrite_poll(closure, rw) -> str:
    return "CreatePoll::new()"

  assert rules.get_rewriter("CreatePoll") is rewrite_poll


def test_clear_rewriters_then_reload() -> None:
  rules.register_rewriter("CreatePoll")(lambda closure, rw: "x")
  rules.clear_rewriters()
  assert rules.get_rewriter("CreatePoll") is None
  assert rules.get_rewriter("CreateComponents") is not None


def test_load_plugins_counts_modules() -> None:
  assert rules.load_plugins() >= 2
