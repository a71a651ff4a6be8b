"""
Rewrite Rule Registry.

Two tables drive the rewrite:

- ``REQUIRED_FIELDS``: per builder, the setters that become positional
  arguments of ``Builder::new(...)`` in serenity 0.12, in parameter order.
- Specialized rewriters for builders whose 0.12 shape is not
  "constructor + setters". They live in `builder_switcheroo.plugins` and
  register themselves with `register_rewriter`; plugins load lazily on the
  first lookup.
"""

from typing import TYPE_CHECKING, Callable, Dict, Optional, Tuple

from builder_switcheroo.config import RuntimeConfig
from builder_switcheroo.core.structures import BuilderClosure

if TYPE_CHECKING:
  from builder_switcheroo.core.rewriter.base import BuilderRewriter

REQUIRED_FIELDS: Dict[str, Tuple[str, ...]] = {
  "AddMember": ("access_token",),
  "CreateApplicationCommand": ("name",),
  "CreateChannel": ("name",),
  "CreateButton": ("custom_id",),
  "CreateSelectMenu": ("custom_id", "kind"),
  "CreateSelectMenuOption": ("label", "value"),
  "CreateEmbedAuthor": ("name",),
  "CreateEmbedFooter": ("text",),
  "CreateModal": ("custom_id", "title"),
  "CreateStageInstance": ("channel_id", "topic"),
  "CreateThread": ("name",),
  "CreateWebhook": ("name",),
  "CreateQuickModal": ("title",),
  "CreateCommandOption": ("kind", "name", "description"),
  "CreateInputText": ("style", "label", "custom_id"),
  "CreateScheduledEvent": ("kind", "name", "scheduled_start_time"),
  "CreateSticker": ("name", "tags", "description", "file"),
}

RewriteFunction = Callable[[BuilderClosure, "BuilderRewriter"], str]

_REWRITERS: Dict[str, RewriteFunction] = {}
_PLUGINS_LOADED = False


def required_fields(builder_type: str, config: Optional[RuntimeConfig] = None) -> Tuple[str, ...]:
  """
  Ordered required fields of `builder_type`; empty when it has none.

  Entries in ``config.required_fields`` take precedence over the built-in table.
  """
  if config is not None and builder_type in config.required_fields:
    return tuple(config.required_fields[builder_type])
  return REQUIRED_FIELDS.get(builder_type, ())


def register_rewriter(builder_type: str) -> Callable[[RewriteFunction], RewriteFunction]:
  """
  Decorator registering a specialized rewriter for one builder.

  Args:
      builder_type: Builder short name, e.g. ``"CreateComponents"``.
  """

  def decorator(func: RewriteFunction) -> RewriteFunction:
    _REWRITERS[builder_type] = func
    return func

  return decorator


def get_rewriter(builder_type: str) -> Optional[RewriteFunction]:
  """
  Retrieves the specialized rewriter for `builder_type`, if any.
  Lazily loads the bundled plugins on first use.
  """
  if not _PLUGINS_LOADED:
    load_plugins()
  return _REWRITERS.get(builder_type)


def clear_rewriters() -> None:
  """Resets the registry. Primarily for testing."""
  global _PLUGINS_LOADED
  _REWRITERS.clear()
  _PLUGINS_LOADED = False


def load_plugins() -> int:
  """
  Imports (or re-imports, after `clear_rewriters`) every bundled plugin module.

  Returns:
      int: Number of plugin modules loaded.
  """
  global _PLUGINS_LOADED
  import builder_switcheroo.plugins as plugins

  count = plugins.load_modules()
  _PLUGINS_LOADED = True
  return count
