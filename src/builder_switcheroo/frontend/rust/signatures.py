"""
Closure Signature Table.

Without a compiler, an unannotated closure parameter gets its type from the
method the closure is passed to. Three tables answer that question:

- ``ENTRY_POINTS``: API methods on non-builder receivers (``ChannelId``,
  ``Http``, interactions) that take a builder closure.
- ``NESTED``: builder methods that take a closure configuring another builder,
  keyed by ``(receiver builder, method)``. ``"*"`` matches any builder.
- ``METHOD_FALLBACKS``: used when the receiver's type is unknown.

All names are serenity 0.11 builder names.
"""

from typing import Dict, FrozenSet, Optional, Tuple

from builder_switcheroo.config import RuntimeConfig

ANY_BUILDER = "*"

ENTRY_POINTS: Dict[str, str] = {
  "send_message": "CreateMessage",
  "send_files": "CreateMessage",
  "edit_message": "EditMessage",
  "create_interaction_response": "CreateInteractionResponse",
  "edit_original_interaction_response": "EditInteractionResponse",
  "create_followup_message": "CreateInteractionResponseFollowup",
  "edit_followup_message": "CreateInteractionResponseFollowup",
  "create_autocomplete_response": "CreateAutocompleteResponse",
  "create_global_application_command": "CreateApplicationCommand",
  "create_application_command": "CreateApplicationCommand",
  "set_application_commands": "CreateApplicationCommands",
  "set_global_application_commands": "CreateApplicationCommands",
  "create_channel": "CreateChannel",
  "create_thread": "CreateThread",
  "create_public_thread": "CreateThread",
  "create_private_thread": "CreateThread",
  "create_webhook": "CreateWebhook",
  "edit_member": "EditMember",
  "create_role": "EditRole",
  "edit_role": "EditRole",
  "create_sticker": "CreateSticker",
  "create_scheduled_event": "CreateScheduledEvent",
  "create_stage_instance": "CreateStageInstance",
  "add_member": "AddMember",
  "create_invite": "CreateInvite",
  "execute": "ExecuteWebhook",
  "edit_profile": "EditProfile",
}

NESTED: Dict[Tuple[str, str], str] = {
  (ANY_BUILDER, "embed"): "CreateEmbed",
  (ANY_BUILDER, "add_embed"): "CreateEmbed",
  (ANY_BUILDER, "components"): "CreateComponents",
  (ANY_BUILDER, "allowed_mentions"): "CreateAllowedMentions",
  ("CreateEmbed", "author"): "CreateEmbedAuthor",
  ("CreateEmbed", "footer"): "CreateEmbedFooter",
  ("CreateInteractionResponse", "interaction_response_data"): "CreateInteractionResponseData",
  ("CreateComponents", "create_action_row"): "CreateActionRow",
  ("CreateActionRow", "create_button"): "CreateButton",
  ("CreateActionRow", "create_select_menu"): "CreateSelectMenu",
  ("CreateActionRow", "create_input_text"): "CreateInputText",
  ("CreateSelectMenu", "options"): "CreateSelectMenuOptions",
  ("CreateSelectMenuOptions", "create_option"): "CreateSelectMenuOption",
  ("CreateApplicationCommand", "create_option"): "CreateApplicationCommandOption",
  ("CreateApplicationCommandOption", "create_sub_option"): "CreateApplicationCommandOption",
  ("CreateApplicationCommands", "create_application_command"): "CreateApplicationCommand",
}

METHOD_FALLBACKS: Dict[str, str] = {
  "embed": "CreateEmbed",
  "add_embed": "CreateEmbed",
  "components": "CreateComponents",
  "author": "CreateEmbedAuthor",
  "footer": "CreateEmbedFooter",
  "create_action_row": "CreateActionRow",
  "create_button": "CreateButton",
  "create_select_menu": "CreateSelectMenu",
  "create_input_text": "CreateInputText",
  "interaction_response_data": "CreateInteractionResponseData",
}


class ClosureSignatures:
  """
  Lookup over the built-in tables plus ``closure_signatures`` from config.

  Config keys are either ``"method"`` (an entry point) or
  ``"Receiver.method"`` (a nested builder closure).
  """

  def __init__(self, config: Optional[RuntimeConfig] = None) -> None:
    self.entry_points = dict(ENTRY_POINTS)
    self.nested = dict(NESTED)
    self.fallbacks = dict(METHOD_FALLBACKS)
    if config is not None:
      for key, builder in config.closure_signatures.items():
        if "." in key:
          receiver, method = key.split(".", 1)
          self.nested[(receiver, method)] = builder
        else:
          self.entry_points[key] = builder

  @property
  def known_builders(self) -> FrozenSet[str]:
    """Every builder name mentioned by any table."""
    names = set(self.entry_points.values()) | set(self.nested.values()) | set(self.fallbacks.values())
    names.update(receiver for receiver, _ in self.nested if receiver != ANY_BUILDER)
    return frozenset(names)

  def lookup(self, method: str, receiver_builder: Optional[str] = None, receiver_known: bool = False) -> Optional[str]:
    """
    Resolves the builder configured by a closure passed to `method`.

    Args:
        method (str): The method receiving the closure.
        receiver_builder (Optional[str]): Builder name of the receiver, when it is one.
        receiver_known (bool): True when the receiver's type was resolved, even
            to something that is not a builder.

    Returns:
        Optional[str]: The builder short name, or None.
    """
    if receiver_builder is not None:
      found = self.nested.get((receiver_builder, method)) or self.nested.get((ANY_BUILDER, method))
      return found
    found = self.entry_points.get(method)
    if found is None and not receiver_known:
      found = self.fallbacks.get(method)
    return found
