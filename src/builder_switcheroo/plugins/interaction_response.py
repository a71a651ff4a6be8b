"""
Plugin for Interaction Responses.

serenity 0.11 configured a response through ``kind`` plus a data closure:

    |r| r.kind(InteractionResponseType::ChannelMessageWithSource)
         .interaction_response_data(|d| d.content("hi"))

In 0.12 the response is an enum whose variant carries the payload builder:

    CreateInteractionResponse::Message(CreateInteractionResponseMessage::new().content("hi"))
"""

from typing import Dict, Optional, Tuple

from builder_switcheroo.core.rewriter import BuilderRewriter, StructuralViolation
from builder_switcheroo.core.rules import register_rewriter
from builder_switcheroo.core.structures import BuilderClosure, CallChain, Call, Literal
from builder_switcheroo.host.nodes import last_path_segment

MESSAGE_PAYLOAD = "CreateInteractionResponseMessage"

# 0.11 InteractionResponseType tag -> (0.12 variant, payload builder or None)
VARIANTS: Dict[str, Tuple[str, Optional[str]]] = {
  "Pong": ("Pong", None),
  "ChannelMessageWithSource": ("Message", MESSAGE_PAYLOAD),
  "DeferredChannelMessageWithSource": ("Defer", MESSAGE_PAYLOAD),
  "DeferredUpdateMessage": ("Acknowledge", None),
  "UpdateMessage": ("UpdateMessage", MESSAGE_PAYLOAD),
  "Autocomplete": ("Autocomplete", "CreateAutocompleteResponse"),
  "Modal": ("Modal", "CreateModal"),
}
# ChannelMessageWithSource was the 0.11 default.
DEFAULT_VARIANT = VARIANTS["ChannelMessageWithSource"]

_ALLOWED_CALLS = ("kind", "interaction_response_data")


def response_variant(chain: CallChain) -> Tuple[str, Optional[str]]:
  """
  Maps the chain's ``kind(...)`` tag to a variant, by last path segment.
  Unknown or absent tags fall back to ``Message``.
  """
  call = chain.find("kind")
  tag = None
  if call is not None and len(call.args) == 1 and isinstance(call.args[0], Literal):
    expr = call.args[0].expr
    tag = last_path_segment(expr) if expr is not None else None
  return VARIANTS.get(tag or "", DEFAULT_VARIANT)


def _payload_calls(closure: BuilderClosure, rw: BuilderRewriter) -> Tuple[Call, ...]:
  data = closure.call_chain.find("interaction_response_data")
  if data is None:
    return ()
  inner = rw.expect_closure_arg(data, closure.span)
  rw.reject_prelude(inner)
  return inner.call_chain.calls


@register_rewriter("CreateInteractionResponse")
def rewrite_interaction_response(closure: BuilderClosure, rw: BuilderRewriter) -> str:
  rw.reject_prelude(closure)
  for call in closure.call_chain.calls:
    if call.field not in _ALLOWED_CALLS:
      raise StructuralViolation(f"unexpected call `{call.field}` on CreateInteractionResponse", closure.span)

  variant, payload = response_variant(closure.call_chain)
  calls = _payload_calls(closure, rw)
  head = f"CreateInteractionResponse::{variant}"

  if payload is None:
    if calls:
      rw.note(f"`{variant}` responses carry no data; the response data setters were dropped", closure.span)
    return head

  required_args, setters = rw.split_required(payload, calls, closure.span)
  close = "\n)" if rw.config.multiline else ")"
  return f"{head}({rw.construct(payload, required_args)}{rw.render_setters(setters)}{close}"
