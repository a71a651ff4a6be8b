"""
Plugin for Message Components.

serenity 0.11 nested component builders four closures deep:

    |c| c.create_action_row(|r| r.create_button(|b| b.custom_id("x").label("X")))

In 0.12 components are plain values:

    vec![CreateActionRow::Buttons(vec![CreateButton::new("x").label("X")])]

Buttons and select menus are also rewritten when they appear on their own.
"""

from typing import List, Optional

from builder_switcheroo.core.rewriter import BuilderRewriter, StructuralViolation
from builder_switcheroo.core.rules import register_rewriter
from builder_switcheroo.core.structures import BuilderClosure, Call


@register_rewriter("CreateComponents")
def rewrite_components(closure: BuilderClosure, rw: BuilderRewriter) -> str:
  rw.reject_prelude(closure)
  rows = []
  for call in closure.call_chain.calls:
    if call.field != "create_action_row":
      raise StructuralViolation(f"unexpected call `{call.field}` on CreateComponents", closure.span)
    rows.append(rewrite_action_row(rw.expect_closure_arg(call, closure.span), rw))
  return rw.render_list(rows)


@register_rewriter("CreateActionRow")
def rewrite_action_row(closure: BuilderClosure, rw: BuilderRewriter) -> str:
  """
  One row becomes ``CreateActionRow::Buttons(vec![..])`` or
  ``CreateActionRow::SelectMenu(..)``. A 0.12 row holds one kind only, so
  buttons win over a select menu.
  """
  rw.reject_prelude(closure)
  buttons: List[str] = []
  select_menu: Optional[str] = None

  for call in closure.call_chain.calls:
    if call.field == "create_button":
      buttons.append(rw.rewrite_closure(rw.expect_closure_arg(call, closure.span)))
    elif call.field == "add_button":
      buttons.append(rw.render_arg(rw.expect_literal_arg(call, closure.span)))
    elif call.field == "create_select_menu":
      select_menu = rw.rewrite_closure(rw.expect_closure_arg(call, closure.span))
    elif call.field == "add_select_menu":
      select_menu = rw.render_arg(rw.expect_literal_arg(call, closure.span))
    elif call.field in ("create_input_text", "add_input_text"):
      raise StructuralViolation("input text components are not supported", closure.span)
    else:
      raise StructuralViolation(f"unexpected call `{call.field}` in an action row", closure.span)

  if buttons:
    if select_menu is not None:
      rw.note("an action row holds either buttons or a select menu; the select menu was dropped", closure.span)
    return f"CreateActionRow::Buttons({rw.render_list(buttons)})"
  if select_menu is not None:
    return f"CreateActionRow::SelectMenu({select_menu})"
  raise StructuralViolation("empty action row", closure.span)


@register_rewriter("CreateButton")
def rewrite_button(closure: BuilderClosure, rw: BuilderRewriter) -> str:
  """``url`` selects ``CreateButton::new_link``; otherwise ``custom_id`` feeds ``CreateButton::new``."""
  rw.reject_prelude(closure)
  url = None
  custom_id = None
  setters: List[Call] = []
  for call in closure.call_chain.calls:
    if call.field == "url":
      url = rw.render_args(call.args)
    elif call.field == "custom_id":
      custom_id = rw.render_args(call.args)
    else:
      setters.append(call)

  if url is not None:
    if custom_id is not None:
      rw.note("link buttons have no custom id; `custom_id` was dropped", closure.span)
    head = f"CreateButton::new_link({url})"
  else:
    if custom_id is None:
      rw.note("`CreateButton::new` needs `custom_id`, which the closure never sets", closure.span)
    head = rw.construct("CreateButton", [custom_id] if custom_id is not None else [])
  return head + rw.render_setters(setters)


def _render_options(call: Call, closure: BuilderClosure, rw: BuilderRewriter) -> str:
  options = rw.expect_closure_arg(call, closure.span)
  rw.reject_prelude(options)
  rendered = []
  for option in options.call_chain.calls:
    if option.field == "create_option":
      rendered.append(rw.rewrite_closure(rw.expect_closure_arg(option, options.span)))
    elif option.field == "add_option":
      rendered.append(rw.render_arg(rw.expect_literal_arg(option, options.span)))
    else:
      raise StructuralViolation(f"unexpected call `{option.field}` in select menu options", options.span)
  return rw.render_list(rendered)


@register_rewriter("CreateSelectMenu")
def rewrite_select_menu(closure: BuilderClosure, rw: BuilderRewriter) -> str:
  """
  ``CreateSelectMenu::new(custom_id, CreateSelectMenuKind::String { options: vec![..] })``
  followed by the remaining setters.
  """
  rw.reject_prelude(closure)
  custom_id = None
  options = None
  setters: List[Call] = []
  for call in closure.call_chain.calls:
    if call.field == "custom_id":
      custom_id = rw.render_args(call.args)
    elif call.field == "options":
      options = _render_options(call, closure, rw)
    else:
      setters.append(call)

  args = []
  if custom_id is None:
    rw.note("`CreateSelectMenu::new` needs `custom_id`, which the closure never sets", closure.span)
  else:
    args.append(custom_id)
  if options is None:
    rw.note("select menu has no options", closure.span)
    options = rw.render_list([])
  args.append(f"CreateSelectMenuKind::String {{ options: {options} }}")
  return rw.construct("CreateSelectMenu", args) + rw.render_setters(setters)
