"""
Tests for the Generic Builder Rewriter.

Verifies:
1. ``Builder::new(required...)`` + setters, required fields in declared order.
2. Literal arguments are reproduced from source.
3. Prelude statements produce a block.
4. Nested closures are rewritten recursively; unsupported ones are kept and noted.
5. Multi-line layout.
"""

from typing import List, Optional, Tuple

from builder_switcheroo.config import RuntimeConfig
from builder_switcheroo.core.recognizer import BuilderRecognizer
from builder_switcheroo.core.rewriter import BuilderRewriter, RewriteNote
from builder_switcheroo.core.stitcher import SourceStitcher
from builder_switcheroo.core.structures import BuilderClosure, CallChain, Literal, Verbatim
from builder_switcheroo.frontend.rust import SourceTypeResolver, parse_source
from builder_switcheroo.host.spans import DUMMY_SPAN, SourceMap

SIGNATURES = {"option": "CreateSelectMenuOption", "build": "CreateThing"}


def _rewrite(stmt: str, config: Optional[RuntimeConfig] = None) -> Tuple[str, List[RewriteNote]]:
  config = config or RuntimeConfig(closure_signatures=SIGNATURES)
  module, sm = parse_source("fn f(c: ChannelId, o: Opts) { " + stmt + " }")
  recognizer = BuilderRecognizer(SourceTypeResolver(module, config), config)
  closure = recognizer.parse_builder_closure(module.items[0].body.stmts[0].expr.args[-1])
  assert closure is not None
  rewriter = BuilderRewriter(SourceStitcher(sm, config), config)
  return rewriter.rewrite_closure(closure), rewriter.notes


# --- Generic Strategy ---


def test_setters_without_required_fields() -> None:
  text, notes = _rewrite('c.send_message(&h, |m| m.content("hi").tts(true));')
  assert text == 'CreateMessage::new().content("hi").tts(true)'
  assert notes == []


def test_required_field_becomes_constructor_argument() -> None:
  config = RuntimeConfig(required_fields={"CreateMessage": ["content"]})
  text, _ = _rewrite('c.send_message(&h, |m| m.content("hi").tts(true));', config)
  assert text == 'CreateMessage::new("hi").tts(true)'


def test_required_fields_follow_declared_order() -> None:
  text, notes = _rewrite('o.option(|b| b.value("v").description("d").label("l"));')
  assert text == 'CreateSelectMenuOption::new("l", "v").description("d")'
  assert notes == []


def test_repeated_required_field_last_wins() -> None:
  text, _ = _rewrite('o.option(|b| b.label("a").value(1).label("b"));')
  assert text == 'CreateSelectMenuOption::new("b", 1)'


def test_missing_required_field_is_noted() -> None:
  text, notes = _rewrite('o.option(|b| b.label("l"));')
  assert text == 'CreateSelectMenuOption::new("l")'
  assert len(notes) == 1
  assert "`value`" in notes[0].message


def test_literals_round_trip() -> None:
  text, _ = _rewrite('c.send_message(&h, |m| m.add_file(  vec![1, 2] ).content(format!("{} {}", a, b)).nonce(x.y()?));')
  assert text == 'CreateMessage::new().add_file(vec![1, 2]).content(format!("{} {}", a, b)).nonce(x.y()?)'


def test_multi_argument_call() -> None:
  text, _ = _rewrite('c.send_message(&h, |m| m.embed(|e| e.field("a", value, false)));')
  assert text == 'CreateMessage::new().embed(CreateEmbed::new().field("a", value, false))'


def test_bare_binding_closure() -> None:
  text, _ = _rewrite("c.send_message(&h, |m| m);")
  assert text == "CreateMessage::new()"


# --- Prelude ---


def test_prelude_block() -> None:
  text, notes = _rewrite('o.build(|b| { let x = 1; b.name("n"); b.value(x) });')
  assert text == "\n".join(
    [
      "{",
      "let mut b = CreateThing::new();",
      "let x = 1;",
      'b = b.name("n");',
      "b.value(x)",
      "}",
    ]
  )
  assert notes == []


def test_prelude_keeps_foreign_statements_verbatim() -> None:
  text, _ = _rewrite('o.build(|b| { log::info!("x"); other.go(1); b });')
  assert text.splitlines() == ["{", "let mut b = CreateThing::new();", 'log::info!("x");', "other.go(1);", "b", "}"]


# --- Nesting ---


def test_nested_closures_rewritten_recursively() -> None:
  text, _ = _rewrite('c.send_message(&h, |m| m.embed(|e| e.title("t").footer(|f| f.text("ft").icon_url(u))));')
  assert text == 'CreateMessage::new().embed(CreateEmbed::new().title("t").footer(CreateEmbedFooter::new("ft").icon_url(u)))'


def test_unsupported_nested_closure_kept_with_note() -> None:
  stmt = "c.send_message(&h, |m| m.content(1).components(|c| c.create_action_row(|r| r.create_input_text(|i| i))));"
  text, notes = _rewrite(stmt)
  assert text == "CreateMessage::new().content(1).components(|c| c.create_action_row(|r| r.create_input_text(|i| i)))"
  assert len(notes) == 1
  assert notes[0].message.startswith("left unrewritten")


# --- Layout ---


def test_multiline_setters() -> None:
  config = RuntimeConfig(multiline=True)
  text, _ = _rewrite('c.send_message(&h, |m| m.content("hi").tts(true));', config)
  assert text == 'CreateMessage::new()\n.content("hi")\n.tts(true)'


def test_render_chain_stmt() -> None:
  config = RuntimeConfig()
  rewriter = BuilderRewriter(SourceStitcher(SourceMap(), config), config)
  assert rewriter.render_chain_stmt(CallChain(receiver="e")) == "e = e;"


def test_unavailable_statement_gets_placeholder() -> None:
  config = RuntimeConfig()
  rewriter = BuilderRewriter(SourceStitcher(SourceMap(), config), config)
  closure = BuilderClosure(
    builder_type="CreateThing",
    binding="b",
    stmts=(Verbatim(DUMMY_SPAN),),
    call_chain=CallChain(receiver="b"),
    span=DUMMY_SPAN,
  )
  assert rewriter.rewrite_generic(closure).splitlines() == ["{", "let mut b = CreateThing::new();", "todo!();", "b", "}"]
  assert len(rewriter.notes) == 1


def test_unavailable_argument_gets_placeholder() -> None:
  config = RuntimeConfig(placeholder="unimplemented!()")
  rewriter = BuilderRewriter(SourceStitcher(SourceMap(), config), config)
  assert rewriter.render_arg(Literal(DUMMY_SPAN)) == "unimplemented!()"
  (note,) = rewriter.notes
  assert note.span == DUMMY_SPAN
  assert "placeholder" in note.message
