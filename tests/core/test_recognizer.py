"""
Tests for the Builder Recognizer.

Verifies:
1. Call chains keep source order and classify nested closures.
2. Receiver strictness (config flag and explicit override).
3. Closure shapes: method call body, block body with prelude, bare binding.
4. Non-matches never raise.
"""

from typing import Optional

import pytest

from builder_switcheroo.config import RuntimeConfig
from builder_switcheroo.core.recognizer import BuilderRecognizer
from builder_switcheroo.core.structures import ChainedAssignment, Literal, NestedClosure, Verbatim
from builder_switcheroo.frontend.rust import SourceTypeResolver, parse_source
from builder_switcheroo.host.nodes import ClosureExpr, MethodCallExpr

HEADER = "use serenity::builder::CreateEmbed;\n"


def _setup(body: str, config: Optional[RuntimeConfig] = None):
  config = config or RuntimeConfig()
  code = HEADER + "fn f(e: &mut CreateEmbed, c: ChannelId) { " + body + " }"
  module, sm = parse_source(code)
  recognizer = BuilderRecognizer(SourceTypeResolver(module, config), config)
  return module.items[1].body, recognizer, sm


# --- Call Chains ---


def test_chain_preserves_source_order() -> None:
  body, rec, sm = _setup('e.title("a").description("b").colour(3);')
  chain = rec.unravel_call_chain(body.stmts[0].expr)
  assert chain.receiver == "e"
  assert chain.receiver_type == "CreateEmbed"
  assert [c.field for c in chain.calls] == ["title", "description", "colour"]
  arg = chain.calls[1].args[0]
  assert isinstance(arg, Literal)
  assert sm.span_to_snippet(arg.span) == '"b"'


@pytest.mark.parametrize("n", range(1, 9))
def test_chain_order_for_any_length(n: int) -> None:
  body, rec, _ = _setup("e" + "".join(f".f{i}({i})" for i in range(n)) + ";")
  chain = rec.unravel_call_chain(body.stmts[0].expr)
  assert [c.field for c in chain.calls] == [f"f{i}" for i in range(n)]
  assert [len(c.args) for c in chain.calls] == [1] * n


def test_bare_receiver_is_not_a_chain() -> None:
  body, _, _ = _setup("e;")
  assert not isinstance(body.stmts[0].expr, MethodCallExpr)


def test_chain_classifies_nested_closures() -> None:
  body, rec, _ = _setup('e.footer(|f| f.text("x")).field("a", "b", false);')
  chain = rec.unravel_call_chain(body.stmts[0].expr)
  footer, field = chain.calls
  assert isinstance(footer.args[0], NestedClosure)
  assert footer.args[0].closure.builder_type == "CreateEmbedFooter"
  assert len(field.args) == 3
  assert all(isinstance(a, Literal) for a in field.args)


def test_chain_requires_plain_name_base() -> None:
  body, rec, _ = _setup("self.e.title(1); make().title(2);")
  for stmt in body.stmts:
    assert rec.unravel_call_chain(stmt.expr) is None
    assert rec.unravel_call_chain(stmt.expr, strict=False) is None


def test_strictness_controls_unknown_receivers() -> None:
  body, rec, _ = _setup("x.title(1);")
  call = body.stmts[0].expr
  assert rec.unravel_call_chain(call) is None
  relaxed = rec.unravel_call_chain(call, strict=False)
  assert relaxed.receiver == "x"
  assert relaxed.receiver_type is None

  body, lenient, _ = _setup("x.title(1);", RuntimeConfig(strict_receiver_types=False))
  assert lenient.unravel_call_chain(body.stmts[0].expr) is not None


def test_stmt_to_call_chain() -> None:
  body, rec, _ = _setup("e.title(1); let y = e.title(2); e.title(3)")
  assert rec.stmt_to_call_chain(body.stmts[0]).calls[0].field == "title"
  assert rec.stmt_to_call_chain(body.stmts[1]) is None


# --- Closures ---


def _closure(body):
  stmt = body.stmts[0]
  call = stmt.expr
  assert isinstance(call, MethodCallExpr)
  closure = call.args[-1]
  assert isinstance(closure, ClosureExpr)
  return closure


def test_closure_with_method_call_body() -> None:
  body, rec, _ = _setup('c.send_message(&h, |m| m.content("hi").tts(true));')
  closure = rec.parse_builder_closure(_closure(body))
  assert closure.builder_type == "CreateMessage"
  assert closure.binding == "m"
  assert closure.stmts == ()
  assert [c.field for c in closure.call_chain.calls] == ["content", "tts"]


def test_closure_with_prelude() -> None:
  body, rec, sm = _setup('c.send_message(&h, |b| { let x = 1; b.content("n"); other.go(); b.tts(x) });')
  closure = rec.parse_builder_closure(_closure(body))
  verbatim, chained, foreign = closure.stmts
  assert isinstance(verbatim, Verbatim)
  assert sm.span_to_snippet(verbatim.span) == "let x = 1;"
  assert isinstance(chained, ChainedAssignment)
  assert chained.chain.receiver == "b"
  assert [c.field for c in chained.chain.calls] == ["content"]
  assert isinstance(foreign, Verbatim)
  assert [c.field for c in closure.call_chain.calls] == ["tts"]


def test_closure_with_bare_binding() -> None:
  body, rec, _ = _setup("c.send_message(&h, |m| m); c.send_message(&h, |m| { m });")
  for stmt in body.stmts:
    closure = rec.parse_builder_closure(stmt.expr.args[-1])
    assert closure.stmts == ()
    assert closure.call_chain.receiver == "m"
    assert closure.call_chain.calls == ()


def test_closure_tail_receiver_need_not_be_binding() -> None:
  code = HEADER + "fn f(c: ChannelId, e: &mut CreateEmbed) { c.send_message(&h, |m| e.title(1)); }"
  module, _ = parse_source(code)
  rec = BuilderRecognizer(SourceTypeResolver(module), RuntimeConfig())
  closure = rec.parse_builder_closure(module.items[1].body.stmts[0].expr.args[-1])
  assert closure.call_chain.receiver == "e"


def test_closure_non_matches() -> None:
  body, rec, _ = _setup(
    "c.send_message(&h, |m| { m.content(1); }); "
    "c.send_message(&h, |m| { m.content(1); 5 }); "
    "c.send_message(&h, |(a, b)| a); "
    "c.send_message(&h, |m| unsafe { m }); "
    "c.send_message(&h, |m| 5); "
    "run(|x| x);"
  )
  for stmt in body.stmts[:-1]:
    assert rec.parse_builder_closure(stmt.expr.args[-1]) is None
  call = body.stmts[-1].expr
  assert rec.parse_builder_closure(call.parts[1]) is None
  assert rec.parse_builder_closure(call) is None


def test_shared_reference_param_is_not_a_builder() -> None:
  code = HEADER + "fn f() { run(|e: &CreateEmbed| e); }"
  module, _ = parse_source(code)
  rec = BuilderRecognizer(SourceTypeResolver(module), RuntimeConfig())
  closure = module.items[1].body.stmts[0].expr.parts[1]
  assert rec.parse_builder_closure(closure) is None
