"""
Tests for the Source-Level Type Resolver and Closure Signature Table.

Verifies:
1. Annotations resolve through `use` imports, aliases and globs.
2. Entry-point and nested closures get builder parameter types.
3. Builder method calls return `&mut Builder`; other receivers stay unknown.
4. Local bindings and shadowing.
5. Config-provided closure signatures.
"""

from typing import Optional

from builder_switcheroo.config import RuntimeConfig
from builder_switcheroo.frontend.rust import ClosureSignatures, SourceTypeResolver, parse_source
from builder_switcheroo.host.nodes import ClosureExpr, MethodCallExpr, PathExpr
from builder_switcheroo.host.ty import AdtTy, PrimTy, RefTy


def _closures(module):
  found = []
  stack = [module]
  while stack:
    node = stack.pop()
    if isinstance(node, ClosureExpr):
      found.append(node)
    stack.extend(reversed(node.children()))
  return found


def _resolve(code: str, config: Optional[RuntimeConfig] = None):
  module, _ = parse_source(code)
  return module, SourceTypeResolver(module, config)


def _embed_ty() -> RefTy:
  return RefTy(AdtTy(("serenity", "builder", "CreateEmbed")), True)


# --- Annotations ---


def test_annotation_through_import() -> None:
  module, res = _resolve("use serenity::builder::CreateEmbed;\nfn f(e: &mut CreateEmbed, n: u8) {}")
  fn = module.items[1]
  assert res.resolve_annotation(fn.params[0].ty) == _embed_ty()
  assert res.resolve_annotation(fn.params[1].ty) == PrimTy("u8")


def test_annotation_through_alias_and_module_import() -> None:
  code = "use serenity::builder as b;\nuse serenity::builder::CreateEmbed as Embed;\nfn f(x: &mut b::CreateEmbed, y: &mut Embed) {}"
  module, res = _resolve(code)
  fn = module.items[2]
  assert res.resolve_annotation(fn.params[0].ty) == _embed_ty()
  assert res.resolve_annotation(fn.params[1].ty) == _embed_ty()


def test_annotation_through_glob() -> None:
  module, res = _resolve("use serenity::builder::*;\nfn f(e: &mut CreateEmbed, t: &mut Unrelated) {}")
  fn = module.items[1]
  assert res.resolve_annotation(fn.params[0].ty) == _embed_ty()
  assert res.resolve_annotation(fn.params[1].ty) == RefTy(AdtTy(("Unrelated",)), True)


def test_unimported_name_keeps_its_written_path() -> None:
  module, res = _resolve("fn f(e: &mut CreateEmbed) {}")
  assert res.resolve_annotation(module.items[0].params[0].ty) == RefTy(AdtTy(("CreateEmbed",)), True)


# --- Closure Parameters ---


def test_entry_point_closure_gets_builder() -> None:
  module, res = _resolve('fn f(c: ChannelId) { c.send_message(&h, |m| m.content("x")); }')
  (closure,) = _closures(module)
  assert res.param_type(closure, 0) == RefTy(AdtTy(("serenity", "builder", "CreateMessage")), True)


def test_nested_closure_gets_builder_from_receiver() -> None:
  module, res = _resolve('fn f(c: ChannelId) { c.send_message(&h, |m| m.embed(|e| e.title("t").footer(|f| f.text("x")))); }')
  outer, embed, footer = _closures(module)
  assert res.param_type(embed, 0) == _embed_ty()
  assert res.param_type(footer, 0) == RefTy(AdtTy(("serenity", "builder", "CreateEmbedFooter")), True)


def test_method_fallback_only_for_unknown_receivers() -> None:
  module, res = _resolve("fn f(x: Thing) { x.embed(|e| e); y.embed(|e| e); }")
  known, unknown = _closures(module)
  assert res.param_type(known, 0) is None
  assert res.param_type(unknown, 0) == _embed_ty()


def test_annotated_closure_param_wins() -> None:
  module, res = _resolve("use serenity::builder::CreateEmbed;\nfn f() { run(|e: &mut CreateEmbed| e); }")
  (closure,) = _closures(module)
  assert res.param_type(closure, 0) == _embed_ty()


def test_multi_param_closure_gets_no_builder() -> None:
  module, res = _resolve("fn f(c: ChannelId) { c.send_message(&h, |a, b| a); }")
  (closure,) = _closures(module)
  assert res.param_type(closure, 0) is None


def test_config_closure_signature() -> None:
  config = RuntimeConfig(closure_signatures={"post_report": "CreateEmbed"})
  module, res = _resolve("fn f(r: Reporter) { r.post_report(|e| e); }", config)
  (closure,) = _closures(module)
  assert res.param_type(closure, 0) == _embed_ty()


# --- Expressions ---


def test_builder_method_call_returns_mut_builder() -> None:
  module, res = _resolve('use serenity::builder::CreateEmbed;\nfn f(e: &mut CreateEmbed) { e.title("a").colour(1); }')
  call = module.items[1].body.stmts[0].expr
  assert isinstance(call, MethodCallExpr)
  assert res.expr_type(call) == _embed_ty()
  assert res.expr_type(call.receiver) == _embed_ty()
  base = call.receiver.receiver
  assert isinstance(base, PathExpr)
  assert res.expr_type(base) == _embed_ty()


def test_let_binding_and_shadowing() -> None:
  code = "use serenity::builder::CreateEmbed;\nfn f(e: &mut CreateEmbed) { let e = 5; e; }"
  module, res = _resolve(code)
  stmt = module.items[1].body.stmts[1]
  assert res.expr_type(stmt.expr) is None


def test_def_path_is_the_adt_path() -> None:
  _, res = _resolve("fn f() {}")
  assert res.def_path(AdtTy(("a", "b", "C"))) == ("a", "b", "C")


# --- Signatures ---


def test_signature_lookup_order() -> None:
  sigs = ClosureSignatures(RuntimeConfig(closure_signatures={"CreateEmbed.field_list": "CreateEmbedField"}))
  assert sigs.lookup("send_message") == "CreateMessage"
  assert sigs.lookup("embed", "CreateMessage") == "CreateEmbed"
  assert sigs.lookup("footer", "CreateEmbed") == "CreateEmbedFooter"
  assert sigs.lookup("footer", "CreateMessage") is None
  assert sigs.lookup("field_list", "CreateEmbed") == "CreateEmbedField"
  assert "CreateEmbedField" in sigs.known_builders
