"""
Tests for the Source Stitcher.
"""

from builder_switcheroo.config import RuntimeConfig
from builder_switcheroo.core.stitcher import SourceStitcher
from builder_switcheroo.host.spans import DUMMY_SPAN, ROOT_CTXT, SourceMap, Span


def _stitcher(text: str, placeholder: str = "todo!()"):
  sm = SourceMap()
  f = sm.add_file("a.rs", text)
  return SourceStitcher(sm, RuntimeConfig(placeholder=placeholder)), f, sm


def test_resolve_snippet() -> None:
  stitcher, f, _ = _stitcher('m.content( "hi" )')
  span = Span(f.start_pos + 10, f.start_pos + 16)
  assert stitcher.resolve_snippet(span) == ' "hi" '
  assert stitcher.snippet_or_placeholder(span) == '"hi"'


def test_macro_span_walks_to_call_site() -> None:
  stitcher, f, sm = _stitcher("format!(\"{}\", x)")
  ctxt = sm.hygiene.fresh_expansion(Span(f.start_pos, f.end_pos))
  inner = Span(f.start_pos + 14, f.start_pos + 15, ctxt)
  assert stitcher.resolve_snippet(inner, ROOT_CTXT) == 'format!("{}", x)'


def test_placeholder_when_unrecoverable() -> None:
  stitcher, f, sm = _stitcher("abc", placeholder="unimplemented!()")
  generated = sm.hygiene.fresh_expansion(Span(f.start_pos, f.end_pos), generated=True)
  assert stitcher.resolve_snippet(DUMMY_SPAN) is None
  assert stitcher.snippet_or_placeholder(DUMMY_SPAN) == "unimplemented!()"
  assert stitcher.snippet_or_placeholder(Span(f.start_pos, f.start_pos + 1, generated)) == "unimplemented!()"
  assert stitcher.snippet_or_placeholder(Span(f.start_pos, f.end_pos + 50)) == "unimplemented!()"


def test_missing_text_reported_once() -> None:
  stitcher, f, _ = _stitcher("abc")
  missing = []
  assert stitcher.snippet_or_placeholder(DUMMY_SPAN, on_missing=missing.append) == "todo!()"
  assert stitcher.snippet_or_placeholder(Span(f.start_pos, f.end_pos), on_missing=missing.append) == "abc"
  assert missing == [DUMMY_SPAN]
