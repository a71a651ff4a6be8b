"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- Parsing helpers returning a module, its resolver and its source map.
- Rewrite registry isolation so tests registering custom rewriters do not leak.
"""

import sys
import textwrap
from pathlib import Path
from typing import Callable, Tuple

import pytest

# Add src to path so we can import 'builder_switcheroo' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from builder_switcheroo.config import RuntimeConfig
from builder_switcheroo.core import rules
from builder_switcheroo.core.engine import MigrationEngine
from builder_switcheroo.frontend.rust import SourceTypeResolver, parse_source
from builder_switcheroo.host.nodes import SourceModule
from builder_switcheroo.host.spans import SourceMap

Parsed = Tuple[SourceModule, SourceTypeResolver, SourceMap]


@pytest.fixture
def config() -> RuntimeConfig:
  """Default configuration, independent of any pyproject.toml."""
  return RuntimeConfig()


@pytest.fixture
def parse(config: RuntimeConfig) -> Callable[[str], Parsed]:
  """Parses dedented Rust text and resolves it."""

  def _parse(code: str) -> Parsed:
    module, source_map = parse_source(textwrap.dedent(code))
    return module, SourceTypeResolver(module, config), source_map

  return _parse


@pytest.fixture
def engine(config: RuntimeConfig) -> MigrationEngine:
  return MigrationEngine(config)


@pytest.fixture(autouse=True)
def isolate_rewriters():
  """
  Ensures rewriters registered by a test do not leak into the next one.
  The bundled plugins are re-imported lazily on the next lookup.
  """
  yield
  rules.clear_rewriters()
