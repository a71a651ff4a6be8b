"""
Runtime Configuration Store.

Settings are read from ``[tool.builder_switcheroo]`` in the nearest
``pyproject.toml`` and overridden by CLI flags.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

if sys.version_info >= (3, 11):
  import tomllib
else:
  import tomli as tomllib

TOOL_SECTION = "builder_switcheroo"


def _check_ident(value: str, what: str) -> str:
  cleaned = value.strip()
  if not cleaned:
    raise ValueError(f"{what} must not be empty")
  if not cleaned.replace("_", "a").isalnum() or cleaned[0].isdigit():
    raise ValueError(f"{what} must be a Rust identifier, got '{cleaned}'")
  return cleaned


class RuntimeConfig(BaseModel):
  """
  Global configuration container for the migration engine.
  """

  builder_crate: str = Field("serenity", description="Crate that defines the closure-style builders.")
  builder_module: str = Field("builder", description="Module (directly under the crate) that holds the builders.")
  strict_receiver_types: bool = Field(
    True,
    description="If True, a call chain only matches when its receiver's type resolves to a builder.",
  )
  multiline: bool = Field(False, description="Put every chained setter on its own line.")
  placeholder: str = Field("todo!()", description="Emitted where original source text cannot be recovered.")
  required_fields: Dict[str, List[str]] = Field(
    default_factory=dict,
    description="Additional or overriding required constructor fields, keyed by builder name.",
  )
  closure_signatures: Dict[str, str] = Field(
    default_factory=dict,
    description="Extra closure parameter types: 'method' or 'Receiver.method' -> builder name.",
  )
  exclude: List[str] = Field(default_factory=list, description="Glob patterns skipped when scanning directories.")

  @field_validator("builder_crate", "builder_module")
  @classmethod
  def validate_namespace(cls, v: str) -> str:
    """
    Ensures the builder namespace segments are plain identifiers.

    Args:
        v (str): Raw segment from TOML or CLI.

    Returns:
        str: The stripped segment.

    Raises:
        ValueError: If the segment is empty or not an identifier.
    """
    return _check_ident(v, "Builder namespace segment")

  @field_validator("required_fields")
  @classmethod
  def validate_required_fields(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
    return {_check_ident(name, "Builder name"): [_check_ident(f, "Field name") for f in fields] for name, fields in v.items()}

  @field_validator("closure_signatures")
  @classmethod
  def validate_closure_signatures(cls, v: Dict[str, str]) -> Dict[str, str]:
    cleaned: Dict[str, str] = {}
    for key, builder in v.items():
      parts = key.split(".")
      if len(parts) > 2:
        raise ValueError(f"Closure signature key must be 'method' or 'Receiver.method', got '{key}'")
      normalized = ".".join(_check_ident(p, "Closure signature key") for p in parts)
      cleaned[normalized] = _check_ident(builder, "Builder name")
    return cleaned

  @classmethod
  def load(
    cls,
    strict_receiver_types: Optional[bool] = None,
    multiline: Optional[bool] = None,
    search_path: Optional[Path] = None,
  ) -> "RuntimeConfig":
    """
    Loads configuration from pyproject.toml and overrides with CLI arguments.

    Args:
        strict_receiver_types (Optional[bool]): Override for receiver strictness.
        multiline (Optional[bool]): Override for multi-line output.
        search_path (Optional[Path]): Directory to start searching for TOML config.

    Returns:
        RuntimeConfig: The fully resolved configuration object.
    """
    start_dir = search_path or Path.cwd()
    toml_config, _ = _load_toml_settings(start_dir)

    settings = dict(toml_config)
    if strict_receiver_types is not None:
      settings["strict_receiver_types"] = strict_receiver_types
    if multiline is not None:
      settings["multiline"] = multiline
    return cls.model_validate(settings)


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Recursively searches parents for 'pyproject.toml' and extracts config.

  Args:
      start_path (Path): Directory to start search from.

  Returns:
      Tuple[Dict, Optional[Path]]: The config dict and the directory definition was found in.
  """
  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.exists() and toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except (OSError, tomllib.TOMLDecodeError) as e:
        logging.warning(f"Ignoring unreadable {toml_path}: {e}")
        return {}, None

      tool_section = data.get("tool", {})
      return tool_section.get(TOOL_SECTION, {}), parent

  return {}, None
