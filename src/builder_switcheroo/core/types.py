"""
Builder Type Classifier.

Decides whether a resolved type is one of the closure-style builders the
engine migrates, and returns its short name.
"""

from typing import Optional

from builder_switcheroo.config import RuntimeConfig
from builder_switcheroo.host.resolver import TypeResolver
from builder_switcheroo.host.ty import AdtTy, RefTy, Ty


def strip_references(ty: Ty) -> Ty:
  """Peels any number of ``&``/``&mut`` layers."""
  while isinstance(ty, RefTy):
    ty = ty.inner
  return ty


def as_builder_type(ty: Optional[Ty], resolver: TypeResolver, config: RuntimeConfig) -> Optional[str]:
  """
  ``&&serenity::builder::CreateEmbed`` -> ``"CreateEmbed"``.

  The type, after stripping references, must be nominal and defined at
  ``[crate, module, ..., Name]`` with crate and module taken from `config`.

  Args:
      ty (Optional[Ty]): A resolved type, or None when unknown.
      resolver (TypeResolver): Maps nominal types to their defining path.
      config (RuntimeConfig): Supplies ``builder_crate`` and ``builder_module``.

  Returns:
      Optional[str]: The builder's short name, or None for anything else.
  """
  if ty is None:
    return None
  inner = strip_references(ty)
  if not isinstance(inner, AdtTy):
    return None
  path = resolver.def_path(inner)
  if len(path) < 3:
    return None
  if path[0] != config.builder_crate or path[1] != config.builder_module:
    return None
  return path[-1]


def as_mut_builder_type(ty: Optional[Ty], resolver: TypeResolver, config: RuntimeConfig) -> Optional[str]:
  """Like `as_builder_type`, but only for an outer ``&mut`` reference."""
  if not isinstance(ty, RefTy) or not ty.mutable:
    return None
  return as_builder_type(ty.inner, resolver, config)
