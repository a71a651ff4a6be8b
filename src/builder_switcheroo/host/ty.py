"""
Type Representations.

Two layers share these classes:

- Syntax: the frontend produces `PathTy`, `RefTy`, `TupleTy` and `OpaqueTy`
  exactly as written in annotations.
- Semantics: a `TypeResolver` answers queries with `RefTy`, `AdtTy`,
  `TupleTy`, `PrimTy`, `ParamTy` and `OpaqueTy`.
"""

from dataclasses import dataclass
from typing import Tuple


class Ty:
  """Base class for all type nodes."""


@dataclass(frozen=True)
class RefTy(Ty):
  """``&T`` or ``&mut T``."""

  inner: Ty
  mutable: bool = False

  def __str__(self) -> str:
    return f"&{'mut ' if self.mutable else ''}{self.inner}"


@dataclass(frozen=True)
class PathTy(Ty):
  """A path as written in source, e.g. ``builder::CreateEmbed``. Generic arguments are dropped."""

  segments: Tuple[str, ...]

  def __str__(self) -> str:
    return "::".join(self.segments)


@dataclass(frozen=True)
class AdtTy(Ty):
  """
  A resolved nominal type.

  Attributes:
      path (Tuple[str, ...]): Defining path, crate name first
          (e.g. ``("serenity", "builder", "CreateEmbed")``).
  """

  path: Tuple[str, ...]

  @property
  def name(self) -> str:
    return self.path[-1] if self.path else ""

  def __str__(self) -> str:
    return "::".join(self.path)


@dataclass(frozen=True)
class TupleTy(Ty):
  elems: Tuple[Ty, ...] = ()

  def __str__(self) -> str:
    return "(" + ", ".join(str(e) for e in self.elems) + ")"


@dataclass(frozen=True)
class PrimTy(Ty):
  name: str

  def __str__(self) -> str:
    return self.name


@dataclass(frozen=True)
class ParamTy(Ty):
  """A generic type parameter such as ``T``."""

  name: str

  def __str__(self) -> str:
    return self.name


@dataclass(frozen=True)
class OpaqueTy(Ty):
  """Anything the engine never needs to look inside (slices, fn pointers, ``impl Trait``)."""

  text: str = "_"

  def __str__(self) -> str:
    return self.text
