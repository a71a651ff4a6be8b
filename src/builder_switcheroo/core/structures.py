"""
Builder Intermediate Representation.

Immutable records describing one recognized builder closure. They are built
once per visited node by the `BuilderRecognizer` and consumed once by a
`BuilderRewriter`.

- `BuilderArg`: `Literal` (opaque source) or `NestedClosure`.
- `PreludeStatement`: `Verbatim` or `ChainedAssignment`.
"""

import dataclasses
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from builder_switcheroo.host.nodes import Expr
from builder_switcheroo.host.spans import Span


@dataclass(frozen=True)
class Literal:
  """
  An argument reproduced from source text.

  Attributes:
      span (Span): Where the argument's text lives.
      expr (Optional[Expr]): The host expression, kept so specialized
          rewriters can read e.g. its last path segment. Not part of equality.
  """

  span: Span
  expr: Optional[Expr] = dataclasses.field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class NestedClosure:
  closure: "BuilderClosure"


BuilderArg = Union[Literal, NestedClosure]


@dataclass(frozen=True)
class Call:
  """``.field(args...)``"""

  field: str
  args: Tuple[BuilderArg, ...] = ()


@dataclass(frozen=True)
class CallChain:
  """
  ``receiver.call1(..).call2(..)``, calls in source order.

  Attributes:
      receiver (str): Name at the base of the chain.
      receiver_type (Optional[str]): Builder short name of the receiver, when resolved.
      calls (Tuple[Call, ...]): Calls, leftmost first.
  """

  receiver: str
  receiver_type: Optional[str] = None
  calls: Tuple[Call, ...] = ()

  def appended(self, call: Call) -> "CallChain":
    return dataclasses.replace(self, calls=self.calls + (call,))

  def find(self, field: str) -> Optional[Call]:
    """First call named `field`, if any."""
    for call in self.calls:
      if call.field == field:
        return call
    return None


@dataclass(frozen=True)
class Verbatim:
  span: Span


@dataclass(frozen=True)
class ChainedAssignment:
  """A ``b.f(..).g(..);`` statement on the closure's own binding."""

  chain: CallChain
  span: Span


PreludeStatement = Union[Verbatim, ChainedAssignment]


@dataclass(frozen=True)
class BuilderClosure:
  """
  One recognized ``|b| ...`` builder closure.

  Attributes:
      builder_type (str): Builder short name, e.g. ``CreateEmbed``.
      binding (str): The closure's parameter name.
      stmts (Tuple[PreludeStatement, ...]): Statements before the terminal chain.
      call_chain (CallChain): The terminal chain (possibly with no calls).
      span (Span): The whole closure expression.
  """

  builder_type: str
  binding: str
  stmts: Tuple[PreludeStatement, ...]
  call_chain: CallChain
  span: Span

  @property
  def ctxt(self) -> int:
    return self.span.ctxt
