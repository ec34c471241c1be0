"""Deferred witness values.

A Value is what a circuit author hands to an assignment call. It is in one
of three states:

    known      carries a concrete value (field element or int)
    unknown    shape-only synthesis: the value does not exist yet
    poisoned   computing the value failed; the failure is kept and re-raised
               when the value is finally assigned

Combinators propagate state: unknown wins over known, poisoned wins over
both, so a chain of map/zip calls never raises in the middle of a
computation.

Example:
    c = a.value.zip(b.value).map(lambda ab: ab[0] + ab[1])
    region.assign_advice(col_c, 0, c)
"""

from enum import Enum
from typing import Any, Callable, Optional

from primitives.errors import SynthesisError, UnknownValue


class ValueState(Enum):
    KNOWN = "known"
    UNKNOWN = "unknown"
    POISONED = "poisoned"


class Value:
    """A witness value that may not be known."""

    __slots__ = ("state", "_inner", "_error")

    def __init__(self, state: ValueState, inner: Any = None, error: Optional[Exception] = None):
        self.state = state
        self._inner = inner
        self._error = error

    @classmethod
    def known(cls, inner: Any) -> "Value":
        return cls(ValueState.KNOWN, inner)

    @classmethod
    def unknown(cls) -> "Value":
        return cls(ValueState.UNKNOWN)

    @classmethod
    def poisoned(cls, error) -> "Value":
        if not isinstance(error, Exception):
            error = SynthesisError(str(error))
        return cls(ValueState.POISONED, error=error)

    @property
    def is_known(self) -> bool:
        return self.state == ValueState.KNOWN

    @property
    def is_unknown(self) -> bool:
        return self.state == ValueState.UNKNOWN

    @property
    def is_poisoned(self) -> bool:
        return self.state == ValueState.POISONED

    def map(self, fn: Callable[[Any], Any]) -> "Value":
        """Apply `fn` to a known value. Exceptions from `fn` poison the result."""
        if not self.is_known:
            return self
        try:
            return Value.known(fn(self._inner))
        except (ArithmeticError, ValueError, TypeError) as e:
            return Value.poisoned(e)

    def and_then(self, fn: Callable[[Any], "Value"]) -> "Value":
        """Like map, but `fn` itself returns a Value."""
        if not self.is_known:
            return self
        return fn(self._inner)

    def zip(self, other: "Value") -> "Value":
        """Pair two values; known only if both are."""
        for v in (self, other):
            if v.is_poisoned:
                return v
        if self.is_unknown or other.is_unknown:
            return Value.unknown()
        return Value.known((self._inner, other._inner))

    def assign(self) -> Any:
        """The concrete value, for writing into the grid.

        Raises:
            UnknownValue: the value is unknown
            SynthesisError: the value is poisoned (the recorded error is chained)
        """
        if self.is_known:
            return self._inner
        if self.is_unknown:
            raise UnknownValue("witness value is unknown")
        raise SynthesisError(f"witness value is poisoned: {self._error}") from self._error

    def __repr__(self) -> str:
        if self.is_known:
            return f"Value.known({self._inner!r})"
        if self.is_unknown:
            return "Value.unknown()"
        return f"Value.poisoned({self._error!r})"


def as_value(provided) -> Value:
    """Normalise what an author passes to an assignment call.

    Accepts a Value, a zero-argument callable returning a Value or a raw
    value (the value provider form), or a raw value.
    """
    if callable(provided) and not isinstance(provided, Value):
        try:
            provided = provided()
        except SynthesisError as e:
            return Value.poisoned(e)
    if isinstance(provided, Value):
        return provided
    return Value.known(provided)
