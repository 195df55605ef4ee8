from __future__ import annotations

import operator
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable


class ErrorKind(str, Enum):
    INVALID_ARGUMENT = "invalid_argument"
    OUT_OF_RANGE = "out_of_range"


class ChainsError(Exception):
    """Base class for contract violations raised by the chains subsystem."""

    kind: ErrorKind


class InvalidArgumentError(ChainsError, ValueError):
    """Structurally malformed input (length mismatch, probability outside [0, 1], ...)."""

    kind = ErrorKind.INVALID_ARGUMENT


class OutOfRangeError(ChainsError, IndexError):
    """A well-shaped index or name outside its domain."""

    kind = ErrorKind.OUT_OF_RANGE


def check_integer(v: Any, what: str) -> int:
    """Return `v` as an int; floats, strings and bools are rejected rather than coerced."""
    if isinstance(v, bool):
        raise InvalidArgumentError(f"{what} must be an integer; got {v!r}.")
    try:
        return operator.index(v)
    except TypeError:
        raise InvalidArgumentError(f"{what} must be an integer; got {v!r}.") from None


def check_index(i: int, n: int, what: str) -> int:
    i = check_integer(i, what)
    if i < 0 or i >= int(n):
        raise OutOfRangeError(f"{what} {i} out of range [0, {int(n)}).")
    return i


def check_probability(p: float, what: str = "probability") -> float:
    if isinstance(p, (bool, str)):
        raise InvalidArgumentError(f"{what} must be a number; got {p!r}.")
    try:
        p = float(p)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"{what} must be a number; got {p!r}.") from None
    # NaN fails both comparisons.
    if not (0.0 <= p <= 1.0):
        raise InvalidArgumentError(f"{what} must lie in [0, 1]; got {p}.")
    return p


@dataclass(frozen=True)
class Outcome:
    """Tagged success/failure value.

    Exactly one of `value` (success) or `kind` (failure) is meaningful, depending on `ok`.
    """

    ok: bool
    value: Any = None
    kind: ErrorKind | None = None
    message: str = ""

    @classmethod
    def success(cls, value: Any) -> "Outcome":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, err: ChainsError) -> "Outcome":
        return cls(ok=False, kind=err.kind, message=str(err))

    def unwrap(self) -> Any:
        if not self.ok:
            exc = InvalidArgumentError if self.kind is ErrorKind.INVALID_ARGUMENT else OutOfRangeError
            raise exc(self.message)
        return self.value


def attempt(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Outcome:
    """Call `fn` and capture a contract violation as a failed `Outcome`.

    Only `ChainsError` is captured; anything else propagates.
    """
    try:
        return Outcome.success(fn(*args, **kwargs))
    except ChainsError as e:
        return Outcome.failure(e)
