"""
This module provides the closed set of value kinds a point can carry: Strings, Floats,
signed and unsigned Integers and Booleans.

Each kind is a frozen pydantic model wrapping the raw Python value, validated at
construction time, and knows how to render itself in the two positions of a
line protocol point:

* **Field position** ([`to_line_protocol()`][lineflux.models.values.Value.to_line_protocol]):
  typed encoding, where integers carry the `i`/`u` suffix and strings are quoted,
  so the server never coerces a value to the wrong type.
* **Tag position** ([`to_tag()`][lineflux.models.values.Value.to_tag]):
  plain text, since tags are always strings on the server.
"""

import math
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..helpers import quote_string_field

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
UINT64_MAX = 2**64 - 1


class Value(BaseModel):
    """
    Common interface of every value kind.

    Instances are immutable; the wrapped Python value is exposed as `data`.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    data: Any

    def to_line_protocol(self) -> str:
        """Renders the value for a field position."""
        raise NotImplementedError

    def to_tag(self) -> str:
        """Renders the value for a tag position (unescaped, no type suffix)."""
        return str(self.data)


class String(Value):
    """A text value. Rendered double-quoted in field position."""

    data: str

    def to_line_protocol(self) -> str:
        return quote_string_field(self.data)

    def to_tag(self) -> str:
        return self.data


class Float(Value):
    """
    A 64-bit floating point value.

    Rendered with the shortest representation that round-trips, so integral
    floats keep their decimal point (`82.0`) and stay distinguishable from
    integer kinds. NaN and infinities are rejected, the line protocol has no
    spelling for them.
    """

    data: float

    @field_validator("data")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError(f"Float values must be finite. Got {v}")
        return v

    def to_line_protocol(self) -> str:
        return repr(self.data)

    def to_tag(self) -> str:
        return repr(self.data)


class Integer(Value):
    """A signed 64-bit integer. Rendered with the `i` suffix."""

    data: int = Field(ge=INT64_MIN, le=INT64_MAX)

    def to_line_protocol(self) -> str:
        return f"{self.data}i"


class UnsignedInteger(Value):
    """An unsigned 64-bit integer. Rendered with the `u` suffix."""

    data: int = Field(ge=0, le=UINT64_MAX)

    def to_line_protocol(self) -> str:
        return f"{self.data}u"


class Boolean(Value):
    """A boolean. Rendered as the unquoted literals `true`/`false`."""

    data: bool

    def to_line_protocol(self) -> str:
        return "true" if self.data else "false"

    def to_tag(self) -> str:
        return self.to_line_protocol()


ValueLike = Union[Value, str, float, int, bool]
"""Anything `to_value()` accepts."""


def to_value(obj: ValueLike) -> Value:
    """
    Wraps a Python native into the matching value kind.

    `bool` is checked before `int` (it is a subclass of it). Integers above the
    signed 64-bit range become [`UnsignedInteger`][lineflux.models.values.UnsignedInteger].

    Args:
        obj: A `Value` (returned unchanged) or a `str`, `float`, `int` or `bool`.

    Returns:
        The wrapped value.

    Raises:
        TypeError: If the type has no value kind.
        ValueError: If the value is out of the range of its kind.
    """
    if isinstance(obj, Value):
        return obj
    if isinstance(obj, bool):
        return Boolean(data=obj)
    if isinstance(obj, int):
        if obj > INT64_MAX:
            return UnsignedInteger(data=obj)
        return Integer(data=obj)
    if isinstance(obj, float):
        return Float(data=obj)
    if isinstance(obj, str):
        return String(data=obj)
    raise TypeError(
        f"Unsupported value type '{type(obj).__name__}'. Expected one of str, float, int, bool."
    )
