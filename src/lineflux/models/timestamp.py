"""
Timestamp Definitions.

This module defines the `Timestamp` attached to every write query. A timestamp is
either **Now** (the wall-clock time, sampled when the query is rendered) or an
explicit **instant**: an integer count of a [`Precision`][lineflux.enum.Precision] unit
since the Unix epoch.

The wall clock is only ever read through [`wall_clock()`][lineflux.models.timestamp.wall_clock],
and every method that resolves a `Now` timestamp accepts a `clock` override so that
tests can pin time.
"""

import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from ..enum import Precision
from ..errors import InvalidTimestampError
from .values import INT64_MAX, INT64_MIN

Clock = Callable[[], int]
"""A callable returning the current time as integer nanoseconds since the epoch."""

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def wall_clock() -> int:
    """The default clock: current system time in nanoseconds since the epoch."""
    return time.time_ns()


def _to_precision(precision) -> Precision:
    try:
        return Precision(precision)
    except ValueError as e:
        raise InvalidTimestampError(f"Unknown timestamp precision '{precision}'") from e


@dataclass(frozen=True)
class Timestamp:
    """
    The time of a point, as sent to the server.

    Use the factory methods rather than the constructor:

    ```python
    from lineflux import Timestamp, Precision

    Timestamp.now()                          # resolved at render time, in ns
    Timestamp.seconds(1577836800)            # explicit instant
    Timestamp.instant(1577836800000, Precision.MILLISECONDS)
    ```

    Attributes:
        value: The integer count of `precision` units, `None` for Now.
        precision: The unit of `value`, and the unit a Now timestamp resolves to.
    """

    value: Optional[int]
    precision: Precision = Precision.NANOSECONDS

    def __post_init__(self):
        # frozen dataclass: bypass __setattr__ to normalize the precision symbol
        object.__setattr__(self, "precision", _to_precision(self.precision))
        if self.value is None:
            return
        # bool is an int subclass, but 'True' is never a meaningful instant
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidTimestampError(
                f"Timestamp value must be an integer, got '{type(self.value).__name__}'"
            )
        if not (INT64_MIN <= self.value <= INT64_MAX):
            raise InvalidTimestampError(
                f"Timestamp {self.value}{self.precision} does not fit a signed 64-bit integer"
            )

    # --- Factories ---

    @classmethod
    def now(cls, precision: Precision = Precision.NANOSECONDS) -> "Timestamp":
        """A timestamp resolved from the wall clock at render time."""
        return cls(value=None, precision=precision)

    @classmethod
    def instant(cls, value: int, precision: Precision) -> "Timestamp":
        """
        An explicit instant.

        Raises:
            InvalidTimestampError: If `value` is not an integer in the signed 64-bit range,
                or `precision` is not a known unit.
        """
        return cls(value=value, precision=precision)

    @classmethod
    def nanoseconds(cls, value: int) -> "Timestamp":
        return cls.instant(value, Precision.NANOSECONDS)

    @classmethod
    def microseconds(cls, value: int) -> "Timestamp":
        return cls.instant(value, Precision.MICROSECONDS)

    @classmethod
    def milliseconds(cls, value: int) -> "Timestamp":
        return cls.instant(value, Precision.MILLISECONDS)

    @classmethod
    def seconds(cls, value: int) -> "Timestamp":
        return cls.instant(value, Precision.SECONDS)

    @classmethod
    def minutes(cls, value: int) -> "Timestamp":
        return cls.instant(value, Precision.MINUTES)

    @classmethod
    def hours(cls, value: int) -> "Timestamp":
        return cls.instant(value, Precision.HOURS)

    @classmethod
    def from_datetime(
        cls, dt: datetime, precision: Precision = Precision.MILLISECONDS
    ) -> "Timestamp":
        """
        Factory method creating an instant from a Python `datetime`.

        Naive datetimes are interpreted as UTC. Sub-unit parts are truncated
        towards the past.

        Args:
            dt: The datetime to convert.
            precision: The unit of the resulting instant. Defaults to milliseconds.
        """
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        # Integer arithmetic on the timedelta avoids float rounding
        delta = dt - _EPOCH
        total_us = (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
        unit_ns = _to_precision(precision).nanoseconds
        return cls.instant((total_us * 1_000) // unit_ns, precision)

    # --- Accessors ---

    @property
    def is_now(self) -> bool:
        return self.value is None

    def resolve(self, clock: Optional[Clock] = None) -> int:
        """
        Returns the integer count of `precision` units this timestamp stands for.

        Args:
            clock: Overrides [`wall_clock()`][lineflux.models.timestamp.wall_clock]
                when resolving a Now timestamp. Ignored for instants.
        """
        if self.value is not None:
            return self.value
        now_ns = (clock or wall_clock)()
        return now_ns // self.precision.nanoseconds

    def to_datetime(self, clock: Optional[Clock] = None) -> datetime:
        """
        Converts the timestamp to a UTC `datetime`.

        Warning: Microsecond Limitation
            Python's `datetime` objects support microsecond precision;
            nanosecond instants are truncated.
        """
        total_ns = self.resolve(clock) * self.precision.nanoseconds
        return _EPOCH + timedelta(microseconds=total_ns // 1_000)

    def __str__(self) -> str:
        if self.value is None:
            return f"now({self.precision})"
        return f"{self.value}{self.precision}"
