from enum import StrEnum


class Precision(StrEnum):
    """
    Time units a timestamp integer can be expressed in.

    The enum values are the symbols the server expects in the `precision`
    parameter of a write request and in the `epoch` parameter of a read
    request.
    """

    NANOSECONDS = "ns"
    MICROSECONDS = "u"
    MILLISECONDS = "ms"
    SECONDS = "s"
    MINUTES = "m"
    HOURS = "h"

    @property
    def nanoseconds(self) -> int:
        """Length of one unit, in nanoseconds."""
        return _UNIT_NANOSECONDS[self]


_UNIT_NANOSECONDS = {
    Precision.NANOSECONDS: 1,
    Precision.MICROSECONDS: 1_000,
    Precision.MILLISECONDS: 1_000_000,
    Precision.SECONDS: 1_000_000_000,
    Precision.MINUTES: 60 * 1_000_000_000,
    Precision.HOURS: 3600 * 1_000_000_000,
}
