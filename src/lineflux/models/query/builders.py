"""
This module provides the "Fluent" API for building the requests sent to the server.

**Key Components:**

* [**`Query`**][lineflux.models.query.builders.Query]: The common base of every buildable query,
  and the factory for the concrete builders.
* [**`WriteQuery`**][lineflux.models.query.builders.WriteQuery]: A single point (measurement, tags,
  fields and timestamp), rendered to line protocol.
* [**`ReadQuery`**][lineflux.models.query.builders.ReadQuery]: One or more raw statements, passed
  through to the server unchanged.

Builders are immutable: every `add_*` call returns a new instance and leaves
the receiver untouched, so a partially built query can be safely shared and
extended by several callers. Rendering is deferred to `build()`.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from ...enum import Precision, QueryType
from ...errors import EmptyQueryError, InvalidQueryError
from ...helpers import escape_identifier, escape_measurement
from ...logging_config import get_logger
from ..timestamp import Clock, Timestamp, wall_clock
from ..values import Value, ValueLike, to_value

# Set the hierarchical logger
logger = get_logger(__name__)

STATEMENT_SEPARATOR = ";"


class Query:
    """
    Base class of the buildable queries.

    Subclasses implement `build()`, which renders the final wire text, and
    declare their `query_type`, which the dispatcher uses to pick the endpoint.

    Example:
        ```python
        from lineflux import Query, Timestamp

        write = (
            Query.write_query(Timestamp.seconds(1577836800), "weather")
            .add_tag("city", "berlin")
            .add_field("temperature", 82)
        )
        assert write.build() == "weather,city=berlin temperature=82i 1577836800"

        read = Query.raw_read_query("SELECT * FROM weather")
        assert read.build() == "SELECT * FROM weather"
        ```
    """

    query_type: QueryType

    def build(self, clock: Optional[Clock] = None) -> str:
        """
        Renders the query to its wire representation.

        Args:
            clock: Overrides the wall clock used to resolve `Timestamp.now()`.

        Raises:
            EmptyQueryError: If the query carries no payload.
        """
        raise NotImplementedError

    @staticmethod
    def write_query(timestamp: Timestamp, measurement: str) -> "WriteQuery":
        """Returns a new [`WriteQuery`][lineflux.models.query.builders.WriteQuery] with no tags or fields."""
        return WriteQuery(timestamp, measurement)

    @staticmethod
    def raw_read_query(statement: str) -> "ReadQuery":
        """Returns a new [`ReadQuery`][lineflux.models.query.builders.ReadQuery] holding one statement."""
        return ReadQuery(statement)


class WriteQuery(Query):
    """
    A single point to be written through the `/write` endpoint.

    Tags and fields keep their insertion order. Adding a name twice replaces
    the previous value in place (last write wins).

    Note: Tags vs Fields
        Tags are indexed strings: whatever value kind is passed, it is written
        as plain text. Fields are typed: they follow the encoding of their
        [`Value`][lineflux.models.values.Value] kind. A point without fields is
        rejected by [`build()`][lineflux.models.query.builders.WriteQuery.build].
    """

    query_type = QueryType.Write

    def __init__(
        self,
        timestamp: Timestamp,
        measurement: str,
        tags: Optional[Dict[str, Value]] = None,
        fields: Optional[Dict[str, Value]] = None,
    ):
        if not measurement:
            raise InvalidQueryError("Empty measurement name")
        self._timestamp = timestamp
        self._measurement = measurement
        self._tags: Dict[str, Value] = dict(tags or {})
        self._fields: Dict[str, Value] = dict(fields or {})

    def _copy_with(
        self,
        tags: Optional[Dict[str, Value]] = None,
        fields: Optional[Dict[str, Value]] = None,
    ) -> "WriteQuery":
        return WriteQuery(
            self._timestamp,
            self._measurement,
            tags=self._tags if tags is None else tags,
            fields=self._fields if fields is None else fields,
        )

    # --- Builder API ---

    def add_tag(self, name: str, value: Optional[ValueLike]) -> "WriteQuery":
        """
        Returns a copy of the query with the tag `name` set to `value`.

        A `None` value leaves the query unchanged.

        Args:
            name: The tag key.
            value: A [`Value`][lineflux.models.values.Value] or a Python native.
        """
        if value is None:
            return self
        tags = dict(self._tags)
        tags[name] = to_value(value)
        return self._copy_with(tags=tags)

    def add_field(self, name: str, value: Optional[ValueLike]) -> "WriteQuery":
        """
        Returns a copy of the query with the field `name` set to `value`.

        A `None` value leaves the query unchanged, which lets optional record
        attributes be passed through directly.

        Args:
            name: The field key.
            value: A [`Value`][lineflux.models.values.Value] or a Python native.
        """
        if value is None:
            return self
        fields = dict(self._fields)
        fields[name] = to_value(value)
        return self._copy_with(fields=fields)

    # --- Accessors ---

    @property
    def measurement(self) -> str:
        return self._measurement

    @property
    def timestamp(self) -> Timestamp:
        return self._timestamp

    @property
    def precision(self) -> Precision:
        """The unit of the rendered timestamp, sent as the `precision` parameter."""
        return self._timestamp.precision

    @property
    def tags(self) -> List[Tuple[str, Value]]:
        return list(self._tags.items())

    @property
    def fields(self) -> List[Tuple[str, Value]]:
        return list(self._fields.items())

    # --- Rendering ---

    def build(self, clock: Optional[Clock] = None) -> str:
        """
        Renders the point as a line protocol line:
        `measurement[,tag=value...] field=value[,field=value...] timestamp`.

        Raises:
            EmptyQueryError: If no field was added.
        """
        if not self._fields:
            raise EmptyQueryError(
                f"Write query for measurement '{self._measurement}' has no fields"
            )

        parts = [escape_measurement(self._measurement)]
        for name, value in self._tags.items():
            text = value.to_tag()
            if not text:
                # the server rejects empty tag values
                logger.debug(f"Dropping empty tag '{name}' from '{self._measurement}'")
                continue
            parts.append(f"{escape_identifier(name)}={escape_identifier(text)}")

        fields = ",".join(
            f"{escape_identifier(name)}={value.to_line_protocol()}"
            for name, value in self._fields.items()
        )
        return f"{','.join(parts)} {fields} {self._timestamp.resolve(clock)}"

    def __repr__(self) -> str:
        return (
            f"WriteQuery(measurement={self._measurement!r}, tags={len(self._tags)}, "
            f"fields={len(self._fields)}, timestamp={self._timestamp})"
        )


class ReadQuery(Query):
    """
    One or more raw statements sent through the `/query` endpoint.

    Statements are not validated by the SDK. Batched statements are joined
    with `;` and the server answers with one result per statement, in order.

    Example:
        ```python
        from lineflux import Precision, Query

        query = (
            Query.raw_read_query("SELECT * FROM a")
            .add_query("SELECT * FROM b")
            .with_epoch(Precision.SECONDS)
        )
        assert query.build() == "SELECT * FROM a;SELECT * FROM b"
        ```
    """

    query_type = QueryType.Read

    def __init__(self, *statements: str, epoch: Optional[Precision] = None):
        self._statements: Tuple[str, ...] = tuple(statements)
        self._epoch = Precision(epoch) if epoch is not None else None

    def add_query(self, statement: str) -> "ReadQuery":
        """Returns a copy of the query with `statement` appended to the batch."""
        return ReadQuery(*self._statements, statement, epoch=self._epoch)

    def with_epoch(self, precision: Optional[Precision]) -> "ReadQuery":
        """
        Returns a copy of the query asking the server to report timestamps as
        integer counts of `precision` instead of RFC3339 strings.
        """
        return ReadQuery(*self._statements, epoch=precision)

    @property
    def statements(self) -> Tuple[str, ...]:
        return self._statements

    @property
    def epoch(self) -> Optional[Precision]:
        return self._epoch

    def build(self, clock: Optional[Clock] = None) -> str:
        """
        Joins the statements with `;`, preserving their order.

        Raises:
            EmptyQueryError: If every statement is blank.
        """
        if not any(s.strip() for s in self._statements):
            raise EmptyQueryError("Read query has no statements")
        return STATEMENT_SEPARATOR.join(self._statements)

    def __repr__(self) -> str:
        return f"ReadQuery(statements={list(self._statements)!r}, epoch={self._epoch})"


def write_query(timestamp: Timestamp, measurement: str) -> WriteQuery:
    """Shorthand for [`Query.write_query()`][lineflux.models.query.builders.Query.write_query]."""
    return Query.write_query(timestamp, measurement)


def raw_read_query(statement: str) -> ReadQuery:
    """Shorthand for [`Query.raw_read_query()`][lineflux.models.query.builders.Query.raw_read_query]."""
    return Query.raw_read_query(statement)


def build_batch(
    queries: Iterable[WriteQuery], clock: Optional[Clock] = None
) -> Tuple[str, Precision]:
    """
    Renders several points as a single newline-separated write body.

    All points of a batch are sent with one `precision` parameter, so they must
    share the same timestamp unit.

    Args:
        queries: The points to render.
        clock: Overrides the wall clock used to resolve `Timestamp.now()`.

    Returns:
        The write body and the shared precision.

    Raises:
        EmptyQueryError: If the batch is empty, or a point has no fields.
        InvalidQueryError: If the points use different precisions.
    """
    queries = list(queries)
    if not queries:
        raise EmptyQueryError("Write batch is empty")

    precision = queries[0].precision
    for q in queries[1:]:
        if q.precision != precision:
            raise InvalidQueryError(
                f"Mixed precisions in write batch: '{precision}' and '{q.precision}'"
            )

    # Sample the clock once so every Now point of the batch shares the same instant
    if clock is None and any(q.timestamp.is_now for q in queries):
        now_ns = wall_clock()

        def clock() -> int:
            return now_ns

    return "\n".join(q.build(clock) for q in queries), precision
