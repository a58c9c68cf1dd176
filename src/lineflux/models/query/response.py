"""
Response Decoding.

This module interprets the bodies returned by the server:

* [`check_response()`][lineflux.models.query.response.check_response] classifies a raw
  HTTP response, turning failure statuses and `"error"` payloads into exceptions.
* [`QueryResult`][lineflux.models.query.response.QueryResult] models the JSON document
  returned by the `/query` endpoint (one result per statement, each holding zero or
  more series of rows).
* [`QueryResult.deserialize_next()`][lineflux.models.query.response.QueryResult.deserialize_next]
  decodes the rows of a statement into a caller-supplied record shape.

Typed decoding relies on `pydantic.TypeAdapter`, so any shape pydantic can
validate works: a `BaseModel`, a dataclass or a `TypedDict`. Columns missing
from a row (e.g. a tag the series was not grouped by) fall back to the
shape's defaults.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Iterator, List, Optional, Type, TypeVar

import pyarrow as pa
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from ...errors import (
    AuthenticationError,
    AuthorizationError,
    DatabaseError,
    DeserializationError,
)
from ...logging_config import get_logger

# Set the hierarchical logger
logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class HttpResponse:
    """
    The transport-agnostic view of a server response.

    Attributes:
        status_code: The HTTP status.
        body: The raw response body.
        headers: Response headers, with lower-cased names.
    """

    status_code: int
    body: bytes
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


def _extract_error(text: str) -> Optional[str]:
    """
    Returns the error message carried by a JSON body, if any.

    Both the top-level `"error"` and the per-statement errors of a `/query`
    response are looked up; the first one found wins.
    """
    try:
        payload = json.loads(text)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    if payload.get("error") is not None:
        return str(payload["error"])
    for stmt in payload.get("results") or []:
        if isinstance(stmt, dict) and stmt.get("error") is not None:
            return str(stmt["error"])
    return None


def check_response(response: HttpResponse) -> str:
    """
    Classifies a response and returns its body as text.

    Args:
        response: The response returned by the transport.

    Returns:
        The decoded body (empty for successful writes).

    Raises:
        AuthenticationError: On HTTP 401.
        AuthorizationError: On HTTP 403.
        DatabaseError: On any other failure status, or when the body carries
            an `"error"` field. The server message is kept verbatim.
        DeserializationError: If the body is not valid UTF-8.
    """
    try:
        text = response.body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DeserializationError(f"Response could not be decoded as UTF-8: '{e}'") from e

    message = _extract_error(text)
    status = response.status_code

    if status == 401:
        raise AuthenticationError(message or "authentication failed", status)
    if status == 403:
        raise AuthorizationError(message or "not authorized", status)
    if not response.is_success:
        raise DatabaseError(message or text.strip() or f"HTTP {status}", status)
    if message is not None:
        raise DatabaseError(message, status)
    return text


# --- JSON document ---


class SeriesPayload(BaseModel):
    """
    One series of a statement result, as sent by the server.

    Attributes:
        name: The measurement name (absent for some meta queries).
        tags: The GROUP BY tag values shared by every row of the series.
        columns: The column names, in row order.
        values: The rows.
    """

    name: Optional[str] = None
    tags: Dict[str, str] = Field(default_factory=dict)
    columns: List[str] = Field(default_factory=list)
    values: List[List[Any]] = Field(default_factory=list)

    def rows(self) -> Iterator[Dict[str, Any]]:
        """
        Yields each row as a `column -> value` mapping.

        Series tags are included in every row; a row column with the same
        name takes precedence.
        """
        for values in self.values:
            row: Dict[str, Any] = dict(self.tags)
            row.update(zip(self.columns, values))
            yield row

    def to_arrow(self) -> pa.Table:
        """
        Converts the series to a `pyarrow.Table`, one column per response column.

        Column types are inferred by pyarrow from the decoded JSON values.
        """
        return pa.table(
            {
                col: [row[idx] if idx < len(row) else None for row in self.values]
                for idx, col in enumerate(self.columns)
            }
        )


class StatementResult(BaseModel):
    """The result of a single statement of a (possibly batched) read query."""

    statement_id: int = 0
    series: List[SeriesPayload] = Field(default_factory=list)
    error: Optional[str] = None


@dataclass
class Series(Generic[T]):
    """
    A decoded series.

    Attributes:
        name: The measurement name.
        tags: The GROUP BY tag values of the series.
        values: The rows, decoded into the requested shape.
    """

    name: Optional[str]
    tags: Dict[str, str]
    values: List[T]


class QueryResult(BaseModel):
    """
    The JSON document returned by the `/query` endpoint.

    Statement results are consumed in order by
    [`deserialize_next()`][lineflux.models.query.response.QueryResult.deserialize_next],
    which mirrors the order of the statements in the batched query.

    Example:
        ```python
        from typing import Optional
        from datetime import datetime
        from pydantic import BaseModel
        from lineflux import InfluxClient, Query

        class Weather(BaseModel):
            time: datetime
            temperature: int
            city: Optional[str] = None

        with InfluxClient("http://localhost:8086", "telemetry") as client:
            result = client.json_query(Query.raw_read_query("SELECT * FROM weather"))
            for series in result.deserialize_next(Weather):
                print(series.name, [w.temperature for w in series.values])
        ```
    """

    results: List[StatementResult] = Field(default_factory=list)
    error: Optional[str] = None

    _cursor: int = 0

    @classmethod
    def from_json(cls, text: str) -> "QueryResult":
        """
        Parses a `/query` response body.

        Raises:
            DatabaseError: If the document, or any statement, carries an error.
            DeserializationError: If the body is not a valid result document.
        """
        try:
            result = cls.model_validate_json(text)
        except ValidationError as e:
            raise DeserializationError(f"Malformed query response: {e}") from e

        if result.error is not None:
            raise DatabaseError(result.error)
        for stmt in result.results:
            if stmt.error is not None:
                raise DatabaseError(stmt.error)
        return result

    def deserialize_next(self, shape: Type[T]) -> List[Series[T]]:
        """
        Decodes the rows of the next unread statement result into `shape`.

        Args:
            shape: The record type each row is validated against.

        Returns:
            One [`Series`][lineflux.models.query.response.Series] per series
            of the statement (empty if the statement matched nothing).

        Raises:
            DeserializationError: If no statement result is left, or a row
                does not fit `shape`. The error names the statement, the series
                and the row.
        """
        index = self._cursor
        if index >= len(self.results):
            raise DeserializationError(
                f"No statement result left to decode (response has {len(self.results)})",
                statement_index=index,
            )
        self._cursor += 1
        return _decode_statement(self.results[index], index, TypeAdapter(shape))

    def deserialize(self, shape: Type[T]) -> List[List[Series[T]]]:
        """Decodes every statement result into `shape`, in order."""
        adapter = TypeAdapter(shape)
        return [
            _decode_statement(stmt, idx, adapter)
            for idx, stmt in enumerate(self.results)
        ]


def _decode_statement(
    stmt: StatementResult, statement_index: int, adapter: TypeAdapter
) -> List[Series[Any]]:
    decoded = []
    for series_index, payload in enumerate(stmt.series):
        rows = []
        for row_index, row in enumerate(payload.rows()):
            try:
                rows.append(adapter.validate_python(row))
            except ValidationError as e:
                raise DeserializationError(
                    f"Cannot decode row {row_index} of series '{payload.name}' "
                    f"(statement {statement_index}, series {series_index}): {e}",
                    statement_index=statement_index,
                    series_index=series_index,
                    series_name=payload.name,
                    row_index=row_index,
                ) from e
        decoded.append(Series(name=payload.name, tags=dict(payload.tags), values=rows))
    logger.debug(
        f"Decoded {len(decoded)} series from statement {statement_index}"
    )
    return decoded
