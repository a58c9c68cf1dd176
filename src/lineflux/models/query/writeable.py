"""
Writeable Records.

Turns user-defined pydantic models into write queries, so that points can be
described once as a typed record instead of chaining `add_tag`/`add_field`
calls by hand.

A record is writeable when it has a `time` attribute holding a
[`Timestamp`][lineflux.models.timestamp.Timestamp]. Attributes declared with
[`tag_field()`][lineflux.models.query.writeable.tag_field] become tags; every
other attribute becomes a field. Attributes set to `None` are omitted.

Example:
    ```python
    from typing import Optional
    from pydantic import BaseModel
    from lineflux import Timestamp, into_query, tag_field

    class WeatherReading(BaseModel):
        time: Timestamp
        city: str = tag_field()
        temperature: int
        humidity: Optional[float] = None

    reading = WeatherReading(time=Timestamp.seconds(1577836800), city="berlin", temperature=82)
    query = into_query(reading, "weather")
    assert query.build() == "weather,city=berlin temperature=82i 1577836800"
    ```
"""

from typing import Any

from pydantic import BaseModel, Field

from ...errors import InvalidQueryError
from ..timestamp import Timestamp
from .builders import WriteQuery

TIME_FIELD = "time"
"""Name of the record attribute holding the point timestamp."""

_TAG_MARKER = "lineflux_tag"


def tag_field(default: Any = ..., **kwargs) -> Any:
    """
    Declares a record attribute to be written as a tag.

    Accepts the same keyword arguments as `pydantic.Field`.
    """
    return Field(default, json_schema_extra={_TAG_MARKER: True}, **kwargs)


def _is_tag(field_info) -> bool:
    extra = field_info.json_schema_extra
    return isinstance(extra, dict) and bool(extra.get(_TAG_MARKER))


def into_query(record: BaseModel, measurement: str) -> WriteQuery:
    """
    Builds the write query describing `record`.

    Attributes are added in declaration order; aliases, when declared, are
    used as the tag or field keys.

    Args:
        record: A pydantic model instance with a `time` attribute.
        measurement: The measurement the point is written to.

    Returns:
        The write query. Building it still requires at least one non-`None` field.

    Raises:
        InvalidQueryError: If the record has no `Timestamp` in its `time` attribute.
    """
    timestamp = getattr(record, TIME_FIELD, None)
    if not isinstance(timestamp, Timestamp):
        raise InvalidQueryError(
            f"'{type(record).__name__}' has no '{TIME_FIELD}' attribute of type Timestamp"
        )

    query = WriteQuery(timestamp, measurement)
    for name, finfo in type(record).model_fields.items():
        if name == TIME_FIELD:
            continue
        key = finfo.alias or name
        value = getattr(record, name)
        if _is_tag(finfo):
            query = query.add_tag(key, value)
        else:
            query = query.add_field(key, value)
    return query
