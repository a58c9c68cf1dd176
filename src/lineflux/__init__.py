"""
lineflux - Python client for the InfluxDB 1.x HTTP API.

This module provides the main entry points:

- **InfluxClient**: Runs queries against a server database.
- **Query builders**: `WriteQuery` (line protocol points) and `ReadQuery`
  (raw statements).
- **Models**: Typed field values and timestamps.

Example:
    >>> from lineflux import InfluxClient, Query, Timestamp
    >>> with InfluxClient("http://localhost:8086", "telemetry") as client:
    ...     client.query(
    ...         Query.write_query(Timestamp.now(), "weather").add_field("temperature", 82)
    ...     )
"""

from .logging_config import _install_null_handler

# The SDK stays silent until setup_sdk_logging() is called
_install_null_handler()

# --- Client ---
from .comm import (  # noqa: E402
    InfluxClient as InfluxClient,
    ClientConfig as ClientConfig,
    Credentials as Credentials,
    Transport as Transport,
    HttpxTransport as HttpxTransport,
)

# --- Enums ---
from .enum import Precision as Precision, QueryType as QueryType  # noqa: E402

# --- Errors ---
from .errors import (  # noqa: E402
    LineFluxError as LineFluxError,
    InvalidQueryError as InvalidQueryError,
    EmptyQueryError as EmptyQueryError,
    InvalidTimestampError as InvalidTimestampError,
    UrlConstructionError as UrlConstructionError,
    TransportError as TransportError,
    DatabaseError as DatabaseError,
    AuthenticationError as AuthenticationError,
    AuthorizationError as AuthorizationError,
    DeserializationError as DeserializationError,
)

# --- Models ---
from .models import (  # noqa: E402
    Value as Value,
    String as String,
    Float as Float,
    Integer as Integer,
    UnsignedInteger as UnsignedInteger,
    Boolean as Boolean,
    Timestamp as Timestamp,
)

# --- Queries ---
from .models.query import (  # noqa: E402
    Query as Query,
    WriteQuery as WriteQuery,
    ReadQuery as ReadQuery,
    QueryResult as QueryResult,
    Series as Series,
    write_query as write_query,
    raw_read_query as raw_read_query,
    into_query as into_query,
    tag_field as tag_field,
)

# --- Logging ---
from .logging_config import get_logger as get_logger, setup_sdk_logging as setup_sdk_logging  # noqa: E402
