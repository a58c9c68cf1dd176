"""
Client Entry Point.

This module provides the `InfluxClient`, the primary interface for running
queries against a server. It binds an immutable
[`ClientConfig`][lineflux.comm.config.ClientConfig] to a
[`Transport`][lineflux.comm.transport.Transport], and chains the three stages
of every call: request dispatching, a single network round-trip, and response
decoding.

The client never retries. Each call issues exactly one request; retry and
backoff policies, if needed, belong to the caller or to a custom transport.
"""

from typing import Any, Iterable, List, Optional, Tuple, Type

from ..logging_config import get_logger
from ..models.query import Query, QueryResult, WriteQuery
from ..models.query.response import Series, check_response
from ..models.timestamp import Clock
from .config import DEFAULT_TIMEOUT, ClientConfig
from .dispatch import build_batch_request, build_ping_request, build_request
from .transport import HttpxTransport, Transport

# Set the hierarchical logger
logger = get_logger(__name__)


class InfluxClient:
    """
    Runs read and write queries against one database of a server.

    Tip: Context Manager Usage
        The client is best used as a context manager so that the transport
        (and its connection pool) is released when done.

        ```python
        from lineflux import InfluxClient, Query, Timestamp

        with InfluxClient("http://localhost:8086", "telemetry") as client:
            client.query(
                Query.write_query(Timestamp.now(), "weather")
                .add_tag("city", "berlin")
                .add_field("temperature", 82)
            )
            print(client.query(Query.raw_read_query("SELECT * FROM weather")))
        ```
    """

    def __init__(
        self,
        url: str,
        database: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[Transport] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Args:
            url: The server base URL (e.g. `http://localhost:8086`).
            database: The database queries and writes are run against.
            timeout: Request timeout in seconds, used by the default transport.
            transport: A custom [`Transport`][lineflux.comm.transport.Transport].
                Defaults to an [`HttpxTransport`][lineflux.comm.transport.HttpxTransport].
            clock: Overrides the wall clock used to resolve `Timestamp.now()`.

        Raises:
            ValueError: If the URL or the database name is empty.
        """
        self._init(
            ClientConfig(url=url, database=database, timeout=timeout),
            transport,
            clock,
        )

    def _init(
        self,
        config: ClientConfig,
        transport: Optional[Transport],
        clock: Optional[Clock],
    ):
        self._config = config
        """The immutable connection settings, shared with derived clients."""
        self._transport: Transport = transport or HttpxTransport(timeout=config.timeout)
        """The network collaborator used for every request."""
        self._clock = clock
        """The clock used to resolve Now timestamps (wall clock when None)."""
        self._closed = False

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        transport: Optional[Transport] = None,
        clock: Optional[Clock] = None,
    ) -> "InfluxClient":
        """
        Creates a client from an existing configuration.

        Example:
            ```python
            from lineflux import ClientConfig, InfluxClient

            # Reads INFLUXDB_URL, INFLUXDB_DATABASE, INFLUXDB_USERNAME, ...
            client = InfluxClient.from_config(ClientConfig.from_env())
            ```
        """
        client = cls.__new__(cls)
        client._init(config, transport, clock)
        return client

    def with_auth(self, username: str, password: str) -> "InfluxClient":
        """
        Returns a client sending the given credentials with every request.

        The returned client shares the transport of this one (closing either
        closes both); the receiver is left unauthenticated.
        """
        return InfluxClient.from_config(
            self._config.with_auth(username, password), self._transport, self._clock
        )

    # --- Context Manager Protocol ---

    def __enter__(self) -> "InfluxClient":
        """Context manager entry point."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """
        Context manager exit point. Ensures the transport is closed.

        Exceptions raised within the `with` block are propagated.
        """
        self.close()

    def close(self) -> None:
        """Releases the transport. The client must not be used afterwards."""
        if not self._closed:
            self._transport.close()
            self._closed = True

    # --- Accessors ---

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def database_name(self) -> str:
        """The name of the database the client is using."""
        return self._config.database

    @property
    def database_url(self) -> str:
        """The base URL of the server the client is using."""
        return self._config.url

    # --- Main API Methods ---

    def ping(self) -> Tuple[str, str]:
        """
        Pings the server.

        Returns:
            The build type and the version reported by the server.

        Raises:
            TransportError: If the server is unreachable.
            DatabaseError: If the server answers with a failure status.
        """
        response = self._transport.send(build_ping_request(self._config))
        check_response(response)
        build = response.headers.get("x-influxdb-build", "")
        version = response.headers.get("x-influxdb-version", "")
        logger.debug(f"Server '{self._config.url}' answered ping: {build} {version}")
        return build, version

    def query(self, query: Query) -> str:
        """
        Runs a read or write query and returns the raw response body.

        The body is empty for writes, and the server JSON document for reads.

        Args:
            query: A [`WriteQuery`][lineflux.models.query.WriteQuery] or a
                [`ReadQuery`][lineflux.models.query.ReadQuery].

        Raises:
            EmptyQueryError: If the query carries no payload (raised before any I/O).
            UrlConstructionError: If the server URL is malformed.
            TransportError: If the request could not be sent.
            DatabaseError: If the server reports an error.
        """
        request = build_request(query, self._config, self._clock)
        return check_response(self._transport.send(request))

    def json_query(self, query: Query) -> QueryResult:
        """
        Runs a read query and parses its JSON response.

        Returns:
            A [`QueryResult`][lineflux.models.query.QueryResult], ready for
            typed decoding with `deserialize_next()`.

        Raises:
            DatabaseError: If the server, or one of the statements, reports an error.
            DeserializationError: If the body is not a valid result document.
        """
        return QueryResult.from_json(self.query(query))

    def json_query_as(self, query: Query, shape: Type[Any]) -> List[Series[Any]]:
        """
        Runs a single-statement read query and decodes its rows into `shape`.

        Shorthand for `json_query(query).deserialize_next(shape)`.
        """
        return self.json_query(query).deserialize_next(shape)

    def write_batch(self, queries: Iterable[WriteQuery]) -> str:
        """
        Writes several points with a single request.

        Raises:
            EmptyQueryError: If the batch is empty or a point has no fields.
            InvalidQueryError: If the points use different precisions.
            TransportError: If the request could not be sent.
            DatabaseError: If the server reports an error.
        """
        request = build_batch_request(queries, self._config, self._clock)
        return check_response(self._transport.send(request))

    def __repr__(self) -> str:
        return f"InfluxClient(url={self._config.url!r}, database={self._config.database!r})"

