"""
Request Dispatching.

Maps a built query to the HTTP request that executes it. This module does no
I/O: it produces [`HttpRequest`][lineflux.comm.dispatch.HttpRequest] values that a
[`Transport`][lineflux.comm.transport.Transport] sends.

Every dynamic part of the request (database name, credentials, statements) is
percent-encoded here, exactly once. The URL of a request is final: transports
must send it verbatim and never re-encode it.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import quote, urlencode, urlsplit

from ..errors import UrlConstructionError
from ..logging_config import get_logger
from ..models.query import Query, ReadQuery, WriteQuery, build_batch
from ..models.query.builders import STATEMENT_SEPARATOR
from ..models.timestamp import Clock
from .config import ClientConfig

# Set the hierarchical logger
logger = get_logger(__name__)

MAX_GET_QUERY_BYTES = 2048
"""Above this encoded length, read queries are sent as POST form bodies."""

_READ_ONLY_PREFIXES = ("SELECT", "SHOW")
# SELECT ... INTO writes, the server only accepts it over POST
_INTO_CLAUSE = re.compile(r"\sINTO\s", re.IGNORECASE)

_TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"
_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True)
class HttpRequest:
    """
    A fully resolved HTTP request.

    Attributes:
        method: `GET` or `POST`.
        url: The final, already encoded URL (query string included).
        body: The request body, if any.
        headers: Extra request headers.
    """

    method: str
    url: str
    body: Optional[bytes] = None
    headers: Dict[str, str] = field(default_factory=dict)


def _encode(params: List[Tuple[str, str]]) -> str:
    # safe="" so that '/', '&', '=' and friends inside values are always escaped
    return urlencode(params, safe="", quote_via=quote)


def _endpoint(config: ClientConfig, path: str) -> str:
    parts = urlsplit(config.url)
    if not parts.scheme or not parts.netloc:
        raise UrlConstructionError(
            f"Invalid server URL '{config.url}': expected 'scheme://host[:port]'"
        )
    return f"{config.url}/{path}"


def _base_params(config: ClientConfig) -> List[Tuple[str, str]]:
    params = [("db", config.database)]
    if config.auth is not None:
        params.append(("u", config.auth.username))
        params.append(("p", config.auth.password))
    return params


def _is_read_only(statements: Iterable[str]) -> bool:
    # a raw statement may itself hold a ';'-separated batch
    pieces = [p.strip() for s in statements for p in s.split(STATEMENT_SEPARATOR)]
    return all(
        p.upper().startswith(_READ_ONLY_PREFIXES) and not _INTO_CLAUSE.search(p)
        for p in pieces
        if p
    )


def build_write_request(body: str, precision: str, config: ClientConfig) -> HttpRequest:
    """Returns the `POST /write` request carrying a line protocol body."""
    params = _base_params(config) + [("precision", str(precision))]
    return HttpRequest(
        method="POST",
        url=f"{_endpoint(config, 'write')}?{_encode(params)}",
        body=body.encode("utf-8"),
        headers={"Content-Type": _TEXT_CONTENT_TYPE},
    )


def build_read_request(query: ReadQuery, config: ClientConfig) -> HttpRequest:
    """
    Returns the `/query` request executing a read query.

    The request is a `GET` with the statements in the `q` parameter, unless:

    * a statement is not a `SELECT`/`SHOW`, or is a `SELECT ... INTO` (the server only accepts
      mutating statements such as `CREATE DATABASE` over `POST`), or
    * the encoded query string exceeds `MAX_GET_QUERY_BYTES`.

    In both cases the request becomes a `POST` whose form-encoded body holds
    the `q` parameter, while `db` and the credentials stay in the URL.

    Raises:
        EmptyQueryError: If the query has no statement.
        UrlConstructionError: If the server URL is malformed.
    """
    statement = query.build()
    endpoint = _endpoint(config, "query")
    params = _base_params(config)
    if query.epoch is not None:
        params.append(("epoch", str(query.epoch)))

    q_param = _encode([("q", statement)])
    url_params = _encode(params)

    fits_url = len(q_param) + len(url_params) + 1 <= MAX_GET_QUERY_BYTES
    if _is_read_only(query.statements) and fits_url:
        return HttpRequest(method="GET", url=f"{endpoint}?{url_params}&{q_param}")

    return HttpRequest(
        method="POST",
        url=f"{endpoint}?{url_params}",
        body=q_param.encode("ascii"),
        headers={"Content-Type": _FORM_CONTENT_TYPE},
    )


def build_request(
    query: Query, config: ClientConfig, clock: Optional[Clock] = None
) -> HttpRequest:
    """
    Maps any built query to its HTTP request.

    Args:
        query: A [`WriteQuery`][lineflux.models.query.WriteQuery] or a
            [`ReadQuery`][lineflux.models.query.ReadQuery].
        config: The client configuration.
        clock: Overrides the wall clock used to resolve `Timestamp.now()`.

    Raises:
        EmptyQueryError: If the query carries no payload.
        UrlConstructionError: If the server URL is malformed.
    """
    if isinstance(query, WriteQuery):
        request = build_write_request(query.build(clock), query.precision, config)
    elif isinstance(query, ReadQuery):
        request = build_read_request(query, config)
    else:
        raise TypeError(f"Unsupported query type '{type(query).__name__}'")

    logger.debug(
        f"Dispatching {query.query_type.value} query as "
        f"{request.method} {urlsplit(request.url).path}"
    )
    return request


def build_batch_request(
    queries: Iterable[WriteQuery], config: ClientConfig, clock: Optional[Clock] = None
) -> HttpRequest:
    """
    Maps several points to a single `POST /write` request.

    Raises:
        EmptyQueryError: If the batch is empty or a point has no fields.
        InvalidQueryError: If the points use different precisions.
        UrlConstructionError: If the server URL is malformed.
    """
    body, precision = build_batch(queries, clock)
    return build_write_request(body, precision, config)


def build_ping_request(config: ClientConfig) -> HttpRequest:
    """Returns the `GET /ping` request."""
    return HttpRequest(method="GET", url=_endpoint(config, "ping"))
