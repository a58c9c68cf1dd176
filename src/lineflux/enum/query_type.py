from enum import Enum


class QueryType(Enum):
    """
    Discriminates the two kinds of query the server accepts.

    Used by the request dispatcher to pick the endpoint (`/query` or
    `/write`) a built query is sent to.
    """

    Read = "read"  # Raw statements sent to the '/query' endpoint.
    Write = "write"  # Line protocol points sent to the '/write' endpoint.
