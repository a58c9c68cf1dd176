from .builders import (
    Query as Query,
    WriteQuery as WriteQuery,
    ReadQuery as ReadQuery,
    write_query as write_query,
    raw_read_query as raw_read_query,
    build_batch as build_batch,
)
from .response import (
    HttpResponse as HttpResponse,
    QueryResult as QueryResult,
    StatementResult as StatementResult,
    SeriesPayload as SeriesPayload,
    Series as Series,
    check_response as check_response,
)
from .writeable import into_query as into_query, tag_field as tag_field
