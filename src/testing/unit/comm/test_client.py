from typing import Optional

import httpx
import pytest
from pydantic import BaseModel

from lineflux import (
    AuthenticationError,
    AuthorizationError,
    ClientConfig,
    DatabaseError,
    EmptyQueryError,
    InfluxClient,
    Timestamp,
    TransportError,
    raw_read_query,
    write_query,
)
from lineflux.comm import HttpxTransport
from lineflux.comm.dispatch import build_request
from testing.conftest import FIXED_NOW_NS


def test_fn_database():
    client = InfluxClient("http://localhost:8068", "database")
    assert client.database_name == "database"
    assert client.database_url == "http://localhost:8068"
    assert client.config.auth is None
    client.close()


def test_with_auth_returns_a_new_client():
    client = InfluxClient("http://localhost:8068", "database")
    with_auth = client.with_auth("username", "hunter2")
    assert client.config.auth is None
    assert with_auth.config.auth.username == "username"
    assert with_auth.config.auth.password == "hunter2"
    assert "hunter2" not in repr(with_auth.config.auth)
    client.close()


def test_from_config():
    config = ClientConfig(url="http://localhost:8086", database="telemetry", timeout=1.5)
    with InfluxClient.from_config(config) as client:
        assert client.config is config


def test_write(client, handler):
    body = client.query(
        write_query(Timestamp.now(), "weather").add_tag("city", "berlin").add_field("temperature", 82)
    )
    assert body == ""
    (request,) = handler.requests
    assert request.method == "POST"
    assert request.url.path == "/write"
    assert request.url.params["db"] == "telemetry"
    assert request.url.params["precision"] == "ns"
    assert request.content == f"weather,city=berlin temperature=82i {FIXED_NOW_NS}".encode()


def test_empty_write_issues_no_request(client, handler):
    with pytest.raises(EmptyQueryError):
        client.query(write_query(Timestamp.now(), "weather"))
    assert handler.requests == []


def test_read_returns_raw_body(client, handler):
    handler.reply_json({"results": [{"statement_id": 0}]})
    body = client.query(raw_read_query("SHOW DATABASES"))
    assert body == '{"results": [{"statement_id": 0}]}'
    assert handler.requests[0].method == "GET"


def test_transport_sends_the_dispatched_url_verbatim(client, handler):
    """The URL built by the dispatcher must reach the wire without a second encoding."""
    query = raw_read_query("SELECT * FROM \"a b\" WHERE t = '100%' AND p = 'x/y&z'")
    handler.reply_json({"results": [{"statement_id": 0}]})
    client.query(query)

    expected = build_request(query, client.config)
    sent = handler.requests[0]
    assert str(sent.url) == expected.url
    assert sent.url.params["q"] == query.build()


def test_database_error_payload(client, handler):
    handler.reply_json({"error": "database not found"})
    with pytest.raises(DatabaseError) as excinfo:
        client.query(raw_read_query("SELECT * FROM weather"))
    assert excinfo.value.message == "database not found"
    assert str(excinfo.value) == "database not found"


def test_statement_error_payload(client, handler):
    handler.reply_json({"results": [{"statement_id": 0, "error": "measurement not found"}]})
    with pytest.raises(DatabaseError, match="measurement not found"):
        client.query(raw_read_query("SELECT * FROM weather"))


def test_failure_status(client, handler):
    handler.reply_json({"error": "unable to parse 'weather'"}, status_code=400)
    with pytest.raises(DatabaseError) as excinfo:
        client.query(write_query(Timestamp.now(), "weather").add_field("t", 1))
    assert excinfo.value.message == "unable to parse 'weather'"
    assert excinfo.value.status_code == 400


def test_authentication_statuses(client, handler):
    handler.reply_json({"error": "authorization failed"}, status_code=401)
    with pytest.raises(AuthenticationError, match="authorization failed"):
        client.query(raw_read_query("SHOW DATABASES"))

    handler.reply_json({"error": "forbidden"}, status_code=403)
    with pytest.raises(AuthorizationError):
        client.query(raw_read_query("SHOW DATABASES"))


def test_credentials_reach_the_server(client, handler):
    handler.reply_json({"results": []})
    client.with_auth("admin", "secret").query(raw_read_query("SHOW DATABASES"))
    params = handler.requests[0].url.params
    assert (params["u"], params["p"]) == ("admin", "secret")


class Weather(BaseModel):
    temperature: int
    city: Optional[str] = None


def test_json_query_typed(client, handler):
    handler.reply_json(
        {
            "results": [
                {
                    "statement_id": 0,
                    "series": [
                        {
                            "name": "weather",
                            "columns": ["time", "temperature", "city"],
                            "values": [
                                ["2020-01-01T00:00:00Z", 82, "berlin"],
                                ["2020-01-01T01:00:00Z", 80, None],
                            ],
                        }
                    ],
                }
            ]
        }
    )
    (series,) = client.json_query_as(raw_read_query("SELECT * FROM weather"), Weather)
    assert series.name == "weather"
    assert series.values == [Weather(temperature=82, city="berlin"), Weather(temperature=80)]


def test_write_batch(client, handler):
    client.write_batch(
        [
            write_query(Timestamp.seconds(1), "a").add_field("f", 1),
            write_query(Timestamp.seconds(2), "a").add_field("f", 2),
        ]
    )
    assert handler.requests[0].content == b"a f=1i 1\na f=2i 2"
    assert handler.requests[0].url.params["precision"] == "s"


def test_ping(client, handler):
    handler.status_code = 204
    handler.headers = {"X-Influxdb-Build": "OSS", "X-Influxdb-Version": "1.8.10"}
    assert client.ping() == ("OSS", "1.8.10")
    assert handler.requests[0].url.path == "/ping"


def test_transport_error_is_classified():
    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = HttpxTransport(client=httpx.Client(transport=httpx.MockTransport(unreachable)))
    with InfluxClient("http://localhost:8086", "telemetry", transport=transport) as client:
        with pytest.raises(TransportError, match="connection refused") as excinfo:
            client.query(raw_read_query("SHOW DATABASES"))
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_close_releases_the_transport():
    class FakeTransport:
        closed = 0

        def send(self, request):
            raise AssertionError("no request expected")

        def close(self):
            self.closed += 1

    transport = FakeTransport()
    client = InfluxClient("http://localhost:8086", "telemetry", transport=transport)
    with client:
        pass
    client.close()
    assert transport.closed == 1
