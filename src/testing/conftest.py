import json
from typing import Callable, List

import httpx
import pytest

from lineflux import InfluxClient
from lineflux.comm import HttpxTransport

# 2020-01-01T00:00:00Z
FIXED_NOW_NS = 1_577_836_800_000_000_000


@pytest.fixture
def fixed_clock() -> Callable[[], int]:
    return lambda: FIXED_NOW_NS


class RecordingHandler:
    """httpx.MockTransport handler recording every request and replying with a canned response."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.status_code = 200
        self.body = b""
        self.headers = {}

    def reply_json(self, payload, status_code: int = 200):
        self.status_code = status_code
        self.body = json.dumps(payload).encode("utf-8")

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, content=self.body, headers=self.headers)


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def client(handler, fixed_clock):
    transport = HttpxTransport(client=httpx.Client(transport=httpx.MockTransport(handler)))
    with InfluxClient(
        "http://localhost:8086", "telemetry", transport=transport, clock=fixed_clock
    ) as _client:
        yield _client
