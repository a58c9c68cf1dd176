import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import pytest
from pydantic import BaseModel

from lineflux import (
    AuthenticationError,
    AuthorizationError,
    DatabaseError,
    DeserializationError,
    QueryResult,
)
from lineflux.models.query import HttpResponse, check_response


def _ok(payload) -> HttpResponse:
    return HttpResponse(status_code=200, body=json.dumps(payload).encode("utf-8"))


WEATHER = {
    "results": [
        {
            "statement_id": 0,
            "series": [
                {
                    "name": "weather",
                    "tags": {"city": "berlin"},
                    "columns": ["time", "temperature"],
                    "values": [["2020-01-01T00:00:00Z", 82], ["2020-01-01T01:00:00Z", 79]],
                },
                {
                    "name": "weather",
                    "tags": {"city": "rome"},
                    "columns": ["time", "temperature"],
                    "values": [["2020-01-01T00:00:00Z", 91]],
                },
            ],
        },
        {"statement_id": 1},
    ]
}


class Reading(BaseModel):
    time: str
    temperature: int
    city: Optional[str] = None


# --- check_response ---


def test_successful_write_has_empty_body():
    assert check_response(HttpResponse(status_code=204, body=b"")) == ""


def test_successful_read_returns_text():
    assert check_response(_ok({"results": []})) == '{"results": []}'


def test_error_payload_with_success_status():
    with pytest.raises(DatabaseError) as excinfo:
        check_response(_ok({"error": "database not found"}))
    assert str(excinfo.value) == "database not found"
    assert excinfo.value.status_code == 200


def test_null_error_is_a_success():
    body = b'{"results": [{"statement_id": 0, "error": null}], "error": null}'
    text = check_response(HttpResponse(status_code=200, body=body))
    assert text == body.decode("utf-8")
    assert QueryResult.from_json(text).results[0].error is None


def test_failure_status_without_json():
    with pytest.raises(DatabaseError, match="bad gateway") as excinfo:
        check_response(HttpResponse(status_code=502, body=b"bad gateway\n"))
    assert excinfo.value.status_code == 502


def test_failure_status_without_body():
    with pytest.raises(DatabaseError, match="HTTP 500"):
        check_response(HttpResponse(status_code=500, body=b""))


def test_auth_statuses():
    with pytest.raises(AuthenticationError):
        check_response(HttpResponse(status_code=401, body=b""))
    with pytest.raises(AuthorizationError):
        check_response(HttpResponse(status_code=403, body=b'{"error": "forbidden"}'))


def test_invalid_utf8_body():
    with pytest.raises(DeserializationError, match="UTF-8"):
        check_response(HttpResponse(status_code=200, body=b"\xff\xfe"))


# --- QueryResult ---


def test_from_json_statement_error():
    payload = {"results": [{"statement_id": 0}, {"statement_id": 1, "error": "boom"}]}
    with pytest.raises(DatabaseError, match="boom"):
        QueryResult.from_json(json.dumps(payload))


def test_from_json_malformed_document():
    with pytest.raises(DeserializationError, match="Malformed"):
        QueryResult.from_json('{"results": 3}')


def test_series_tags_are_merged_into_rows():
    result = QueryResult.from_json(json.dumps(WEATHER))
    berlin, rome = result.deserialize_next(Reading)
    assert berlin.tags == {"city": "berlin"}
    assert [r.city for r in berlin.values] == ["berlin", "berlin"]
    assert [r.temperature for r in berlin.values] == [82, 79]
    assert rome.values == [Reading(time="2020-01-01T00:00:00Z", temperature=91, city="rome")]


def test_missing_optional_column_uses_default():
    payload = {
        "results": [
            {
                "series": [
                    {"name": "weather", "columns": ["time", "temperature"], "values": [["t", 1]]}
                ]
            }
        ]
    }
    (series,) = QueryResult.from_json(json.dumps(payload)).deserialize_next(Reading)
    assert series.values[0].city is None


def test_statements_are_consumed_in_order():
    result = QueryResult.from_json(json.dumps(WEATHER))
    assert len(result.deserialize_next(Reading)) == 2
    # second statement matched nothing
    assert result.deserialize_next(Reading) == []
    with pytest.raises(DeserializationError, match="No statement result left") as excinfo:
        result.deserialize_next(Reading)
    assert excinfo.value.statement_index == 2


def test_deserialize_all_statements():
    decoded = QueryResult.from_json(json.dumps(WEATHER)).deserialize(Reading)
    assert [len(stmt) for stmt in decoded] == [2, 0]


def test_row_mismatch_names_its_location():
    payload = json.loads(json.dumps(WEATHER))
    payload["results"][0]["series"][1]["values"].append(["t", "warm"])
    result = QueryResult.from_json(json.dumps(payload))
    with pytest.raises(DeserializationError) as excinfo:
        result.deserialize_next(Reading)
    err = excinfo.value
    assert (err.statement_index, err.series_index, err.row_index) == (0, 1, 1)
    assert err.series_name == "weather"
    assert "row 1" in str(err)


@dataclass
class ReadingRecord:
    temperature: int
    city: str = "unknown"


def test_dataclass_and_mapping_shapes():
    result = QueryResult.from_json(json.dumps(WEATHER))
    decoded = result.deserialize(ReadingRecord)
    assert decoded[0][0].values[0] == ReadingRecord(temperature=82, city="berlin")

    decoded = result.deserialize(Dict[str, Any])
    assert decoded[0][1].values[0]["temperature"] == 91
    assert decoded[0][1].values[0]["city"] == "rome"


def test_series_to_arrow():
    result = QueryResult.from_json(json.dumps(WEATHER))
    table = result.results[0].series[0].to_arrow()
    assert table.column_names == ["time", "temperature"]
    assert table.column("temperature").to_pylist() == [82, 79]
