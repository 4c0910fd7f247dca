import base64
import io
import json
import logging

import pandas as pd
import pytest

from connector_sdk.errors import ErrorCode, InvalidUpsert, QError
from connector_sdk.messages import MessageWriter, encode_row


def _lines(stream: io.StringIO) -> list:
    return [json.loads(line) for line in stream.getvalue().splitlines()]


@pytest.fixture()
def stream():
    return io.StringIO()


@pytest.fixture()
def writer(stream):
    return MessageWriter(debug=False, stream=stream)


def test_upsert_writes_base64_encoded_row(writer, stream):
    writer.upsert({"requestId": "insights", "spend": 1.5, "clicks": 3}, {"date": "2024-01-02"})

    [record] = _lines(stream)
    assert list(record) == [
        "type", "id", "ad_account", "request_id", "parent_id", "child_id", "message", "date",
    ]
    assert record["type"] == "processed"
    assert record["request_id"] == "insights"
    assert record["date"] == "2024-01-02"
    decoded = base64.b64decode(record["message"]).decode("utf-8")
    assert decoded == '{"clicks":3,"requestId":"insights","spend":1.5}'


def test_upsert_account_id_wins_over_ad_account(writer):
    record = writer.upsert(
        {"requestId": "r", "adAccount": "from-ad-account", "accountId": "from-account-id"}, {}
    )

    assert record["ad_account"] == "from-account-id"
    assert record["date"] == ""


def test_upsert_empty_state_date_is_a_dimension(writer):
    record = writer.upsert({"requestId": "campaigns"}, {"date": ""})

    assert record["date"] == "dimension"


def test_upsert_rejects_invalid_state_date(writer, stream):
    with pytest.raises(InvalidUpsert):
        writer.upsert({"requestId": "r"}, {"date": "2024-02-30"})

    assert stream.getvalue() == ""


@pytest.mark.parametrize("row", [{}, {"requestId": 12}, {"requestId": None}])
def test_upsert_requires_request_id(writer, row):
    with pytest.raises(InvalidUpsert) as exc_info:
        writer.upsert(row, {})

    assert exc_info.value.to_qerror().code == ErrorCode.INVALID_UPSERT


def test_upsert_debug_mode_logs_plain_json(stream, caplog):
    writer = MessageWriter(debug=True, stream=stream, logger=logging.getLogger("test.messages"))

    with caplog.at_level(logging.INFO, logger="test.messages"):
        record = writer.upsert({"requestId": "r", "b": 1, "a": 2}, {"date": "dimension"})

    assert stream.getvalue() == ""
    assert record["message"] == '{"a":2,"b":1,"requestId":"r"}'
    assert "Processed row (DEBUG MODE)" in caplog.text


def test_upsert_frame_sends_one_message_per_row(writer, stream):
    df = pd.DataFrame({
        "date": ["2024-01-01", "2024-01-02"],
        "spend": [10.0, float("nan")],
    })

    count = writer.upsert_frame(df, {"date": "2024-01-01"}, "insights", ad_account="act_1")

    records = _lines(stream)
    assert count == 2
    assert [r["ad_account"] for r in records] == ["act_1", "act_1"]
    second = json.loads(base64.b64decode(records[1]["message"]))
    assert second == {"accountId": "act_1", "date": "2024-01-02", "requestId": "insights", "spend": None}


def test_upsert_frame_empty_frame(writer, stream):
    assert writer.upsert_frame(pd.DataFrame(), {}, "r") == 0
    assert stream.getvalue() == ""


def test_log_message(writer, stream):
    writer.log("warn", "Rate limited", {"retry_in": 2})
    writer.info("Done")

    first, second = _lines(stream)
    assert first["type"] == "log"
    assert first["level"] == "warn"
    assert first["msg"] == "Rate limited"
    assert first["fields"] == {"retry_in": 2}
    assert first["timestamp"].endswith("Z")
    assert second["fields"] is None


def test_error_log_carries_code(writer, stream):
    writer.error(QError(code=ErrorCode.TIMEOUT, message="insights call", err="read timeout"))

    [record] = _lines(stream)
    assert record["level"] == "error"
    assert record["msg"] == "code: 2010, message: Timeout, cause: read timeout"
    assert record["fields"] == {"code": 2010, "message": "insights call", "err": "read timeout"}


def test_checkpoint_without_error(writer, stream):
    writer.checkpoint({"date": "2024-01-02", "requestId": "insights"})

    [record] = _lines(stream)
    assert record["type"] == "checkpoint"
    assert record["state"] == {"date": "2024-01-02", "requestId": "insights"}
    assert record["error"] is None


def test_checkpoint_with_error(writer, stream):
    writer.checkpoint({}, QError(code=ErrorCode.RATE_LIMIT_EXCEEDED, err="429"))

    [record] = _lines(stream)
    assert record["error"] == {"code": 2000, "message": "Rate Limit Exceeded", "error": "429"}


def test_credentials_message(writer, stream):
    writer.update_credentials({"access_token": "new"})

    [record] = _lines(stream)
    assert record["type"] == "credentials"
    assert record["credentials"] == {"access_token": "new"}


def test_debug_credentials_are_written_to_file(tmp_path, stream):
    writer = MessageWriter(debug=True, stream=stream)
    target = tmp_path / "credentials.json"

    writer.update_credentials({"access_token": "new"}, target)

    assert json.loads(target.read_text(encoding="utf-8")) == {"access_token": "new"}
    assert stream.getvalue() == ""


def test_dump_to_file_only_in_debug(tmp_path):
    assert MessageWriter(debug=False).dump_to_file(tmp_path / "rows", [1]) is None
    assert not (tmp_path / "rows.json").exists()

    written = MessageWriter(debug=True).dump_to_file(tmp_path / "rows", [{"a": 1}])

    assert written == tmp_path / "rows.json"
    assert json.loads(written.read_text(encoding="utf-8")) == [{"a": 1}]


def test_encode_row_handles_dates_and_sorting():
    from datetime import date

    assert encode_row({"b": date(2024, 1, 1), "a": 1}) == '{"a":1,"b":"2024-01-01"}'
