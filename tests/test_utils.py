import io
import json
import logging

from connector_sdk.messages import MessageWriter
from connector_sdk.utils import MessageLogHandler, protocol_level, setup_connector_logging


def test_protocol_levels():
    assert protocol_level(logging.DEBUG) == "debug"
    assert protocol_level(logging.INFO) == "info"
    assert protocol_level(logging.WARNING) == "warn"
    assert protocol_level(logging.ERROR) == "error"
    assert protocol_level(logging.CRITICAL) == "fatal"


def test_records_become_log_messages():
    stream = io.StringIO()
    logger = setup_connector_logging("connector", messages=MessageWriter(stream=stream))

    logger.debug("hidden at INFO")
    logger.warning("Slow response", extra={"fields": {"account": "act_1"}})

    [record] = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert record["type"] == "log"
    assert record["level"] == "warn"
    assert record["msg"] == "Slow response"
    assert record["fields"] == {"account": "act_1"}


def test_exceptions_are_attached_to_fields():
    stream = io.StringIO()
    logger = logging.getLogger("connector")
    logger.handlers.clear()
    logger.addHandler(MessageLogHandler(MessageWriter(stream=stream)))

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        logger.exception("Fetch failed")

    record = json.loads(stream.getvalue())
    assert record["level"] == "error"
    assert "RuntimeError: boom" in record["fields"]["exception"]


def test_debug_logging_goes_to_the_console(capsys):
    logger = setup_connector_logging("connector", debug=True)

    logger.debug("Fetching campaigns")

    out = capsys.readouterr().out
    assert "[DEBUG] Fetching campaigns" in out
    assert not out.startswith("{")
