import json

import pytest

from connector_sdk.cli import ConnectorRun, create_connector_parser, process
from connector_sdk.errors import ErrorCode
from connector_sdk.models import ResumeState


def _wrapper(request_id: str, is_dimension: bool = False) -> dict:
    return {"connectorsaccountrequest": {"id": request_id, "status": 200, "isDimension": is_dimension}}


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DATA_PATH", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)


@pytest.fixture()
def config_path(write_json):
    return write_json("config.json", {
        "connectorConf": {
            "requests": [_wrapper("campaigns", is_dimension=True), _wrapper("insights")],
            "adaccounts": [{"account_id": "act_1"}, {"account_id": "act_2"}],
        },
        "requestParams": {"start_date": "2024-01-01", "end_date": "2024-01-02"},
    })


def _records(out: str, record_type: str) -> list:
    records = [json.loads(line) for line in out.splitlines() if line.startswith("{")]
    return [r for r in records if r.get("type") == record_type]


def test_parser_defaults():
    args = create_connector_parser("test").parse_args([])

    assert args.config == "config.json"
    assert args.state == "state.json"
    assert args.credentials == "credentials.json"
    assert args.debug is False


def test_process_hands_work_items_to_the_connector(config_path, tmp_path, capsys):
    seen = []

    def run(ctx: ConnectorRun):
        for item in ctx.work_items():
            seen.append((item.request.id, item.date_key, item.ad_account_id))
            ctx.messages.upsert({"requestId": item.request.id, "accountId": item.ad_account_id}, item.checkpoint_state())
        ctx.messages.checkpoint({"date": "2024-01-02", "requestId": "insights"})

    code = process(run, ["--config", str(config_path), "--state", str(tmp_path / "state.json")])

    assert code == 0
    assert seen == [
        ("campaigns", "dimension", "act_1"),
        ("campaigns", "dimension", "act_2"),
        ("insights", "2024-01-01", "act_1"),
        ("insights", "2024-01-01", "act_2"),
        ("insights", "2024-01-02", "act_1"),
        ("insights", "2024-01-02", "act_2"),
    ]
    out = capsys.readouterr().out
    processed = _records(out, "processed")
    assert len(processed) == 6
    assert processed[0]["date"] == "dimension"
    assert processed[2]["date"] == "2024-01-01"
    assert _records(out, "checkpoint")[-1]["error"] is None
    assert any(r["msg"].startswith("Scheduled 6 work items") for r in _records(out, "log"))


def test_process_resumes_from_state(config_path, write_json, capsys):
    state_path = write_json("state.json", {"date": "2024-01-02", "requestId": "insights"})
    seen = []

    code = process(
        lambda ctx: seen.extend(item.date_key for item in ctx.work_items()),
        ["--config", str(config_path), "--state", str(state_path)],
    )

    assert code == 0
    assert seen == ["2024-01-02", "2024-01-02"]


def test_missing_config_reports_a_checkpoint_error(tmp_path, capsys):
    code = process(lambda ctx: None, ["--config", str(tmp_path / "absent.json")])

    assert code == 1
    [checkpoint] = _records(capsys.readouterr().out, "checkpoint")
    assert checkpoint["error"]["code"] == ErrorCode.INVALID_REQUEST
    assert checkpoint["state"] == {}


def test_invalid_date_range_reports_invalid_date(write_json, tmp_path, capsys):
    config_path = write_json("config.json", {
        "connectorConf": {"requests": [_wrapper("insights")]},
        "requestParams": {"start_date": "2024-02-01", "end_date": "2024-01-01"},
    })

    code = process(lambda ctx: ctx.work_items(), ["--config", str(config_path), "--state", str(tmp_path / "s.json")])

    assert code == 1
    [checkpoint] = _records(capsys.readouterr().out, "checkpoint")
    assert checkpoint["error"]["code"] == ErrorCode.INVALID_DATE
    assert checkpoint["error"]["message"] == "Invalid Date"


def test_debug_mode_prints_no_protocol_records(config_path, tmp_path, capsys):
    def run(ctx: ConnectorRun):
        item = ctx.work_items()[0]
        ctx.messages.upsert({"requestId": item.request.id}, item.checkpoint_state())
        ctx.messages.checkpoint(item.checkpoint_state())

    code = process(run, ["--config", str(config_path), "--state", str(tmp_path / "s.json"), "--debug"])

    out = capsys.readouterr().out
    assert code == 0
    assert _records(out, "processed") == []
    assert "Processed row (DEBUG MODE)" in out
    assert "Checkpoint OK" in out


def test_connector_run_accessors(config_path, write_json, capsys):
    state_path = write_json("state.json", {"requestId": "insights"})
    seen = {}

    def run(ctx: ConnectorRun):
        seen["days"] = [d.isoformat() for d in ctx.date_range()]
        seen["requests"] = [r.id for r in ctx.requests()]
        seen["accounts"] = [a.normalized_id for a in ctx.ad_accounts()]
        seen["resume"] = ctx.resume_state()
        seen["cached"] = ctx.work_items() is ctx.work_items()

    assert process(run, ["--config", str(config_path), "--state", str(state_path)]) == 0
    assert seen["days"] == ["2024-01-01", "2024-01-02"]
    assert seen["requests"] == ["campaigns", "insights"]
    assert seen["accounts"] == ["act_1", "act_2"]
    assert seen["resume"] == ResumeState(request_id="insights")
    assert seen["cached"] is True
