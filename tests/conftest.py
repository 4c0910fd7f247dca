import json
import logging
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def reset_connector_logging():
    yield
    # process() reconfigures the package logger; give the next test a clean one
    for name in ("connector_sdk", "connector"):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)


@pytest.fixture()
def write_json(tmp_path):
    def _write(filename: str, data) -> Path:
        path = tmp_path / filename
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write
