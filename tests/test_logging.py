import json
import logging

import pytest

from caption_relay.common import setup_logging
from caption_relay.common.logging import json_formatter


@pytest.fixture
def restore_level(monkeypatch):
    yield
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    setup_logging()


def test_records_are_json_with_service_and_context():
    record = logging.LogRecord(
        "caption_relay.relay", logging.INFO, __file__, 1, "Token issued", None, None
    )
    record.client_id = "alice"

    line = json.loads(json_formatter("caption-token-api").format(record))

    assert line["message"] == "Token issued"
    assert line["levelname"] == "INFO"
    assert line["service"] == "caption-token-api"
    assert line["client_id"] == "alice"


def test_repeated_setup_keeps_one_handler(monkeypatch, restore_level):
    monkeypatch.setenv("LOG_LEVEL", "debug")

    root = setup_logging()
    handler = root.handlers[0]
    setup_logging()

    assert root.handlers == [handler]
    assert root.level == logging.DEBUG
    assert logging.getLogger("uvicorn.access").handlers == [handler]
    assert not logging.getLogger("uvicorn").propagate
