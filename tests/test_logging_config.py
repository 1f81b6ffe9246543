import io
import json
import logging

import pytest

from comma.logging_config import configure_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_format():
    stream = io.StringIO()
    configure_logging("info", "json", stream=stream)

    logging.getLogger("comma.test").info("cached message for abc")

    record = json.loads(stream.getvalue().splitlines()[-1])
    assert record["level"] == "INFO"
    assert record["logger"] == "comma.test"
    assert record["message"] == "cached message for abc"


def test_reconfiguring_replaces_handler():
    configure_logging("warning", "simple", stream=io.StringIO())
    configure_logging("warning", "detailed", stream=io.StringIO())

    assert len(logging.getLogger().handlers) == 1


def test_invalid_level_falls_back_to_warning(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    stream = io.StringIO()
    configure_logging("chatty", "simple", stream=stream)

    logging.getLogger("comma.test").info("hidden")
    logging.getLogger("comma.test").warning("shown")

    assert stream.getvalue() == "WARNING: shown\n"
