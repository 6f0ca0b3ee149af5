"""
Logging configuration tests.
"""

import json

import pytest
import structlog

from planning_server.core.logging import configure_logging


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


def test_level_name_filters_lower_levels(capsys):
    configure_logging("warning", "json")
    log = structlog.get_logger()

    log.info("quiet")
    log.warning("loud", task_id="t1")

    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 1
    event = json.loads(lines[0])
    assert event["event"] == "loud"
    assert event["level"] == "warning"
    assert event["task_id"] == "t1"


def test_level_name_is_case_insensitive():
    configure_logging("DEBUG", "console")


def test_unknown_level_rejected():
    with pytest.raises(ValueError, match="Unknown log level"):
        configure_logging("chatty")
