"""Tests for the logging setup."""

import json
import logging

import pytest

from forgebot.config.logging import get_logger, job_context, setup_logging
from forgebot.config.settings import Settings


@pytest.fixture
def json_logging(capsys):
    """Configure JSON output to the captured stdout, then put the root logger back."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    setup_logging(Settings(environment="test", debug=False, log_level="INFO"))
    yield
    root.handlers = handlers
    root.setLevel(level)


def log_lines(capsys) -> list[dict]:
    return [json.loads(line) for line in capsys.readouterr().out.splitlines() if line]


def test_standard_library_records_keep_extra_fields(json_logging, capsys):
    """Test that modules using logging.getLogger log structured fields too."""
    logging.getLogger("forgebot.repos.service").info(
        "Commits recorded", extra={"repo": "octo/forge", "new_commits": 2}
    )

    (line,) = log_lines(capsys)
    assert line["event"] == "Commits recorded"
    assert line["logger"] == "forgebot.repos.service"
    assert line["level"] == "info"
    assert line["repo"] == "octo/forge"
    assert line["new_commits"] == 2
    assert "timestamp" in line


def test_job_context_tags_both_logger_kinds(json_logging, capsys):
    with job_context(job_id="1f2e", job_name="commits_sync"):
        get_logger("forgebot.tests").info("Job started")
        logging.getLogger("forgebot.tests").warning("Rate limited")
    get_logger("forgebot.tests").info("Idle")

    started, limited, idle = log_lines(capsys)
    assert (started["job_id"], started["job_name"]) == ("1f2e", "commits_sync")
    assert (limited["job_id"], limited["level"]) == ("1f2e", "warning")
    assert "job_id" not in idle


def test_debug_level_is_filtered(json_logging, capsys):
    get_logger("forgebot.tests").debug("Not shown")
    logging.getLogger("forgebot.tests").debug("Not shown either")

    assert log_lines(capsys) == []
