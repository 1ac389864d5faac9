import io
import json
import logging
from contextlib import redirect_stderr, redirect_stdout

import pytest

from mvn_dep_resolver.logging_config import configure_logging


@pytest.fixture(autouse=True)
def reset_logging():
    # Ensure a clean root logger for each test
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.setLevel(logging.NOTSET)
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
    root.setLevel(logging.NOTSET)


def test_logs_go_to_stderr_not_stdout():
    stdout_buf = io.StringIO()
    stderr_buf = io.StringIO()

    with redirect_stdout(stdout_buf), redirect_stderr(stderr_buf):
        configure_logging("INFO", json_logs=False)
        logging.getLogger("test").info("Downloading https://repo.example.com/a.pom")

    assert "Downloading https://repo.example.com/a.pom" in stderr_buf.getvalue()
    assert stdout_buf.getvalue() == ""


def test_idempotent_no_duplicate_handlers():
    stderr_buf = io.StringIO()
    with redirect_stderr(stderr_buf):
        configure_logging("INFO", json_logs=False)
        configure_logging("INFO", json_logs=False)
        logging.getLogger("dup").info("once")

    lines = [ln for ln in stderr_buf.getvalue().splitlines() if ln.strip()]
    assert len(lines) == 1


def test_json_mode_includes_extras():
    stderr_buf = io.StringIO()

    with redirect_stderr(stderr_buf):
        configure_logging("INFO", json_logs=True)
        logging.getLogger("json.test").info("resolved", extra={"artifact": "g:a:1", "path": object()})

    lines = stderr_buf.getvalue().strip().splitlines()
    assert len(lines) == 1
    obj = json.loads(lines[0])
    for key in ("timestamp", "level", "logger", "message"):
        assert key in obj
    assert obj["logger"] == "json.test"
    assert obj["message"] == "resolved"
    assert obj["artifact"] == "g:a:1"
    assert isinstance(obj["path"], str)


def test_switching_to_json_keeps_single_handler():
    stderr_buf = io.StringIO()
    with redirect_stderr(stderr_buf):
        configure_logging("INFO", json_logs=False)
        configure_logging("INFO", json_logs=True)
        logging.getLogger("switch").info("as-json")

    ours = [h for h in logging.getLogger().handlers if h.name == "mvn_resolver_stderr"]
    assert len(ours) == 1
    assert json.loads(stderr_buf.getvalue().strip())["message"] == "as-json"


def test_unknown_level_falls_back_to_info():
    configure_logging("CHATTY")
    assert logging.getLogger().level == logging.INFO


def test_httpx_noise_reduced_at_info():
    configure_logging("INFO", json_logs=False)
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING


def test_httpx_allowed_at_debug():
    configure_logging("DEBUG", json_logs=False)
    assert logging.getLogger("httpx").level <= logging.DEBUG
    assert logging.getLogger("httpcore").level <= logging.DEBUG
