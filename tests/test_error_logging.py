import logging

import aiohttp
import pytest

from authsession.errors.handling import classify_error, log_error
from authsession.errors.internal import (
    AuthError,
    InternalError,
    NetworkError,
    ParsingError,
    RefreshError,
    RevocationError,
)
from authsession.logging_config import (
    LoggerConfigurator,
    error_aggregator,
    log_structured_error,
    token_fingerprint,
)


@pytest.mark.parametrize(
    ("error", "label"),
    [
        (NetworkError("x"), "network"),
        (aiohttp.ClientConnectionError("x"), "network"),
        (TimeoutError(), "network"),
        (RefreshError("x"), "auth"),
        (AuthError("refresh failed"), "auth"),
        (RevocationError("x"), "revocation"),
        (ParsingError("x"), "parsing"),
        (InternalError("x"), "internal"),
        (KeyError("x"), "unknown"),
    ],
)
def test_classify_error(error, label):
    assert classify_error(error) == label


def test_internal_error_copies_data():
    data = {"status": 401}
    err = RefreshError("Refresh failed: 401", data=data)
    data["status"] = 500
    assert err.status == 401
    assert RefreshError("no status").status is None


def test_log_error_merges_error_data_into_context(caplog):
    err = RevocationError("Revocation failed: 500", data={"status": 500})
    with caplog.at_level(logging.WARNING):
        log_error("Backend logout failed", err, context={"all_sessions": False}, level=logging.WARNING)

    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert record.getMessage().startswith("[REVOCATION] Backend logout failed")
    assert "all_sessions=False" in record.getMessage()
    assert "status=500" in record.getMessage()
    assert error_aggregator.get_error_summary()["revocation"]["total_count"] == 1


def test_log_error_defaults_to_error_level(caplog):
    with caplog.at_level(logging.ERROR):
        log_error("Token refresh failed", RefreshError("Refresh failed: 401"))
    assert caplog.records[-1].levelno == logging.ERROR


def test_structured_error_without_context(caplog):
    with caplog.at_level(logging.ERROR):
        log_structured_error("internal", "plain message")
    assert caplog.records[-1].getMessage() == "[INTERNAL] plain message"


def test_error_aggregator_summary_report(caplog):
    error_aggregator.record_error("network", "down")
    error_aggregator.record_error("network", "still down")
    with caplog.at_level(logging.WARNING):
        error_aggregator.log_summary_report()
    assert "network: 2 total" in caplog.text


@pytest.mark.parametrize(
    ("token", "expected"),
    [(None, "none"), ("", "none"), ("short", "***"), ("abcdefghijkl", "abc…ijkl")],
)
def test_token_fingerprint(token, expected):
    assert token_fingerprint(token) == expected


def test_logger_configurator_honours_debug_env(monkeypatch):
    root = logging.getLogger()
    saved_level, saved_handlers = root.level, list(root.handlers)
    monkeypatch.setenv("DEBUG", "true")
    try:
        LoggerConfigurator().configure()
        assert root.level == logging.DEBUG
        assert logging.getLogger("aiohttp").level == logging.WARNING
        LoggerConfigurator({"level": logging.ERROR}).configure()
        assert root.level == logging.ERROR
    finally:
        root.setLevel(saved_level)
        root.handlers[:] = saved_handlers
