"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
import logging.handlers
from io import StringIO

from ratekeeper.core.config import LogSettings
from ratekeeper.core.logging import (
    JsonFormatter,
    SensitiveDataFilter,
    _build_handler,
    configure_logging,
    hash_key,
)


def _capture(name: str) -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_sensitive_filter_redacts_client_identifiers():
    """Ensure raw client keys and addresses never reach the output."""

    logger, stream = _capture("test_redaction")

    logger.info(
        "rate_limit.hit",
        extra={
            "client_key": "api_key:sk-secret-123",
            "ip": "2001:db8::1",
            "key_hash": "abc123",
        },
    )

    output = stream.getvalue()

    assert "sk-secret-123" not in output
    assert "2001:db8::1" not in output
    assert "[REDACTED]" in output
    assert "abc123" in output


def test_sensitive_filter_allows_safe_fields():
    """Verify safe fields pass through unmodified."""

    logger, stream = _capture("test_safe_fields")

    logger.info("store.sweep", extra={"removed": 12, "remaining": 3})

    payload = json.loads(stream.getvalue())
    assert payload["message"] == "store.sweep"
    assert payload["level"] == "info"
    assert payload["removed"] == 12
    assert payload["remaining"] == 3
    assert "[REDACTED]" not in stream.getvalue()


def test_sensitive_filter_redacts_nested_dicts():
    """Ensure nested sensitive fields are redacted."""

    logger, stream = _capture("test_nested")

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "x-forwarded-for": "198.51.100.7",
                "user-agent": "pytest",
            },
        },
    )

    output = stream.getvalue()

    assert "198.51.100.7" not in output
    assert "[REDACTED]" in output
    assert "pytest" in output


def test_hash_key_is_stable_and_opaque():
    """hash_key is deterministic and does not leak the key."""

    assert hash_key("ip:203.0.113.5") == hash_key("ip:203.0.113.5")
    assert hash_key("ip:203.0.113.5") != hash_key("ip:203.0.113.6")
    assert "203.0.113.5" not in hash_key("ip:203.0.113.5")
    assert len(hash_key("x")) == 16


def test_build_handler_file_output_rotates(tmp_path):
    """File output uses a rotating handler and creates its directory."""

    handler = _build_handler(
        LogSettings(output="file", file_path=str(tmp_path / "logs" / "rk.log"), max_bytes=1024)
    )
    try:
        assert isinstance(handler, logging.handlers.RotatingFileHandler)
        assert (tmp_path / "logs").is_dir()
    finally:
        handler.close()


def test_configure_logging_installs_single_root_handler():
    """configure_logging replaces root handlers with one redacting JSON handler."""

    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging(LogSettings(level="DEBUG"))

        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
        assert any(isinstance(f, SensitiveDataFilter) for f in root.handlers[0].filters)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_json_formatter_emits_only_extras_beyond_record_fields():
    """Standard LogRecord attributes stay out of the JSON payload."""

    logger, stream = _capture("test_extras_only")

    logger.info("store.init", extra={"window_ms": 60000})

    payload = json.loads(stream.getvalue())
    assert payload["window_ms"] == 60000
    assert set(payload) == {"timestamp", "level", "logger", "message", "window_ms"}
