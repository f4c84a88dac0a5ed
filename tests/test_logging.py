"""Tests for structured logging."""

import logging

import pytest
import structlog

from qhfaucet.observability.logging import (
    REDACTED,
    _add_request_id,
    _redact_sensitive,
    clear_request_id,
    configure_logging,
    get_logger,
    request_id_var,
    set_request_id,
)


class TestRequestIdContext:
    """Tests for request ID context variable."""

    def test_request_id_default_none(self):
        """Request ID is None by default."""
        clear_request_id()
        assert request_id_var.get() is None

    def test_set_and_clear(self):
        """set_request_id sets the variable and clear_request_id resets it."""
        set_request_id("req-123")
        assert request_id_var.get() == "req-123"

        clear_request_id()
        assert request_id_var.get() is None


class TestAddRequestIdProcessor:
    """Tests for _add_request_id processor."""

    def test_adds_request_id_when_set(self):
        """Adds request_id to event dict when set."""
        set_request_id("req-abc")
        try:
            result = _add_request_id(None, None, {"event": "test"})
            assert result["request_id"] == "req-abc"
        finally:
            clear_request_id()

    def test_no_request_id_when_not_set(self):
        """Does not add request_id when not set."""
        clear_request_id()
        result = _add_request_id(None, None, {"event": "test"})
        assert "request_id" not in result


class TestRedactSensitiveProcessor:
    """Tests for _redact_sensitive processor."""

    @pytest.mark.parametrize(
        "field", ["secret_key", "secretKey", "private_key", "seed", "password", "Secret"]
    )
    def test_redacts_top_level(self, field):
        """Sensitive top-level fields are redacted, case-insensitively."""
        result = _redact_sensitive(None, None, {"event": "test", field: "0x1234"})
        assert result[field] == REDACTED

    def test_redacts_nested_rpc_params(self):
        """A secretKey inside gateway_submit params is redacted."""
        event_dict = {
            "event": "rpc",
            "params": [{"from": "5Abc", "to": "5Def", "secretKey": "0xdeadbeef"}],
        }

        result = _redact_sensitive(None, None, event_dict)

        assert result["params"][0]["secretKey"] == REDACTED
        assert result["params"][0]["to"] == "5Def"

    def test_preserves_non_sensitive(self):
        """Addresses, amounts and hashes pass through untouched."""
        event_dict = {"event": "Drip sent", "recipient": "5Abc", "amount": "10", "tx_hash": "0x1"}

        result = _redact_sensitive(None, None, dict(event_dict))

        assert result == event_dict


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def setup_method(self):
        """Reset structlog before each test."""
        structlog.reset_defaults()

    def test_configure_json_format(self):
        """Configures JSON format logging."""
        configure_logging(level="INFO", log_format="json")

        assert get_logger("test") is not None

    def test_configure_console_format(self):
        """Configures console format logging."""
        configure_logging(level="DEBUG", log_format="console")

        assert logging.getLogger().level == logging.DEBUG

    def test_configure_log_level(self):
        """Configures log level."""
        configure_logging(level="WARNING", log_format="json")

        assert logging.getLogger().level == logging.WARNING

    def test_single_root_handler(self):
        """Reconfiguring replaces rather than stacks handlers."""
        configure_logging(level="INFO", log_format="json")
        configure_logging(level="INFO", log_format="json")

        assert len(logging.getLogger().handlers) == 1

    def test_configure_invalid_log_level_raises(self):
        """Invalid log level raises ValueError."""
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(level="INVALID", log_format="json")


def test_structlog_integration(capfd):
    """structlog events carry the request ID and are rendered as JSON."""
    structlog.reset_defaults()
    configure_logging(level="INFO", log_format="json")

    set_request_id("req-integration")
    get_logger("integration").info("test event", recipient="5Abc", secret_key="0xshh")
    clear_request_id()

    captured = capfd.readouterr()
    output = captured.out + captured.err
    assert "req-integration" in output
    assert "test event" in output
    assert "5Abc" in output
    assert "0xshh" not in output


def test_stdlib_extra_is_redacted(capfd):
    """Fields passed through logging's extra= go through redaction too."""
    structlog.reset_defaults()
    configure_logging(level="INFO", log_format="json")

    logging.getLogger("qhfaucet.test").info(
        "submitting", extra={"validator": "http://node", "params": [{"secretKey": "0xshh"}]}
    )

    captured = capfd.readouterr()
    output = captured.out + captured.err
    assert "submitting" in output
    assert "http://node" in output
    assert "0xshh" not in output
