"""Tests for the command line entry point."""

from unittest.mock import patch

import pytest

from sentry_gateway import cli
from sentry_gateway.exceptions import EventValidationError, TransmissionError
from sentry_gateway.models import CaptureResult


@pytest.fixture
def gateway_cls():
    with patch("sentry_gateway.cli.configure_logging"), patch("sentry_gateway.cli.Gateway") as mock:
        yield mock


class TestMain:
    def test_message(self, gateway_cls, capsys):
        gateway = gateway_cls.return_value
        gateway.capture_message.return_value = CaptureResult.logged("abc123")

        code = cli.main(["message", "disk full", "--environment", "production", "--level", "warning"])

        assert code == 0
        settings = gateway_cls.call_args.args[0]
        assert settings.environment == "production"
        assert gateway.capture_message.call_args.args[0] == "disk full"
        assert gateway.capture_message.call_args.kwargs["options"].level == "warning"
        gateway.client.close.assert_called_once_with()
        assert "abc123" in capsys.readouterr().out

    def test_exception(self, gateway_cls):
        gateway = gateway_cls.return_value
        gateway.capture_exception.return_value = CaptureResult.logged("abc123")

        assert cli.main(["exception", "boom"]) == 0

        error = gateway.capture_exception.call_args.args[0]
        assert isinstance(error, cli.GatewayTestError)
        assert str(error) == "boom"
        assert error.__traceback__ is not None

    def test_query(self, gateway_cls):
        gateway = gateway_cls.return_value
        gateway.capture_query.return_value = CaptureResult.logged("abc123")

        assert cli.main(["query", "SELECT 1", "--engine", "sqlite"]) == 0

        gateway.capture_query.assert_called_once_with("SELECT 1", level="info", engine_name="sqlite")

    def test_not_captured(self, gateway_cls, capsys):
        gateway_cls.return_value.capture_message.return_value = CaptureResult.not_captured()

        assert cli.main(["message", "hello"]) == 0

        assert "not_captured" in capsys.readouterr().out

    def test_debug_and_dsn_flags(self, gateway_cls):
        gateway_cls.return_value.capture_message.return_value = CaptureResult.not_captured()

        cli.main(["message", "hello", "--debug", "--dsn", "https://key@sentry.example.com/1"])

        settings = gateway_cls.call_args.args[0]
        assert settings.debug is True
        assert settings.dsn == "https://key@sentry.example.com/1"

    @pytest.mark.parametrize(
        "error",
        [
            EventValidationError("too long", kind="message_too_long"),
            TransmissionError("failed to log message"),
        ],
    )
    def test_gateway_error_exits_1(self, gateway_cls, capsys, error):
        gateway_cls.return_value.capture_message.side_effect = error

        assert cli.main(["message", "hello"]) == 1

        assert str(error) in capsys.readouterr().out

    def test_invalid_kind(self, gateway_cls):
        with pytest.raises(SystemExit):
            cli.main(["event", "hello"])
