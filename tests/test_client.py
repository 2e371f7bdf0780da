"""Tests for the sentry-sdk backed reporting client."""

import pytest
from sentry_sdk.transport import Transport

from sentry_gateway.client import SentrySdkClient, sentry_level
from sentry_gateway.config import TransportOptions
from sentry_gateway.gateway import Gateway
from sentry_gateway.models import CaptureOptions

DSN = "https://public@sentry.example.com/1"


class RecordingTransport(Transport):
    """Transport that keeps events in memory instead of sending them."""

    def __init__(self, options=None):
        super().__init__(options)
        self.events = []

    def capture_envelope(self, envelope):
        event = envelope.get_event()
        if event is not None:
            self.events.append(event)

    def flush(self, timeout, callback=None):
        pass

    def kill(self):
        pass


class PaymentDeclined(Exception):
    pass


def raise_and_catch(error):
    try:
        raise error
    except Exception as e:
        return e


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def make_client(transport):
    def _make(**options):
        return SentrySdkClient(DSN, TransportOptions(**options), transport=transport)

    return _make


class TestSentryLevel:
    """Tests for level mapping."""

    @pytest.mark.parametrize(
        "level,expected",
        [
            ("trace", "debug"),
            ("profile", "debug"),
            ("INFO", "info"),
            ("warning", "warning"),
            ("error", "error"),
            ("critical", "fatal"),
            ("unknown", "info"),
            (None, "info"),
        ],
    )
    def test_mapping(self, level, expected):
        assert sentry_level(level) == expected


class TestSentrySdkClient:
    """Tests for event construction and delivery."""

    def test_capture_message(self, make_client, transport):
        client = make_client(tags={"environment": "production"})
        options = CaptureOptions(extra={"order": 12}, culprit="views.checkout", level="warning")

        event_id = client.capture_message("disk %s on %s", ["full", "db1"], options)

        assert len(transport.events) == 1
        event = transport.events[0]
        assert event["event_id"] == event_id
        assert event["message"] == "disk full on db1"
        assert event["logentry"]["message"] == "disk %s on %s"
        assert event["logentry"]["params"] == ["full", "db1"]
        assert event["level"] == "warning"
        assert event["logger"] == "generic"
        assert event["transaction"] == "views.checkout"
        assert event["tags"]["environment"] == "production"
        assert event["extra"]["order"] == 12

    def test_message_without_params_is_not_formatted(self, make_client, transport):
        client = make_client()

        client.capture_message("100% done", [], CaptureOptions())

        assert transport.events[0]["message"] == "100% done"

    def test_message_with_stack(self, make_client, transport):
        client = make_client()

        client.capture_message("hello", [], CaptureOptions(), include_stack=True)

        thread = transport.events[0]["threads"]["values"][0]
        assert thread["stacktrace"]["frames"]

    def test_capture_exception(self, make_client, transport):
        client = make_client(logger_name="app")
        error = raise_and_catch(PaymentDeclined("card declined"))

        event_id = client.capture_exception(error, CaptureOptions(), "payments", {"order": 12})

        event = transport.events[0]
        assert event["event_id"] == event_id
        assert event["level"] == "error"
        assert event["logger"] == "payments"
        assert event["contexts"]["vars"] == {"order": 12}
        value = event["exception"]["values"][-1]
        assert value["type"] == "PaymentDeclined"
        assert value["value"] == "card declined"
        assert value["stacktrace"]["frames"]

    def test_default_logger_name(self, make_client, transport):
        client = make_client(logger_name="app")

        client.capture_exception(raise_and_catch(ValueError("x")), CaptureOptions())

        assert transport.events[0]["logger"] == "app"

    def test_excluded_exception_types(self, make_client, transport):
        client = make_client(excluded_exception_types=["PaymentDeclined"])

        event_id = client.capture_exception(raise_and_catch(PaymentDeclined("no")), CaptureOptions())

        assert event_id is None
        assert transport.events == []

    def test_stack_traces_stripped(self, make_client, transport):
        client = make_client(send_stack_trace=False)

        client.capture_exception(raise_and_catch(ValueError("x")), CaptureOptions())

        value = transport.events[0]["exception"]["values"][-1]
        assert "stacktrace" not in value

    def test_sensitive_extra_masked(self, make_client, transport):
        client = make_client()

        client.capture_message("login", [], CaptureOptions(extra={"password": "hunter2", "user": "ann"}))

        extra = transport.events[0]["extra"]
        assert extra["password"] != "hunter2"
        assert extra["user"] == "ann"

    def test_per_call_tags_merged(self, make_client, transport):
        client = make_client(tags={"site": "eu-cluster"})

        client.capture_message("hello", [], CaptureOptions(tags={"shard": "3"}))

        tags = transport.events[0]["tags"]
        assert tags["site"] == "eu-cluster"
        assert tags["shard"] == "3"

    def test_literal_percent_with_params(self, make_client, transport):
        client = make_client()

        event_id = client.capture_message("100% of %s", ["disk"], CaptureOptions())

        event = transport.events[0]
        assert event["event_id"] == event_id
        assert event["message"] == "100% of %s"
        assert event["logentry"]["params"] == ["disk"]

    def test_params_count_mismatch(self, make_client, transport):
        client = make_client()

        client.capture_message("%s and %s", ["one"], CaptureOptions())

        assert transport.events[0]["message"] == "%s and %s"

    def test_capture_query(self, make_client, transport):
        client = make_client()

        event_id = client.capture_query("SELECT * FROM orders", "warning", "postgresql")

        event = transport.events[0]
        assert event["event_id"] == event_id
        assert event["message"] == "SELECT * FROM orders"
        assert event["level"] == "warning"
        assert event["contexts"]["query"] == {"query": "SELECT * FROM orders", "engine": "postgresql"}

    def test_server_name(self, make_client, transport):
        client = make_client(server_name="web-1")

        client.capture_message("hello", [], CaptureOptions())

        assert transport.events[0]["server_name"] == "web-1"


class TestGatewayWithSdkClient:
    """End to end through the gateway and the SDK client."""

    def test_message_reaches_transport(self, make_settings, transport):
        settings = make_settings(dsn=DSN, extra_variables={"region": "eu"})
        gateway = Gateway(
            settings,
            client_factory=lambda dsn, options: SentrySdkClient(dsn, options, transport=transport),
        )

        result = gateway.capture_message("disk full")

        assert result.captured
        event = transport.events[0]
        assert event["event_id"] == result.event_id
        assert event["extra"] == {"region": "eu"}
        assert event["tags"]["environment"] == "production"
        assert "python_version" in event["tags"]

    def test_site_tag_reaches_transport(self, make_settings, transport):
        settings = make_settings(dsn=DSN, options=TransportOptions(installation_name="eu-cluster"))
        gateway = Gateway(
            settings,
            client_factory=lambda dsn, options: SentrySdkClient(dsn, options, transport=transport),
        )

        gateway.capture_message("hello", options=CaptureOptions(tags={"shard": "3"}))

        tags = transport.events[0]["tags"]
        assert tags["site"] == "eu-cluster"
        assert tags["shard"] == "3"
