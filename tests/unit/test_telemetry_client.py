"""
Unit tests for the telemetry client: delivery, buffering, handled exceptions
"""
import threading
import time

import pytest

from conftest import RecordingBackend
from desktop_insights import SeverityLevel, TelemetryClient, TelemetryRegistry, log_handled_exception
from desktop_insights.telemetry import TelemetryConfiguration, TelemetryItem


def _raise(exc):
    try:
        raise exc
    except Exception as e:
        return e


class TestDelivery:
    """Test that items reach the backend only while enabled"""

    def test_tracked_event_reaches_backend_on_flush(self, registry, backends):
        client = registry.create_client("App", "ABC-123")

        client.track_event("Opened", {"Screen": "Main"})
        assert backends["ABC-123"].items == []

        assert client.flush() is True
        items = backends["ABC-123"].items
        assert len(items) == 1
        assert items[0]["kind"] == "event"
        assert items[0]["name"] == "Opened"
        assert items[0]["backend_key"] == "ABC-123"
        assert items[0]["properties"]["Screen"] == "Main"

    def test_disabled_client_sends_nothing(self, registry, backends):
        client = registry.create_client("App", "ABC-123")

        client.disable()
        client.track_event("Opened")
        client.track_exception(ValueError("boom"))
        client.flush()

        assert backends["ABC-123"].batches == []

    def test_enable_restores_delivery(self, registry, backends):
        client = registry.create_client("App", "ABC-123")

        registry.disable(client)
        client.track_event("Dropped")
        registry.enable(client)
        client.track_event("Kept")
        client.flush()

        assert [item["name"] for item in backends["ABC-123"].items] == ["Kept"]

    def test_flush_with_nothing_pending(self, registry, backends):
        client = registry.create_client("App", "ABC-123")

        assert client.flush() is True
        assert backends["ABC-123"].batches == []

    def test_flush_without_backend_drops_items(self):
        client = TelemetryClient(TelemetryConfiguration("ABC-123"))
        client.track_event("Opened")

        assert client.flush() is False
        assert client.pending() == 0

    def test_failed_send_reported(self):
        client = TelemetryClient(TelemetryConfiguration("ABC-123", RecordingBackend(succeed=False)))
        client.track_event("Opened")

        assert client.flush() is False

    def test_backend_exception_not_raised(self, caplog):
        class ExplodingBackend:
            def send(self, items):
                raise ConnectionError("network down")

        client = TelemetryClient(TelemetryConfiguration("ABC-123", ExplodingBackend()))
        client.track_event("Opened")

        assert client.flush() is False
        assert "network down" in caplog.text

    def test_full_buffer_flushes_in_background(self):
        backend = RecordingBackend()
        client = TelemetryClient(TelemetryConfiguration("ABC-123", backend, max_batch_size=3))

        client.track_event("one")
        client.track_event("two")
        assert client._flush_thread is None

        client.track_event("three")
        client._flush_thread.join(timeout=5)

        assert len(backend.batches) == 1
        assert [item["name"] for item in backend.batches[0]] == ["one", "two", "three"]
        assert client.pending() == 0

    def test_flush_waits_for_background_send(self):
        started = threading.Event()

        class SlowBackend(RecordingBackend):
            def send(self, items):
                started.set()
                time.sleep(0.5)
                return super().send(items)

        backend = SlowBackend()
        client = TelemetryClient(TelemetryConfiguration("ABC-123", backend, max_batch_size=2))

        client.track_event("one")
        client.track_event("two")
        assert started.wait(timeout=5)

        assert client.flush() is True
        assert [item["name"] for item in backend.items] == ["one", "two"]

    def test_exit_flush_delivers_in_flight_batch(self, events):
        class SlowBackend(RecordingBackend):
            def send(self, items):
                time.sleep(0.3)
                return super().send(items)

        backend = SlowBackend()
        registry = TelemetryRegistry(events, backend_factory=lambda key: backend, max_batch_size=2)
        client = registry.create_client("App", "ABC-123")

        client.track_event("one")
        client.track_event("two")
        client.track_event("three")
        events.application_exit()

        assert sorted(item["name"] for item in backend.items) == ["one", "three", "two"]


class TestExceptions:
    """Test exception items"""

    def test_track_exception_default_severity(self, registry, backends):
        client = registry.create_client("App", "ABC-123")

        client.track_exception(_raise(KeyError("missing")))
        client.flush()

        item = backends["ABC-123"].items[0]
        assert item["kind"] == "exception"
        assert item["name"] == "KeyError"
        assert item["severity"] == "Error"
        assert item["exception"]["type"] == "builtins.KeyError"
        assert "Traceback" in item["exception"]["stack"]

    def test_log_handled_exception(self, registry, backends):
        client = registry.create_client("App", "ABC-123")

        client.log_handled_exception(_raise(ValueError("bad input")), SeverityLevel.WARNING,
                                     "Parsing failed", {"Field": "port", "Value": "abc"})
        client.flush()

        item = backends["ABC-123"].items[0]
        assert item["severity"] == "Warning"
        assert item["exception"]["message"] == "bad input"
        assert item["properties"]["LogMessage"] == "Parsing failed"
        assert item["properties"]["Field"] == "port"
        assert item["properties"]["Value"] == "abc"

    def test_log_handled_exception_defaults(self, registry, backends):
        client = registry.create_client("App", "ABC-123")

        log_handled_exception(client, RuntimeError("oops"))
        client.flush()

        item = backends["ABC-123"].items[0]
        assert item["severity"] == "Error"
        assert "LogMessage" in item["properties"]
        assert item["properties"]["LogMessage"] is None

    def test_exception_without_traceback(self):
        item = TelemetryItem.for_exception(RuntimeError("never raised"), SeverityLevel.CRITICAL)

        data = item.to_dict("KEY")
        assert data["severity"] == "Critical"
        assert "RuntimeError: never raised" in data["exception"]["stack"]
