from unittest.mock import patch

import pytest

from flare.config import Configuration
from flare.constants import MAX_SERIALIZED_PAYLOAD_SIZE, DiscardReason
from flare.envelope import Envelope
from flare.models import (
    Attachment,
    ErrorEvent,
    LogEvent,
    Span,
    Transaction,
    TransactionEvent,
)
from flare.transport import ClientReport, DummyTransport, RateLimiter
from flare.transport.base import data_category_of
from flare.utils.serialization import load_json


def transaction_event(configuration: Configuration, children: int = 2) -> TransactionEvent:
    transaction = Transaction(name="GET /", dynamic_sampling_context={"trace_id": "t"})
    for _ in range(children):
        span = Span(op="db")
        transaction.add_span(span)
        span.finish()
    transaction.finish()
    event = TransactionEvent.from_transaction(transaction, configuration)
    event.profile = {"version": "1"}
    return event


def decode(data: bytes):
    lines = data.split(b"\n")
    return load_json(lines[0]), [load_json(line) for line in lines[1:]]


@pytest.mark.unit
class TestEnvelopeFromEvent:
    """
    Tests for building envelopes out of events.
    """

    def test_error_event(self, transport: DummyTransport, configuration: Configuration) -> None:
        event = ErrorEvent(configuration)

        envelope = transport.envelope_from_event(event)

        assert envelope.event_id == event.event_id
        assert envelope.headers["dsn"] == configuration.dsn.raw
        assert envelope.headers["sdk"]["name"] == "flare-python"
        assert envelope.headers["sent_at"].endswith("Z")
        assert "trace" not in envelope.headers
        assert envelope.item_types() == ["event"]
        assert envelope.items[0].headers == {"type": "event", "content_type": "application/json"}

    def test_item_order(self, transport: DummyTransport, configuration: Configuration) -> None:
        event = transaction_event(configuration)
        event.attachments.append(Attachment(bytes=b"abc", filename="a.txt"))
        transport.record_lost_event(DiscardReason.SAMPLE_RATE, "error")

        envelope = transport.envelope_from_event(event)

        assert envelope.item_types() == ["transaction", "profile", "attachment", "client_report"]
        assert envelope.headers["trace"] == {"trace_id": "t"}
        assert envelope.items[2].headers["length"] == 3
        assert envelope.items[2].payload == b"abc"

    def test_pending_client_report_is_drained(
        self, transport: DummyTransport, configuration: Configuration
    ) -> None:
        transport.record_lost_event(DiscardReason.BEFORE_SEND, "error", 2)

        first = transport.envelope_from_event(ErrorEvent(configuration))
        second = transport.envelope_from_event(ErrorEvent(configuration))

        assert first.items[-1].payload["discarded_events"] == [
            {"reason": "before_send", "category": "error", "quantity": 2}
        ]
        assert second.item_types() == ["event"]

    def test_mapping_event(self, transport: DummyTransport) -> None:
        envelope = transport.envelope_from_event(
            {"event_id": "b" * 32, "type": "transaction", "spans": []}
        )

        assert envelope.event_id == "b" * 32
        assert envelope.item_types() == ["transaction"]

    def test_mapping_without_type_is_an_event(self, transport: DummyTransport) -> None:
        envelope = transport.envelope_from_event({"event_id": "b" * 32})
        assert envelope.item_types() == ["event"]

    def test_envelope_from_logs(self, transport: DummyTransport, configuration: Configuration) -> None:
        logs = [LogEvent("info", "one", configuration), LogEvent("warn", "two", configuration)]

        envelope = transport.envelope_from_logs(logs)

        assert envelope.event_id is None
        assert envelope.items[0].headers == {
            "type": "log",
            "item_count": 2,
            "content_type": "application/vnd.sentry.items.log+json",
        }
        assert [item["body"] for item in envelope.items[0].payload["items"]] == ["one", "two"]


@pytest.mark.unit
class TestSendEnvelope:
    def test_wire_format(self, transport: DummyTransport, configuration: Configuration) -> None:
        event = ErrorEvent(configuration)

        transport.send_event(event)

        data = transport.sent_data[0]
        assert not data.endswith(b"\n")
        headers, (item_headers, payload) = decode(data)
        assert headers["event_id"] == event.event_id
        assert item_headers["type"] == "event"
        assert payload["event_id"] == event.event_id

    def test_debug_log(self, transport: DummyTransport, configuration: Configuration, debug_logs) -> None:
        event = ErrorEvent(configuration)

        transport.send_event(event)

        assert f"Sending envelope with items [event] {event.event_id}" in debug_logs.text

    def test_rate_limited_items_are_dropped(
        self, transport: DummyTransport, configuration: Configuration
    ) -> None:
        transport.rate_limiter.set_limit("transaction", 60)

        transport.send_event(transaction_event(configuration, children=5))

        assert Envelope.deserialize(transport.sent_data[0]).item_types() == ["profile"]
        assert transport.client_report.snapshot() == {
            ("ratelimit_backoff", "transaction"): 1,
            ("ratelimit_backoff", "span"): 6,
        }

    def test_empty_envelope_is_not_sent(self, transport: DummyTransport, configuration: Configuration) -> None:
        transport.rate_limiter.set_limit("all", 60)

        transport.send_event(ErrorEvent(configuration))

        assert transport.sent_data == []
        assert transport.client_report.snapshot() == {("ratelimit_backoff", "error"): 1}

    def test_oversized_item_is_left_out(
        self, transport: DummyTransport, configuration: Configuration, debug_logs
    ) -> None:
        event = ErrorEvent(configuration)
        event.extra["blob"] = "x" * (MAX_SERIALIZED_PAYLOAD_SIZE + 1)
        event.attachments.append(Attachment(bytes=b"abc", filename="a.txt"))

        transport.send_event(event)

        assert Envelope.deserialize(transport.sent_data[0]).item_types() == ["attachment"]
        assert "Envelope item [event] is still oversized after size reduction: {" in debug_logs.text

    def test_nothing_left_after_trimming(self, transport: DummyTransport, configuration: Configuration) -> None:
        event = ErrorEvent(configuration)
        event.extra["blob"] = "x" * (MAX_SERIALIZED_PAYLOAD_SIZE + 1)

        transport.send_event(event)

        assert transport.sent_data == []

    def test_send_logs(self, transport: DummyTransport, configuration: Configuration) -> None:
        transport.send_logs([LogEvent("info", "hello", configuration)])
        transport.send_logs([])

        assert len(transport.sent_data) == 1
        _, (item_headers, payload) = decode(transport.sent_data[0])
        assert item_headers["type"] == "log"
        assert payload["items"][0]["body"] == "hello"

    def test_rate_limited_logs(self, transport: DummyTransport, configuration: Configuration) -> None:
        transport.rate_limiter.set_limit("log", 60)

        transport.send_logs([LogEvent("info", "hello", configuration)])

        assert transport.sent_data == []
        assert transport.client_report.snapshot() == {("ratelimit_backoff", "log"): 1}


@pytest.mark.unit
class TestClientReports:
    def test_record_lost_event(self, transport: DummyTransport) -> None:
        transport.record_lost_event(DiscardReason.QUEUE_OVERFLOW, "error")
        transport.record_lost_event("queue_overflow", "error", 2)

        assert transport.client_report.snapshot() == {("queue_overflow", "error"): 3}

    def test_unknown_reason_is_ignored(self, transport: DummyTransport) -> None:
        transport.record_lost_event("bogus", "error")
        assert transport.client_report.is_empty()

    def test_disabled_client_reports(self, configuration: Configuration) -> None:
        configuration.send_client_reports = False
        transport = DummyTransport(configuration, ClientReport(), RateLimiter())

        transport.record_lost_event(DiscardReason.SAMPLE_RATE, "error")
        transport.client_report.record("sample_rate", "error")

        assert transport.fetch_pending_client_report() is None

    def test_flush_sends_the_pending_report(self, transport: DummyTransport) -> None:
        transport.record_lost_event(DiscardReason.NETWORK_ERROR, "log", 3)

        transport.flush()
        transport.flush()

        assert len(transport.sent_data) == 1
        headers, (item_headers, payload) = decode(transport.sent_data[0])
        assert "event_id" not in headers
        assert item_headers == {"type": "client_report"}
        assert payload["discarded_events"] == [
            {"reason": "network_error", "category": "log", "quantity": 3}
        ]

    def test_rate_limited_report_is_recorded_as_internal(self, transport: DummyTransport) -> None:
        transport.record_lost_event(DiscardReason.SAMPLE_RATE, "error")
        transport.rate_limiter.set_limit("internal", 60)

        transport.flush()

        assert transport.sent_data == []
        assert transport.client_report.snapshot() == {("ratelimit_backoff", "internal"): 1}


@pytest.mark.unit
def test_data_category_of() -> None:
    assert data_category_of("event") == "error"
    assert data_category_of("whatever") == "default"


@pytest.mark.unit
def test_send_event_returns_the_event(transport: DummyTransport, configuration: Configuration) -> None:
    event = ErrorEvent(configuration)
    with patch.object(transport, "send_data") as send_data:
        assert transport.send_event(event) is event
    send_data.assert_called_once()
    assert isinstance(transport.envelopes[0], Envelope)
