"""
Envelope construction and the delivery steps shared by every transport.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple, Union

from flare.constants import (
    ITEM_DATA_CATEGORIES,
    JSON_CONTENT_TYPE,
    LOG_ITEMS_CONTENT_TYPE,
    DataCategory,
    DiscardReason,
    ItemType,
)
from flare.envelope import Envelope, Item
from flare.meta import get_sdk_meta
from flare.models import Event, LogEvent, TransactionEvent
from flare.utils.serialization import dump_json
from flare.utils.timestamps import iso_timestamp

from .client_report import ClientReport
from .rate_limiter import RateLimiter

if TYPE_CHECKING:
    from flare.config import Configuration

logger = logging.getLogger(__name__)

CLIENT_REPORT_REASONS = frozenset(reason.value for reason in DiscardReason)

EventLike = Union[Event, Mapping[str, Any]]


class Transport(ABC):
    """
    Turns events into envelopes and hands the serialized envelopes to
    ``send_data``.

    The client report and the rate limiter are shared with whoever built
    the transport.
    """

    def __init__(
        self,
        configuration: "Configuration",
        client_report: Optional[ClientReport] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.configuration = configuration
        self.dsn = configuration.dsn
        self.client_report = client_report if client_report is not None else ClientReport()
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()

    @abstractmethod
    def send_data(self, data: bytes) -> None:
        """
        Deliver a serialized envelope.

        Raises:
            ExternalError: If the collector could not be reached or refused
                the envelope.
        """

    def close(self) -> None:
        pass

    def send_event(self, event: EventLike) -> EventLike:
        envelope = self.envelope_from_event(event)
        self.send_envelope(envelope)
        return event

    def send_logs(self, log_events: List[LogEvent]) -> None:
        if not log_events:
            return
        self.send_envelope(self.envelope_from_logs(log_events))

    def send_envelope(self, envelope: Envelope) -> None:
        self.reject_rate_limited_items(envelope)

        if not envelope.items:
            return

        data, serialized_items = self.serialize_envelope(envelope)
        if data is None:
            return

        logger.debug(
            "Sending envelope with items [%s] %s",
            ", ".join(item.type for item in serialized_items),
            envelope.event_id,
        )
        self.send_data(data)

    def serialize_envelope(self, envelope: Envelope) -> Tuple[Optional[bytes], List[Item]]:
        """
        Serialize an envelope to its wire format.

        Items still over the size limit after trimming are left out.

        Returns:
            Tuple[Optional[bytes], List[Item]]: The data, None when no item is
            left, and the items it holds.
        """
        serialized_items = []
        serialized_results = []

        for item in envelope.items:
            result, oversized = item.serialize()

            if oversized:
                logger.debug(
                    "Envelope item [%s] is still oversized after size reduction: {%s}",
                    item.type,
                    item.size_breakdown(),
                )
                continue

            serialized_results.append(result)
            serialized_items.append(item)

        if not serialized_results:
            return None, serialized_items

        data = b"\n".join([dump_json(envelope.headers), *serialized_results])
        return data, serialized_items

    def is_rate_limited(self, category: str) -> bool:
        return self.rate_limiter.is_limited(category)

    def reject_rate_limited_items(self, envelope: Envelope) -> None:
        kept = []

        for item in envelope.items:
            category = item.data_category
            if not self.is_rate_limited(category):
                kept.append(item)
                continue

            logger.debug("Envelope item [%s] not sent: rate limiting", item.type)
            self.record_lost_event(DiscardReason.RATELIMIT_BACKOFF, category)

            if item.type == ItemType.TRANSACTION.value and isinstance(item.payload, Mapping):
                spans = item.payload.get("spans") or []
                self.record_lost_event(
                    DiscardReason.RATELIMIT_BACKOFF,
                    DataCategory.SPAN.value,
                    len(spans) + 1,
                )

        envelope.items = kept

    def envelope_headers(self, event_id: Optional[str] = None) -> Dict[str, Any]:
        headers: Dict[str, Any] = {}
        if event_id is not None:
            headers["event_id"] = event_id
        headers["dsn"] = str(self.dsn) if self.dsn else None
        headers["sdk"] = get_sdk_meta()
        headers["sent_at"] = iso_timestamp()
        return headers

    def envelope_from_event(self, event: EventLike) -> Envelope:
        """
        Build the envelope of an event (or of its JSON compatible mapping).

        Items, in order: the event itself, its profile, one item per
        attachment, then the pending client report.
        """
        if isinstance(event, Event):
            payload = event.to_hash()
            item_type = event.type
        else:
            payload = dict(event)
            item_type = payload.get("type", ItemType.EVENT.value)

        headers = self.envelope_headers(payload.get("event_id"))
        dynamic_sampling_context = getattr(event, "dynamic_sampling_context", None)
        if dynamic_sampling_context:
            headers["trace"] = dynamic_sampling_context

        envelope = Envelope(headers)
        envelope.add_item({"type": item_type, "content_type": JSON_CONTENT_TYPE}, payload)

        if isinstance(event, TransactionEvent) and event.profile:
            envelope.add_item(
                {"type": ItemType.PROFILE.value, "content_type": JSON_CONTENT_TYPE},
                event.profile,
            )

        for attachment in getattr(event, "attachments", None) or []:
            data = attachment.payload
            envelope.add_item(attachment.to_envelope_headers(data), data)

        self._add_pending_client_report(envelope)

        return envelope

    def envelope_from_logs(self, log_events: List[LogEvent]) -> Envelope:
        envelope = Envelope(self.envelope_headers())
        envelope.add_item(
            {
                "type": ItemType.LOG.value,
                "item_count": len(log_events),
                "content_type": LOG_ITEMS_CONTENT_TYPE,
            },
            {"items": [log_event.to_hash() for log_event in log_events]},
        )
        return envelope

    def record_lost_event(
        self, reason: Union[DiscardReason, str], category: str, quantity: int = 1
    ) -> None:
        if not self.configuration.send_client_reports:
            return

        reason = reason.value if isinstance(reason, DiscardReason) else reason
        if reason not in CLIENT_REPORT_REASONS:
            logger.debug("Ignoring lost event with unknown reason %r", reason)
            return

        self.client_report.record(reason, category, quantity)

    def fetch_pending_client_report(self) -> Optional[Tuple[Dict[str, str], Dict[str, Any]]]:
        if not self.configuration.send_client_reports:
            return None

        payload = self.client_report.drain_payload()
        if payload is None:
            return None

        return {"type": ItemType.CLIENT_REPORT.value}, payload

    def _add_pending_client_report(self, envelope: Envelope) -> None:
        pending = self.fetch_pending_client_report()
        if pending is not None:
            envelope.add_item(*pending)

    def flush(self) -> None:
        """
        Send the pending client report on its own, if there is one.
        """
        pending = self.fetch_pending_client_report()
        if pending is None:
            return

        envelope = Envelope(self.envelope_headers())
        envelope.add_item(*pending)
        self.send_envelope(envelope)


def data_category_of(item_type: str) -> str:
    return ITEM_DATA_CATEGORIES.get(item_type, DataCategory.DEFAULT.value)
