import logging
import threading
from typing import TYPE_CHECKING, List

from flare.constants import DEFAULT_MAX_LOG_EVENTS, DataCategory, DiscardReason
from flare.logs_helpers import log_error
from flare.models import LogEvent

if TYPE_CHECKING:
    from flare.transport import Transport
    from flare.worker import BackgroundWorker

logger = logging.getLogger(__name__)


class LogEventBuffer:
    """
    Collects log events in memory and sends them as one batch once
    ``max_events`` are pending, or when flushed.
    """

    def __init__(
        self,
        transport: "Transport",
        background_worker: "BackgroundWorker",
        max_events: int = DEFAULT_MAX_LOG_EVENTS,
    ):
        self.transport = transport
        self.background_worker = background_worker
        self.max_events = max_events
        self._pending: List[LogEvent] = []
        self._lock = threading.Lock()

    def add_event(self, log_event: LogEvent) -> None:
        batch = None
        with self._lock:
            self._pending.append(log_event)
            if len(self._pending) >= self.max_events:
                batch = self._take()

        if batch:
            self._dispatch(batch)

    def flush(self) -> None:
        with self._lock:
            batch = self._take()

        if batch:
            self._dispatch(batch)

    def _take(self) -> List[LogEvent]:
        batch = self._pending
        self._pending = []
        return batch

    def _dispatch(self, batch: List[LogEvent]) -> None:
        if not self.background_worker.enqueue(lambda: self._send(batch)):
            self.transport.record_lost_event(
                DiscardReason.QUEUE_OVERFLOW, DataCategory.LOG.value, len(batch)
            )

    def _send(self, batch: List[LogEvent]) -> None:
        try:
            self.transport.send_logs(batch)
        except Exception as e:
            log_error(logger, "Log sending failed", e, self.transport.configuration.debug)
            self.transport.record_lost_event(
                DiscardReason.NETWORK_ERROR, DataCategory.LOG.value, len(batch)
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)
