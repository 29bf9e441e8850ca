"""
The capture pipeline.

``capture_event`` samples, applies the scope and dispatches an event, it
never raises. ``send_event`` applies the before-send hooks and hands the
event to the transport, delivery errors reach its caller.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from flare.config import Configuration
from flare.constants import (
    MAX_MESSAGE_SIZE_IN_BYTES,
    DataCategory,
    DiscardReason,
    ItemType,
)
from flare.encoding import sanitize_text
from flare.hooks import (
    Discarded,
    LegacyRaw,
    Unchanged,
    resolve_before_send_result,
)
from flare.log_buffer import LogEventBuffer
from flare.logs_helpers import describe_exception, log_error
from flare.models import (
    CheckInEvent,
    ErrorEvent,
    Event,
    LogEvent,
    Scope,
    Transaction,
    TransactionEvent,
)
from flare.transport import Transport
from flare.transport.base import data_category_of
from flare.utils.serialization import to_json_compatible
from flare.worker import BackgroundWorker

logger = logging.getLogger(__name__)

EventLike = Union[Event, Mapping[str, Any]]

BEFORE_SEND = "before_send"
BEFORE_SEND_TRANSACTION = "before_send_transaction"


def _event_type(event: EventLike) -> str:
    if isinstance(event, Event):
        return event.type
    return event.get("type", ItemType.EVENT.value)


def _event_id(event: EventLike) -> Optional[str]:
    if isinstance(event, Event):
        return event.event_id
    return event.get("event_id")


def _span_count(event: Any) -> int:
    """
    Child spans of a transaction, or of its JSON compatible mapping.
    """
    if isinstance(event, TransactionEvent):
        return len(event.spans)
    if isinstance(event, Mapping):
        return len(event.get("spans") or [])
    return 0


class Client:
    def __init__(
        self,
        configuration: Configuration,
        transport: Transport,
        background_worker: Optional[BackgroundWorker] = None,
    ):
        self.configuration = configuration
        self.transport = transport
        self.background_worker = (
            background_worker
            if background_worker is not None
            else BackgroundWorker.from_configuration(configuration)
        )
        self.log_event_buffer = LogEventBuffer(
            transport, self.background_worker, configuration.max_log_events
        )

    @property
    def debug(self) -> bool:
        return self.configuration.debug

    def _record_lost(
        self,
        reason: DiscardReason,
        data_category: str,
        is_transaction: bool = False,
        spans: int = 0,
    ) -> None:
        self.transport.record_lost_event(reason, data_category)
        if is_transaction and spans > 0:
            self.transport.record_lost_event(reason, DataCategory.SPAN.value, spans)

    def capture_event(
        self,
        event: Event,
        scope: Optional[Scope] = None,
        hint: Optional[Dict[str, Any]] = None,
    ) -> Optional[Event]:
        """
        Run an event through the pipeline.

        Args:
            event: The event to capture.
            scope: Scope merged into the event, its processors run on it.
            hint: Extra data for the hooks. ``background=False`` sends
                the event on the caller's thread.

        Returns:
            Optional[Event]: The dispatched event, None when it was dropped
            or capturing failed.
        """
        if not self.configuration.sending_allowed():
            return None

        hint = dict(hint) if hint else {}

        try:
            data_category = event.data_category
            is_transaction = isinstance(event, TransactionEvent)

            if not is_transaction and not self.configuration.sample_allowed():
                self.transport.record_lost_event(DiscardReason.SAMPLE_RATE, data_category)
                return None

            spans_before = _span_count(event)

            if scope is not None:
                processed = scope.apply_to_event(event, hint)
                if processed is None:
                    logger.debug(
                        "Discarded event because one of the event processors returned None"
                    )
                    self._record_lost(
                        DiscardReason.EVENT_PROCESSOR,
                        data_category,
                        is_transaction,
                        spans_before + 1,
                    )
                    return None
                event = processed

            if is_transaction:
                spans_delta = spans_before - _span_count(event)
                if spans_delta > 0:
                    self.transport.record_lost_event(
                        DiscardReason.EVENT_PROCESSOR, DataCategory.SPAN.value, spans_delta
                    )

            if self.configuration.async_dispatch is not None:
                self._dispatch_async_event(event, hint)
            elif hint.get("background", True):
                if not self._dispatch_background_event(event, hint):
                    self._record_lost(
                        DiscardReason.QUEUE_OVERFLOW,
                        data_category,
                        is_transaction,
                        _span_count(event) + 1,
                    )
            else:
                self.send_event(event, hint)

            return event
        except Exception as e:
            log_error(logger, "Event capturing failed", e, self.debug)
            return None

    def _dispatch_background_event(self, event: Event, hint: Dict[str, Any]) -> bool:
        return self.background_worker.enqueue(lambda: self.send_event(event, hint))

    def _dispatch_async_event(self, event: Event, hint: Dict[str, Any]) -> None:
        callback = self.configuration.async_dispatch

        try:
            event_hash = event.to_json_compatible()
        except Exception as e:
            log_error(
                logger,
                f"Converting {event.type} ({event.event_id}) to JSON compatible hash failed",
                e,
                self.debug,
            )
            return

        try:
            if callback.arity == 2:  # type: ignore[union-attr]
                callback(event_hash, to_json_compatible(hint, lenient=True))  # type: ignore[misc]
            else:
                callback(event_hash)  # type: ignore[misc]
        except Exception as e:
            log_error(logger, f"Async {event.type} sending failed", e, self.debug)
            self.send_event(event, hint)

    def send_event(
        self, event: EventLike, hint: Optional[Dict[str, Any]] = None
    ) -> Optional[EventLike]:
        """
        Apply the before-send hooks and hand the event to the transport.

        Returns:
            Optional[EventLike]: What was sent, None when a hook dropped it.

        Raises:
            ExternalError: If the transport failed to deliver the event.
            Exception: Anything a hook raised.
        """
        hint = hint if hint is not None else {}
        event_type = _event_type(event)
        data_category = data_category_of(event_type)
        is_transaction = event_type == ItemType.TRANSACTION.value
        spans_before = _span_count(event)

        try:
            if not is_transaction and self.configuration.before_send:
                result = resolve_before_send_result(
                    self.configuration.before_send(event, hint), (ErrorEvent, CheckInEvent)
                )
                if isinstance(result, Discarded):
                    self._log_discarded(BEFORE_SEND, ErrorEvent, result)
                    self.transport.record_lost_event(DiscardReason.BEFORE_SEND, data_category)
                    return None
                if isinstance(result, LegacyRaw):
                    self._log_deprecated(BEFORE_SEND, ErrorEvent)
                    event = result.payload
                elif isinstance(result, Unchanged):
                    event = result.event

            if is_transaction and self.configuration.before_send_transaction:
                result = resolve_before_send_result(
                    self.configuration.before_send_transaction(event, hint),
                    (TransactionEvent,),
                )
                if isinstance(result, Discarded):
                    self._log_discarded(BEFORE_SEND_TRANSACTION, TransactionEvent, result)
                    self._record_lost(
                        DiscardReason.BEFORE_SEND, data_category, True, spans_before + 1
                    )
                    return None
                if isinstance(result, LegacyRaw):
                    self._log_deprecated(BEFORE_SEND_TRANSACTION, TransactionEvent)
                    event = result.payload
                elif isinstance(result, Unchanged):
                    event = result.event
                    spans_delta = spans_before - _span_count(event)
                    if spans_delta > 0:
                        self.transport.record_lost_event(
                            DiscardReason.BEFORE_SEND, DataCategory.SPAN.value, spans_delta
                        )

            self.transport.send_event(event)
            return event
        except Exception as e:
            log_error(
                logger, f"Sending {event_type} ({_event_id(event)}) failed", e, self.debug
            )
            self._record_lost(
                DiscardReason.NETWORK_ERROR, data_category, is_transaction, spans_before + 1
            )
            raise

    def _log_discarded(self, hook: str, expected: type, result: Discarded) -> None:
        logger.debug(
            "Discarded event because %s didn't return a %s object but an instance of %s",
            hook,
            expected.__name__,
            result.returned.__name__,
        )

    def _log_deprecated(self, hook: str, expected: type) -> None:
        logger.warning(
            "Returning a dict from %s is deprecated and will be removed in the next "
            "major version. Please return a %s object instead.",
            hook,
            expected.__name__,
        )

    def event_from_message(
        self, message: Any, level: str = "error", hint: Optional[Dict[str, Any]] = None
    ) -> ErrorEvent:
        if isinstance(message, (str, bytes)):
            message = sanitize_text(message, MAX_MESSAGE_SIZE_IN_BYTES)

        event = ErrorEvent(self.configuration)
        event.message = message
        event.level = level
        return event

    def event_from_exception(
        self, exception: BaseException, hint: Optional[Dict[str, Any]] = None
    ) -> Optional[ErrorEvent]:
        if not isinstance(exception, BaseException):
            return None

        event = ErrorEvent(self.configuration)
        event.add_exception_interface(exception)
        return event

    def event_from_check_in(
        self,
        slug: str,
        status: str,
        hint: Optional[Dict[str, Any]] = None,
        duration: Optional[float] = None,
        monitor_config: Optional[Dict[str, Any]] = None,
        check_in_id: Optional[str] = None,
    ) -> CheckInEvent:
        return CheckInEvent(
            slug,
            status,
            configuration=self.configuration,
            check_in_id=check_in_id,
            duration=duration,
            monitor_config=monitor_config,
        )

    def event_from_transaction(self, transaction: Transaction) -> TransactionEvent:
        return TransactionEvent.from_transaction(transaction, self.configuration)

    def event_from_log(
        self,
        level: str,
        body: str,
        attributes: Optional[Dict[str, Any]] = None,
        trace_id: Optional[str] = None,
    ) -> LogEvent:
        return LogEvent(
            level,
            body,
            configuration=self.configuration,
            trace_id=trace_id,
            attributes=attributes,
        )

    def capture_log_event(self, log_event: LogEvent) -> None:
        if not self.configuration.sending_allowed():
            return

        try:
            self.log_event_buffer.add_event(log_event)
        except Exception as e:
            log_error(logger, "Log capturing failed", e, self.debug)

    def send_logs(self, log_events: List[LogEvent]) -> None:
        self.transport.send_logs(log_events)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """
        Send what is buffered: pending logs, queued jobs and the pending
        client report.

        Returns:
            bool: False when the worker didn't drain before the timeout.
        """
        self.log_event_buffer.flush()
        drained = self.background_worker.wait(timeout)

        try:
            self.transport.flush()
        except Exception as e:
            logger.debug("Client report sending failed: %s", describe_exception(e))

        return drained

    def close(self, timeout: Optional[float] = None) -> None:
        self.flush(timeout)
        if timeout is None:
            self.background_worker.shutdown()
        else:
            self.background_worker.shutdown(timeout)
        self.transport.close()
