"""
Events handed to the client.

``to_hash`` gives the mapping sent on the wire, ``to_json_compatible`` a
plain JSON copy of it.
"""

import uuid
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from flare.constants import ITEM_DATA_CATEGORIES, PLATFORM, DataCategory, ItemType
from flare.meta import get_runtime_context, get_sdk_meta
from flare.utils.serialization import to_json_compatible
from flare.utils.timestamps import iso_timestamp

from .attachment import Attachment
from .breadcrumb import BreadcrumbBuffer
from .interfaces import ExceptionInterface

if TYPE_CHECKING:
    from flare.config import Configuration

    from .span import Transaction

LEVELS = ("debug", "info", "warning", "error", "fatal")


class Event:
    type = ItemType.EVENT.value

    def __init__(self, configuration: Optional["Configuration"] = None):
        self._event_id = uuid.uuid4().hex
        self.timestamp = iso_timestamp()
        self.level: Optional[str] = None
        self.platform = PLATFORM
        self.sdk = get_sdk_meta()

        self.environment = configuration.environment if configuration else None
        self.release = configuration.release if configuration else None
        self.server_name = configuration.server_name if configuration else None

        self.message: Optional[Any] = None
        self.transaction: Optional[str] = None
        self.tags: Dict[str, str] = {}
        self.contexts: Dict[str, Any] = {"runtime": get_runtime_context()}
        self.extra: Dict[str, Any] = {}
        self.user: Dict[str, Any] = {}
        self.fingerprint: List[str] = []
        self.breadcrumbs: Optional[BreadcrumbBuffer] = None
        self.attachments: List[Attachment] = []
        self.dynamic_sampling_context: Optional[Dict[str, Any]] = None

    @property
    def event_id(self) -> str:
        return self._event_id

    @property
    def data_category(self) -> str:
        return ITEM_DATA_CATEGORIES.get(self.type, DataCategory.DEFAULT.value)

    def _base_hash(self) -> Dict[str, Any]:
        data = {
            "event_id": self.event_id,
            "level": self.level,
            "timestamp": self.timestamp,
            "environment": self.environment,
            "release": self.release,
            "server_name": self.server_name,
            "message": self.message,
            "transaction": self.transaction,
            "user": self.user,
            "tags": self.tags,
            "contexts": self.contexts,
            "extra": self.extra,
            "fingerprint": self.fingerprint,
            "platform": self.platform,
            "sdk": self.sdk,
        }
        return {key: value for key, value in data.items() if value is not None}

    def to_hash(self) -> Dict[str, Any]:
        data = self._base_hash()
        if self.breadcrumbs is not None:
            data["breadcrumbs"] = self.breadcrumbs.to_hash()
        return data

    def to_json_compatible(self) -> Dict[str, Any]:
        return to_json_compatible(self.to_hash())

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.event_id}>"


class ErrorEvent(Event):
    """
    An event built from a message or an exception.
    """

    def __init__(self, configuration: Optional["Configuration"] = None):
        super().__init__(configuration)
        self.level = "error"
        self.exception: Optional[ExceptionInterface] = None

    def add_exception_interface(self, exception: BaseException) -> None:
        self.exception = ExceptionInterface.build(exception)

    def to_hash(self) -> Dict[str, Any]:
        data = super().to_hash()
        if self.exception is not None:
            data["exception"] = self.exception.to_hash()
        return data


class CheckInEvent(Event):
    """
    A cron monitor check-in.
    """

    type = ItemType.CHECK_IN.value
    STATUSES = ("ok", "error", "in_progress")

    def __init__(
        self,
        slug: str,
        status: str,
        configuration: Optional["Configuration"] = None,
        check_in_id: Optional[str] = None,
        duration: Optional[float] = None,
        monitor_config: Optional[Dict[str, Any]] = None,
    ):
        if status not in self.STATUSES:
            raise ValueError(f"Invalid check-in status: {status!r}")

        super().__init__(configuration)
        self.monitor_slug = slug
        self.status = status
        self.check_in_id = check_in_id or uuid.uuid4().hex
        self.duration = duration
        self.monitor_config = monitor_config

    def to_hash(self) -> Dict[str, Any]:
        data = self._base_hash()
        data.update(
            {
                "type": self.type,
                "check_in_id": self.check_in_id,
                "monitor_slug": self.monitor_slug,
                "status": self.status,
            }
        )
        if self.duration is not None:
            data["duration"] = self.duration
        if self.monitor_config is not None:
            data["monitor_config"] = self.monitor_config
        return data


class TransactionEvent(Event):
    """
    A finished transaction with its child spans.

    ``spans`` only holds the children, the root span is described by
    ``contexts["trace"]``.
    """

    type = ItemType.TRANSACTION.value

    def __init__(self, configuration: Optional["Configuration"] = None):
        super().__init__(configuration)
        self.trace_id: Optional[str] = None
        self.sampled: Optional[bool] = None
        self.start_timestamp: Optional[float] = None
        self.spans: List[Dict[str, Any]] = []
        self.measurements: Dict[str, Any] = {}
        self.profile: Optional[Dict[str, Any]] = None

    @classmethod
    def from_transaction(
        cls, transaction: "Transaction", configuration: Optional["Configuration"] = None
    ) -> "TransactionEvent":
        event = cls(configuration)
        event.transaction = transaction.name
        event.trace_id = transaction.trace_id
        event.sampled = transaction.sampled
        event.start_timestamp = transaction.start_timestamp
        if transaction.timestamp is not None:
            event.timestamp = iso_timestamp(transaction.timestamp)
        event.tags.update(transaction.tags)
        event.contexts["trace"] = transaction.get_trace_context()
        event.dynamic_sampling_context = dict(transaction.dynamic_sampling_context) or None
        event.spans = [
            span.to_hash() for span in transaction.child_spans if span.is_finished
        ]
        return event

    def to_hash(self) -> Dict[str, Any]:
        data = super().to_hash()
        data["type"] = self.type
        data["start_timestamp"] = self.start_timestamp
        data["spans"] = self.spans
        if self.measurements:
            data["measurements"] = self.measurements
        return data
