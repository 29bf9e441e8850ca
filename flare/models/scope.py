from typing import Any, Callable, Dict, List, Optional

from flare.constants import DEFAULT_MAX_BREADCRUMBS

from .attachment import Attachment
from .breadcrumb import Breadcrumb, BreadcrumbBuffer
from .event import Event

EventProcessor = Callable[[Event, Optional[Dict[str, Any]]], Optional[Event]]


class Scope:
    """
    Data merged into every event captured with this scope.

    Values already set on the event take precedence over the scope's,
    except the level: a level set on the scope overrides the event's.
    """

    def __init__(self, max_breadcrumbs: int = DEFAULT_MAX_BREADCRUMBS):
        self.tags: Dict[str, str] = {}
        self.contexts: Dict[str, Any] = {}
        self.extra: Dict[str, Any] = {}
        self.user: Dict[str, Any] = {}
        self.level: Optional[str] = None
        self.fingerprint: List[str] = []
        self.transaction_name: Optional[str] = None
        self.breadcrumbs = BreadcrumbBuffer(max_breadcrumbs)
        self.attachments: List[Attachment] = []
        self.event_processors: List[EventProcessor] = []

    def set_tags(self, tags: Dict[str, str]) -> None:
        self.tags.update(tags)

    def set_tag(self, key: str, value: str) -> None:
        self.tags[key] = value

    def set_context(self, key: str, value: Any) -> None:
        self.contexts[key] = value

    def set_extra(self, key: str, value: Any) -> None:
        self.extra[key] = value

    def set_user(self, user: Dict[str, Any]) -> None:
        self.user = dict(user)

    def set_level(self, level: str) -> None:
        self.level = level

    def set_fingerprint(self, fingerprint: List[str]) -> None:
        self.fingerprint = list(fingerprint)

    def set_transaction_name(self, name: str) -> None:
        self.transaction_name = name

    def add_breadcrumb(self, crumb: Breadcrumb) -> None:
        self.breadcrumbs.record(crumb)

    def add_attachment(self, attachment: Attachment) -> None:
        self.attachments.append(attachment)

    def add_event_processor(self, processor: EventProcessor) -> None:
        self.event_processors.append(processor)

    def apply_to_event(
        self, event: Event, hint: Optional[Dict[str, Any]] = None
    ) -> Optional[Event]:
        """
        Merge the scope into the event, then run the event processors in
        registration order.

        Returns:
            Optional[Event]: The processed event, None as soon as a processor
            drops it.
        """
        event.tags = {**self.tags, **event.tags}
        event.contexts = {**self.contexts, **event.contexts}
        event.extra = {**self.extra, **event.extra}
        event.user = {**self.user, **event.user}

        if self.level is not None:
            event.level = self.level
        if not event.fingerprint and self.fingerprint:
            event.fingerprint = list(self.fingerprint)
        if event.transaction is None and self.transaction_name is not None:
            event.transaction = self.transaction_name
        if (event.breadcrumbs is None or event.breadcrumbs.is_empty()) and not self.breadcrumbs.is_empty():
            event.breadcrumbs = self.breadcrumbs.copy()
        if self.attachments:
            event.attachments = [*self.attachments, *event.attachments]

        result: Optional[Event] = event
        for processor in self.event_processors:
            result = processor(result, hint)  # type: ignore[arg-type]
            if result is None:
                return None

        return result
