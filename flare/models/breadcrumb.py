import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Iterator, List, Optional

from flare.constants import DEFAULT_MAX_BREADCRUMBS, MAX_MESSAGE_SIZE_IN_BYTES
from flare.encoding import sanitize_text
from flare.utils.serialization import to_json_compatible

logger = logging.getLogger(__name__)


@dataclass
class Breadcrumb:
    """
    A trail entry recorded before an event happened.
    """

    message: Optional[Any] = None
    category: Optional[str] = None
    level: Optional[str] = None
    type: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def _serialized_data(self) -> Dict[str, Any]:
        try:
            return to_json_compatible(self.data)
        except (TypeError, ValueError, UnicodeError) as e:
            logger.debug("Can't serialize breadcrumb data because of error: %s", e)
            return {}

    def to_hash(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "data": self._serialized_data(),
            "level": self.level,
            "message": sanitize_text(self.message, MAX_MESSAGE_SIZE_IN_BYTES),
            "timestamp": self.timestamp,
            "type": self.type,
        }


class BreadcrumbBuffer:
    """
    Bounded breadcrumb trail, the oldest entry is evicted first.
    """

    def __init__(self, max_breadcrumbs: int = DEFAULT_MAX_BREADCRUMBS):
        self.max_breadcrumbs = max_breadcrumbs
        self.buffer: Deque[Breadcrumb] = deque(maxlen=max_breadcrumbs)

    def record(self, crumb: Breadcrumb) -> None:
        if self.max_breadcrumbs == 0:
            return
        self.buffer.append(crumb)

    def peek(self) -> Optional[Breadcrumb]:
        return self.buffer[-1] if self.buffer else None

    def copy(self) -> "BreadcrumbBuffer":
        new = BreadcrumbBuffer(self.max_breadcrumbs)
        new.buffer.extend(self.buffer)
        return new

    def is_empty(self) -> bool:
        return not self.buffer

    def __iter__(self) -> Iterator[Breadcrumb]:
        return iter(self.buffer)

    def __len__(self) -> int:
        return len(self.buffer)

    def to_hash(self) -> Dict[str, List[Dict[str, Any]]]:
        return {"values": [crumb.to_hash() for crumb in self.buffer]}
