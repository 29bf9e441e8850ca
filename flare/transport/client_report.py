import threading
from collections import Counter
from typing import Any, Dict, Optional, Tuple

from flare.utils.timestamps import iso_timestamp

ReportKey = Tuple[str, str]


class ClientReport:
    """
    Running counts of the events the client decided not to send, keyed by
    ``(reason, category)``.
    """

    def __init__(self):
        self._counts: Counter = Counter()
        self._lock = threading.Lock()

    def record(self, reason: str, category: str, quantity: int = 1) -> None:
        if quantity <= 0:
            return
        with self._lock:
            self._counts[(reason, category)] += quantity

    def drain(self) -> Dict[ReportKey, int]:
        """
        Take the accumulated counts and reset them, atomically.
        """
        with self._lock:
            counts = dict(self._counts)
            self._counts = Counter()
        return counts

    def is_empty(self) -> bool:
        with self._lock:
            return not self._counts

    def snapshot(self) -> Dict[ReportKey, int]:
        with self._lock:
            return dict(self._counts)

    def drain_payload(self) -> Optional[Dict[str, Any]]:
        """
        Drain the counts into a ``client_report`` payload, None when there
        is nothing to report.
        """
        counts = self.drain()
        if not counts:
            return None
        return to_payload(counts)


def to_payload(counts: Dict[ReportKey, int]) -> Dict[str, Any]:
    return {
        "timestamp": iso_timestamp(),
        "discarded_events": [
            {"reason": reason, "category": category, "quantity": quantity}
            for (reason, category), quantity in counts.items()
        ],
    }
