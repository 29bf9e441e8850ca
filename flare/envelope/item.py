import copy
import logging
from typing import Any, Dict, Mapping, Tuple, Union

from flare.constants import (
    ITEM_DATA_CATEGORIES,
    MAX_SERIALIZED_PAYLOAD_SIZE,
    PROFILE_MAX_SERIALIZED_PAYLOAD_SIZE,
    STACKTRACE_FRAME_LIMIT_ON_OVERSIZED_PAYLOAD,
    TRIMMABLE_ITEM_TYPES,
    DataCategory,
    ItemType,
)
from flare.utils.serialization import dump_json

logger = logging.getLogger(__name__)

Payload = Union[bytes, str, Mapping[str, Any]]


def _frames_to_keep(frames: list, limit: int) -> list:
    half = limit // 2
    return frames[:half] + frames[-half:]


class Item:
    """
    One typed part of an envelope: a header mapping and a payload.

    Payloads of raw types (and any ``bytes``/``str`` payload) are sent
    verbatim, mappings are encoded as compact JSON. A field with no JSON
    form is written as its ``str()`` rather than failing the item.
    """

    def __init__(self, headers: Mapping[str, Any], payload: Payload):
        self.headers: Dict[str, Any] = dict(headers)
        self.payload = payload

    @property
    def type(self) -> str:
        return self.headers["type"]

    @property
    def data_category(self) -> str:
        return ITEM_DATA_CATEGORIES.get(self.type, DataCategory.DEFAULT.value)

    @property
    def size_limit(self) -> int:
        if self.type == ItemType.PROFILE.value:
            return PROFILE_MAX_SERIALIZED_PAYLOAD_SIZE
        return MAX_SERIALIZED_PAYLOAD_SIZE

    def payload_bytes(self) -> bytes:
        if isinstance(self.payload, bytes):
            return self.payload
        if isinstance(self.payload, str):
            return self.payload.encode("utf-8")
        return dump_json(self.payload, lenient=True)

    def to_bytes(self) -> bytes:
        return dump_json(self.headers) + b"\n" + self.payload_bytes()

    def serialize(self) -> Tuple[bytes, bool]:
        """
        Serialize the item, shrinking oversized events and transactions.

        Breadcrumbs are dropped first, then each exception keeps only the
        first and the last frames of its stack trace.

        Returns:
            Tuple[bytes, bool]: The serialized item and whether it is still
            over the size limit.
        """
        result = self.to_bytes()

        if self.type in TRIMMABLE_ITEM_TYPES and isinstance(self.payload, Mapping):
            if len(result) > self.size_limit:
                self.remove_breadcrumbs()
                result = self.to_bytes()

            if len(result) > self.size_limit:
                self.reduce_stacktrace()
                result = self.to_bytes()

        return result, len(result) > self.size_limit

    def remove_breadcrumbs(self) -> None:
        if isinstance(self.payload, Mapping) and "breadcrumbs" in self.payload:
            self.payload = {
                key: value for key, value in self.payload.items() if key != "breadcrumbs"
            }

    def reduce_stacktrace(
        self, limit: int = STACKTRACE_FRAME_LIMIT_ON_OVERSIZED_PAYLOAD
    ) -> None:
        if not isinstance(self.payload, Mapping):
            return

        exception = self.payload.get("exception")
        if not isinstance(exception, Mapping):
            return

        payload = copy.deepcopy(dict(self.payload))
        for value in payload["exception"].get("values") or []:
            stacktrace = value.get("stacktrace") if isinstance(value, dict) else None
            if not isinstance(stacktrace, dict):
                continue
            frames = stacktrace.get("frames")
            if isinstance(frames, list) and len(frames) > limit:
                stacktrace["frames"] = _frames_to_keep(frames, limit)

        self.payload = payload

    def size_breakdown(self) -> str:
        """
        Approximate serialized size of each top-level key of the payload.
        """
        if not isinstance(self.payload, Mapping):
            return f"payload: {len(self.payload_bytes())}"

        return ", ".join(
            f"{key}: {len(dump_json(value, lenient=True))}"
            for key, value in self.payload.items()
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Item):
            return NotImplemented
        return self.headers == other.headers and self.payload_bytes() == other.payload_bytes()

    def __repr__(self) -> str:
        return f"<Item type={self.type!r}>"
