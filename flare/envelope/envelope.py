from typing import Any, Dict, Iterator, List, Mapping, Optional

from flare.constants import RAW_ITEM_TYPES
from flare.utils.serialization import load_json

from .item import Item, Payload


class Envelope:
    """
    Ordered multi-item container sent as one request body.
    """

    def __init__(self, headers: Optional[Mapping[str, Any]] = None):
        self.headers: Dict[str, Any] = dict(headers or {})
        self.items: List[Item] = []

    def add_item(self, headers: Mapping[str, Any], payload: Payload) -> Item:
        item = Item(headers, payload)
        self.items.append(item)
        return item

    @property
    def event_id(self) -> Optional[str]:
        return self.headers.get("event_id")

    def item_types(self) -> List[str]:
        return [item.type for item in self.items]

    def __iter__(self) -> Iterator[Item]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Envelope):
            return NotImplemented
        return self.headers == other.headers and self.items == other.items

    def __repr__(self) -> str:
        return f"<Envelope {self.event_id} items={self.item_types()}>"

    @classmethod
    def deserialize(cls, data: bytes) -> "Envelope":
        """
        Parse an envelope from its wire format.

        Payloads of items declaring a ``length`` are read by size, others up
        to the next newline.

        Raises:
            ValueError: If the data is not a valid envelope.
        """
        headers_line, _, rest = data.partition(b"\n")
        if not headers_line.strip():
            raise ValueError("envelope has no header")

        envelope = cls(load_json(headers_line))
        position = 0

        while position < len(rest):
            end = rest.find(b"\n", position)
            if end == -1:
                end = len(rest)
            line = rest[position:end]
            position = end + 1

            if not line.strip():
                continue

            item_headers = load_json(line)
            if "type" not in item_headers:
                raise ValueError("envelope item header has no type")

            length = item_headers.get("length")
            if length is not None:
                payload = rest[position:position + length]
                if len(payload) != length:
                    raise ValueError("envelope item payload is truncated")
                position += length + 1
            else:
                end = rest.find(b"\n", position)
                if end == -1:
                    end = len(rest)
                payload = rest[position:end]
                position = end + 1

            if item_headers["type"] in RAW_ITEM_TYPES:
                envelope.add_item(item_headers, payload)
            else:
                envelope.add_item(item_headers, load_json(payload))

        return envelope
