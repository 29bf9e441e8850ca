from typing import List

from flare.envelope import Envelope

from .base import EventLike, Transport


class DummyTransport(Transport):
    """
    Keeps everything it is asked to send instead of sending it.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.events: List[EventLike] = []
        self.envelopes: List[Envelope] = []
        self.sent_data: List[bytes] = []

    def send_event(self, event: EventLike) -> EventLike:
        self.events.append(event)
        return super().send_event(event)

    def send_envelope(self, envelope: Envelope) -> None:
        self.envelopes.append(envelope)
        super().send_envelope(envelope)

    def send_data(self, data: bytes) -> None:
        self.sent_data.append(data)
