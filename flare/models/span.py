import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from flare.constants import DEFAULT_MAX_SPANS


def generate_trace_id() -> str:
    return uuid.uuid4().hex


def generate_span_id() -> str:
    return uuid.uuid4().hex[16:]


@dataclass
class Span:
    """
    A timed operation of a trace.

    Spans are produced by instrumentation, this class only carries their
    data.
    """

    trace_id: str = field(default_factory=generate_trace_id)
    span_id: str = field(default_factory=generate_span_id)
    parent_span_id: Optional[str] = None
    op: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    start_timestamp: float = field(default_factory=time.time)
    timestamp: Optional[float] = None
    data: Dict[str, Any] = field(default_factory=dict)
    tags: Dict[str, str] = field(default_factory=dict)
    origin: str = "manual"
    span_recorder: Optional["SpanRecorder"] = field(
        default=None, repr=False, compare=False
    )

    def finish(self, end_timestamp: Optional[float] = None) -> None:
        if self.timestamp is None:
            self.timestamp = end_timestamp if end_timestamp is not None else time.time()

    @property
    def is_finished(self) -> bool:
        return self.timestamp is not None

    def get_trace_context(self) -> Dict[str, Any]:
        context = {
            "trace_id": self.trace_id,
            "span_id": self.span_id,
            "parent_span_id": self.parent_span_id,
            "op": self.op,
            "description": self.description,
            "status": self.status,
            "origin": self.origin,
            "data": self.data,
        }
        return {key: value for key, value in context.items() if value is not None}

    def to_hash(self) -> Dict[str, Any]:
        return {
            "trace_id": self.trace_id,
            "span_id": self.span_id,
            "parent_span_id": self.parent_span_id,
            "op": self.op,
            "description": self.description,
            "status": self.status,
            "start_timestamp": self.start_timestamp,
            "timestamp": self.timestamp,
            "data": self.data,
            "tags": self.tags,
            "origin": self.origin,
        }


class SpanRecorder:
    """
    Holds every span of a transaction, the transaction itself first.

    The recorder is shared by reference between a transaction and its
    children. Spans over ``max_length`` are not recorded.
    """

    def __init__(self, max_length: int = DEFAULT_MAX_SPANS):
        self.max_length = max_length
        self.spans: List[Span] = []

    def add(self, span: Span) -> bool:
        if len(self.spans) >= self.max_length:
            span.span_recorder = None
            return False

        span.span_recorder = self
        self.spans.append(span)
        return True

    def __len__(self) -> int:
        return len(self.spans)


@dataclass
class Transaction(Span):
    """
    The root span of a trace.
    """

    name: str = "<unlabeled transaction>"
    sampled: Optional[bool] = True
    dynamic_sampling_context: Dict[str, Any] = field(default_factory=dict)
    max_spans: int = DEFAULT_MAX_SPANS

    def __post_init__(self) -> None:
        if self.span_recorder is None:
            SpanRecorder(self.max_spans).add(self)

    def add_span(self, span: Span) -> bool:
        """
        Record a child span, it joins this transaction's trace.
        """
        span.trace_id = self.trace_id
        if span.parent_span_id is None:
            span.parent_span_id = self.span_id
        return self.span_recorder.add(span)  # type: ignore[union-attr]

    @property
    def child_spans(self) -> List[Span]:
        if self.span_recorder is None:
            return []
        return [span for span in self.span_recorder.spans if span is not self]
