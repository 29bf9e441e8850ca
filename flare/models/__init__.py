from .attachment import Attachment
from .breadcrumb import Breadcrumb, BreadcrumbBuffer
from .event import CheckInEvent, ErrorEvent, Event, TransactionEvent
from .interfaces import ExceptionInterface, Frame, StacktraceInterface
from .log_event import LogEvent
from .scope import Scope
from .span import Span, SpanRecorder, Transaction

__all__ = [
    "Attachment",
    "Breadcrumb",
    "BreadcrumbBuffer",
    "CheckInEvent",
    "ErrorEvent",
    "Event",
    "ExceptionInterface",
    "Frame",
    "LogEvent",
    "Scope",
    "Span",
    "SpanRecorder",
    "StacktraceInterface",
    "Transaction",
    "TransactionEvent",
]
