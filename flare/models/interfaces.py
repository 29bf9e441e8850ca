"""
Exception and stack trace payloads of error events.

Frames are built from the live traceback only, source files are never
read.
"""

import os
import sys
import traceback
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from flare.constants import MAX_MESSAGE_SIZE_IN_BYTES
from flare.encoding import sanitize_text

_LIBRARY_PATHS = tuple(
    path for path in {sys.prefix, sys.base_prefix, sys.exec_prefix} if path
)


def _is_in_app(abs_path: Optional[str]) -> bool:
    if not abs_path:
        return False
    if "site-packages" in abs_path or "dist-packages" in abs_path:
        return False
    return not abs_path.startswith(_LIBRARY_PATHS)


@dataclass
class Frame:
    filename: Optional[str] = None
    abs_path: Optional[str] = None
    function: Optional[str] = None
    module: Optional[str] = None
    lineno: Optional[int] = None
    in_app: bool = False

    def to_hash(self) -> Dict[str, Any]:
        data = {
            "abs_path": self.abs_path,
            "filename": self.filename,
            "function": self.function,
            "module": self.module,
            "lineno": self.lineno,
            "in_app": self.in_app,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass
class StacktraceInterface:
    frames: List[Frame] = field(default_factory=list)

    @classmethod
    def from_traceback(cls, tb: Any) -> "StacktraceInterface":
        """
        Build the stack trace from a traceback, oldest frame first.
        """
        frames = []
        for frame, lineno in traceback.walk_tb(tb):
            abs_path = frame.f_code.co_filename
            frames.append(
                Frame(
                    filename=os.path.basename(abs_path) if abs_path else None,
                    abs_path=abs_path,
                    function=frame.f_code.co_name,
                    module=frame.f_globals.get("__name__"),
                    lineno=lineno,
                    in_app=_is_in_app(abs_path),
                )
            )
        return cls(frames=frames)

    def to_hash(self) -> Dict[str, Any]:
        return {"frames": [frame.to_hash() for frame in self.frames]}


@dataclass
class SingleExceptionInterface:
    type: str
    value: Optional[str] = None
    module: Optional[str] = None
    stacktrace: Optional[StacktraceInterface] = None
    mechanism: Dict[str, Any] = field(
        default_factory=lambda: {"type": "generic", "handled": True}
    )

    @classmethod
    def from_exception(cls, exception: BaseException) -> "SingleExceptionInterface":
        exc_type = type(exception)
        stacktrace = None
        if exception.__traceback__ is not None:
            stacktrace = StacktraceInterface.from_traceback(exception.__traceback__)

        return cls(
            type=exc_type.__name__,
            value=sanitize_text(str(exception), MAX_MESSAGE_SIZE_IN_BYTES),
            module=exc_type.__module__,
            stacktrace=stacktrace,
        )

    def to_hash(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type,
            "value": self.value,
            "module": self.module,
            "mechanism": self.mechanism,
        }
        if self.stacktrace is not None:
            data["stacktrace"] = self.stacktrace.to_hash()
        return data


def _exception_chain(exception: BaseException) -> List[BaseException]:
    chain = []
    seen = set()
    current: Optional[BaseException] = exception

    while current is not None and id(current) not in seen:
        seen.add(id(current))
        chain.append(current)
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None

    return chain


@dataclass
class ExceptionInterface:
    values: List[SingleExceptionInterface] = field(default_factory=list)

    @classmethod
    def build(cls, exception: BaseException) -> "ExceptionInterface":
        """
        Build the exception payload, the root cause comes first and the
        raised exception last.
        """
        values = [
            SingleExceptionInterface.from_exception(exc)
            for exc in reversed(_exception_chain(exception))
        ]
        return cls(values=values)

    def to_hash(self) -> Dict[str, Any]:
        return {"values": [value.to_hash() for value in self.values]}
