import mimetypes
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from flare.constants import ItemType

DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_ATTACHMENT_TYPE = "event.attachment"


class Attachment:
    """
    A file sent alongside an event.

    Either ``bytes`` (with a ``filename``) or a ``path`` must be given. Path
    attachments are read from disk only when the envelope is built.
    """

    def __init__(
        self,
        bytes: Optional[Union[bytes, str]] = None,
        filename: Optional[str] = None,
        path: Optional[Union[str, Path]] = None,
        content_type: Optional[str] = None,
        attachment_type: str = DEFAULT_ATTACHMENT_TYPE,
    ):
        if bytes is None and path is None:
            raise ValueError("attachment requires either bytes or a path")

        if filename is None:
            if path is None:
                raise ValueError("attachment created from bytes requires a filename")
            filename = os.path.basename(str(path))

        self.bytes = bytes
        self.path = Path(path) if path is not None else None
        self.filename = filename
        self.content_type = (
            content_type or mimetypes.guess_type(filename)[0] or DEFAULT_CONTENT_TYPE
        )
        self.attachment_type = attachment_type

    @property
    def payload(self) -> bytes:
        if self.bytes is not None:
            if isinstance(self.bytes, str):
                return self.bytes.encode("utf-8")
            return self.bytes

        return self.path.read_bytes()  # type: ignore[union-attr]

    def to_envelope_headers(self, payload: Optional[bytes] = None) -> Dict[str, Any]:
        if payload is None:
            payload = self.payload

        return {
            "type": ItemType.ATTACHMENT.value,
            "filename": self.filename,
            "content_type": self.content_type,
            "attachment_type": self.attachment_type,
            "length": len(payload),
        }

    def __repr__(self) -> str:
        return f"Attachment(filename={self.filename!r})"
