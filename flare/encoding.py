import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


def is_valid_utf8(value: Any) -> bool:
    """
    Check whether a text value can be put on the wire as UTF-8.

    ``bytes`` must decode as UTF-8, ``str`` must not carry lone surrogates.
    """
    try:
        if isinstance(value, bytes):
            value.decode("utf-8")
        elif isinstance(value, str):
            value.encode("utf-8")
    except UnicodeError:
        return False

    return True


def sanitize_text(value: Any, max_bytes: Optional[int] = None) -> Optional[str]:
    """
    Make a single text field safe to serialize.

    Malformed text is dropped instead of failing the whole payload it
    belongs to.

    Args:
        value: The text, as ``str`` or ``bytes``. Anything else is
            converted with ``str()``.
        max_bytes: Truncate the UTF-8 encoded text to this many bytes.

    Returns:
        Optional[str]: The text, or None when it is not valid UTF-8.
    """
    if value is None:
        return None

    if isinstance(value, bytes):
        try:
            value = value.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Dropping text field with undecodable bytes")
            return None
    elif not isinstance(value, str):
        value = str(value)

    try:
        encoded = value.encode("utf-8")
    except UnicodeEncodeError:
        logger.debug("Dropping text field with invalid unicode")
        return None

    if max_bytes is not None and len(encoded) > max_bytes:
        # don't leave half a multi-byte character behind
        return encoded[:max_bytes].decode("utf-8", "ignore")

    return value
