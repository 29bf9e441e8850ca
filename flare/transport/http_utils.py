import json
import logging
from typing import Optional

import httpx

from flare.constants import ERROR_HEADER, RESPONSE_BODY_EXCERPT_SIZE
from flare.errors import ExternalError

logger = logging.getLogger(__name__)


def extract_detail(response: httpx.Response) -> Optional[str]:
    """
    Extract the error detail the collector attached to a response.

    The ``X-Sentry-Error`` header wins over a ``detail`` key of a JSON body.

    Args:
        response: The HTTP response to extract detail from

    Returns:
        The extracted detail message, or None if there is none
    """
    detail = response.headers.get(ERROR_HEADER)
    if detail:
        return detail

    try:
        data = response.json()
        return data.get("detail")
    except (json.JSONDecodeError, ValueError, AttributeError):
        return None


def body_excerpt(response: httpx.Response) -> str:
    try:
        text = response.text
    except (UnicodeDecodeError, httpx.ResponseNotRead):
        return ""
    return text[:RESPONSE_BODY_EXCERPT_SIZE]


def build_error_message(response: httpx.Response) -> str:
    message = f"the server responded with status {response.status_code}"
    message += f"\nbody: {body_excerpt(response)}"

    error_header = response.headers.get(ERROR_HEADER)
    if error_header:
        message += f" Error in headers is: {error_header}"

    return message


def raise_for_response(response: httpx.Response) -> None:
    """
    Classify a collector response.

    Raises:
        ExternalError: For any non-2xx status.
    """
    if response.is_success:
        return

    detail = extract_detail(response)
    if response.status_code == 429:
        logger.debug("the server responded with status 429")
    elif response.is_server_error:
        logger.warning("Server error %s: %s", response.status_code, detail)
    else:
        logger.debug("Client error %s: %s", response.status_code, detail)

    raise ExternalError(build_error_message(response), status_code=response.status_code)
