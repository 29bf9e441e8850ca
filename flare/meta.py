from functools import lru_cache
from importlib.metadata import PackageNotFoundError, version
import logging
import platform
from typing import Dict

from flare.constants import DISTRIBUTION_NAME, SDK_NAME


LOG = logging.getLogger(__name__)


@lru_cache()
def get_version() -> str:
    """
    Get the version of the flare package.

    Falls back to the bundled VERSION file when the distribution metadata
    is not available (running from a source checkout).

    Returns:
      str: The flare version.
    """
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        LOG.debug("Distribution metadata not found, using bundled VERSION.")
        from flare import VERSION

        return VERSION


def get_user_agent() -> str:
    """
    Get the user agent string for HTTP requests.

    Returns:
      str: The user agent string in the format: flare-python/{version}
    """
    return f"{SDK_NAME}/{get_version()}"


def get_sdk_meta() -> Dict[str, str]:
    """
    Get the SDK identity attached to every event and envelope.

    Returns:
      Dict[str, str]: The SDK name and version.
    """
    return {"name": SDK_NAME, "version": get_version()}


def get_runtime_context() -> Dict[str, str]:
    """
    Get the runtime context describing the Python interpreter.
    """
    return {
        "name": platform.python_implementation(),
        "version": platform.python_version(),
    }
