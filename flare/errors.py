from typing import Optional

from flare.constants import (
    EXIT_CODE_FAILURE,
    EXIT_CODE_INVALID_CONFIGURATION,
)


class FlareError(Exception):
    """
    Generic flare error.

    Args:
        message (str): The error message.
    """
    def __init__(self, message: str = "An error occurred while delivering telemetry."):
        self.message = message
        super().__init__(self.message)

    def get_exit_code(self) -> int:
        """
        Get the exit code associated with this error.

        Returns:
            int: The exit code.
        """
        return EXIT_CODE_FAILURE


class ExternalError(FlareError):
    """
    Error raised when the collector could not be reached or refused the
    envelope.

    Args:
        message (str): The error message.
        status_code (Optional[int]): The HTTP status returned by the collector,
            if a response was received at all.
    """
    def __init__(self, message: str = "Unable to deliver the envelope to the collector.",
                 status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ConfigurationError(FlareError):
    """
    Error raised when an option can not be used as given.

    Args:
        message (str): The error message.
        reason (Optional[str]): The reason for the error.
    """
    def __init__(self, message: str = "Invalid configuration.",
                 reason: Optional[str] = None):
        if reason:
            message = f"{message}\nDetails: {reason}"
        super().__init__(message)

    def get_exit_code(self) -> int:
        """
        Get the exit code associated with this error.

        Returns:
            int: The exit code.
        """
        return EXIT_CODE_INVALID_CONFIGURATION


class InvalidDsnError(ConfigurationError):
    """
    Error raised when a DSN can not be parsed.

    Args:
        dsn (Optional[str]): The offending DSN.
        reason (Optional[str]): What is missing or malformed.
    """
    def __init__(self, dsn: Optional[str] = None, reason: Optional[str] = None):
        self.dsn = dsn
        super().__init__(
            message=f"Invalid DSN: {dsn!r}",
            reason=reason,
        )
