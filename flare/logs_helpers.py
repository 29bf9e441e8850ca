import logging


def describe_exception(exception: BaseException) -> str:
    """
    Render an exception as ``Name: message`` (or just ``Name`` when the
    exception carries no message).
    """
    name = type(exception).__name__
    text = str(exception)
    return f"{name}: {text}" if text else name


def log_error(logger: logging.Logger, message: str, exception: BaseException,
              debug: bool = False) -> None:
    """
    Log a pipeline failure.

    The traceback is only attached when debug is enabled; otherwise the
    host application's logs get a single line.

    Args:
        logger: Logger to write to
        message: What failed, e.g. "Log sending failed"
        exception: The exception that caused the failure
        debug: Attach the traceback
    """
    logger.error(
        "%s: %s",
        message,
        describe_exception(exception),
        exc_info=exception if debug else None,
    )

