import logging

from flare.logs_helpers import describe_exception, log_error

logger = logging.getLogger("flare.tests")


class TestLogsHelpers:
    def test_describe_exception(self):
        assert describe_exception(ValueError("bad")) == "ValueError: bad"
        assert describe_exception(KeyboardInterrupt()) == "KeyboardInterrupt"

    def test_log_error_is_one_line(self, caplog):
        log_error(logger, "Log sending failed", RuntimeError("down"))

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.getMessage() == "Log sending failed: RuntimeError: down"
        assert record.exc_info is None

    def test_log_error_with_traceback_in_debug(self, caplog):
        try:
            raise RuntimeError("down")
        except RuntimeError as e:
            log_error(logger, "Log sending failed", e, debug=True)

        record = caplog.records[-1]
        assert record.exc_info is not None
        assert "Traceback" in caplog.text
