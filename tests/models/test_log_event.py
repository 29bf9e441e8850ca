import pytest

from flare.config import Configuration
from flare.meta import get_version
from flare.models import LogEvent
from flare.models.log_event import attribute_value


@pytest.mark.unit
class TestAttributeValue:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (True, {"value": True, "type": "boolean"}),
            (3, {"value": 3, "type": "integer"}),
            (1.5, {"value": 1.5, "type": "double"}),
            ("text", {"value": "text", "type": "string"}),
            (None, {"value": "None", "type": "string"}),
        ],
    )
    def test_types(self, value, expected):
        assert attribute_value(value) == expected


@pytest.mark.unit
class TestLogEvent:
    def test_to_hash(self):
        configuration = Configuration(environment="staging", release="2.0.0")
        log_event = LogEvent(
            "warn", "disk almost full", configuration, trace_id="t" * 32, timestamp=5.0,
            attributes={"disk": "sda", "usage": 0.93},
        )

        assert log_event.to_hash() == {
            "level": "warn",
            "body": "disk almost full",
            "timestamp": 5.0,
            "trace_id": "t" * 32,
            "attributes": {
                "disk": {"value": "sda", "type": "string"},
                "usage": {"value": 0.93, "type": "double"},
                "sentry.sdk.name": {"value": "flare-python", "type": "string"},
                "sentry.sdk.version": {"value": get_version(), "type": "string"},
                "sentry.environment": {"value": "staging", "type": "string"},
                "sentry.release": {"value": "2.0.0", "type": "string"},
            },
        }

    def test_positional_parameters(self):
        log_event = LogEvent("info", "%s bought %d items", attributes={"parameters": ["ann", 3]})

        data = log_event.to_hash()

        assert data["body"] == "ann bought 3 items"
        assert "trace_id" not in data
        assert data["attributes"]["sentry.message.template"] == {
            "value": "%s bought %d items",
            "type": "string",
        }
        assert data["attributes"]["sentry.message.parameter.0"] == {"value": "ann", "type": "string"}
        assert data["attributes"]["sentry.message.parameter.1"] == {"value": 3, "type": "integer"}
        assert "parameters" not in data["attributes"]

    def test_named_parameters(self):
        log_event = LogEvent(
            "info", "%(user)s logged in", attributes={"parameters": {"user": "ann"}}
        )

        data = log_event.to_hash()

        assert data["body"] == "ann logged in"
        assert data["attributes"]["sentry.message.parameter.user"]["value"] == "ann"

    def test_mismatched_parameters_leave_the_body_alone(self):
        log_event = LogEvent("info", "%s and %s", attributes={"parameters": ["one"]})
        assert log_event.formatted_body() == "%s and %s"

    def test_body_without_parameters_is_not_formatted(self):
        assert LogEvent("info", "100% done").formatted_body() == "100% done"

    def test_invalid_level(self):
        with pytest.raises(ValueError):
            LogEvent("warning", "hello")
