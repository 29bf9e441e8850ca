import pytest

from flare.config import Configuration
from flare.models import Breadcrumb, BreadcrumbBuffer, CheckInEvent, ErrorEvent, Event


@pytest.fixture
def configuration():
    return Configuration(environment="production", release="3.1.0", server_name="web-1")


@pytest.mark.unit
class TestEvent:
    def test_identity(self, configuration):
        event = Event(configuration)

        assert len(event.event_id) == 32
        assert event.event_id != Event(configuration).event_id
        assert event.data_category == "error"

    def test_event_id_is_read_only(self):
        with pytest.raises(AttributeError):
            Event().event_id = "x"

    def test_to_hash(self, configuration):
        event = ErrorEvent(configuration)
        event.message = "hello"

        data = event.to_hash()

        assert data["event_id"] == event.event_id
        assert data["level"] == "error"
        assert data["environment"] == "production"
        assert data["release"] == "3.1.0"
        assert data["server_name"] == "web-1"
        assert data["platform"] == "python"
        assert data["sdk"]["name"] == "flare-python"
        assert data["contexts"]["runtime"]["name"]
        assert data["timestamp"].endswith("Z")
        assert "transaction" not in data
        assert "breadcrumbs" not in data
        assert "exception" not in data

    def test_empty_collections_are_kept(self):
        data = Event().to_hash()

        assert data["tags"] == {}
        assert data["extra"] == {}
        assert "release" not in data

    def test_breadcrumbs(self, configuration):
        event = Event(configuration)
        event.breadcrumbs = BreadcrumbBuffer()
        event.breadcrumbs.record(Breadcrumb(message="step"))

        assert event.to_hash()["breadcrumbs"]["values"][0]["message"] == "step"

    def test_to_json_compatible(self, configuration):
        event = Event(configuration)
        event.extra["ids"] = {1}

        assert event.to_json_compatible()["extra"] == {"ids": [1]}

    def test_exception(self, configuration):
        event = ErrorEvent(configuration)
        event.add_exception_interface(ValueError("bad"))

        values = event.to_hash()["exception"]["values"]
        assert values == [
            {
                "type": "ValueError",
                "value": "bad",
                "module": "builtins",
                "mechanism": {"type": "generic", "handled": True},
            }
        ]


@pytest.mark.unit
class TestCheckInEvent:
    def test_to_hash(self, configuration):
        event = CheckInEvent(
            "nightly-backup",
            "error",
            configuration,
            check_in_id="c" * 32,
            monitor_config={"schedule": {"type": "crontab", "value": "0 2 * * *"}},
        )

        data = event.to_hash()

        assert event.data_category == "monitor"
        assert data["type"] == "check_in"
        assert data["check_in_id"] == "c" * 32
        assert data["monitor_slug"] == "nightly-backup"
        assert data["status"] == "error"
        assert data["monitor_config"]["schedule"]["value"] == "0 2 * * *"
        assert "duration" not in data

    def test_generated_check_in_id(self, configuration):
        assert len(CheckInEvent("job", "ok", configuration).check_in_id) == 32

    def test_invalid_status(self, configuration):
        with pytest.raises(ValueError, match="Invalid check-in status"):
            CheckInEvent("job", "done", configuration)
