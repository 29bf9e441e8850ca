import logging
import time
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from flare.constants import ItemType
from flare.meta import get_sdk_meta

if TYPE_CHECKING:
    from flare.config import Configuration

logger = logging.getLogger(__name__)

PARAMETERS_KEY = "parameters"
TEMPLATE_ATTRIBUTE = "sentry.message.template"
PARAMETER_ATTRIBUTE_PREFIX = "sentry.message.parameter"

LOG_LEVELS = ("trace", "debug", "info", "warn", "error", "fatal")


def attribute_value(value: Any) -> Dict[str, Any]:
    """
    Typed attribute as the log protocol expects it.
    """
    # bool first, it is an int subclass
    if isinstance(value, bool):
        return {"value": value, "type": "boolean"}
    if isinstance(value, int):
        return {"value": value, "type": "integer"}
    if isinstance(value, float):
        return {"value": value, "type": "double"}
    return {"value": str(value), "type": "string"}


class LogEvent:
    """
    A structured log record.

    When ``attributes`` carries ``parameters`` (a list or a mapping), the body
    is a ``%`` template: the sent body is formatted with them, and the
    template and each parameter are attached as attributes.
    """

    type = ItemType.LOG.value

    def __init__(
        self,
        level: str,
        body: str,
        configuration: Optional["Configuration"] = None,
        trace_id: Optional[str] = None,
        timestamp: Optional[float] = None,
        attributes: Optional[Mapping[str, Any]] = None,
    ):
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {level!r}")

        self.level = level
        self.body = body
        self.trace_id = trace_id
        self.timestamp = timestamp if timestamp is not None else time.time()
        self.attributes: Dict[str, Any] = dict(attributes or {})

        self.environment = configuration.environment if configuration else None
        self.release = configuration.release if configuration else None

    @property
    def parameters(self) -> Any:
        return self.attributes.get(PARAMETERS_KEY)

    def formatted_body(self) -> str:
        parameters = self.parameters
        if not parameters:
            return self.body

        try:
            if isinstance(parameters, Mapping):
                return self.body % parameters
            return self.body % tuple(parameters)
        except (TypeError, ValueError, KeyError) as e:
            logger.debug("Can't format log body %r: %s", self.body, e)
            return self.body

    def _serialized_attributes(self) -> Dict[str, Dict[str, Any]]:
        attributes = {
            key: value for key, value in self.attributes.items() if key != PARAMETERS_KEY
        }

        parameters = self.parameters
        if parameters:
            attributes[TEMPLATE_ATTRIBUTE] = self.body
            if isinstance(parameters, Mapping):
                items = parameters.items()
            else:
                items = enumerate(parameters)
            for name, value in items:
                attributes[f"{PARAMETER_ATTRIBUTE_PREFIX}.{name}"] = value

        sdk = get_sdk_meta()
        attributes["sentry.sdk.name"] = sdk["name"]
        attributes["sentry.sdk.version"] = sdk["version"]
        if self.environment is not None:
            attributes["sentry.environment"] = self.environment
        if self.release is not None:
            attributes["sentry.release"] = self.release

        return {key: attribute_value(value) for key, value in attributes.items()}

    def to_hash(self) -> Dict[str, Any]:
        data = {
            "level": self.level,
            "body": self.formatted_body(),
            "timestamp": self.timestamp,
            "trace_id": self.trace_id,
            "attributes": self._serialized_attributes(),
        }
        return {key: value for key, value in data.items() if value is not None}
