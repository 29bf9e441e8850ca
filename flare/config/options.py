"""
Options read by the capture and delivery pipeline.
"""

import logging
import os
import random
import socket
from typing import Any, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from flare.constants import (
    DEFAULT_BACKGROUND_WORKER_MAX_QUEUE,
    DEFAULT_ENVIRONMENT,
    DEFAULT_MAX_BREADCRUMBS,
    DEFAULT_MAX_LOG_EVENTS,
    DEFAULT_OPEN_TIMEOUT,
    DEFAULT_TIMEOUT,
)
from flare.errors import InvalidDsnError
from flare.hooks import AsyncCallback, resolve_async_callback

from .dsn import Dsn, parse_dsn
from .log_codes import DSN_NOT_DEFINED

logger = logging.getLogger(__name__)


def _default_worker_threads() -> int:
    return max((os.cpu_count() or 2) // 2, 1)


class TransportOptions(BaseModel):
    """
    Options of the HTTP exchange with the collector.
    """

    model_config = ConfigDict(validate_assignment=True, arbitrary_types_allowed=True)

    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    open_timeout: float = Field(default=DEFAULT_OPEN_TIMEOUT, gt=0)
    proxy: Optional[Union[str, Dict[str, Any]]] = None
    ssl_verification: bool = True
    ssl_ca_file: Optional[str] = None
    encoding: Literal["gzip", "json"] = "gzip"
    # Transport subclass to instantiate instead of the HTTP transport
    transport_class: Optional[type] = None


class Configuration(BaseModel):
    """
    Options of a client.

    Assignments are validated, so options can be changed after the
    configuration was built (hooks included).
    """

    model_config = ConfigDict(validate_assignment=True, arbitrary_types_allowed=True)

    dsn: Optional[Dsn] = None
    environment: str = DEFAULT_ENVIRONMENT
    enabled_environments: Optional[List[str]] = None
    release: Optional[str] = None
    server_name: Optional[str] = Field(default_factory=socket.gethostname)

    sample_rate: float = Field(default=1.0, ge=0.0, le=1.0)
    max_breadcrumbs: int = Field(default=DEFAULT_MAX_BREADCRUMBS, ge=0)
    max_log_events: int = Field(default=DEFAULT_MAX_LOG_EVENTS, ge=1)

    background_worker_threads: int = Field(default_factory=_default_worker_threads, ge=0)
    background_worker_max_queue: int = Field(
        default=DEFAULT_BACKGROUND_WORKER_MAX_QUEUE, ge=0
    )

    before_send: Optional[Callable[..., Any]] = None
    before_send_transaction: Optional[Callable[..., Any]] = None
    async_dispatch: Optional[AsyncCallback] = None

    send_client_reports: bool = True
    debug: bool = False

    transport: TransportOptions = Field(default_factory=TransportOptions)

    @field_validator("dsn", mode="before")
    @classmethod
    def _parse_dsn(cls, value: Any) -> Any:
        if value is None or isinstance(value, Dsn):
            return value

        if isinstance(value, str):
            if not value.strip():
                return None
            try:
                return parse_dsn(value)
            except InvalidDsnError as e:
                raise ValueError(e.message) from e

        return value

    @field_validator("async_dispatch", mode="before")
    @classmethod
    def _resolve_async_dispatch(cls, value: Any) -> Optional[AsyncCallback]:
        return resolve_async_callback(value)

    def enabled_in_current_env(self) -> bool:
        return (
            self.enabled_environments is None
            or self.environment in self.enabled_environments
        )

    def sending_allowed(self) -> bool:
        """
        Whether events may be sent at all.

        Returns:
            bool: False without a DSN or outside the enabled environments.
        """
        if self.dsn is None:
            logger.debug(DSN_NOT_DEFINED)
            return False

        return self.enabled_in_current_env()

    def sample_allowed(self) -> bool:
        """
        Draw whether a non-transaction event is kept according to ``sample_rate``.
        """
        if self.sample_rate >= 1.0:
            return True

        return random.random() < self.sample_rate
