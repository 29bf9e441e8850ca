"""
Composition root.

Everything shared by the pipeline (configuration, transport, worker, client
report, rate limiter) is built once here and passed around explicitly.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Type

from flare.client import Client
from flare.config import Configuration
from flare.logs_helpers import log_error
from flare.models import Event, Scope, Transaction
from flare.transport import (
    ClientReport,
    DummyTransport,
    HTTPTransport,
    RateLimiter,
    Transport,
)
from flare.worker import BackgroundWorker

logger = logging.getLogger(__name__)


@dataclass
class FlareContext:
    """
    The pipeline's shared objects, owned by whoever called
    ``init_context``.
    """

    configuration: Configuration
    transport: Transport
    background_worker: BackgroundWorker
    client: Client
    scope: Scope = field(default_factory=Scope)

    def _scope(self, scope: Optional[Scope]) -> Scope:
        return scope if scope is not None else self.scope

    def capture_event(
        self,
        event: Event,
        scope: Optional[Scope] = None,
        hint: Optional[Dict[str, Any]] = None,
    ) -> Optional[Event]:
        return self.client.capture_event(event, self._scope(scope), hint)

    def capture_message(
        self,
        message: str,
        level: str = "error",
        scope: Optional[Scope] = None,
        hint: Optional[Dict[str, Any]] = None,
    ) -> Optional[Event]:
        event = self.client.event_from_message(message, level=level, hint=hint)
        return self.capture_event(event, scope, hint)

    def capture_exception(
        self,
        exception: BaseException,
        scope: Optional[Scope] = None,
        hint: Optional[Dict[str, Any]] = None,
    ) -> Optional[Event]:
        hint = dict(hint) if hint else {}
        hint.setdefault("exception", exception)

        event = self.client.event_from_exception(exception, hint)
        if event is None:
            return None
        return self.capture_event(event, scope, hint)

    def capture_check_in(
        self,
        slug: str,
        status: str,
        scope: Optional[Scope] = None,
        hint: Optional[Dict[str, Any]] = None,
        **options: Any,
    ) -> Optional[Event]:
        event = self.client.event_from_check_in(slug, status, hint=hint, **options)
        return self.capture_event(event, scope, hint)

    def capture_transaction(
        self,
        transaction: Transaction,
        scope: Optional[Scope] = None,
        hint: Optional[Dict[str, Any]] = None,
    ) -> Optional[Event]:
        if not transaction.sampled:
            return None
        event = self.client.event_from_transaction(transaction)
        return self.capture_event(event, scope, hint)

    def capture_log(
        self,
        level: str,
        body: str,
        attributes: Optional[Dict[str, Any]] = None,
        trace_id: Optional[str] = None,
    ) -> None:
        try:
            log_event = self.client.event_from_log(level, body, attributes, trace_id)
        except ValueError as e:
            log_error(logger, "Log capturing failed", e, self.configuration.debug)
            return
        self.client.capture_log_event(log_event)

    def flush(self, timeout: Optional[float] = None) -> bool:
        return self.client.flush(timeout)

    def close(self, timeout: Optional[float] = None) -> None:
        """
        Best effort drain, then release the worker threads and the HTTP
        connections.
        """
        self.client.close(timeout)


def build_transport(
    configuration: Configuration,
    client_report: Optional[ClientReport] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> Transport:
    transport_class: Optional[Type[Transport]] = configuration.transport.transport_class

    if transport_class is None:
        transport_class = HTTPTransport if configuration.dsn is not None else DummyTransport

    return transport_class(configuration, client_report, rate_limiter)


def init_context(
    configuration: Optional[Configuration] = None, **options: Any
) -> FlareContext:
    """
    Build the pipeline.

    Args:
        configuration: The configuration, built from ``options`` when None.
        **options: Configuration options.

    Returns:
        FlareContext: The context holding the pipeline's shared objects.
    """
    if configuration is None:
        configuration = Configuration(**options)

    transport = build_transport(configuration, ClientReport(), RateLimiter())
    background_worker = BackgroundWorker.from_configuration(configuration)
    client = Client(configuration, transport, background_worker)

    return FlareContext(
        configuration=configuration,
        transport=transport,
        background_worker=background_worker,
        client=client,
        scope=Scope(configuration.max_breadcrumbs),
    )
