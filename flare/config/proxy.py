import logging
import os
from typing import Any, Mapping, NamedTuple, Optional, Union
from urllib.parse import quote, urlsplit

from .log_codes import (
    PROXY_FROM_ENV,
    PROXY_HOST_EMPTY,
    PROXY_NOT_DEFINED,
    PROXY_PROTOCOL_INVALID,
    PROXY_RESOLVED,
)

logger = logging.getLogger(__name__)


DEFAULT_PROXY_SCHEME: str = "http"
DEFAULT_PROXY_PORTS = {"http": 80, "https": 443}
PROXY_ALLOWED_PROTOCOLS = tuple(DEFAULT_PROXY_PORTS)

PROXY_URI_KEY = "uri"
PROXY_USER_KEY = "user"
PROXY_PASSWORD_KEY = "password"

ProxyOption = Union[str, Mapping[str, Any]]


class ProxyEndpoint(NamedTuple):
    scheme: str
    host: str
    port: int
    user: Optional[str] = None
    password: Optional[str] = None

    def as_url(self) -> str:
        credentials = ""
        if self.user:
            credentials = quote(self.user, safe="")
            if self.password:
                credentials += ":" + quote(self.password, safe="")
            credentials += "@"
        return f"{self.scheme}://{credentials}{self.host}:{self.port}"

    def as_dict(self) -> dict[str, Union[str, int, None]]:
        # never log the password
        return {
            "protocol": self.scheme,
            "host": self.host,
            "port": str(self.port),
            "user": self.user,
        }


class ProxyConfig(NamedTuple):
    endpoint: ProxyEndpoint

    def as_dict(self) -> dict[str, Union[str, int, None]]:
        return self.endpoint.as_dict()


def _build_proxy_config(
    uri: str,
    user: Optional[str] = None,
    password: Optional[str] = None,
    source: str = "unknown",
) -> ProxyConfig:
    if "://" not in uri:
        uri = f"{DEFAULT_PROXY_SCHEME}://{uri}"

    parts = urlsplit(uri.strip())

    if not parts.hostname:
        logger.error(PROXY_HOST_EMPTY, extra={"source": source})
        raise ValueError("Proxy host must not be empty")

    scheme = parts.scheme.lower()
    if scheme not in PROXY_ALLOWED_PROTOCOLS:
        logger.error(
            PROXY_PROTOCOL_INVALID, extra={"protocol": scheme, "source": source}
        )
        raise ValueError(f"Invalid proxy protocol: {scheme!r}")

    try:
        port = parts.port or DEFAULT_PROXY_PORTS[scheme]
    except ValueError:
        raise ValueError("Proxy port must be an integer")

    endpoint = ProxyEndpoint(
        scheme=scheme,
        host=parts.hostname,
        port=port,
        user=user or parts.username,
        password=password or parts.password,
    )

    return ProxyConfig(endpoint=endpoint)


def _proxy_from_option(value: Optional[ProxyOption]) -> Optional[ProxyConfig]:
    """
    Build the proxy configuration from the ``transport.proxy`` option.

    Args:
        value: Either a proxy URL or a mapping with ``uri``, ``user`` and
            ``password`` keys.

    Returns:
        Optional[ProxyConfig]: The proxy configuration, or None if not set.
    """
    if value is None:
        return None

    if isinstance(value, Mapping):
        uri = value.get(PROXY_URI_KEY)
        if not uri:
            logger.error(PROXY_HOST_EMPTY, extra={"source": "options"})
            raise ValueError("Proxy uri must be provided when using a proxy mapping")
        return _build_proxy_config(
            uri=str(uri),
            user=value.get(PROXY_USER_KEY),
            password=value.get(PROXY_PASSWORD_KEY),
            source="options",
        )

    if not str(value).strip():
        return None

    return _build_proxy_config(uri=str(value), source="options")


def _proxy_from_env(scheme: str) -> Optional[ProxyConfig]:
    """
    Build the proxy configuration from the conventional proxy environment
    variables for the collector's scheme.
    """
    names = [f"{scheme}_proxy", f"{scheme.upper()}_PROXY"]

    for name in names:
        value = os.environ.get(name)
        if value:
            logger.debug(PROXY_FROM_ENV, extra={"variable": name})
            return _build_proxy_config(uri=value, source="env")

    return None


def get_proxy_config(
    option: Optional[ProxyOption] = None,
    target_scheme: str = "https",
) -> Optional[ProxyConfig]:
    """
    Resolve the effective proxy configuration.

    Resolution order (first non-None wins):
      1. The ``transport.proxy`` option
      2. ``<scheme>_proxy`` environment variables
      3. No proxy (returns None)

    Args:
        option: The configured proxy option.
        target_scheme: Scheme of the collector URL the proxy is used for.

    Returns:
        Optional[ProxyConfig]: The proxy configuration, or None if not found.

    Raises:
        ValueError: If the proxy configuration is invalid.
    """
    sources = [
        ("options", lambda: _proxy_from_option(option)),
        ("env", lambda: _proxy_from_env(target_scheme)),
    ]

    for source_name, source_func in sources:
        result = source_func()
        if result is not None:
            logger.info(PROXY_RESOLVED, extra={"source": source_name, **result.as_dict()})
            return result

    logger.debug(PROXY_NOT_DEFINED)
    return None
