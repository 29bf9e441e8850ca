import logging
from typing import NamedTuple, Optional
from urllib.parse import urlsplit

from flare.errors import InvalidDsnError
from .log_codes import DSN_INVALID, DSN_RESOLVED

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {"http": 80, "https": 443}


class Dsn(NamedTuple):
    """
    A parsed destination identifier.

    ``https://<public_key>[:<secret_key>]@<host>[:<port>]/<path>/<project_id>``
    """

    raw: str
    scheme: str
    public_key: str
    secret_key: Optional[str]
    host: str
    port: int
    explicit_port: bool
    path: str
    project_id: str

    def __str__(self) -> str:
        return self.raw

    @property
    def netloc_host(self) -> str:
        # IPv6 literals need their brackets back inside a URL
        return f"[{self.host}]" if ":" in self.host else self.host

    @property
    def server(self) -> str:
        """
        Base URL of the collector, the port only shows up when it was
        given explicitly.
        """
        if self.explicit_port:
            return f"{self.scheme}://{self.netloc_host}:{self.port}"
        return f"{self.scheme}://{self.netloc_host}"

    @property
    def envelope_endpoint(self) -> str:
        return f"{self.path}/api/{self.project_id}/envelope/"

    @property
    def envelope_url(self) -> str:
        return f"{self.scheme}://{self.netloc_host}:{self.port}{self.envelope_endpoint}"

    @property
    def use_tls(self) -> bool:
        return self.scheme == "https"


def parse_dsn(value: str) -> Dsn:
    """
    Parse a DSN string.

    Args:
        value (str): The DSN.

    Returns:
        Dsn: The parsed DSN.

    Raises:
        InvalidDsnError: If any mandatory part is missing.
    """
    if not value or not value.strip():
        raise InvalidDsnError(dsn=value, reason="the DSN is empty")

    value = value.strip()
    parts = urlsplit(value)
    scheme = (parts.scheme or "").lower()

    if scheme not in DEFAULT_PORTS:
        logger.error(DSN_INVALID, extra={"reason": "scheme", "scheme": scheme})
        raise InvalidDsnError(dsn=value, reason=f"unsupported scheme {scheme!r}")

    if not parts.username:
        logger.error(DSN_INVALID, extra={"reason": "public_key"})
        raise InvalidDsnError(dsn=value, reason="the public key is missing")

    if not parts.hostname:
        logger.error(DSN_INVALID, extra={"reason": "host"})
        raise InvalidDsnError(dsn=value, reason="the host is missing")

    try:
        explicit_port = parts.port
    except ValueError as e:
        raise InvalidDsnError(dsn=value, reason=str(e)) from e

    path, _, project_id = parts.path.rstrip("/").rpartition("/")
    if not project_id:
        logger.error(DSN_INVALID, extra={"reason": "project_id"})
        raise InvalidDsnError(dsn=value, reason="the project id is missing")

    dsn = Dsn(
        raw=value,
        scheme=scheme,
        public_key=parts.username,
        secret_key=parts.password or None,
        host=parts.hostname,
        port=explicit_port or DEFAULT_PORTS[scheme],
        explicit_port=explicit_port is not None,
        path=path,
        project_id=project_id,
    )
    logger.debug(DSN_RESOLVED, extra={"server": dsn.server})

    return dsn
