import gzip
import logging
import threading
import time
from typing import TYPE_CHECKING, Dict, Optional

import httpx

from flare.config.proxy import get_proxy_config
from flare.config.tls import get_tls_config
from flare.constants import (
    AUTH_HEADER,
    AUTH_SCHEME,
    ENVELOPE_CONTENT_TYPE,
    GZIP_THRESHOLD,
    PROTOCOL_VERSION,
)
from flare.errors import ConfigurationError, ExternalError
from flare.logs_helpers import describe_exception
from flare.meta import get_user_agent

from .base import Transport
from .client_report import ClientReport
from .http_utils import raise_for_response
from .rate_limiter import RateLimiter

if TYPE_CHECKING:
    from flare.config import Configuration

logger = logging.getLogger(__name__)

GZIP_ENCODING = "gzip"


class HTTPTransport(Transport):
    """
    Posts envelopes to the collector's envelope endpoint.

    One ``httpx.Client`` is shared by every worker, it is created on first
    use.
    """

    def __init__(
        self,
        configuration: "Configuration",
        client_report: Optional[ClientReport] = None,
        rate_limiter: Optional[RateLimiter] = None,
        http_transport: Optional[httpx.BaseTransport] = None,
    ):
        super().__init__(configuration, client_report, rate_limiter)
        if self.dsn is None:
            raise ConfigurationError(reason="a DSN is required to send envelopes")

        self.endpoint = self.dsn.envelope_url
        self._http_transport = http_transport
        self._client: Optional[httpx.Client] = None
        self._lock = threading.Lock()

    @property
    def client(self) -> httpx.Client:
        with self._lock:
            if self._client is None:
                self._client = self._create_http_client()
            return self._client

    def _create_http_client(self) -> httpx.Client:
        options = self.configuration.transport
        tls_config = get_tls_config(options.ssl_verification, options.ssl_ca_file)
        proxy_config = get_proxy_config(options.proxy, target_scheme=self.dsn.scheme)

        client_kwargs = {
            "verify": tls_config.verify_context,
            "timeout": httpx.Timeout(options.timeout, connect=options.open_timeout),
            "trust_env": False,
        }

        if proxy_config:
            client_kwargs["proxy"] = proxy_config.endpoint.as_url()

        if self._http_transport is not None:
            client_kwargs["transport"] = self._http_transport

        return httpx.Client(**client_kwargs)

    def generate_auth_header(self) -> str:
        fields = {
            "sentry_version": PROTOCOL_VERSION,
            "sentry_client": get_user_agent(),
            "sentry_timestamp": int(time.time()),
            "sentry_key": self.dsn.public_key,
        }
        if self.dsn.secret_key:
            fields["sentry_secret"] = self.dsn.secret_key

        return f"{AUTH_SCHEME} " + ", ".join(f"{key}={value}" for key, value in fields.items())

    def _request_headers(self, encoding: Optional[str]) -> Dict[str, str]:
        headers = {
            "Content-Type": ENVELOPE_CONTENT_TYPE,
            "User-Agent": get_user_agent(),
            AUTH_HEADER: self.generate_auth_header(),
        }
        if encoding:
            headers["Content-Encoding"] = encoding
        return headers

    def send_data(self, data: bytes) -> None:
        encoding = None
        if (
            self.configuration.transport.encoding == GZIP_ENCODING
            and len(data) >= GZIP_THRESHOLD
        ):
            data = gzip.compress(data)
            encoding = GZIP_ENCODING

        try:
            response = self.client.post(
                self.endpoint, content=data, headers=self._request_headers(encoding)
            )
        except (httpx.TransportError, OSError) as e:
            raise ExternalError(describe_exception(e)) from e

        self.rate_limiter.update(response.headers, response.status_code)
        raise_for_response(response)

    def close(self) -> None:
        with self._lock:
            if self._client is not None:
                self._client.close()
                self._client = None
