import logging
import ssl
from pathlib import Path
from ssl import SSLContext
from typing import NamedTuple, Optional, Union

import certifi

from .log_codes import (
    TLS_CA_FILE_RESOLVED,
    TLS_RESOLVED,
    TLS_VERIFICATION_DISABLED,
)

logger = logging.getLogger(__name__)


class TLSConfig(NamedTuple):
    """
    TLS configuration containing the verification toggle, CA file and the
    resolved verify context handed to the HTTP client.

    Args:
        verify (bool): Whether the collector's certificate is verified.
        ca_file (Optional[Path]): Custom CA bundle, certifi's when None.
        verify_context (Union[SSLContext, bool]): The context, or False
            when verification is disabled.
    """

    verify: bool
    ca_file: Optional[Path]
    verify_context: Union[SSLContext, bool]

    def as_dict(self) -> dict[str, Union[str, bool, None]]:
        return {
            "verify": self.verify,
            "ca_file": str(self.ca_file) if self.ca_file else None,
        }


def get_tls_config(
    ssl_verification: bool = True,
    ssl_ca_file: Optional[Union[str, Path]] = None,
) -> TLSConfig:
    """
    Resolve the TLS configuration for the transport.

    Args:
        ssl_verification (bool): Verify the collector's certificate.
        ssl_ca_file (Optional[Union[str, Path]]): Path to a CA bundle.

    Returns:
        TLSConfig: The resolved TLS configuration.
    """
    ca_file = Path(ssl_ca_file).expanduser() if ssl_ca_file else None

    if not ssl_verification:
        logger.warning(TLS_VERIFICATION_DISABLED)
        return TLSConfig(verify=False, ca_file=ca_file, verify_context=False)

    cafile = str(ca_file) if ca_file else certifi.where()
    if ca_file:
        logger.debug(TLS_CA_FILE_RESOLVED, extra={"ca_file": cafile})

    context = ssl.create_default_context(cafile=cafile)
    config = TLSConfig(verify=True, ca_file=ca_file, verify_context=context)
    logger.debug(TLS_RESOLVED, extra=config.as_dict())

    return config
