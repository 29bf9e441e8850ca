from .dsn import Dsn, parse_dsn
from .options import Configuration, TransportOptions
from .proxy import get_proxy_config
from .tls import get_tls_config

__all__ = [
    "Configuration",
    "Dsn",
    "TransportOptions",
    "get_proxy_config",
    "get_tls_config",
    "parse_dsn",
]
