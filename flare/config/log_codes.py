"""
Log codes for configuration-related operations.
"""

CONFIG = "config"

# DSN
DSN = f"{CONFIG}.dsn"
DSN_RESOLVED = f"{DSN}.resolved"
DSN_INVALID = f"{DSN}.invalid"
DSN_NOT_DEFINED = f"{DSN}.not_defined"

# Proxy Configuration
PROXY = f"{CONFIG}.proxy"
PROXY_RESOLVED = f"{PROXY}.resolved"
PROXY_NOT_DEFINED = f"{PROXY}.not_defined"
PROXY_HOST_EMPTY = f"{PROXY}.host_empty"
PROXY_PROTOCOL_INVALID = f"{PROXY}.invalid_protocol"
PROXY_FROM_ENV = f"{PROXY}.from_env"

# TLS Configuration
TLS = f"{CONFIG}.tls"
TLS_RESOLVED = f"{TLS}.resolved"
TLS_VERIFICATION_DISABLED = f"{TLS}.verification_disabled"
TLS_CA_FILE_RESOLVED = f"{TLS}.ca_file_resolved"

# Dispatch
DISPATCH = f"{CONFIG}.dispatch"
DISPATCH_SYNCHRONOUS = f"{DISPATCH}.synchronous"
DISPATCH_POOLED = f"{DISPATCH}.pooled"
DISPATCH_ASYNC_CALLBACK = f"{DISPATCH}.async_callback"
