# -*- coding: utf-8 -*-
from enum import Enum

DISTRIBUTION_NAME = "flare-sdk"
SDK_NAME = "flare-python"
PLATFORM = "python"

# Wire protocol
PROTOCOL_VERSION = 7
AUTH_SCHEME = "Sentry"
AUTH_HEADER = "X-Sentry-Auth"
RATE_LIMIT_HEADER = "X-Sentry-Rate-Limits"
RETRY_AFTER_HEADER = "Retry-After"
ERROR_HEADER = "X-Sentry-Error"
ENVELOPE_CONTENT_TYPE = "application/x-sentry-envelope"
JSON_CONTENT_TYPE = "application/json"
LOG_ITEMS_CONTENT_TYPE = "application/vnd.sentry.items.log+json"

# Size limits
MAX_SERIALIZED_PAYLOAD_SIZE = 1024 * 1000
PROFILE_MAX_SERIALIZED_PAYLOAD_SIZE = MAX_SERIALIZED_PAYLOAD_SIZE * 50
STACKTRACE_FRAME_LIMIT_ON_OVERSIZED_PAYLOAD = 500
MAX_MESSAGE_SIZE_IN_BYTES = 1024 * 8
GZIP_THRESHOLD = 1024 * 30
RESPONSE_BODY_EXCERPT_SIZE = 1024

# Defaults
DEFAULT_ENVIRONMENT = "development"
DEFAULT_RATE_LIMIT_DELAY = 60
DEFAULT_MAX_BREADCRUMBS = 100
DEFAULT_MAX_SPANS = 1000
DEFAULT_MAX_LOG_EVENTS = 100
DEFAULT_BACKGROUND_WORKER_MAX_QUEUE = 30
DEFAULT_TIMEOUT = 2.0
DEFAULT_OPEN_TIMEOUT = 1.0
DEFAULT_SHUTDOWN_TIMEOUT = 2.0
WORKER_THREAD_NAME = "flare-worker"

# Exit codes
EXIT_CODE_OK = 0
EXIT_CODE_FAILURE = 1
EXIT_CODE_INVALID_CONFIGURATION = 2


class ItemType(str, Enum):
    """
    Envelope item types understood by the collector.
    """

    EVENT = "event"
    TRANSACTION = "transaction"
    CHECK_IN = "check_in"
    ATTACHMENT = "attachment"
    PROFILE = "profile"
    CLIENT_REPORT = "client_report"
    LOG = "log"
    STATSD = "statsd"
    SPAN = "span"


class DataCategory(str, Enum):
    """
    Categories used for rate limiting and client reports.
    """

    ALL = "all"
    DEFAULT = "default"
    ERROR = "error"
    TRANSACTION = "transaction"
    SPAN = "span"
    LOG = "log"
    ATTACHMENT = "attachment"
    PROFILE = "profile"
    MONITOR = "monitor"
    METRIC_BUCKET = "metric_bucket"
    INTERNAL = "internal"


class DiscardReason(str, Enum):
    """
    Reasons the client itself decided not to send an event.
    """

    SAMPLE_RATE = "sample_rate"
    EVENT_PROCESSOR = "event_processor"
    BEFORE_SEND = "before_send"
    QUEUE_OVERFLOW = "queue_overflow"
    RATELIMIT_BACKOFF = "ratelimit_backoff"
    NETWORK_ERROR = "network_error"
    CACHE_OVERFLOW = "cache_overflow"
    BACKPRESSURE = "backpressure"


ITEM_DATA_CATEGORIES = {
    ItemType.EVENT.value: DataCategory.ERROR.value,
    ItemType.TRANSACTION.value: DataCategory.TRANSACTION.value,
    ItemType.CHECK_IN.value: DataCategory.MONITOR.value,
    ItemType.ATTACHMENT.value: DataCategory.ATTACHMENT.value,
    ItemType.PROFILE.value: DataCategory.PROFILE.value,
    ItemType.CLIENT_REPORT.value: DataCategory.INTERNAL.value,
    ItemType.LOG.value: DataCategory.LOG.value,
    ItemType.STATSD.value: DataCategory.METRIC_BUCKET.value,
    ItemType.SPAN.value: DataCategory.SPAN.value,
}

# Items whose payload is sent verbatim instead of being JSON encoded
RAW_ITEM_TYPES = (ItemType.STATSD.value, ItemType.ATTACHMENT.value)

# Items that can be shrunk when they go over the size limit
TRIMMABLE_ITEM_TYPES = (ItemType.EVENT.value, ItemType.TRANSACTION.value)
