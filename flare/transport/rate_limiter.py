import datetime
import email.utils
import logging
import threading
import time
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from flare.constants import (
    DEFAULT_RATE_LIMIT_DELAY,
    RATE_LIMIT_HEADER,
    RETRY_AFTER_HEADER,
    DataCategory,
)

logger = logging.getLogger(__name__)

TOO_MANY_REQUESTS = 429


def parse_retry_after(value: Optional[str], now: Optional[float] = None) -> int:
    """
    Seconds to wait according to a ``Retry-After`` header.

    Both delay seconds and HTTP dates are understood. Missing, zero and
    malformed values give the default delay.
    """
    if not value:
        return DEFAULT_RATE_LIMIT_DELAY

    value = value.strip()
    try:
        delay = int(float(value))
    except ValueError:
        try:
            parsed = email.utils.parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return DEFAULT_RATE_LIMIT_DELAY
        if parsed is None:
            return DEFAULT_RATE_LIMIT_DELAY
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=datetime.timezone.utc)
        now = time.time() if now is None else now
        delay = int(parsed.timestamp() - now)

    return delay if delay > 0 else DEFAULT_RATE_LIMIT_DELAY


def parse_rate_limits_header(value: str) -> List[Tuple[int, List[str]]]:
    """
    Parse ``X-Sentry-Rate-Limits``.

    The header is a comma separated list of
    ``retry_after:category;category:scope[:reason]`` quotas. An empty
    category list limits every category.

    Returns:
        List[Tuple[int, List[str]]]: Retry window and categories of each
        quota, in header order.
    """
    limits = []

    for quota in value.split(","):
        quota = quota.strip()
        if not quota:
            continue

        retry_after, _, rest = quota.partition(":")
        try:
            delay = int(float(retry_after))
        except ValueError:
            logger.debug("Ignoring malformed rate limit quota %r", quota)
            continue
        if delay <= 0:
            delay = DEFAULT_RATE_LIMIT_DELAY

        raw_categories = rest.partition(":")[0]
        categories = [c.strip() for c in raw_categories.split(";") if c.strip()]
        limits.append((delay, categories or [DataCategory.ALL.value]))

    return limits


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    value = headers.get(name)
    if value is None:
        value = headers.get(name.lower())
    return value


class RateLimiter:
    """
    Backoff deadlines per data category, as directed by the collector.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._deadlines: Dict[str, float] = {}
        self._lock = threading.Lock()

    def is_limited(self, category: str) -> bool:
        now = self._clock()
        with self._lock:
            for key in (category, DataCategory.ALL.value):
                deadline = self._deadlines.get(key)
                if deadline is not None and now < deadline:
                    return True
        return False

    def set_limit(self, category: str, delay: float) -> None:
        with self._lock:
            # later signals overwrite earlier ones
            self._deadlines[category] = self._clock() + delay

    def update(self, headers: Mapping[str, str], status_code: int) -> bool:
        """
        Update the deadlines from a collector response.

        Returns:
            bool: Whether the response carried a rate limit signal.
        """
        rate_limits = _header(headers, RATE_LIMIT_HEADER)
        if rate_limits:
            for delay, categories in parse_rate_limits_header(rate_limits):
                for category in categories:
                    self.set_limit(category, delay)
            logger.debug("Rate limits updated from %s: %s", RATE_LIMIT_HEADER, rate_limits)
            return True

        if status_code == TOO_MANY_REQUESTS:
            delay = parse_retry_after(_header(headers, RETRY_AFTER_HEADER))
            self.set_limit(DataCategory.ALL.value, delay)
            logger.debug("Rate limited for %s seconds", delay)
            return True

        return False

    def snapshot(self) -> Dict[str, float]:
        with self._lock:
            return dict(self._deadlines)
