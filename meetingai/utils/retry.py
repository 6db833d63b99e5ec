import logging
import time

import requests

logger = logging.getLogger(__name__)

TRANSIENT_MARKERS = (
    "fetch failed",
    "socket",
    "econnreset",
    "connection reset",
    "connection aborted",
    "timeout",
    "timed out",
)


def is_transient_error(error) -> bool:
    """Network-class failures worth another attempt."""
    if isinstance(error, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)):
        return True
    message = str(error).lower()
    return any(marker in message for marker in TRANSIENT_MARKERS)


def with_retry(fn, max_retries=3, initial_delay=1.0, max_delay=10.0, backoff_multiplier=2.0,
               should_retry=None, sleep=None):
    """Call ``fn()`` and retry with capped exponential backoff.

    At most ``max_retries + 1`` attempts are made. When retries are exhausted,
    or ``should_retry`` rejects an error, that error is re-raised unchanged.
    """
    should_retry = should_retry or is_transient_error
    sleep = sleep or time.sleep
    delay = min(initial_delay, max_delay)

    for attempt in range(max_retries + 1):
        try:
            return fn()
        except Exception as e:
            if attempt == max_retries or not should_retry(e):
                raise
            logger.warning('Attempt %s/%s failed (%s), retrying in %.2fs', attempt + 1, max_retries + 1, e, delay)
            sleep(delay)
            delay = min(delay * backoff_multiplier, max_delay)
