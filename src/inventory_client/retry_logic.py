"""Backoff for rate-limited reads against the inventory API.

A GET answered with HTTP 429 is sent again after 1s, 2s and 4s. Any other
response, including errors, is handed back to the caller unchanged.
Writes never go through here: the sync engine interprets their status
codes itself.
"""

import logging
import time
from typing import Callable

import requests

from .errors import APIAccessError

logger = logging.getLogger(__name__)

TOO_MANY_REQUESTS = 429

MAX_RETRIES = 3


def send_with_backoff(
    send: Callable[[], requests.Response], url: str = ""
) -> requests.Response:
    """Send a request, repeating it while the API answers 429.

    Args:
        send: Issues the request and returns its response
        url: Request URL, used in log messages

    Returns:
        The first response that is not a 429

    Raises:
        APIAccessError: If the API still answers 429 after MAX_RETRIES retries
        requests.RequestException: Transport errors from ``send`` are not retried

    Example:
        >>> response = send_with_backoff(lambda: session.get(url, timeout=30), url)
    """
    for attempt in range(MAX_RETRIES + 1):
        response = send()
        if response.status_code != TOO_MANY_REQUESTS:
            return response

        if attempt == MAX_RETRIES:
            break

        wait_time = 2 ** attempt
        logger.info(
            f"Rate limited on {url or 'request'}, retrying in {wait_time}s "
            f"(retry {attempt + 1}/{MAX_RETRIES})"
        )
        time.sleep(wait_time)

    logger.error(f"Rate limit persisted after {MAX_RETRIES} retries, giving up")
    raise APIAccessError(
        f"Inventory API still rate limiting after {MAX_RETRIES} retries"
    )
