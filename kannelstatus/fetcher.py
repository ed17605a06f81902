"""Fetching status.xml documents from bearerbox instances."""

import logging
import time
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import requests

from .config import DEFAULT_USER_AGENT, InstanceConfig
from .models import StatusFetch

logger = logging.getLogger(__name__)

STATUS_PATH = "/status.xml"


def status_url(instance: InstanceConfig) -> str:
    """Build the status.xml URL for an instance, password included."""
    query = urlencode({"password": instance.status_password})
    return f"{instance.base_url}{STATUS_PATH}?{query}"


def mask_password(url: str) -> str:
    """Mask the password query parameter of a URL for logs and display.

    Returns:
        URL with any non-empty password value replaced by "***".
    """
    parsed = urlparse(url)
    if not parsed.query:
        return url
    params = [
        (key, "***" if key == "password" and value else value)
        for key, value in parse_qsl(parsed.query, keep_blank_values=True)
    ]
    return urlunparse(parsed._replace(query=urlencode(params, safe="*")))


def fetch_status(instance: InstanceConfig, user_agent: str = DEFAULT_USER_AGENT) -> StatusFetch:
    """Fetch an instance's status document.

    Never raises for transport problems: connection errors, timeouts and
    non-2xx responses are reported through StatusFetch.error with an
    empty body.

    Args:
        instance: Instance to poll.
        user_agent: User-Agent header to send.

    Returns:
        StatusFetch with the raw body or the error description.
    """
    url = status_url(instance)
    start_time = time.monotonic()

    try:
        response = requests.get(
            url,
            timeout=instance.timeout,
            headers={"User-Agent": user_agent},
        )
        response.raise_for_status()
        body = response.text
        error = None
    except requests.Timeout:
        body = ""
        error = f"Timeout after {instance.timeout}s"
    except requests.HTTPError as e:
        body = ""
        error = f"HTTP {e.response.status_code if e.response is not None else 'error'}"
    except requests.RequestException as e:
        body = ""
        error = f"Connection failed: {e}"

    response_time_ms = int((time.monotonic() - start_time) * 1000)

    if error is not None:
        logger.warning("%s: status fetch from %s failed: %s", instance.name, mask_password(url), error)
    else:
        logger.debug("%s: fetched %d bytes in %dms", instance.name, len(body), response_time_ms)

    return StatusFetch(
        instance=instance,
        url=url,
        body=body,
        error=error,
        response_time_ms=response_time_ms,
    )
