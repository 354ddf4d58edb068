from __future__ import annotations

import json
import logging
from http.client import HTTPException
from typing import Callable
from urllib.error import URLError
from urllib.request import Request, urlopen

from .errors import UpstreamError

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) HisabDaily/0.3"

FetchJson = Callable[..., dict]


def fetch_json(
    url: str,
    payload: dict | None = None,
    headers: dict[str, str] | None = None,
    timeout: float = 10.0,
) -> dict:
    """GET `url`, or POST `payload` as JSON when given, and decode a JSON object response.

    Raises UpstreamError for network failures, HTTP error statuses, timeouts, truncated or
    malformed responses, and bodies that are not a JSON object.
    """
    request_headers = {
        "User-Agent": USER_AGENT,
        "Accept": "application/json",
    }
    data = None
    if payload is not None:
        data = json.dumps(payload).encode("utf-8")
        request_headers["Content-Type"] = "application/json"
    if headers:
        request_headers.update(headers)

    try:
        req = Request(url, data=data, headers=request_headers, method="POST" if data else "GET")
        with urlopen(req, timeout=timeout) as response:
            body = json.loads(response.read().decode("utf-8"))
    except (URLError, HTTPException, OSError, ValueError) as exc:
        # ValueError covers malformed URLs and undecodable or non-JSON bodies.
        logger.debug("Request to %s failed: %s", url, exc)
        raise UpstreamError(f"Request to {url} failed: {exc}") from exc

    if not isinstance(body, dict):
        raise UpstreamError(f"Unexpected payload from {url}")
    return body
