"""Shared HTTP helpers used by the parts catalogue and the dry-run resolver.

Encapsulates common request/timeout error handling so modules avoid
duplicating try/except blocks. Failures never raise: callers receive a zero
status code and treat it as "no fresh data available".
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Tuple

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


def packages_json_url(url: str) -> str:
    """Point a repository URL at its ``packages.json`` index."""
    url = (url or "").strip()
    if not url or url.endswith("packages.json"):
        return url
    return url.rstrip("/") + "/packages.json"


def robust_get(url: str, *, headers: Optional[Dict[str, str]] = None) -> Tuple[int, Dict[str, str], str]:
    """GET with a timeout, retrying timeouts, connection errors and 5xx answers.

    Returns:
        Tuple of (status_code, headers_dict, text). The status code is 0 and
        the text holds the last error when every attempt failed.
    """
    last_error = ""
    for attempt in range(1, Constants.HTTP_RETRY_MAX + 1):
        with Timer() as t:
            try:
                response = requests.get(
                    url,
                    timeout=Constants.REQUEST_TIMEOUT,
                    headers=headers,
                    verify=Constants.VERIFY_SSL,
                )
            except requests.RequestException as exc:
                last_error = "timeout" if isinstance(exc, requests.Timeout) else str(exc)
                response = None

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP GET attempt",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action="GET",
                    attempt=attempt,
                    status_code=response.status_code if response is not None else None,
                    outcome=last_error if response is None else None,
                    duration_ms=t.duration_ms(),
                    target=safe_url(url),
                ),
            )
        if response is None:
            continue
        if response.status_code >= 500:
            last_error = f"HTTP {response.status_code}"
            continue
        return response.status_code, dict(response.headers), response.text

    return 0, {}, f"Request failed after {Constants.HTTP_RETRY_MAX} attempts: {last_error}"


def get_json(url: str, *, headers: Optional[Dict[str, str]] = None) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """GET ``url`` and parse the JSON body.

    Returns:
        Tuple of (status_code, headers_dict, parsed_json_or_none). The payload
        is None unless the answer is a 200 with a valid JSON body.
    """
    status_code, response_headers, text = robust_get(url, headers=headers)
    if status_code != 200 or not text:
        return status_code, response_headers, None
    try:
        return status_code, response_headers, json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Invalid JSON from %s", safe_url(url))
        return status_code, response_headers, None


def post_json(
    url: str,
    payload: Any,
    *,
    context: str,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> Tuple[int, Optional[Any], str]:
    """POST a JSON payload and parse the JSON answer.

    Args:
        url: Target URL.
        payload: JSON-serializable body.
        context: Human-readable source tag for logs (e.g., "dry-run").
        headers: Optional extra request headers.
        timeout: Optional timeout override in seconds.

    Returns:
        Tuple of (status_code, parsed_json_or_none, raw_text_or_error).
        The status code is 0 when the request never completed.
    """
    safe_target = safe_url(url)
    request_headers = {"Content-Type": "application/json", "Accept": "application/json"}
    if headers:
        request_headers.update(headers)

    with Timer() as t:
        try:
            res = requests.post(
                url,
                data=json.dumps(payload),
                headers=request_headers,
                timeout=timeout if timeout is not None else Constants.REQUEST_TIMEOUT,
                verify=Constants.VERIFY_SSL,
            )
        except requests.Timeout:
            logger.error(
                "%s request timed out after %s seconds",
                context,
                timeout if timeout is not None else Constants.REQUEST_TIMEOUT,
            )
            return 0, None, "timeout"
        except requests.RequestException as exc:  # includes ConnectionError
            logger.error("%s connection error: %s", context, exc)
            return 0, None, str(exc)

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="POST",
                    status_code=res.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context
                )
            )

    try:
        parsed = json.loads(res.text) if res.text else None
    except json.JSONDecodeError:
        parsed = None
    return res.status_code, parsed, res.text
