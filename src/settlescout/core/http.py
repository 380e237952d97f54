"""
HTTP helpers.

This module centralizes the minimal HTTP client logic used by the ingestion layer.

Design goals:
- Small surface area (GET JSON, POST form returning raw text).
- Deterministic defaults (timeout + User-Agent).
- Raise on non-2xx so callers can decide how to fail (the Overpass client maps
  status codes to per-point failure reasons).
"""

from __future__ import annotations

from typing import Any

import httpx


DEFAULT_USER_AGENT = "settlescout/0.1.0 (+https://local)"


def _headers(user_agent: str | None, headers: dict[str, str] | None) -> dict[str, str]:
    request_headers = {"User-Agent": user_agent or DEFAULT_USER_AGENT}
    if headers:
        request_headers.update(headers)
    return request_headers


def get_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
    user_agent: str | None = None,
) -> Any:
    """GET `url` and return the decoded JSON response.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
        ValueError: If the response body is not valid JSON.
    """
    with httpx.Client(timeout=timeout_seconds) as client:
        resp = client.get(url, params=params, headers=_headers(user_agent, headers))
        resp.raise_for_status()
        return resp.json()


def post_form_text(
    url: str,
    *,
    data: dict[str, Any],
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
    user_agent: str | None = None,
) -> str:
    """POST `data` as form-encoded body and return the undecoded response text.

    The body is returned as text (not parsed) because the Overpass interpreter
    sometimes answers 200 with an HTML error page; callers decide how to parse.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
    """
    with httpx.Client(timeout=timeout_seconds) as client:
        resp = client.post(url, data=data, headers=_headers(user_agent, headers))
        resp.raise_for_status()
        return resp.text
