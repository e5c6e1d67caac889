"""Raw HTTP request strategy for ``requests`` and ``httpx`` request objects."""

from __future__ import annotations

from typing import Any, Mapping

import httpx
import requests

from snappack.strategies.base import Strategy
from snappack.strategies.text import lines


def describe_request(request: Any) -> str:
    """Render a request as its request line, sorted headers and body text."""
    method, url, headers, body = _request_parts(request)

    status = f"{method or 'GET'} {url or '(null)'}"
    header_lines = sorted(f"{key}: {value}" for key, value in headers.items())
    parts = [status, *header_lines]
    if body:
        parts.append(f"\n{_body_text(body)}")
    return "\n".join(parts)


def _request_parts(request: Any) -> tuple[str | None, str | None, Mapping[str, str], Any]:
    if isinstance(request, requests.Request):
        request = request.prepare()

    if isinstance(request, requests.PreparedRequest):
        return request.method, request.url, dict(request.headers), request.body

    if isinstance(request, httpx.Request):
        return request.method, str(request.url), dict(request.headers), request.content

    raise TypeError(
        "raw_request supports requests.Request, requests.PreparedRequest and httpx.Request; "
        f"got {type(request).__name__}"
    )


def _body_text(body: Any) -> str:
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    return str(body)


raw_request: Strategy[Any, str] = lines.pullback(describe_request)
