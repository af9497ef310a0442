"""Shared HTTP plumbing for the MediaWiki Action API.

All network I/O goes through a single ``httpx.AsyncClient`` created once in
the server lifespan and injected into the search client, siteinfo cache and
renderer. Every API call goes through ``api_get`` so that HTTP status,
transport and JSON errors map onto ``WikiTelnetError`` the same way.
"""

from __future__ import annotations

import os
from typing import Any

import httpx
import structlog

from wikitelnet import __version__
from wikitelnet.errors import ErrorCode, WikiTelnetError

log = structlog.get_logger()


def user_agent() -> str:
    """Identify the operator to Wikimedia, as their API etiquette asks."""
    user = (
        os.environ.get("USER") or os.environ.get("LOGNAME") or os.environ.get("HOME") or "unknown"
    )
    return f"wikipedia-telnet/{__version__}/{user}"


def build_http_client(timeout_seconds: float = 30.0) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(timeout_seconds),
        headers={"User-Agent": user_agent()},
        limits=httpx.Limits(
            max_connections=20,
            max_keepalive_connections=10,
        ),
    )


async def api_get(
    client: httpx.AsyncClient,
    url: str,
    params: dict[str, Any],
    *,
    code: ErrorCode,
) -> dict[str, Any]:
    """GET an Action API URL and return the decoded JSON object.

    Raises WikiTelnetError with ``code`` on network errors, non-200
    responses, bodies that are not a JSON object, and API-level ``error``
    members.
    """
    try:
        response = await client.get(url, params=params)
    except httpx.HTTPError as exc:
        raise WikiTelnetError(
            code=code,
            message=f"Network error fetching {url}: {exc}",
            recoverable=True,
        ) from exc

    log.debug("api_response", url=url, status_code=response.status_code)

    if response.status_code != 200:
        raise WikiTelnetError(
            code=code,
            message=f"Unexpected HTTP status: {response.status_code}",
            recoverable=response.status_code >= 500,
        )

    try:
        body = response.json()
    except ValueError as exc:
        raise WikiTelnetError(
            code=code,
            message=f"Malformed JSON from {url}",
        ) from exc

    if not isinstance(body, dict):
        raise WikiTelnetError(code=code, message=f"Unexpected JSON payload from {url}")

    if "error" in body:
        error = body["error"]
        info = error.get("info") if isinstance(error, dict) else None
        raise WikiTelnetError(code=code, message=info or "Bad request")

    return body
