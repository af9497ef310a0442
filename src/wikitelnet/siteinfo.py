"""Process-wide siteinfo cache with request coalescing.

The renderer needs ``meta=siteinfo`` for every wiki it touches. Sessions
share one ``SiteinfoCache`` (owned by AppState), which keeps exactly one
``SiteinfoHandle`` per distinct wiki set for the lifetime of the process.
A handle wraps a single asyncio task; every caller with the same key awaits
that same task, so N concurrent sessions opening articles on the same wiki
cost one remote fetch.

Entries are never evicted; the key space is one entry per wiki set ever
seen. A failed fetch stays cached too and keeps failing the renders that
depend on it.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from wikitelnet.client import api_get
from wikitelnet.errors import ErrorCode, WikiTelnetError
from wikitelnet.models import Siteinfo

if TYPE_CHECKING:
    from collections.abc import Sequence

    import httpx

    from wikitelnet.models import WikiDescriptor

log = structlog.get_logger()

_SITEINFO_PARAMS = {
    "action": "query",
    "meta": "siteinfo",
    "siprop": "general",
    "format": "json",
}


def siteinfo_key(wikis: Sequence[WikiDescriptor]) -> str:
    """``"$"`` + baseurls joined by ``"|"``, in the given order.

    The prefix keeps the key non-empty even for an empty wiki set.
    """
    return "$" + "|".join(wiki.baseurl for wiki in wikis)


async def fetch_siteinfo(
    client: httpx.AsyncClient,
    wiki: WikiDescriptor,
    *,
    max_attempts: int = 3,
) -> Siteinfo:
    """Fetch and parse siteinfo for one wiki.

    Retries silently up to ``max_attempts``; only the final failure is
    raised.
    """
    last_error: WikiTelnetError | None = None
    for _attempt in range(max_attempts):
        try:
            body = await api_get(
                client,
                wiki.api_url,
                _SITEINFO_PARAMS,
                code=ErrorCode.SITEINFO_FETCH_FAILED,
            )
            return Siteinfo(**body["query"]["general"])
        except WikiTelnetError as exc:
            last_error = exc
            if not exc.recoverable:
                break
        except (KeyError, TypeError, ValidationError) as exc:
            raise WikiTelnetError(
                code=ErrorCode.SITEINFO_FETCH_FAILED,
                message=f"Malformed siteinfo from {wiki.api_url}: {exc}",
            ) from exc

    assert last_error is not None
    raise last_error


class SiteinfoHandle:
    """Shared, awaitable result of one siteinfo fetch chain."""

    def __init__(self, task: asyncio.Task[Siteinfo]) -> None:
        self._task = task
        # A failure nobody awaited would otherwise log "exception never retrieved".
        task.add_done_callback(_consume_exception)

    @property
    def done(self) -> bool:
        return self._task.done()

    async def get(self) -> Siteinfo:
        """Await the shared fetch.

        Shielded: cancelling one waiting session must not cancel the fetch
        other sessions are also waiting on.
        """
        return await asyncio.shield(self._task)


def _consume_exception(task: asyncio.Task[Siteinfo]) -> None:
    if not task.cancelled():
        task.exception()


class SiteinfoCache:
    """Keyed single-flight memo of siteinfo fetches.

    ``get_or_create`` is synchronous: the lookup and the insert cannot be
    interleaved with another coroutine, so the one-handle-per-key invariant
    holds without a lock.
    """

    def __init__(self, client: httpx.AsyncClient, *, max_attempts: int = 3) -> None:
        self._client = client
        self._max_attempts = max_attempts
        self._entries: dict[str, SiteinfoHandle] = {}

    def __call__(self, wikis: Sequence[WikiDescriptor]) -> SiteinfoHandle:
        return self.get_or_create(wikis)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get_or_create(self, wikis: Sequence[WikiDescriptor]) -> SiteinfoHandle:
        """Return the handle for this wiki set, starting a fetch on first use.

        Must be called from within a running event loop.
        """
        key = siteinfo_key(wikis)
        handle = self._entries.get(key)
        if handle is not None:
            return handle

        log.info("siteinfo_fetch_started", key=key)
        task = asyncio.get_running_loop().create_task(self._fetch(list(wikis), key))
        handle = SiteinfoHandle(task)
        self._entries[key] = handle
        return handle

    async def _fetch(self, wikis: list[WikiDescriptor], key: str) -> Siteinfo:
        if not wikis:
            raise WikiTelnetError(
                code=ErrorCode.SITEINFO_FETCH_FAILED,
                message="No wiki given for siteinfo lookup",
            )
        try:
            # The renderer only ever reads the primary wiki's siteinfo.
            siteinfo = await fetch_siteinfo(
                self._client, wikis[0], max_attempts=self._max_attempts
            )
        except WikiTelnetError as exc:
            log.warning("siteinfo_fetch_failed", key=key, code=exc.code, message=exc.message)
            raise
        log.info(
            "siteinfo_fetch_complete", key=key, sitename=siteinfo.sitename, lang=siteinfo.lang
        )
        return siteinfo
