"""Shared welcome text shown to every new session.

The greeting is rendered from a wiki page (``User:cscott/Telnet`` by
default) so it can be edited on-wiki. One ``WelcomeCache`` lives in
AppState; a background task refreshes it on a fixed schedule and sessions
only ever read the latest published value.
"""

from __future__ import annotations

import asyncio
import re
from contextlib import suppress
from importlib.resources import files
from typing import TYPE_CHECKING

import structlog

from wikitelnet.errors import ErrorCode, WikiTelnetError
from wikitelnet.schedulers import run_welcome_refresh_scheduler

if TYPE_CHECKING:
    from wikitelnet.protocols import RendererProtocol, SiteinfoProvider

log = structlog.get_logger()

# The renderer's first line is the page title, which the greeting doesn't want.
_TITLE_LINE_RE = re.compile(r"^\S+[\n\r]+")


def load_fallback_text() -> str:
    """Return the bundled greeting used when the wiki page can't be rendered."""
    return (files("wikitelnet") / "data" / "wiki-logo.txt").read_text(encoding="utf-8")


class _BufferSink:
    def __init__(self) -> None:
        self.chunks: list[str] = []

    async def write(self, chunk: str) -> None:
        self.chunks.append(chunk)

    def getvalue(self) -> str:
        return "".join(self.chunks)


class WelcomeCache:
    """Latest welcome text plus the lifecycle of its refresh task."""

    def __init__(
        self,
        renderer: RendererProtocol,
        siteinfo: SiteinfoProvider | None,
        *,
        domain: str,
        title: str,
        refresh_hours: float = 6,
    ) -> None:
        self._renderer = renderer
        self._siteinfo = siteinfo
        self._domain = domain
        self._title = title
        self.refresh_hours = refresh_hours
        self._value: str | None = None
        self._ready = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def value(self) -> str | None:
        """The published text, or None before the first refresh finishes."""
        return self._value

    async def get(self) -> str:
        """Wait for the first published value, then return the latest one."""
        await self._ready.wait()
        assert self._value is not None
        return self._value

    async def refresh(self) -> None:
        """Re-render the welcome page and publish it.

        On failure the previous text stays published; if there is none yet,
        the bundled fallback is published instead. Never raises.
        """
        log.info("welcome_refresh_started", domain=self._domain, title=self._title)
        try:
            text = await self.fetch()
        except WikiTelnetError as exc:
            log.warning("welcome_refresh_failed", domain=self._domain, error=exc.message)
            if self._value is None:
                self._publish(load_fallback_text())
                log.info("welcome_fallback_published")
            return

        self._publish(text)
        log.info("welcome_refreshed", length=len(text))

    async def fetch(self) -> str:
        """Render the welcome page once and return it without its title line.

        Raises WikiTelnetError(WELCOME_FETCH_FAILED) if the render fails or
        leaves nothing to show.
        """
        sink = _BufferSink()
        try:
            await self._renderer.render(self._domain, self._title, sink, self._siteinfo)
        except Exception as exc:
            raise WikiTelnetError(
                code=ErrorCode.WELCOME_FETCH_FAILED,
                message=f"Could not render {self._title!r} from {self._domain}: {exc}",
                recoverable=True,
            ) from exc

        text = _TITLE_LINE_RE.sub("", sink.getvalue(), count=1)
        if not text.strip():
            raise WikiTelnetError(
                code=ErrorCode.WELCOME_FETCH_FAILED,
                message=f"Welcome page {self._title!r} rendered empty",
                recoverable=True,
            )
        return text

    def _publish(self, text: str) -> None:
        self._value = text
        self._ready.set()

    def start(self) -> None:
        """Start the background refresh task (first refresh runs immediately)."""
        if self._task is None:
            self._task = asyncio.create_task(run_welcome_refresh_scheduler(self))

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None
