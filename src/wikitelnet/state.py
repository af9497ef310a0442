"""Application state container.

AppState is created once at server startup (inside the ``lifespan`` context
manager) and handed to every telnet session through its SessionEngine.
It holds the only state shared across sessions: the siteinfo cache and the
welcome cache.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from wikitelnet.config import Settings
    from wikitelnet.protocols import RendererProtocol, SearchProtocol, SiteinfoProvider
    from wikitelnet.welcome import WelcomeCache


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every session."""

    settings: Settings
    renderer: RendererProtocol
    search: SearchProtocol
    siteinfo: SiteinfoProvider | None
    welcome: WelcomeCache
    http_client: httpx.AsyncClient | None = None

    async def aclose(self) -> None:
        """Stop the welcome refresh task and release the HTTP client."""
        await self.welcome.stop()
        if self.http_client is not None:
            await self.http_client.aclose()
