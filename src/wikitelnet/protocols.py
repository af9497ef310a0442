"""Protocol interfaces for swappable components.

The session engine, resolver and welcome cache reference these protocols,
not the concrete implementations. This allows:
- Tests to use lightweight in-memory renderers and search clients
- A different article renderer (e.g. a Parsoid-based one) to be swapped in
  without touching session code
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    from wikitelnet.models import SearchHit, Siteinfo, WikiDescriptor


class OutputSink(Protocol):
    """Where rendered text goes. Chunks are written in order."""

    async def write(self, chunk: str) -> None: ...


class SiteinfoSource(Protocol):
    """A shared, awaitable siteinfo result."""

    async def get(self) -> Siteinfo: ...


class SiteinfoProvider(Protocol):
    """Returns the same handle for every call with the same wiki set."""

    def __call__(self, wikis: Sequence[WikiDescriptor]) -> SiteinfoSource: ...


class RendererProtocol(Protocol):
    """Renders one article title of one wiki as plain text.

    Raises on any failure, missing page and transport error alike.
    """

    async def render(
        self,
        domain: str,
        title: str,
        sink: OutputSink,
        siteinfo: SiteinfoProvider | None = None,
    ) -> None: ...


class SearchProtocol(Protocol):
    """Title prefix search against one wiki."""

    async def prefix_search(self, domain: str, term: str, limit: int) -> list[SearchHit]: ...


class Completer(Protocol):
    async def __call__(self, partial: str) -> list[str]: ...


class TerminalProtocol(Protocol):
    """A connected user's line-oriented terminal."""

    async def write(self, chunk: str) -> None: ...

    async def read_line(self, prompt: str, completer: Completer | None = None) -> str | None:
        """Return the next line without its terminator, or None at EOF."""
        ...
