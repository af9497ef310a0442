"""Shared test fixtures for the wikitelnet test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from wikitelnet.config import Settings
from wikitelnet.errors import ErrorCode, WikiTelnetError
from wikitelnet.session import SessionEngine
from wikitelnet.state import AppState
from wikitelnet.welcome import WelcomeCache

if TYPE_CHECKING:
    from wikitelnet.models import SearchHit
    from wikitelnet.protocols import Completer, OutputSink, SiteinfoProvider


class RecordingSink:
    """OutputSink that keeps everything written to it."""

    def __init__(self) -> None:
        self.chunks: list[str] = []

    async def write(self, chunk: str) -> None:
        self.chunks.append(chunk)

    @property
    def text(self) -> str:
        return "".join(self.chunks)


class FakeRenderer:
    """Renders from an in-memory {(domain, title): text} table."""

    def __init__(self, pages: dict[tuple[str, str], str] | None = None) -> None:
        self.pages = dict(pages or {})
        self.calls: list[tuple[str, str]] = []

    async def render(
        self,
        domain: str,
        title: str,
        sink: OutputSink,
        siteinfo: SiteinfoProvider | None = None,
    ) -> None:
        self.calls.append((domain, title))
        text = self.pages.get((domain, title))
        if text is None:
            raise WikiTelnetError(code=ErrorCode.PAGE_NOT_FOUND, message=f"No page {title!r}")
        await sink.write(f"{title}\n\n")
        await sink.write(text)


class FakeSearch:
    """Prefix search from an in-memory {term: hits | exception} table."""

    def __init__(self, results: dict[str, list[SearchHit] | Exception] | None = None) -> None:
        self.results = dict(results or {})
        self.calls: list[tuple[str, str, int]] = []

    async def prefix_search(self, domain: str, term: str, limit: int) -> list[SearchHit]:
        self.calls.append((domain, term, limit))
        result = self.results.get(term, [])
        if isinstance(result, Exception):
            raise result
        return result


class FakeTerminal:
    """TerminalProtocol fed from a list of lines; None entries mean EOF."""

    def __init__(self, lines: list[str | None]) -> None:
        self.lines = list(lines)
        self.output = RecordingSink()
        self.prompts: list[str] = []

    async def write(self, chunk: str) -> None:
        await self.output.write(chunk)

    async def read_line(self, prompt: str, completer: Completer | None = None) -> str | None:
        self.prompts.append(prompt)
        await self.output.write(prompt)
        if not self.lines:
            return None
        return self.lines.pop(0)


WELCOME_TEXT = "Welcome to the telnet gateway!\n"


@pytest.fixture()
def settings() -> Settings:
    return Settings()


@pytest.fixture()
def renderer(settings: Settings) -> FakeRenderer:
    return FakeRenderer(
        {
            (settings.welcome.domain, settings.welcome.title): WELCOME_TEXT,
            ("en.wikipedia.org", "Paris"): "Paris is the capital of France.\n",
            ("es.wikipedia.org", "París"): "París es la capital de Francia.\n",
        }
    )


@pytest.fixture()
def search() -> FakeSearch:
    return FakeSearch()


@pytest.fixture()
async def app_state(settings: Settings, renderer: FakeRenderer, search: FakeSearch) -> AppState:
    """AppState with fake collaborators and a published welcome text."""
    welcome = WelcomeCache(
        renderer,
        None,
        domain=settings.welcome.domain,
        title=settings.welcome.title,
    )
    await welcome.refresh()
    return AppState(
        settings=settings,
        renderer=renderer,
        search=search,
        siteinfo=None,
        welcome=welcome,
    )


@pytest.fixture()
def engine(app_state: AppState) -> SessionEngine:
    return SessionEngine(app_state)


@pytest.fixture()
def terminal_factory() -> type[FakeTerminal]:
    return FakeTerminal
