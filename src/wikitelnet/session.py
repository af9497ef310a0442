"""Per-connection session state machine.

Each telnet connection owns one ``Session`` (its current wiki domain and
state) and drives it through the shared ``SessionEngine``:

    AWAITING_INPUT → COMMAND_DISPATCH | ARTICLE_FETCH → FALLBACK_RESOLVE
                   → AWAITING_INPUT            (or CLOSED after :quit)

Lines are handled strictly one at a time; no input is read while an
article is being rendered or resolved.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from wikitelnet.completion import QUIT_COMMAND, complete
from wikitelnet.resolver import resolve_title

if TYPE_CHECKING:
    from wikitelnet.protocols import OutputSink, TerminalProtocol
    from wikitelnet.state import AppState

_USE_DOMAIN_RE = re.compile(r"^:(host|use)\s+(\S+\.org)$", re.IGNORECASE)

NOT_FOUND_MESSAGE = (
    'Sorry! Could not fetch "{title}" for you.\n'
    "No worries. There are lots of other pages to read.\n"
    "Pick a different title.\n"
)


class SessionState(StrEnum):
    AWAITING_INPUT = "awaiting_input"
    COMMAND_DISPATCH = "command_dispatch"
    ARTICLE_FETCH = "article_fetch"
    FALLBACK_RESOLVE = "fallback_resolve"
    CLOSED = "closed"


@dataclass
class Session:
    """One connected user. Owned by its connection; never shared."""

    domain: str
    peer: str = "unknown"
    state: SessionState = SessionState.AWAITING_INPUT

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED


@dataclass(frozen=True)
class UseDomain:
    domain: str


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class ArticleRequest:
    title: str


Command = UseDomain | Quit | ArticleRequest


def parse_command(line: str) -> Command:
    """Classify one input line.

    ``:use``/``:host`` need a ``something.org`` domain; anything that
    doesn't fit falls through to an article request, as does any other line.
    """
    line = line.strip()

    match = _USE_DOMAIN_RE.match(line)
    if match:
        return UseDomain(domain=match.group(2))

    if line == QUIT_COMMAND:
        return Quit()

    return ArticleRequest(title=line)


class SessionEngine:
    """Runs sessions against the shared AppState."""

    def __init__(self, state: AppState) -> None:
        self._state = state

    def new_session(self, peer: str = "unknown") -> Session:
        return Session(domain=self._state.settings.wiki.default_domain, peer=peer)

    async def complete(self, session: Session, partial: str) -> list[str]:
        return await complete(
            session.domain,
            partial,
            self._state.search,
            limit=self._state.settings.wiki.search_limit,
        )

    async def handle_line(self, session: Session, line: str, out: OutputSink) -> bool:
        """Process one input line. Returns False once the session is closed."""
        log = structlog.get_logger().bind(peer=session.peer, domain=session.domain)
        command = parse_command(line)

        if isinstance(command, UseDomain):
            session.state = SessionState.COMMAND_DISPATCH
            session.domain = command.domain
            log.info("domain_changed", new_domain=command.domain)
            await out.write(f"Using {session.domain} for future articles.\n")
            session.state = SessionState.AWAITING_INPUT
            return True

        if isinstance(command, Quit):
            session.state = SessionState.COMMAND_DISPATCH
            await out.write("Bye!\n")
            session.state = SessionState.CLOSED
            log.info("session_quit")
            return False

        if not command.title:
            return True

        await self.fetch_article(session, command.title, out)
        await out.write(self._state.settings.render.separator)
        session.state = SessionState.AWAITING_INPUT
        return True

    async def fetch_article(self, session: Session, title: str, out: OutputSink) -> bool:
        """Render ``title``, falling back to a normalised-title lookup.

        Returns True if something was rendered. On failure the user gets a
        not-found notice naming what they typed, never the resolved title.
        """
        log = structlog.get_logger().bind(peer=session.peer, domain=session.domain, title=title)
        state = self._state
        domain = session.domain

        session.state = SessionState.ARTICLE_FETCH
        try:
            await state.renderer.render(domain, title, out, state.siteinfo)
            log.info("article_rendered")
            return True
        except ConnectionError:
            raise
        except Exception as exc:
            log.info("render_failed", error=str(exc))

        session.state = SessionState.FALLBACK_RESOLVE
        resolved = await resolve_title(
            domain, title, state.search, limit=state.settings.wiki.search_limit
        )
        if resolved is None:
            await out.write(NOT_FOUND_MESSAGE.format(title=title))
            return False

        try:
            await state.renderer.render(domain, resolved, out, state.siteinfo)
        except ConnectionError:
            raise
        except Exception as exc:
            log.info("resolved_render_failed", resolved=resolved, error=str(exc))
            await out.write(NOT_FOUND_MESSAGE.format(title=title))
            return False

        log.info("article_rendered", resolved=resolved)
        return True

    async def run(self, session: Session, terminal: TerminalProtocol) -> None:
        """Greet the user, then read and handle lines until quit or EOF."""
        log = structlog.get_logger().bind(peer=session.peer)
        log.info("session_opened", domain=session.domain)

        async def completer(partial: str) -> list[str]:
            return await self.complete(session, partial)

        try:
            await terminal.write(await self._state.welcome.get())
            while not session.closed:
                line = await terminal.read_line(self._state.settings.render.prompt, completer)
                if line is None:
                    break
                if not await self.handle_line(session, line, terminal):
                    break
        except ConnectionError:
            log.info("session_transport_error", exc_info=True)
        finally:
            session.state = SessionState.CLOSED
            log.info("session_closed")
