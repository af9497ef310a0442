"""Telnet server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState via the ``lifespan`` context manager
- Accept telnet connections and run one session per connection
- Report bind failures distinctly (permission vs. anything else)
"""

from __future__ import annotations

import argparse
import asyncio
import errno
import logging
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
import telnetlib3

from wikitelnet import __version__
from wikitelnet.client import build_http_client
from wikitelnet.config import Settings
from wikitelnet.errors import ErrorCode, WikiTelnetError
from wikitelnet.renderer import MediaWikiRenderer
from wikitelnet.search import SearchClient
from wikitelnet.session import SessionEngine
from wikitelnet.siteinfo import SiteinfoCache
from wikitelnet.state import AppState
from wikitelnet.terminal import TelnetTerminal, negotiate_session_options
from wikitelnet.welcome import WelcomeCache

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable, Sequence

    from telnetlib3 import TelnetReaderUnicode, TelnetWriterUnicode

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # Logs go to stderr; stdout only carries the startup hint
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(settings: Settings) -> AsyncGenerator[AppState, None]:
    """Create and tear down all shared resources for the server's lifetime."""
    log.info("server_starting", version=__version__, port=settings.server.port)

    http_client = build_http_client(settings.wiki.http_timeout_seconds)
    siteinfo = SiteinfoCache(http_client, max_attempts=settings.siteinfo.max_attempts)
    renderer = MediaWikiRenderer(http_client, wrap_width=settings.render.wrap_width)
    search = SearchClient(http_client)
    welcome = WelcomeCache(
        renderer,
        siteinfo,
        domain=settings.welcome.domain,
        title=settings.welcome.title,
        refresh_hours=settings.welcome.refresh_hours,
    )

    state = AppState(
        settings=settings,
        renderer=renderer,
        search=search,
        siteinfo=siteinfo,
        welcome=welcome,
        http_client=http_client,
    )

    welcome.start()

    try:
        yield state
    finally:
        await state.aclose()
        log.info("server_stopping")


# ---------------------------------------------------------------------------
# Telnet shell
# ---------------------------------------------------------------------------


def _format_peer(peername: object) -> str:
    if isinstance(peername, tuple) and len(peername) >= 2:
        return f"{peername[0]}:{peername[1]}"
    return "unknown"


def make_shell(
    engine: SessionEngine,
) -> Callable[[TelnetReaderUnicode, TelnetWriterUnicode], Awaitable[None]]:
    """Build the telnetlib3 shell coroutine: one Session per connection."""

    async def shell(reader: TelnetReaderUnicode, writer: TelnetWriterUnicode) -> None:
        session = engine.new_session(peer=_format_peer(writer.get_extra_info("peername")))
        negotiate_session_options(writer)
        try:
            await engine.run(session, TelnetTerminal(reader, writer))
        except Exception:
            # Only this connection goes down; the server keeps accepting.
            log.error("session_unexpected_error", peer=session.peer, exc_info=True)
        finally:
            writer.close()

    return shell


async def serve(settings: Settings) -> None:
    """Listen for telnet connections until cancelled.

    Raises WikiTelnetError(BIND_PERMISSION_DENIED | BIND_FAILED) if the
    port can't be bound. Neither is retried.
    """
    port = settings.server.port
    async with lifespan(settings) as state:
        engine = SessionEngine(state)
        try:
            server = await telnetlib3.create_server(
                host=settings.server.host,
                port=port,
                shell=make_shell(engine),
                encoding="utf8",
                timeout=settings.server.connect_timeout,
            )
        except OSError as exc:
            if isinstance(exc, PermissionError) or exc.errno == errno.EACCES:
                log.error("bind_permission_denied", port=port)
                raise WikiTelnetError(
                    code=ErrorCode.BIND_PERMISSION_DENIED,
                    message=f'You must be "root" to bind to port {port}',
                ) from exc
            log.error("bind_failed", port=port, error=str(exc))
            raise WikiTelnetError(
                code=ErrorCode.BIND_FAILED,
                message=f"Could not listen on port {port}: {exc}",
            ) from exc

        hint = "telnet localhost" + (f" {port}" if port != 23 else "")
        log.info("server_listening", port=port, hint=hint)
        print(f"wikipedia telnet server listening on port {port}")
        print(f"  $ {hint}")

        try:
            await server.wait_closed()
        finally:
            server.close()


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="wikitelnet",
        description="Browse Wikipedia articles as plain text over telnet.",
    )
    parser.add_argument("port", nargs="?", type=int, help="TCP port to listen on")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    overrides = {"server": {"port": args.port}} if args.port else {}
    settings = Settings(**overrides)
    _setup_logging(settings)

    try:
        asyncio.run(serve(settings))
    except WikiTelnetError as exc:
        if exc.code == ErrorCode.BIND_PERMISSION_DENIED:
            print(f"EACCES: {exc.message}", file=sys.stderr)
        else:
            print(f"wikitelnet: {exc.message}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        log.info("server_interrupted")


if __name__ == "__main__":
    main()
