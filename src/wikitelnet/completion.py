"""Tab completion: static commands merged with live title suggestions."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from wikitelnet.protocols import SearchProtocol

log = structlog.get_logger()

QUIT_COMMAND = ":quit"

WELL_KNOWN_DOMAINS: tuple[str, ...] = (
    "en.wikipedia.org",
    "es.wikipedia.org",
    "ja.wikipedia.org",
    "de.wikipedia.org",
    "ru.wikipedia.org",
    "fr.wikipedia.org",
    "it.wikipedia.org",
    "pt.wikipedia.org",
    "zh.wikipedia.org",
    "pl.wikipedia.org",
)

STATIC_COMMANDS: tuple[str, ...] = (
    QUIT_COMMAND,
    *(f":use {domain}" for domain in WELL_KNOWN_DOMAINS),
)


async def complete(
    domain: str,
    partial: str,
    search: SearchProtocol,
    *,
    limit: int = 6,
) -> list[str]:
    """Return completion candidates for ``partial``.

    Static commands matching the prefix (case-sensitive) come first, then
    up to ``limit`` titles from ``domain`` in relevance order. Search
    failures are ignored. Never returns an empty list: with no candidates
    at all, the full command list is offered instead.
    """
    hits = [command for command in STATIC_COMMANDS if command.startswith(partial)]

    if partial == "":
        return hits or list(STATIC_COMMANDS)

    try:
        results = await search.prefix_search(domain, partial, limit)
    except Exception as exc:
        log.debug("completion_search_failed", domain=domain, partial=partial, error=str(exc))
    else:
        hits.extend(hit.title for hit in sorted(results, key=lambda hit: hit.index))

    return hits or list(STATIC_COMMANDS)
