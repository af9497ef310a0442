"""Title resolution fallback.

When a typed title fails to render, the usual culprit is case or accents
("madrid" for "Madrid", "paris" for "París"). One prefix search for the
raw input, compared under ``normalize_title``, recovers most of these.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from wikitelnet.normalizer import normalize_title

if TYPE_CHECKING:
    from collections.abc import Iterable

    from wikitelnet.models import SearchHit
    from wikitelnet.protocols import SearchProtocol

log = structlog.get_logger()


def pick_best_title(target: str, hits: Iterable[SearchHit]) -> str | None:
    """Return the best-ranked hit whose normalised title equals ``target``.

    ``target`` must already be normalised. Ties go to the lowest index.
    """
    best: SearchHit | None = None
    for hit in hits:
        if best is not None and hit.index >= best.index:
            continue
        if normalize_title(hit.title) == target:
            best = hit
    return best.title if best is not None else None


async def resolve_title(
    domain: str,
    requested: str,
    search: SearchProtocol,
    *,
    limit: int = 6,
) -> str | None:
    """Find the real title that ``requested`` most likely meant.

    Returns None if the search fails or nothing matches after
    normalisation. Never raises for search errors.
    """
    target = normalize_title(requested)
    try:
        hits = await search.prefix_search(domain, requested, limit)
    except Exception as exc:
        log.info("title_resolution_search_failed", domain=domain, title=requested, error=str(exc))
        return None

    best = pick_best_title(target, hits)
    if best is None:
        log.info("title_unresolved", domain=domain, title=requested, candidates=len(hits))
        return None

    log.info("title_resolved", domain=domain, title=requested, resolved=best)
    return best
