"""Title prefix search over the MediaWiki Action API.

Used both for tab completion and for the title-resolution fallback. The
API answers with ``query.pages`` keyed by page ID, which is not in
relevance order; each page carries its 1-based ``index`` instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from wikitelnet.client import api_get
from wikitelnet.errors import ErrorCode, WikiTelnetError
from wikitelnet.models import SearchHit, WikiDescriptor

if TYPE_CHECKING:
    import httpx

log = structlog.get_logger()


def build_search_params(term: str, limit: int) -> dict[str, Any]:
    return {
        "action": "query",
        "format": "json",
        "prop": "pageprops",
        "generator": "prefixsearch",
        "ppprop": "displaytitle",
        "gpssearch": term,
        "gpsnamespace": 0,
        "gpslimit": limit,
    }


def parse_search_response(body: dict[str, Any]) -> list[SearchHit]:
    """Turn a prefixsearch response into hits sorted by relevance.

    A response without ``query`` means no page matched.
    """
    query = body.get("query")
    if query is None:
        return []

    pages = query.get("pages") if isinstance(query, dict) else None
    if not isinstance(pages, dict):
        raise WikiTelnetError(
            code=ErrorCode.SEARCH_FAILED,
            message="Prefix search response has no 'pages' mapping",
        )

    try:
        hits = [SearchHit(**page) for page in pages.values()]
    except (TypeError, ValidationError) as exc:
        raise WikiTelnetError(
            code=ErrorCode.SEARCH_FAILED,
            message=f"Malformed prefix search result: {exc}",
        ) from exc

    return sorted(hits, key=lambda hit: hit.index)


class SearchClient:
    """Prefix search against any wiki, sharing one HTTP client."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def prefix_search(self, domain: str, term: str, limit: int) -> list[SearchHit]:
        """Return up to ``limit`` titles on ``domain`` starting with ``term``.

        Raises WikiTelnetError(SEARCH_FAILED) on any transport or payload error.
        """
        url = WikiDescriptor.for_domain(domain).api_url
        body = await api_get(
            self._client,
            url,
            build_search_params(term, limit),
            code=ErrorCode.SEARCH_FAILED,
        )
        hits = parse_search_response(body)
        log.debug("prefix_search_complete", domain=domain, term=term, hit_count=len(hits))
        return hits
