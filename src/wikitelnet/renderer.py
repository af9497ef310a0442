"""Plain-text article renderer.

Fetches an article's plain-text extract from the MediaWiki Action API and
streams it to a sink: a title line, a blank line, then the body wrapped
paragraph by paragraph. The siteinfo provider is optional; when given, it
is used to apply the wiki's first-letter title capitalisation without an
extra request per article.
"""

from __future__ import annotations

import textwrap
from typing import TYPE_CHECKING, Any

import structlog

from wikitelnet.client import api_get
from wikitelnet.errors import ErrorCode, WikiTelnetError
from wikitelnet.models import WikiDescriptor

if TYPE_CHECKING:
    import httpx

    from wikitelnet.protocols import OutputSink, SiteinfoProvider

log = structlog.get_logger()


def build_extract_params(title: str) -> dict[str, Any]:
    return {
        "action": "query",
        "format": "json",
        "formatversion": 2,
        "prop": "extracts",
        "explaintext": 1,
        "exsectionformat": "plain",
        "redirects": 1,
        "titles": title,
    }


def capitalise_first_letter(title: str) -> str:
    return title[:1].upper() + title[1:]


def wrap_paragraphs(text: str, width: int) -> list[str]:
    """Wrap each non-empty paragraph of ``text`` to ``width`` columns."""
    paragraphs: list[str] = []
    for paragraph in text.split("\n"):
        paragraph = paragraph.strip()
        if not paragraph:
            continue
        paragraphs.append(textwrap.fill(paragraph, width=width) + "\n")
    return paragraphs


class MediaWikiRenderer:
    """Implements RendererProtocol on top of ``prop=extracts``."""

    def __init__(self, client: httpx.AsyncClient, *, wrap_width: int = 78) -> None:
        self._client = client
        self._wrap_width = wrap_width

    async def render(
        self,
        domain: str,
        title: str,
        sink: OutputSink,
        siteinfo: SiteinfoProvider | None = None,
    ) -> None:
        """Render ``title`` from ``domain`` into ``sink``.

        Raises WikiTelnetError(PAGE_NOT_FOUND) when the page does not exist
        or has no text, and RENDER_FAILED (or SITEINFO_FETCH_FAILED) on
        transport errors. Nothing is written to the sink before the article
        text has been fetched in full.
        """
        wiki = WikiDescriptor.for_domain(domain)
        requested = title.strip()
        if not requested:
            raise WikiTelnetError(code=ErrorCode.PAGE_NOT_FOUND, message="Empty title")

        if siteinfo is not None:
            info = await siteinfo([wiki]).get()
            if info.case == "first-letter":
                requested = capitalise_first_letter(requested)

        body = await api_get(
            self._client,
            wiki.api_url,
            build_extract_params(requested),
            code=ErrorCode.RENDER_FAILED,
        )
        page_title, extract = _extract_page(body, requested)

        log.debug("render_fetched", domain=domain, title=page_title, length=len(extract))
        await sink.write(f"{page_title}\n\n")
        for paragraph in wrap_paragraphs(extract, self._wrap_width):
            await sink.write(paragraph)


def _extract_page(body: dict[str, Any], requested: str) -> tuple[str, str]:
    """Return (title, plain text) of the single page in an extracts response."""
    try:
        page = body["query"]["pages"][0]
    except (KeyError, IndexError, TypeError) as exc:
        raise WikiTelnetError(
            code=ErrorCode.RENDER_FAILED,
            message=f"Malformed extract response for {requested!r}",
        ) from exc

    if page.get("missing") or page.get("invalid"):
        raise WikiTelnetError(
            code=ErrorCode.PAGE_NOT_FOUND,
            message=f"No page titled {requested!r}",
        )

    extract = page.get("extract") or ""
    if not extract.strip():
        raise WikiTelnetError(
            code=ErrorCode.PAGE_NOT_FOUND,
            message=f"Page {requested!r} has no text",
        )
    return page.get("title", requested), extract
