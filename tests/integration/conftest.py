"""Integration test fixtures.

Provides a fully wired AppState: the real search client, renderer and
siteinfo cache talking to an in-memory MediaWiki through respx.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import AsyncIterator

import httpx
import pytest
import respx

from wikitelnet.config import Settings
from wikitelnet.normalizer import normalize_title
from wikitelnet.renderer import MediaWikiRenderer
from wikitelnet.search import SearchClient
from wikitelnet.session import SessionEngine
from wikitelnet.siteinfo import SiteinfoCache
from wikitelnet.state import AppState
from wikitelnet.welcome import WelcomeCache


class FakeWiki:
    """Answers Action API requests for a few wikis from in-memory pages.

    Prefix search folds case and accents like CirrusSearch does, and
    returns pages keyed by page ID, deliberately not in rank order.
    """

    def __init__(self) -> None:
        self.pages: dict[str, dict[str, str]] = {
            "en.wikipedia.org": {
                "Paris": "Paris is the capital and largest city of France.",
                "Paris Hilton": "Paris Hilton is an American media personality.",
                "User:cscott/Telnet": "Welcome to Wikipedia over telnet!\nType a title.",
            },
            "es.wikipedia.org": {
                "París": "París es la capital de Francia.",
                "París (desambiguación)": "París puede referirse a varias cosas.",
            },
        }
        self.requests: Counter[tuple[str, str]] = Counter()
        self.down = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if self.down:
            return httpx.Response(503)

        domain = request.url.host
        params = request.url.params
        pages = self.pages.get(domain, {})

        if params.get("meta") == "siteinfo":
            self.requests[(domain, "siteinfo")] += 1
            lang = domain.split(".")[0]
            general = {"sitename": "Wikipedia", "lang": lang, "case": "first-letter"}
            return httpx.Response(200, json={"query": {"general": general}})

        if params.get("prop") == "extracts":
            title = params["titles"]
            self.requests[(domain, "extract")] += 1
            if title not in pages:
                return httpx.Response(
                    200, json={"query": {"pages": [{"ns": 0, "title": title, "missing": True}]}}
                )
            page = {"pageid": 1, "ns": 0, "title": title, "extract": pages[title]}
            return httpx.Response(200, json={"query": {"pages": [page]}})

        if params.get("generator") == "prefixsearch":
            self.requests[(domain, "search")] += 1
            term = normalize_title(params["gpssearch"])
            matches = [title for title in pages if normalize_title(title).startswith(term)]
            if not matches:
                return httpx.Response(200, json={"batchcomplete": ""})
            ranked = sorted(matches, key=len)
            result = {
                str(1000 - rank): {"pageid": 1000 - rank, "ns": 0, "title": title, "index": rank}
                for rank, title in reversed(list(enumerate(ranked, start=1)))
            }
            return httpx.Response(200, json={"query": {"pages": result}})

        return httpx.Response(400, json={"error": {"code": "badparams", "info": "Unknown"}})


@pytest.fixture()
def fake_wiki() -> FakeWiki:
    return FakeWiki()


@pytest.fixture()
async def wired_state(fake_wiki: FakeWiki) -> AsyncIterator[AppState]:
    """AppState with real components; the welcome text is not refreshed yet."""
    settings = Settings()
    with respx.mock(assert_all_called=False) as router:
        router.route(path="/w/api.php").mock(side_effect=fake_wiki)
        async with httpx.AsyncClient() as client:
            siteinfo = SiteinfoCache(client)
            renderer = MediaWikiRenderer(client, wrap_width=settings.render.wrap_width)
            welcome = WelcomeCache(
                renderer,
                siteinfo,
                domain=settings.welcome.domain,
                title=settings.welcome.title,
            )
            yield AppState(
                settings=settings,
                renderer=renderer,
                search=SearchClient(client),
                siteinfo=siteinfo,
                welcome=welcome,
                http_client=client,
            )


@pytest.fixture()
def wired_engine(wired_state: AppState) -> SessionEngine:
    return SessionEngine(wired_state)
