"""Unit tests for wikitelnet.completion."""

from __future__ import annotations

from typing import TYPE_CHECKING

from wikitelnet.completion import STATIC_COMMANDS, complete
from wikitelnet.errors import ErrorCode, WikiTelnetError
from wikitelnet.models import SearchHit

if TYPE_CHECKING:
    from conftest import FakeSearch


class TestStaticCommands:
    def test_quit_first(self) -> None:
        assert STATIC_COMMANDS[0] == ":quit"

    def test_one_use_command_per_well_known_wiki(self) -> None:
        use_commands = [c for c in STATIC_COMMANDS if c.startswith(":use ")]
        assert len(use_commands) == 10
        assert ":use en.wikipedia.org" in use_commands
        assert ":use pl.wikipedia.org" in use_commands


class TestComplete:
    async def test_empty_input_returns_all_commands_without_search(
        self, search: FakeSearch
    ) -> None:
        assert await complete("en.wikipedia.org", "", search) == list(STATIC_COMMANDS)
        assert search.calls == []

    async def test_static_prefix_filter(self, search: FakeSearch) -> None:
        result = await complete("en.wikipedia.org", ":use e", search)
        assert result == [":use en.wikipedia.org", ":use es.wikipedia.org"]

    async def test_static_filter_is_case_sensitive(self, search: FakeSearch) -> None:
        search.results[":QUIT"] = []
        result = await complete("en.wikipedia.org", ":QUIT", search)
        # No match at all falls back to the full command list.
        assert result == list(STATIC_COMMANDS)

    async def test_live_results_follow_static_matches_in_rank_order(
        self, search: FakeSearch
    ) -> None:
        search.results[":"] = [
            SearchHit(pageid=7, title=":Second", index=2),
            SearchHit(pageid=3, title=":First", index=1),
        ]
        result = await complete("en.wikipedia.org", ":", search)
        assert result == [*STATIC_COMMANDS, ":First", ":Second"]

    async def test_search_uses_domain_and_limit(self, search: FakeSearch) -> None:
        await complete("de.wikipedia.org", "Ber", search, limit=4)
        assert search.calls == [("de.wikipedia.org", "Ber", 4)]

    async def test_titles_only(self, search: FakeSearch) -> None:
        search.results["Par"] = [
            SearchHit(pageid=1, title="Paris", index=1),
            SearchHit(pageid=2, title="Paraguay", index=2),
        ]
        assert await complete("en.wikipedia.org", "Par", search) == ["Paris", "Paraguay"]

    async def test_search_failure_degrades_to_static(self, search: FakeSearch) -> None:
        search.results[":q"] = WikiTelnetError(code=ErrorCode.SEARCH_FAILED, message="down")
        assert await complete("en.wikipedia.org", ":q", search) == [":quit"]

    async def test_never_empty(self, search: FakeSearch) -> None:
        search.results["zzzz"] = WikiTelnetError(code=ErrorCode.SEARCH_FAILED, message="down")
        assert await complete("en.wikipedia.org", "zzzz", search) == list(STATIC_COMMANDS)

    async def test_never_empty_with_no_search_results(self, search: FakeSearch) -> None:
        assert await complete("en.wikipedia.org", "qwxz", search) == list(STATIC_COMMANDS)
