"""Unit tests for wikitelnet.normalizer."""

from __future__ import annotations

import pytest

from wikitelnet.normalizer import normalize_title


class TestNormalizeTitle:
    def test_lowercase(self) -> None:
        assert normalize_title("Madrid") == "madrid"

    def test_trim(self) -> None:
        assert normalize_title("  Madrid\t\n") == "madrid"

    def test_accents_folded(self) -> None:
        assert normalize_title("París") == "paris"

    def test_tilde_and_cedilla(self) -> None:
        assert normalize_title("Ñandú Façade") == "nandu-facade"

    def test_repeated_accents_all_folded(self) -> None:
        assert normalize_title("Éléphant") == "elephant"

    def test_whitespace_becomes_single_hyphen(self) -> None:
        assert normalize_title("New   York\tCity") == "new-york-city"

    def test_punctuation_becomes_hyphen(self) -> None:
        assert normalize_title("AC/DC") == "ac-dc"
        assert normalize_title("Star_Wars: Episode") == "star-wars-episode"

    def test_hyphen_runs_collapse(self) -> None:
        assert normalize_title("a -- b") == "a-b"

    def test_unmapped_characters_pass_through(self) -> None:
        """Nordic letters are outside the table: a known approximation."""
        assert normalize_title("Ørsted") == "ørsted"

    def test_empty(self) -> None:
        assert normalize_title("   ") == ""

    def test_case_variants_compare_equal(self) -> None:
        assert normalize_title("madrid") == normalize_title("MADRID") == normalize_title("Madrid")


@pytest.mark.parametrize(
    "raw",
    [
        "Madrid",
        "  París  ",
        "Éléphant d'Afrique",
        "AC/DC; live, at: the_club",
        "a - - b",
        "Ørsted",
        "",
        "東京",
    ],
)
def test_normalize_is_idempotent(raw: str) -> None:
    once = normalize_title(raw)
    assert normalize_title(once) == once
