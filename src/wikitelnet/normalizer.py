"""Title normalisation for case- and accent-insensitive comparison.

This is not full Unicode normalisation. Only the handful of Latin
characters in ``_FROM`` are folded; anything else (other scripts, ligatures,
Nordic letters) passes through lowercased but otherwise untouched.
"""

from __future__ import annotations

import re

_FROM = "àáäâèéëêìíïîòóöôùúüûñç·/_,:;"
_TO = "aaaaeeeeiiiioooouuuunc------"
_FOLD = str.maketrans(_FROM, _TO)

_WHITESPACE_RE = re.compile(r"\s+")
_DASHES_RE = re.compile(r"-+")


def normalize_title(raw: str) -> str:
    """Normalise a title or search string.

    Steps (order matters):
      1. Trim whitespace
      2. Lowercase
      3. Fold accents and punctuation:  "Ñandú" → "nandu", "A/B" → "a-b"
      4. Whitespace runs → "-", then hyphen runs → "-"

    Two titles name the same page if their normalised forms are equal.
    """
    title = raw.strip()
    title = title.lower()
    title = title.translate(_FOLD)
    title = _WHITESPACE_RE.sub("-", title)
    title = _DASHES_RE.sub("-", title)
    return title
