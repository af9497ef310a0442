from __future__ import annotations

from wikitelnet.models.wiki import SearchHit, Siteinfo, WikiDescriptor

__all__ = [
    "SearchHit",
    "Siteinfo",
    "WikiDescriptor",
]
