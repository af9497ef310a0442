from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class WikiDescriptor(BaseModel):
    """A wiki the renderer may talk to, identified by its script path."""

    baseurl: str  # e.g. "https://en.wikipedia.org/w/"

    @classmethod
    def for_domain(cls, domain: str) -> WikiDescriptor:
        return cls(baseurl=f"https://{domain}/w/")

    @property
    def api_url(self) -> str:
        return f"{self.baseurl}api.php"


class Siteinfo(BaseModel):
    """The subset of ``meta=siteinfo&siprop=general`` the renderer uses."""

    sitename: str
    lang: str = "en"
    case: Literal["first-letter", "case-sensitive"] = "first-letter"


class SearchHit(BaseModel):
    """Single prefix-search result."""

    pageid: int
    title: str
    index: int = Field(ge=1)  # 1-based relevance rank, lower is better
