from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    RENDER_FAILED = "RENDER_FAILED"
    PAGE_NOT_FOUND = "PAGE_NOT_FOUND"
    SEARCH_FAILED = "SEARCH_FAILED"
    SITEINFO_FETCH_FAILED = "SITEINFO_FETCH_FAILED"
    WELCOME_FETCH_FAILED = "WELCOME_FETCH_FAILED"
    BIND_PERMISSION_DENIED = "BIND_PERMISSION_DENIED"
    BIND_FAILED = "BIND_FAILED"


class WikiTelnetError(Exception):
    """Raised at the HTTP and socket boundaries for all expected failures.

    Handled by the session engine (render/search failures), the welcome
    cache (fallback text) and the server entrypoint (bind failures). Users
    never see ``message`` directly; sessions print a plain-text notice.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable

