"""Background scheduler coroutines."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from wikitelnet.welcome import WelcomeCache

log = structlog.get_logger()


async def run_welcome_refresh_scheduler(welcome: WelcomeCache) -> None:
    """Refresh the welcome text at startup, then on a fixed interval.

    The interval is wall-clock and independent of session activity.
    ``WelcomeCache.refresh`` never raises, but a bug there must not kill
    the loop and freeze the greeting forever.
    """
    while True:
        try:
            await welcome.refresh()
        except Exception:
            log.warning("welcome_refresh_scheduler_error", exc_info=True)
        await asyncio.sleep(welcome.refresh_hours * 3600)
