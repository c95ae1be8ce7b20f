"""Page navigation."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .base import operation_errors
from .models import NavigationResult

if TYPE_CHECKING:
    from ..browser.session import TabContext

logger = logging.getLogger(__name__)


def navigate(ctx: TabContext, url: str, wait_ready: bool = True) -> NavigationResult:
    """Navigate the tab to ``url``.

    Args:
        ctx: Execution context of the tab.
        url: Address to load.
        wait_ready: Wait for the load event and a ``body`` element before
            reading the title. Otherwise return once navigation commits.

    Returns:
        Final URL and page title.
    """
    page = ctx.page
    logger.info(f"Navigating {ctx.target_id} to: {url}")

    def load() -> NavigationResult:
        page.goto(
            url,
            wait_until="load" if wait_ready else "commit",
            timeout=ctx.timeout_ms,
        )
        if wait_ready:
            page.wait_for_selector("body", state="attached", timeout=ctx.timeout_ms)
        return NavigationResult(url=page.url, title=page.title())

    with operation_errors(ctx, "navigate"):
        return ctx.run(load)
