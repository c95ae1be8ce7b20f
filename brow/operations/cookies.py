"""Cookie access."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from . import scripts
from .base import operation_errors
from .evaluation import call_function
from .models import Cookie

if TYPE_CHECKING:
    from ..browser.session import TabContext

logger = logging.getLogger(__name__)


def _domain_matches(cookie_domain: str, domain: str) -> bool:
    return cookie_domain.lstrip(".") == domain.lstrip(".")


def get_cookies(ctx: TabContext, domain: str = "") -> list[Cookie]:
    """Cookies visible to the current page, optionally filtered by domain.

    ``example.com`` and ``.example.com`` match each other.
    """
    with operation_errors(ctx, "get cookies"):
        result = ctx.send("Network.getCookies")

    cookies = [Cookie(**c) for c in result.get("cookies", [])]
    if domain:
        cookies = [c for c in cookies if _domain_matches(c.domain, domain)]
    return cookies


def set_cookie(ctx: TabContext, cookie: str) -> None:
    """Set a cookie through ``document.cookie``.

    Args:
        cookie: Cookie string, e.g. ``"name=value; path=/"``.
    """
    call_function(ctx, scripts.SET_COOKIE, cookie)


def clear_cookies(ctx: TabContext) -> None:
    """Clear every browser cookie."""
    with operation_errors(ctx, "clear cookies"):
        ctx.send("Network.clearBrowserCookies")
    logger.info("Cleared browser cookies")
