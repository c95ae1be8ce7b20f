"""Interactive element picker."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from . import scripts
from .evaluation import call_function

if TYPE_CHECKING:
    from ..browser.session import TabContext

logger = logging.getLogger(__name__)


def inject_picker(ctx: TabContext, use_xpath: bool = False) -> bool:
    """Inject the hover-and-click overlay into the page.

    The chosen selector is stored in the page and read back with
    ``get_picked_selector``.

    Returns:
        False if a picker was already active in the page.
    """
    injected = call_function(ctx, scripts.picker_script(), use_xpath)
    if not injected:
        logger.info("Picker already active")
    return bool(injected)


def get_picked_selector(ctx: TabContext) -> Optional[str]:
    """Selector picked by the user, or None if nothing was picked yet."""
    result = call_function(ctx, scripts.PICKED_SELECTOR)
    if isinstance(result, str):
        return result
    return None
