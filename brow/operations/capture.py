"""Screenshot and PDF capture."""
from __future__ import annotations

import base64
import logging
from typing import TYPE_CHECKING, Any, Optional

from .base import operation_errors
from .models import DEFAULT_SCREENSHOT_QUALITY, PDFOptions, ScreenshotOptions

if TYPE_CHECKING:
    from ..browser.session import TabContext

logger = logging.getLogger(__name__)


def capture_screenshot(ctx: TabContext, options: Optional[ScreenshotOptions] = None) -> bytes:
    """Capture the viewport, or the whole page with ``full_page``."""
    options = options or ScreenshotOptions()
    quality = options.quality or DEFAULT_SCREENSHOT_QUALITY
    if not 0 < quality <= 100:
        raise ValueError(f"quality must be between 1 and 100, got {quality}")

    kwargs: dict[str, Any] = {"full_page": options.full_page, "timeout": ctx.timeout_ms}
    if options.full_page and quality < DEFAULT_SCREENSHOT_QUALITY:
        kwargs.update(type="jpeg", quality=quality)
    else:
        kwargs["type"] = "png"

    page = ctx.page
    with operation_errors(ctx, "capture screenshot"):
        return ctx.run(page.screenshot, **kwargs)


def generate_pdf(ctx: TabContext, options: Optional[PDFOptions] = None) -> bytes:
    """Print the page to PDF via Page.printToPDF (works on headed Chrome too)."""
    options = options or PDFOptions()
    with operation_errors(ctx, "generate PDF"):
        result = ctx.send(
            "Page.printToPDF",
            {"landscape": options.landscape, "printBackground": options.print_background},
        )
    return base64.b64decode(result["data"])
