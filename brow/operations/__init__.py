"""Single-shot browser operations run through a tab's execution context."""
from .capture import capture_screenshot, generate_pdf
from .cookies import clear_cookies, get_cookies, set_cookie
from .evaluation import call_function, evaluate
from .models import Cookie, NavigationResult, PDFOptions, ScreenshotOptions, StorageType
from .navigation import navigate
from .picker import get_picked_selector, inject_picker
from .storage import (
    clear_storage,
    get_all_storage,
    get_storage_item,
    remove_storage_item,
    set_storage_item,
)

__all__ = [
    "Cookie",
    "NavigationResult",
    "PDFOptions",
    "ScreenshotOptions",
    "StorageType",
    "call_function",
    "capture_screenshot",
    "clear_cookies",
    "clear_storage",
    "evaluate",
    "generate_pdf",
    "get_all_storage",
    "get_cookies",
    "get_picked_selector",
    "get_storage_item",
    "inject_picker",
    "navigate",
    "remove_storage_item",
    "set_cookie",
    "set_storage_item",
]
