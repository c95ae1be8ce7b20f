"""Tab handle: forwards operations to one session's execution context."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from .. import operations
from ..operations import Cookie, NavigationResult, PDFOptions, ScreenshotOptions, StorageType

if TYPE_CHECKING:
    from .session import TabContext, TabSession

logger = logging.getLogger(__name__)


class Tab:
    """Handle to one attached tab.

    Obtained from ``Browser``; operations run without holding the
    registry lock, so a slow tab never blocks the others.
    """

    def __init__(self, session: TabSession) -> None:
        self._session = session

    @property
    def target_id(self) -> str:
        return self._session.target_id

    @property
    def title(self) -> str:
        """Title as of the last discovery or navigation."""
        return self._session.title

    @property
    def url(self) -> str:
        """URL as of the last discovery or navigation."""
        return self._session.url

    @property
    def context(self) -> TabContext:
        """Execution context for calling ``brow.operations`` directly."""
        return self._session.context

    def navigate(self, url: str, wait_ready: bool = True) -> NavigationResult:
        result = operations.navigate(self.context, url, wait_ready=wait_ready)
        self._session.remember(result.title, result.url)
        return result

    def eval(self, script: str) -> Any:
        """Evaluate JavaScript in the page and return the result."""
        return operations.evaluate(self.context, script)

    def screenshot(self, options: Optional[ScreenshotOptions] = None) -> bytes:
        return operations.capture_screenshot(self.context, options)

    def pdf(self, options: Optional[PDFOptions] = None) -> bytes:
        return operations.generate_pdf(self.context, options)

    def get_cookies(self, domain: str = "") -> list[Cookie]:
        return operations.get_cookies(self.context, domain)

    def set_cookie(self, cookie: str) -> None:
        operations.set_cookie(self.context, cookie)

    def clear_cookies(self) -> None:
        operations.clear_cookies(self.context)

    def get_all_storage(self, storage_type: StorageType = StorageType.LOCAL) -> dict[str, Any]:
        return operations.get_all_storage(self.context, storage_type)

    def get_storage_item(self, storage_type: StorageType, key: str) -> Optional[str]:
        return operations.get_storage_item(self.context, storage_type, key)

    def set_storage_item(self, storage_type: StorageType, key: str, value: str) -> None:
        operations.set_storage_item(self.context, storage_type, key, value)

    def remove_storage_item(self, storage_type: StorageType, key: str) -> None:
        operations.remove_storage_item(self.context, storage_type, key)

    def clear_storage(self, storage_type: StorageType = StorageType.LOCAL) -> None:
        operations.clear_storage(self.context, storage_type)

    def inject_picker(self, use_xpath: bool = False) -> bool:
        return operations.inject_picker(self.context, use_xpath)

    def get_picked_selector(self) -> Optional[str]:
        return operations.get_picked_selector(self.context)

    def __repr__(self) -> str:
        return f"Tab(target_id={self.target_id!r}, url={self.url!r})"
