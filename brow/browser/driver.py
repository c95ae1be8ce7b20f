"""Single thread that owns the Playwright driver.

Playwright's sync objects only work on the thread that started the
driver. Every call that touches them goes through ``DriverThread.run``,
so the registry and tab handles can be used from any thread.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, TypeVar

from ..core.errors import BrowserClosed

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DriverThread:
    """Runs submitted calls one at a time on one dedicated thread."""

    def __init__(self, name: str = "brow-driver") -> None:
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)
        self._stopped = False
        self._lock = threading.Lock()
        self._thread_id: int = self._executor.submit(threading.get_ident).result()

    @property
    def thread_id(self) -> int:
        return self._thread_id

    @property
    def stopped(self) -> bool:
        return self._stopped

    def owns_current_thread(self) -> bool:
        return threading.get_ident() == self._thread_id

    def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Call ``fn`` on the driver thread and return its result.

        Calls made from the driver thread itself run inline. Exceptions
        raised by ``fn`` propagate to the caller unchanged.

        Raises:
            BrowserClosed: If the driver has been stopped.
        """
        if self.owns_current_thread():
            return fn(*args, **kwargs)
        with self._lock:
            if self._stopped:
                raise BrowserClosed()
            future = self._executor.submit(fn, *args, **kwargs)
        return future.result()

    def stop(self) -> None:
        """Finish queued calls and end the thread. Safe to call more than once."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
        logger.debug("Stopping driver thread")
        self._executor.shutdown(wait=not self.owns_current_thread())
