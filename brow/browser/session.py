"""Tab session lifecycle: attach, detach and the explicit remote close.

Detaching (``TabSession.release``) only frees what this process holds:
the CDP session and the local context. Closing the tab in the browser
is a separate call, ``close_remote``, used by ``Browser.close_tab`` only.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, TypeVar

from playwright.sync_api import CDPSession, Error as PlaywrightError
from playwright.sync_api import Page as PlaywrightPage

from ..core.errors import AttachFailed, CloseRemoteFailed, SessionReleased
from .connection import RemoteAllocator, detach_quietly
from .driver import DriverThread

logger = logging.getLogger(__name__)

NEW_TAB = "<new tab>"

T = TypeVar("T")


@dataclass
class ReleaseStep:
    name: str
    action: Callable[[], None]


class ReleaseStack:
    """Ordered release steps, run in reverse order of acquisition.

    ``release()`` runs at most once. A failing step is logged and the
    remaining steps still run.
    """

    def __init__(self) -> None:
        self._steps: list[ReleaseStep] = []
        self._released = False
        self._lock = threading.Lock()

    def push(self, name: str, action: Callable[[], None]) -> None:
        with self._lock:
            if self._released:
                raise RuntimeError(f"cannot add release step {name!r} after release")
            self._steps.append(ReleaseStep(name, action))

    @property
    def steps(self) -> list[str]:
        """Step names in acquisition order."""
        with self._lock:
            return [step.name for step in self._steps]

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        with self._lock:
            if self._released:
                return
            self._released = True
            steps = list(reversed(self._steps))

        for step in steps:
            try:
                step.action()
            except Exception as e:
                logger.warning(f"Release step {step.name!r} failed: {e}")


class TabContext:
    """Execution context scoped to one target.

    Every operation in ``brow.operations`` takes one of these. The
    timeout is a per-operation deadline: when it elapses only the
    running operation fails and the context stays usable.

    Calls that touch the page or the CDP session go through ``run``,
    which hands them to the driver thread. Without a driver they run on
    the calling thread.
    """

    def __init__(
        self,
        target_id: str,
        page: PlaywrightPage,
        cdp: CDPSession,
        timeout: float = 0,
        driver: Optional[DriverThread] = None,
    ) -> None:
        self.target_id = target_id
        self._page = page
        self._cdp = cdp
        self.timeout = timeout
        self._driver = driver
        self._valid = True

    @property
    def page(self) -> PlaywrightPage:
        self._ensure_valid()
        return self._page

    @property
    def cdp(self) -> CDPSession:
        self._ensure_valid()
        return self._cdp

    @property
    def timeout_ms(self) -> float:
        """Deadline in milliseconds; 0 means none."""
        return self.timeout * 1000

    @property
    def valid(self) -> bool:
        return self._valid

    def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Call ``fn`` on the thread that owns the Playwright driver."""
        if self._driver is None:
            return fn(*args, **kwargs)
        return self._driver.run(fn, *args, **kwargs)

    def send(self, method: str, params: Optional[dict] = None) -> dict:
        """Issue one CDP command against this target."""
        return self.run(self.cdp.send, method, params or {})

    def invalidate(self) -> None:
        self._valid = False

    def _ensure_valid(self) -> None:
        if not self._valid:
            raise SessionReleased(self.target_id)


@dataclass
class TabSession:
    """One attached tab, owned by the registry."""
    target_id: str
    context: TabContext
    releases: ReleaseStack = field(default_factory=ReleaseStack)
    title: str = ""
    url: str = ""

    def release(self) -> None:
        """Detach from the tab. The tab stays open in the browser."""
        logger.debug(f"Releasing session for target {self.target_id}")
        self.releases.release()

    def remember(self, title: str, url: str) -> None:
        self.title = title
        self.url = url


def _build_session(
    allocator: RemoteAllocator,
    target_id: str,
    page: PlaywrightPage,
    cdp: CDPSession,
    timeout: float,
    title: str = "",
    url: str = "",
) -> TabSession:
    context = TabContext(target_id, page, cdp, timeout=timeout, driver=allocator.driver)
    releases = ReleaseStack()
    releases.push("detach-cdp", lambda: context.run(cdp.detach))
    releases.push("invalidate-context", context.invalidate)
    return TabSession(target_id, context, releases, title=title, url=url)


def attach(
    allocator: RemoteAllocator,
    target_id: str,
    timeout: float = 0,
    title: str = "",
    url: str = "",
) -> TabSession:
    """Attach to an existing tab without creating or closing anything.

    Raises:
        AttachFailed: If the target no longer exists or refuses attachment.
    """
    page = allocator.find_page(target_id)
    if page is None:
        raise AttachFailed(target_id, "target no longer exists")
    try:
        cdp = allocator.open_session(page)
    except PlaywrightError as e:
        raise AttachFailed(target_id, str(e)) from e

    logger.debug(f"Attached to target {target_id}")
    return _build_session(allocator, target_id, page, cdp, timeout, title=title, url=url)


def attach_new(allocator: RemoteAllocator, timeout: float = 0) -> TabSession:
    """Open a fresh tab and attach to it.

    Raises:
        AttachFailed: If the tab cannot be created or inspected. A CDP
            session opened before the failure is detached again.
    """
    cdp: Optional[CDPSession] = None
    try:
        page = allocator.open_page()
        cdp = allocator.open_session(page)
        info = allocator.run(cdp.send, "Target.getTargetInfo")
    except PlaywrightError as e:
        if cdp is not None:
            allocator.run(detach_quietly, cdp)
        raise AttachFailed(NEW_TAB, str(e)) from e

    target_id = info["targetInfo"]["targetId"]
    logger.info(f"Opened new tab {target_id}")
    return _build_session(allocator, target_id, page, cdp, timeout, url=page.url)


def close_remote(session: TabSession) -> None:
    """Close the tab in the browser, then release the local session.

    Raises:
        CloseRemoteFailed: If the browser rejects the close command. The
            session is left attached in that case.
    """
    context = session.context
    try:
        context.run(context.page.close)
    except PlaywrightError as e:
        raise CloseRemoteFailed(session.target_id, str(e)) from e

    logger.info(f"Closed tab {session.target_id}")
    session.release()
