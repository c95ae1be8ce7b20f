from __future__ import annotations

import threading
from typing import Any, Callable, Optional, TypeVar
from unittest.mock import patch

import pytest
from playwright.sync_api import Error as PlaywrightError

from brow.browser.connection import TargetInfo, TargetKind
from brow.browser.driver import DriverThread

T = TypeVar("T")


class WrongThread(RuntimeError):
    """Raised by the fakes when touched off the driver thread, like greenlet.error."""


class ThreadBound:
    """Remembers the thread that owns it and refuses calls from any other."""

    def __init__(self, owner: int) -> None:
        self.owner = owner

    def _check_thread(self) -> None:
        if threading.get_ident() != self.owner:
            raise WrongThread("cannot switch to a different thread")


class FakeCDPSession(ThreadBound):
    """CDP session scoped to one fake target."""

    def __init__(self, target_id: str, owner: int) -> None:
        super().__init__(owner)
        self.target_id = target_id
        self.detached = False
        self.sent: list[tuple[str, Optional[dict]]] = []
        self.responses: dict[str, dict] = {}
        self.failing: set[str] = set()

    def send(self, method: str, params: Optional[dict] = None) -> dict:
        self._check_thread()
        self.sent.append((method, params))
        if method in self.failing:
            raise PlaywrightError(f"{method} failed")
        if method == "Target.getTargetInfo":
            return {"targetInfo": {"targetId": self.target_id, "type": "page"}}
        return self.responses.get(method, {})

    def detach(self) -> None:
        self._check_thread()
        if self.detached:
            raise PlaywrightError("Target page, context or browser has been closed")
        self.detached = True


class FakePage(ThreadBound):
    """Just enough of a Playwright page for navigation and close."""

    def __init__(self, target_id: str, owner: int, url: str = "about:blank", title: str = "") -> None:
        super().__init__(owner)
        self.target_id = target_id
        self.url = url
        self._title = title
        self.closed = False
        self.fail_navigation = False
        self.fail_close = False
        self.visited: list[str] = []

    def goto(self, url: str, wait_until: Optional[str] = None, timeout: Optional[float] = None) -> None:
        self._check_thread()
        if self.fail_navigation:
            raise PlaywrightError(f"net::ERR_NAME_NOT_RESOLVED at {url}")
        self.visited.append(url)
        self.url = url
        self._title = "" if url == "about:blank" else f"Title of {url}"

    def wait_for_selector(self, selector: str, state: Optional[str] = None, timeout: Optional[float] = None) -> None:
        self._check_thread()

    def title(self) -> str:
        self._check_thread()
        return self._title

    def close(self) -> None:
        self._check_thread()
        if self.fail_close:
            raise PlaywrightError("Target.closeTarget failed")
        self.closed = True


class FakeAllocator:
    """Stands in for RemoteAllocator plus the browser behind it.

    Calls are dispatched to a real DriverThread and the fake pages and
    sessions only accept calls on it. The browser state (pages, targets)
    outlives any one connection, so the same instance can be
    "reconnected" to check tabs survive.
    """

    def __init__(self, targets: list[TargetInfo]) -> None:
        self.driver = DriverThread()
        owner = self.driver.thread_id
        self.targets = list(targets)
        self.pages: dict[str, FakePage] = {
            t.target_id: FakePage(t.target_id, owner, url=t.url, title=t.title)
            for t in targets
            if t.kind is TargetKind.PAGE
        }
        self.sessions: list[FakeCDPSession] = []
        self.disconnect_calls = 0
        self.vanished: set[str] = set()
        self.fail_new_page_navigation = False
        self.fail_open_page = False
        self.fail_new_page_target_info = False
        self.open_page_entered = threading.Event()
        self.open_page_gate: Optional[threading.Event] = None
        self._counter = 0

    def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        return self.driver.run(fn, *args, **kwargs)

    def discover(self) -> list[TargetInfo]:
        return [t for t in self.targets if not self._is_closed(t.target_id)]

    def find_page(self, target_id: str) -> Optional[FakePage]:
        return self.run(self._find_page, target_id)

    def _find_page(self, target_id: str) -> Optional[FakePage]:
        if target_id in self.vanished:
            return None
        page = self.pages.get(target_id)
        if page is None or page.closed:
            return None
        return page

    def open_session(self, page: FakePage) -> FakeCDPSession:
        return self.run(self._open_session, page)

    def _open_session(self, page: FakePage) -> FakeCDPSession:
        session = FakeCDPSession(page.target_id, self.driver.thread_id)
        if self.fail_new_page_target_info and page.target_id.startswith("NEW-"):
            session.failing.add("Target.getTargetInfo")
        self.sessions.append(session)
        return session

    def open_page(self) -> FakePage:
        return self.run(self._open_page)

    def _open_page(self) -> FakePage:
        self.open_page_entered.set()
        if self.open_page_gate is not None:
            self.open_page_gate.wait(timeout=5)
        if self.fail_open_page:
            raise PlaywrightError("Target.createTarget failed")
        self._counter += 1
        target_id = f"NEW-{self._counter}"
        page = FakePage(target_id, self.driver.thread_id)
        page.fail_navigation = self.fail_new_page_navigation
        self.pages[target_id] = page
        self.targets.append(TargetInfo(target_id, TargetKind.PAGE, "", "about:blank"))
        return page

    def forget(self, page: FakePage) -> None:
        pass

    def disconnect(self) -> None:
        self.disconnect_calls += 1

    @property
    def closed_pages(self) -> list[str]:
        return [tid for tid, page in self.pages.items() if page.closed]

    def _is_closed(self, target_id: str) -> bool:
        page = self.pages.get(target_id)
        return page is not None and page.closed


def page_target(target_id: str, url: str = "", title: str = "") -> TargetInfo:
    return TargetInfo(target_id, TargetKind.PAGE, title=title, url=url)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("BROW_DEBUG_PORT", raising=False)


@pytest.fixture
def make_allocator():
    created: list[FakeAllocator] = []

    def factory(*targets: TargetInfo) -> FakeAllocator:
        allocator = FakeAllocator(list(targets))
        created.append(allocator)
        return allocator

    yield factory
    for allocator in created:
        allocator.driver.stop()


@pytest.fixture
def three_tabs(make_allocator: Callable[..., FakeAllocator]) -> FakeAllocator:
    return make_allocator(
        page_target("A", "https://a.test/", "A"),
        page_target("B", "https://b.test/", "B"),
        page_target("C", "https://c.test/", "C"),
    )


@pytest.fixture
def patch_allocator():
    """Make RemoteAllocator.connect hand out a given fake allocator."""
    with patch("brow.browser.registry.RemoteAllocator") as mock_cls:
        def use(allocator: FakeAllocator):
            mock_cls.connect.return_value = allocator
            return mock_cls
        yield use
