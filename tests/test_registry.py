from __future__ import annotations

import threading
import time

import pytest

from brow.browser.connection import TargetInfo, TargetKind
from brow.browser.registry import Browser, RWLock
from brow.core.config import Config
from brow.core.errors import (
    AttachFailed,
    BrowError,
    BrowserClosed,
    ConfigInvalid,
    IndexOutOfRange,
    NoPageTargets,
    NoTargetsAvailable,
    OperationFailed,
)
from conftest import FakeAllocator, page_target


def service_worker(target_id: str) -> TargetInfo:
    return TargetInfo(target_id, TargetKind.SERVICE_WORKER, "", "https://a.test/sw.js")


@pytest.fixture
def browser(three_tabs: FakeAllocator, patch_allocator) -> Browser:
    patch_allocator(three_tabs)
    return Browser.connect(Config(port=9222, timeout=10))


class TestConnect:
    def test_only_page_targets_become_tabs(self, make_allocator, patch_allocator) -> None:
        allocator = make_allocator(
            page_target("P1", "https://one.test/", "One"),
            service_worker("SW"),
            page_target("P2", "https://two.test/", "Two"),
        )
        patch_allocator(allocator)

        browser = Browser.connect(Config())

        assert browser.tab_count() == 2
        assert [t.target_id for t in browser.tabs()] == ["P1", "P2"]
        assert [t.title for t in browser.tabs()] == ["One", "Two"]

    def test_zero_targets(self, make_allocator, patch_allocator) -> None:
        allocator = make_allocator()
        patch_allocator(allocator)

        with pytest.raises(NoTargetsAvailable):
            Browser.connect(Config())

        assert allocator.disconnect_calls == 1

    def test_no_page_targets(self, make_allocator, patch_allocator) -> None:
        allocator = make_allocator(service_worker("SW"))
        patch_allocator(allocator)

        with pytest.raises(NoPageTargets):
            Browser.connect(Config())

        assert allocator.disconnect_calls == 1

    def test_attach_failure_rolls_back(self, three_tabs: FakeAllocator, patch_allocator) -> None:
        three_tabs.vanished.add("C")
        patch_allocator(three_tabs)

        with pytest.raises(AttachFailed) as exc_info:
            Browser.connect(Config())

        assert exc_info.value.target_id == "C"
        assert three_tabs.disconnect_calls == 1
        assert all(s.detached for s in three_tabs.sessions)
        assert three_tabs.closed_pages == []

    def test_invalid_config_never_connects(self, patch_allocator, three_tabs: FakeAllocator) -> None:
        mock_cls = patch_allocator(three_tabs)

        with pytest.raises(ConfigInvalid):
            Browser.connect(Config(port=70000))

        mock_cls.connect.assert_not_called()

    def test_timeout_reaches_every_session(self, browser: Browser) -> None:
        assert browser.page().context.timeout == 10
        assert browser.tab(2).context.timeout_ms == 10000


class TestAccess:
    def test_tab_matches_listing(self, browser: Browser) -> None:
        infos = browser.tabs()
        for info in infos:
            assert browser.tab(info.index).target_id == info.target_id

    def test_page_is_first_tab(self, browser: Browser) -> None:
        assert browser.page().target_id == "A"

    @pytest.mark.parametrize("index", [-1, 3])
    def test_out_of_range(self, browser: Browser, index: int) -> None:
        with pytest.raises(IndexOutOfRange) as exc_info:
            browser.tab(index)

        assert exc_info.value.index == index
        assert exc_info.value.count == 3

    def test_tabs_returns_a_copy(self, browser: Browser) -> None:
        infos = browser.tabs()
        infos.clear()
        assert browser.tab_count() == 3


class TestCloseTab:
    def test_later_tabs_shift_down(self, browser: Browser, three_tabs: FakeAllocator) -> None:
        browser.close_tab(0)

        assert browser.tab_count() == 2
        assert browser.tab(0).target_id == "B"
        assert browser.tab(1).target_id == "C"
        assert three_tabs.closed_pages == ["A"]

    def test_close_middle_tab(self, browser: Browser, three_tabs: FakeAllocator) -> None:
        browser.close_tab(1)

        assert [t.target_id for t in browser.tabs()] == ["A", "C"]
        assert [t.index for t in browser.tabs()] == [0, 1]

    def test_out_of_range_closes_nothing(self, browser: Browser, three_tabs: FakeAllocator) -> None:
        with pytest.raises(IndexOutOfRange):
            browser.close_tab(3)

        assert browser.tab_count() == 3
        assert three_tabs.closed_pages == []


class TestNewTab:
    def test_new_tab_with_url(self, browser: Browser) -> None:
        tab = browser.new_tab("http://example.test")

        assert browser.tab_count() == 4
        assert tab.url == "http://example.test"
        assert tab.title == "Title of http://example.test"
        assert browser.tabs()[-1].url == "http://example.test"
        assert browser.tab(3).target_id == tab.target_id

    def test_blank_new_tab_is_navigable(self, browser: Browser, three_tabs: FakeAllocator) -> None:
        tab = browser.new_tab("")

        assert browser.tab_count() == 4
        assert three_tabs.pages[tab.target_id].visited == ["about:blank"]

        result = tab.navigate("https://later.test/")
        assert result.url == "https://later.test/"
        assert browser.tabs()[3].url == "https://later.test/"

    def test_failed_navigation_leaves_no_entry(self, browser: Browser, three_tabs: FakeAllocator) -> None:
        three_tabs.fail_new_page_navigation = True

        with pytest.raises(OperationFailed):
            browser.new_tab("http://unreachable.test")

        assert browser.tab_count() == 3
        assert three_tabs.sessions[-1].detached
        assert three_tabs.closed_pages == []

    def test_tab_creation_failure_is_a_brow_error(self, browser: Browser, three_tabs: FakeAllocator) -> None:
        three_tabs.fail_open_page = True

        with pytest.raises(BrowError):
            browser.new_tab("http://x.test")

        assert browser.tab_count() == 3

    def test_uninspectable_new_tab_is_detached(self, browser: Browser, three_tabs: FakeAllocator) -> None:
        three_tabs.fail_new_page_target_info = True

        with pytest.raises(AttachFailed):
            browser.new_tab("http://x.test")

        assert browser.tab_count() == 3
        assert three_tabs.sessions[-1].detached

    def test_concurrent_new_tabs(self, browser: Browser) -> None:
        num_threads = 8
        counts: list[int] = []
        threads: list[threading.Thread] = []

        def open_tab() -> None:
            browser.new_tab("")
            counts.append(browser.tab_count())

        for _ in range(num_threads):
            threads.append(threading.Thread(target=open_tab))
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert browser.tab_count() == 3 + num_threads
        assert len({info.target_id for info in browser.tabs()}) == 3 + num_threads
        assert all(3 < c <= 3 + num_threads for c in counts)

    def test_tabs_driven_from_worker_threads(self, browser: Browser, three_tabs: FakeAllocator) -> None:
        errors: list[BaseException] = []

        def drive(index: int) -> None:
            try:
                tab = browser.tab(index)
                tab.navigate(f"https://worker{index}.test/")
                browser.new_tab(f"https://extra{index}.test/")
            except BaseException as e:
                errors.append(e)

        threads = [threading.Thread(target=drive, args=(i,)) for i in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert errors == []
        assert [three_tabs.pages[tid].url for tid in ("A", "B", "C")] == [
            "https://worker0.test/",
            "https://worker1.test/",
            "https://worker2.test/",
        ]
        assert browser.tab_count() == 6


class TestClose:
    def test_close_disconnects_once_and_keeps_tabs(
        self, browser: Browser, three_tabs: FakeAllocator
    ) -> None:
        browser.close()
        browser.close()

        assert three_tabs.disconnect_calls == 1
        assert three_tabs.closed_pages == []
        assert not any(s.detached for s in three_tabs.sessions)

    def test_tabs_survive_for_next_connection(
        self, browser: Browser, three_tabs: FakeAllocator
    ) -> None:
        browser.close()

        again = Browser.connect(Config())

        assert [t.target_id for t in again.tabs()] == ["A", "B", "C"]

    def test_mutations_after_close(self, browser: Browser) -> None:
        browser.close()

        with pytest.raises(BrowserClosed):
            browser.new_tab("")
        with pytest.raises(BrowserClosed):
            browser.close_tab(0)
        with pytest.raises(BrowserClosed):
            browser.tab(0)

    def test_close_waits_for_tab_being_added(self, browser: Browser, three_tabs: FakeAllocator) -> None:
        three_tabs.open_page_gate = threading.Event()
        opener = threading.Thread(target=browser.new_tab, args=("",))
        closer = threading.Thread(target=browser.close)

        opener.start()
        assert three_tabs.open_page_entered.wait(timeout=2)
        closer.start()
        time.sleep(0.05)

        assert three_tabs.disconnect_calls == 0

        three_tabs.open_page_gate.set()
        opener.join(timeout=5)
        closer.join(timeout=5)

        assert three_tabs.disconnect_calls == 1
        assert browser.tab_count() == 4
        assert browser.closed

    def test_context_manager(self, three_tabs: FakeAllocator, patch_allocator) -> None:
        patch_allocator(three_tabs)

        with Browser.connect(Config()) as browser:
            assert browser.tab_count() == 3

        assert browser.closed
        assert three_tabs.disconnect_calls == 1
        assert three_tabs.closed_pages == []


class TestRWLock:
    def test_writer_waits_for_reader(self) -> None:
        lock = RWLock()
        acquired = threading.Event()

        def write() -> None:
            with lock.write():
                acquired.set()

        with lock.read():
            writer = threading.Thread(target=write)
            writer.start()
            time.sleep(0.05)
            assert not acquired.is_set()

        writer.join(timeout=2)
        assert acquired.is_set()

    def test_readers_share(self) -> None:
        lock = RWLock()
        inside = threading.Barrier(2, timeout=2)

        def read() -> None:
            with lock.read():
                inside.wait()

        threads = [threading.Thread(target=read) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=3)

        assert not inside.broken
