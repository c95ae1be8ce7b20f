"""Session registry: the ``Browser`` handle shared by every caller.

Detaching never closes a browser tab. ``Browser.close()`` only drops the
CDP connection; ``Browser.close_tab()`` is the one path that closes a tab.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from ..core.config import Config, validate_config
from ..core.errors import (
    BrowserClosed,
    IndexOutOfRange,
    NoPageTargets,
    NoTargetsAvailable,
)
from .connection import RemoteAllocator, TargetKind
from .page import Tab
from .session import TabSession, attach, attach_new, close_remote

logger = logging.getLogger(__name__)

BLANK_URL = "about:blank"


class RWLock:
    """Readers/writer lock. Writers wait for active readers to drain and
    block new readers while waiting."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass(frozen=True)
class TabInfo:
    """Snapshot of one registry entry."""
    index: int
    target_id: str
    title: str
    url: str


class Browser:
    """Connection to a running Chrome plus every attached tab."""

    def __init__(self, config: Config, allocator: RemoteAllocator, sessions: list[TabSession]) -> None:
        self._config = config
        self._allocator = allocator
        self._sessions = list(sessions)
        self._lock = RWLock()
        self._closed = False

    @classmethod
    def connect(cls, config: Optional[Config] = None) -> "Browser":
        """Connect to Chrome and attach to every open page tab.

        Args:
            config: Connection settings; ``Config.default()`` when omitted.

        Raises:
            ConfigInvalid: Port or timeout out of range.
            ConnectionFailed: Endpoint unreachable.
            DiscoveryFailed: Target query failed.
            NoTargetsAvailable: Chrome reported no targets at all.
            NoPageTargets: None of the targets is a page.
            AttachFailed: A tab vanished while attaching.
        """
        if config is None:
            config = Config.default()
        validate_config(config)

        allocator = RemoteAllocator.connect(config)
        try:
            targets = allocator.discover()
            if not targets:
                raise NoTargetsAvailable()
            pages = [t for t in targets if t.kind is TargetKind.PAGE]
            if not pages:
                raise NoPageTargets()
        except Exception:
            allocator.disconnect()
            raise

        sessions: list[TabSession] = []
        try:
            for target in pages:
                sessions.append(
                    attach(
                        allocator,
                        target.target_id,
                        config.timeout,
                        title=target.title,
                        url=target.url,
                    )
                )
        except Exception:
            for session in reversed(sessions):
                session.release()
            allocator.disconnect()
            raise

        logger.info(f"Attached to {len(sessions)} tabs ({len(targets)} targets discovered)")
        return cls(config, allocator, sessions)

    @property
    def config(self) -> Config:
        return self._config

    @property
    def closed(self) -> bool:
        return self._closed

    def tab_count(self) -> int:
        with self._lock.read():
            return len(self._sessions)

    def tabs(self) -> list[TabInfo]:
        """Snapshot of every tab in registry order."""
        with self._lock.read():
            return [
                TabInfo(index=i, target_id=s.target_id, title=s.title, url=s.url)
                for i, s in enumerate(self._sessions)
            ]

    def page(self) -> Tab:
        """The first tab."""
        return self.tab(0)

    def tab(self, index: int) -> Tab:
        """The tab at ``index``.

        Raises:
            IndexOutOfRange: If ``index`` is negative or past the end.
        """
        with self._lock.read():
            self._ensure_open()
            return Tab(self._session_at(index))

    def new_tab(self, url: str = "") -> Tab:
        """Open a tab, navigate it and add it to the end of the registry.

        With an empty ``url`` the tab is navigated to about:blank. If the
        navigation fails the session is removed and released (the blank
        tab Chrome created is not closed) and the error propagates.
        """
        with self._lock.write():
            self._ensure_open()
            session = attach_new(self._allocator, self._config.timeout)
            self._sessions.append(session)

        tab = Tab(session)
        try:
            tab.navigate(url or BLANK_URL, wait_ready=bool(url))
        except Exception:
            with self._lock.write():
                self._sessions = [s for s in self._sessions if s is not session]
            session.release()
            logger.warning(f"Navigation of new tab {session.target_id} failed; detached from it")
            raise
        return tab

    def close_tab(self, index: int) -> None:
        """Close the tab at ``index`` in Chrome and drop it from the registry.

        Later tabs shift down by one.
        """
        with self._lock.write():
            self._ensure_open()
            session = self._session_at(index)
            page = session.context.page
            close_remote(session)
            self._allocator.forget(page)
            del self._sessions[index]

    def close(self) -> None:
        """Disconnect from Chrome. Every tab stays open. Idempotent."""
        with self._lock.write():
            if self._closed:
                return
            self._closed = True
        self._allocator.disconnect()

    def _session_at(self, index: int) -> TabSession:
        count = len(self._sessions)
        if index < 0 or index >= count:
            raise IndexOutOfRange(index, count)
        return self._sessions[index]

    def _ensure_open(self) -> None:
        if self._closed:
            raise BrowserClosed()

    def __enter__(self) -> "Browser":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Browser(endpoint={self._config.endpoint_url!r}, tabs={self.tab_count()})"
