"""Chrome CDP connection management and target discovery."""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

import httpx
from playwright.sync_api import Browser, CDPSession, Error as PlaywrightError
from playwright.sync_api import Page as PlaywrightPage, Playwright, sync_playwright

from ..core.config import Config
from ..core.errors import ConnectionFailed, DiscoveryFailed
from .driver import DriverThread

logger = logging.getLogger(__name__)

PROBE_TIMEOUT_SECONDS: float = 5.0

T = TypeVar("T")


class TargetKind(Enum):
    """Kind of debugging target reported by the browser."""
    PAGE = "page"
    BACKGROUND_PAGE = "background_page"
    SERVICE_WORKER = "service_worker"
    OTHER = "other"

    @classmethod
    def from_protocol(cls, value: str) -> "TargetKind":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class TargetInfo:
    """Read-only snapshot of one debugging target."""
    target_id: str
    kind: TargetKind
    title: str = ""
    url: str = ""

    @classmethod
    def from_protocol(cls, data: dict) -> "TargetInfo":
        return cls(
            target_id=data["targetId"],
            kind=TargetKind.from_protocol(data.get("type", "")),
            title=data.get("title", ""),
            url=data.get("url", ""),
        )


class RemoteAllocator:
    """Owns the CDP connection to an already running Chrome.

    The Playwright driver lives on a ``DriverThread``; public methods
    may be called from any thread. The only action that tears the
    connection down is ``disconnect()``, and it never closes a tab.
    """

    def __init__(
        self,
        config: Config,
        playwright: Playwright,
        browser: Browser,
        driver: DriverThread,
    ) -> None:
        self._config = config
        self._playwright = playwright
        self._browser = browser
        self._driver = driver
        self._target_ids: dict[PlaywrightPage, str] = {}
        self._connected = True

    @classmethod
    def connect(cls, config: Config) -> "RemoteAllocator":
        """Attach to the debugging endpoint described by ``config``.

        Raises:
            ConnectionFailed: If the endpoint is unreachable or is not a
                CDP endpoint.
        """
        version = _probe_endpoint(config)
        logger.debug(f"CDP ready: {version.get('Browser', 'unknown')}")

        driver = DriverThread()
        try:
            playwright, browser = driver.run(_start_driver, config)
        except BaseException:
            driver.stop()
            raise

        logger.info(f"Connected to Chrome at {config.endpoint_url}")
        return cls(config, playwright, browser, driver)

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def endpoint_url(self) -> str:
        return self._config.endpoint_url

    @property
    def driver(self) -> DriverThread:
        return self._driver

    def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``fn`` on the driver thread."""
        return self._driver.run(fn, *args, **kwargs)

    def discover(self) -> list[TargetInfo]:
        """List every debugging target in the order the browser reports them.

        Uses a throwaway browser-level CDP session; detaching it does not
        touch any tab.

        Raises:
            DiscoveryFailed: On transport or protocol errors.
        """
        return self.run(self._discover)

    def _discover(self) -> list[TargetInfo]:
        try:
            session = self._browser.new_browser_cdp_session()
        except PlaywrightError as e:
            raise DiscoveryFailed(f"failed to get targets: {e}") from e
        try:
            result = session.send("Target.getTargets")
        except PlaywrightError as e:
            raise DiscoveryFailed(f"failed to get targets: {e}") from e
        finally:
            detach_quietly(session)

        targets = [TargetInfo.from_protocol(t) for t in result.get("targetInfos", [])]
        logger.debug(f"Discovered {len(targets)} targets")
        return targets

    def find_page(self, target_id: str) -> Optional[PlaywrightPage]:
        """Return the Playwright page backing ``target_id``, if it is still open."""
        return self.run(self._find_page, target_id)

    def _find_page(self, target_id: str) -> Optional[PlaywrightPage]:
        for context in self._browser.contexts:
            for page in context.pages:
                if self._target_id_of(page) == target_id:
                    return page
        return None

    def target_id_of(self, page: PlaywrightPage) -> Optional[str]:
        return self.run(self._target_id_of, page)

    def _target_id_of(self, page: PlaywrightPage) -> Optional[str]:
        if page not in self._target_ids:
            try:
                session = page.context.new_cdp_session(page)
            except PlaywrightError as e:
                logger.debug(f"Could not inspect page {page.url}: {e}")
                return None
            try:
                info = session.send("Target.getTargetInfo")
            except PlaywrightError as e:
                logger.debug(f"Could not read target info for {page.url}: {e}")
                return None
            finally:
                detach_quietly(session)
            self._target_ids[page] = info["targetInfo"]["targetId"]
        return self._target_ids[page]

    def open_page(self) -> PlaywrightPage:
        """Create a new tab in the default browser context."""
        return self.run(self._open_page)

    def _open_page(self) -> PlaywrightPage:
        if self._browser.contexts:
            context = self._browser.contexts[0]
        else:
            context = self._browser.new_context()
        return context.new_page()

    def open_session(self, page: PlaywrightPage) -> CDPSession:
        """Open a CDP session scoped to ``page``'s target."""
        return self.run(page.context.new_cdp_session, page)

    def forget(self, page: PlaywrightPage) -> None:
        self._target_ids.pop(page, None)

    def disconnect(self) -> None:
        """Drop the connection to Chrome, leaving every tab open.

        Stops the Playwright driver instead of calling ``Browser.close()``,
        then ends the driver thread. Safe to call more than once.
        """
        if not self._connected:
            logger.debug("Already disconnected from Chrome")
            return
        self._connected = False
        logger.info("Disconnecting from Chrome")
        self._target_ids.clear()
        try:
            self.run(self._playwright.stop)
        except PlaywrightError as e:
            logger.warning(f"Error while stopping Playwright: {e}")
        finally:
            self._driver.stop()


def _start_driver(config: Config) -> tuple[Playwright, Browser]:
    playwright = sync_playwright().start()
    try:
        browser = playwright.chromium.connect_over_cdp(
            config.endpoint_url,
            timeout=config.timeout_ms,
        )
    except PlaywrightError as e:
        playwright.stop()
        raise ConnectionFailed(config.port, str(e)) from e
    return playwright, browser


def _probe_endpoint(config: Config) -> dict:
    """Verify the CDP endpoint is responding and return its version info."""
    url = f"{config.endpoint_url}/json/version"
    try:
        with httpx.Client(timeout=PROBE_TIMEOUT_SECONDS) as client:
            response = client.get(url)
    except httpx.HTTPError as e:
        raise ConnectionFailed(config.port, str(e)) from e

    if response.status_code != 200:
        raise ConnectionFailed(config.port, f"{url} returned status {response.status_code}")
    try:
        data = response.json()
    except ValueError as e:
        raise ConnectionFailed(config.port, f"{url} did not return JSON") from e
    if not isinstance(data, dict) or "webSocketDebuggerUrl" not in data:
        raise ConnectionFailed(config.port, f"{url} is not a DevTools endpoint")
    return data


def detach_quietly(session: CDPSession) -> None:
    try:
        session.detach()
    except PlaywrightError as e:
        logger.debug(f"CDP session detach failed: {e}")
