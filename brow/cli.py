"""CLI entry point: one browser operation per invocation."""
import argparse
import base64
import json
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import BaseModel

from .browser import Browser
from .core.config import DEFAULT_PORT, Config, Settings
from .core.errors import BrowError
from .core.logging import setup_logging
from .operations import PDFOptions, ScreenshotOptions, StorageType

logger = logging.getLogger(__name__)

DEFAULT_SCREENSHOT_FILE = "screenshot.png"
DEFAULT_PDF_FILE = "output.pdf"


def format_json(value: Any, compact: bool = False) -> str:
    """Format any JSON-serializable value (pydantic models included)."""
    if compact:
        return json.dumps(value, default=_jsonable, separators=(",", ":"))
    return json.dumps(value, default=_jsonable, indent=2)


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump()
    return str(value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="brow",
        description=(
            "Composable browser automation for a Chrome running with remote "
            f"debugging enabled (default port {DEFAULT_PORT})."
        ),
    )
    parser.add_argument(
        "--port",
        type=int,
        default=0,
        help=f"Chrome remote debugging port (default {DEFAULT_PORT}, or set BROW_DEBUG_PORT)"
    )
    parser.add_argument("--host", help="Debugging endpoint host (default localhost)")
    parser.add_argument(
        "--timeout",
        type=float,
        help="Per-operation timeout in seconds, 0 for none (default 30)"
    )
    parser.add_argument(
        "--tab", "-t",
        type=int,
        default=0,
        help="Index of the tab to operate on (see 'brow tabs')"
    )
    parser.add_argument("--config", type=Path, help="Path to a YAML settings file")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("tabs", help="List open tabs")

    nav = commands.add_parser("nav", help="Navigate to a URL")
    nav.add_argument("url")
    nav.add_argument(
        "--no-wait",
        dest="wait",
        action="store_false",
        help="Return as soon as navigation commits"
    )

    ev = commands.add_parser("eval", help="Execute JavaScript in the page")
    ev.add_argument("script")
    ev.add_argument("--raw", "-r", action="store_true", help="Print strings as-is and other values as compact JSON")

    shot = commands.add_parser("screenshot", help="Capture a screenshot")
    shot.add_argument("output", nargs="?", help=f"Output file (default {DEFAULT_SCREENSHOT_FILE})")
    shot.add_argument("--full-page", "-f", action="store_true", help="Capture the full page")
    shot.add_argument("--quality", "-q", type=int, default=100, help="JPEG quality for full-page captures")
    shot.add_argument("--base64", "-b", action="store_true", help="Print base64 data instead of writing a file")

    pdf = commands.add_parser("pdf", help="Export the page as PDF")
    pdf.add_argument("output", nargs="?", default=DEFAULT_PDF_FILE, help=f"Output file (default {DEFAULT_PDF_FILE})")
    pdf.add_argument("--landscape", "-l", action="store_true", help="Landscape orientation")
    pdf.add_argument(
        "--no-background",
        dest="background",
        action="store_false",
        help="Do not print background graphics"
    )

    cookies = commands.add_parser("cookies", help="Get, set, or clear cookies")
    cookie_mode = cookies.add_mutually_exclusive_group()
    cookie_mode.add_argument("--domain", default="", help="Filter cookies by domain")
    cookie_mode.add_argument("--set", "-s", dest="set_cookie", help='Set a cookie ("name=value; path=/")')
    cookie_mode.add_argument("--clear", "-c", action="store_true", help="Clear all cookies")

    storage = commands.add_parser("storage", help="Read or write localStorage/sessionStorage")
    storage.add_argument("--type", dest="storage_type", default="local", choices=["local", "session"])
    storage.add_argument("--key", "-k", help="Storage key")
    storage.add_argument("--value", "-v", help="Value to set (requires --key)")
    storage.add_argument("--delete", action="store_true", help="Delete --key")
    storage.add_argument("--clear", "-c", action="store_true", help="Clear the storage area")

    pick = commands.add_parser("pick", help="Interactive element picker")
    pick_mode = pick.add_mutually_exclusive_group()
    pick_mode.add_argument("--xpath", "-x", action="store_true", help="Produce XPath instead of CSS")
    pick_mode.add_argument("--get", "-g", action="store_true", help="Print the picked selector")

    new_tab = commands.add_parser("new-tab", help="Open a new tab")
    new_tab.add_argument("url", nargs="?", default="")

    close_tab = commands.add_parser("close-tab", help="Close a tab by index")
    close_tab.add_argument("index", type=int)

    return parser


def build_config(args: argparse.Namespace) -> Config:
    """Flags win over the settings file, which wins over the environment."""
    settings = Settings.from_yaml(args.config) if args.config else Settings()
    return settings.to_config(port=args.port or None, timeout=args.timeout, host=args.host)


def cmd_tabs(browser: Browser, args: argparse.Namespace) -> None:
    for info in browser.tabs():
        print(f"[{info.index}] {info.title or '(untitled)'}")
        print(f"    {info.url}")


def cmd_nav(browser: Browser, args: argparse.Namespace) -> None:
    result = browser.tab(args.tab).navigate(args.url, wait_ready=args.wait)
    print(f"Navigated to: {result.url}")
    print(f"Page title: {result.title}")


def cmd_eval(browser: Browser, args: argparse.Namespace) -> None:
    result = browser.tab(args.tab).eval(args.script)
    if args.raw:
        print(result if isinstance(result, str) else format_json(result, compact=True))
    else:
        print(format_json(result))


def cmd_screenshot(browser: Browser, args: argparse.Namespace) -> None:
    options = ScreenshotOptions(full_page=args.full_page, quality=args.quality)
    data = browser.tab(args.tab).screenshot(options)
    if args.base64 and not args.output:
        print(base64.b64encode(data).decode("ascii"))
        return
    path = Path(args.output or DEFAULT_SCREENSHOT_FILE)
    path.write_bytes(data)
    print(f"Screenshot saved to: {path}")


def cmd_pdf(browser: Browser, args: argparse.Namespace) -> None:
    options = PDFOptions(landscape=args.landscape, print_background=args.background)
    data = browser.tab(args.tab).pdf(options)
    path = Path(args.output)
    path.write_bytes(data)
    print(f"PDF saved to: {path}")


def cmd_cookies(browser: Browser, args: argparse.Namespace) -> None:
    tab = browser.tab(args.tab)
    if args.clear:
        tab.clear_cookies()
        print("All cookies cleared")
    elif args.set_cookie:
        tab.set_cookie(args.set_cookie)
        print("Cookie set successfully")
    else:
        print(format_json(tab.get_cookies(args.domain)))


def cmd_storage(browser: Browser, args: argparse.Namespace) -> None:
    tab = browser.tab(args.tab)
    storage_type = StorageType.from_name(args.storage_type)
    area = storage_type.value

    if args.clear:
        tab.clear_storage(storage_type)
        print(f"{area} cleared")
    elif args.delete and args.key:
        tab.remove_storage_item(storage_type, args.key)
        print(f"Deleted key: {args.key}")
    elif args.key and args.value is not None:
        tab.set_storage_item(storage_type, args.key, args.value)
        print(f"Set {area}[{args.key}] = {args.value}")
    elif args.key:
        print(format_json(tab.get_storage_item(storage_type, args.key)))
    else:
        print(format_json(tab.get_all_storage(storage_type)))


def cmd_pick(browser: Browser, args: argparse.Namespace) -> None:
    tab = browser.tab(args.tab)
    if args.get:
        selector = tab.get_picked_selector()
        if selector is None:
            print("No element picked yet")
        else:
            print(selector)
        return
    tab.inject_picker(use_xpath=args.xpath)
    print("Picker active: hover to highlight, click to select, ESC to exit.")
    print("Run 'brow pick --get' to read the selector.")


def cmd_new_tab(browser: Browser, args: argparse.Namespace) -> None:
    tab = browser.new_tab(args.url)
    print(f"[{browser.tab_count() - 1}] {tab.target_id} {tab.url}")


def cmd_close_tab(browser: Browser, args: argparse.Namespace) -> None:
    browser.close_tab(args.index)
    print(f"Closed tab {args.index}")


COMMANDS: dict[str, Callable[[Browser, argparse.Namespace], None]] = {
    "tabs": cmd_tabs,
    "nav": cmd_nav,
    "eval": cmd_eval,
    "screenshot": cmd_screenshot,
    "pdf": cmd_pdf,
    "cookies": cmd_cookies,
    "storage": cmd_storage,
    "pick": cmd_pick,
    "new-tab": cmd_new_tab,
    "close-tab": cmd_close_tab,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Run one brow command. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.debug else "WARNING")

    try:
        config = build_config(args)
        browser = Browser.connect(config)
    except (BrowError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        COMMANDS[args.command](browser, args)
    except (BrowError, ValueError, OSError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        browser.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
