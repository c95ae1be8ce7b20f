"""brow: attach to a running Chrome over the DevTools protocol and drive its tabs."""
from .browser import Browser, Tab, TabInfo
from .core.config import Config
from .core.errors import BrowError

__all__ = ["BrowError", "Browser", "Config", "Tab", "TabInfo"]
