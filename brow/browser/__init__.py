"""Browser attachment: CDP connection, tab sessions and the session registry."""
from .connection import RemoteAllocator, TargetInfo, TargetKind
from .driver import DriverThread
from .page import Tab
from .registry import Browser, TabInfo
from .session import ReleaseStack, TabContext, TabSession

__all__ = [
    "Browser",
    "DriverThread",
    "ReleaseStack",
    "RemoteAllocator",
    "Tab",
    "TabContext",
    "TabInfo",
    "TabSession",
    "TargetInfo",
    "TargetKind",
]
