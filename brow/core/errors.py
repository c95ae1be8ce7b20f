"""Exception hierarchy for connection, session and operation failures."""
from __future__ import annotations

from typing import Optional


class BrowError(Exception):
    """Base class for every error raised by brow."""


class ConfigInvalid(BrowError):
    """Port or timeout out of range."""


class ConnectionFailed(BrowError):
    """The debugging endpoint is unreachable or does not speak CDP."""

    def __init__(self, port: int, reason: str = "") -> None:
        self.port = port
        self.reason = reason
        message = f"failed to connect to Chrome debugging endpoint on port {port}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class DiscoveryFailed(BrowError):
    """The target-list query failed."""


class NoTargetsAvailable(BrowError):
    def __init__(self) -> None:
        super().__init__("no tabs available - start Chrome with remote debugging first")


class NoPageTargets(BrowError):
    def __init__(self) -> None:
        super().__init__("no page tabs available")


class AttachFailed(BrowError):
    """The target vanished (or refused attachment) before the session was ready."""

    def __init__(self, target_id: str, reason: str = "") -> None:
        self.target_id = target_id
        message = f"failed to attach to target {target_id}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class IndexOutOfRange(BrowError):
    def __init__(self, index: int, count: int) -> None:
        self.index = index
        self.count = count
        super().__init__(f"tab index {index} out of range (have {count} tabs)")


class CloseRemoteFailed(BrowError):
    """The browser rejected the close-tab command."""

    def __init__(self, target_id: str, reason: str = "") -> None:
        self.target_id = target_id
        message = f"failed to close tab {target_id}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class BrowserClosed(BrowError):
    def __init__(self) -> None:
        super().__init__("browser connection already closed")


class OperationFailed(BrowError):
    """A facade operation failed inside the browser or on the wire."""

    def __init__(self, operation: str, reason: str, target_id: Optional[str] = None) -> None:
        self.operation = operation
        self.reason = reason
        self.target_id = target_id
        super().__init__(f"failed to {operation}: {reason}")


class OperationTimeout(OperationFailed):
    """The per-operation deadline elapsed. The session stays usable."""


class EvaluationError(OperationFailed):
    """The page threw while evaluating a script."""


class SessionReleased(BrowError):
    def __init__(self, target_id: str) -> None:
        self.target_id = target_id
        super().__init__(f"session for target {target_id} has been released")
