"""Connection configuration using pydantic and pydantic-settings.

Port precedence is explicit value, then ``BROW_DEBUG_PORT``, then 9222.
A ``Config`` is built once per ``Browser`` and passed down explicitly.
"""
import logging
import math
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigInvalid

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 9222
DEFAULT_TIMEOUT = 30.0
MIN_PORT = 1
MAX_PORT = 65535

_FROM_ENVIRONMENT: Any = object()


class Config(BaseModel):
    """Debugging endpoint location plus the per-operation timeout.

    ``timeout`` is in seconds; 0 disables it.
    """

    model_config = ConfigDict(frozen=True)

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    timeout: float = DEFAULT_TIMEOUT

    @property
    def endpoint_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def timeout_ms(self) -> float:
        """Timeout in milliseconds, the unit Playwright and CDP expect."""
        return self.timeout * 1000

    @classmethod
    def resolve(
        cls,
        port: Optional[int] = None,
        timeout: Optional[float] = None,
        host: Optional[str] = None,
    ) -> "Config":
        """Build a config honoring explicit > environment > default."""
        return cls(
            host=host or DEFAULT_HOST,
            port=resolve_port(port),
            timeout=DEFAULT_TIMEOUT if timeout is None else timeout,
        )

    @classmethod
    def default(cls) -> "Config":
        return cls.resolve()


class BrowserSettings(BaseModel):
    """The ``browser:`` section of a settings file."""

    host: str = DEFAULT_HOST
    port: Optional[int] = None
    timeout: Optional[float] = None


class Settings(BaseSettings):
    """Settings loaded from YAML and the ``BROW_`` environment."""

    model_config = SettingsConfigDict(env_prefix="BROW_")

    browser: BrowserSettings = BrowserSettings()
    debug_port: Optional[str] = None

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from a YAML file.

        Args:
            path: Path to the YAML configuration file.

        Returns:
            Settings instance with loaded configuration.
        """
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_config(
        self,
        port: Optional[int] = None,
        timeout: Optional[float] = None,
        host: Optional[str] = None,
    ) -> Config:
        """Merge explicit values over the file, the environment and defaults."""
        if timeout is None:
            timeout = self.browser.timeout
        return Config(
            host=host or self.browser.host,
            port=resolve_port(port or self.browser.port, self.debug_port),
            timeout=DEFAULT_TIMEOUT if timeout is None else timeout,
        )


def _parse_port(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        port = int(value)
    except ValueError:
        logger.debug(f"Ignoring non-numeric BROW_DEBUG_PORT: {value!r}")
        return None
    if port <= 0:
        logger.debug(f"Ignoring non-positive BROW_DEBUG_PORT: {port}")
        return None
    return port


def resolve_port(explicit_port: Optional[int] = None, env_override: Any = _FROM_ENVIRONMENT) -> int:
    """Pick the debugging port.

    Args:
        explicit_port: Value from a flag or caller; used when non-zero.
        env_override: Raw ``BROW_DEBUG_PORT`` value. Read from the
            environment when not given.

    Returns:
        The port to connect to.
    """
    if explicit_port:
        return explicit_port
    if env_override is _FROM_ENVIRONMENT:
        env_override = Settings().debug_port
    port = _parse_port(env_override)
    if port is not None:
        return port
    return DEFAULT_PORT


def validate_config(config: Config) -> None:
    """Raise ConfigInvalid unless port and timeout are in range."""
    if config.port < MIN_PORT or config.port > MAX_PORT:
        raise ConfigInvalid(
            f"port must be between {MIN_PORT} and {MAX_PORT}, got {config.port}"
        )
    if not math.isfinite(config.timeout):
        raise ConfigInvalid(f"timeout must be a finite number of seconds, got {config.timeout}")
    if config.timeout < 0:
        raise ConfigInvalid(f"timeout cannot be negative, got {config.timeout}")
