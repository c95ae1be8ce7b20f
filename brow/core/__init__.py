"""Core utilities: configuration, errors and logging."""
from .config import Config, Settings, resolve_port, validate_config
from .logging import setup_logging

__all__ = ["Config", "Settings", "resolve_port", "validate_config", "setup_logging"]
