"""Centralized logging configuration."""
import logging
import sys


def setup_logging(level: str = "WARNING") -> None:
    """Configure logging for the application.

    Logs go to stderr so command output on stdout stays machine readable.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
