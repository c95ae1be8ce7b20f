"""Error translation shared by every operation."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from ..core.errors import OperationFailed, OperationTimeout

if TYPE_CHECKING:
    from ..browser.session import TabContext

logger = logging.getLogger(__name__)

# Runtime.evaluate reports an elapsed deadline this way.
TERMINATED_MESSAGE = "Execution was terminated"


@contextmanager
def operation_errors(ctx: TabContext, operation: str) -> Iterator[None]:
    """Translate Playwright errors raised inside the block.

    Timeouts become OperationTimeout; the session is not touched, so the
    next operation on the same tab runs normally.
    """
    try:
        yield
    except PlaywrightTimeoutError as e:
        logger.warning(f"{operation} timed out on {ctx.target_id}")
        raise OperationTimeout(operation, str(e), ctx.target_id) from e
    except PlaywrightError as e:
        if TERMINATED_MESSAGE in str(e):
            logger.warning(f"{operation} timed out on {ctx.target_id}")
            raise OperationTimeout(operation, str(e), ctx.target_id) from e
        raise OperationFailed(operation, str(e), ctx.target_id) from e
