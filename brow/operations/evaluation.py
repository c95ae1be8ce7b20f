"""Script evaluation through the tab's CDP session."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..core.errors import EvaluationError
from . import scripts
from .base import operation_errors

if TYPE_CHECKING:
    from ..browser.session import TabContext

logger = logging.getLogger(__name__)


def evaluate(ctx: TabContext, script: str) -> Any:
    """Evaluate ``script`` in the page's main world and return its value.

    Promises are awaited. The configured timeout terminates the script.

    Raises:
        EvaluationError: If the script throws.
        OperationTimeout: If the deadline elapses.
    """
    params: dict[str, Any] = {
        "expression": script,
        "returnByValue": True,
        "awaitPromise": True,
    }
    if ctx.timeout_ms > 0:
        params["timeout"] = ctx.timeout_ms

    with operation_errors(ctx, "evaluate JavaScript"):
        response = ctx.send("Runtime.evaluate", params)

    details = response.get("exceptionDetails")
    if details:
        exception = details.get("exception") or {}
        reason = exception.get("description") or details.get("text") or "script threw"
        raise EvaluationError("evaluate JavaScript", reason, ctx.target_id)

    return response.get("result", {}).get("value")


def call_function(ctx: TabContext, function_source: str, *args: Any) -> Any:
    """Evaluate a script template with JSON-encoded arguments."""
    return evaluate(ctx, scripts.call(function_source, *args))
