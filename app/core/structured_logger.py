"""
Structured logging normalization.

Single contract for lifecycle logs:
- component
- operation
- correlation_id (optional, taken from context when omitted)
- outcome
- duration_ms (optional, omitted if None)
- reason (optional)

Do not log secrets, invite links of other users, or full payloads.
"""
from logging import Logger
from typing import Optional

from app.utils.logging_helpers import get_correlation_id


def log_event(
    logger: Logger,
    *,
    component: str,
    operation: str,
    correlation_id: Optional[str] = None,
    outcome: str,
    duration_ms: Optional[int] = None,
    reason: Optional[str] = None,
    level: str = "info",
    message: Optional[str] = None,
) -> None:
    """
    Emit a structured log event.

    Args:
        logger: Logger instance
        component: Component name (e.g. "startup", "join_events", "broadcast")
        operation: Operation name (e.g. "db_init", "polling_start")
        correlation_id: Request/task identifier (defaults to the context one)
        outcome: "success", "failed", "skipped", ...
        duration_ms: Duration in milliseconds
        reason: Short non-PII explanation
        level: Log level name
        message: Optional override message (defaults to "<component> <operation> outcome=<outcome>")
    """
    if correlation_id is None:
        correlation_id = get_correlation_id()

    extra: dict = {
        "component": component,
        "operation": operation,
        "outcome": outcome,
    }
    if correlation_id is not None:
        extra["correlation_id"] = str(correlation_id)
    if duration_ms is not None:
        extra["duration_ms"] = duration_ms
    if reason is not None:
        extra["reason"] = reason

    msg = message or f"{component} {operation} outcome={outcome}"
    if reason is not None and message is None:
        msg = f"{msg} reason={reason}"
    log_method = getattr(logger, level.lower(), logger.info)
    log_method(msg, extra=extra)
