"""
Correlation-id helpers and failure taxonomy for structured logs.

Logging contract:
- correlation_id: update_id for handlers, a UUID for background runs (broadcast)
- component: handler | service | worker
- outcome: success | skipped | degraded | failed

Failure taxonomy:
- infra_error: database, network, timeouts
- dependency_error: Telegram API refusals
- domain_error: business rule violations (validation, not found, ...)
- unexpected_error: bugs
"""

import asyncio
import logging
import uuid
from contextvars import ContextVar
from typing import Optional

import asyncpg
from aiogram.exceptions import TelegramAPIError

from app.core.exceptions import InviteBotError

_correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

logger = logging.getLogger(__name__)


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str) -> None:
    """Set correlation ID for the current task."""
    _correlation_id.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def classify_error(exception: Exception) -> str:
    """
    Classify an exception for the failure taxonomy.

    Returns:
        "infra_error" | "dependency_error" | "domain_error" | "unexpected_error"
    """
    if isinstance(exception, InviteBotError):
        return "domain_error"
    if isinstance(exception, TelegramAPIError):
        return "dependency_error"
    if isinstance(exception, (asyncpg.PostgresError, asyncio.TimeoutError, ConnectionError, OSError)):
        return "infra_error"
    return "unexpected_error"
