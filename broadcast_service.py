"""
Admin broadcast to every known profile.

Sequential best-effort loop: one message per recipient, failures are counted
and never stop the run, nothing is retried.
"""
import asyncio
import logging
import time
from typing import Optional

from aiogram import Bot

import database
from app.core.structured_logger import log_event
from app.utils.logging_helpers import generate_correlation_id, set_correlation_id
from app.utils.telegram_safe import safe_send_message

logger = logging.getLogger(__name__)

BATCH_SIZE = 25
SLEEP_BETWEEN_MESSAGES = 0.05


def format_completion_message(result: dict) -> str:
    return f"Broadcast done. ✅ {result.get('success', 0)} / ❌ {result.get('failed', 0)}"


async def run_broadcast(
    bot: Bot,
    text: str,
    admin_telegram_id: Optional[int] = None,
    sleep_between_messages: float = SLEEP_BETWEEN_MESSAGES,
) -> dict:
    """
    Send text to every profile.

    Returns:
        {"total", "success", "failed", "duration_seconds"}

    Raises:
        asyncpg / RuntimeError: when the recipient list cannot be loaded
    """
    correlation_id = generate_correlation_id()
    set_correlation_id(correlation_id)

    start_time = time.monotonic()
    success_count = 0
    failed_count = 0

    user_ids = await database.get_all_user_ids()
    total = len(user_ids)
    log_event(logger, component="broadcast", operation="broadcast_start", outcome="started",
              reason=f"total_recipients={total}")

    for i, telegram_id in enumerate(user_ids):
        sent = await safe_send_message(bot, telegram_id, text)
        if sent is not None:
            success_count += 1
        else:
            failed_count += 1

        if (i + 1) % BATCH_SIZE == 0:
            logger.info(
                f"ADMIN_BROADCAST_PROGRESS [correlation_id={correlation_id}, "
                f"processed={i + 1}, success={success_count}, failed={failed_count}]"
            )

        if sleep_between_messages:
            await asyncio.sleep(sleep_between_messages)

    duration_seconds = time.monotonic() - start_time
    result = {
        "total": total,
        "success": success_count,
        "failed": failed_count,
        "duration_seconds": duration_seconds,
    }
    log_event(
        logger,
        component="broadcast",
        operation="broadcast_completed",
        outcome="success" if failed_count == 0 else "degraded",
        duration_ms=int(duration_seconds * 1000),
        reason=f"success={success_count} failed={failed_count}",
    )

    if admin_telegram_id is not None:
        await safe_send_message(bot, admin_telegram_id, format_completion_message(result))

    return result
