"""
Delivery primitives shared by notifications, reward dispatch and broadcasts.

safe_send_message: best-effort text, returns None on any handled failure.
send_document_or_raise: reward delivery, raises DeliveryFailedError so the
caller can keep the tier unclaimed.
"""
import asyncio
import logging

from aiogram.exceptions import TelegramAPIError, TelegramBadRequest, TelegramForbiddenError

from app.core.exceptions import DeliveryFailedError

logger = logging.getLogger(__name__)


async def safe_send_message(bot, telegram_id: int, text: str, **kwargs):
    """
    Send a Telegram message with graceful error handling.

    Returns:
        Message on success, None on any handled failure.
    """
    try:
        return await bot.send_message(telegram_id, text, **kwargs)

    except TelegramForbiddenError:
        logger.warning(f"SAFE_SEND_FORBIDDEN user={telegram_id}")
        return None

    except TelegramBadRequest as e:
        if "chat not found" in str(e).lower():
            logger.warning(f"SAFE_SEND_SKIP_CHAT_NOT_FOUND user={telegram_id}")
        else:
            logger.warning(f"SAFE_SEND_BAD_REQUEST user={telegram_id}: {e}")
        return None

    except (TelegramAPIError, asyncio.TimeoutError) as e:
        logger.warning(f"SAFE_SEND_FAILED user={telegram_id}: {type(e).__name__}: {e}")
        return None


async def send_document_or_raise(bot, telegram_id: int, file_id: str, caption: str):
    """
    Send a stored document by file_id.

    Raises:
        DeliveryFailedError: on any Telegram or timeout failure
    """
    try:
        return await bot.send_document(telegram_id, file_id, caption=caption)
    except (TelegramAPIError, asyncio.TimeoutError) as e:
        raise DeliveryFailedError(telegram_id, f"{type(e).__name__}: {e}") from e
