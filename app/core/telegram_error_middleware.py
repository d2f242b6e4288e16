"""
Global Telegram update error boundary middleware.

Ensures no handler exception can crash polling.
Never swallows CancelledError.
Handles TelegramForbiddenError and TelegramBadRequest (message not modified) silently.
"""
import asyncio
import logging
from typing import Callable, Awaitable, Dict, Any, Optional

from aiogram import BaseMiddleware
from aiogram.exceptions import TelegramForbiddenError, TelegramBadRequest, TelegramAPIError
from aiogram.types import Update

from app.core.structured_logger import log_event
from app.i18n import DEFAULT_LANGUAGE, get_text
from app.utils.logging_helpers import classify_error

logger = logging.getLogger(__name__)


def _update_user_id(event: Any) -> Optional[int]:
    message = getattr(event, "message", None)
    if message is not None and message.from_user:
        return message.from_user.id
    chat_member = getattr(event, "chat_member", None)
    if chat_member is not None and chat_member.from_user:
        return chat_member.from_user.id
    return None


class TelegramErrorBoundaryMiddleware(BaseMiddleware):
    """
    Middleware that wraps handler execution in a strict error boundary.

    TelegramForbiddenError (user blocked bot / removed from chat): debug log, return.
    TelegramBadRequest "message is not modified": silent return.
    On other exception: logs, replies with a generic error to private
    messages, returns None.
    """

    async def __call__(
        self,
        handler: Callable[[Any, Dict[str, Any]], Awaitable[Any]],
        event: Any,
        data: Dict[str, Any],
    ) -> Any:
        try:
            return await handler(event, data)
        except asyncio.CancelledError:
            raise
        except TelegramForbiddenError as e:
            logger.debug(
                "TelegramForbiddenError (user blocked bot or removed from chat): %s",
                e,
            )
            return None
        except TelegramBadRequest as e:
            if "message is not modified" in str(e).lower():
                return None
            logger.warning("TelegramBadRequest: %s", e)
            return None
        except Exception as e:
            correlation_id = str(event.update_id) if isinstance(event, Update) else None
            user_id = _update_user_id(event)

            log_event(
                logger,
                component="telegram",
                operation="update_processing",
                correlation_id=correlation_id,
                outcome="failed",
                reason=f"{classify_error(e)} {type(e).__name__}: {str(e)[:200]}",
                level="error",
            )
            logger.exception(
                "UNHANDLED_HANDLER_EXCEPTION",
                extra={"update_type": type(event).__name__, "user_id": user_id},
            )

            message = getattr(event, "message", None)
            if message is not None and message.chat.type == "private":
                try:
                    await message.answer(get_text(DEFAULT_LANGUAGE, "errors.generic"))
                except TelegramAPIError as send_error:
                    logger.debug("Error reply failed: %s", send_error)

            return None
