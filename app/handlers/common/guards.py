"""
DB readiness guard shared across handler domains.
"""
import logging

from aiogram.types import Message

import database
from app.i18n import get_text as i18n_get_text, resolve_language

logger = logging.getLogger(__name__)


async def ensure_db_ready_message(message: Message) -> bool:
    """
    Returns:
        True if the database is ready; otherwise answers "service unavailable"
        and returns False.
    """
    if database.ensure_db_ready():
        return True

    language = resolve_language(getattr(message.from_user, "language_code", None))
    try:
        await message.answer(i18n_get_text(language, "errors.service_unavailable"))
    except Exception as e:
        logger.warning(f"Error sending degraded mode message: {e}")
    return False
