"""
Admin command: /broadcast <message>
"""
import logging

from aiogram import Bot, Router
from aiogram.filters import Command
from aiogram.types import Message

import broadcast_service
from app.handlers.common.guards import ensure_db_ready_message
from app.handlers.common.utils import command_tail
from app.i18n import DEFAULT_LANGUAGE, get_text as i18n_get_text
from app.utils.security import require_admin

admin_broadcast_router = Router()
logger = logging.getLogger(__name__)


@admin_broadcast_router.message(Command("broadcast"))
async def cmd_broadcast(message: Message, bot: Bot):
    if not require_admin(message.from_user.id, "broadcast"):
        return

    text = command_tail(message)
    if not text:
        await message.answer(i18n_get_text(DEFAULT_LANGUAGE, "admin.broadcast_usage"))
        return
    if not await ensure_db_ready_message(message):
        return

    await message.answer(i18n_get_text(DEFAULT_LANGUAGE, "admin.broadcast_started"))
    await broadcast_service.run_broadcast(bot, text, admin_telegram_id=message.from_user.id)
