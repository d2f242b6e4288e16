"""
User commands: /start, /link, /help
"""
import logging

from aiogram import Bot, Router
from aiogram.enums import ParseMode
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

import config
from app.core.channel import ChannelRef
from app.handlers.common.guards import ensure_db_ready_message
from app.handlers.common.utils import channel_display, html_name
from app.i18n import get_text as i18n_get_text, resolve_language
from app.services.invites import InviteLinkPermissionError, get_or_create_invite_link
from app.services.profiles import ensure_profile
from app.utils.security import sanitize_username

user_router = Router()
logger = logging.getLogger(__name__)


async def _issue_link(message: Message, bot: Bot, channel: ChannelRef, language: str):
    """Ensure the profile and return its invite link, or None after telling the user why not."""
    profile = await ensure_profile(message.from_user.id, sanitize_username(message.from_user.username))
    try:
        return await get_or_create_invite_link(bot, channel, profile)
    except InviteLinkPermissionError:
        logger.error(f"INVITE_LINK_UNAVAILABLE [user={message.from_user.id}] bot lacks invite rights in channel")
        await message.answer(i18n_get_text(language, "link.unavailable"))
        return None


@user_router.message(CommandStart())
async def cmd_start(message: Message, bot: Bot, channel: ChannelRef):
    if message.chat.type != "private":
        return
    if not await ensure_db_ready_message(message):
        return

    language = resolve_language(message.from_user.language_code)
    link = await _issue_link(message, bot, channel, language)
    if link is None:
        return

    text = i18n_get_text(
        language,
        "start.welcome",
        first_name=html_name(message.from_user.first_name),
        channel=html_name(channel_display(channel)),
        link=link,
        step=config.get_settings().invites_per_reward,
    )
    await message.answer(text, parse_mode=ParseMode.HTML)


@user_router.message(Command("link"))
async def cmd_link(message: Message, bot: Bot, channel: ChannelRef):
    if message.chat.type != "private":
        return
    if not await ensure_db_ready_message(message):
        return

    language = resolve_language(message.from_user.language_code)
    link = await _issue_link(message, bot, channel, language)
    if link is None:
        return
    await message.answer(i18n_get_text(language, "link.your_link", link=link))


@user_router.message(Command("help"))
async def cmd_help(message: Message):
    language = resolve_language(message.from_user.language_code if message.from_user else None)
    await message.answer(i18n_get_text(language, "help.text"))
