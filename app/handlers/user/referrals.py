"""
User commands: /myinvites, /rewards, /top
"""
import logging

from aiogram import Router
from aiogram.enums import ParseMode
from aiogram.filters import Command
from aiogram.types import Message

import config
import database
from app.handlers.common.guards import ensure_db_ready_message
from app.handlers.common.utils import html_name
from app.i18n import get_text as i18n_get_text, resolve_language
from app.services.profiles import InviterProfile, ensure_profile
from app.services.rewards import calculate_progress
from app.utils.security import sanitize_username

user_router = Router()
logger = logging.getLogger(__name__)


@user_router.message(Command("myinvites"))
async def cmd_myinvites(message: Message):
    if not await ensure_db_ready_message(message):
        return

    language = resolve_language(message.from_user.language_code)
    profile = await ensure_profile(message.from_user.id, sanitize_username(message.from_user.username))
    progress = calculate_progress(profile.invites_count, config.get_settings().invites_per_reward)
    await message.answer(
        i18n_get_text(
            language,
            "myinvites.text",
            name=html_name(profile.display_name),
            invites=profile.invites_count,
            next_threshold=progress.next_threshold,
            remaining=progress.remaining,
        ),
        parse_mode=ParseMode.HTML,
    )


def _reward_sort_key(reward_id: str):
    return (0, int(reward_id), reward_id) if reward_id.isdigit() else (1, 0, reward_id)


@user_router.message(Command("rewards"))
async def cmd_rewards(message: Message):
    if not await ensure_db_ready_message(message):
        return

    language = resolve_language(message.from_user.language_code)
    profile = await ensure_profile(message.from_user.id, sanitize_username(message.from_user.username))
    if not profile.rewards_claimed:
        await message.answer(i18n_get_text(language, "rewards.none"))
        return

    claimed = ", ".join(f"#{r}" for r in sorted(profile.rewards_claimed, key=_reward_sort_key))
    await message.answer(i18n_get_text(language, "rewards.unlocked", rewards=claimed))


@user_router.message(Command("top"))
async def cmd_top(message: Message):
    if not await ensure_db_ready_message(message):
        return

    language = resolve_language(message.from_user.language_code)
    rows = await database.get_top_inviters(config.get_settings().leaderboard_size)
    if not rows:
        await message.answer(i18n_get_text(language, "top.empty"))
        return

    lines = [i18n_get_text(language, "top.title")]
    for position, row in enumerate(rows, 1):
        name = InviterProfile(telegram_id=row["telegram_id"], username=row.get("username")).display_name
        lines.append(i18n_get_text(language, "top.line", position=position, name=name, invites=row["invites_count"]))
    await message.answer("\n".join(lines))
