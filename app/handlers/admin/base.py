"""
Admin commands: /stats, /user, /rewardslist

Non-admin senders are ignored without a reply.
"""
import logging

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

import database
from app.handlers.common.guards import ensure_db_ready_message
from app.handlers.common.utils import command_tail
from app.i18n import DEFAULT_LANGUAGE, get_text as i18n_get_text
from app.services.profiles import InvalidUserQueryError, ProfileNotFoundError, find_profile
from app.services.rewards import RewardCatalog
from app.utils.security import require_admin

admin_base_router = Router()
logger = logging.getLogger(__name__)


@admin_base_router.message(Command("stats"))
async def cmd_stats(message: Message):
    if not require_admin(message.from_user.id, "stats"):
        return
    if not await ensure_db_ready_message(message):
        return

    stats = await database.get_stats()
    await message.answer(i18n_get_text(DEFAULT_LANGUAGE, "admin.stats", **stats))


@admin_base_router.message(Command("user"))
async def cmd_user(message: Message):
    if not require_admin(message.from_user.id, "user"):
        return
    if not await ensure_db_ready_message(message):
        return

    try:
        profile = await find_profile(command_tail(message))
    except InvalidUserQueryError:
        await message.answer(i18n_get_text(DEFAULT_LANGUAGE, "admin.user_usage"))
        return
    except ProfileNotFoundError:
        await message.answer(i18n_get_text(DEFAULT_LANGUAGE, "admin.user_not_found"))
        return

    claimed = ", ".join(sorted(profile.rewards_claimed)) or i18n_get_text(DEFAULT_LANGUAGE, "admin.none")
    await message.answer(
        i18n_get_text(
            DEFAULT_LANGUAGE,
            "admin.user_info",
            name=profile.display_name,
            telegram_id=profile.telegram_id,
            invites=profile.invites_count,
            claimed=claimed,
            link=profile.invite_link or i18n_get_text(DEFAULT_LANGUAGE, "admin.link_not_generated"),
            invited_users=len(profile.invited_users),
        )
    )


@admin_base_router.message(Command("rewardslist"))
async def cmd_rewardslist(message: Message):
    if not require_admin(message.from_user.id, "rewardslist"):
        return
    if not await ensure_db_ready_message(message):
        return

    tiers = await RewardCatalog().list_tiers()
    if not tiers:
        await message.answer(i18n_get_text(DEFAULT_LANGUAGE, "admin.rewards_empty"))
        return

    lines = [i18n_get_text(DEFAULT_LANGUAGE, "admin.rewards_title")]
    lines.extend(
        i18n_get_text(DEFAULT_LANGUAGE, "admin.rewards_line", reward_id=t.reward_id, threshold=t.threshold)
        for t in tiers
    )
    await message.answer("\n".join(lines))
