"""
Admin reward registration: /reward <id> [threshold], ZIP upload, /cancel
"""
import logging

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import Message

import config
from app.handlers.common.guards import ensure_db_ready_message
from app.handlers.common.utils import command_args
from app.i18n import DEFAULT_LANGUAGE, get_text as i18n_get_text
from app.services.admin import (
    InvalidRewardCommandError,
    NotAnArchiveError,
    RewardUpload,
    RewardUploadSessions,
)
from app.utils.security import is_admin, require_admin

admin_rewards_router = Router()
logger = logging.getLogger(__name__)


@admin_rewards_router.message(Command("reward"))
async def cmd_reward(message: Message, upload_sessions: RewardUploadSessions):
    if not require_admin(message.from_user.id, "reward"):
        return

    try:
        pending = await upload_sessions.begin_upload(
            message.from_user.id,
            command_args(message),
            config.get_settings().invites_per_reward,
        )
    except InvalidRewardCommandError:
        await message.answer(i18n_get_text(DEFAULT_LANGUAGE, "admin.reward_usage"))
        return

    await message.answer(
        i18n_get_text(
            DEFAULT_LANGUAGE,
            "admin.reward_send_zip",
            reward_id=pending.reward_id,
            threshold=pending.threshold,
        )
    )


@admin_rewards_router.message(Command("cancel"))
async def cmd_cancel(message: Message, upload_sessions: RewardUploadSessions):
    if not require_admin(message.from_user.id, "cancel"):
        return

    if await upload_sessions.cancel_upload(message.from_user.id):
        await message.answer(i18n_get_text(DEFAULT_LANGUAGE, "admin.upload_cancelled"))
    else:
        await message.answer(i18n_get_text(DEFAULT_LANGUAGE, "admin.nothing_to_cancel"))


@admin_rewards_router.message(F.document)
async def handle_reward_document(message: Message, upload_sessions: RewardUploadSessions):
    """Only admin uploads during an open /reward session are captured."""
    if not is_admin(message.from_user.id):
        return
    if await upload_sessions.get_pending(message.from_user.id) is None:
        return
    if not await ensure_db_ready_message(message):
        return

    document = message.document
    upload = RewardUpload(
        file_id=document.file_id,
        file_name=document.file_name,
        mime_type=document.mime_type,
    )
    try:
        tier = await upload_sessions.submit_payload(message.from_user.id, upload)
    except NotAnArchiveError:
        await message.answer(i18n_get_text(DEFAULT_LANGUAGE, "admin.reward_need_zip"))
        return

    await message.answer(
        i18n_get_text(DEFAULT_LANGUAGE, "admin.reward_saved", reward_id=tier.reward_id, threshold=tier.threshold)
    )
