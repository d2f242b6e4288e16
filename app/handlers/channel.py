"""
Channel membership updates (chat_member) → referral attribution.
"""
import logging
from typing import Optional

from aiogram import Bot, Router
from aiogram.types import ChatMemberUpdated

import database
from app.core.channel import ChannelRef, channel_refs_from_chat
from app.core.structured_logger import log_event
from app.services.referrals import JoinEvent, JoinOutcome, process_join_event
from app.utils.logging_helpers import set_correlation_id

channel_router = Router()
logger = logging.getLogger(__name__)


def _status(member) -> Optional[str]:
    if member is None:
        return None
    # ChatMemberStatus is a str enum; compare on the plain value
    return getattr(member.status, "value", member.status)


def join_event_from_update(update: ChatMemberUpdated) -> JoinEvent:
    return JoinEvent(
        chat_refs=channel_refs_from_chat(update.chat),
        old_status=_status(update.old_chat_member),
        new_status=_status(update.new_chat_member),
        joined_user_id=update.new_chat_member.user.id,
        invite_link=update.invite_link.invite_link if update.invite_link else None,
    )


@channel_router.chat_member()
async def on_chat_member(update: ChatMemberUpdated, bot: Bot, channel: ChannelRef):
    event = join_event_from_update(update)
    set_correlation_id(f"chat_member:{event.joined_user_id}:{update.date.timestamp():.0f}")

    if not database.ensure_db_ready():
        log_event(logger, component="join_events", operation="process_join", outcome="skipped",
                  reason="db_not_ready", level="warning")
        return

    result = await process_join_event(bot, event, channel)
    if result.outcome is JoinOutcome.ATTRIBUTED:
        log_event(logger, component="join_events", operation="process_join", outcome="success",
                  reason=f"inviter={result.inviter.telegram_id}")
