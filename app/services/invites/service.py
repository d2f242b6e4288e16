"""
Invite Link Registry

Issues one personal channel invite link per inviter and returns it
unchanged on every later call.
"""
import logging

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError, TelegramBadRequest, TelegramForbiddenError

import database
from app.core.channel import ChannelRef
from app.services.invites.exceptions import InviteLinkPermissionError
from app.services.profiles import InviterProfile

logger = logging.getLogger(__name__)

_PERMISSION_MARKERS = ("not enough rights", "chat_admin_required", "need administrator rights")


def invite_link_name(telegram_id: int) -> str:
    """Link label shown to channel admins in Telegram"""
    return f"u{telegram_id}"


def _is_permission_error(error: TelegramBadRequest) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in _PERMISSION_MARKERS)


async def get_or_create_invite_link(bot: Bot, channel: ChannelRef, profile: InviterProfile) -> str:
    """
    Return the inviter's invite link, issuing it on first use.

    The link is a direct-join link (no join request) without member limit.
    It is bound with a claim-once write: if a concurrent request stored a link
    first, ours is revoked and the stored one is returned.

    Raises:
        InviteLinkPermissionError: the bot lacks the right to create links
    """
    if profile.invite_link:
        return profile.invite_link

    try:
        link = await bot.create_chat_invite_link(
            chat_id=channel.as_chat_id(),
            name=invite_link_name(profile.telegram_id),
            creates_join_request=False,
        )
    except TelegramForbiddenError as e:
        logger.error(f"INVITE_LINK_FORBIDDEN [user={profile.telegram_id}]: {e}")
        raise InviteLinkPermissionError(str(e)) from e
    except TelegramBadRequest as e:
        if _is_permission_error(e):
            logger.error(f"INVITE_LINK_NO_RIGHTS [user={profile.telegram_id}]: {e}")
            raise InviteLinkPermissionError(str(e)) from e
        raise

    stored = await database.claim_invite_link(profile.telegram_id, link.invite_link)
    if stored is None:
        raise RuntimeError(f"profile {profile.telegram_id} vanished while issuing invite link")

    if stored != link.invite_link:
        logger.info(f"INVITE_LINK_CLAIM_LOST [user={profile.telegram_id}] revoking duplicate link")
        try:
            await bot.revoke_chat_invite_link(chat_id=channel.as_chat_id(), invite_link=link.invite_link)
        except TelegramAPIError as e:
            logger.warning(f"INVITE_LINK_REVOKE_FAILED [user={profile.telegram_id}]: {e}")
    else:
        logger.info(f"INVITE_LINK_ISSUED [user={profile.telegram_id}]")

    return stored
