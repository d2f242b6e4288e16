"""
Referral Service - join event attribution

Turns a channel membership transition into exactly one durable attribution.

Rules:
- only "not a member" -> "member" transitions in the configured channel count
- joins without one of our personal invite links are not attributable
- self-invites are ignored
- a joined user is attributed at most once, ever (referrals.joined_user_id
  is UNIQUE); a second event for the same user is a no-op
- once the referral record is written, notification and reward dispatch
  failures are logged and never undo it
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from aiogram import Bot

import database
from app.core.channel import ChannelRef, NumericId, channel_matches
from app.i18n import DEFAULT_LANGUAGE, get_text as i18n_get_text
from app.services.profiles import InviterProfile
from app.services.referrals.exceptions import DuplicateAttributionError
from app.services.rewards import RewardCatalog, dispatch_due_rewards
from app.utils.telegram_safe import safe_send_message

logger = logging.getLogger(__name__)

MEMBER_STATUSES = frozenset({"creator", "administrator", "member"})


class JoinOutcome(Enum):
    """Result of processing one membership event"""
    WRONG_CHANNEL = "wrong_channel"
    NOT_A_JOIN = "not_a_join"
    NO_INVITE_LINK = "no_invite_link"
    UNKNOWN_INVITE_LINK = "unknown_invite_link"
    SELF_INVITE = "self_invite"
    DUPLICATE = "duplicate"
    ATTRIBUTED = "attributed"


@dataclass(frozen=True)
class JoinEvent:
    """Channel membership transition, transport-independent"""
    chat_refs: Tuple[ChannelRef, ...]
    old_status: Optional[str]
    new_status: Optional[str]
    joined_user_id: int
    invite_link: Optional[str] = None

    @property
    def numeric_chat_id(self) -> Optional[int]:
        for ref in self.chat_refs:
            if isinstance(ref, NumericId):
                return ref.value
        return None


@dataclass
class JoinResult:
    outcome: JoinOutcome
    inviter: Optional[InviterProfile] = None


def is_join_transition(old_status: Optional[str], new_status: Optional[str]) -> bool:
    return new_status == "member" and old_status not in MEMBER_STATUSES


async def record_attribution(joined_user_id: int, inviter_user_id: int, chat_id: Optional[int]) -> InviterProfile:
    """
    Write the referral record and credit the inviter atomically.

    Returns:
        The credited inviter

    Raises:
        DuplicateAttributionError: the joined user was already attributed
        asyncpg / RuntimeError: database failure, nothing was written
    """
    row = await database.attribute_referral(joined_user_id, inviter_user_id, chat_id)
    if row is None:
        raise DuplicateAttributionError(joined_user_id)
    return InviterProfile.from_row(row)


async def process_join_event(
    bot: Bot,
    event: JoinEvent,
    channel: ChannelRef,
    catalog: Optional[RewardCatalog] = None,
) -> JoinResult:
    """
    Attribute a channel join to the owner of the invite link used.

    Returns:
        JoinResult with the outcome and, when attributed, the updated inviter

    Raises:
        asyncpg / RuntimeError: when the referral record cannot be written or
            the inviter cannot be credited. Nothing is committed in that case
            and the event can be processed again.
    """
    if not channel_matches(channel, event.chat_refs):
        return JoinResult(JoinOutcome.WRONG_CHANNEL)

    if not is_join_transition(event.old_status, event.new_status):
        return JoinResult(JoinOutcome.NOT_A_JOIN)

    if not event.invite_link:
        logger.debug(f"JOIN_UNTRACKED [joined={event.joined_user_id}]")
        return JoinResult(JoinOutcome.NO_INVITE_LINK)

    row = await database.find_user_by_invite_link(event.invite_link)
    if not row:
        logger.info(f"JOIN_UNKNOWN_LINK [joined={event.joined_user_id}]")
        return JoinResult(JoinOutcome.UNKNOWN_INVITE_LINK)
    inviter = InviterProfile.from_row(row)

    if inviter.telegram_id == event.joined_user_id:
        logger.warning(f"REFERRAL_SELF_ATTEMPT [user_id={inviter.telegram_id}]")
        return JoinResult(JoinOutcome.SELF_INVITE, inviter)

    try:
        inviter = await record_attribution(event.joined_user_id, inviter.telegram_id, event.numeric_chat_id)
    except DuplicateAttributionError:
        logger.debug(
            f"REFERRAL_ALREADY_ATTRIBUTED [joined={event.joined_user_id}, link_owner={inviter.telegram_id}]"
        )
        return JoinResult(JoinOutcome.DUPLICATE, inviter)

    logger.info(
        f"REFERRAL_ATTRIBUTED [inviter={inviter.telegram_id}, joined={event.joined_user_id}, "
        f"invites_count={inviter.invites_count}]"
    )

    await _notify_and_dispatch(bot, inviter, catalog)
    return JoinResult(JoinOutcome.ATTRIBUTED, inviter)


async def _notify_and_dispatch(bot: Bot, inviter: InviterProfile, catalog: Optional[RewardCatalog]) -> None:
    await safe_send_message(
        bot,
        inviter.telegram_id,
        i18n_get_text(DEFAULT_LANGUAGE, "notify.new_member", invites=inviter.invites_count),
    )
    try:
        await dispatch_due_rewards(bot, inviter, catalog)
    except Exception:
        logger.exception(f"REWARD_DISPATCH_ERROR [user={inviter.telegram_id}]")
