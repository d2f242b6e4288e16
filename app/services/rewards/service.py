"""
Reward Service - catalog, due-tier computation and dispatch

The catalog is the only source for dispatch decisions; thresholds do not have
to be uniform multiples of INVITES_PER_REWARD.

Dispatch guarantees:
- tiers are attempted in ascending threshold order
- a failed delivery is logged and does not stop the remaining tiers
- successful tiers are merged into rewards_claimed in one write
- failed tiers stay unclaimed and are retried by the next dispatch
"""

import asyncio
import logging
import weakref
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from aiogram import Bot

import database
from app.core.exceptions import DeliveryFailedError
from app.services.profiles import InviterProfile
from app.services.rewards.exceptions import InvalidRewardTierError
from app.utils.telegram_safe import send_document_or_raise

logger = logging.getLogger(__name__)


# ====================================================================================
# Data model
# ====================================================================================

@dataclass(frozen=True)
class RewardTier:
    reward_id: str
    file_id: str
    threshold: int

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "RewardTier":
        return cls(
            reward_id=str(row["reward_id"]),
            file_id=row["file_id"],
            threshold=int(row["threshold"]),
        )


@dataclass
class DispatchResult:
    """Outcome of one dispatch pass"""
    delivered: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    profile: Optional[InviterProfile] = None

    @property
    def attempted(self) -> int:
        return len(self.delivered) + len(self.failed)


@dataclass(frozen=True)
class Progress:
    next_threshold: int
    remaining: int


# ====================================================================================
# Catalog
# ====================================================================================

def sort_tiers(tiers: Iterable[RewardTier]) -> List[RewardTier]:
    return sorted(tiers, key=lambda t: (t.threshold, t.reward_id))


class RewardCatalog:
    """Reward tier definitions, always returned in ascending threshold order."""

    async def list_tiers(self) -> List[RewardTier]:
        rows = await database.get_rewards()
        return sort_tiers(RewardTier.from_row(r) for r in rows)

    async def register_tier(self, reward_id: str, file_id: str, threshold: int) -> RewardTier:
        """
        Create a tier, or replace file and threshold of an existing id.

        Raises:
            InvalidRewardTierError: empty id/file or threshold < 1
        """
        reward_id = (reward_id or "").strip()
        if not reward_id:
            raise InvalidRewardTierError("reward id must not be empty")
        if not file_id:
            raise InvalidRewardTierError("file id must not be empty")
        if threshold < 1:
            raise InvalidRewardTierError(f"threshold must be >= 1, got {threshold}")

        row = await database.upsert_reward(reward_id, file_id, threshold)
        tier = RewardTier.from_row(row)
        logger.info(f"REWARD_TIER_REGISTERED [reward_id={tier.reward_id}, threshold={tier.threshold}]")
        return tier


# ====================================================================================
# Pure calculations
# ====================================================================================

def compute_due_tiers(
    tiers: Iterable[RewardTier],
    invites_count: int,
    claimed: Iterable[str],
) -> List[RewardTier]:
    """Tiers reached by invites_count and not yet claimed, ascending by threshold."""
    claimed_ids = set(claimed)
    return [
        tier for tier in sort_tiers(tiers)
        if tier.threshold <= invites_count and tier.reward_id not in claimed_ids
    ]


def calculate_progress(invites: int, step: int) -> Progress:
    """
    Progress towards the next multiple of step (user-facing only).

    (7, 5) -> Progress(10, 3); (10, 5) -> Progress(15, 5)
    """
    if step < 1:
        raise ValueError(f"step must be >= 1, got {step}")
    next_threshold = (invites // step + 1) * step
    return Progress(next_threshold=next_threshold, remaining=step - invites % step)


def default_threshold(reward_id: str, step: int) -> int:
    """reward id "3" with step 5 -> 15; a non-numeric id -> step"""
    try:
        number = int(reward_id)
    except (TypeError, ValueError):
        return step
    return number * step if number >= 1 else step


def reward_caption(tier: RewardTier) -> str:
    return f"🎁 Reward #{tier.reward_id} (Reached {tier.threshold} invites)"


# ====================================================================================
# Dispatch
# ====================================================================================

# One dispatch pass per inviter at a time within this process.
_dispatch_locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()


def _dispatch_lock(telegram_id: int) -> asyncio.Lock:
    lock = _dispatch_locks.get(telegram_id)
    if lock is None:
        lock = asyncio.Lock()
        _dispatch_locks[telegram_id] = lock
    return lock


async def dispatch_due_rewards(
    bot: Bot,
    profile: InviterProfile,
    catalog: Optional[RewardCatalog] = None,
) -> DispatchResult:
    """
    Deliver every due, unclaimed reward tier to the inviter.

    The profile is re-read under the per-inviter lock so a pass never re-sends
    tiers claimed by a pass that finished meanwhile.

    Raises:
        asyncpg / RuntimeError: when the catalog or the claimed-set write fails
    """
    catalog = catalog or RewardCatalog()

    async with _dispatch_lock(profile.telegram_id):
        row = await database.get_user(profile.telegram_id)
        current = InviterProfile.from_row(row) if row else profile

        tiers = await catalog.list_tiers()
        due = compute_due_tiers(tiers, current.invites_count, current.rewards_claimed)
        result = DispatchResult(profile=current)
        if not due:
            return result

        for tier in due:
            try:
                await send_document_or_raise(bot, current.telegram_id, tier.file_id, reward_caption(tier))
            except DeliveryFailedError as e:
                result.failed.append(tier.reward_id)
                logger.warning(
                    f"REWARD_DELIVERY_FAILED [user={current.telegram_id}, reward_id={tier.reward_id}, "
                    f"reason={e.reason}]"
                )
                continue
            result.delivered.append(tier.reward_id)

        if result.delivered:
            updated = await database.add_claimed_rewards(current.telegram_id, result.delivered)
            if updated:
                result.profile = InviterProfile.from_row(updated)

        logger.info(
            f"REWARD_DISPATCH_DONE [user={current.telegram_id}, delivered={result.delivered}, "
            f"failed={result.failed}]"
        )
        return result
