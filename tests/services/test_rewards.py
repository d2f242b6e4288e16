"""
Unit tests for reward service layer.

Tests focus on business logic:
- Due-tier computation and catalog ordering
- Per-tier isolated dispatch with retry on the next pass
- At most one delivery per tier, also under concurrent passes
- Progress towards the next reward
"""
import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock

from aiogram.exceptions import TelegramForbiddenError

from app.services.rewards import (
    InvalidRewardTierError,
    RewardCatalog,
    RewardTier,
    calculate_progress,
    compute_due_tiers,
    default_threshold,
    dispatch_due_rewards,
    reward_caption,
)
from app.services.profiles import InviterProfile

INVITER = 111


def tiers(*specs):
    return [RewardTier(reward_id=rid, file_id=f"file-{rid}", threshold=t) for rid, t in specs]


def seed_tiers(fake_db):
    fake_db.add_reward("1", "file-1", 5)
    fake_db.add_reward("2", "file-2", 10)
    fake_db.add_reward("3", "file-3", 15)


def seed_inviter(fake_db, invites, claimed=()):
    fake_db.add_user(INVITER, "alice", invited_users=range(1000, 1000 + invites), rewards_claimed=claimed)
    return InviterProfile.from_row(fake_db.users[INVITER])


def sent_files(bot):
    return [c.args[1] for c in bot.send_document.await_args_list]


class TestComputeDueTiers:
    """Tests for compute_due_tiers function"""

    def test_all_reached_unclaimed_tiers_in_threshold_order(self):
        catalog = tiers(("3", 15), ("1", 5), ("2", 10))
        due = compute_due_tiers(catalog, 12, set())
        assert [t.reward_id for t in due] == ["1", "2"]

    def test_claimed_tiers_are_skipped(self):
        catalog = tiers(("1", 5), ("2", 10))
        assert [t.reward_id for t in compute_due_tiers(catalog, 12, {"1"})] == ["2"]

    def test_threshold_is_inclusive(self):
        assert [t.reward_id for t in compute_due_tiers(tiers(("1", 5)), 5, set())] == ["1"]

    def test_non_uniform_thresholds(self):
        catalog = tiers(("starter", 3), ("gold", 7), ("x", 100))
        assert [t.reward_id for t in compute_due_tiers(catalog, 7, set())] == ["starter", "gold"]


class TestCalculateProgress:
    """Tests for calculate_progress function"""

    def test_mid_step(self):
        progress = calculate_progress(7, 5)
        assert (progress.next_threshold, progress.remaining) == (10, 3)

    def test_exact_multiple_points_to_next_step(self):
        progress = calculate_progress(10, 5)
        assert (progress.next_threshold, progress.remaining) == (15, 5)

    def test_zero_invites(self):
        progress = calculate_progress(0, 5)
        assert (progress.next_threshold, progress.remaining) == (5, 5)

    def test_invalid_step(self):
        with pytest.raises(ValueError):
            calculate_progress(3, 0)


class TestDefaultThreshold:
    """Tests for default_threshold function"""

    def test_numeric_id_scales_with_step(self):
        assert default_threshold("3", 5) == 15

    def test_non_numeric_id_uses_step(self):
        assert default_threshold("bonus", 5) == 5

    def test_zero_id_uses_step(self):
        assert default_threshold("0", 5) == 5


def test_reward_caption():
    tier = RewardTier(reward_id="2", file_id="f", threshold=10)
    assert reward_caption(tier) == "🎁 Reward #2 (Reached 10 invites)"


class TestRewardCatalog:
    """Tests for RewardCatalog"""

    @pytest.mark.asyncio
    async def test_list_is_ascending_by_threshold(self, fake_db):
        fake_db.add_reward("b", "fb", 20)
        fake_db.add_reward("a", "fa", 3)
        fake_db.add_reward("c", "fc", 3)

        result = await RewardCatalog().list_tiers()

        assert [(t.reward_id, t.threshold) for t in result] == [("a", 3), ("c", 3), ("b", 20)]

    @pytest.mark.asyncio
    async def test_register_replaces_existing_tier(self, fake_db):
        catalog = RewardCatalog()
        await catalog.register_tier("1", "old-file", 5)

        tier = await catalog.register_tier("1", "new-file", 6)

        assert tier == RewardTier("1", "new-file", 6)
        assert len(await catalog.list_tiers()) == 1

    @pytest.mark.asyncio
    async def test_register_rejects_threshold_below_one(self, fake_db):
        with pytest.raises(InvalidRewardTierError):
            await RewardCatalog().register_tier("1", "file", 0)
        assert fake_db.rewards == {}


class TestDispatchDueRewards:
    """Tests for dispatch_due_rewards function"""

    @pytest.mark.asyncio
    async def test_delivers_every_reached_tier_in_order(self, fake_db, mock_bot):
        seed_tiers(fake_db)
        profile = seed_inviter(fake_db, 12)

        result = await dispatch_due_rewards(mock_bot, profile)

        assert result.delivered == ["1", "2"]
        assert result.failed == []
        assert sent_files(mock_bot) == ["file-1", "file-2"]
        assert fake_db.users[INVITER]["rewards_claimed"] == ["1", "2"]
        assert mock_bot.send_document.await_args_list[0].kwargs["caption"] == "🎁 Reward #1 (Reached 5 invites)"

    @pytest.mark.asyncio
    async def test_failed_tier_stays_unclaimed_and_is_retried(self, fake_db, mock_bot):
        seed_tiers(fake_db)
        profile = seed_inviter(fake_db, 12)

        async def send_document(chat_id, file_id, caption=None):
            if file_id == "file-1":
                raise TelegramForbiddenError(method=MagicMock(), message="Forbidden: bot was blocked by the user")
            return MagicMock()

        mock_bot.send_document = AsyncMock(side_effect=send_document)
        first = await dispatch_due_rewards(mock_bot, profile)

        assert first.delivered == ["2"]
        assert first.failed == ["1"]
        assert fake_db.users[INVITER]["rewards_claimed"] == ["2"]

        mock_bot.send_document = AsyncMock(return_value=MagicMock())
        second = await dispatch_due_rewards(mock_bot, profile)

        assert second.delivered == ["1"]
        assert sent_files(mock_bot) == ["file-1"]
        assert fake_db.users[INVITER]["rewards_claimed"] == ["1", "2"]

    @pytest.mark.asyncio
    async def test_nothing_due_sends_nothing(self, fake_db, mock_bot):
        seed_tiers(fake_db)
        profile = seed_inviter(fake_db, 12, claimed=["1", "2"])

        result = await dispatch_due_rewards(mock_bot, profile)

        assert result.attempted == 0
        mock_bot.send_document.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stale_profile_does_not_resend_claimed_tier(self, fake_db, mock_bot):
        seed_tiers(fake_db)
        stale = seed_inviter(fake_db, 5)
        fake_db.users[INVITER]["rewards_claimed"] = ["1"]

        result = await dispatch_due_rewards(mock_bot, stale)

        assert result.attempted == 0
        mock_bot.send_document.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_concurrent_passes_deliver_each_tier_once(self, fake_db, mock_bot):
        seed_tiers(fake_db)
        profile = seed_inviter(fake_db, 12)

        await asyncio.gather(*(dispatch_due_rewards(mock_bot, profile) for _ in range(4)))

        assert sorted(sent_files(mock_bot)) == ["file-1", "file-2"]

    @pytest.mark.asyncio
    async def test_claimed_set_never_shrinks(self, fake_db, mock_bot):
        fake_db.add_reward("1", "file-1", 5)
        # "legacy" is no longer in the catalog but stays claimed
        profile = seed_inviter(fake_db, 6, claimed=["legacy"])

        await dispatch_due_rewards(mock_bot, profile)

        assert fake_db.users[INVITER]["rewards_claimed"] == ["1", "legacy"]
