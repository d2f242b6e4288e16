"""
Integration tests for the persistence guarantees in database.py.

1. attribute_referral: ledger insert and credit share one transaction
2. Against PostgreSQL (TEST_DATABASE_URL): unique ledger, counter invariant,
   claim-once invite link, set-union claimed rewards, leaderboard order
"""
import asyncio
import dataclasses
import os
import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import asyncpg

import config
import database
import migrations

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "")


def mock_pool(conn):
    tx_ctx = MagicMock()
    tx_ctx.__aenter__ = AsyncMock(return_value=conn)
    tx_ctx.__aexit__ = AsyncMock(return_value=None)
    conn.transaction = MagicMock(return_value=tx_ctx)

    acq = MagicMock()
    acq.__aenter__ = AsyncMock(return_value=conn)
    acq.__aexit__ = AsyncMock(return_value=None)
    pool = MagicMock()
    pool.acquire.return_value = acq
    return pool, tx_ctx


class TestAttributeReferralTransaction:
    """Both writes run inside conn.transaction()"""

    @pytest.mark.asyncio
    async def test_insert_and_credit_in_one_transaction(self):
        conn = MagicMock()
        conn.fetchval = AsyncMock(return_value=1)
        conn.fetchrow = AsyncMock(return_value={"telegram_id": 111, "invited_users": [222], "invites_count": 1})
        pool, tx_ctx = mock_pool(conn)

        with patch("database.get_pool", AsyncMock(return_value=pool)):
            row = await database.attribute_referral(222, 111, -100)

        assert row["invites_count"] == 1
        tx_ctx.__aenter__.assert_awaited_once()
        assert "INSERT INTO referrals" in conn.fetchval.await_args.args[0]
        assert "UPDATE users" in conn.fetchrow.await_args.args[0]
        tx_ctx.__aexit__.assert_awaited_once_with(None, None, None)

    @pytest.mark.asyncio
    async def test_conflict_skips_credit(self):
        conn = MagicMock()
        conn.fetchval = AsyncMock(return_value=None)
        conn.fetchrow = AsyncMock()
        pool, _ = mock_pool(conn)

        with patch("database.get_pool", AsyncMock(return_value=pool)):
            assert await database.attribute_referral(222, 111) is None

        conn.fetchrow.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_credit_failure_leaves_the_transaction_with_the_error(self):
        conn = MagicMock()
        conn.fetchval = AsyncMock(return_value=1)
        conn.fetchrow = AsyncMock(side_effect=asyncpg.PostgresError("connection lost"))
        pool, tx_ctx = mock_pool(conn)

        with patch("database.get_pool", AsyncMock(return_value=pool)):
            with pytest.raises(asyncpg.PostgresError):
                await database.attribute_referral(222, 111)

        # asyncpg rolls back when the block exits with an exception
        exc_type = tx_ctx.__aexit__.await_args.args[0]
        assert exc_type is asyncpg.PostgresError


# ====================================================================================
# Against a real PostgreSQL database
# ====================================================================================

requires_postgres = pytest.mark.skipif(not TEST_DATABASE_URL, reason="TEST_DATABASE_URL is not set")


@pytest_asyncio.fixture
async def pg(settings):
    """Fresh schema on the test database, module pool pointed at it"""
    config.set_settings(dataclasses.replace(settings, database_url=TEST_DATABASE_URL))
    conn = await asyncpg.connect(TEST_DATABASE_URL)
    try:
        await conn.execute(
            "DROP TABLE IF EXISTS referrals, rewards, users, schema_migrations CASCADE"
        )
    finally:
        await conn.close()

    database._pool = None
    pool = await database.get_pool()
    assert await migrations.run_migrations_safe(pool)
    yield pool
    await database.close_pool()


@pytest.mark.integration
@requires_postgres
class TestPostgresGuarantees:

    @pytest.mark.asyncio
    async def test_concurrent_attribution_credits_once(self, pg):
        await database.upsert_user(111, "alice")

        rows = await asyncio.gather(*(database.attribute_referral(222, 111) for _ in range(5)))

        assert sum(1 for r in rows if r is not None) == 1
        user = await database.get_user(111)
        assert user["invited_users"] == [222]
        assert user["invites_count"] == 1

    @pytest.mark.asyncio
    async def test_missing_inviter_rolls_back_ledger_insert(self, pg):
        with pytest.raises(RuntimeError):
            await database.attribute_referral(222, 999)

        stats = await database.get_stats()
        assert stats["total_referrals"] == 0

    @pytest.mark.asyncio
    async def test_count_tracks_invited_set(self, pg):
        await database.upsert_user(111)
        for joined in (1, 2, 3):
            await database.attribute_referral(joined, 111)

        user = await database.get_user(111)
        assert user["invites_count"] == len(user["invited_users"]) == 3

    @pytest.mark.asyncio
    async def test_invite_link_is_claimed_once(self, pg):
        await database.upsert_user(111)

        stored = await asyncio.gather(
            database.claim_invite_link(111, "https://t.me/+a"),
            database.claim_invite_link(111, "https://t.me/+b"),
        )

        assert stored[0] == stored[1]
        assert (await database.get_user(111))["invite_link"] == stored[0]

    @pytest.mark.asyncio
    async def test_claimed_rewards_are_a_growing_set(self, pg):
        await database.upsert_user(111)
        await database.add_claimed_rewards(111, ["2", "1"])
        await database.add_claimed_rewards(111, ["1", "3"])

        user = await database.get_user(111)
        assert sorted(user["rewards_claimed"]) == ["1", "2", "3"]

    @pytest.mark.asyncio
    async def test_reward_upsert_replaces_and_lists_ascending(self, pg):
        await database.upsert_reward("b", "file-b", 10)
        await database.upsert_reward("a", "file-a", 20)
        await database.upsert_reward("a", "file-a2", 5)

        rewards = await database.get_rewards()
        assert [(r["reward_id"], r["file_id"], r["threshold"]) for r in rewards] == [
            ("a", "file-a2", 5),
            ("b", "file-b", 10),
        ]

    @pytest.mark.asyncio
    async def test_leaderboard_includes_zero_counts(self, pg):
        await database.upsert_user(1, "first")
        await database.upsert_user(2, "second")
        await database.attribute_referral(50, 2)

        top = await database.get_top_inviters(10)
        assert [(r["telegram_id"], r["invites_count"]) for r in top] == [(2, 1), (1, 0)]
