import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

import asyncpg

import config
from app.utils.retry import retry_async

logger = logging.getLogger(__name__)

# ====================================================================================
# SAFE STARTUP GUARD: database readiness flag
# ====================================================================================
# Set once init_db() has created the pool and applied every migration.
# Handlers check it through ensure_db_ready() before touching the database.
# ====================================================================================
DB_READY: bool = False

_pool: Optional[asyncpg.Pool] = None


def _database_url() -> str:
    return config.get_settings().database_url


def _get_pool_config() -> dict:
    """asyncpg.create_pool kwargs. Single source of truth for all pool creation."""
    return {
        "min_size": int(config.env("DB_POOL_MIN_SIZE", default="1")),
        "max_size": int(config.env("DB_POOL_MAX_SIZE", default="10")),
        "max_inactive_connection_lifetime": 300,
        "timeout": 10,
        "command_timeout": 30,
    }


async def get_pool() -> asyncpg.Pool:
    """
    Get the connection pool, creating it when needed.

    Pool creation is retried once on transient errors only.

    Raises:
        RuntimeError: if the pool cannot be created
    """
    global _pool
    if _pool is None:
        pool_config = _get_pool_config()
        _pool = await retry_async(
            lambda: asyncpg.create_pool(_database_url(), **pool_config),
            retries=1,
            base_delay=0.5,
            max_delay=5.0,
        )
        if _pool is None:
            raise RuntimeError("Database pool is not available")
        logger.info(
            "DB_POOL_CONFIG min=%s max=%s acquire_timeout=%s command_timeout=%s",
            pool_config["min_size"], pool_config["max_size"],
            pool_config["timeout"], pool_config["command_timeout"],
        )
    return _pool


async def close_pool():
    global _pool, DB_READY
    if _pool:
        await _pool.close()
        _pool = None
        DB_READY = False
        logger.info("Database connection pool closed")


def ensure_db_ready() -> bool:
    """
    Usage:
        if not ensure_db_ready():
            return
    """
    if not DB_READY:
        logger.warning("Database not ready - operation rejected")
        return False
    return True


async def init_db() -> bool:
    """
    Probe connectivity, create the pool and apply migrations.

    Idempotent: returns immediately once DB_READY is set.

    Returns:
        True on success, False if any step failed (logged).
    """
    global DB_READY

    if DB_READY:
        logger.info("Database already initialized (DB_READY=True), skipping init")
        return True

    try:
        conn = await retry_async(lambda: asyncpg.connect(_database_url()), retries=2, base_delay=1.0)
        await conn.execute("SELECT 1")
        await conn.close()
        logger.info("DB connectivity probe successful")
    except Exception as e:
        logger.error(f"DB connectivity probe failed: {type(e).__name__}: {e}")
        return False

    try:
        pool = await get_pool()
    except Exception as e:
        logger.error(f"Failed to create database pool: {e}")
        return False

    await asyncio.sleep(0)

    import migrations
    if not await migrations.run_migrations_safe(pool):
        logger.error("Migration execution failed")
        return False

    DB_READY = True
    logger.info("DB_READY=True")
    return True


def _row(row: Optional[asyncpg.Record]) -> Optional[Dict[str, Any]]:
    return dict(row) if row else None


# ====================================================================================
# INVITER PROFILES
# ====================================================================================

async def upsert_user(telegram_id: int, username: Optional[str] = None) -> Dict[str, Any]:
    """
    Create the profile on first interaction, refresh the display name afterwards.

    Returns:
        The stored profile row
    """
    pool = await get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            """INSERT INTO users (telegram_id, username)
               VALUES ($1, $2)
               ON CONFLICT (telegram_id) DO UPDATE
               SET username = EXCLUDED.username
               RETURNING *""",
            telegram_id, username
        )
        return dict(row)


async def get_user(telegram_id: int) -> Optional[Dict[str, Any]]:
    pool = await get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow("SELECT * FROM users WHERE telegram_id = $1", telegram_id)
        return _row(row)


async def find_user_by_id_or_username(
    telegram_id: Optional[int] = None,
    username: Optional[str] = None
) -> Optional[Dict[str, Any]]:
    """
    Find a profile by Telegram ID or username (without @, case-insensitive).

    telegram_id wins when both are given.
    """
    pool = await get_pool()
    async with pool.acquire() as conn:
        if telegram_id is not None:
            row = await conn.fetchrow("SELECT * FROM users WHERE telegram_id = $1", telegram_id)
            return _row(row)
        if username is not None:
            row = await conn.fetchrow(
                "SELECT * FROM users WHERE LOWER(username) = LOWER($1)", username
            )
            return _row(row)
        return None


async def find_user_by_invite_link(invite_link: str) -> Optional[Dict[str, Any]]:
    pool = await get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow("SELECT * FROM users WHERE invite_link = $1", invite_link)
        return _row(row)


async def claim_invite_link(telegram_id: int, invite_link: str) -> Optional[str]:
    """
    Bind an invite link to a profile exactly once.

    The UPDATE only matches while invite_link IS NULL, so concurrent first-time
    requests cannot both win.

    Returns:
        The link stored on the profile after the call (ours if we won the
        claim, the earlier one otherwise), None if the profile does not exist.
    """
    pool = await get_pool()
    async with pool.acquire() as conn:
        claimed = await conn.fetchval(
            """UPDATE users SET invite_link = $2
               WHERE telegram_id = $1 AND invite_link IS NULL
               RETURNING invite_link""",
            telegram_id, invite_link
        )
        if claimed is not None:
            return claimed
        return await conn.fetchval(
            "SELECT invite_link FROM users WHERE telegram_id = $1", telegram_id
        )


async def add_claimed_rewards(telegram_id: int, reward_ids: Iterable[str]) -> Optional[Dict[str, Any]]:
    """
    Merge reward ids into rewards_claimed (set union, never removes ids).

    Returns:
        Updated profile row, None if the profile does not exist
    """
    ids = list(reward_ids)
    pool = await get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            """UPDATE users
               SET rewards_claimed = ARRAY(
                   SELECT DISTINCT claimed
                   FROM unnest(rewards_claimed || $2::text[]) AS claimed
                   ORDER BY claimed
               )
               WHERE telegram_id = $1
               RETURNING *""",
            telegram_id, ids
        )
        return _row(row)


async def get_top_inviters(limit: int) -> List[Dict[str, Any]]:
    """Leaderboard: every profile, most invites first, zero counts included."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch(
            """SELECT telegram_id, username, invites_count FROM users
               ORDER BY invites_count DESC, created_at ASC, telegram_id ASC
               LIMIT $1""",
            limit
        )
        return [dict(r) for r in rows]


async def get_all_user_ids() -> List[int]:
    pool = await get_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch("SELECT telegram_id FROM users ORDER BY created_at ASC")
        return [r["telegram_id"] for r in rows]


async def get_stats() -> Dict[str, int]:
    """Totals for the admin /stats command."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            """SELECT
                   (SELECT COUNT(*) FROM users) AS total_users,
                   (SELECT COUNT(*) FROM referrals) AS total_referrals,
                   (SELECT COUNT(*) FROM users WHERE invites_count > 0) AS active_inviters,
                   (SELECT COUNT(*) FROM rewards) AS total_rewards"""
        )
        return {key: int(value or 0) for key, value in dict(row).items()}


# ====================================================================================
# REFERRAL LEDGER
# ====================================================================================

async def attribute_referral(
    joined_user_id: int,
    inviter_user_id: int,
    chat_id: Optional[int] = None
) -> Optional[Dict[str, Any]]:
    """
    Record the attribution and credit the inviter in one transaction.

    The ledger insert relies on the UNIQUE (joined_user_id) constraint, so two
    concurrent attributions of the same joiner cannot both succeed. The
    invited_users append and the invites_count recompute are one statement.
    Either both writes commit or neither does: a failed credit leaves no
    ledger record behind and the event can be processed again.

    Returns:
        Updated inviter row, None if the joiner was already attributed

    Raises:
        asyncpg.PostgresError / RuntimeError: on database failure or a missing
            inviter profile (the transaction is rolled back)
    """
    pool = await get_pool()
    async with pool.acquire() as conn:
        async with conn.transaction():
            inserted = await conn.fetchval(
                """INSERT INTO referrals (joined_user_id, inviter_user_id, chat_id)
                   VALUES ($1, $2, $3)
                   ON CONFLICT (joined_user_id) DO NOTHING
                   RETURNING id""",
                joined_user_id, inviter_user_id, chat_id
            )
            if inserted is None:
                return None

            row = await conn.fetchrow(
                """UPDATE users
                   SET invited_users = CASE
                           WHEN $2::bigint = ANY(invited_users) THEN invited_users
                           ELSE array_append(invited_users, $2::bigint)
                       END,
                       invites_count = cardinality(invited_users)
                           + CASE WHEN $2::bigint = ANY(invited_users) THEN 0 ELSE 1 END
                   WHERE telegram_id = $1
                   RETURNING *""",
                inviter_user_id, joined_user_id
            )
            if row is None:
                raise RuntimeError(f"inviter {inviter_user_id} not found while crediting {joined_user_id}")
            return dict(row)


# ====================================================================================
# REWARD CATALOG
# ====================================================================================

async def get_rewards() -> List[Dict[str, Any]]:
    """All reward tiers, ascending by threshold (ties by id)."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch(
            "SELECT reward_id, file_id, threshold FROM rewards ORDER BY threshold ASC, reward_id ASC"
        )
        return [dict(r) for r in rows]


async def upsert_reward(reward_id: str, file_id: str, threshold: int) -> Dict[str, Any]:
    """Register a tier, or replace file_id and threshold of an existing one."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            """INSERT INTO rewards (reward_id, file_id, threshold)
               VALUES ($1, $2, $3)
               ON CONFLICT (reward_id) DO UPDATE
               SET file_id = EXCLUDED.file_id,
                   threshold = EXCLUDED.threshold,
                   updated_at = CURRENT_TIMESTAMP
               RETURNING reward_id, file_id, threshold""",
            reward_id, file_id, threshold
        )
        return dict(row)
