import asyncio
import logging
import os
import sys
import uuid

# Configure logging FIRST (before any other imports that may log)
# Routes INFO/WARNING → stdout, ERROR/CRITICAL → stderr for correct container classification
from app.core.logging_config import setup_logging
setup_logging()

from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.base import BaseStorage
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.fsm.storage.redis import RedisStorage
from aiogram.types import BotCommand
import config
import database
from app.core.channel import parse_channel_ref
from app.core.concurrency_middleware import ConcurrencyLimiterMiddleware
from app.core.exceptions import ConfigurationError
from app.core.structured_logger import log_event
from app.core.telegram_error_middleware import TelegramErrorBoundaryMiddleware
from app.handlers import router as root_router
from app.services.admin import RewardUploadSessions

# ====================================================================================
# LOGGING CONTRACT
# ====================================================================================
# Standard log fields (app.core.structured_logger.log_event):
# - component        (handler / service / infra / polling / shutdown)
# - operation        (what is happening)
# - correlation_id   (update id, join event, broadcast run)
# - outcome          (success | degraded | failed)
# - reason           (short, non-PII explanation)
#
# SECURITY: never log BOT_TOKEN, DATABASE_URL or file ids of reward archives.
# ====================================================================================

logger = logging.getLogger(__name__)

DB_RETRY_INTERVAL = 30  # seconds

# Polling receives only what the handlers need. chat_member must be requested
# explicitly: Telegram does not send it by default.
ALLOWED_UPDATES = ["message", "chat_member"]

BOT_COMMANDS = [
    BotCommand(command="start", description="Start the bot"),
    BotCommand(command="link", description="Get your personal invite link"),
    BotCommand(command="myinvites", description="Your invites and next reward"),
    BotCommand(command="rewards", description="Rewards you have unlocked"),
    BotCommand(command="top", description="Top inviters"),
    BotCommand(command="help", description="How it works"),
]


def build_storage(settings: config.Settings) -> BaseStorage:
    """FSM storage for admin upload sessions: redis when configured, memory otherwise."""
    if settings.redis_url:
        logger.info("FSM_STORAGE=redis")
        return RedisStorage.from_url(settings.redis_url)
    logger.info("FSM_STORAGE=memory")
    return MemoryStorage()


async def retry_db_init():
    """
    Re-run init_db() every DB_RETRY_INTERVAL seconds until it succeeds.

    Handlers answer "service unavailable" while DB_READY is False.
    """
    logger.info("Starting DB initialization retry task (every %s seconds)", DB_RETRY_INTERVAL)
    while not database.DB_READY:
        await asyncio.sleep(DB_RETRY_INTERVAL)
        try:
            if await database.init_db():
                log_event(logger, component="infra", operation="db_recovery", outcome="success")
                break
            logger.warning("Database initialization retry failed, will retry later")
        except Exception as e:
            logger.warning(f"Database initialization retry error: {type(e).__name__}: {e}")
            logger.debug("Full retry error details:", exc_info=True)
    logger.info("DB retry task finished")


async def main():
    try:
        settings = config.load_settings()
        channel = parse_channel_ref(settings.channel_id)
    except ConfigurationError as e:
        logger.critical("CONFIGURATION_ERROR %s", e)
        sys.exit(1)
    config.set_settings(settings)
    setup_logging(settings.log_level)

    instance_id = os.getenv("POLLING_INSTANCE_ID", str(uuid.uuid4()))
    logger.info("BOT_INSTANCE_STARTED pid=%s instance_id=%s", os.getpid(), instance_id)
    logger.info(f"Starting bot in {config.APP_ENV.upper()} environment")
    logger.info(f"Using BOT_TOKEN from {config.APP_ENV.upper()}_BOT_TOKEN")
    logger.info(f"Using DATABASE_URL from {config.APP_ENV.upper()}_DATABASE_URL")
    logger.info(
        "CHANNEL=%s INVITES_PER_REWARD=%s", channel.as_chat_id(), settings.invites_per_reward
    )

    bot = Bot(token=settings.bot_token)
    dp = Dispatcher(storage=build_storage(settings))

    # Injected into handlers by name
    dp["channel"] = channel
    dp["upload_sessions"] = RewardUploadSessions(dp.storage, bot_id=bot.id)

    logger.info("CONCURRENCY_LIMIT=%s", settings.max_concurrent_updates)

    # Register middlewares (order: 1 ConcurrencyLimiter, 2 TelegramErrorBoundary, 3 Routers)
    dp.update.middleware(ConcurrencyLimiterMiddleware(settings.max_concurrent_updates))
    dp.update.middleware(TelegramErrorBoundaryMiddleware())

    dp.include_router(root_router)

    # ====================================================================================
    # SAFE STARTUP GUARD: the bot starts even if the database is unavailable
    # ====================================================================================
    try:
        if await database.init_db():
            logger.info("✅ Database initialized")
        else:
            logger.error("❌ DB INIT FAILED — RUNNING IN DEGRADED MODE")
    except Exception as e:
        logger.exception("❌ DB INIT FAILED — RUNNING IN DEGRADED MODE")
        logger.error(f"Database initialization error: {type(e).__name__}: {e}")
        database.DB_READY = False

    background_tasks = []
    if not database.DB_READY:
        background_tasks.append(asyncio.create_task(retry_db_init()))

    try:
        await bot.set_my_commands(BOT_COMMANDS)
        logger.info("Bot commands registered")
    except Exception as e:
        logger.warning(f"Failed to register bot commands: {e}")

    try:
        await bot.delete_webhook(drop_pending_updates=False)
        log_event(
            logger,
            component="polling",
            operation="polling_start",
            outcome="success" if database.DB_READY else "degraded",
            correlation_id=instance_id,
        )
        await dp.start_polling(bot, allowed_updates=ALLOWED_UPDATES, polling_timeout=30)
    finally:
        log_event(logger, component="shutdown", operation="shutdown_start", outcome="success")

        for task in background_tasks:
            if not task.done():
                task.cancel()
        for task in background_tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass

        try:
            await database.close_pool()
        except Exception as e:
            logger.error(f"Error closing database pool: {e}")

        try:
            await dp.storage.close()
        except Exception as e:
            logger.debug(f"Error closing FSM storage: {e}")

        try:
            await bot.session.close()
            logger.info("Bot session closed")
        except Exception as e:
            logger.debug(f"Error closing bot session: {e}")

        log_event(logger, component="shutdown", operation="shutdown_completed", outcome="success")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped")
