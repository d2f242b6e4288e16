"""
Pytest configuration and shared fixtures for service and handler tests.
"""
import itertools
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import config
from app.core.channel import NumericId
from fakes import FakeDatabase

CHANNEL_ID = -1001234567890
ADMIN_ID = 999

# Every module that talks to the database through `import database`
DATABASE_USERS = (
    "app.services.profiles.service.database",
    "app.services.invites.service.database",
    "app.services.referrals.service.database",
    "app.services.rewards.service.database",
    "broadcast_service.database",
    "app.handlers.admin.base.database",
    "app.handlers.user.referrals.database",
)


@pytest.fixture
def settings():
    """Validated settings with INVITES_PER_REWARD=5"""
    value = config.Settings(
        app_env="local",
        bot_token="123456:TEST",
        channel_id=str(CHANNEL_ID),
        admin_telegram_id=ADMIN_ID,
        invites_per_reward=5,
        database_url="postgresql://localhost/test",
    )
    config.set_settings(value)
    yield value
    config.set_settings(None)


@pytest.fixture
def channel():
    return NumericId(CHANNEL_ID)


@pytest.fixture
def fake_db():
    """In-memory database patched into every service module"""
    db = FakeDatabase()
    patchers = [patch(target, db) for target in DATABASE_USERS]
    for p in patchers:
        p.start()
    yield db
    for p in patchers:
        p.stop()


@pytest.fixture
def mock_bot():
    """Mock aiogram Bot: sends succeed, invite links are unique per call"""
    bot = MagicMock()
    bot.id = 123456
    bot.send_message = AsyncMock(return_value=MagicMock())
    bot.send_document = AsyncMock(return_value=MagicMock())
    bot.revoke_chat_invite_link = AsyncMock()

    counter = itertools.count(1)

    async def create_link(**kwargs):
        return MagicMock(invite_link=f"https://t.me/+link{next(counter)}")

    bot.create_chat_invite_link = AsyncMock(side_effect=create_link)
    return bot


@pytest.fixture
def db_ready(monkeypatch):
    import database
    monkeypatch.setattr(database, "DB_READY", True)


def make_message(user_id: int, text: str = "", chat_type: str = "private", document=None):
    """Mock aiogram Message with an awaitable answer()"""
    message = MagicMock()
    message.text = text
    message.from_user.id = user_id
    message.from_user.username = None
    message.from_user.language_code = "en"
    message.chat.type = chat_type
    message.document = document
    message.answer = AsyncMock()
    return message


@pytest.fixture
def message_factory():
    return make_message
