"""
Unit tests for inviter profiles.
"""
import pytest

from app.services.profiles import (
    InvalidUserQueryError,
    InviterProfile,
    ProfileNotFoundError,
    ensure_profile,
    find_profile,
    parse_user_query,
)


class TestParseUserQuery:
    """Tests for parse_user_query function"""

    def test_username(self):
        assert parse_user_query("@Alice") == {"username": "Alice"}

    def test_numeric_id(self):
        assert parse_user_query(" 12345 ") == {"telegram_id": 12345}

    @pytest.mark.parametrize("value", ["", "@", "alice"])
    def test_invalid(self, value):
        with pytest.raises(InvalidUserQueryError):
            parse_user_query(value)


class TestEnsureProfile:
    """Tests for ensure_profile function"""

    @pytest.mark.asyncio
    async def test_creates_then_refreshes_username(self, fake_db):
        first = await ensure_profile(111, "alice")
        second = await ensure_profile(111, "alice_new")

        assert first.invites_count == 0
        assert first.invite_link is None
        assert second.username == "alice_new"
        assert len(fake_db.users) == 1


class TestFindProfile:
    """Tests for find_profile function"""

    @pytest.mark.asyncio
    async def test_by_username_case_insensitive(self, fake_db):
        fake_db.add_user(111, "Alice", invited_users=[5, 6])

        profile = await find_profile("@alice")

        assert profile.telegram_id == 111
        assert profile.invites_count == 2

    @pytest.mark.asyncio
    async def test_not_found(self, fake_db):
        with pytest.raises(ProfileNotFoundError):
            await find_profile("777")


def test_display_name_falls_back_to_id():
    assert InviterProfile(telegram_id=5).display_name == "5"
    assert InviterProfile(telegram_id=5, username="bob").display_name == "@bob"
