"""
Inviter profiles.

A profile is created on the first interaction with the bot and never deleted.
invites_count is derived from invited_users by the persistence layer and is
never written independently.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional

import database
from app.services.profiles.exceptions import InvalidUserQueryError, ProfileNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InviterProfile:
    telegram_id: int
    username: Optional[str] = None
    invite_link: Optional[str] = None
    invited_users: FrozenSet[int] = field(default_factory=frozenset)
    rewards_claimed: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def invites_count(self) -> int:
        return len(self.invited_users)

    @property
    def display_name(self) -> str:
        return f"@{self.username}" if self.username else str(self.telegram_id)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "InviterProfile":
        return cls(
            telegram_id=row["telegram_id"],
            username=row.get("username"),
            invite_link=row.get("invite_link"),
            invited_users=frozenset(row.get("invited_users") or ()),
            rewards_claimed=frozenset(row.get("rewards_claimed") or ()),
        )


async def ensure_profile(telegram_id: int, username: Optional[str] = None) -> InviterProfile:
    """Create the profile if needed and refresh its display name."""
    row = await database.upsert_user(telegram_id, username)
    return InviterProfile.from_row(row)


def parse_user_query(arg: str) -> Dict[str, Any]:
    """
    Parse the /user argument.

    "@name" -> {"username": "name"}, "123" -> {"telegram_id": 123}

    Raises:
        InvalidUserQueryError: on empty or malformed input
    """
    value = (arg or "").strip()
    if not value:
        raise InvalidUserQueryError("empty query")
    if value.startswith("@"):
        username = value[1:].strip()
        if not username:
            raise InvalidUserQueryError("empty username")
        return {"username": username}
    try:
        return {"telegram_id": int(value)}
    except ValueError:
        raise InvalidUserQueryError(f"not a user id or @username: {value!r}") from None


async def find_profile(arg: str) -> InviterProfile:
    """
    Admin lookup by "<id>" or "@username".

    Raises:
        InvalidUserQueryError: malformed argument
        ProfileNotFoundError: no such profile
    """
    query = parse_user_query(arg)
    row = await database.find_user_by_id_or_username(**query)
    if not row:
        raise ProfileNotFoundError(arg)
    return InviterProfile.from_row(row)
