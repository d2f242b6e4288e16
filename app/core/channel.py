"""
Channel identity.

A channel is addressed either by its public @username or by its numeric id.
The configured CHANNEL_ID is resolved once at startup into a ChannelRef and
compared structurally with the refs derived from each incoming update.
"""
from dataclasses import dataclass
from typing import Any, Tuple, Union

from app.core.exceptions import ConfigurationError


@dataclass(frozen=True)
class PublicHandle:
    """Public channel username, stored lower-case without the leading @"""
    name: str

    def as_chat_id(self) -> str:
        return f"@{self.name}"


@dataclass(frozen=True)
class NumericId:
    """Numeric chat id (e.g. -1001234567890)"""
    value: int

    def as_chat_id(self) -> int:
        return self.value


ChannelRef = Union[PublicHandle, NumericId]


def parse_channel_ref(raw: str) -> ChannelRef:
    """
    Resolve a configured channel identity.

    "@WallSwipe" -> PublicHandle("wallswipe"), "-100123" -> NumericId(-100123).

    Raises:
        ConfigurationError: if the value is neither form
    """
    value = (raw or "").strip()
    if value.startswith("@"):
        name = value[1:]
        if not name:
            raise ConfigurationError("CHANNEL_ID '@' must be followed by a channel username")
        return PublicHandle(name.lower())
    try:
        return NumericId(int(value))
    except ValueError:
        raise ConfigurationError(
            f"CHANNEL_ID must be '@username' or a numeric chat id, got: {raw!r}"
        ) from None


def channel_refs_from_chat(chat: Any) -> Tuple[ChannelRef, ...]:
    """
    Every ref under which an update's chat can be addressed.

    Works with aiogram's Chat or any object exposing `id` and `username`.
    """
    refs = []
    chat_id = getattr(chat, "id", None)
    if chat_id is not None:
        refs.append(NumericId(int(chat_id)))
    username = getattr(chat, "username", None)
    if username:
        refs.append(PublicHandle(username.lstrip("@").lower()))
    return tuple(refs)


def channel_matches(configured: ChannelRef, event_refs: Tuple[ChannelRef, ...]) -> bool:
    return configured in event_refs
