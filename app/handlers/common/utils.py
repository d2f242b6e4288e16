"""
Shared handler utilities: argument parsing and display helpers.
"""
import html
from typing import List, Optional

from aiogram.types import Message

from app.core.channel import ChannelRef, PublicHandle

CHANNEL_FALLBACK_NAME = "our channel"


def command_args(message: Message) -> List[str]:
    """Whitespace-separated arguments after the command word."""
    parts = (message.text or "").split()
    return parts[1:]


def command_tail(message: Message) -> str:
    """Everything after the command word, line breaks of the body kept."""
    parts = (message.text or "").split(maxsplit=1)
    return parts[1].strip() if len(parts) > 1 else ""


def channel_display(channel: ChannelRef) -> str:
    if isinstance(channel, PublicHandle):
        return channel.as_chat_id()
    return CHANNEL_FALLBACK_NAME


def html_name(value: Optional[str]) -> str:
    return html.escape(value or "")
