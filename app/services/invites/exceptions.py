"""
Invite Link Service Domain Exceptions
"""
from app.core.exceptions import InviteBotError


class InviteServiceError(InviteBotError):
    """Base exception for invite link errors"""
    pass


class InviteLinkPermissionError(InviteServiceError, PermissionError):
    """Raised when the bot is not allowed to create invite links for the channel.

    The bot must be a channel admin with the "Invite users via link" right.
    """
    pass
