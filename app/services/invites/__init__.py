"""
Invite Link Service Layer
"""

from app.services.invites.service import get_or_create_invite_link, invite_link_name
from app.services.invites.exceptions import InviteServiceError, InviteLinkPermissionError

__all__ = [
    "get_or_create_invite_link",
    "invite_link_name",
    "InviteServiceError",
    "InviteLinkPermissionError",
]
