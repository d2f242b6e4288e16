"""
Profile Service Domain Exceptions
"""
from app.core.exceptions import InviteBotError, NotFoundError, ValidationError


class ProfileServiceError(InviteBotError):
    """Base exception for profile service errors"""
    pass


class ProfileNotFoundError(ProfileServiceError, NotFoundError):
    """Raised when an admin looks up a user that never interacted with the bot"""
    pass


class InvalidUserQueryError(ProfileServiceError, ValidationError):
    """Raised when /user argument is neither a numeric id nor @username"""
    pass
