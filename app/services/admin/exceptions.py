"""
Admin Service Domain Exceptions

All exceptions raised by the admin service layer.
"""
from app.core.exceptions import InviteBotError, ValidationError


class AdminServiceError(InviteBotError):
    """Base exception for admin service errors"""
    pass


class InvalidRewardCommandError(AdminServiceError, ValidationError):
    """Raised when /reward arguments are malformed"""
    pass


# ====================================================================================
# Reward upload session errors
# ====================================================================================

class UploadSessionError(AdminServiceError):
    """Base exception for reward upload session errors"""
    pass


class NoUploadSessionError(UploadSessionError):
    """Raised when a payload arrives while no /reward upload is open"""
    pass


class NotAnArchiveError(UploadSessionError):
    """Raised when the uploaded document is not a ZIP archive (session stays open)"""
    pass
