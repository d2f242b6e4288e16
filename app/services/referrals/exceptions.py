"""
Referral Service Domain Exceptions
"""
from app.core.exceptions import InviteBotError


class ReferralServiceError(InviteBotError):
    """Base exception for referral attribution errors"""
    pass


class DuplicateAttributionError(ReferralServiceError):
    """Raised when the joined user already has a referral record.

    Expected outcome of the uniqueness check, not a failure.
    """

    def __init__(self, joined_user_id: int):
        super().__init__(f"user {joined_user_id} is already attributed")
        self.joined_user_id = joined_user_id
