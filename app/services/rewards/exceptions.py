"""
Reward Service Domain Exceptions
"""
from app.core.exceptions import InviteBotError, ValidationError


class RewardServiceError(InviteBotError):
    """Base exception for reward catalog and dispatch errors"""
    pass


class InvalidRewardTierError(RewardServiceError, ValidationError):
    """Raised when a tier definition is malformed (empty id, threshold < 1)"""
    pass
