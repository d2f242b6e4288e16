"""
Referral Service Layer

Exactly-once attribution of channel joins to inviters.
"""

from app.services.referrals.service import (
    JoinEvent,
    JoinOutcome,
    JoinResult,
    MEMBER_STATUSES,
    is_join_transition,
    process_join_event,
    record_attribution,
)

from app.services.referrals.exceptions import (
    ReferralServiceError,
    DuplicateAttributionError,
)

__all__ = [
    "JoinEvent",
    "JoinOutcome",
    "JoinResult",
    "MEMBER_STATUSES",
    "is_join_transition",
    "process_join_event",
    "record_attribution",
    "ReferralServiceError",
    "DuplicateAttributionError",
]
