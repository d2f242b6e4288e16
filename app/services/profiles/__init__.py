"""
Profile Service Layer

Inviter profile model and lookups.
"""

from app.services.profiles.service import (
    InviterProfile,
    ensure_profile,
    find_profile,
    parse_user_query,
)

from app.services.profiles.exceptions import (
    ProfileServiceError,
    ProfileNotFoundError,
    InvalidUserQueryError,
)

__all__ = [
    "InviterProfile",
    "ensure_profile",
    "find_profile",
    "parse_user_query",
    "ProfileServiceError",
    "ProfileNotFoundError",
    "InvalidUserQueryError",
]
