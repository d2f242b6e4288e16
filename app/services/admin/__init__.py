"""
Admin Service Layer

Reward upload sessions and admin command parsing.
"""

from app.services.admin.uploads import (
    AdminRewardUpload,
    PendingUpload,
    RewardUpload,
    RewardUploadSessions,
    is_archive,
    parse_reward_command,
)

from app.services.admin.exceptions import (
    AdminServiceError,
    InvalidRewardCommandError,
    UploadSessionError,
    NoUploadSessionError,
    NotAnArchiveError,
)

__all__ = [
    "AdminRewardUpload",
    "PendingUpload",
    "RewardUpload",
    "RewardUploadSessions",
    "is_archive",
    "parse_reward_command",
    "AdminServiceError",
    "InvalidRewardCommandError",
    "UploadSessionError",
    "NoUploadSessionError",
    "NotAnArchiveError",
]
