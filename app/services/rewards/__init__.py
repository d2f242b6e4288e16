"""
Reward Service Layer

Reward catalog, progress computation and per-tier isolated dispatch.
"""

from app.services.rewards.service import (
    RewardTier,
    RewardCatalog,
    DispatchResult,
    Progress,
    compute_due_tiers,
    calculate_progress,
    default_threshold,
    dispatch_due_rewards,
    reward_caption,
)

from app.services.rewards.exceptions import (
    RewardServiceError,
    InvalidRewardTierError,
)

__all__ = [
    "RewardTier",
    "RewardCatalog",
    "DispatchResult",
    "Progress",
    "compute_due_tiers",
    "calculate_progress",
    "default_threshold",
    "dispatch_due_rewards",
    "reward_caption",
    "RewardServiceError",
    "InvalidRewardTierError",
]
