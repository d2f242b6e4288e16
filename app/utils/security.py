"""
Authorization guards and input helpers for trust boundaries.
"""

import logging
from typing import Optional

import config

logger = logging.getLogger(__name__)

MAX_USERNAME_LENGTH = 64


def is_admin(telegram_id: Optional[int]) -> bool:
    """Fail closed: unknown sender is never an admin."""
    if telegram_id is None:
        return False
    return telegram_id == config.get_settings().admin_telegram_id


def require_admin(telegram_id: Optional[int], action: str) -> bool:
    """
    Admin guard for admin-only commands.

    Non-admins get no reply and cause no state change; the attempt is logged.
    """
    if not is_admin(telegram_id):
        logger.warning(f"[SECURITY_WARNING] Unauthorized admin action: action={action} telegram_id={telegram_id}")
        return False
    return True


def sanitize_username(username: Optional[str]) -> Optional[str]:
    """Trim to the column budget; None stays None."""
    if not username:
        return None
    return username.strip()[:MAX_USERNAME_LENGTH] or None
