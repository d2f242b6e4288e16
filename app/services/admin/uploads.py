"""
Admin reward upload sessions.

/reward <id> [threshold] opens a session for the admin; the next ZIP document
the admin uploads becomes the tier's payload. A session lives until it is
completed, cancelled, or replaced by a new /reward from the same admin. There
is no timeout.

Sessions live in the aiogram FSM storage under the admin's private-chat key:
MemoryStorage for a single process, RedisStorage when instances share state.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from aiogram.fsm.state import State, StatesGroup
from aiogram.fsm.storage.base import BaseStorage, StorageKey

from app.services.admin.exceptions import (
    InvalidRewardCommandError,
    NoUploadSessionError,
    NotAnArchiveError,
)
from app.services.rewards import RewardCatalog, RewardTier, default_threshold

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSIONS = (".zip",)


class AdminRewardUpload(StatesGroup):
    """/reward <id> [threshold] announced, waiting for the ZIP document"""
    waiting_for_file = State()


@dataclass(frozen=True)
class PendingUpload:
    reward_id: str
    threshold: int


@dataclass(frozen=True)
class RewardUpload:
    """Uploaded document as seen by the session (transport-independent)"""
    file_id: str
    file_name: Optional[str] = None
    mime_type: Optional[str] = None


def is_archive(upload: RewardUpload) -> bool:
    if upload.mime_type and "zip" in upload.mime_type.lower():
        return True
    if upload.file_name and upload.file_name.lower().endswith(ARCHIVE_EXTENSIONS):
        return True
    return False


def parse_reward_command(args: List[str], step: int) -> PendingUpload:
    """
    Parse "/reward <id> [threshold]" arguments.

    Raises:
        InvalidRewardCommandError: missing id, or threshold not an integer >= 1
    """
    if not args or not args[0].strip():
        raise InvalidRewardCommandError("reward id is required")
    reward_id = args[0].strip()

    if len(args) < 2:
        return PendingUpload(reward_id, default_threshold(reward_id, step))

    try:
        threshold = int(args[1])
    except ValueError:
        raise InvalidRewardCommandError(f"threshold must be an integer, got {args[1]!r}") from None
    if threshold < 1:
        raise InvalidRewardCommandError(f"threshold must be >= 1, got {threshold}")
    return PendingUpload(reward_id, threshold)


class RewardUploadSessions:
    """Per-admin upload session store"""

    def __init__(self, storage: BaseStorage, bot_id: int, catalog: Optional[RewardCatalog] = None):
        self._storage = storage
        self._bot_id = bot_id
        self._catalog = catalog or RewardCatalog()

    def _key(self, admin_id: int) -> StorageKey:
        return StorageKey(bot_id=self._bot_id, chat_id=admin_id, user_id=admin_id)

    async def get_pending(self, admin_id: int) -> Optional[PendingUpload]:
        key = self._key(admin_id)
        if await self._storage.get_state(key) != AdminRewardUpload.waiting_for_file.state:
            return None
        data = await self._storage.get_data(key)
        return PendingUpload(reward_id=data["reward_id"], threshold=int(data["threshold"]))

    async def begin_upload(self, admin_id: int, args: List[str], step: int) -> PendingUpload:
        """
        Open (or replace) the admin's upload session.

        Raises:
            InvalidRewardCommandError: malformed arguments; an open session is kept
        """
        pending = parse_reward_command(args, step)
        key = self._key(admin_id)
        await self._storage.set_state(key, AdminRewardUpload.waiting_for_file)
        await self._storage.set_data(key, {"reward_id": pending.reward_id, "threshold": pending.threshold})
        logger.info(
            f"REWARD_UPLOAD_STARTED [admin={admin_id}, reward_id={pending.reward_id}, "
            f"threshold={pending.threshold}]"
        )
        return pending

    async def submit_payload(self, admin_id: int, upload: RewardUpload) -> RewardTier:
        """
        Bind the uploaded archive to the pending tier and close the session.

        Raises:
            NoUploadSessionError: no session is open for this admin
            NotAnArchiveError: the document is not a ZIP; the session stays open
        """
        pending = await self.get_pending(admin_id)
        if pending is None:
            raise NoUploadSessionError(str(admin_id))
        if not is_archive(upload):
            raise NotAnArchiveError(upload.file_name or upload.mime_type or "unknown")

        tier = await self._catalog.register_tier(pending.reward_id, upload.file_id, pending.threshold)
        await self.cancel_upload(admin_id)
        return tier

    async def cancel_upload(self, admin_id: int) -> bool:
        """Close the admin's session. Returns False when none was open."""
        key = self._key(admin_id)
        was_open = await self._storage.get_state(key) is not None
        await self._storage.set_state(key, None)
        await self._storage.set_data(key, {})
        return was_open
