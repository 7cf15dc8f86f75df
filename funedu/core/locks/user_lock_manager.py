"""User lock manager for serializing point-awarding operations"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)


@dataclass
class LockInfo:
    """Information about the current holder of a user lock"""

    locked_at: datetime
    operation: str
    lock_id: str


@dataclass
class _UserLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0  # holders plus waiters
    holder: LockInfo | None = None
    last_used: datetime = field(default_factory=datetime.now)


class UserLockManager:
    """Hands out one asyncio lock per user so that updates to the same
    user's statistics run one at a time while different users proceed
    in parallel."""

    def __init__(self, idle_timeout_minutes: int = 5):
        """
        Initialize the user lock manager

        Args:
            idle_timeout_minutes: Minutes after which unused lock entries are dropped
        """
        self._locks: dict[int, _UserLock] = {}
        self._idle_timeout = timedelta(minutes=idle_timeout_minutes)
        self._cleanup_task: asyncio.Task | None = None

    async def start(self):
        """Start the periodic cleanup task"""
        logger.info("Starting UserLockManager")
        self._cleanup_task = asyncio.create_task(self._periodic_cleanup())

    async def stop(self):
        """Stop the cleanup task"""
        logger.info("Stopping UserLockManager")
        if self._cleanup_task:
            self._cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._cleanup_task
            self._cleanup_task = None

    @contextlib.asynccontextmanager
    async def user_lock(self, user_id: int, operation: str):
        """
        Hold the user's lock for the duration of the block

        Args:
            user_id: Telegram user ID
            operation: Name of operation being serialized

        Yields:
            LockInfo describing this holder
        """
        entry = self._locks.get(user_id)
        if entry is None:
            entry = self._locks[user_id] = _UserLock()
        entry.users += 1

        try:
            if entry.lock.locked():
                logger.debug(
                    f"User {user_id} busy with {entry.holder.operation if entry.holder else '?'}, "
                    f"queuing {operation}"
                )
            async with entry.lock:
                now = datetime.now()
                entry.holder = LockInfo(
                    locked_at=now,
                    operation=operation,
                    lock_id=f"{user_id}_{operation}_{now.timestamp()}",
                )
                logger.debug(f"Acquired lock for user {user_id}, operation: {operation}")
                try:
                    yield entry.holder
                finally:
                    entry.holder = None
                    entry.last_used = datetime.now()
                    logger.debug(f"Released lock for user {user_id}, operation: {operation}")
        finally:
            entry.users -= 1

    def is_locked(self, user_id: int) -> bool:
        """Check if an operation currently holds the user's lock"""
        entry = self._locks.get(user_id)
        return entry is not None and entry.lock.locked()

    def get_lock_info(self, user_id: int) -> LockInfo | None:
        """Get information about the current holder, if any"""
        entry = self._locks.get(user_id)
        return entry.holder if entry else None

    def get_active_locks_count(self) -> int:
        """Get number of currently held locks"""
        return sum(1 for entry in self._locks.values() if entry.lock.locked())

    def get_tracked_users_count(self) -> int:
        """Get number of users with a lock entry"""
        return len(self._locks)

    def _cleanup_idle_locks(self):
        """Drop lock entries nobody holds or waits for"""
        current_time = datetime.now()
        idle_users = [
            user_id
            for user_id, entry in self._locks.items()
            if entry.users == 0 and current_time - entry.last_used > self._idle_timeout
        ]

        for user_id in idle_users:
            del self._locks[user_id]

        if idle_users:
            logger.debug(f"Dropped {len(idle_users)} idle user locks")

    async def _periodic_cleanup(self):
        """Periodic cleanup task that runs every minute"""
        while True:
            try:
                await asyncio.sleep(60)
                self._cleanup_idle_locks()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in periodic cleanup: {e}")
