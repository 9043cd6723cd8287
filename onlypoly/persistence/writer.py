"""
Write-behind queue for room snapshots.

Handlers request a save after every mutation and carry on; a background
task writes the newest snapshot in a worker thread. Requests made while a
write is in flight coalesce into one follow-up write. A failed write is
retried with exponential backoff until it lands or a newer snapshot
replaces it.
"""

import asyncio
import logging
from typing import Any

from onlypoly.persistence.repository import RoomRepository


logger = logging.getLogger(__name__)


class SnapshotWriter:
    """Serializes snapshot writes for one room."""

    def __init__(
        self,
        repository: RoomRepository,
        room_id: str,
        retry_delay: float = 0.5,
        max_retry_delay: float = 30.0
    ):
        self.repository = repository
        self.room_id = room_id
        self.retry_delay = retry_delay
        self.max_retry_delay = max_retry_delay
        self._backoff = retry_delay
        self._pending: dict[str, Any] | None = None
        self._requested = 0
        self._written = 0
        self._wakeup = asyncio.Event()
        self._lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

    @property
    def is_dirty(self) -> bool:
        """True while a requested snapshot has not been written yet."""
        return self._written < self._requested

    @property
    def writes_requested(self) -> int:
        return self._requested

    @property
    def writes_completed(self) -> int:
        return self._written

    def request_save(self, snapshot: dict[str, Any]) -> None:
        """Queue a snapshot, replacing any older one not yet written."""
        self._pending = snapshot
        self._requested += 1
        self._wakeup.set()

    async def flush(self) -> bool:
        """
        Wait until the latest requested snapshot is durable.

        Returns:
            False if the write failed
        """
        await self._write_pending()
        return not self.is_dirty

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Write anything outstanding and stop the background task."""
        await self.flush()
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _run(self) -> None:
        while True:
            await self._wakeup.wait()
            self._wakeup.clear()
            if await self._write_pending():
                self._backoff = self.retry_delay
                continue

            # Failed write stays pending; try again after a growing pause
            await asyncio.sleep(self._backoff)
            self._backoff = min(self._backoff * 2, self.max_retry_delay)
            self._wakeup.set()

    async def _write_pending(self) -> bool:
        """
        Write the newest pending snapshot, if any.

        Returns:
            False if the write failed
        """
        async with self._lock:
            if self._pending is None:
                return True

            snapshot, version = self._pending, self._requested
            self._pending = None

            try:
                await asyncio.to_thread(self.repository.save_room, self.room_id, snapshot)
            except Exception as e:
                logger.error(f"Failed to save room {self.room_id}: {e}")
                # Keep it for the next attempt unless something newer arrived
                if self._pending is None:
                    self._pending = snapshot
                return False

            self._written = max(self._written, version)
            logger.debug(f"Saved room {self.room_id} (snapshot {version})")
            return True
