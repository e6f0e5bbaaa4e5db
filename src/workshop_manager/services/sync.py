"""Periodic pull of the remote snapshot."""

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field

from workshop_manager.services.store import EMPTY_SNAPSHOT, SyncStatus, WorkshopStore

logger = logging.getLogger(__name__)


@dataclass
class SnapshotPoller:
    """Re-fetches the remote snapshot on a fixed interval while visible.

    A fetched snapshot replaces local state wholesale (last write wins). An
    empty remote store is seeded with the local state.
    """

    store: WorkshopStore
    interval_seconds: float
    visible: bool = True
    _task: asyncio.Task[None] | None = field(default=None, repr=False)

    async def poll_once(self) -> SyncStatus:
        """Fetch once and update the store; return the resulting status."""
        if not self.visible:
            self.store.status = SyncStatus.OFFLINE
            return self.store.status

        self.store.status = SyncStatus.SYNCING
        snapshot = await asyncio.to_thread(self.store.repository.fetch_snapshot)
        if snapshot is None:
            logger.warning("Snapshot fetch failed")
            self.store.status = SyncStatus.ERROR
        elif snapshot is EMPTY_SNAPSHOT:
            logger.info("Remote store is empty; pushing local snapshot")
            self.store.push()
            await self.store.flush()
        else:
            self.store.replace(snapshot)
            self.store.status = SyncStatus.ONLINE
        return self.store.status

    async def run(self) -> None:
        """Poll until cancelled."""
        while True:
            try:
                await self.poll_once()
            except Exception:
                logger.exception("Snapshot poll crashed")
                self.store.status = SyncStatus.ERROR
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        """Start polling in the running event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run())

    async def stop(self) -> None:
        """Stop polling and wait for the task to exit."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    def set_visible(self, visible: bool) -> None:
        """Gate polling on whether the client is in the foreground."""
        self.visible = visible
        if not visible:
            self.store.status = SyncStatus.OFFLINE
