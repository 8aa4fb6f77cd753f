import asyncio
from datetime import datetime, timezone
from typing import Callable, Optional

from app.core.logging_config import get_logger
from app.services.valuation_service import PriceLookup

logger = get_logger(__name__)


class PriceRefresher:
    """
    Periodically refreshes a price snapshot in the background.

    At most one fetch is in flight at a time: a tick that fires while the
    previous fetch is still running is skipped, not queued. Each completed
    fetch replaces the snapshot wholesale. After stop() no further result
    is applied.
    """

    def __init__(self, fetch: Callable[[], PriceLookup], interval_seconds: float = 120):
        self._fetch = fetch
        self.interval_seconds = interval_seconds
        self._snapshot: PriceLookup = {}
        self._refreshed_at: Optional[datetime] = None
        self._in_flight = False
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def snapshot(self) -> PriceLookup:
        return self._snapshot

    @property
    def refreshed_at(self) -> Optional[datetime]:
        return self._refreshed_at

    @property
    def is_running(self) -> bool:
        return self._running

    async def refresh(self) -> bool:
        """Run one fetch. Returns False if skipped or failed."""
        if self._in_flight:
            logger.info("Price refresh already in flight, skipping tick")
            return False

        self._in_flight = True
        try:
            lookup = await asyncio.to_thread(self._fetch)
        except Exception as e:
            # Keep serving the previous snapshot
            logger.error("Price refresh failed: %s", type(e).__name__)
            return False
        finally:
            self._in_flight = False

        if not self._running and self._task is not None:
            # Stopped while the fetch was in flight
            return False

        self._snapshot = dict(lookup)
        self._refreshed_at = datetime.now(timezone.utc)
        logger.info("Price snapshot refreshed", extra={"symbol_count": len(self._snapshot)})
        return True

    async def _run_loop(self) -> None:
        while self._running:
            try:
                await self.refresh()
                await asyncio.sleep(self.interval_seconds)
            except asyncio.CancelledError:
                self._running = False
                break

    def start(self) -> None:
        """Start refreshing on the running event loop (first fetch immediately)."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Price refresher started", extra={"interval_seconds": self.interval_seconds})

    async def stop(self) -> None:
        """Cancel the timer and wait for the loop to exit."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("Price refresher stopped")
