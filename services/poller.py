import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from config.settings import settings
from core.notifier import Notifier, NullNotifier
from core.registry import SubscriberRegistry
from core.snapshot_store import SnapshotStore
from core.time_utils import format_service_time, now_utc
from schemas.availability import AvailabilitySnapshot, SnapshotStatus
from services.berlin_service import BerlinService, UpstreamFetchError

logger = logging.getLogger(__name__)

Fetcher = Callable[[str, str, str], Awaitable[List[datetime]]]


class PollState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    MERGING = "merging"
    BROADCASTING = "broadcasting"
    SLEEPING = "sleeping"


class AvailabilityPoller:
    """Runs one fetch -> merge -> broadcast cycle per scheduler tick.

    Upstream failures never escape a cycle: they become an
    ``upstreamUnavailable`` snapshot that is stored and broadcast like any
    other, and the next tick is the retry.
    """

    def __init__(
            self,
            store: SnapshotStore,
            registry: SubscriberRegistry,
            service_page_url: str,
            email: str,
            script_id: str = "",
            quiet: bool = False,
            notifier: Optional[Notifier] = None,
            fetcher: Fetcher = BerlinService.fetch_appointments,
            clock: Callable[[], datetime] = now_utc,
            notify_timeout: float = settings.NOTIFY_TIMEOUT
    ):
        self.store = store
        self.registry = registry
        self.service_page_url = service_page_url
        self.email = email
        self.script_id = script_id
        self.quiet = quiet
        self.notifier = notifier or NullNotifier()
        self.fetcher = fetcher
        self.clock = clock
        self.notify_timeout = notify_timeout
        self.state = PollState.IDLE
        self.cycles = 0

    def wake(self) -> None:
        """Leave the sleeping state once the wait between cycles is over"""
        if self.state == PollState.SLEEPING:
            self.state = PollState.IDLE

    async def run_cycle(self) -> AvailabilitySnapshot:
        """Run one poll cycle and return the snapshot that was installed and broadcast"""
        self.state = PollState.FETCHING
        previous = self.store.read()

        try:
            slots = await self.fetcher(self.service_page_url, self.email, self.script_id)
            status, message = SnapshotStatus.OK, ""
            logger.info(f"Found {len(slots)} appointments: {[format_service_time(s) for s in slots]}")
        except UpstreamFetchError as e:
            slots = []
            status, message = SnapshotStatus.UPSTREAM_UNAVAILABLE, f"Could not fetch results from Berlin.de - {e}"
            logger.error(message)

        self.state = PollState.MERGING
        installed = self.store.replace(AvailabilitySnapshot(
            observed_at=self.clock(),
            status=status,
            slots=slots,
            message=message,
        ))

        if installed.has_slots and not previous.has_slots:
            await self._notify(installed)

        self.state = PollState.BROADCASTING
        await self.registry.broadcast(installed)

        self.cycles += 1
        self.state = PollState.SLEEPING
        return installed

    async def _notify(self, snapshot: AvailabilitySnapshot) -> None:
        if self.quiet:
            logger.debug("Quiet mode, skipping appointment notification")
            return

        try:
            await asyncio.wait_for(self.notifier.notify(snapshot.slots), timeout=self.notify_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Appointment notification timed out after {self.notify_timeout}s")
        except Exception as e:
            logger.error(f"Appointment notification failed: {str(e)}")
