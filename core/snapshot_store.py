"""In-memory holder of the current availability snapshot"""

import logging
import threading
from typing import Optional

from schemas.availability import AvailabilitySnapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Holds exactly one current AvailabilitySnapshot.

    Snapshots are immutable and swapped wholesale under a lock, so readers
    never see a mix of old and new fields. The lock is never held across an
    ``await``, which keeps it safe to use from the event loop.
    """

    def __init__(self, initial: Optional[AvailabilitySnapshot] = None):
        self._current = initial or AvailabilitySnapshot.initial()
        self._lock = threading.Lock()

    def read(self) -> AvailabilitySnapshot:
        """Return the current snapshot"""
        with self._lock:
            return self._current

    def replace(self, snapshot: AvailabilitySnapshot) -> AvailabilitySnapshot:
        """Install ``snapshot`` as the current one and return what was installed.

        ``last_slots_found_at`` is derived here from the previous snapshot:
        it moves to the new observation time when the new snapshot has slots
        and is carried forward unchanged when it has none.
        """
        with self._lock:
            previous = self._current.last_slots_found_at
            if snapshot.has_slots:
                found_at = snapshot.observed_at
                if previous is not None and previous > found_at:
                    found_at = previous
            else:
                found_at = previous

            installed = snapshot.model_copy(update={"last_slots_found_at": found_at})
            self._current = installed

        logger.debug(
            f"Installed snapshot status={installed.status.value} slots={len(installed.slots)} "
            f"last_slots_found_at={installed.last_slots_found_at}"
        )
        return installed


# Global snapshot store instance
snapshot_store = SnapshotStore()
