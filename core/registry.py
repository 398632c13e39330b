"""Registry of connected live subscribers"""

import asyncio
import logging
from typing import Callable, Optional, Protocol, Set

from config.settings import settings
from schemas.availability import AvailabilitySnapshot

logger = logging.getLogger(__name__)


class Subscriber(Protocol):
    """Anything that can receive a text frame, e.g. a FastAPI WebSocket"""

    async def send_text(self, data: str) -> None:
        ...


class SubscriberRegistry:
    """Tracks connected subscribers and fans snapshots out to them.

    register, unregister and broadcast are serialized by a private lock.
    A registration replay therefore can't be overtaken by a broadcast, and a
    subscriber registering during a broadcast either gets that broadcast or
    is replayed a snapshot at least as fresh.
    """

    def __init__(self, send_timeout: float = settings.BROADCAST_SEND_TIMEOUT):
        self._subscribers: Set[Subscriber] = set()
        self._lock = asyncio.Lock()
        self._send_timeout = send_timeout

    def __len__(self) -> int:
        return len(self._subscribers)

    def __contains__(self, connection: Subscriber) -> bool:
        return connection in self._subscribers

    async def register(
            self,
            connection: Subscriber,
            replay: Optional[Callable[[], AvailabilitySnapshot]] = None
    ) -> bool:
        """Add a connection and, if given, send it the snapshot returned by ``replay``.

        Returns False when the replay could not be delivered; the connection is
        not kept in that case.
        """
        async with self._lock:
            self._subscribers.add(connection)
            logger.info(f"Subscriber registered ({len(self._subscribers)} connected)")

            if replay is None:
                return True

            delivered = await self._send(connection, replay().to_json())
            if not delivered:
                self._subscribers.discard(connection)
            return delivered

    async def unregister(self, connection: Subscriber) -> None:
        """Remove a connection; no-op if it is not registered"""
        async with self._lock:
            if connection in self._subscribers:
                self._subscribers.discard(connection)
                logger.info(f"Subscriber unregistered ({len(self._subscribers)} connected)")

    async def broadcast(self, snapshot: AvailabilitySnapshot) -> int:
        """Send ``snapshot`` to every subscriber and return the number of successful deliveries"""
        payload = snapshot.to_json()

        async with self._lock:
            targets = list(self._subscribers)
            if not targets:
                logger.debug("No subscribers to broadcast to")
                return 0

            results = await asyncio.gather(*(self._send(connection, payload) for connection in targets))

            failed = [connection for connection, delivered in zip(targets, results) if not delivered]
            for connection in failed:
                self._subscribers.discard(connection)

        delivered_count = len(targets) - len(failed)
        if failed:
            logger.warning(f"Dropped {len(failed)} subscribers after failed sends")
        logger.info(f"Broadcast snapshot to {delivered_count}/{len(targets)} subscribers")
        return delivered_count

    async def _send(self, connection: Subscriber, payload: str) -> bool:
        try:
            await asyncio.wait_for(connection.send_text(payload), timeout=self._send_timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning(f"Timed out after {self._send_timeout}s sending to subscriber")
            return False
        except Exception as e:
            logger.warning(f"Error sending to subscriber: {str(e)}")
            return False


# Global subscriber registry instance
subscriber_registry = SubscriberRegistry()
