import logging
from fastapi import APIRouter, Depends, WebSocket

from core.registry import SubscriberRegistry, subscriber_registry
from core.snapshot_store import SnapshotStore, snapshot_store
from schemas.availability import AvailabilityMessage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["appointments"])


def get_snapshot_store() -> SnapshotStore:
    return snapshot_store


def get_subscriber_registry() -> SubscriberRegistry:
    return subscriber_registry


@router.get("/appointments", response_model=AvailabilityMessage)
async def get_appointments(store: SnapshotStore = Depends(get_snapshot_store)):
    """Current availability snapshot, same shape as the WebSocket messages"""
    return store.read().to_message()


@router.websocket("/")
async def appointments_feed(
        websocket: WebSocket,
        store: SnapshotStore = Depends(get_snapshot_store),
        registry: SubscriberRegistry = Depends(get_subscriber_registry)
):
    """Send the current snapshot on connect, then every new snapshot until the client disconnects"""
    await websocket.accept()

    if not await registry.register(websocket, replay=store.read):
        logger.warning("Could not send the latest results to new subscriber, closing")
        return

    try:
        # Incoming messages are ignored, reading only tells us when the client leaves
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        await registry.unregister(websocket)
