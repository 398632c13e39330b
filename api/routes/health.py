import time
from datetime import datetime, timezone
from fastapi import APIRouter, Depends

from schemas.availability import HealthResponse
from config.settings import settings
from core.registry import SubscriberRegistry
from core.scheduler import scheduler_service
from core.snapshot_store import SnapshotStore
from core.time_utils import format_service_time, format_utc
from api.routes.appointments import get_snapshot_store, get_subscriber_registry

router = APIRouter(tags=["health"])

# Store startup time for uptime calculation
_startup_time = time.time()

@router.get("/", response_model=dict)
async def root():
    """Root endpoint"""
    return {"message": f"{settings.APP_NAME} is running"}

@router.get("/health", response_model=HealthResponse)
async def health_check(
        store: SnapshotStore = Depends(get_snapshot_store),
        registry: SubscriberRegistry = Depends(get_subscriber_registry)
):
    """Health check with scheduler, subscriber and snapshot status"""
    snapshot = store.read()
    scheduler_running = scheduler_service.is_running()

    return HealthResponse(
        status="healthy" if scheduler_running else "degraded",
        scheduler_running=scheduler_running,
        poller_state=scheduler_service.poller_state(),
        subscribers=len(registry),
        snapshot_status=snapshot.status,
        snapshot_time=format_utc(snapshot.observed_at),
        appointments_available=len(snapshot.slots),
        last_appointments_found_on=(
            format_service_time(snapshot.last_slots_found_at) if snapshot.last_slots_found_at else None
        ),
        app_version=settings.APP_VERSION,
        uptime_seconds=time.time() - _startup_time,
        timestamp=datetime.now(timezone.utc).isoformat()
    )
