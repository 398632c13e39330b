from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from core.time_utils import format_service_time, format_utc, now_utc


class SnapshotStatus(str, Enum):
    """Outcome of one poll cycle"""
    OK = "ok"
    UPSTREAM_UNAVAILABLE = "upstreamUnavailable"

    @property
    def http_status(self) -> int:
        return 200 if self is SnapshotStatus.OK else 502


class AvailabilityMessage(BaseModel):
    """Schema for the JSON message pushed to subscribers"""
    model_config = ConfigDict(populate_by_name=True)

    time: str
    status: int
    appointment_dates: List[str] = Field(alias="appointmentDates")
    message: str
    last_appointments_found_on: Optional[str] = Field(alias="lastAppointmentsFoundOn")


class AvailabilitySnapshot(BaseModel):
    """Immutable picture of availability at one point in time"""
    model_config = ConfigDict(frozen=True)

    observed_at: datetime
    status: SnapshotStatus = SnapshotStatus.OK
    slots: Tuple[datetime, ...] = ()
    message: str = ""
    last_slots_found_at: Optional[datetime] = None

    @classmethod
    def initial(cls) -> "AvailabilitySnapshot":
        """Empty snapshot installed at process start"""
        return cls(observed_at=now_utc())

    @property
    def has_slots(self) -> bool:
        return len(self.slots) > 0

    def to_message(self) -> AvailabilityMessage:
        return AvailabilityMessage(
            time=format_utc(self.observed_at),
            status=self.status.http_status,
            appointment_dates=[format_service_time(slot) for slot in self.slots],
            message=self.message,
            last_appointments_found_on=(
                format_service_time(self.last_slots_found_at) if self.last_slots_found_at else None
            ),
        )

    def to_json(self) -> str:
        """Wire representation sent over the WebSocket"""
        return self.to_message().model_dump_json(by_alias=True)


class HealthResponse(BaseModel):
    """Schema for health check response"""
    status: str
    scheduler_running: bool
    poller_state: str
    subscribers: int
    snapshot_status: SnapshotStatus
    snapshot_time: str
    appointments_available: int
    last_appointments_found_on: Optional[str] = None
    app_version: str
    uptime_seconds: Optional[float] = None
    timestamp: str
    error: Optional[str] = None
