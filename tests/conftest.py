"""Shared fixtures for the test suite"""

import asyncio
import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from core.registry import SubscriberRegistry
from core.snapshot_store import SnapshotStore
from core.time_utils import BERLIN_TZ
from schemas.availability import AvailabilitySnapshot
from services.berlin_service import BerlinService

SERVICE_PAGE_URL = "https://service.berlin.de/dienstleistung/120686/"
CONTACT_EMAIL = "watcher@example.com"
SCRIPT_ID = "test-script"


def berlin_time(*args) -> datetime:
    return BERLIN_TZ.localize(datetime(*args))


def slot_href(moment: datetime) -> str:
    return f"/terminvereinbarung/termin/time/{int(moment.timestamp())}/"


def build_page(*hrefs: str, extra: str = "") -> str:
    """Appointments calendar page with one bookable cell per href"""
    cells = "".join(f'<td class="buchbar"><a href="{href}">{i + 1}</a></td>' for i, href in enumerate(hrefs))
    return (
        "<html><body><div class='calendar-month-table'><table><tbody><tr>"
        f'<td class="nichtbuchbar">1</td>{cells}{extra}'
        "</tr></tbody></table></div></body></html>"
    )


class FakeConnection:
    """Stands in for a WebSocket in registry tests"""

    def __init__(self, fail: bool = False, delay: float = 0):
        self.fail = fail
        self.delay = delay
        self.messages = []

    async def send_text(self, data: str) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("connection closed")
        self.messages.append(json.loads(data))


class SteppingClock:
    """Clock that advances one minute per call"""

    def __init__(self, start: datetime = datetime(2026, 10, 18, 8, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        self.current = self.current + timedelta(minutes=1)
        return self.current


@pytest.fixture
def store():
    return SnapshotStore(AvailabilitySnapshot(observed_at=datetime(2026, 10, 18, 7, 0, tzinfo=timezone.utc)))


@pytest.fixture
def registry():
    return SubscriberRegistry(send_timeout=0.5)


@pytest.fixture
def clock():
    return SteppingClock()


@pytest.fixture
def mock_upstream():
    """Route BerlinService requests to a handler instead of the network"""
    def install(handler):
        BerlinService._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    yield install
    BerlinService._client = None
