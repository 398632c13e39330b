"""Tests for the snapshot store and the wire format"""

import threading
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from conftest import berlin_time
from core.snapshot_store import SnapshotStore
from schemas.availability import AvailabilitySnapshot, SnapshotStatus

T0 = datetime(2026, 10, 18, 8, 0, tzinfo=timezone.utc)
SLOT = berlin_time(2026, 11, 3, 9, 30)


def snapshot(minutes: int, slots=(), status=SnapshotStatus.OK, message="") -> AvailabilitySnapshot:
    return AvailabilitySnapshot(
        observed_at=T0 + timedelta(minutes=minutes),
        status=status,
        slots=slots,
        message=message,
    )


class TestSnapshotStore:
    """Test read/replace and the last-found carry-forward"""

    def test_initial_snapshot_is_empty_and_ok(self):
        current = SnapshotStore().read()

        assert current.status == SnapshotStatus.OK
        assert current.slots == ()
        assert current.message == ""
        assert current.last_slots_found_at is None

    def test_last_found_unset_until_slots_appear(self, store):
        assert store.replace(snapshot(1)).last_slots_found_at is None
        assert store.replace(snapshot(2, status=SnapshotStatus.UPSTREAM_UNAVAILABLE)).last_slots_found_at is None

        installed = store.replace(snapshot(3, slots=[SLOT]))

        assert installed.last_slots_found_at == T0 + timedelta(minutes=3)

    def test_last_found_carried_forward_on_empty(self, store):
        store.replace(snapshot(1, slots=[SLOT]))

        installed = store.replace(snapshot(2))

        assert installed.slots == ()
        assert installed.last_slots_found_at == T0 + timedelta(minutes=1)
        assert store.read() == installed

    def test_last_found_never_moves_backwards(self, store):
        store.replace(snapshot(10, slots=[SLOT]))

        installed = store.replace(snapshot(5, slots=[SLOT]))

        assert installed.last_slots_found_at == T0 + timedelta(minutes=10)

    def test_incoming_last_found_is_ignored(self, store):
        """Only replace() decides last_slots_found_at"""
        incoming = snapshot(1).model_copy(update={"last_slots_found_at": T0})

        assert store.replace(incoming).last_slots_found_at is None

    def test_snapshots_are_immutable(self, store):
        current = store.read()

        with pytest.raises(ValidationError):
            current.message = "changed"

    def test_concurrent_readers_never_see_torn_state(self, store):
        """Every snapshot read pairs slots and status from the same replace"""
        stop = threading.Event()
        torn = []

        def reader():
            while not stop.is_set():
                current = store.read()
                if current.has_slots != (current.status == SnapshotStatus.OK):
                    torn.append(current)

        store.replace(snapshot(0, slots=[SLOT]))
        threads = [threading.Thread(target=reader) for _ in range(4)]
        for thread in threads:
            thread.start()

        for minute in range(1, 500):
            if minute % 2:
                store.replace(snapshot(minute, status=SnapshotStatus.UPSTREAM_UNAVAILABLE, message="down"))
            else:
                store.replace(snapshot(minute, slots=[SLOT]))

        stop.set()
        for thread in threads:
            thread.join()

        assert torn == []


class TestAvailabilityMessage:
    """Test the JSON sent to subscribers"""

    def test_ok_message(self, store):
        installed = store.replace(snapshot(1, slots=[SLOT]))

        message = installed.to_message().model_dump(by_alias=True)

        assert message == {
            "time": "2026-10-18T08:01:00Z",
            "status": 200,
            "appointmentDates": ["2026-11-03T09:30:00+01:00"],
            "message": "",
            "lastAppointmentsFoundOn": "2026-10-18T10:01:00+02:00",
        }

    def test_upstream_unavailable_message(self, store):
        installed = store.replace(snapshot(
            1, status=SnapshotStatus.UPSTREAM_UNAVAILABLE, message="Could not fetch results from Berlin.de - boom"
        ))

        message = installed.to_message().model_dump(by_alias=True)

        assert message["status"] == 502
        assert message["appointmentDates"] == []
        assert message["message"].startswith("Could not fetch results")
        assert message["lastAppointmentsFoundOn"] is None

    def test_json_uses_camel_case(self):
        payload = snapshot(0).to_json()

        assert '"appointmentDates":[]' in payload
        assert '"lastAppointmentsFoundOn":null' in payload
