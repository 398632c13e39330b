"""Tests for parsing appointment pages"""

from conftest import berlin_time, build_page, slot_href
from core.time_utils import format_service_time
from services.appointment_parser import parse_appointment_dates


class TestParseAppointmentDates:
    """Test extracting bookable slots from appointment pages"""

    def test_page_without_bookable_cells_is_empty(self):
        """A page with no bookable links means no appointments, not a failure"""
        assert parse_appointment_dates(build_page()) == []

    def test_empty_document_is_empty(self):
        assert parse_appointment_dates("") == []

    def test_valid_links_in_document_order(self):
        later = berlin_time(2026, 11, 20, 14, 0)
        earlier = berlin_time(2026, 11, 3, 9, 30)

        dates = parse_appointment_dates(build_page(slot_href(later), slot_href(earlier)))

        assert dates == [later, earlier]

    def test_malformed_links_are_skipped(self):
        """N valid links plus M malformed ones yield exactly N dates"""
        first = berlin_time(2026, 11, 3, 9, 30)
        second = berlin_time(2026, 11, 4, 10, 0)
        page = build_page(
            slot_href(first),
            "/terminvereinbarung/termin/time/not-a-number/",
            "",
            slot_href(second),
            "/terminvereinbarung/termin/time/99999999999999999999999/",
            extra='<td class="buchbar"><a>no href</a></td>',
        )

        assert parse_appointment_dates(page) == [first, second]

    def test_links_outside_bookable_cells_are_ignored(self):
        slot = berlin_time(2026, 11, 3, 9, 30)
        page = build_page(extra=f'<td class="nichtbuchbar"><a href="{slot_href(slot)}">3</a></td>')

        assert parse_appointment_dates(page) == []

    def test_href_without_trailing_slash(self):
        slot = berlin_time(2026, 11, 3, 9, 30)
        href = slot_href(slot).rstrip("/")

        assert parse_appointment_dates(build_page(href)) == [slot]

    def test_dates_are_in_berlin_time(self):
        """Timestamps render with the Berlin offset, CET in winter and CEST in summer"""
        winter = berlin_time(2026, 11, 3, 9, 30)
        summer = berlin_time(2027, 6, 1, 9, 30)

        dates = parse_appointment_dates(build_page(slot_href(winter), slot_href(summer)))

        assert [format_service_time(d) for d in dates] == [
            "2026-11-03T09:30:00+01:00",
            "2027-06-01T09:30:00+02:00",
        ]

    def test_accepts_bytes(self):
        slot = berlin_time(2026, 11, 3, 9, 30)

        assert parse_appointment_dates(build_page(slot_href(slot)).encode("utf-8")) == [slot]

    def test_broken_markup_does_not_raise(self):
        assert parse_appointment_dates("<html><td class='buchbar'><a href=") == []
