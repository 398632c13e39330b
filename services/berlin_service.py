import httpx
import logging
from datetime import datetime
from typing import Dict, List, Optional

from config.settings import settings
from core.logging_utils import get_structured_logger
from core.time_utils import first_day_of_next_month, now_utc
from core.validators import extract_service_id
from services.appointment_parser import parse_appointment_dates

logger = logging.getLogger(__name__)
structured_logger = get_structured_logger(__name__)


class UpstreamFetchError(Exception):
    """Raised when the appointment pages could not be fetched from Berlin.de"""


class BerlinService:
    """Service for fetching appointment pages from service.berlin.de"""

    BERLIN_API_BASE = settings.BERLIN_API_BASE
    _client: Optional[httpx.AsyncClient] = None

    @classmethod
    async def get_client(cls) -> httpx.AsyncClient:
        """Get or create shared HTTP client with connection pooling"""
        if cls._client is None:
            cls._client = httpx.AsyncClient(
                timeout=float(settings.REQUEST_TIMEOUT),
                follow_redirects=True,
                limits=httpx.Limits(max_keepalive_connections=2, max_connections=4)
            )
        return cls._client

    @classmethod
    async def close_client(cls):
        """Close shared HTTP client"""
        if cls._client is not None:
            await cls._client.aclose()
            cls._client = None

    @staticmethod
    def get_headers(email: str, script_id: str) -> Dict[str, str]:
        """Headers sent with every request; the User-Agent identifies us to the Berlin.de team"""
        return {
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Upgrade-Insecure-Requests": "1",
            "User-Agent": (
                f"Mozilla/5.0 AppointmentBookingTool/{settings.APP_VERSION} "
                f"({settings.PROJECT_URL}; {email}; {script_id})"
            ),
            "Accept-Language": "en-gb",
            "Accept-Encoding": "gzip, deflate",
            "Connection": "keep-alive",
        }

    @staticmethod
    def get_appointments_url(service_page_url: str) -> str:
        """Appointments page for the service behind a service page URL"""
        service_id = extract_service_id(service_page_url)
        return f"{BerlinService.BERLIN_API_BASE}/all/{service_id}/"

    @staticmethod
    def get_next_month_url(today: Optional[datetime] = None) -> str:
        """Appointments page starting on the first day of next month.

        Berlin.de paginates by calendar month, so the default page only
        covers the current month.
        """
        next_month = first_day_of_next_month(today or now_utc())
        return f"{BerlinService.BERLIN_API_BASE}/day/{int(next_month.timestamp())}/"

    @staticmethod
    async def fetch_page(url: str, headers: Dict[str, str], page_name: str) -> str:
        """Fetch one appointments page, raising UpstreamFetchError on any transport failure"""
        structured_logger.debug("Fetching appointments page", page=page_name, url=url, headers=headers)

        try:
            client = await BerlinService.get_client()
            response = await client.get(url, headers=headers)
            response.raise_for_status()
            body = response.text
        except httpx.TimeoutException as e:
            raise UpstreamFetchError(f"timed out fetching appointments {page_name}: {e!r}") from e
        except httpx.HTTPStatusError as e:
            raise UpstreamFetchError(
                f"error fetching appointments {page_name}: "
                f"{e.response.status_code} {e.response.reason_phrase}"
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise UpstreamFetchError(f"error fetching appointments {page_name}: {e!r}") from e

        structured_logger.debug(
            "Fetched appointments page",
            page=page_name,
            status_code=response.status_code,
            content_length=len(body)
        )
        return body

    @staticmethod
    async def fetch_appointments(
            service_page_url: str,
            email: str,
            script_id: str = "",
            today: Optional[datetime] = None
    ) -> List[datetime]:
        """Fetch the bookable appointments for this month and next month.

        Either page failing fails the whole fetch; no partial results are
        returned. Dates keep upstream order, page 1 first.
        """
        headers = BerlinService.get_headers(email, script_id)

        try:
            appointments_url = BerlinService.get_appointments_url(service_page_url)
        except ValueError as e:
            raise UpstreamFetchError(f"invalid service page URL: {e}") from e
        next_month_url = BerlinService.get_next_month_url(today)

        page1 = await BerlinService.fetch_page(appointments_url, headers, "page 1")
        page2 = await BerlinService.fetch_page(next_month_url, headers, "page 2")

        appointments = parse_appointment_dates(page1) + parse_appointment_dates(page2)

        structured_logger.info(
            "Fetched appointments",
            service_page_url=service_page_url,
            email=email,
            appointment_count=len(appointments)
        )
        return appointments
