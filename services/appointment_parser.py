import logging
from datetime import datetime
from typing import List, Optional, Union

from bs4 import BeautifulSoup

from core.time_utils import from_unix_timestamp

logger = logging.getLogger(__name__)

# Links to bookable days sit inside table cells marked "buchbar"
BOOKABLE_SLOT_SELECTOR = "td.buchbar a"


def _timestamp_from_href(href: str) -> Optional[int]:
    """Decode the Unix timestamp in the final path segment of a slot link"""
    last_segment = href.strip().rstrip("/").rsplit("/", 1)[-1]
    try:
        return int(last_segment)
    except ValueError:
        return None


def parse_appointment_dates(page_content: Union[str, bytes]) -> List[datetime]:
    """Return the bookable appointment times on an appointments page, in document order.

    Malformed links are skipped. A page without bookable links yields an
    empty list, as does a page that can't be parsed at all.
    """
    try:
        soup = BeautifulSoup(page_content, "html.parser")
        links = soup.select(BOOKABLE_SLOT_SELECTOR)
    except Exception as e:
        logger.error(f"Error parsing appointments page: {str(e)}")
        return []

    appointment_dates = []
    for link in links:
        href = link.get("href")
        if not href:
            continue

        timestamp = _timestamp_from_href(href)
        if timestamp is None:
            logger.debug(f"Skipping slot link without a timestamp: {href}")
            continue

        try:
            appointment_dates.append(from_unix_timestamp(timestamp))
        except (OverflowError, OSError, ValueError):
            logger.debug(f"Skipping slot link with out of range timestamp: {href}")

    return appointment_dates
