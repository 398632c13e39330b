"""Shared validation utilities for the application"""

import re
from urllib.parse import urlparse

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_and_clean_string(value: str, field_name: str) -> str:
    """Validate and clean string field"""
    if not value or not value.strip():
        raise ValueError(f'{field_name} cannot be empty')
    return value.strip()


def validate_contact_email(email: str) -> str:
    """Validate the contact email sent along with every upstream request"""
    email = validate_and_clean_string(email, 'Contact email')
    if not _EMAIL_PATTERN.match(email):
        raise ValueError(f'Contact email is not a valid address: {email!r}')
    return email


def extract_service_id(service_page_url: str) -> str:
    """Return the service ID, i.e. the last path segment of a service page URL"""
    url = validate_and_clean_string(service_page_url, 'Service page URL')
    path = urlparse(url).path.rstrip('/')
    service_id = path.rsplit('/', 1)[-1]
    if not service_id.isdigit():
        raise ValueError(f'Service page URL does not end with a service ID: {url!r}')
    return service_id


def validate_service_page_url(service_page_url: str) -> str:
    """Validate a service.berlin.de service page URL"""
    url = validate_and_clean_string(service_page_url, 'Service page URL')
    parsed = urlparse(url)
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise ValueError(f'Service page URL must be an absolute http(s) URL: {url!r}')
    extract_service_id(url)
    return url
