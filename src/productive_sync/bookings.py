"""
Booking resolution

Fetches a person's bookings for one day and joins each with its service,
deal and company.
"""

import logging
import math
from datetime import date as date_cls
from typing import Optional

import requests

from .models import ResolvedBooking
from .productive_api import ProductiveAPIError, ProductiveClient, related_id

logger = logging.getLogger(__name__)

WORKDAY_MINUTES = 480

METHOD_PER_DAY = 1
METHOD_PERCENTAGE = 2
METHOD_TOTAL_HOURS = 3


class BookingResolutionError(Exception):
    """A booking could not be joined with its related records"""


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _inclusive_days(started_on: Optional[str], ended_on: Optional[str]) -> int:
    try:
        start = date_cls.fromisoformat(str(started_on)[:10])
        end = date_cls.fromisoformat(str(ended_on)[:10])
    except ValueError:
        return 1
    return max(1, (end - start).days + 1)


def booking_time_for_day(attributes: dict) -> int:
    """
    Minutes a booking allocates to a single day

    Methods:
        1: `time` is minutes per day
        2: `percentage` of an 8-hour day (100 when absent)
        3: `total_time` spread evenly over the booking period
    """
    method = attributes.get("booking_method_id")
    time = attributes.get("time")

    if method == METHOD_PER_DAY:
        return int(time or 0)

    if method == METHOD_PERCENTAGE:
        percentage = attributes.get("percentage")
        if percentage is None:
            percentage = 100
        return round_half_up(percentage / 100 * WORKDAY_MINUTES)

    if method == METHOD_TOTAL_HOURS:
        total_time = attributes.get("total_time")
        if not total_time:
            return WORKDAY_MINUTES
        days = _inclusive_days(attributes.get("started_on"), attributes.get("ended_on"))
        return round_half_up(total_time / days)

    return int(time) if time else WORKDAY_MINUTES


class BookingResolver:
    """Joins bookings with their related records, fetching what `included` lacks"""

    def __init__(self, client: ProductiveClient, included: Optional[list[dict]] = None):
        self.client = client
        self._cache: dict[tuple[str, str], dict] = {}
        for resource in included or []:
            self._cache[(resource.get("type"), str(resource.get("id")))] = resource

    def lookup(self, resource_type: str, resource_id: str) -> dict:
        key = (resource_type, resource_id)
        if key not in self._cache:
            self._cache[key] = self.client.get_resource(resource_type, resource_id)
        return self._cache[key]

    def resolve(self, booking: dict) -> ResolvedBooking:
        booking_id = str(booking.get("id"))

        service_id = related_id(booking, "service")
        if not service_id:
            raise BookingResolutionError(f"Booking {booking_id} has no service relationship")
        service = self.lookup("services", service_id)
        service_attrs = service.get("attributes") or {}

        deal_id = related_id(service, "deal")
        deal: dict = {}
        if deal_id:
            deal = self.lookup("deals", deal_id)
        deal_attrs = deal.get("attributes") or {}

        billed_client = None
        company_id = related_id(deal, "company") if deal else None
        if company_id:
            company = self.lookup("companies", company_id)
            billed_client = (company.get("attributes") or {}).get("name")

        project_id = (related_id(deal, "project") if deal else None) or deal_id or service_id
        project_name = deal_attrs.get("name") or service_attrs.get("name") or ""
        deal_number = deal_attrs.get("number")

        return ResolvedBooking(
            booking_id=booking_id,
            service_id=service_id,
            service_number=str(deal_number) if deal_number not in (None, "") else service_id,
            billed_client=billed_client,
            deal_id=deal_id or service_id,
            project_id=project_id,
            project_name=project_name,
            service_name=service_attrs.get("name") or "",
            time_minutes=booking_time_for_day(booking.get("attributes") or {}),
        )


def fetch_bookings(client: ProductiveClient, person_id: str, date: str) -> list[ResolvedBooking]:
    """
    Bookings of a person overlapping the date

    Bookings that cannot be resolved are logged and dropped.
    """
    logger.info(f"Fetching bookings for person {person_id} on {date}")

    bookings, included = client.get_all("bookings", {
        "filter[person_id]": person_id,
        "filter[after]": date,
        "filter[before]": date,
        "include": "service,service.deal,service.deal.company",
    })

    if not bookings:
        logger.warning("No bookings found for this date")
        return []

    logger.info(f"Found {len(bookings)} booking(s)")

    resolver = BookingResolver(client, included)
    resolved = []
    for booking in bookings:
        try:
            item = resolver.resolve(booking)
        except BookingResolutionError as e:
            logger.warning(f"{e}, skipping")
            continue
        except (ProductiveAPIError, requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"Failed to resolve booking {booking.get('id')}: {e}")
            continue

        resolved.append(item)
        logger.info(f"  Booking: {item.service_name} - {item.time_minutes} min - id: {item.service_id}")

    return resolved
