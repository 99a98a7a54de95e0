"""
Productive.io REST API integration

Supports:
- JSON:API GET with page-number pagination and `included` resources
- Time entry listing and creation for one person/day
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import requests

from .config import ApiCredentials

logger = logging.getLogger(__name__)

# default request timeout (seconds)
DEFAULT_TIMEOUT = 30
PAGE_SIZE = 200


class ProductiveAPIError(Exception):
    """Non-2xx response from the Productive API"""

    def __init__(self, method: str, path: str, status_code: int, body: str):
        self.method = method
        self.path = path
        self.status_code = status_code
        self.body = body
        super().__init__(f"API {method} {path} failed ({status_code}): {body}")


def related_id(resource: dict, relationship: str) -> Optional[str]:
    """id of a to-one relationship, None when absent or to-many"""
    rel = (resource.get("relationships") or {}).get(relationship) or {}
    data = rel.get("data")
    if not isinstance(data, dict):
        return None
    rid = data.get("id")
    return str(rid) if rid is not None else None


def first_resource(response: dict) -> dict:
    data = response.get("data")
    if isinstance(data, list):
        if not data:
            raise ValueError("empty response data")
        return data[0]
    if not isinstance(data, dict):
        raise ValueError("response has no data")
    return data


class ProductiveClient:
    """JSON:API client bound to one organization"""

    def __init__(self, credentials: ApiCredentials):
        """
        Args:
            credentials: API token, organization id and base URL
        """
        self.base_url = credentials.base_url.rstrip('/')
        self.session = requests.Session()
        self.session.headers.update({
            "Content-Type": "application/vnd.api+json",
            "X-Auth-Token": credentials.api_token,
            "X-Organization-Id": credentials.org_id,
        })

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def get(self, path: str, params: Optional[dict[str, str]] = None) -> dict:
        logger.debug(f"GET {path} {params or ''}")
        resp = self.session.get(self._url(path), params=params, timeout=DEFAULT_TIMEOUT)
        if not resp.ok:
            raise ProductiveAPIError("GET", path, resp.status_code, resp.text)
        return resp.json()

    def get_all(self, path: str, params: Optional[dict[str, str]] = None) -> tuple[list[dict], list[dict]]:
        """
        Fetch every page of a collection

        Returns:
            (data, included) accumulated over all pages
        """
        data: list[dict] = []
        included: list[dict] = []
        page = 1

        while True:
            response = self.get(path, {
                **(params or {}),
                "page[number]": str(page),
                "page[size]": str(PAGE_SIZE),
            })

            page_data = response.get("data") or []
            if isinstance(page_data, dict):
                page_data = [page_data]
            data.extend(page_data)
            included.extend(response.get("included") or [])

            links = response.get("links") or {}
            if not links.get("next") or len(page_data) < PAGE_SIZE:
                break
            page += 1

        return data, included

    def get_resource(self, collection: str, resource_id: str) -> dict:
        return first_resource(self.get(f"{collection}/{resource_id}"))

    def post(self, path: str, body: dict) -> dict:
        logger.debug(f"POST {path}")
        resp = self.session.post(self._url(path), json=body, timeout=DEFAULT_TIMEOUT)
        if not resp.ok:
            raise ProductiveAPIError("POST", path, resp.status_code, resp.text)
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError:
            logger.warning(f"POST {path} succeeded with a non-JSON body")
            return {}


@dataclass
class TimeEntry:
    """Time entry to create"""
    person_id: str
    service_id: str
    date: str               # YYYY-MM-DD
    time_minutes: int
    note: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "data": {
                "type": "time_entries",
                "attributes": {
                    "date": self.date,
                    "time": self.time_minutes,
                    "note": self.note,
                },
                "relationships": {
                    "person": {"data": {"type": "people", "id": self.person_id}},
                    "service": {"data": {"type": "services", "id": self.service_id}},
                },
            }
        }


class SubmitOutcome(str, Enum):
    CREATED = "created"
    DUPLICATE = "duplicate"
    FAILED = "failed"


class TimeEntryUploader:
    """Creates time entries, at most one per person/date/service"""

    def __init__(self, client: ProductiveClient):
        self.client = client

    def get_existing_entries(self, person_id: str, date: str) -> list[dict]:
        entries, _ = self.client.get_all("time_entries", {
            "filter[person_id]": person_id,
            "filter[after]": date,
            "filter[before]": date,
        })
        return entries

    @staticmethod
    def find_existing_entry(entries: list[dict], service_id: str) -> Optional[dict]:
        for entry in entries:
            if related_id(entry, "service") == service_id:
                return entry
        return None

    def create_time_entry(self, entry: TimeEntry) -> Optional[dict]:
        """Created resource, or None when the response carried no data"""
        response = self.client.post("time_entries", entry.to_payload())
        try:
            return first_resource(response)
        except ValueError:
            logger.warning(f"  Time entry for service {entry.service_id} created but the response had no data")
            return None

    def upload(self, entry: TimeEntry, label: str = "") -> SubmitOutcome:
        """Create the entry unless one already exists for its service on that day"""
        label = label or f"service {entry.service_id}"
        try:
            existing = self.find_existing_entry(
                self.get_existing_entries(entry.person_id, entry.date),
                entry.service_id,
            )
            if existing:
                logger.info(f"  Skipping {label} - entry already exists (id: {existing.get('id')})")
                return SubmitOutcome.DUPLICATE

            created = self.create_time_entry(entry)
        except (ProductiveAPIError, requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"  Failed to create entry for {label}: {e}")
            return SubmitOutcome.FAILED

        created_id = created.get("id") if created else "unknown"
        logger.info(f"  Created entry for {label} - {entry.time_minutes} min (id: {created_id})")
        return SubmitOutcome.CREATED
