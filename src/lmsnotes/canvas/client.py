"""Canvas REST API client for fetching course assignments."""

import logging
import os
import re
from dataclasses import dataclass
from typing import Any

import requests
from pydantic import ValidationError

from ..models.assignment import RemoteAssignment

logger = logging.getLogger(__name__)

PAGE_SIZE = 100

LAST_PAGE_PATTERN = re.compile(r'[?&]page=(\d+)[^>]*>; rel="last"')


class SyncError(RuntimeError):
    """Fatal failure of a sync run."""

    def __init__(self, message: str, course_id: int | None = None):
        super().__init__(message)
        self.course_id = course_id


class PaginationError(SyncError):
    """The response carried no usable ``rel="last"`` page link."""


class TransportError(SyncError):
    """The request failed, returned a non-2xx status, or returned bad JSON."""


@dataclass
class AssignmentPage:
    """One page of assignments plus the raw response headers."""

    assignments: list[RemoteAssignment]
    headers: dict[str, str]


def find_header(headers: dict[str, str], name: str) -> str | None:
    """Look up a header without regard to case."""
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def total_pages(headers: dict[str, str], course_id: int | None = None) -> int:
    """Read the page count from the ``Link`` header's ``rel="last"`` entry.

    Raises:
        PaginationError: If the header is missing or has no last-page link
    """
    link = find_header(headers, "Link")
    match = LAST_PAGE_PATTERN.search(link) if link else None
    if match is None:
        logger.error(f"Invalid number of pages: {link!r}")
        raise PaginationError(f"No last-page link in response headers: {link!r}", course_id)
    return int(match.group(1))


class CanvasClient:
    """Client for the Canvas LMS REST API.
    
    Read-only: lists and fetches assignments for a course.
    """

    def __init__(self, access_token: str | None = None, canvas_url: str | None = None):
        """Initialize Canvas API client.
        
        Args:
            access_token: Canvas access token. If empty, reads CANVAS_ACCESS_TOKEN.
            canvas_url: Canvas host (``example.instructure.com``). If empty,
                reads CANVAS_URL.
            
        Raises:
            ValueError: If no token or host is provided or found in environment
        """
        self.access_token = access_token or os.getenv("CANVAS_ACCESS_TOKEN")
        if not self.access_token:
            raise ValueError(
                "Canvas access token not found. Set CANVAS_ACCESS_TOKEN environment "
                "variable or run 'lmsnotes config set access_token <token>'."
            )
        host = canvas_url or os.getenv("CANVAS_URL")
        if not host:
            raise ValueError(
                "Canvas URL not found. Set CANVAS_URL environment variable "
                "or run 'lmsnotes config set canvas_url <host>'."
            )
        host = re.sub(r"^https?://", "", host.strip()).rstrip("/")
        self.base_url = f"https://{host}/api/v1"

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}

    def fetch_assignment_page(self, course_id: int, page_index: int) -> AssignmentPage:
        """Fetch one page of a course's assignments.
        
        Args:
            course_id: Canvas course id
            page_index: Zero-based page index
            
        Returns:
            AssignmentPage with parsed assignments and response headers
            
        Raises:
            TransportError: If the request fails or the body is not a list
        """
        endpoint = f"{self.base_url}/courses/{course_id}/assignments"
        params = {"page": page_index + 1, "per_page": PAGE_SIZE}

        response = self._get(endpoint, params, course_id)
        data = self._json(response, course_id)
        if not isinstance(data, list):
            raise TransportError(
                f"Expected a list of assignments, got {type(data).__name__}", course_id
            )

        assignments = [self._parse_assignment(item, course_id) for item in data]
        logger.debug(f"Fetched page {page_index} of course {course_id}: {len(assignments)} assignment(s)")
        return AssignmentPage(assignments=assignments, headers=dict(response.headers))

    def fetch_assignment(self, course_id: int, assignment_id: int) -> RemoteAssignment:
        """Fetch a single assignment.

        Raises:
            TransportError: If the request fails or the body is not an assignment
        """
        endpoint = f"{self.base_url}/courses/{course_id}/assignments/{assignment_id}"
        response = self._get(endpoint, None, course_id)
        data = self._json(response, course_id)
        if not isinstance(data, dict):
            raise TransportError(
                f"Expected an assignment object, got {type(data).__name__}", course_id
            )
        return self._parse_assignment(data, course_id)

    def _get(self, endpoint: str, params: dict | None, course_id: int) -> requests.Response:
        try:
            response = requests.get(endpoint, params=params, headers=self.headers)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Request to {endpoint} failed: {e}")
            raise TransportError(f"Request to {endpoint} failed: {e}", course_id) from e
        return response

    def _json(self, response: requests.Response, course_id: int) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Response is not valid JSON: {e}", course_id) from e

    def _parse_assignment(self, data: dict[str, Any], course_id: int) -> RemoteAssignment:
        """Parse assignment data from API response.

        Canvas omits ``course_id`` in a few embedded shapes, so the requested
        course fills the gap.
        """
        if isinstance(data, dict) and "course_id" not in data:
            data = {**data, "course_id": course_id}
        try:
            return RemoteAssignment.model_validate(data)
        except ValidationError as e:
            raise TransportError(f"Malformed assignment in response: {e}", course_id) from e
