"""Canvas GraphQL client.

Fetches the assignment list of a course along with the caller's submission
state, authenticating with a personal access token.
"""

import datetime
import logging

import requests

from canvas_trello_sync.exceptions import (
    AuthenticationError,
    FetchError,
    ParseError,
    RateLimitError,
    RemoteError,
)
from canvas_trello_sync.http_client import DEFAULT_TIMEOUT, get_session
from canvas_trello_sync.models.canvas import Assignment

logger = logging.getLogger(__name__)

ASSIGNMENTS_QUERY = """
query GetCourseAssignments($course_id: ID!) {
  course(id: $course_id) {
    id
    assignmentsConnection {
      nodes {
        _id
        name
        description
        dueAt(applyOverrides: true)
        htmlUrl
        expectsSubmission
        submissionsConnection {
          nodes {
            submittedAt
          }
        }
      }
    }
  }
}
"""


def parse_timestamp(value: str) -> datetime.datetime:
    """Parse an ISO-8601 timestamp into an aware datetime (naive means UTC)."""
    dt = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return dt


def _parse_assignment(node: dict) -> Assignment:
    due_at = node.get("dueAt")
    if not due_at:
        raise ParseError(f"Assignment {node.get('name')!r} has no due date")

    submissions = (node.get("submissionsConnection") or {}).get("nodes") or []
    submitted = bool(node.get("expectsSubmission")) and any(
        s and s.get("submittedAt") for s in submissions
    )

    return Assignment(
        id=str(node["_id"]),
        name=node["name"],
        description=node.get("description") or None,
        due_at=parse_timestamp(due_at),
        url=node["htmlUrl"],
        submitted=submitted,
    )


class CanvasClient:
    def __init__(self, endpoint_url: str, access_token: str):
        self.endpoint_url = endpoint_url
        self._access_token = access_token

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._access_token}",
            "Accept": "application/json",
        }

    def query(self, query: str, variables: dict) -> dict:
        """Run a GraphQL query and return its `data` object."""
        try:
            resp = get_session().post(
                self.endpoint_url,
                headers=self._headers(),
                json={"query": query, "variables": variables},
                timeout=DEFAULT_TIMEOUT,
            )
        except requests.RequestException as e:
            raise FetchError("Failed to make request to Canvas") from e

        if resp.status_code in (401, 403):
            raise AuthenticationError(f"Canvas rejected the access token (HTTP {resp.status_code})")
        if resp.status_code == 429:
            raise RateLimitError("Canvas API rate limit hit.")
        if resp.status_code >= 400:
            raise RemoteError(f"Canvas API error (HTTP {resp.status_code}): {resp.text[:500]}")

        try:
            body = resp.json()
        except ValueError as e:
            raise ParseError("Failed to parse response from Canvas") from e
        if not isinstance(body, dict):
            raise ParseError("Canvas GraphQL response is not an object")

        errors = body.get("errors") or []
        for error in errors:
            logger.error("Canvas GraphQL error: %s", error.get("message"))
        if errors:
            raise RemoteError("; ".join(str(e.get("message", "")) for e in errors))

        data = body.get("data")
        if data is None:
            raise ParseError("Canvas GraphQL response did not contain data")
        return data

    def get_assignments(self, course_id: str) -> list[Assignment]:
        """List all the assignments in a given course."""
        data = self.query(ASSIGNMENTS_QUERY, {"course_id": course_id})
        course = data.get("course")
        if course is None:
            raise ParseError(f"Course {course_id!r} not found or not visible")

        try:
            nodes = course["assignmentsConnection"]["nodes"]
            return [_parse_assignment(node) for node in nodes]
        except (KeyError, TypeError, ValueError) as e:
            raise ParseError("Failed to deserialize assignment list") from e
