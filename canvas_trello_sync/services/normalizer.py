from urllib.parse import urlsplit, urlunsplit

from markdownify import markdownify

from canvas_trello_sync.exceptions import InvalidUrl
from canvas_trello_sync.models.canvas import Assignment
from canvas_trello_sync.models.sync import NormalizedAssignment

# Marks a card description as managed by this tool. Cards without it never
# have their description rewritten.
DESC_HEADER = "🔄 Canvas Trello Sync"


def canonical_url(url: str) -> str:
    """Rewrite url to the https scheme."""
    parts = urlsplit(url.strip())
    if not parts.scheme or not parts.netloc:
        raise InvalidUrl(f"Cannot rewrite URL to https: {url!r}")
    return urlunsplit(parts._replace(scheme="https"))


def render_description(description: str | None) -> str:
    desc_md = markdownify(description, heading_style="ATX").strip() if description else ""
    if not desc_md:
        return DESC_HEADER
    return f"{DESC_HEADER}\n\n---\n\n{desc_md}"


def normalize(assignment: Assignment) -> NormalizedAssignment:
    return NormalizedAssignment(
        assignment=assignment,
        canonical_url=canonical_url(assignment.url),
        description=render_description(assignment.description),
        due=assignment.due_at,
        due_complete=assignment.submitted,
    )
