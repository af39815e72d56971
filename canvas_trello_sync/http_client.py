"""Shared HTTP session for the Canvas and Trello clients."""

import requests

DEFAULT_TIMEOUT = 30

_session: requests.Session | None = None


def get_session() -> requests.Session:
    """Return a shared requests.Session.

    Requests are never retried; a failed call aborts the sync run.
    """
    global _session
    if _session is None:
        _session = requests.Session()
    return _session
