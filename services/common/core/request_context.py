"""
Per-request correlation id.

Held in a ContextVar so concurrent requests on one event loop each see their own
id; the JSON log formatter reads it from here.
"""

import uuid
from contextvars import ContextVar
from typing import Optional

# Longest inbound X-Request-Id accepted verbatim.
MAX_REQUEST_ID_LENGTH = 128

_current_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_request_id() -> Optional[str]:
    return _current_request_id.get()


def generate_request_id() -> str:
    """Issue a fresh uuid4 id and make it current."""
    issued = str(uuid.uuid4())
    _current_request_id.set(issued)
    return issued


def _is_usable(candidate: Optional[str]) -> bool:
    return bool(candidate) and len(candidate) <= MAX_REQUEST_ID_LENGTH and candidate.isprintable()


def set_request_id(request_id: Optional[str]) -> str:
    """
    Make an inbound X-Request-Id current.

    Missing, oversized or non-printable values are replaced by a generated id.

    Returns:
        The id now in effect
    """
    if not _is_usable(request_id):
        return generate_request_id()
    _current_request_id.set(request_id)
    return request_id


def clear_request_id() -> None:
    _current_request_id.set(None)
