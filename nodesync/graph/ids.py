"""Utility helpers for generating identifiers and timestamps."""
from __future__ import annotations

import datetime as _dt
import uuid


def new_id(prefix: str) -> str:
    """Return a unique identifier such as ``pass_<hex>``.

    Sync passes use it to tag their events and reports.
    """

    return f"{prefix}_{uuid.uuid4().hex}"


def utc_now() -> str:
    """Return the current UTC time formatted as an ISO 8601 string."""

    return _dt.datetime.now(_dt.timezone.utc).isoformat()
