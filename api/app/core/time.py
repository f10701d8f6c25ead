"""Central time utilities for the application.

Database columns are TIMESTAMP WITHOUT TIME ZONE, so everything written by the
application is naive UTC.
"""
from datetime import date, datetime, timedelta, timezone


def utc_now() -> datetime:
    """
    Return current UTC time as a naive datetime object.

    Replaces the deprecated datetime.utcnow() while staying comparable with
    the naive DateTime columns used throughout the schema.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_today() -> date:
    """Current UTC calendar date."""
    return utc_now().date()


def utc_tomorrow() -> date:
    """Default effective date for superseding records."""
    return utc_today() + timedelta(days=1)
