# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for Refine.

All timestamps are stored in UTC and every Python datetime handled by the
application is timezone-aware. SQLite returns naive datetimes, which
``ensure_utc`` marks as UTC before they are compared or returned.

Usage:
------
    from refine.utils.datetime import utc_now

    # For current time
    now = utc_now()

    # For SQLAlchemy model defaults
    created_at = mapped_column(DateTime(timezone=True), default=utc_now)
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    SQLite hands back naive datetimes, PostgreSQL aware ones; both end up
    here before comparison.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def expiry_in_millis(expires_in: int | float, now: datetime | None = None) -> int:
    """Convert a relative lifetime in seconds to an absolute epoch in ms.

    Google token responses carry ``expires_in``; browser clients expect an
    absolute ``expiryDate`` in milliseconds.

    Args:
        expires_in: Seconds until expiry.
        now: Reference time, defaults to the current time.

    Returns:
        Milliseconds since the Unix epoch.
    """
    reference = ensure_utc(now) if now is not None else utc_now()
    expires_at = reference + timedelta(seconds=float(expires_in))
    return int(expires_at.timestamp() * 1000)
