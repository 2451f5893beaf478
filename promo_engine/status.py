"""
promo_engine/status.py
----------------------
Promotion event status: a pure function of the clock and the date range.

    today <  start_date              → UPCOMING
    start_date <= today <= end_date  → ACTIVE
    today >  end_date                → ENDED

Dates are compared as calendar days in the business timezone
(config.settings.get_app_timezone(), default Australia/Melbourne), so an
event ending "2024-06-30" stays ACTIVE for the whole of that local day.

The status stored on a PromotionEvent is only a cache of this function.
reconcile_status() recomputes it on every read; a stored value is never
treated as authoritative. A missing or unparseable bound is treated as open
(no lower / upper limit).

Public API
----------
    business_date(now, timezone)           -> date
    parse_date_key(value, timezone)        -> date | None
    derive_status(start, end, now)         -> "UPCOMING" | "ACTIVE" | "ENDED"
    reconcile_status(event, now)           -> PromotionEvent
    is_editable(event, now)                -> bool
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime

import pytz

from config.settings import get_app_timezone
from promo_engine.models import EventStatus, PromotionEvent

logger = logging.getLogger(__name__)

DateLike = date | datetime | str | None


def business_date(now: DateLike = None, timezone: str | None = None) -> date:
    """
    Calendar date of `now` in the business timezone.

    Naive datetimes are assumed to be UTC. Plain dates are returned as-is.
    None means the current instant.
    """
    if isinstance(now, str):
        parsed = parse_date_key(now, timezone)
        if parsed is not None:
            return parsed
        now = None
    if isinstance(now, date) and not isinstance(now, datetime):
        return now

    tz = pytz.timezone(timezone or get_app_timezone())
    if now is None:
        now = datetime.now(pytz.UTC)
    elif now.tzinfo is None:
        now = pytz.UTC.localize(now)
    return now.astimezone(tz).date()


def parse_date_key(value: DateLike, timezone: str | None = None) -> date | None:
    """
    Calendar-day key for value; None when unparseable.

    A plain "YYYY-MM-DD" is already a business day and is taken as-is.
    Timestamps (datetimes or ISO strings with a time part) denote an instant
    and are keyed by their date in the business timezone; naive ones are UTC.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value != value:   # pandas NaT
            return None
        return business_date(value, timezone)
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if len(text) < 10:
        return None
    if len(text) > 10:
        try:
            instant = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            instant = None
        if instant is not None:
            return business_date(instant, timezone)
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def derive_status(
    start_date: DateLike,
    end_date:   DateLike,
    now:        DateLike = None,
    timezone:   str | None = None,
) -> EventStatus:
    """Status of a campaign running start_date..end_date (inclusive) at `now`."""
    today = business_date(now, timezone)
    start = parse_date_key(start_date, timezone)
    end   = parse_date_key(end_date, timezone)

    if start is not None and today < start:
        return "UPCOMING"
    if end is not None and today > end:
        return "ENDED"
    return "ACTIVE"


def reconcile_status(
    event:    PromotionEvent,
    now:      DateLike = None,
    timezone: str | None = None,
) -> PromotionEvent:
    """
    Return the event with its cached status brought in line with the clock.

    The same object is returned when the stored status is already correct.
    """
    status = derive_status(event.start_date, event.end_date, now, timezone)
    if status == event.status:
        return event
    logger.info(f"Event {event.id!r}: stored status {event.status} is stale, derived {status}")
    return replace(event, status=status)


def is_editable(event: PromotionEvent, now: DateLike = None, timezone: str | None = None) -> bool:
    """Items may be added through the selector only before the event starts."""
    return derive_status(event.start_date, event.end_date, now, timezone) == "UPCOMING"
