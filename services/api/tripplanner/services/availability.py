"""Availability feed helpers.

A feed is the scraper output for one restaurant: an ordered list of
{date, status} entries. Only "available" and "limited" count as
bookable; anything else (booked_out, unknown, closed, or a status a
scraper invents later) is treated as not bookable.
"""

import logging
from datetime import date
from typing import Optional, List, Dict, Iterable, Set

from pydantic import BaseModel
from sqlalchemy import select, delete
from sqlalchemy.orm import Session

from ..models import AvailabilityResult

logger = logging.getLogger("tripplanner.availability")

BOOKABLE_STATUSES = frozenset({"available", "limited"})


class AvailabilityDate(BaseModel):
    date: date
    status: str = "unknown"
    time_slots: Optional[List[str]] = None


def is_bookable(status: Optional[str]) -> bool:
    return status in BOOKABLE_STATUSES


def bookable_dates(
    feed: Iterable[AvailabilityDate],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> Set[date]:
    """Dates in feed that are bookable and inside [start, end] (either bound optional)."""
    out = set()
    for entry in feed:
        if not is_bookable(entry.status):
            continue
        if start is not None and entry.date < start:
            continue
        if end is not None and entry.date > end:
            continue
        out.add(entry.date)
    return out


# --- Stored results ---

def list_results(
    db: Session,
    restaurant_id: Optional[str] = None,
    trip_id: Optional[str] = None,
) -> List[AvailabilityResult]:
    stmt = select(AvailabilityResult)
    if restaurant_id:
        stmt = stmt.where(AvailabilityResult.restaurant_id == restaurant_id)
    if trip_id:
        stmt = stmt.where(AvailabilityResult.trip_id == trip_id)
    stmt = stmt.order_by(AvailabilityResult.check_date.asc(), AvailabilityResult.platform.asc())
    return list(db.scalars(stmt))


def record_results(
    db: Session,
    restaurant_id: str,
    trip_id: str,
    platform: str,
    feed: List[AvailabilityDate],
    error_message: Optional[str] = None,
) -> List[AvailabilityResult]:
    """Replace the stored feed for (restaurant, trip, platform)."""
    db.execute(
        delete(AvailabilityResult).where(
            AvailabilityResult.restaurant_id == restaurant_id,
            AvailabilityResult.trip_id == trip_id,
            AvailabilityResult.platform == platform,
        )
    )

    rows = []
    for entry in feed:
        row = AvailabilityResult(
            restaurant_id=restaurant_id,
            trip_id=trip_id,
            platform=platform,
            check_date=entry.date,
            status=entry.status,
            time_slots=entry.time_slots,
            error_message=error_message,
        )
        db.add(row)
        rows.append(row)
    db.flush()

    logger.info(
        f"Recorded {len(rows)} availability dates for restaurant {restaurant_id} "
        f"trip {trip_id} on {platform} ({len(bookable_dates(feed))} bookable)"
    )
    return rows


def stored_feed(db: Session, restaurant_id: str, trip_id: str) -> List[AvailabilityDate]:
    """Merge stored results across platforms; a date is bookable if any platform says so."""
    merged: Dict[date, AvailabilityDate] = {}
    for row in list_results(db, restaurant_id=restaurant_id, trip_id=trip_id):
        current = merged.get(row.check_date)
        if current is None or (is_bookable(row.status) and not is_bookable(current.status)):
            merged[row.check_date] = AvailabilityDate(
                date=row.check_date, status=row.status, time_slots=row.time_slots
            )
    return [merged[d] for d in sorted(merged)]
