"""Availability-driven sync of auto-generated trip restaurant rows.

For one (trip, restaurant, meal), the rows with auto_dates=True and
status=potential are made to match exactly the dates the restaurant is
bookable within the trip's date range. Rows the user added or booked
are never touched, and running sync twice with the same feed is a
no-op the second time.
"""

import logging
from datetime import date
from typing import Optional, List

from pydantic import BaseModel

from ..models import TripRestaurant, STATUS_POTENTIAL
from ..settings import settings
from .availability import AvailabilityDate, bookable_dates
from .booking_status import validate_meal
from .slot_store import SlotAssignmentStore

logger = logging.getLogger("tripplanner.sync")


class SyncResult(BaseModel):
    added: List[str] = []
    removed: List[str] = []


def slot_label(day: date, meal: str) -> str:
    return f"{day.isoformat()} {meal}"


def sync_restaurant_dates(
    store: SlotAssignmentStore,
    trip_id: str,
    restaurant_id: str,
    start_date: date,
    end_date: date,
    feed: List[AvailabilityDate],
    meal: Optional[str] = None,
) -> SyncResult:
    validate_meal(meal)
    meals = [meal] if meal else list(settings.default_meals)
    bookable = bookable_dates(feed, start_date, end_date)

    result = SyncResult()
    sort_order = store.next_sort_order(trip_id)

    for m in meals:
        existing = store.find_auto_generated(trip_id, restaurant_id, m)
        existing_dates = {row.day_assigned for row in existing if row.day_assigned}

        for day in sorted(bookable - existing_dates):
            # Manual rows (or a booked auto row) already hold this identity
            if store.find_by_identity(trip_id, restaurant_id, day, m) is not None:
                continue
            store.insert(TripRestaurant(
                trip_id=trip_id,
                restaurant_id=restaurant_id,
                sort_order=sort_order,
                day_assigned=day,
                meal=m,
                status=STATUS_POTENTIAL,
                auto_dates=True,
            ))
            sort_order += 1
            result.added.append(slot_label(day, m))

        for row in existing:
            if row.day_assigned and row.day_assigned not in bookable:
                store.delete(row.id)
                result.removed.append(slot_label(row.day_assigned, m))

    result.removed.sort()
    result.added.sort()
    logger.info(
        f"Synced restaurant {restaurant_id} in trip {trip_id} ({', '.join(meals)}): "
        f"+{len(result.added)} -{len(result.removed)}"
    )
    return result
