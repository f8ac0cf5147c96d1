"""Booking status transitions for trip restaurants.

A (trip, day, meal) slot can hold any number of potential rows but at
most one booked row. Booking never fails because a slot is taken:
whoever books last wins and the previous booking is demoted back to
potential with its booked_via cleared.
"""

import logging
from datetime import date
from typing import Optional, List, Tuple

from ..models import (
    TripRestaurant,
    MEALS,
    BOOKING_STATUSES,
    STATUS_BOOKED,
    STATUS_POTENTIAL,
)
from .errors import NotFound, InvalidArgument, ConstraintViolation
from .slot_store import SlotAssignmentStore

logger = logging.getLogger("tripplanner.booking")


def validate_status(status: Optional[str]) -> str:
    if status not in BOOKING_STATUSES:
        raise InvalidArgument("status must be 'booked' or 'potential'")
    return status


def validate_meal(meal: Optional[str]) -> Optional[str]:
    if meal is not None and meal not in MEALS:
        raise InvalidArgument("meal must be 'lunch' or 'dinner'")
    return meal


def demote_slot(
    store: SlotAssignmentStore,
    trip_id: str,
    day: Optional[date],
    meal: Optional[str],
    exclude_id: Optional[str] = None,
) -> List[TripRestaurant]:
    """Demote every booked row in the slot except exclude_id. No slot, no-op."""
    if day is None or meal is None:
        return []

    demoted = []
    for row in store.find_by_slot(trip_id, day, meal, status=STATUS_BOOKED, exclude_id=exclude_id):
        store.update(row.id, {"status": STATUS_POTENTIAL, "booked_via": None})
        demoted.append(row)

    if demoted:
        logger.info(
            f"Demoted {len(demoted)} booking(s) in trip {trip_id} slot {day} {meal}: "
            f"{[r.id for r in demoted]}"
        )
    return demoted


def _get_assignment(store: SlotAssignmentStore, trip_id: str, assignment_id: str) -> TripRestaurant:
    assignment = store.get(assignment_id, trip_id=trip_id)
    if assignment is None:
        raise NotFound("Trip restaurant not found")
    return assignment


def set_status(
    store: SlotAssignmentStore,
    trip_id: str,
    assignment_id: str,
    status: Optional[str],
    booked_via: Optional[str] = None,
) -> TripRestaurant:
    validate_status(status)
    assignment = _get_assignment(store, trip_id, assignment_id)

    if status == STATUS_BOOKED:
        demote_slot(store, trip_id, assignment.day_assigned, assignment.meal, exclude_id=assignment.id)

    via = (booked_via or None) if status == STATUS_BOOKED else None
    return store.update(assignment.id, {"status": status, "booked_via": via})


def reassign_slot(
    store: SlotAssignmentStore,
    trip_id: str,
    assignment_id: str,
    day: Optional[date],
    meal: Optional[str],
) -> TripRestaurant:
    """Move an assignment to (day, meal). Status is carried along unchanged."""
    validate_meal(meal)
    assignment = _get_assignment(store, trip_id, assignment_id)

    clash = store.find_by_identity(trip_id, assignment.restaurant_id, day, meal)
    if clash is not None and clash.id != assignment.id:
        raise ConstraintViolation(
            f"Restaurant {assignment.restaurant_id} is already assigned to {day or 'no day'} {meal or 'no meal'}"
        )

    if assignment.status == STATUS_BOOKED:
        demote_slot(store, trip_id, day, meal, exclude_id=assignment.id)

    return store.update(assignment.id, {"day_assigned": day, "meal": meal})


def add_or_update(
    store: SlotAssignmentStore,
    trip_id: str,
    restaurant_id: Optional[str],
    day: Optional[date] = None,
    meal: Optional[str] = None,
    status: Optional[str] = None,
    booked_via: Optional[str] = None,
    auto_dates: bool = False,
) -> Tuple[TripRestaurant, bool]:
    """Upsert by identity key. Returns (row, created)."""
    if not restaurant_id:
        raise InvalidArgument("restaurant_id is required")
    status = validate_status(status or STATUS_POTENTIAL)
    validate_meal(meal)
    via = (booked_via or None) if status == STATUS_BOOKED else None

    existing = store.find_by_identity(trip_id, restaurant_id, day, meal)

    if status == STATUS_BOOKED:
        demote_slot(store, trip_id, day, meal, exclude_id=existing.id if existing else None)

    if existing is not None:
        row = store.update(existing.id, {
            "status": status,
            "booked_via": via,
            "auto_dates": bool(auto_dates),
        })
        return row, False

    row = store.insert(TripRestaurant(
        trip_id=trip_id,
        restaurant_id=restaurant_id,
        sort_order=store.next_sort_order(trip_id),
        day_assigned=day,
        meal=meal,
        status=status,
        booked_via=via,
        auto_dates=bool(auto_dates),
    ))
    logger.info(f"Added restaurant {restaurant_id} to trip {trip_id} at {day} {meal} ({status})")
    return row, True


def set_auto_dates(store: SlotAssignmentStore, trip_id: str, assignment_id: str, auto_dates: bool) -> TripRestaurant:
    assignment = _get_assignment(store, trip_id, assignment_id)
    return store.update(assignment.id, {"auto_dates": bool(auto_dates)})


def remove(store: SlotAssignmentStore, trip_id: str, assignment_id: str) -> None:
    assignment = store.get(assignment_id, trip_id=trip_id)
    if assignment is not None:
        store.delete(assignment.id)
