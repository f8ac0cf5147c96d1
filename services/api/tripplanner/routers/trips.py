"""Trips API router.

Endpoints:
- CRUD on /trips
- POST /trips/{id}/restaurants - Add (or update) a restaurant slot
- PATCH /trips/{id}/restaurants/{tr_id}/status - potential <-> booked
- PATCH /trips/{id}/restaurants/{tr_id}/assign - Move to another day/meal
- PATCH /trips/{id}/restaurants/{tr_id}/auto-dates - Toggle sync ownership
- POST /trips/{id}/restaurants/sync - Reconcile auto rows with availability
- POST /trips/{id}/optimize - Read-only schedule suggestions
- POST /trips/{id}/suggestions/apply - Apply chosen suggestion actions
"""

import logging
from typing import List, Dict

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import get_trip, get_store, require_restaurant
from ..infra.idempotency import idempotency_precheck, idempotency_store_result, idempotency_clear_key
from ..models import Trip, TripRestaurant
from ..schemas import (
    TripCreate,
    TripUpdate,
    TripOut,
    TripDetailOut,
    TripRestaurantOut,
    TripRestaurantAdd,
    TripRestaurantAddResponse,
    StatusUpdate,
    AssignUpdate,
    AutoDatesUpdate,
    SuccessResponse,
    SyncRequest,
    SyncResponse,
    OptimizeRequest,
    OptimizeResponse,
    ApplySuggestionsRequest,
    ApplySuggestionsResponse,
)
from ..services import booking_status
from ..services.availability import AvailabilityDate, stored_feed
from ..services.errors import InvalidArgument
from ..services.slot_store import SlotAssignmentStore
from ..services.slot_sync import sync_restaurant_dates
from ..services.suggestions import SlotCandidate, compute_suggestions

logger = logging.getLogger("tripplanner.trips")

router = APIRouter(prefix="/trips", tags=["trips"])


def trip_restaurant_out(row: TripRestaurant) -> TripRestaurantOut:
    restaurant = row.restaurant
    return TripRestaurantOut(
        trip_restaurant_id=row.id,
        restaurant_id=row.restaurant_id,
        name=restaurant.name,
        tabelog_url=restaurant.tabelog_url,
        city=restaurant.city,
        sort_order=row.sort_order,
        day_assigned=row.day_assigned,
        meal=row.meal,
        trip_notes=row.notes,
        status=row.status,
        booked_via=row.booked_via,
        auto_dates=row.auto_dates,
    )


def trip_detail_out(trip: Trip, store: SlotAssignmentStore) -> TripDetailOut:
    base = TripOut.model_validate(trip)
    return TripDetailOut(
        **base.model_dump(),
        restaurants=[trip_restaurant_out(r) for r in store.list_for_trip(trip.id)],
    )


# --- Trips ---

@router.get("", response_model=List[TripOut])
def list_trips(db: Session = Depends(get_db)):
    """List trips, most recent start date first."""
    return list(db.scalars(select(Trip).order_by(Trip.start_date.desc())))


@router.get("/{trip_id}", response_model=TripDetailOut)
def get_trip_detail(
    trip: Trip = Depends(get_trip),
    store: SlotAssignmentStore = Depends(get_store),
):
    return trip_detail_out(trip, store)


@router.post("", response_model=TripOut, status_code=201)
def create_trip(data: TripCreate, db: Session = Depends(get_db)):
    trip = Trip(**data.model_dump())
    db.add(trip)
    db.commit()
    db.refresh(trip)
    logger.info(f"Created trip {trip.id} ({trip.start_date}..{trip.end_date})")
    return trip


@router.put("/{trip_id}", response_model=TripOut)
def update_trip(
    data: TripUpdate,
    trip: Trip = Depends(get_trip),
    db: Session = Depends(get_db),
):
    """Update a trip. Activating one trip deactivates every other trip."""
    if data.is_active:
        db.execute(update(Trip).where(Trip.id != trip.id).values(is_active=False))

    for key, value in data.model_dump().items():
        setattr(trip, key, value)
    db.commit()
    db.refresh(trip)
    return trip


@router.delete("/{trip_id}", response_model=SuccessResponse)
def delete_trip(trip: Trip = Depends(get_trip), db: Session = Depends(get_db)):
    db.delete(trip)
    db.commit()
    return SuccessResponse()


# --- Trip restaurants ---

@router.post("/{trip_id}/restaurants", response_model=TripRestaurantAddResponse)
def add_trip_restaurant(
    body: TripRestaurantAdd,
    response: Response,
    trip: Trip = Depends(get_trip),
    store: SlotAssignmentStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    """Add a restaurant to the trip; same (restaurant, day, meal) updates in place."""
    require_restaurant(db, body.restaurant_id)
    row, created = booking_status.add_or_update(
        store,
        trip.id,
        body.restaurant_id,
        day=body.day_assigned,
        meal=body.meal,
        status=body.status,
        booked_via=body.booked_via,
        auto_dates=body.auto_dates,
    )
    db.commit()
    response.status_code = 201 if created else 200
    return TripRestaurantAddResponse(id=row.id, updated=not created)


@router.patch("/{trip_id}/restaurants/{tr_id}/status", response_model=SuccessResponse)
def set_trip_restaurant_status(
    tr_id: str,
    body: StatusUpdate,
    trip: Trip = Depends(get_trip),
    store: SlotAssignmentStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    booking_status.set_status(store, trip.id, tr_id, body.status, body.booked_via)
    db.commit()
    return SuccessResponse()


@router.patch("/{trip_id}/restaurants/{tr_id}/assign", response_model=SuccessResponse)
def assign_trip_restaurant(
    tr_id: str,
    body: AssignUpdate,
    trip: Trip = Depends(get_trip),
    store: SlotAssignmentStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    booking_status.reassign_slot(store, trip.id, tr_id, body.day_assigned, body.meal)
    db.commit()
    return SuccessResponse()


@router.patch("/{trip_id}/restaurants/{tr_id}/auto-dates", response_model=SuccessResponse)
def set_trip_restaurant_auto_dates(
    tr_id: str,
    body: AutoDatesUpdate,
    trip: Trip = Depends(get_trip),
    store: SlotAssignmentStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    booking_status.set_auto_dates(store, trip.id, tr_id, body.auto_dates)
    db.commit()
    return SuccessResponse()


@router.delete("/{trip_id}/trip-restaurants/{tr_id}", response_model=SuccessResponse)
def delete_trip_restaurant(
    tr_id: str,
    trip: Trip = Depends(get_trip),
    store: SlotAssignmentStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    """Remove a single row by its id."""
    booking_status.remove(store, trip.id, tr_id)
    db.commit()
    return SuccessResponse()


@router.delete("/{trip_id}/restaurants/{restaurant_id}", response_model=SuccessResponse)
def remove_restaurant_from_trip(
    restaurant_id: str,
    trip: Trip = Depends(get_trip),
    store: SlotAssignmentStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    """Remove every row for this restaurant in the trip."""
    store.delete_for_restaurant(trip.id, restaurant_id)
    db.commit()
    return SuccessResponse()


# --- Availability sync ---

@router.post("/{trip_id}/restaurants/sync", response_model=SyncResponse)
async def sync_trip_restaurant(
    request: Request,
    body: SyncRequest,
    trip: Trip = Depends(get_trip),
    store: SlotAssignmentStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    """Create/remove auto_dates rows so they mirror the restaurant's bookable dates."""
    pre = await idempotency_precheck(request, trip_id=trip.id, route_key="restaurant_sync")
    if isinstance(pre, JSONResponse):
        return pre

    try:
        require_restaurant(db, body.restaurant_id)
        if body.availability is not None:
            feed = body.availability.dates
        else:
            feed = stored_feed(db, body.restaurant_id, trip.id)
            if not feed:
                raise InvalidArgument("availability.dates is required")

        result = sync_restaurant_dates(
            store,
            trip.id,
            body.restaurant_id,
            trip.start_date,
            trip.end_date,
            feed,
            meal=body.meal,
        )
        db.commit()

        resp = SyncResponse(added=result.added, removed=result.removed)
        await idempotency_store_result(pre, status=200, body=resp.model_dump(mode="json"))
        return resp
    except Exception:
        await idempotency_clear_key(pre)
        raise


# --- Suggestions ---

def resolve_availability_keys(
    rows: List[TripRestaurant], availability: Dict[str, List[AvailabilityDate]]
) -> Dict[str, List[AvailabilityDate]]:
    """Map feeds keyed by tabelog_url onto restaurant ids; id keys pass through."""
    by_url = {r.restaurant.tabelog_url: r.restaurant_id for r in rows if r.restaurant.tabelog_url}
    resolved = {}
    for key, feed in availability.items():
        rid = by_url.get(key, key)
        resolved[rid] = feed
    return resolved


@router.post("/{trip_id}/optimize", response_model=OptimizeResponse)
def optimize_trip(
    body: OptimizeRequest,
    trip: Trip = Depends(get_trip),
    store: SlotAssignmentStore = Depends(get_store),
):
    rows = store.list_for_trip(trip.id)
    feeds = resolve_availability_keys(rows, {k: v.dates for k, v in body.availability.items()})
    suggestions = compute_suggestions([SlotCandidate.from_row(r) for r in rows], feeds)
    return OptimizeResponse(suggestions=suggestions)


@router.post("/{trip_id}/suggestions/apply", response_model=ApplySuggestionsResponse)
async def apply_suggestions(
    request: Request,
    body: ApplySuggestionsRequest,
    trip: Trip = Depends(get_trip),
    store: SlotAssignmentStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    """Apply suggestion actions as ordinary slot reassignments (all or nothing)."""
    pre = await idempotency_precheck(request, trip_id=trip.id, route_key="suggestions_apply")
    if isinstance(pre, JSONResponse):
        return pre

    try:
        for action in body.actions:
            booking_status.reassign_slot(
                store, trip.id, action.tr_id, action.to_slot.day, action.to_slot.meal
            )
        db.commit()
        logger.info(f"Applied {len(body.actions)} suggestion action(s) to trip {trip.id}")

        resp = ApplySuggestionsResponse(
            applied=len(body.actions),
            restaurants=[trip_restaurant_out(r) for r in store.list_for_trip(trip.id)],
        )
        await idempotency_store_result(pre, status=200, body=resp.model_dump(mode="json"))
        return resp
    except Exception:
        db.rollback()
        await idempotency_clear_key(pre)
        raise
