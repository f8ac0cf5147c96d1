"""FastAPI dependencies for the trip planner API.

Provides:
- Slot store bound to the request's database session
- Trip resolution from the {trip_id} path parameter (404 if unknown)
"""

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from .db import get_db
from .models import Trip, Restaurant
from .services.slot_store import SlotAssignmentStore


def get_store(db: Session = Depends(get_db)) -> SlotAssignmentStore:
    return SlotAssignmentStore(db)


def get_trip(trip_id: str, db: Session = Depends(get_db)) -> Trip:
    trip = db.get(Trip, trip_id)
    if trip is None:
        raise HTTPException(status_code=404, detail="Trip not found")
    return trip


def require_restaurant(db: Session, restaurant_id: str) -> Restaurant:
    restaurant = db.get(Restaurant, restaurant_id)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return restaurant
