"""Stored availability results.

Scrapers post their per-date feed here; sync can then run without an
inline feed and falls back to what was last recorded.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import require_restaurant
from ..models import Trip
from ..schemas import AvailabilityResultsCreate, AvailabilityResultOut
from ..services.availability import list_results, record_results

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("", response_model=List[AvailabilityResultOut])
def get_availability_results(
    restaurant_id: Optional[str] = Query(None),
    trip_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return list_results(db, restaurant_id=restaurant_id, trip_id=trip_id)


@router.post("/results", response_model=List[AvailabilityResultOut], status_code=201)
def post_availability_results(
    data: AvailabilityResultsCreate,
    db: Session = Depends(get_db),
):
    """Replace the stored feed for (restaurant, trip, platform)."""
    require_restaurant(db, data.restaurant_id)
    if db.get(Trip, data.trip_id) is None:
        raise HTTPException(status_code=404, detail="Trip not found")

    rows = record_results(
        db,
        data.restaurant_id,
        data.trip_id,
        data.platform,
        data.dates,
        error_message=data.error_message,
    )
    db.commit()
    for row in rows:
        db.refresh(row)
    return rows
