"""Persistence seam for trip slot assignments.

All slot logic goes through SlotAssignmentStore so that identity
lookups, slot queries and sort ordering live in one place. Writes only
flush(); the caller (router) owns commit().
"""

from datetime import date
from typing import Optional, List, Dict, Any

from sqlalchemy import select, func
from sqlalchemy.orm import Session, joinedload

from ..models import TripRestaurant, STATUS_BOOKED, STATUS_POTENTIAL
from .errors import NotFound


class SlotAssignmentStore:
    def __init__(self, db: Session):
        self.db = db

    # --- Writes ---

    def insert(self, record: TripRestaurant) -> TripRestaurant:
        self.db.add(record)
        self.db.flush()
        return record

    def update(self, assignment_id: str, fields: Dict[str, Any]) -> TripRestaurant:
        record = self.db.get(TripRestaurant, assignment_id)
        if record is None:
            raise NotFound(f"Trip restaurant {assignment_id} not found")
        for key, value in fields.items():
            setattr(record, key, value)
        self.db.flush()
        return record

    def delete(self, assignment_id: str) -> None:
        record = self.db.get(TripRestaurant, assignment_id)
        if record is not None:
            self.db.delete(record)
            self.db.flush()

    # --- Reads ---

    def get(self, assignment_id: str, trip_id: Optional[str] = None) -> Optional[TripRestaurant]:
        stmt = select(TripRestaurant).where(TripRestaurant.id == assignment_id)
        if trip_id is not None:
            stmt = stmt.where(TripRestaurant.trip_id == trip_id)
        return self.db.scalar(stmt)

    def find_by_identity(
        self,
        trip_id: str,
        restaurant_id: str,
        day: Optional[date],
        meal: Optional[str],
    ) -> Optional[TripRestaurant]:
        """Look up a row by (trip, restaurant, day, meal) where None only matches None."""
        stmt = select(TripRestaurant).where(
            TripRestaurant.trip_id == trip_id,
            TripRestaurant.restaurant_id == restaurant_id,
            TripRestaurant.day_assigned.is_(None) if day is None else TripRestaurant.day_assigned == day,
            TripRestaurant.meal.is_(None) if meal is None else TripRestaurant.meal == meal,
        )
        return self.db.scalar(stmt)

    def find_by_slot(
        self,
        trip_id: str,
        day: date,
        meal: str,
        status: Optional[str] = None,
        exclude_id: Optional[str] = None,
    ) -> List[TripRestaurant]:
        stmt = select(TripRestaurant).where(
            TripRestaurant.trip_id == trip_id,
            TripRestaurant.day_assigned == day,
            TripRestaurant.meal == meal,
        )
        if status is not None:
            stmt = stmt.where(TripRestaurant.status == status)
        if exclude_id is not None:
            stmt = stmt.where(TripRestaurant.id != exclude_id)
        return list(self.db.scalars(stmt.order_by(TripRestaurant.sort_order)))

    def find_auto_generated(self, trip_id: str, restaurant_id: str, meal: str) -> List[TripRestaurant]:
        """Rows the availability sync owns: auto_dates and still potential."""
        stmt = select(TripRestaurant).where(
            TripRestaurant.trip_id == trip_id,
            TripRestaurant.restaurant_id == restaurant_id,
            TripRestaurant.meal == meal,
            TripRestaurant.auto_dates.is_(True),
            TripRestaurant.status == STATUS_POTENTIAL,
        )
        return list(self.db.scalars(stmt.order_by(TripRestaurant.day_assigned)))

    def max_sort_order(self, trip_id: str) -> Optional[int]:
        return self.db.scalar(
            select(func.max(TripRestaurant.sort_order)).where(TripRestaurant.trip_id == trip_id)
        )

    def next_sort_order(self, trip_id: str) -> int:
        current = self.max_sort_order(trip_id)
        return 0 if current is None else current + 1

    def list_for_trip(self, trip_id: str) -> List[TripRestaurant]:
        """All rows for a trip: by day, meal, booked first, then manual order."""
        stmt = (
            select(TripRestaurant)
            .options(joinedload(TripRestaurant.restaurant))
            .where(TripRestaurant.trip_id == trip_id)
            .order_by(
                TripRestaurant.day_assigned.asc().nulls_first(),
                TripRestaurant.meal.asc().nulls_first(),
                (TripRestaurant.status != STATUS_BOOKED).asc(),
                TripRestaurant.sort_order.asc(),
            )
        )
        return list(self.db.scalars(stmt).unique())

    def delete_for_restaurant(self, trip_id: str, restaurant_id: str) -> int:
        rows = list(self.db.scalars(
            select(TripRestaurant).where(
                TripRestaurant.trip_id == trip_id,
                TripRestaurant.restaurant_id == restaurant_id,
            )
        ))
        for row in rows:
            self.db.delete(row)
        self.db.flush()
        return len(rows)
