"""SQLAlchemy ORM models for the trip planner.

Tables:
- restaurants: Restaurants the traveler is tracking (scraped or hand-entered)
- trips: A date range in a city that restaurants get scheduled into
- trip_restaurants: One candidate or confirmed visit of a restaurant during a trip
- availability_results: Last known availability per restaurant/trip/platform/date
"""

from __future__ import annotations

import uuid
from datetime import datetime, date
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    Date,
    Text,
    Integer,
    Boolean,
    Float,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func, false
from sqlalchemy.types import JSON

from .db import Base


MEALS = ("lunch", "dinner")
STATUS_POTENTIAL = "potential"
STATUS_BOOKED = "booked"
BOOKING_STATUSES = (STATUS_POTENTIAL, STATUS_BOOKED)


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Restaurant(Base):
    """A restaurant, keyed by its Tabelog URL when it came from a scrape."""
    __tablename__ = "restaurants"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    name_ja: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    tabelog_url: Mapped[Optional[str]] = mapped_column(String(500), unique=True, nullable=True)
    tabelog_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    cuisine: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    area: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    price_range: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    hours: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rank: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Booking platforms
    omakase_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    tablecheck_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    tableall_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    trip_entries: Mapped[list["TripRestaurant"]] = relationship(
        "TripRestaurant", back_populates="restaurant", cascade="all, delete-orphan",
        passive_deletes=True
    )


class Trip(Base):
    """A trip with an inclusive [start_date, end_date] range."""
    __tablename__ = "trips"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    entries: Mapped[list["TripRestaurant"]] = relationship(
        "TripRestaurant", back_populates="trip", cascade="all, delete-orphan",
        passive_deletes=True
    )

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


class TripRestaurant(Base):
    """A restaurant assigned to a trip, optionally pinned to a (day, meal) slot.

    status is "potential" or "booked"; at most one booked row per
    (trip_id, day_assigned, meal). auto_dates marks rows owned by the
    availability sync.
    """
    __tablename__ = "trip_restaurants"
    __table_args__ = (
        # NULL day/meal compare distinct here; identity lookups are done in
        # SlotAssignmentStore.find_by_identity instead.
        UniqueConstraint("trip_id", "restaurant_id", "day_assigned", "meal", name="uq_trip_restaurant_slot"),
        Index("ix_trip_restaurants_trip_slot", "trip_id", "day_assigned", "meal"),
        Index("ix_trip_restaurants_trip_restaurant", "trip_id", "restaurant_id"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    trip_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False
    )
    restaurant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False
    )
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    day_assigned: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    meal: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)  # lunch | dinner
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default=STATUS_POTENTIAL, server_default=STATUS_POTENTIAL)
    booked_via: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    auto_dates: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())

    trip: Mapped["Trip"] = relationship("Trip", back_populates="entries")
    restaurant: Mapped["Restaurant"] = relationship("Restaurant", back_populates="trip_entries")

    @property
    def has_slot(self) -> bool:
        return self.day_assigned is not None and self.meal is not None


class AvailabilityResult(Base):
    """One date of a scraped availability feed for a restaurant on a platform."""
    __tablename__ = "availability_results"
    __table_args__ = (
        Index("idx_availability_restaurant_trip", "restaurant_id", "trip_id", "platform"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    restaurant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False
    )
    trip_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False
    )
    platform: Mapped[str] = mapped_column(String(50), nullable=False)
    check_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="unknown", server_default="unknown")

    time_slots: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    raw_data: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    checked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
