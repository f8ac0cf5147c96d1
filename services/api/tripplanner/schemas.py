"""Pydantic schemas for the trip planner API.

Request/response models for:
- Restaurants
- Trips (with their scheduled restaurants)
- Trip restaurant slot operations (add, status, assign, sync, optimize)
- Availability results
"""

from datetime import datetime, date
from typing import Optional, Literal, List, Dict, Annotated

from pydantic import BaseModel, Field, BeforeValidator, model_validator

from .services.availability import AvailabilityDate
from .services.suggestions import Suggestion, SuggestionAction


Meal = Literal["lunch", "dinner"]


def _blank_to_none(v):
    # The web client sends "" for cleared date/meal pickers
    return None if v == "" else v


BlankableDate = Annotated[Optional[date], BeforeValidator(_blank_to_none)]
BlankableMeal = Annotated[Optional[Meal], BeforeValidator(_blank_to_none)]


# --- Restaurant ---

class RestaurantBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    name_ja: Optional[str] = None
    tabelog_url: Optional[str] = None
    tabelog_score: Optional[float] = None
    cuisine: Optional[str] = None
    area: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    price_range: Optional[str] = None
    hours: Optional[str] = None
    notes: Optional[str] = None
    rank: Optional[int] = None
    omakase_url: Optional[str] = None
    tablecheck_url: Optional[str] = None
    tableall_url: Optional[str] = None
    image_url: Optional[str] = None


class RestaurantCreate(RestaurantBase):
    pass


class RestaurantUpdate(RestaurantBase):
    pass


class RestaurantOut(RestaurantBase):
    id: str
    is_favorite: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# --- Trip ---

class TripBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    city: Optional[str] = None
    start_date: date
    end_date: date
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class TripCreate(TripBase):
    pass


class TripUpdate(TripBase):
    is_active: bool = False


class TripOut(BaseModel):
    id: str
    name: str
    city: Optional[str]
    start_date: date
    end_date: date
    is_active: bool
    notes: Optional[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TripRestaurantOut(BaseModel):
    trip_restaurant_id: str
    restaurant_id: str
    name: str
    tabelog_url: Optional[str] = None
    city: Optional[str] = None
    sort_order: int
    day_assigned: Optional[date]
    meal: Optional[str]
    trip_notes: Optional[str] = None
    status: str
    booked_via: Optional[str]
    auto_dates: bool


class TripDetailOut(TripOut):
    restaurants: List[TripRestaurantOut] = []


# --- Trip restaurant slot operations ---

class TripRestaurantAdd(BaseModel):
    restaurant_id: str = Field(..., min_length=1)
    day_assigned: BlankableDate = None
    meal: BlankableMeal = None
    status: Optional[str] = None  # defaults to potential
    booked_via: Optional[str] = None
    auto_dates: bool = False


class TripRestaurantAddResponse(BaseModel):
    success: bool = True
    id: str
    updated: bool


class StatusUpdate(BaseModel):
    # Validated in booking_status so a bad value surfaces as InvalidArgument
    status: Optional[str] = None
    booked_via: Optional[str] = None


class AssignUpdate(BaseModel):
    day_assigned: BlankableDate = None
    meal: BlankableMeal = None


class AutoDatesUpdate(BaseModel):
    auto_dates: bool


class SuccessResponse(BaseModel):
    success: bool = True


class AvailabilityFeed(BaseModel):
    dates: List[AvailabilityDate]


class SyncRequest(BaseModel):
    restaurant_id: str = Field(..., min_length=1)
    # Omitted: fall back to the stored availability results
    availability: Optional[AvailabilityFeed] = None
    meal: BlankableMeal = None


class SyncResponse(BaseModel):
    added: List[str]
    removed: List[str]


class OptimizeRequest(BaseModel):
    # Keyed by restaurant id or by the restaurant's tabelog_url
    availability: Dict[str, AvailabilityFeed] = {}


class OptimizeResponse(BaseModel):
    suggestions: List[Suggestion]


class ApplySuggestionsRequest(BaseModel):
    actions: List[SuggestionAction] = Field(..., min_length=1)


class ApplySuggestionsResponse(BaseModel):
    applied: int
    restaurants: List[TripRestaurantOut]


# --- Availability results ---

class AvailabilityResultsCreate(BaseModel):
    restaurant_id: str
    trip_id: str
    platform: str = Field(..., min_length=1, max_length=50)
    dates: List[AvailabilityDate]
    error_message: Optional[str] = None


class AvailabilityResultOut(BaseModel):
    id: str
    restaurant_id: str
    trip_id: str
    platform: str
    check_date: date
    status: str
    time_slots: Optional[list] = None
    checked_at: Optional[datetime] = None
    error_message: Optional[str] = None

    class Config:
        from_attributes = True
