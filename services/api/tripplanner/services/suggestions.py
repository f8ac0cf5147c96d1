"""Read-only schedule suggestions for a trip.

Two independent passes over the scheduled (day + meal) rows:

- move: a slot holds more than one restaurant, and a potential one could
  go to another bookable date whose slot for the same meal is empty.
- conflict: a potential restaurant sits on a date its availability feed
  does not list as bookable, and there are empty bookable alternatives.

Booked rows are never proposed for moving; they only occupy slots.
Alternatives are tried in ascending date order, so the earliest empty
date wins. Nothing here writes: applying a suggestion goes back through
booking_status.reassign_slot, which re-checks the slot at that point.
"""

import logging
from collections import defaultdict
from datetime import date
from typing import Optional, List, Dict, Literal, Set, Tuple

from pydantic import BaseModel

from ..models import TripRestaurant, STATUS_BOOKED
from ..settings import settings
from .availability import AvailabilityDate, bookable_dates

logger = logging.getLogger("tripplanner.suggestions")

SlotKey = Tuple[date, str]


class SlotCandidate(BaseModel):
    id: str
    restaurant_id: str
    name: str
    day_assigned: Optional[date] = None
    meal: Optional[str] = None
    status: str = "potential"
    sort_order: int = 0

    @classmethod
    def from_row(cls, row: TripRestaurant) -> "SlotCandidate":
        return cls(
            id=row.id,
            restaurant_id=row.restaurant_id,
            name=row.restaurant.name if row.restaurant else row.restaurant_id,
            day_assigned=row.day_assigned,
            meal=row.meal,
            status=row.status,
            sort_order=row.sort_order,
        )


class SlotRef(BaseModel):
    day: date
    meal: str


class SuggestionAction(BaseModel):
    tr_id: str
    restaurant_name: str
    from_slot: SlotRef
    to_slot: SlotRef


class Suggestion(BaseModel):
    type: Literal["move", "conflict"]
    description: str
    actions: List[SuggestionAction]


def _action(c: SlotCandidate, to_day: date) -> SuggestionAction:
    return SuggestionAction(
        tr_id=c.id,
        restaurant_name=c.name,
        from_slot=SlotRef(day=c.day_assigned, meal=c.meal),
        to_slot=SlotRef(day=to_day, meal=c.meal),
    )


def compute_suggestions(
    candidates: List[SlotCandidate],
    availability: Dict[str, List[AvailabilityDate]],
    max_alternatives: Optional[int] = None,
) -> List[Suggestion]:
    if max_alternatives is None:
        max_alternatives = settings.max_conflict_alternatives

    scheduled = sorted(
        (c for c in candidates if c.day_assigned and c.meal),
        key=lambda c: (c.day_assigned, c.meal, c.sort_order),
    )

    slot_map: Dict[SlotKey, List[SlotCandidate]] = defaultdict(list)
    for c in scheduled:
        slot_map[(c.day_assigned, c.meal)].append(c)

    def slot_empty(day: date, meal: str) -> bool:
        return not slot_map.get((day, meal))

    # restaurant_id -> bookable dates, only for restaurants we have a feed for
    avail: Dict[str, List[date]] = {}
    for c in scheduled:
        feed = availability.get(c.restaurant_id)
        if feed is None:
            continue
        avail[c.restaurant_id] = sorted(bookable_dates(feed))

    suggestions: List[Suggestion] = []
    seen: Set[str] = set()

    # Crowded slots
    for (day, meal), occupants in list(slot_map.items()):
        if len(occupants) <= 1:
            continue
        for c in occupants:
            if c.status == STATUS_BOOKED:
                continue
            for alt in avail.get(c.restaurant_id, []):
                if alt == day or not slot_empty(alt, meal):
                    continue
                key = f"move:{c.id}:{alt.isoformat()}"
                if key in seen:
                    continue
                seen.add(key)
                suggestions.append(Suggestion(
                    type="move",
                    description=(
                        f'Move "{c.name}" to {alt.isoformat()} {meal}: frees up {day.isoformat()} '
                        f"({len(occupants)} potentials competing)"
                    ),
                    actions=[_action(c, alt)],
                ))
                break

    # Unavailable dates
    for c in scheduled:
        if c.status == STATUS_BOOKED:
            continue
        dates = avail.get(c.restaurant_id)
        if not dates or c.day_assigned in dates:
            continue

        alternatives = [d for d in dates if slot_empty(d, c.meal)][:max_alternatives]
        if not alternatives:
            continue

        key = f"conflict:{c.id}"
        if key in seen:
            continue
        seen.add(key)
        suggestions.append(Suggestion(
            type="conflict",
            description=(
                f'"{c.name}" is unavailable on {c.day_assigned.isoformat()}: available on '
                f"{', '.join(d.isoformat() for d in alternatives)} instead"
            ),
            actions=[_action(c, alternatives[0])],
        ))

    logger.info(
        f"Computed {len(suggestions)} suggestion(s) over {len(scheduled)} scheduled row(s)"
    )
    return suggestions
