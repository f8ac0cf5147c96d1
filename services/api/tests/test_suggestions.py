from datetime import date, timedelta

from tripplanner.services.availability import AvailabilityDate
from tripplanner.services.suggestions import SlotCandidate, compute_suggestions


def D(day):
    return date(2024, 4, day)


def cand(id, restaurant_id, day=None, meal=None, status="potential", name=None):
    return SlotCandidate(
        id=id,
        restaurant_id=restaurant_id,
        name=name or restaurant_id.upper(),
        day_assigned=day,
        meal=meal,
        status=status,
    )


def avail(*days, status="available"):
    return [AvailabilityDate(date=d, status=status) for d in days]


def test_crowded_slot_moves_available_restaurant():
    candidates = [
        cand("tr-a", "a", D(5), "lunch"),
        cand("tr-b", "b", D(5), "lunch"),
    ]
    availability = {"a": avail(D(5), D(6))}

    suggestions = compute_suggestions(candidates, availability)

    assert len(suggestions) == 1
    s = suggestions[0]
    assert s.type == "move"
    assert len(s.actions) == 1
    action = s.actions[0]
    assert action.tr_id == "tr-a"
    assert (action.from_slot.day, action.from_slot.meal) == (D(5), "lunch")
    assert (action.to_slot.day, action.to_slot.meal) == (D(6), "lunch")
    assert "2 potentials competing" in s.description


def test_unavailable_date_produces_conflict():
    candidates = [cand("tr-a", "a", D(5), "dinner")]
    availability = {"a": avail(D(7))}

    suggestions = compute_suggestions(candidates, availability)

    assert len(suggestions) == 1
    s = suggestions[0]
    assert s.type == "conflict"
    assert s.actions[0].to_slot.day == D(7)
    assert "2024-04-05" in s.description
    assert "2024-04-07" in s.description


def test_conflict_lists_at_most_three_empty_alternatives():
    candidates = [
        cand("tr-a", "a", D(1), "dinner"),
        cand("tr-x", "x", D(3), "dinner"),
    ]
    availability = {"a": avail(D(2), D(3), D(4), D(5), D(6))}

    suggestions = compute_suggestions(candidates, availability)

    assert len(suggestions) == 1
    s = suggestions[0]
    # 04-03 dinner is occupied, earliest empty date wins
    assert s.actions[0].to_slot.day == D(2)
    assert "2024-04-02, 2024-04-04, 2024-04-05 instead" in s.description
    assert "2024-04-06" not in s.description


def test_conflict_alternatives_respect_meal():
    candidates = [
        cand("tr-a", "a", D(1), "dinner"),
        cand("tr-x", "x", D(2), "lunch"),
    ]
    availability = {"a": avail(D(2))}

    suggestions = compute_suggestions(candidates, availability)

    assert [s.type for s in suggestions] == ["conflict"]
    assert suggestions[0].actions[0].to_slot.day == D(2)
    assert suggestions[0].actions[0].to_slot.meal == "dinner"


def test_booked_rows_are_never_moved():
    candidates = [
        cand("tr-a", "a", D(5), "lunch", status="booked"),
        cand("tr-b", "b", D(5), "lunch"),
        cand("tr-c", "c", D(8), "lunch", status="booked"),
    ]
    availability = {"a": avail(D(6)), "c": avail(D(9))}

    assert compute_suggestions(candidates, availability) == []


def test_booked_rows_block_target_slots():
    candidates = [
        cand("tr-a", "a", D(5), "lunch"),
        cand("tr-b", "b", D(5), "lunch"),
        cand("tr-c", "c", D(6), "lunch", status="booked"),
    ]
    availability = {"a": avail(D(5), D(6))}

    assert compute_suggestions(candidates, availability) == []


def test_no_feed_means_no_suggestions():
    candidates = [
        cand("tr-a", "a", D(5), "lunch"),
        cand("tr-b", "b", D(5), "lunch"),
    ]
    assert compute_suggestions(candidates, {}) == []


def test_feed_without_bookable_dates_skips_conflict():
    candidates = [cand("tr-a", "a", D(5), "dinner")]
    availability = {"a": avail(D(6), D(7), status="booked_out")}

    assert compute_suggestions(candidates, availability) == []


def test_unscheduled_rows_are_ignored():
    candidates = [
        cand("tr-a", "a", None, None),
        cand("tr-b", "b", D(5), None),
        cand("tr-c", "c", None, "dinner"),
    ]
    availability = {k: avail(D(6)) for k in "abc"}

    assert compute_suggestions(candidates, availability) == []


def test_each_crowded_occupant_gets_at_most_one_move():
    candidates = [
        cand("tr-a", "a", D(5), "lunch"),
        cand("tr-b", "b", D(5), "lunch"),
        cand("tr-c", "c", D(5), "lunch"),
    ]
    availability = {
        "a": avail(D(5), D(6), D(7)),
        "b": avail(D(5), D(6), D(7)),
    }

    suggestions = compute_suggestions(candidates, availability)

    moves = [s for s in suggestions if s.type == "move"]
    assert len(moves) == 2
    assert {m.actions[0].tr_id for m in moves} == {"tr-a", "tr-b"}
    # Suggestions are computed against the current schedule, so both may pick 04-06
    assert all(m.actions[0].to_slot.day == D(6) for m in moves)


def test_crowded_and_unavailable_yields_both_kinds():
    candidates = [
        cand("tr-a", "a", D(5), "lunch"),
        cand("tr-b", "b", D(5), "lunch"),
    ]
    availability = {"a": avail(D(6), D(7))}

    suggestions = compute_suggestions(candidates, availability)

    assert [s.type for s in suggestions] == ["move", "conflict"]
    assert all(s.actions[0].tr_id == "tr-a" for s in suggestions)


def test_max_alternatives_override():
    candidates = [cand("tr-a", "a", D(1), "dinner")]
    availability = {"a": avail(*[D(1) + timedelta(days=i) for i in range(1, 6)])}

    suggestions = compute_suggestions(candidates, availability, max_alternatives=1)

    assert suggestions[0].description.endswith("available on 2024-04-02 instead")
