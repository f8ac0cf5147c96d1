from datetime import date

from fastapi.testclient import TestClient

from tripplanner.services.availability import AvailabilityDate, bookable_dates, stored_feed, record_results


def post_results(client, restaurant_id, trip_id, platform, dates):
    return client.post("/api/availability/results", json={
        "restaurant_id": restaurant_id,
        "trip_id": trip_id,
        "platform": platform,
        "dates": dates,
    })


def test_bookable_dates_filters_status_and_bounds():
    feed = [
        AvailabilityDate(date=date(2024, 3, 31), status="available"),
        AvailabilityDate(date=date(2024, 4, 1), status="limited"),
        AvailabilityDate(date=date(2024, 4, 2), status="booked_out"),
        AvailabilityDate(date=date(2024, 4, 3)),
    ]

    assert bookable_dates(feed) == {date(2024, 3, 31), date(2024, 4, 1)}
    assert bookable_dates(feed, start=date(2024, 4, 1), end=date(2024, 4, 3)) == {date(2024, 4, 1)}


def test_record_and_list_results(client: TestClient, trip, make_restaurant):
    x = make_restaurant("Sushi X")

    resp = post_results(client, x.id, trip.id, "tabelog", [
        {"date": "2024-04-02", "status": "booked_out"},
        {"date": "2024-04-01", "status": "available", "time_slots": ["18:00", "20:30"]},
    ])
    assert resp.status_code == 201
    assert len(resp.json()) == 2

    listed = client.get("/api/availability", params={"restaurant_id": x.id, "trip_id": trip.id}).json()
    assert [(r["check_date"], r["status"]) for r in listed] == [("2024-04-01", "available"), ("2024-04-02", "booked_out")]
    assert listed[0]["time_slots"] == ["18:00", "20:30"]


def test_posting_again_replaces_same_platform_only(client: TestClient, trip, make_restaurant):
    x = make_restaurant("Sushi X")
    post_results(client, x.id, trip.id, "tabelog", [{"date": "2024-04-01", "status": "available"}])
    post_results(client, x.id, trip.id, "omakase", [{"date": "2024-04-01", "status": "booked_out"}])

    post_results(client, x.id, trip.id, "tabelog", [{"date": "2024-04-03", "status": "limited"}])

    listed = client.get("/api/availability", params={"restaurant_id": x.id}).json()
    assert sorted((r["platform"], r["check_date"]) for r in listed) == [
        ("omakase", "2024-04-01"),
        ("tabelog", "2024-04-03"),
    ]


def test_results_for_unknown_trip_or_restaurant_are_404(client: TestClient, trip, make_restaurant):
    x = make_restaurant("Sushi X")
    feed = [{"date": "2024-04-01", "status": "available"}]

    assert post_results(client, "missing", trip.id, "tabelog", feed).status_code == 404
    assert post_results(client, x.id, "missing", "tabelog", feed).status_code == 404


def test_stored_feed_merges_platforms(db_session, trip, make_restaurant):
    x = make_restaurant("Sushi X")
    record_results(db_session, x.id, trip.id, "tabelog", [
        AvailabilityDate(date=date(2024, 4, 1), status="booked_out"),
        AvailabilityDate(date=date(2024, 4, 2), status="booked_out"),
    ])
    record_results(db_session, x.id, trip.id, "omakase", [
        AvailabilityDate(date=date(2024, 4, 1), status="limited"),
    ])

    feed = stored_feed(db_session, x.id, trip.id)

    assert [(e.date, e.status) for e in feed] == [
        (date(2024, 4, 1), "limited"),
        (date(2024, 4, 2), "booked_out"),
    ]


def test_sync_without_inline_feed_uses_stored_results(client: TestClient, trip, make_restaurant):
    x = make_restaurant("Sushi X")
    post_results(client, x.id, trip.id, "tabelog", [
        {"date": "2024-04-01", "status": "available"},
        {"date": "2024-04-02", "status": "booked_out"},
        {"date": "2024-04-03", "status": "limited"},
    ])

    resp = client.post(f"/api/trips/{trip.id}/restaurants/sync", json={"restaurant_id": x.id, "meal": "dinner"})

    assert resp.status_code == 200
    assert resp.json() == {"added": ["2024-04-01 dinner", "2024-04-03 dinner"], "removed": []}


def test_sync_without_any_feed_is_rejected_and_keeps_rows(client: TestClient, trip, make_restaurant):
    x = make_restaurant("Sushi X")
    url = f"/api/trips/{trip.id}/restaurants/sync"
    client.post(url, json={"restaurant_id": x.id, "availability": {"dates": [
        {"date": "2024-04-01", "status": "available"},
        {"date": "2024-04-02", "status": "limited"},
    ]}})

    resp = client.post(url, json={"restaurant_id": x.id})

    assert resp.status_code == 400
    assert resp.json()["detail"] == "availability.dates is required"
    rows = client.get(f"/api/trips/{trip.id}").json()["restaurants"]
    assert sorted((r["day_assigned"], r["meal"]) for r in rows) == [
        ("2024-04-01", "dinner"),
        ("2024-04-01", "lunch"),
        ("2024-04-02", "dinner"),
        ("2024-04-02", "lunch"),
    ]


def test_sync_with_empty_inline_feed_removes_auto_rows(client: TestClient, trip, make_restaurant):
    x = make_restaurant("Sushi X")
    url = f"/api/trips/{trip.id}/restaurants/sync"
    client.post(url, json={"restaurant_id": x.id, "meal": "lunch", "availability": {"dates": [
        {"date": "2024-04-02", "status": "available"},
    ]}})

    resp = client.post(url, json={"restaurant_id": x.id, "meal": "lunch", "availability": {"dates": []}})

    assert resp.json() == {"added": [], "removed": ["2024-04-02 lunch"]}


def test_health_and_ready(client: TestClient):
    assert client.get("/api/health").json() == {"status": "ok"}
    assert client.get("/api/ready").json() == {"ok": True, "redis_ok": True}
