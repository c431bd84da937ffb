import csv
import io
from datetime import datetime, timedelta

from bson import ObjectId

from conftest import bearer, create_car

from activity_log import activities_to_csv, activity_stats, build_filter


def test_build_filter_date_bounds_are_inclusive_days():
    query = build_filter(action="create", date_from=datetime(2024, 1, 1).date(), date_to=datetime(2024, 1, 31).date())
    assert query["action"] == "create"
    assert query["timestamp"] == {"$gte": datetime(2024, 1, 1), "$lt": datetime(2024, 2, 1)}
    assert build_filter() == {}


def test_activity_stats_counts():
    now = datetime(2024, 5, 10, 12)
    alice, bob = ObjectId(), ObjectId()
    activities = [
        {"action": "create", "user": alice, "user_name": "Alice", "timestamp": now},
        {"action": "create", "user": alice, "user_name": "Alice", "timestamp": now - timedelta(days=2)},
        {"action": "delete", "user": bob, "user_name": "Bob", "timestamp": now - timedelta(hours=1)},
    ]
    stats = activity_stats(activities, now=now)
    assert stats["total_activities"] == 3
    assert stats["today_activities"] == 2
    assert stats["top_actions"] == [{"action": "create", "count": 2}, {"action": "delete", "count": 1}]
    assert stats["top_users"][0] == {"user": str(alice), "name": "Alice", "count": 2}


def test_csv_export_columns():
    rows = list(csv.reader(io.StringIO(activities_to_csv([
        {"timestamp": datetime(2024, 1, 1), "action": "view", "entity_type": "car", "details": {"a": 1}},
    ]))))
    assert rows[0] == ["Timestamp", "Action", "Entity Type", "Entity ID", "Details", "User Agent", "URL"]
    assert rows[1][:5] == ["2024-01-01T00:00:00", "view", "car", "N/A", '{"a": 1}']


def test_mutations_are_logged(client, db, alice):
    car = create_car(client, alice)
    client.delete(f"/api/cars/{car['_id']}", headers=bearer(alice["token"]))
    actions = [(a["action"], a["entity_type"]) for a in db.activities.find().sort("timestamp", 1)]
    assert ("create", "user") in actions
    assert ("create", "car") in actions
    assert ("delete", "car") in actions


def test_client_can_report_activity(client, db, alice):
    resp = client.post(
        "/api/activities",
        json={"action": "view", "entity_type": "car", "entity_id": "abc", "url": "http://app/cars/abc"},
        headers={**bearer(alice["token"]), "User-Agent": "pytest-agent"},
    )
    assert resp.status_code == 201
    stored = db.activities.find_one({"action": "view"})
    assert stored["user_agent"] == "pytest-agent"
    assert str(stored["user"]) == alice["_id"]


def test_listing_filters_and_admin_only(client, alice, admin):
    create_car(client, alice)
    assert client.get("/api/activities", headers=bearer(alice["token"])).status_code == 403

    resp = client.get("/api/activities", params={"entity_type": "car"}, headers=bearer(admin["token"]))
    body = resp.json()
    assert body["count"] == 1
    assert body["data"][0]["action"] == "create"

    today = datetime.utcnow().date().isoformat()
    resp = client.get("/api/activities", params={"date_from": today, "date_to": today}, headers=bearer(admin["token"]))
    assert resp.json()["count"] == 2

    resp = client.get("/api/activities", params={"action": "explode"}, headers=bearer(admin["token"]))
    assert resp.status_code == 400


def test_stats_and_export_endpoints(client, alice, admin):
    create_car(client, alice)
    stats = client.get("/api/activities/stats", headers=bearer(admin["token"])).json()["data"]
    assert stats["total_activities"] == 2
    assert stats["top_users"][0]["name"] == "Alice"

    resp = client.get("/api/activities/export", headers=bearer(admin["token"]))
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert len(list(csv.reader(io.StringIO(resp.text)))) == 3
