import csv
import io
import json
import logging
from collections import Counter
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)

CSV_HEADERS = ["Timestamp", "Action", "Entity Type", "Entity ID", "Details", "User Agent", "URL"]


def record_activity(db, user, action, entity_type, entity_id=None, details=None, request=None):
    activity = {
        "action": action,
        "entity_type": entity_type,
        "entity_id": str(entity_id) if entity_id is not None else None,
        "details": details or {},
        "user": user["_id"] if user else None,
        "user_name": user.get("name") if user else None,
        "timestamp": datetime.utcnow(),
        "user_agent": request.headers.get("user-agent") if request is not None else None,
        "url": str(request.url) if request is not None else None,
    }
    db.activities.insert_one(activity)
    logger.debug("Activity %s %s %s", action, entity_type, activity["entity_id"])
    return activity


def build_filter(action=None, entity_type=None, date_from=None, date_to=None):
    """Mongo query for the activity filters; date bounds are inclusive days."""
    query = {}
    if action:
        query["action"] = action
    if entity_type:
        query["entity_type"] = entity_type
    if date_from or date_to:
        query["timestamp"] = {}
        if date_from:
            query["timestamp"]["$gte"] = datetime.combine(date_from, datetime.min.time())
        if date_to:
            query["timestamp"]["$lt"] = datetime.combine(date_to + timedelta(days=1), datetime.min.time())
    return query


def activity_stats(activities, now=None, top=5):
    now = now or datetime.utcnow()
    start_of_day = datetime.combine(now.date(), datetime.min.time())

    action_counts = Counter(a.get("action") for a in activities)
    user_counts = Counter(a.get("user") for a in activities if a.get("user"))
    names = {a.get("user"): a.get("user_name") for a in activities if a.get("user")}

    return {
        "total_activities": len(activities),
        "today_activities": sum(1 for a in activities if a.get("timestamp") and a["timestamp"] >= start_of_day),
        "top_actions": [{"action": action, "count": n} for action, n in action_counts.most_common(top)],
        "top_users": [
            {"user": str(user), "name": names.get(user), "count": n}
            for user, n in user_counts.most_common(top)
        ],
    }


def activities_to_csv(activities):
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(CSV_HEADERS)
    for a in activities:
        timestamp = a.get("timestamp")
        writer.writerow([
            timestamp.isoformat() if timestamp else "",
            a.get("action"),
            a.get("entity_type"),
            a.get("entity_id") or "N/A",
            json.dumps(a.get("details") or {}, default=str),
            a.get("user_agent") or "",
            a.get("url") or "",
        ])
    return buf.getvalue()
