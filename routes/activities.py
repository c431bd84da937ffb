from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from pymongo import DESCENDING

from activity_log import activities_to_csv, activity_stats, build_filter
from auth import get_current_user, require_admin
from database import get_db, stringify_ids
from models import ActivityAction, ActivityCreate, EntityType
from serializers import attachment_headers

router = APIRouter(prefix="/api/activities", tags=["Activities"])


class ActivityFilters:
    def __init__(
        self,
        action: Optional[ActivityAction] = None,
        entity_type: Optional[EntityType] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ):
        self.query = build_filter(action, entity_type, date_from, date_to)


@router.post("", status_code=201)
def log_activity(activity: ActivityCreate, request: Request, user=Depends(get_current_user), db=Depends(get_db)):
    activity_data = activity.model_dump()
    activity_data.update({
        "user": user["_id"],
        "user_name": user.get("name"),
        "timestamp": datetime.utcnow(),
        "user_agent": request.headers.get("user-agent"),
    })
    activity_data["_id"] = db.activities.insert_one(activity_data).inserted_id
    return {"success": True, "data": stringify_ids(activity_data)}


@router.get("")
def get_activities(
    filters: ActivityFilters = Depends(),
    limit: int = Query(200, ge=1, le=1000),
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    activities = stringify_ids(list(db.activities.find(filters.query).sort("timestamp", DESCENDING).limit(limit)))
    return {"success": True, "count": len(activities), "data": activities}


@router.get("/stats")
def get_activity_stats(admin=Depends(require_admin), db=Depends(get_db)):
    return {"success": True, "data": activity_stats(list(db.activities.find()))}


@router.get("/export")
def export_activities(filters: ActivityFilters = Depends(), admin=Depends(require_admin), db=Depends(get_db)):
    activities = list(db.activities.find(filters.query).sort("timestamp", DESCENDING))
    return Response(
        content=activities_to_csv(activities),
        media_type="text/csv",
        headers=attachment_headers("activity-logs.csv"),
    )
