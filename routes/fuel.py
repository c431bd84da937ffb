import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Request
from pymongo import ASCENDING

from activity_log import record_activity
from auth import ensure_car_access, require_user_or_admin
from database import get_db, naive_utc, stringify_ids
from fuel import fuel_stats
from models import FuelEntryCreate
from routes.cars import load_car

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cars", tags=["Fuel"])


def _entries(db, car):
    return list(db.fuel_entries.find({"car": car["_id"]}).sort("date", ASCENDING))


@router.get("/{car_id}/fuel-entries")
def get_fuel_entries(car_id: str, user=Depends(require_user_or_admin), db=Depends(get_db)):
    car = load_car(db, car_id)
    ensure_car_access(car, user, "view")
    entries = stringify_ids(_entries(db, car))
    return {"success": True, "count": len(entries), "data": entries}


@router.post("/{car_id}/fuel-entries", status_code=201)
def add_fuel_entry(
    car_id: str,
    entry: FuelEntryCreate,
    request: Request,
    user=Depends(require_user_or_admin),
    db=Depends(get_db),
):
    car = load_car(db, car_id)
    ensure_car_access(car, user, "update")
    entry_data = entry.model_dump()
    entry_data["date"] = naive_utc(entry_data["date"])
    entry_data.update({"car": car["_id"], "user": user["_id"], "created_at": datetime.utcnow()})
    entry_data["_id"] = db.fuel_entries.insert_one(entry_data).inserted_id
    record_activity(db, user, "create", "fuel_entry", entry_data["_id"], {"car": str(car["_id"])}, request)
    logger.info("Fuel entry %s added to car %s", entry_data["_id"], car["_id"])
    return {"success": True, "message": "Fuel entry added successfully", "data": stringify_ids(entry_data)}


@router.get("/{car_id}/fuel-entries/stats")
def get_fuel_stats(car_id: str, user=Depends(require_user_or_admin), db=Depends(get_db)):
    car = load_car(db, car_id)
    ensure_car_access(car, user, "view")
    return {"success": True, "data": fuel_stats(_entries(db, car))}
