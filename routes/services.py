import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from pymongo import DESCENDING

from activity_log import record_activity
from auth import ensure_car_access, require_admin, require_user_or_admin
from database import get_db, naive_utc, parse_object_id, stringify_ids
from models import ServiceCreate, ServiceUpdate
from routes.cars import load_car
from serializers import populate_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/services", tags=["Services"])


def load_service(db, service_id):
    service = db.services.find_one({"_id": parse_object_id(service_id, "service")})
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")
    return service


def _service_car(db, service, user, verb):
    car = db.cars.find_one({"_id": service.get("car")})
    if not car:
        # orphaned record: only an admin may still touch it
        if user.get("role") != "admin":
            raise HTTPException(status_code=404, detail="Car not found")
        return None
    ensure_car_access(car, user, verb)
    return car


# Admin listing must be declared before the /{car_id} lookup
@router.get("")
def get_all_services(admin=Depends(require_admin), db=Depends(get_db)):
    services = populate_services(db, list(db.services.find().sort("date", DESCENDING)))
    return {"success": True, "count": len(services), "data": services}


@router.post("", status_code=201)
def create_service(service: ServiceCreate, request: Request, user=Depends(require_user_or_admin), db=Depends(get_db)):
    car = load_car(db, service.car)
    ensure_car_access(car, user, "add services to")

    now = datetime.utcnow()
    service_data = service.model_dump()
    service_data.update({
        "car": car["_id"],
        "date": naive_utc(service.date) or now,
        "created_at": now,
        "updated_at": now,
    })
    service_data["_id"] = db.services.insert_one(service_data).inserted_id

    pushed = db.cars.update_one({"_id": car["_id"]}, {"$push": {"services": service_data["_id"]}})
    if pushed.matched_count == 0:
        # car vanished between the lookup and the push
        db.services.delete_one({"_id": service_data["_id"]})
        raise HTTPException(status_code=404, detail="Car not found")

    record_activity(db, user, "create", "service", service_data["_id"],
                    {"car": str(car["_id"]), "cost": service_data["cost"]}, request)
    logger.info("Service %s added to car %s", service_data["_id"], car["_id"])
    return {"success": True, "message": "Service created successfully", "data": stringify_ids(service_data)}


@router.get("/{car_id}")
def get_car_services(car_id: str, user=Depends(require_user_or_admin), db=Depends(get_db)):
    car = load_car(db, car_id)
    ensure_car_access(car, user, "view services of")
    services = stringify_ids(list(db.services.find({"car": car["_id"]}).sort("date", DESCENDING)))
    return {"success": True, "count": len(services), "data": services}


@router.put("/{service_id}")
def update_service(
    service_id: str,
    update: ServiceUpdate,
    request: Request,
    user=Depends(require_user_or_admin),
    db=Depends(get_db),
):
    service = load_service(db, service_id)
    _service_car(db, service, user, "update services of")

    changes = update.model_dump(exclude_none=True)
    if "date" in changes:
        changes["date"] = naive_utc(changes["date"])
    changes["updated_at"] = datetime.utcnow()
    db.services.update_one({"_id": service["_id"]}, {"$set": changes})

    record_activity(db, user, "update", "service", service["_id"],
                    {"fields": sorted(k for k in changes if k != "updated_at")}, request)
    return {
        "success": True,
        "message": "Service updated successfully",
        "data": stringify_ids(db.services.find_one({"_id": service["_id"]})),
    }


@router.delete("/{service_id}")
def delete_service(service_id: str, request: Request, user=Depends(require_user_or_admin), db=Depends(get_db)):
    service = load_service(db, service_id)
    _service_car(db, service, user, "delete services of")

    db.services.delete_one({"_id": service["_id"]})
    db.cars.update_one({"_id": service.get("car")}, {"$pull": {"services": service["_id"]}})

    record_activity(db, user, "delete", "service", service["_id"],
                    {"car": str(service.get("car"))}, request)
    logger.info("Service %s deleted by %s", service["_id"], user["_id"])
    return {"success": True, "message": "Service deleted successfully"}
