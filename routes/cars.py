import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import Response
from pymongo import DESCENDING

from activity_log import record_activity
from auth import ensure_car_access, require_user_or_admin
from comparison import compare_cars
from database import get_db, parse_object_id, stringify_ids
from models import CarCreate, CarUpdate
from qrcodes import car_qr_payload, qr_filename, render_qr_png
from serializers import attachment_headers, populate_car, populate_cars
from uploads import has_file, remove_car_image, save_car_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cars", tags=["Cars"])


def load_car(db, car_id):
    car = db.cars.find_one({"_id": parse_object_id(car_id, "car")})
    if not car:
        raise HTTPException(status_code=404, detail="Car not found")
    return car


def _form_fields(**fields):
    # empty form inputs mean "not provided"
    return {k: v for k, v in fields.items() if v is not None and v != ""}


@router.get("")
def get_cars(db=Depends(get_db)):
    cars = populate_cars(db, list(db.cars.find().sort("created_at", DESCENDING)))
    return {"success": True, "count": len(cars), "data": cars}


@router.get("/my-cars")
def get_my_cars(user=Depends(require_user_or_admin), db=Depends(get_db)):
    cars = list(db.cars.find({"owner": user["_id"]}).sort("created_at", DESCENDING))
    cars = populate_cars(db, cars)
    return {"success": True, "count": len(cars), "data": cars}


@router.get("/compare")
def compare(car1: str = Query(...), car2: str = Query(...), db=Depends(get_db)):
    first, second = load_car(db, car1), load_car(db, car2)
    services1 = list(db.services.find({"car": first["_id"]}))
    services2 = list(db.services.find({"car": second["_id"]}))
    result = compare_cars(
        populate_car(db, first, with_services=False),
        populate_car(db, second, with_services=False),
        services1,
        services2,
    )
    return {"success": True, "data": result}


@router.get("/{car_id}")
def get_car(car_id: str, db=Depends(get_db)):
    return {"success": True, "data": populate_car(db, load_car(db, car_id))}


@router.post("", status_code=201)
def create_car(
    request: Request,
    brand: Optional[str] = Form(None),
    model: Optional[str] = Form(None),
    year: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    color: Optional[str] = Form(None),
    mileage: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    user=Depends(require_user_or_admin),
    db=Depends(get_db),
):
    car = CarCreate(**_form_fields(
        brand=brand, model=model, year=year, price=price,
        color=color, mileage=mileage, description=description,
    ))
    now = datetime.utcnow()
    car_data = car.model_dump()
    car_data.update({
        "image": save_car_image(image) if has_file(image) else None,
        "owner": user["_id"],
        "services": [],
        "created_at": now,
        "updated_at": now,
    })
    car_data["_id"] = db.cars.insert_one(car_data).inserted_id
    record_activity(db, user, "create", "car", car_data["_id"],
                    {"brand": car_data["brand"], "model": car_data["model"]}, request)
    logger.info("Car %s created by %s", car_data["_id"], user["_id"])
    return {
        "success": True,
        "message": "Car created successfully",
        "data": populate_car(db, car_data, with_services=False),
    }


@router.put("/{car_id}")
def update_car(
    car_id: str,
    request: Request,
    brand: Optional[str] = Form(None),
    model: Optional[str] = Form(None),
    year: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    color: Optional[str] = Form(None),
    mileage: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    user=Depends(require_user_or_admin),
    db=Depends(get_db),
):
    car = load_car(db, car_id)
    ensure_car_access(car, user, "update")

    update = CarUpdate(**_form_fields(
        brand=brand, model=model, year=year, price=price,
        color=color, mileage=mileage, description=description,
    ))
    changes = update.model_dump(exclude_none=True)
    if has_file(image):
        changes["image"] = save_car_image(image)
    changes["updated_at"] = datetime.utcnow()
    try:
        db.cars.update_one({"_id": car["_id"]}, {"$set": changes})
    except Exception:
        remove_car_image(changes.get("image"))
        raise
    if "image" in changes:
        remove_car_image(car.get("image"))

    record_activity(db, user, "update", "car", car["_id"],
                    {"fields": sorted(k for k in changes if k != "updated_at")}, request)
    logger.info("Car %s updated by %s", car["_id"], user["_id"])
    return {
        "success": True,
        "message": "Car updated successfully",
        "data": populate_car(db, db.cars.find_one({"_id": car["_id"]})),
    }


@router.delete("/{car_id}")
def delete_car(car_id: str, request: Request, user=Depends(require_user_or_admin), db=Depends(get_db)):
    car = load_car(db, car_id)
    ensure_car_access(car, user, "delete")

    db.cars.delete_one({"_id": car["_id"]})
    removed_services = db.services.delete_many({"car": car["_id"]}).deleted_count
    db.fuel_entries.delete_many({"car": car["_id"]})
    remove_car_image(car.get("image"))

    record_activity(db, user, "delete", "car", car["_id"],
                    {"brand": car.get("brand"), "model": car.get("model")}, request)
    logger.info("Car %s deleted by %s with %d services", car["_id"], user["_id"], removed_services)
    return {"success": True, "message": "Car deleted successfully"}


@router.get("/{car_id}/qrcode")
def get_car_qrcode(car_id: str, format: str = Query("png", pattern="^(png|json)$"), db=Depends(get_db)):
    car = populate_car(db, load_car(db, car_id), with_services=False)
    payload = car_qr_payload(car)
    if format == "json":
        return {"success": True, "data": stringify_ids(payload)}
    return Response(
        content=render_qr_png(payload),
        media_type="image/png",
        headers=attachment_headers(qr_filename(car)),
    )
