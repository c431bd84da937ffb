import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from pymongo import DESCENDING

import reports
from activity_log import record_activity
from auth import ensure_car_access, get_current_user
from database import get_db
from routes.cars import load_car
from serializers import attachment_headers, populate_cars

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reports", tags=["Reports"])


def _format(format: str = Query("pdf")):
    if format not in reports.FORMATS:
        raise HTTPException(status_code=400, detail=f"Unsupported report format: {format}")
    return format


def _scope(user):
    """Cars visible to a report: every car for admins, own cars otherwise."""
    return {} if user.get("role") == "admin" else {"owner": user["_id"]}


def _download(db, user, request, report, fmt, filename):
    content = reports.render(report, fmt)
    record_activity(db, user, "generate_report", "report", None,
                    {"report": report["title"], "format": fmt}, request)
    logger.info("User %s generated %s", user["_id"], filename)
    return Response(
        content=content,
        media_type=reports.FORMATS[fmt],
        headers=attachment_headers(filename),
    )


@router.get("/cars")
def all_cars_report(request: Request, fmt=Depends(_format), user=Depends(get_current_user), db=Depends(get_db)):
    cars = populate_cars(db, list(db.cars.find(_scope(user)).sort("created_at", DESCENDING)))
    report = reports.build_cars_report(cars)
    return _download(db, user, request, report, fmt, f"all-cars-report.{fmt}")


@router.get("/cars/{car_id}/services")
def service_history_report(
    car_id: str,
    request: Request,
    fmt=Depends(_format),
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    car = load_car(db, car_id)
    ensure_car_access(car, user, "view services of")
    services = list(db.services.find({"car": car["_id"]}))
    report = reports.build_service_history_report(car, services)
    filename = f"{car.get('brand')}-{car.get('model')}-service-history.{fmt}"
    return _download(db, user, request, report, fmt, filename)


@router.get("/maintenance/monthly")
def monthly_maintenance_report(
    request: Request,
    fmt=Depends(_format),
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    car_ids = [c["_id"] for c in db.cars.find(_scope(user), {"_id": 1})]
    query = {} if user.get("role") == "admin" else {"car": {"$in": car_ids}}
    services = list(db.services.find(query))
    report = reports.build_monthly_report(services)
    return _download(db, user, request, report, fmt, f"monthly-maintenance-summary.{fmt}")
