import unicodedata
from urllib.parse import quote

from database import stringify_ids
from uploads import image_url


def owner_summary(user):
    if not user:
        return None
    return {"_id": user["_id"], "name": user.get("name"), "email": user.get("email")}


def populate_cars(db, cars, with_services=True):
    """Replace owner and service references with the referenced documents."""
    owner_ids = {car.get("owner") for car in cars if car.get("owner")}
    owners = {u["_id"]: u for u in db.users.find({"_id": {"$in": list(owner_ids)}})}

    services = {}
    if with_services:
        service_ids = [sid for car in cars for sid in car.get("services", [])]
        services = {s["_id"]: s for s in db.services.find({"_id": {"$in": service_ids}})}

    populated = []
    for car in cars:
        doc = dict(car)
        doc["owner"] = owner_summary(owners.get(car.get("owner")))
        if with_services:
            # ids whose service document no longer exists are dropped
            doc["services"] = [services[sid] for sid in car.get("services", []) if sid in services]
        doc["image_url"] = image_url(car.get("image"))
        populated.append(stringify_ids(doc))
    return populated


def populate_car(db, car, with_services=True):
    return populate_cars(db, [car], with_services=with_services)[0]


def populate_services(db, services):
    car_ids = {s.get("car") for s in services if s.get("car")}
    cars = {c["_id"]: c for c in db.cars.find({"_id": {"$in": list(car_ids)}})}
    populated = []
    for service in services:
        doc = dict(service)
        car = cars.get(service.get("car"))
        if car:
            doc["car"] = {
                "_id": car["_id"],
                "brand": car.get("brand"),
                "model": car.get("model"),
                "year": car.get("year"),
            }
        populated.append(stringify_ids(doc))
    return populated


def attachment_headers(filename):
    """``Content-Disposition`` for a download, with an ASCII fallback name and the UTF-8 one."""
    fallback = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    fallback = fallback.replace('"', "").replace("\\", "") or "download"
    return {"Content-Disposition": f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"}
