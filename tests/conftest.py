import os
import tempfile

os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="car-uploads-")
os.environ["IMAGE_STORAGE"] = "disk"

from datetime import datetime  # noqa: E402

import mongomock  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from auth import create_access_token, hash_password  # noqa: E402
from database import get_db  # noqa: E402
from main import app  # noqa: E402

CAR = {
    "brand": "Toyota",
    "model": "Camry",
    "year": "2020",
    "price": "25000",
    "color": "Silver",
    "mileage": "35000",
    "description": "Family sedan",
}


@pytest.fixture
def db():
    return mongomock.MongoClient()["car-management-test"]


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


def register(client, name="Alice", email="alice@example.com", password="secret123"):
    resp = client.post("/api/users/register", json={"name": name, "email": email, "password": password})
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice(client):
    return register(client)


@pytest.fixture
def bob(client):
    return register(client, name="Bob", email="bob@example.com")


@pytest.fixture
def admin(db):
    now = datetime.utcnow()
    user = {
        "name": "Admin",
        "email": "admin@example.com",
        "password": hash_password("admin123"),
        "role": "admin",
        "created_at": now,
        "updated_at": now,
    }
    user["_id"] = db.users.insert_one(user).inserted_id
    return {"_id": str(user["_id"]), "token": create_access_token({"sub": str(user["_id"]), "role": "admin"})}


def create_car(client, user, **overrides):
    data = dict(CAR, **overrides)
    resp = client.post("/api/cars", data=data, headers=bearer(user["token"]))
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def create_service(client, user, car_id, **overrides):
    body = {
        "car": car_id,
        "description": "Oil change",
        "cost": 75.0,
        "service_type": "maintenance",
        "service_provider": "Quick Lube",
        "date": "2024-03-10T09:00:00",
    }
    body.update(overrides)
    resp = client.post("/api/services", json=body, headers=bearer(user["token"]))
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]
