import io

from fastapi.testclient import TestClient
from starlette.datastructures import Headers, UploadFile

from uploads import image_url, save_car_image, size_label

import config
from main import app


def test_health(client):
    body = client.get("/").json()
    assert body["success"] is True
    assert body["message"] == "Car Management System API is running"


def test_unknown_route_uses_error_shape(client):
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Route not found"}


def test_image_url_resolution():
    assert image_url(None) == config.PLACEHOLDER_IMAGE_URL
    assert image_url("data:image/png;base64,AAA") == "data:image/png;base64,AAA"
    assert image_url("https://cdn.example.com/a.png") == "https://cdn.example.com/a.png"
    assert image_url("/uploads/cars/a.png") == f"{config.PUBLIC_API_URL}/uploads/cars/a.png"


def test_base64_storage():
    upload = UploadFile(
        file=io.BytesIO(b"abc"),
        filename="tiny.gif",
        headers=Headers({"content-type": "image/gif"}),
    )
    assert save_car_image(upload, storage="base64") == "data:image/gif;base64,YWJj"


def test_startup_creates_indexes(client, db):
    with TestClient(app) as started:
        started.get("/")
    assert "email_1" in db.users.index_information()
    assert db.users.index_information()["email_1"]["unique"] is True


def test_size_label():
    assert size_label(5 * 1024 * 1024) == "5 MB"
    assert size_label(512 * 1024) == "512 KB"
    assert size_label(10) == "10 bytes"
