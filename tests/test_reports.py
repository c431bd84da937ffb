import io
from datetime import datetime

from openpyxl import load_workbook

from conftest import bearer, create_car, create_service

import reports


def test_cars_summary_handles_empty_fleet():
    assert reports.cars_summary([]) == {"total_cars": 0, "total_value": 0, "average_price": 0}


def test_cars_summary_treats_missing_price_as_zero():
    summary = reports.cars_summary([{"price": 100}, {"price": None}])
    assert summary["total_value"] == 100
    assert summary["average_price"] == 50


def test_monthly_breakdown_chronological():
    services = [
        {"date": datetime(2024, 3, 5), "cost": 100},
        {"date": datetime(2023, 12, 1), "cost": 40},
        {"date": datetime(2024, 3, 20), "cost": None},
    ]
    months = reports.monthly_breakdown(services)
    assert [m["month"] for m in months] == ["December 2023", "March 2024"]
    assert months[1]["count"] == 2
    assert months[1]["total_cost"] == 100
    assert months[1]["average_cost"] == 50


def test_empty_report_renders_message():
    report = reports.build_cars_report([], now=datetime(2024, 1, 1))
    wb = load_workbook(io.BytesIO(reports.render_xlsx(report)))
    ws = wb.active
    assert ws["A1"].value == "Car Management System - All Cars Report"
    assert ws["A2"].value == "Generated on: 2024-01-01"
    assert ws["A4"].value == "No cars found in the system."


def test_service_history_pdf_renders():
    car = {"brand": "Audi", "model": "A4", "year": 2020}
    services = [{"date": datetime(2024, 1, 1), "service_type": "repair", "description": "R&D <test>", "cost": 10.0}]
    content = reports.render_pdf(reports.build_service_history_report(car, services))
    assert content.startswith(b"%PDF")


def test_cars_report_xlsx_download(client, alice, bob):
    car = create_car(client, alice)
    create_service(client, alice, car["_id"])
    create_car(client, bob, brand="BMW", model="X5")

    resp = client.get("/api/reports/cars", params={"format": "xlsx"}, headers=bearer(alice["token"]))
    assert resp.status_code == 200
    assert "all-cars-report.xlsx" in resp.headers["content-disposition"]
    ws = load_workbook(io.BytesIO(resp.content)).active
    assert [c.value for c in ws[4]] == ["Brand", "Model", "Year", "Price", "Color", "Mileage", "Owner", "Services Count"]
    assert [c.value for c in ws[5]] == ["Toyota", "Camry", 2020, 25000, "Silver", 35000, "Alice", 1]
    # users only see their own cars
    assert ws["A6"].value is None


def test_service_history_pdf_download(client, alice, bob):
    car = create_car(client, alice)
    create_service(client, alice, car["_id"])

    resp = client.get(f"/api/reports/cars/{car['_id']}/services", headers=bearer(alice["token"]))
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.content.startswith(b"%PDF")

    forbidden = client.get(f"/api/reports/cars/{car['_id']}/services", headers=bearer(bob["token"]))
    assert forbidden.status_code == 403


def test_monthly_report_and_activity(client, db, alice):
    car = create_car(client, alice)
    create_service(client, alice, car["_id"], date="2024-02-10T00:00:00", cost=60)
    resp = client.get(
        "/api/reports/maintenance/monthly", params={"format": "xlsx"}, headers=bearer(alice["token"])
    )
    ws = load_workbook(io.BytesIO(resp.content)).active
    assert [c.value for c in ws[5]][:3] == ["February 2024", 1, 60]
    assert db.activities.count_documents({"action": "generate_report"}) == 1


def test_unknown_report_format(client, alice):
    resp = client.get("/api/reports/cars", params={"format": "doc"}, headers=bearer(alice["token"]))
    assert resp.status_code == 400
    assert resp.json()["message"] == "Unsupported report format: doc"


def test_reports_require_auth(client):
    assert client.get("/api/reports/cars").status_code == 401
