"""PDF and Excel reports over cars and their service records.

A report is built once as a plain dict (title, header lines, table, summary)
and then rendered by either ``render_pdf`` or ``render_xlsx``.
"""
import io
import logging
from collections import OrderedDict
from datetime import datetime
from xml.sax.saxutils import escape

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

logger = logging.getLogger(__name__)

FORMATS = {
    "pdf": "application/pdf",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}
HEADER_COLOR = "4285F4"


def _money(value):
    return f"${value:,.2f}"


def _date(value):
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d")
    return value or "N/A"


def cars_summary(cars):
    total_value = sum(car.get("price") or 0 for car in cars)
    return {
        "total_cars": len(cars),
        "total_value": total_value,
        "average_price": total_value / len(cars) if cars else 0,
    }


def services_summary(services):
    total = sum(s.get("cost") or 0 for s in services)
    return {
        "total_services": len(services),
        "total_cost": total,
        "average_cost": total / len(services) if services else 0,
    }


def monthly_breakdown(services):
    """Group services by calendar month, oldest month first."""
    months = OrderedDict()
    dated = sorted((s for s in services if isinstance(s.get("date"), datetime)), key=lambda s: s["date"])
    for service in dated:
        key = service["date"].strftime("%B %Y")
        bucket = months.setdefault(key, {"month": key, "count": 0, "total_cost": 0})
        bucket["count"] += 1
        bucket["total_cost"] += service.get("cost") or 0
    for bucket in months.values():
        bucket["average_cost"] = bucket["total_cost"] / bucket["count"]
    return list(months.values())


def build_cars_report(cars, now=None):
    now = now or datetime.utcnow()
    summary = cars_summary(cars)
    rows = [
        [
            car.get("brand") or "N/A",
            car.get("model") or "N/A",
            car.get("year") or "N/A",
            car.get("price") or 0,
            car.get("color") or "N/A",
            car.get("mileage") if car.get("mileage") is not None else "N/A",
            (car.get("owner") or {}).get("name") or "N/A",
            len(car.get("services") or []),
        ]
        for car in cars
    ]
    return {
        "title": "Car Management System - All Cars Report",
        "lines": [f"Generated on: {now.strftime('%Y-%m-%d')}"],
        "headers": ["Brand", "Model", "Year", "Price", "Color", "Mileage", "Owner", "Services Count"],
        "rows": rows,
        "empty_message": "No cars found in the system.",
        "summary_title": "Summary:",
        "summary": [
            f"Total Cars: {summary['total_cars']}",
            f"Total Value: {_money(summary['total_value'])}",
            f"Average Price: {_money(summary['average_price'])}",
        ],
    }


def build_service_history_report(car, services, now=None):
    now = now or datetime.utcnow()
    summary = services_summary(services)
    ordered = sorted(services, key=lambda s: s.get("date") or datetime.min)
    return {
        "title": "Service History Report",
        "lines": [
            f"Car: {car.get('brand')} {car.get('model')} ({car.get('year')})",
            f"Generated on: {now.strftime('%Y-%m-%d')}",
        ],
        "headers": ["Date", "Service Type", "Description", "Cost", "Provider"],
        "rows": [
            [
                _date(s.get("date")),
                s.get("service_type"),
                s.get("description"),
                s.get("cost") or 0,
                s.get("service_provider") or "N/A",
            ]
            for s in ordered
        ],
        "empty_message": "No service records found for this car.",
        "summary_title": "Service Summary:",
        "summary": [
            f"Total Services: {summary['total_services']}",
            f"Total Cost: {_money(summary['total_cost'])}",
            f"Average Cost: {_money(summary['average_cost'])}",
        ],
    }


def build_monthly_report(services, now=None):
    now = now or datetime.utcnow()
    summary = services_summary(services)
    return {
        "title": "Monthly Maintenance Cost Summary",
        "lines": [f"Generated on: {now.strftime('%Y-%m-%d')}"],
        "headers": ["Month", "Services Count", "Total Cost", "Average Cost"],
        "rows": [
            [m["month"], m["count"], round(m["total_cost"], 2), round(m["average_cost"], 2)]
            for m in monthly_breakdown(services)
        ],
        "empty_message": "No service records found.",
        "summary_title": "Overall Summary:",
        "summary": [
            f"Total Services: {summary['total_services']}",
            f"Total Cost: {_money(summary['total_cost'])}",
            f"Average Cost: {_money(summary['average_cost'])}",
        ],
    }


def render_xlsx(report):
    wb = Workbook()
    ws = wb.active
    ws.title = report["title"][:31]
    width = len(report["headers"])

    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=width)
    ws.cell(row=1, column=1, value=report["title"]).font = Font(size=16, bold=True)
    ws.cell(row=1, column=1).alignment = Alignment(horizontal="center")
    row = 2
    for line in report["lines"]:
        ws.cell(row=row, column=1, value=line).font = Font(size=12)
        row += 1
    row += 1

    if report["rows"]:
        fill = PatternFill(fill_type="solid", fgColor="FF" + HEADER_COLOR)
        for col, header in enumerate(report["headers"], start=1):
            cell = ws.cell(row=row, column=col, value=header)
            cell.font = Font(bold=True)
            cell.fill = fill
        for values in report["rows"]:
            row += 1
            for col, value in enumerate(values, start=1):
                ws.cell(row=row, column=col, value=value)
    else:
        ws.cell(row=row, column=1, value=report["empty_message"]).font = Font(size=14)
    row += 2

    ws.cell(row=row, column=1, value=report["summary_title"]).font = Font(bold=True)
    for line in report["summary"]:
        row += 1
        ws.cell(row=row, column=1, value=line)

    for col in range(1, width + 1):
        ws.column_dimensions[get_column_letter(col)].width = 18

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def render_pdf(report):
    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=landscape(A4), title=report["title"])
    styles = getSampleStyleSheet()
    story = [Paragraph(escape(report["title"]), styles["Title"])]
    for line in report["lines"]:
        story.append(Paragraph(escape(line), styles["Normal"]))
    story.append(Spacer(1, 12))

    if report["rows"]:
        data = [report["headers"]] + [[_cell(v) for v in values] for values in report["rows"]]
        table = Table(data, repeatRows=1)
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#" + HEADER_COLOR)),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F5F5F5")]),
        ]))
        story.append(table)
    else:
        story.append(Paragraph(escape(report["empty_message"]), styles["Heading3"]))

    story.append(Spacer(1, 18))
    story.append(Paragraph(report["summary_title"], styles["Heading3"]))
    for line in report["summary"]:
        story.append(Paragraph(escape(line), styles["Normal"]))

    doc.build(story)
    return buf.getvalue()


def _cell(value):
    if isinstance(value, float):
        return f"{value:,.2f}"
    return "" if value is None else str(value)


def render(report, fmt):
    logger.debug("Rendering %s as %s", report["title"], fmt)
    if fmt == "pdf":
        return render_pdf(report)
    if fmt == "xlsx":
        return render_xlsx(report)
    raise ValueError(f"Unsupported report format: {fmt}")
