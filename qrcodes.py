import io
import json
from datetime import datetime

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from config import FRONTEND_URL


def car_qr_payload(car, now=None):
    """Summary embedded in a car's QR code; ``car`` has its owner populated."""
    now = now or datetime.utcnow()
    car_url = f"{FRONTEND_URL}/cars/{car['_id']}"
    owner = car.get("owner")
    return {
        "car_id": str(car["_id"]),
        "brand": car.get("brand"),
        "model": car.get("model"),
        "year": car.get("year"),
        "price": car.get("price"),
        "color": car.get("color"),
        "mileage": car.get("mileage"),
        "description": car.get("description"),
        "car_url": car_url,
        "service_history_url": f"{car_url}#services",
        "generated_at": now.isoformat(),
        "owner": {"name": owner.get("name"), "email": owner.get("email")} if owner else None,
    }


def render_qr_png(payload):
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=8, border=4)
    qr.add_data(json.dumps(payload, indent=2))
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def qr_filename(car):
    return f"{car.get('brand')}-{car.get('model')}-{car.get('year')}-QR.png"
