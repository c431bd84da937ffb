import base64
import logging
import os
import random
import time

from fastapi import HTTPException

from config import IMAGE_STORAGE, MAX_IMAGE_SIZE, PLACEHOLDER_IMAGE_URL, PUBLIC_API_URL, UPLOAD_DIR

logger = logging.getLogger(__name__)

CAR_IMAGE_DIR = os.path.join(UPLOAD_DIR, "cars")


def size_label(size):
    for unit, factor in (("MB", 1024 * 1024), ("KB", 1024)):
        if size >= factor:
            return f"{size / factor:g} {unit}"
    return f"{size} bytes"


def has_file(upload):
    return upload is not None and bool(upload.filename)


def save_car_image(upload, storage=None):
    """Store an uploaded car image and return the value kept on the car document.

    Disk storage returns the public ``/uploads/cars/...`` path, base64 storage
    returns a ``data:`` URL.
    """
    storage = storage or IMAGE_STORAGE
    content_type = upload.content_type or ""
    if not content_type.startswith("image/"):
        logger.warning("Rejected upload %s with type %s", upload.filename, content_type)
        raise HTTPException(status_code=400, detail="Only image files are allowed!")

    data = upload.file.read(MAX_IMAGE_SIZE + 1)
    if len(data) > MAX_IMAGE_SIZE:
        logger.warning("Rejected upload %s over size limit", upload.filename)
        raise HTTPException(
            status_code=400,
            detail=f"Image exceeds the {size_label(MAX_IMAGE_SIZE)} limit",
        )

    if storage == "base64":
        return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"

    os.makedirs(CAR_IMAGE_DIR, exist_ok=True)
    ext = os.path.splitext(upload.filename)[1].lower()
    filename = f"car-{int(time.time() * 1000)}-{random.randint(0, 10**9 - 1)}{ext}"
    with open(os.path.join(CAR_IMAGE_DIR, filename), "wb") as fh:
        fh.write(data)
    logger.info("Saved car image %s (%d bytes)", filename, len(data))
    return f"/uploads/cars/{filename}"


def remove_car_image(image):
    if not image or not image.startswith("/uploads/cars/"):
        return
    path = os.path.join(CAR_IMAGE_DIR, os.path.basename(image))
    try:
        os.remove(path)
    except FileNotFoundError:
        logger.debug("Image %s already gone", path)


def image_url(image):
    if not image:
        return PLACEHOLDER_IMAGE_URL
    if image.startswith(("data:", "http://", "https://")):
        return image
    return f"{PUBLIC_API_URL}{image}"
