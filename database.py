import logging
from datetime import timezone

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException
from pymongo import ASCENDING, DESCENDING, MongoClient

from config import MONGODB_DB, MONGODB_URI

logger = logging.getLogger(__name__)

client = MongoClient(MONGODB_URI, serverSelectionTimeoutMS=5000)
db = client[MONGODB_DB]


def get_db():
    return db


def ensure_indexes(database):
    database.users.create_index("email", unique=True)
    database.cars.create_index("owner")
    database.cars.create_index([("brand", ASCENDING), ("model", ASCENDING)])
    database.cars.create_index([("created_at", DESCENDING)])
    database.services.create_index("car")
    database.fuel_entries.create_index([("car", ASCENDING), ("date", ASCENDING)])
    database.activities.create_index([("timestamp", DESCENDING)])
    logger.info("Indexes ensured on database %s", database.name)


def parse_object_id(value, entity="record"):
    """Turn a path or body id into an ObjectId, 400 if it is malformed."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail=f"Invalid {entity} id")


def stringify_ids(doc):
    """Recursively convert ObjectIds so the document can be returned as JSON."""
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, list):
        return [stringify_ids(item) for item in doc]
    if isinstance(doc, dict):
        return {key: stringify_ids(value) for key, value in doc.items()}
    return doc


def naive_utc(value):
    """BSON dates come back naive UTC; store them the same way."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
