import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import CORS_ORIGINS, LOG_LEVEL, UPLOAD_DIR
from database import ensure_indexes, get_db
from routes import activities, cars, fuel, reports, services, two_factor, users

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_indexes(app.dependency_overrides.get(get_db, get_db)())
    yield


app = FastAPI(title="Car Management System API", lifespan=lifespan)

app.include_router(users.router)
app.include_router(cars.router)
app.include_router(fuel.router)
app.include_router(services.router)
app.include_router(reports.router)
app.include_router(activities.router)
app.include_router(two_factor.router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials="*" not in CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

os.makedirs(os.path.join(UPLOAD_DIR, "cars"), exist_ok=True)
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR), name="uploads")


def _error(status_code, message, headers=None):
    return JSONResponse(status_code=status_code, content={"success": False, "message": message}, headers=headers)


def _first_error(errors):
    if not errors:
        return "Invalid request"
    err = errors[0]
    field = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
    return f"{field}: {err.get('msg')}" if field else err.get("msg")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail
    if exc.status_code == 404 and message == "Not Found":
        message = "Route not found"
    return _error(exc.status_code, message, getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return _error(400, _first_error(exc.errors()))


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError):
    return _error(400, _first_error(exc.errors()))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, "Something went wrong!")


@app.get("/")
def home():
    return {
        "success": True,
        "message": "Car Management System API is running",
        "timestamp": datetime.utcnow().isoformat(),
    }
