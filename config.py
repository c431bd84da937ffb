import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DB = os.getenv("MONGODB_DB", "car-management-system")

SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    logger.warning("SECRET_KEY is not set, using the development key")
    SECRET_KEY = "dev-secret-change-me"
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 30))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
IMAGE_STORAGE = os.getenv("IMAGE_STORAGE", "disk")  # disk or base64
MAX_IMAGE_SIZE = int(os.getenv("MAX_IMAGE_SIZE", 5 * 1024 * 1024))

PUBLIC_API_URL = os.getenv("PUBLIC_API_URL", "http://localhost:5000").rstrip("/")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173").rstrip("/")
PLACEHOLDER_IMAGE_URL = os.getenv(
    "PLACEHOLDER_IMAGE_URL",
    "https://via.placeholder.com/400x300/cccccc/666666?text=No+Image",
)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

TOTP_ISSUER = os.getenv("TOTP_ISSUER", "Car Management System")
