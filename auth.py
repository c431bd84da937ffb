import logging
from datetime import datetime, timedelta

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, BCRYPT_ROUNDS, SECRET_KEY
from database import get_db

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/users/login", auto_error=False)


def hash_password(password):
    return pwd_context.hash(password)


def verify_password(plain, hashed):
    return pwd_context.verify(plain, hashed)


def create_access_token(data: dict):
    to_encode = data.copy()
    expire = datetime.utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def get_current_user(token: str = Depends(oauth2_scheme), db=Depends(get_db)):
    if not token:
        raise HTTPException(status_code=401, detail="Not authorized, no token")
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id = ObjectId(payload.get("sub"))
    except (JWTError, InvalidId, TypeError) as e:
        logger.warning("Rejected token: %s", e)
        raise HTTPException(status_code=401, detail="Not authorized, token failed")
    user = db.users.find_one({"_id": user_id})
    if user is None:
        raise HTTPException(status_code=401, detail="Not authorized, user not found")
    return user


def require_admin(user=Depends(get_current_user)):
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def require_user_or_admin(user=Depends(get_current_user)):
    if user.get("role") not in ("user", "admin"):
        raise HTTPException(status_code=403, detail="User or admin access required")
    return user


def is_owner_or_admin(user, owner_id):
    return owner_id == user["_id"] or user.get("role") == "admin"


def ensure_car_access(car, user, verb):
    if not is_owner_or_admin(user, car.get("owner")):
        logger.warning("User %s denied %s on car %s", user["_id"], verb, car["_id"])
        raise HTTPException(status_code=403, detail=f"Not authorized to {verb} this car")


def public_user(user):
    return {
        "_id": str(user["_id"]),
        "name": user.get("name"),
        "email": user.get("email"),
        "role": user.get("role", "user"),
        "two_factor_enabled": user.get("two_factor_enabled", False),
        "created_at": user.get("created_at"),
    }
