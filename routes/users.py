import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from pymongo import DESCENDING

from activity_log import record_activity
from auth import (
    create_access_token,
    get_current_user,
    hash_password,
    public_user,
    require_admin,
    verify_password,
)
from database import get_db
from models import ProfileUpdate, UserCreate, UserLogin
from twofactor import check_second_factor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


def _with_token(user):
    data = public_user(user)
    data["token"] = create_access_token({"sub": str(user["_id"]), "role": user.get("role", "user")})
    return data


@router.post("/register", status_code=201)
def register(user: UserCreate, request: Request, db=Depends(get_db)):
    email = user.email.lower()
    if db.users.find_one({"email": email}):
        raise HTTPException(status_code=400, detail="User already exists")
    now = datetime.utcnow()
    user_data = {
        "name": user.name.strip(),
        "email": email,
        "password": hash_password(user.password),
        "role": "user",
        "two_factor_enabled": False,
        "created_at": now,
        "updated_at": now,
    }
    user_data["_id"] = db.users.insert_one(user_data).inserted_id
    record_activity(db, user_data, "create", "user", user_data["_id"], {"email": email}, request)
    logger.info("Registered user %s", email)
    return {"success": True, "message": "User registered successfully", "data": _with_token(user_data)}


@router.post("/login")
def login(credentials: UserLogin, request: Request, db=Depends(get_db)):
    found = db.users.find_one({"email": credentials.email.lower()})
    if not found or not verify_password(credentials.password, found["password"]):
        logger.warning("Failed login for %s", credentials.email)
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if found.get("two_factor_enabled"):
        if not credentials.otp:
            raise HTTPException(
                status_code=401,
                detail="Two-factor code required",
                headers={"X-Two-Factor-Required": "true"},
            )
        if not check_second_factor(db, found, credentials.otp):
            logger.warning("Bad two-factor code for %s", credentials.email)
            raise HTTPException(status_code=401, detail="Invalid two-factor code")

    record_activity(db, found, "login", "user", found["_id"], request=request)
    return {"success": True, "data": _with_token(found)}


@router.get("/profile")
def get_profile(user=Depends(get_current_user)):
    return {"success": True, "data": public_user(user)}


@router.put("/profile")
def update_profile(update: ProfileUpdate, request: Request, user=Depends(get_current_user), db=Depends(get_db)):
    changes = update.model_dump(exclude_none=True)
    if "email" in changes:
        changes["email"] = changes["email"].lower()
        taken = db.users.find_one({"email": changes["email"], "_id": {"$ne": user["_id"]}})
        if taken:
            raise HTTPException(status_code=400, detail="Email already in use")
    if "password" in changes:
        changes["password"] = hash_password(changes["password"])
    if changes:
        changes["updated_at"] = datetime.utcnow()
        db.users.update_one({"_id": user["_id"]}, {"$set": changes})
        record_activity(db, user, "update", "user", user["_id"],
                        {"fields": sorted(k for k in changes if k != "updated_at")}, request)
    updated = db.users.find_one({"_id": user["_id"]})
    return {"success": True, "message": "Profile updated successfully", "data": _with_token(updated)}


@router.get("")
def list_users(admin=Depends(require_admin), db=Depends(get_db)):
    users = [public_user(u) for u in db.users.find().sort("created_at", DESCENDING)]
    return {"success": True, "count": len(users), "data": users}
