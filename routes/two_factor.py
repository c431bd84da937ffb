import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException

from auth import get_current_user
from database import get_db
from models import TwoFactorCode
from twofactor import (
    check_second_factor,
    generate_backup_codes,
    hash_backup_codes,
    new_secret,
    provisioning_uri,
    verify_totp,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth/2fa", tags=["Two-Factor"])


@router.post("/setup")
def setup(user=Depends(get_current_user), db=Depends(get_db)):
    if user.get("two_factor_enabled"):
        raise HTTPException(status_code=400, detail="Two-factor authentication is already enabled")
    secret = new_secret()
    db.users.update_one(
        {"_id": user["_id"]},
        {"$set": {"two_factor_pending_secret": secret, "updated_at": datetime.utcnow()}},
    )
    return {
        "success": True,
        "secret": secret,
        "qr_code_url": provisioning_uri(secret, user["email"]),
    }


@router.post("/verify")
def verify(body: TwoFactorCode, user=Depends(get_current_user), db=Depends(get_db)):
    secret = user.get("two_factor_pending_secret")
    if not secret:
        raise HTTPException(status_code=400, detail="Two-factor setup has not been started")
    if not verify_totp(secret, body.code):
        return {"success": True, "valid": False}

    backup_codes = generate_backup_codes()
    db.users.update_one(
        {"_id": user["_id"]},
        {
            "$set": {
                "two_factor_enabled": True,
                "two_factor_secret": secret,
                "backup_codes": hash_backup_codes(backup_codes),
                "updated_at": datetime.utcnow(),
            },
            "$unset": {"two_factor_pending_secret": ""},
        },
    )
    logger.info("Two-factor enabled for user %s", user["_id"])
    return {"success": True, "valid": True, "backup_codes": backup_codes}


@router.post("/disable")
def disable(body: TwoFactorCode, user=Depends(get_current_user), db=Depends(get_db)):
    if not user.get("two_factor_enabled"):
        raise HTTPException(status_code=400, detail="Two-factor authentication is not enabled")
    if not check_second_factor(db, user, body.code):
        raise HTTPException(status_code=401, detail="Invalid two-factor code")
    db.users.update_one(
        {"_id": user["_id"]},
        {
            "$set": {"two_factor_enabled": False, "updated_at": datetime.utcnow()},
            "$unset": {"two_factor_secret": "", "two_factor_pending_secret": "", "backup_codes": ""},
        },
    )
    logger.info("Two-factor disabled for user %s", user["_id"])
    return {"success": True, "message": "Two-factor authentication disabled"}


@router.get("/status")
def status(user=Depends(get_current_user)):
    return {
        "success": True,
        "enabled": user.get("two_factor_enabled", False),
        "backup_codes_remaining": len(user.get("backup_codes") or []),
    }
