import logging
import secrets

import pyotp

from auth import hash_password, verify_password
from config import TOTP_ISSUER

logger = logging.getLogger(__name__)

BACKUP_CODE_COUNT = 10


def new_secret():
    return pyotp.random_base32()


def provisioning_uri(secret, email):
    return pyotp.TOTP(secret).provisioning_uri(name=email, issuer_name=TOTP_ISSUER)


def verify_totp(secret, code):
    if not secret or not code:
        return False
    return pyotp.TOTP(secret).verify(code.strip(), valid_window=1)


def generate_backup_codes(count=BACKUP_CODE_COUNT):
    codes = []
    for _ in range(count):
        raw = secrets.token_hex(4).upper()
        codes.append(f"{raw[:4]}-{raw[4:]}")
    return codes


def match_backup_code(hashed_codes, code):
    """Index of the stored hash matching ``code``, or None."""
    code = code.strip().upper()
    for i, hashed in enumerate(hashed_codes or []):
        if verify_password(code, hashed):
            return i
    return None


def check_second_factor(db, user, code):
    """Accept a TOTP code or consume one backup code."""
    if verify_totp(user.get("two_factor_secret"), code):
        return True
    hashed_codes = user.get("backup_codes") or []
    index = match_backup_code(hashed_codes, code)
    if index is None:
        return False
    hashed = hashed_codes[index]
    # the filter on the hash makes a concurrent second use match nothing
    result = db.users.update_one(
        {"_id": user["_id"], "backup_codes": hashed},
        {"$pull": {"backup_codes": hashed}},
    )
    if result.modified_count != 1:
        logger.warning("Backup code for user %s was already used", user["_id"])
        return False
    logger.info("User %s used a backup code, %d left", user["_id"], len(hashed_codes) - 1)
    return True


def hash_backup_codes(codes):
    return [hash_password(code) for code in codes]
