import time

import pyotp

from conftest import bearer

from twofactor import check_second_factor, generate_backup_codes, hash_backup_codes, match_backup_code, verify_totp


def _wrong_code(secret):
    totp = pyotp.TOTP(secret)
    accepted = {totp.at(time.time() + step * 30) for step in (-1, 0, 1)}
    return next(c for c in ("000000", "111111", "222222", "333333") if c not in accepted)


def _enable(client, user):
    setup = client.post("/api/auth/2fa/setup", headers=bearer(user["token"])).json()
    code = pyotp.TOTP(setup["secret"]).now()
    resp = client.post("/api/auth/2fa/verify", json={"code": code}, headers=bearer(user["token"]))
    assert resp.json()["valid"] is True
    return setup["secret"], resp.json()["backup_codes"]


def test_backup_codes_format_and_matching():
    codes = generate_backup_codes()
    assert len(codes) == 10
    assert all(len(c) == 9 and c[4] == "-" for c in codes)
    hashed = hash_backup_codes(codes[:3])
    assert match_backup_code(hashed, codes[1].lower()) == 1
    assert match_backup_code(hashed, "0000-0000") is None


def test_verify_totp_rejects_empty():
    assert verify_totp(None, "123456") is False
    assert verify_totp(pyotp.random_base32(), "") is False


def test_setup_returns_provisioning_uri(client, alice):
    resp = client.post("/api/auth/2fa/setup", headers=bearer(alice["token"]))
    body = resp.json()
    assert body["secret"]
    assert body["qr_code_url"].startswith("otpauth://totp/")
    assert "alice" in body["qr_code_url"]
    assert "issuer=" in body["qr_code_url"]


def test_verify_without_setup(client, alice):
    resp = client.post("/api/auth/2fa/verify", json={"code": "123456"}, headers=bearer(alice["token"]))
    assert resp.status_code == 400


def test_wrong_code_is_not_valid(client, alice):
    setup = client.post("/api/auth/2fa/setup", headers=bearer(alice["token"])).json()
    resp = client.post("/api/auth/2fa/verify", json={"code": _wrong_code(setup["secret"])}, headers=bearer(alice["token"]))
    assert resp.json()["valid"] is False
    status = client.get("/api/auth/2fa/status", headers=bearer(alice["token"])).json()
    assert status["enabled"] is False


def test_login_requires_second_factor(client, alice):
    secret, backup_codes = _enable(client, alice)
    credentials = {"email": "alice@example.com", "password": "secret123"}

    resp = client.post("/api/users/login", json=credentials)
    assert resp.status_code == 401
    assert resp.json()["message"] == "Two-factor code required"
    assert resp.headers["x-two-factor-required"] == "true"

    resp = client.post("/api/users/login", json={**credentials, "otp": pyotp.TOTP(secret).now()})
    assert resp.status_code == 200

    resp = client.post("/api/users/login", json={**credentials, "otp": backup_codes[0]})
    assert resp.status_code == 200
    status = client.get("/api/auth/2fa/status", headers=bearer(alice["token"])).json()
    assert status == {"success": True, "enabled": True, "backup_codes_remaining": 9}

    # backup codes are single use
    resp = client.post("/api/users/login", json={**credentials, "otp": backup_codes[0]})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid two-factor code"


def test_disable_two_factor(client, alice):
    secret, _ = _enable(client, alice)
    resp = client.post("/api/auth/2fa/disable", json={"code": _wrong_code(secret)}, headers=bearer(alice["token"]))
    assert resp.status_code == 401

    resp = client.post(
        "/api/auth/2fa/disable", json={"code": pyotp.TOTP(secret).now()}, headers=bearer(alice["token"])
    )
    assert resp.status_code == 200
    login = client.post("/api/users/login", json={"email": "alice@example.com", "password": "secret123"})
    assert login.status_code == 200


def test_backup_code_cannot_be_used_twice_from_stale_user(db):
    codes = generate_backup_codes(3)
    user_id = db.users.insert_one({"email": "carol@example.com", "backup_codes": hash_backup_codes(codes)}).inserted_id
    stale = db.users.find_one({"_id": user_id})

    assert check_second_factor(db, stale, codes[1]) is True
    assert check_second_factor(db, stale, codes[1]) is False
    assert len(db.users.find_one({"_id": user_id})["backup_codes"]) == 2
