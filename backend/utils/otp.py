import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Optional

from config.env import OTP_EXPIRY_MINUTES
from utils.errors import NoOtpIssued, OtpExpired, OtpMismatch


# ===============================
# GENERATE 6-DIGIT OTP
# ===============================
def generate_otp(expiry_minutes: int = OTP_EXPIRY_MINUTES) -> dict:
    code = str(100000 + secrets.randbelow(900000))
    return {
        "code": code,
        "expires_at": datetime.utcnow() + timedelta(minutes=expiry_minutes),
    }


# ===============================
# HASH OTP
# ===============================
def hash_otp(otp: str) -> str:
    return hashlib.sha256(otp.encode()).hexdigest()


def build_otp_record(otp: dict) -> dict:
    """Stored shape of an issued OTP; the plain code never reaches the db."""
    return {
        "code_hash": hash_otp(otp["code"]),
        "expires_at": otp["expires_at"],
        "attempts": 0,
    }


def cleared_otp_record() -> dict:
    return {"code_hash": None, "expires_at": None, "attempts": 0}


# ===============================
# VALIDATE OTP
# ===============================
def validate_otp(stored: Optional[dict], provided: str, now: Optional[datetime] = None) -> None:
    """
    Check a provided code against the stored record.
    Raises NoOtpIssued / OtpExpired / OtpMismatch; attempt counting is
    left to the caller.
    """
    if not stored or not stored.get("code_hash"):
        raise NoOtpIssued()

    now = now or datetime.utcnow()
    expires_at = stored.get("expires_at")
    if expires_at is None or now >= expires_at:
        raise OtpExpired()

    if stored["code_hash"] != hash_otp(str(provided)):
        raise OtpMismatch()
