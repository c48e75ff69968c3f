from datetime import datetime, timedelta
from jose import JWTError, jwt

from config.env import JWT_SECRET, JWT_ALGORITHM, SELLER_TOKEN_DAYS, ADMIN_TOKEN_HOURS
from utils.errors import Unauthorized

ROLE_SELLER = "seller"
ROLE_ADMIN = "admin"


def _require_jwt_secret() -> str:
    secret = (JWT_SECRET or "").strip()
    if not secret:
        raise RuntimeError("JWT_SECRET is not configured")
    return secret


def create_access_token(payload: dict, expires_in: timedelta) -> str:
    payload = payload.copy()
    now = datetime.utcnow()
    payload.update({
        "exp": now + expires_in,
        "iat": now,
    })
    return jwt.encode(payload, _require_jwt_secret(), algorithm=JWT_ALGORITHM)


def create_seller_token(seller_id) -> str:
    return create_access_token(
        {"sub": str(seller_id), "role": ROLE_SELLER},
        timedelta(days=SELLER_TOKEN_DAYS),
    )


def create_admin_token(email: str) -> str:
    return create_access_token(
        {"sub": email, "role": ROLE_ADMIN},
        timedelta(hours=ADMIN_TOKEN_HOURS),
    )


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, _require_jwt_secret(), algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise Unauthorized()
