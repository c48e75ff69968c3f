from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from database import get_db
from utils.errors import Unauthorized, Forbidden, NotFound, NotApproved
from utils.jwt import decode_token, ROLE_SELLER, ROLE_ADMIN

security = HTTPBearer(auto_error=False)


def _token_payload(credentials: Optional[HTTPAuthorizationCredentials]) -> dict:
    if not credentials or not credentials.credentials:
        raise Unauthorized("No token provided")
    return decode_token(credentials.credentials)


async def get_current_seller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db=Depends(get_db),
):
    """Resolve the bearer token to a seller document (any lifecycle status)."""
    payload = _token_payload(credentials)

    if payload.get("role") != ROLE_SELLER:
        raise Unauthorized("Invalid token payload")

    try:
        seller_id = ObjectId(payload.get("sub"))
    except (InvalidId, TypeError):
        raise Unauthorized("Invalid token payload")

    seller = await db.sellers.find_one({"_id": seller_id})
    if not seller:
        raise NotFound("Seller not found")

    return seller


async def require_approved_seller(seller=Depends(get_current_seller)):
    if not seller.get("is_approved") or seller.get("status") != "approved":
        raise NotApproved(seller.get("status"))
    return seller


async def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
):
    payload = _token_payload(credentials)

    if payload.get("role") != ROLE_ADMIN:
        raise Forbidden("Not authorized as admin")

    return {"email": payload.get("sub"), "role": ROLE_ADMIN}
