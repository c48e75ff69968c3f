from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional
import hmac
import math

from config.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from config.env import ADMIN_EMAIL, ADMIN_PASSWORD
from database import get_db
from utils.errors import Unauthorized
from utils.guards import parse_object_id
from utils.jwt import create_admin_token
from utils.notifications import get_notifier
from utils.security import require_admin
from utils.seller_lifecycle import (
    approve_seller,
    change_seller_status,
    get_seller,
    reject_seller,
)
from utils.sellers import orders_with_products, seller_order_stats, seller_product_ids
from utils.serializers import (
    serialize_order,
    serialize_product,
    serialize_seller,
    serialize_seller_summary,
)
from utils.validators import search_regex


router = APIRouter(prefix="/admin", tags=["Admin"])

# never sent to any admin listing
SELLER_LIST_PROJECTION = {
    "password": 0,
    "national_id": 0,
    "email_verification_otp": 0,
}


# =====================================================
# SCHEMAS
# =====================================================

class AdminLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RejectSeller(BaseModel):
    reason: str = ""


class SellerStatusUpdate(BaseModel):
    new_status: Literal["active", "inactive", "suspended"] = Field(..., alias="newStatus")

    model_config = {"populate_by_name": True}


# =====================================================
# ADMIN LOGIN
# =====================================================

def _matches(provided: str, expected: Optional[str]) -> bool:
    if not expected:
        return False
    return hmac.compare_digest(provided.encode(), expected.encode())


@router.post("/login")
async def admin_login(data: AdminLogin):
    email_ok = _matches(data.email.strip().lower(), (ADMIN_EMAIL or "").strip().lower())
    password_ok = _matches(data.password, ADMIN_PASSWORD)

    if not (email_ok and password_ok):
        raise Unauthorized("Invalid admin credentials")

    return {
        "message": "Admin login successful",
        "token": create_admin_token(ADMIN_EMAIL),
    }


# =====================================================
# SELLER LISTINGS
# =====================================================

@router.get("/sellers")
async def list_sellers(
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    query = {}
    if status:
        query["status"] = status
    if search and search.strip():
        pattern = search_regex(search)
        query["$or"] = [
            {"name": pattern},
            {"email": pattern},
            {"phone": pattern},
        ]

    total = await db.sellers.count_documents(query)

    cursor = (
        db.sellers.find(query, SELLER_LIST_PROJECTION)
        .sort("created_at", -1)
        .skip((page - 1) * limit)
        .limit(limit)
    )
    sellers = [serialize_seller(s) async for s in cursor]

    return {
        "sellers": sellers,
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": math.ceil(total / limit),
        },
    }


@router.get("/sellers/pending-approvals")
async def pending_approvals(
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    cursor = db.sellers.find({"status": "pending"}, SELLER_LIST_PROJECTION).sort("created_at", 1)
    sellers = [serialize_seller(s) async for s in cursor]

    return {
        "sellers": sellers,
        "count": len(sellers),
    }


@router.get("/sellers/{seller_id}")
async def seller_details(
    seller_id: str,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    seller = await get_seller(db, parse_object_id(seller_id, "seller id"))
    stats = await seller_order_stats(db, seller["_id"])

    return {
        "seller": serialize_seller(seller, include_national_id=True, reveal_bank=True),
        "stats": {
            "productCount": stats["productCount"],
            "orderCount": stats["orderCount"],
        },
    }


# =====================================================
# LIFECYCLE TRANSITIONS
# =====================================================

@router.post("/sellers/{seller_id}/approve")
async def approve(
    seller_id: str,
    admin=Depends(require_admin),
    db=Depends(get_db),
    notifier=Depends(get_notifier),
):
    seller, sent = await approve_seller(db, notifier, parse_object_id(seller_id, "seller id"), admin)

    return {
        "message": "Seller approved successfully",
        "seller": serialize_seller_summary(seller),
        "notificationSent": sent,
    }


@router.post("/sellers/{seller_id}/reject")
async def reject(
    seller_id: str,
    data: RejectSeller,
    admin=Depends(require_admin),
    db=Depends(get_db),
    notifier=Depends(get_notifier),
):
    oid = parse_object_id(seller_id, "seller id")
    seller, sent = await reject_seller(db, notifier, oid, data.reason, admin)

    return {
        "message": "Seller rejected successfully",
        "seller": {
            **serialize_seller_summary(seller),
            "rejectionReason": seller.get("rejection_reason"),
        },
        "notificationSent": sent,
    }


@router.put("/sellers/{seller_id}/status")
async def update_status(
    seller_id: str,
    data: SellerStatusUpdate,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    seller = await change_seller_status(
        db, parse_object_id(seller_id, "seller id"), data.new_status, admin
    )

    return {
        "message": f"Seller status updated to {data.new_status}",
        "seller": serialize_seller_summary(seller),
    }


# =====================================================
# SELLER CATALOG / ORDERS / ANALYTICS
# =====================================================

@router.get("/sellers/{seller_id}/products")
async def seller_products(
    seller_id: str,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    seller = await get_seller(db, parse_object_id(seller_id, "seller id"))

    cursor = db.products.find({"seller_id": seller["_id"]}).sort("created_at", -1)
    products = [serialize_product(p) async for p in cursor]

    return {
        "products": products,
        "count": len(products),
    }


@router.get("/sellers/{seller_id}/orders")
async def seller_orders(
    seller_id: str,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    seller = await get_seller(db, parse_object_id(seller_id, "seller id"))
    product_ids = await seller_product_ids(db, seller["_id"])

    orders = []
    if product_ids:
        cursor = db.orders.find(orders_with_products(product_ids)).sort("created_at", -1)
        orders = [serialize_order(o, product_ids) async for o in cursor]

    return {
        "orders": orders,
        "count": len(orders),
    }


@router.get("/sellers/{seller_id}/analytics")
async def seller_analytics(
    seller_id: str,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    seller = await get_seller(db, parse_object_id(seller_id, "seller id"))
    stats = await seller_order_stats(db, seller["_id"])

    joined = seller.get("created_at")

    return {
        "analytics": {
            **stats,
            "totalEarnings": seller.get("total_earnings", 0),
            "rating": seller.get("rating", 0),
            "reviewCount": seller.get("review_count", 0),
            "joinedDate": joined.isoformat() if joined else None,
        }
    }
