from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Literal, Optional

from config.constants import ORDER_STATUSES, OTP_SEND_MAX_REQUESTS, OTP_SEND_WINDOW_SECONDS
from database import get_db
from models.product import ProductCreate, ProductInDB, ProductUpdate
from utils.crypto import encrypt_sensitive_value, last_four
from utils.errors import Forbidden, NotFound, Unauthorized, ValidationError
from utils.guards import parse_object_id
from utils.hash import hash_password, verify_password, MIN_PASSWORD_LENGTH
from utils.jwt import create_seller_token
from utils.notifications import get_notifier
from utils.rate_limit import rate_limit
from utils.security import get_current_seller, require_approved_seller
from utils.seller_lifecycle import (
    available_balance,
    register_seller,
    request_withdrawal,
    resend_email_otp,
    total_withdrawn,
    verify_email,
)
from utils.sellers import seller_product_ids, orders_with_products
from utils.serializers import (
    serialize_order,
    serialize_product,
    serialize_seller,
    serialize_seller_status,
    serialize_seller_summary,
    serialize_withdrawal,
)
from utils.validators import normalize_email, normalize_phone

router = APIRouter(
    prefix="/seller",
    tags=["Seller"]
)


# ======================================================
# SCHEMAS
# ======================================================

class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class SellerSignup(CamelModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    national_id: str = Field(..., min_length=1)
    id_document: str = Field(..., min_length=1)
    bank_name: str = Field(..., min_length=1)
    account_holder: str = Field(..., min_length=1)
    account_number: str = Field(..., min_length=1)
    routing_code: str = Field(..., min_length=1)

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str) -> str:
        return normalize_phone(v)


class SendOtpRequest(CamelModel):
    email: EmailStr


class VerifyEmailRequest(CamelModel):
    email: EmailStr
    otp: str = Field(..., min_length=1)


class SellerLogin(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class SellerProfileUpdate(CamelModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    bank_name: Optional[str] = None
    account_holder: Optional[str] = None
    account_number: Optional[str] = None
    routing_code: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: Optional[str]) -> Optional[str]:
        return normalize_phone(v) if v else v


class ChangePassword(CamelModel):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class OrderStatusUpdate(CamelModel):
    status: Literal[ORDER_STATUSES]


class WithdrawalRequest(CamelModel):
    amount: float = Field(..., gt=0)


# ======================================================
# SIGNUP / EMAIL VERIFICATION / LOGIN
# ======================================================

@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    data: SellerSignup,
    db=Depends(get_db),
    notifier=Depends(get_notifier),
):
    seller, otp_sent = await register_seller(db, notifier, **data.model_dump())

    if otp_sent:
        message = "Seller registered successfully. Please verify your email with the OTP sent to your email address."
    else:
        message = "Seller registered successfully, but the OTP email could not be sent. Please request a new OTP."

    return {
        "message": message,
        "seller": serialize_seller_summary(seller),
        "token": create_seller_token(seller["_id"]),
        "otpSent": otp_sent,
    }


@router.post("/send-otp")
async def send_otp(
    data: SendOtpRequest,
    db=Depends(get_db),
    notifier=Depends(get_notifier),
):
    email = normalize_email(data.email)

    await rate_limit(
        db=db,
        key=f"seller_otp:{email}",
        max_requests=OTP_SEND_MAX_REQUESTS,
        window_seconds=OTP_SEND_WINDOW_SECONDS,
    )

    seller = await resend_email_otp(db, notifier, email)

    return {
        "message": "OTP sent successfully to your email",
        "email": seller["email"],
    }


@router.post("/verify-email")
async def verify_seller_email(
    data: VerifyEmailRequest,
    db=Depends(get_db),
):
    seller = await verify_email(db, data.email, data.otp)

    return {
        "message": "Email verified successfully! Please wait for admin approval.",
        "seller": serialize_seller_summary(seller),
    }


@router.post("/login")
async def login(
    data: SellerLogin,
    db=Depends(get_db),
):
    seller = await db.sellers.find_one({"email": normalize_email(data.email)})

    if not seller or not verify_password(data.password, seller.get("password")):
        raise ValidationError("Invalid email or password")

    return {
        "message": "Login successful",
        "seller": serialize_seller_summary(seller),
        "token": create_seller_token(seller["_id"]),
    }


@router.get("/status")
async def seller_status(seller=Depends(get_current_seller)):
    return serialize_seller_status(seller)


# ----------------------------------------
# SELLER PROFILE
# ----------------------------------------

@router.get("/profile")
async def seller_profile(seller=Depends(require_approved_seller)):
    return {"seller": serialize_seller(seller)}


@router.put("/profile")
async def update_seller_profile(
    data: SellerProfileUpdate,
    seller=Depends(require_approved_seller),
    db=Depends(get_db),
):
    updates = {}
    if data.name:
        updates["name"] = data.name
    if data.phone:
        updates["phone"] = data.phone

    if data.bank_name or data.account_holder or data.account_number or data.routing_code:
        bank = dict(seller.get("bank_details") or {})
        if data.bank_name:
            bank["bank_name"] = data.bank_name
        if data.account_holder:
            bank["account_holder"] = data.account_holder
        if data.routing_code:
            bank["routing_code"] = data.routing_code
        if data.account_number:
            bank["account_number_encrypted"] = encrypt_sensitive_value(data.account_number)
            bank["account_number_last4"] = last_four(data.account_number)
        updates["bank_details"] = bank

    if updates:
        updates["updated_at"] = datetime.utcnow()
        await db.sellers.update_one({"_id": seller["_id"]}, {"$set": updates})
        seller.update(updates)

    return {
        "message": "Profile updated successfully",
        "seller": serialize_seller(seller),
    }


@router.post("/change-password")
async def change_password(
    data: ChangePassword,
    seller=Depends(require_approved_seller),
    db=Depends(get_db),
):
    if len(data.new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters")

    if not verify_password(data.old_password, seller.get("password")):
        raise Unauthorized("Current password is incorrect")

    await db.sellers.update_one(
        {"_id": seller["_id"]},
        {"$set": {
            "password": hash_password(data.new_password),
            "updated_at": datetime.utcnow(),
        }},
    )

    return {"message": "Password changed successfully"}


# ======================================================
# SELLER PRODUCTS
# ======================================================

async def _owned_product(db, product_id: str, seller: dict) -> dict:
    product = await db.products.find_one({"_id": parse_object_id(product_id, "product id")})
    if not product:
        raise NotFound("Product not found")
    if product.get("seller_id") != seller["_id"]:
        raise Forbidden("Not authorized")
    return product


@router.get("/products")
async def seller_products(
    seller=Depends(require_approved_seller),
    db=Depends(get_db),
):
    cursor = db.products.find({"seller_id": seller["_id"]}).sort("created_at", -1)
    products = [serialize_product(p) async for p in cursor]

    return {
        "message": "Products fetched successfully",
        "products": products,
        "count": len(products),
    }


@router.post("/products", status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    seller=Depends(require_approved_seller),
    db=Depends(get_db),
):
    now = datetime.utcnow()

    product = ProductInDB(
        name=data.name,
        description=data.description,
        price=data.price,
        category=data.category,
        stock=data.stock,
        image=data.image,
        insta_video=data.insta_video or "",
        seller_id=seller["_id"],
        created_at=now,
        updated_at=now,
    ).model_dump()

    result = await db.products.insert_one(product)
    product["_id"] = result.inserted_id

    await db.sellers.update_one(
        {"_id": seller["_id"]},
        {"$inc": {"total_products": 1}, "$set": {"updated_at": now}},
    )

    return {
        "message": "Product created successfully",
        "product": serialize_product(product),
    }


@router.put("/products/{product_id}")
async def update_product(
    product_id: str,
    data: ProductUpdate,
    seller=Depends(require_approved_seller),
    db=Depends(get_db),
):
    product = await _owned_product(db, product_id, seller)

    updates = data.model_dump(exclude_none=True)
    if updates:
        updates["updated_at"] = datetime.utcnow()
        await db.products.update_one({"_id": product["_id"]}, {"$set": updates})
        product.update(updates)

    return {
        "message": "Product updated successfully",
        "product": serialize_product(product),
    }


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: str,
    seller=Depends(require_approved_seller),
    db=Depends(get_db),
):
    product = await _owned_product(db, product_id, seller)

    await db.products.delete_one({"_id": product["_id"]})

    # counter never drops below zero
    await db.sellers.update_one(
        {"_id": seller["_id"], "total_products": {"$gt": 0}},
        {"$inc": {"total_products": -1}},
    )

    return {"message": "Product deleted successfully"}


# ======================================================
# SELLER ORDERS
# ======================================================

@router.get("/orders")
async def seller_orders(
    seller=Depends(require_approved_seller),
    db=Depends(get_db),
):
    product_ids = await seller_product_ids(db, seller["_id"])

    orders = []
    if product_ids:
        cursor = db.orders.find(orders_with_products(product_ids)).sort("created_at", -1)
        orders = [serialize_order(o, product_ids) async for o in cursor]

    return {
        "message": "Orders fetched successfully",
        "orders": orders,
        "count": len(orders),
    }


@router.put("/orders/{order_id}")
async def update_order_status(
    order_id: str,
    data: OrderStatusUpdate,
    seller=Depends(require_approved_seller),
    db=Depends(get_db),
):
    order = await db.orders.find_one({"_id": parse_object_id(order_id, "order id")})
    if not order:
        raise NotFound("Order not found")

    product_ids = await seller_product_ids(db, seller["_id"])
    if not any(item.get("product_id") in product_ids for item in order.get("items") or []):
        raise Forbidden("Not authorized to update this order")

    now = datetime.utcnow()
    await db.orders.update_one(
        {"_id": order["_id"]},
        {"$set": {"status": data.status, "updated_at": now}},
    )
    order.update({"status": data.status, "updated_at": now})

    return {
        "message": "Order status updated successfully",
        "order": serialize_order(order, product_ids),
    }


# ======================================================
# SELLER WITHDRAWALS
# ======================================================

@router.get("/withdrawals")
async def withdrawal_history(seller=Depends(require_approved_seller)):
    return {
        "message": "Withdrawal history fetched successfully",
        "withdrawals": [serialize_withdrawal(w) for w in seller.get("withdrawals") or []],
        "totalWithdrawn": total_withdrawn(seller),
        "availableBalance": available_balance(seller),
    }


@router.post("/withdrawals", status_code=status.HTTP_201_CREATED)
async def create_withdrawal(
    data: WithdrawalRequest,
    seller=Depends(require_approved_seller),
    db=Depends(get_db),
):
    withdrawal, remaining = await request_withdrawal(db, seller, data.amount)

    return {
        "message": "Withdrawal request created successfully",
        "withdrawal": serialize_withdrawal(withdrawal),
        "remainingBalance": remaining,
    }
