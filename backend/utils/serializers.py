from bson import ObjectId
from datetime import datetime

from utils.crypto import decrypt_sensitive_value, mask_account_number


def serialize_object_id(value):
    return str(value) if isinstance(value, ObjectId) else value


def _iso(value):
    return value.isoformat() if isinstance(value, datetime) else None


# ==============================
# SELLERS
# ==============================

def serialize_seller_summary(seller: dict) -> dict:
    return {
        "id": str(seller["_id"]),
        "name": seller.get("name"),
        "email": seller.get("email"),
        "status": seller.get("status"),
        "isApproved": seller.get("is_approved", False),
        "isEmailVerified": seller.get("is_email_verified", False),
    }


def serialize_bank_details(bank: dict | None, reveal: bool = False) -> dict:
    bank = bank or {}
    last4 = bank.get("account_number_last4", "")

    account_number = mask_account_number(last4)
    if reveal and bank.get("account_number_encrypted"):
        account_number = decrypt_sensitive_value(bank["account_number_encrypted"])

    return {
        "bankName": bank.get("bank_name"),
        "accountHolder": bank.get("account_holder"),
        "accountNumber": account_number,
        "routingCode": bank.get("routing_code"),
    }


def serialize_withdrawal(withdrawal: dict, reveal: bool = False) -> dict:
    return {
        "amount": withdrawal.get("amount"),
        "requestDate": _iso(withdrawal.get("request_date")),
        "status": withdrawal.get("status"),
        "bankDetails": serialize_bank_details(withdrawal.get("bank_details"), reveal=reveal),
        "completedDate": _iso(withdrawal.get("completed_date")),
        "notes": withdrawal.get("notes"),
    }


def serialize_seller(seller: dict, include_national_id: bool = False, reveal_bank: bool = False) -> dict:
    """Full seller view. Password hash and OTP state never leave the server."""
    data = {
        **serialize_seller_summary(seller),
        "phone": seller.get("phone"),
        "idDocument": seller.get("id_document"),
        "bankDetails": serialize_bank_details(seller.get("bank_details"), reveal=reveal_bank),
        "rejectionReason": seller.get("rejection_reason"),
        "approvedAt": _iso(seller.get("approved_at")),
        "totalEarnings": seller.get("total_earnings", 0),
        "totalOrders": seller.get("total_orders", 0),
        "totalProducts": seller.get("total_products", 0),
        "rating": seller.get("rating", 0),
        "reviewCount": seller.get("review_count", 0),
        "withdrawals": [
            serialize_withdrawal(w, reveal=reveal_bank)
            for w in seller.get("withdrawals") or []
        ],
        "createdAt": _iso(seller.get("created_at")),
        "updatedAt": _iso(seller.get("updated_at")),
    }
    if include_national_id:
        data["nationalId"] = seller.get("national_id")
    return data


def serialize_seller_status(seller: dict) -> dict:
    return {
        "status": seller.get("status"),
        "isApproved": seller.get("is_approved", False),
        "isEmailVerified": seller.get("is_email_verified", False),
        "rejectionReason": seller.get("rejection_reason"),
        "createdAt": _iso(seller.get("created_at")),
    }


# ==============================
# PRODUCTS
# ==============================

def serialize_product(product: dict) -> dict:
    return {
        "id": str(product["_id"]),
        "name": product.get("name"),
        "description": product.get("description"),
        "price": product.get("price"),
        "category": product.get("category"),
        "image": product.get("image"),
        "stock": product.get("stock", 0),
        "rating": product.get("rating", 0),
        "reviews": product.get("reviews", 0),
        "instaVideo": product.get("insta_video", ""),
        "sellerId": serialize_object_id(product.get("seller_id")),
        "status": product.get("status"),
        "createdAt": _iso(product.get("created_at")),
    }


# ==============================
# ORDERS
# ==============================

def serialize_order_item(item: dict) -> dict:
    return {
        "productId": serialize_object_id(item.get("product_id")),
        "name": item.get("name"),
        "price": item.get("price"),
        "quantity": item.get("quantity", 1),
    }


def serialize_order(order: dict, product_ids: set | None = None) -> dict:
    """When product_ids is given, only those line items are returned."""
    items = order.get("items") or []
    if product_ids is not None:
        items = [i for i in items if i.get("product_id") in product_ids]

    return {
        "id": str(order["_id"]),
        "userId": serialize_object_id(order.get("user_id")),
        "items": [serialize_order_item(i) for i in items],
        "totalAmount": order.get("total_amount"),
        "status": order.get("status"),
        "createdAt": _iso(order.get("created_at")),
        "updatedAt": _iso(order.get("updated_at")),
    }
