"""
Seller lifecycle: signup, email verification, admin review and withdrawals.

States move pending (unverified) -> pending (verified) -> approved | rejected,
with approved <-> inactive / suspended driven by admin status changes.
`is_approved` is written together with `status` on every transition so that
``is_approved == (status == "approved")`` always holds.

Email notifications are best-effort: a transition is persisted before its
notification is attempted and never rolled back when delivery fails.
"""
import logging
from datetime import datetime

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from config.constants import ADMIN_STATUS_MAP
from config.env import OTP_EXPIRY_MINUTES, OTP_MAX_ATTEMPTS
from models.seller import SellerInDB, SellerStatus, WithdrawalInDB
from utils.audit import log_audit
from utils.crypto import build_bank_details
from utils.errors import (
    AlreadyVerified,
    DuplicateEmail,
    DuplicateNationalId,
    ExternalServiceError,
    InsufficientBalance,
    NoOtpIssued,
    NotFound,
    OtpError,
    RateLimited,
    ValidationError,
)
from utils.hash import hash_password
from utils.otp import generate_otp, build_otp_record, cleared_otp_record, validate_otp
from utils.validators import normalize_email

logger = logging.getLogger(__name__)

LOCKOUT_MESSAGE = "Too many failed attempts. Please request a new OTP."


# ==============================
# Lookups
# ==============================

async def get_seller(db, seller_id: ObjectId) -> dict:
    seller = await db.sellers.find_one({"_id": seller_id})
    if not seller:
        raise NotFound("Seller not found")
    return seller


async def get_seller_by_email(db, email: str) -> dict:
    seller = await db.sellers.find_one({"email": normalize_email(email)})
    if not seller:
        raise NotFound("Seller not found")
    return seller


def _duplicate_error(exc: DuplicateKeyError):
    key_pattern = (exc.details or {}).get("keyPattern") or {}
    if "national_id" in key_pattern or "national_id" in str(exc):
        return DuplicateNationalId()
    return DuplicateEmail()


async def _best_effort(send, *args) -> bool:
    try:
        await send(*args)
    except ExternalServiceError:
        logger.warning("Notification %s not delivered", getattr(send, "__name__", send))
        return False
    return True


# ==============================
# Signup
# ==============================

async def register_seller(
    db,
    notifier,
    *,
    name: str,
    email: str,
    phone: str,
    password: str,
    national_id: str,
    id_document: str,
    bank_name: str,
    account_holder: str,
    account_number: str,
    routing_code: str,
) -> tuple[dict, bool]:
    """
    Create a pending seller with a fresh email OTP.
    Returns (seller, otp_sent); a failed OTP email does not fail signup.
    """
    email = normalize_email(email)

    # check-then-insert; the unique indexes catch the remaining race
    if await db.sellers.find_one({"email": email}, {"_id": 1}):
        raise DuplicateEmail()
    if await db.sellers.find_one({"national_id": national_id}, {"_id": 1}):
        raise DuplicateNationalId()

    now = datetime.utcnow()
    otp = generate_otp(OTP_EXPIRY_MINUTES)

    seller = SellerInDB(
        name=name,
        email=email,
        phone=phone,
        password=hash_password(password),
        national_id=national_id,
        id_document=id_document,
        bank_details=build_bank_details(
            bank_name=bank_name,
            account_holder=account_holder,
            account_number=account_number,
            routing_code=routing_code,
        ),
        email_verification_otp=build_otp_record(otp),
        created_at=now,
        updated_at=now,
    ).model_dump()

    try:
        result = await db.sellers.insert_one(seller)
    except DuplicateKeyError as e:
        raise _duplicate_error(e)

    seller["_id"] = result.inserted_id
    logger.info("SELLER_SIGNUP seller=%s", seller["_id"])

    otp_sent = await _best_effort(
        notifier.send_otp_email, seller["email"], seller["name"], otp["code"], OTP_EXPIRY_MINUTES
    )
    return seller, otp_sent


# ==============================
# Email verification
# ==============================

async def resend_email_otp(db, notifier, email: str) -> dict:
    """Replace the seller's OTP and email it. Delivery failure is raised."""
    seller = await get_seller_by_email(db, email)

    if seller.get("is_email_verified"):
        raise AlreadyVerified()

    otp = generate_otp(OTP_EXPIRY_MINUTES)
    await db.sellers.update_one(
        {"_id": seller["_id"]},
        {"$set": {
            "email_verification_otp": build_otp_record(otp),
            "updated_at": datetime.utcnow(),
        }},
    )

    await notifier.send_otp_email(seller["email"], seller["name"], otp["code"], OTP_EXPIRY_MINUTES)
    logger.info("SELLER_OTP_RESENT seller=%s", seller["_id"])
    return seller


async def verify_email(db, email: str, code: str) -> dict:
    seller = await get_seller_by_email(db, email)

    if seller.get("is_email_verified"):
        raise AlreadyVerified()

    stored = seller.get("email_verification_otp") or {}

    # locked until a new OTP resets the counter
    if stored.get("attempts", 0) >= OTP_MAX_ATTEMPTS:
        raise RateLimited(LOCKOUT_MESSAGE)

    try:
        validate_otp(stored, code)
    except NoOtpIssued:
        raise
    except OtpError as e:
        updated = await db.sellers.find_one_and_update(
            {"_id": seller["_id"]},
            {"$inc": {"email_verification_otp.attempts": 1}},
            return_document=ReturnDocument.AFTER,
        )
        attempts = ((updated or {}).get("email_verification_otp") or {}).get("attempts", 0)

        if attempts >= OTP_MAX_ATTEMPTS:
            logger.warning("SELLER_OTP_LOCKED seller=%s", seller["_id"])
            raise RateLimited(LOCKOUT_MESSAGE)

        raise type(e)({"message": e.detail, "attempts": attempts})

    updates = {
        "is_email_verified": True,
        "email_verification_otp": cleared_otp_record(),
        "updated_at": datetime.utcnow(),
    }
    await db.sellers.update_one({"_id": seller["_id"]}, {"$set": updates})
    seller.update(updates)

    logger.info("SELLER_EMAIL_VERIFIED seller=%s", seller["_id"])
    return seller


# ==============================
# Admin transitions
# ==============================

async def _apply_transition(db, seller: dict, updates: dict, actor: dict, action: str, metadata: dict | None = None):
    updates = {**updates, "updated_at": datetime.utcnow()}
    await db.sellers.update_one({"_id": seller["_id"]}, {"$set": updates})

    previous_status = seller.get("status")
    seller.update(updates)

    await log_audit(
        db,
        actor_id=actor.get("email"),
        actor_role="admin",
        action=action,
        target_id=str(seller["_id"]),
        metadata={"previous_status": previous_status, **(metadata or {})},
    )
    return seller


async def approve_seller(db, notifier, seller_id: ObjectId, actor: dict) -> tuple[dict, bool]:
    # rejected sellers may be approved again; there is no guard on the source state
    seller = await get_seller(db, seller_id)

    await _apply_transition(
        db,
        seller,
        {
            "status": SellerStatus.APPROVED.value,
            "is_approved": True,
            "approved_at": datetime.utcnow(),
            "rejection_reason": None,
        },
        actor,
        "SELLER_APPROVED",
    )

    sent = await _best_effort(notifier.send_approval_email, seller["email"], seller["name"])
    return seller, sent


async def reject_seller(db, notifier, seller_id: ObjectId, reason: str, actor: dict) -> tuple[dict, bool]:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("Rejection reason required")

    seller = await get_seller(db, seller_id)

    await _apply_transition(
        db,
        seller,
        {
            "status": SellerStatus.REJECTED.value,
            "is_approved": False,
            "rejection_reason": reason,
            "rejected_at": datetime.utcnow(),
        },
        actor,
        "SELLER_REJECTED",
        {"reason": reason},
    )

    sent = await _best_effort(notifier.send_rejection_email, seller["email"], seller["name"], reason)
    return seller, sent


async def change_seller_status(db, seller_id: ObjectId, new_status: str, actor: dict) -> dict:
    if new_status not in ADMIN_STATUS_MAP:
        raise ValidationError("Invalid status")

    seller = await get_seller(db, seller_id)

    return await _apply_transition(
        db,
        seller,
        {
            "status": ADMIN_STATUS_MAP[new_status],
            "is_approved": new_status == "active",
        },
        actor,
        "SELLER_STATUS_CHANGED",
        {"new_status": new_status},
    )


# ==============================
# Withdrawals
# ==============================

def total_withdrawn(seller: dict) -> float:
    return sum(w.get("amount", 0) for w in seller.get("withdrawals") or [])


def available_balance(seller: dict) -> float:
    """Derived on every read, never stored."""
    return seller.get("total_earnings", 0) - total_withdrawn(seller)


async def request_withdrawal(db, seller: dict, amount: float) -> tuple[dict, float]:
    if amount is None or amount <= 0:
        raise ValidationError("Valid amount is required")

    available = available_balance(seller)
    if amount > available:
        raise InsufficientBalance(available)

    now = datetime.utcnow()
    withdrawal = WithdrawalInDB(
        amount=amount,
        request_date=now,
        bank_details=seller["bank_details"],
    ).model_dump()

    await db.sellers.update_one(
        {"_id": seller["_id"]},
        {
            "$push": {"withdrawals": withdrawal},
            "$set": {"updated_at": now},
        },
    )

    logger.info("SELLER_WITHDRAWAL_REQUESTED seller=%s amount=%s", seller["_id"], amount)
    return withdrawal, available - amount
