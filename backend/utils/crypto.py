import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken

from config.env import BANK_DATA_ENCRYPTION_KEY, JWT_SECRET
from utils.errors import AppError, ValidationError


def _build_fernet() -> Fernet:
    seed = (BANK_DATA_ENCRYPTION_KEY or JWT_SECRET or "").strip()
    if not seed:
        raise AppError("Bank data encryption key is not configured")
    key = base64.urlsafe_b64encode(hashlib.sha256(seed.encode("utf-8")).digest())
    return Fernet(key)


def encrypt_sensitive_value(value: str) -> str:
    if not value:
        raise ValidationError("Sensitive value missing")
    token = _build_fernet().encrypt(value.encode("utf-8"))
    return token.decode("utf-8")


def decrypt_sensitive_value(token: str) -> str:
    if not token:
        raise ValidationError("Encrypted sensitive value missing")
    try:
        raw = _build_fernet().decrypt(token.encode("utf-8"))
    except InvalidToken:
        raise AppError("Stored bank data could not be decrypted")
    return raw.decode("utf-8")


def last_four(value: str) -> str:
    return value[-4:] if value else ""


def mask_account_number(last4: str) -> str:
    return f"****{last4}" if last4 else ""


# -------------------------------
# Bank details (stored shape)
# -------------------------------

def build_bank_details(
    *,
    bank_name: str,
    account_holder: str,
    account_number: str,
    routing_code: str,
) -> dict:
    return {
        "bank_name": bank_name,
        "account_holder": account_holder,
        "account_number_encrypted": encrypt_sensitive_value(account_number),
        "account_number_last4": last_four(account_number),
        "routing_code": routing_code,
    }
