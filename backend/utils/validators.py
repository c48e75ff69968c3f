import re

PHONE_REGEX = re.compile(r"^\+?\d{7,15}$")
PHONE_SEPARATORS = re.compile(r"[\s\-().]")


def normalize_phone(phone: str) -> str:
    phone = PHONE_SEPARATORS.sub("", phone.strip())

    if not PHONE_REGEX.match(phone):
        raise ValueError("Invalid phone number format")

    return phone


def normalize_email(email: str) -> str:
    return email.strip().lower()


def search_regex(term: str) -> dict:
    """Case-insensitive literal match for free-text search."""
    return {"$regex": re.escape(term.strip()), "$options": "i"}
