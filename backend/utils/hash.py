from passlib.context import CryptContext

from utils.errors import ValidationError

# bcrypt configuration
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto"
)

# bcrypt hard limit
MAX_BCRYPT_BYTES = 72
MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    """
    Hash a seller password with bcrypt.
    Rejects passwords bcrypt would silently truncate.
    """
    if len(password.encode("utf-8")) > MAX_BCRYPT_BYTES:
        raise ValidationError("Password too long (max 72 bytes)")
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password or len(plain_password.encode("utf-8")) > MAX_BCRYPT_BYTES:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # unrecognized or corrupt stored hash
        return False
