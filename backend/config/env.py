import os
from dotenv import load_dotenv

load_dotenv()

# =====================================================
# ENV
# =====================================================
ENV = os.getenv("ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# =====================================================
# DATABASE
# =====================================================
MONGO_URI = os.getenv("MONGO_URI") or os.getenv("MONGODB_URI")

# =====================================================
# JWT
# =====================================================
JWT_SECRET = os.getenv("JWT_SECRET")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

SELLER_TOKEN_DAYS = int(os.getenv("SELLER_TOKEN_DAYS", 7))
ADMIN_TOKEN_HOURS = int(os.getenv("ADMIN_TOKEN_HOURS", 12))

# =====================================================
# ADMIN
# =====================================================
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

# =====================================================
# MAIL (Gmail API, OAuth2 refresh-token flow)
# =====================================================
MAIL_CLIENT_ID = os.getenv("MAIL_CLIENT_ID") or os.getenv("CLIENT_ID")
MAIL_CLIENT_SECRET = os.getenv("MAIL_CLIENT_SECRET") or os.getenv("CLIENT_SECRET")
MAIL_REFRESH_TOKEN = os.getenv("MAIL_REFRESH_TOKEN") or os.getenv("REFRESH_TOKEN")
MAIL_SENDER = os.getenv("MAIL_SENDER") or ADMIN_EMAIL

MAIL_MAX_ATTEMPTS = int(os.getenv("MAIL_MAX_ATTEMPTS", 3))
MAIL_RETRY_BASE_SECONDS = float(os.getenv("MAIL_RETRY_BASE_SECONDS", 1.0))
MAIL_OTP_RETRY_BASE_SECONDS = float(os.getenv("MAIL_OTP_RETRY_BASE_SECONDS", 2.0))
MAIL_TIMEOUT_SECONDS = float(os.getenv("MAIL_TIMEOUT_SECONDS", 10))

# =====================================================
# OTP
# =====================================================
OTP_EXPIRY_MINUTES = int(os.getenv("OTP_EXPIRY_MINUTES", 10))
OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", 5))

# =====================================================
# CORS
# =====================================================
CORS_ALLOWED_ORIGINS = os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")

# --------------------------------------------------
# CLOUDINARY
# --------------------------------------------------

CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME")
CLOUDINARY_API_KEY = os.getenv("CLOUDINARY_API_KEY")
CLOUDINARY_API_SECRET = os.getenv("CLOUDINARY_API_SECRET")

# --------------------------------------------------
# DATA ENCRYPTION
# --------------------------------------------------
BANK_DATA_ENCRYPTION_KEY = os.getenv("BANK_DATA_ENCRYPTION_KEY")


def validate_production_env() -> None:
    if (ENV or "").lower() != "production":
        return

    # Mail credentials are checked per send, never at boot.
    required = {
        "JWT_SECRET": JWT_SECRET,
        "ADMIN_EMAIL": ADMIN_EMAIL,
        "ADMIN_PASSWORD": ADMIN_PASSWORD,
        "BANK_DATA_ENCRYPTION_KEY": BANK_DATA_ENCRYPTION_KEY,
        "CLOUDINARY_CLOUD_NAME": CLOUDINARY_CLOUD_NAME,
        "CLOUDINARY_API_KEY": CLOUDINARY_API_KEY,
        "CLOUDINARY_API_SECRET": CLOUDINARY_API_SECRET,
        "MONGODB_URI": MONGO_URI,
    }

    invalid = []
    for key, value in required.items():
        val = (value or "").strip()
        if not val or val.startswith("CHANGE_THIS"):
            invalid.append(key)

    if invalid:
        raise RuntimeError(f"Production env misconfigured. Invalid keys: {', '.join(sorted(invalid))}")
