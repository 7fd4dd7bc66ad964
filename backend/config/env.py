import os
from dotenv import load_dotenv

load_dotenv()

# =====================================================
# ENV
# =====================================================
ENV = os.getenv("ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# =====================================================
# DATABASE
# =====================================================
MONGO_URI = os.getenv("MONGO_URI") or os.getenv("MONGODB_URI")

# =====================================================
# SESSION TOKENS
# =====================================================
JWT_SECRET = os.getenv("JWT_SECRET")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
SESSION_TTL_MINUTES = int(os.getenv("SESSION_TTL_MINUTES", 60 * 24))

# =====================================================
# SELLER IDENTITY
# =====================================================
VERIFICATION_TOKEN_TTL_MINUTES = int(os.getenv("VERIFICATION_TOKEN_TTL_MINUTES", 60))
SELLER_ID_MAX_ATTEMPTS = int(os.getenv("SELLER_ID_MAX_ATTEMPTS", 10))

# =====================================================
# PASSWORDS
# =====================================================
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))

# =====================================================
# EMAIL
# =====================================================
VERIFY_EMAIL_URL = os.getenv(
    "VERIFY_EMAIL_URL",
    "http://localhost:8000/api/seller-auth/verify-email",
)
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
SMTP_FROM = os.getenv("SMTP_FROM") or SMTP_USER
SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() in {"1", "true", "yes"}

# =====================================================
# CORS
# =====================================================
CORS_ALLOWED_ORIGINS = os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")


def validate_production_env() -> None:
    if (ENV or "").lower() != "production":
        return

    required = {
        "JWT_SECRET": JWT_SECRET,
        "MONGODB_URI": MONGO_URI,
        "SMTP_HOST": SMTP_HOST,
        "SMTP_USER": SMTP_USER,
        "SMTP_PASSWORD": SMTP_PASSWORD,
        "VERIFY_EMAIL_URL": VERIFY_EMAIL_URL,
    }

    invalid = []
    for key, value in required.items():
        val = (value or "").strip()
        if not val or val.startswith("CHANGE_THIS"):
            invalid.append(key)

    if invalid:
        raise RuntimeError(f"Production env misconfigured. Invalid keys: {', '.join(sorted(invalid))}")
