# backend/config/constants.py

from config.env import VERIFICATION_TOKEN_TTL_MINUTES

# -----------------------------
# SELLER IDS
# -----------------------------

SELLER_ID_PREFIX = "MBSLR"
SELLER_ID_MIN = 10000
SELLER_ID_MAX = 99999               # inclusive, 5 digits
SELLER_ID_PATTERN = r"^MBSLR\d{5}$"

# -----------------------------
# EMAIL VERIFICATION
# -----------------------------

VERIFICATION_TOKEN_BYTES = 32        # 256 bits
VERIFICATION_TOKEN_TTL_SECONDS = VERIFICATION_TOKEN_TTL_MINUTES * 60

# -----------------------------
# PHONE OTP
# -----------------------------

OTP_EXPIRY_MINUTES = 5
OTP_MAX_ATTEMPTS = 5

# -----------------------------
# RATE LIMITS (requests, window seconds)
# -----------------------------

RESEND_VERIFICATION_LIMIT = (3, 300)
PHONE_OTP_LIMIT = (3, 300)

# -----------------------------
# PROFILE PLACEHOLDER
# -----------------------------

NOT_AVAILABLE = "Not Available"
