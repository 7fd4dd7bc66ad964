import hashlib
import hmac
import secrets
from datetime import datetime, timedelta

from config.constants import OTP_EXPIRY_MINUTES


# ===============================
# GENERATE 6-DIGIT OTP
# ===============================
def generate_otp() -> str:
    return str(100000 + secrets.randbelow(900000))


# ===============================
# OTP EXPIRY (5 MINUTES)
# ===============================
def otp_expiry(now: datetime | None = None):
    return (now or datetime.utcnow()) + timedelta(minutes=OTP_EXPIRY_MINUTES)


# ===============================
# HASH OTP
# ===============================
def hash_otp(otp: str) -> str:
    return hashlib.sha256(otp.encode()).hexdigest()


# ===============================
# VERIFY OTP
# ===============================
def verify_hash(plain_otp: str, hashed_otp: str) -> bool:
    return hmac.compare_digest(hash_otp(plain_otp), hashed_otp)
