import secrets
from datetime import datetime, timedelta

from config.constants import VERIFICATION_TOKEN_BYTES, VERIFICATION_TOKEN_TTL_SECONDS

VERIFICATION_TOKEN_TTL = timedelta(seconds=VERIFICATION_TOKEN_TTL_SECONDS)


# ===============================
# EMAIL VERIFICATION TOKEN
# ===============================
def generate_verification_token() -> str:
    return secrets.token_hex(VERIFICATION_TOKEN_BYTES)


def issue(now: datetime | None = None) -> tuple[str, datetime]:
    """
    New (token, expiry) pair. Expiry is issue time + TTL (1 hour by default).
    """
    now = now or datetime.utcnow()
    return generate_verification_token(), now + VERIFICATION_TOKEN_TTL


def is_expired(expiry: datetime, now: datetime) -> bool:
    return now > expiry


# ===============================
# SESSION HANDLE
# ===============================
def generate_session_handle() -> str:
    return secrets.token_urlsafe(32)
