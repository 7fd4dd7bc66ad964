from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt

from config.env import JWT_SECRET, JWT_ALGORITHM, SESSION_TTL_MINUTES


def _require_jwt_secret() -> str:
    secret = (JWT_SECRET or "").strip()
    if not secret:
        raise RuntimeError("JWT_SECRET is not configured")
    return secret


def create_session_token(seller_id: str, role: str, handle: str) -> str:
    payload = {
        "sub": seller_id,
        "role": role,
        "sid": handle,
        "exp": datetime.utcnow() + timedelta(minutes=SESSION_TTL_MINUTES),
        "iat": datetime.utcnow(),
    }
    return jwt.encode(payload, _require_jwt_secret(), algorithm=JWT_ALGORITHM)


def decode_session_token(token: str) -> Optional[dict]:
    """Claims of a valid token, or None if it is forged, expired or malformed."""
    try:
        return jwt.decode(token, _require_jwt_secret(), algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None


def session_handle_from_token(token: str | None) -> Optional[str]:
    if not token:
        return None
    claims = decode_session_token(token)
    if not claims:
        return None
    return claims.get("sid")
