"""
Credential codec for seller passwords.

Hashes carry their own cost factor, so raising BCRYPT_ROUNDS only affects new
hashes. Older, cheaper hashes are upgraded the next time their owner logs in
(`check_password` hands back the replacement).
"""

from typing import Optional, Tuple

from passlib.context import CryptContext

from config.env import BCRYPT_ROUNDS

# bcrypt hard limit
MAX_BCRYPT_BYTES = 72

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
    # anything cheaper than the current cost is due for a rehash
    bcrypt__min_rounds=BCRYPT_ROUNDS,
)


def _fits(password: str) -> bool:
    return len(password.encode("utf-8")) <= MAX_BCRYPT_BYTES


def hash_password(password: str) -> str:
    if not _fits(password):
        raise ValueError(f"Password too long (max {MAX_BCRYPT_BYTES} bytes)")
    return pwd_context.hash(password)


def check_password(password: str, password_hash: str) -> Tuple[bool, Optional[str]]:
    """
    Returns (matched, new_hash). `new_hash` is set only on a match against a
    hash made with an outdated cost; the caller should store it.
    An over-long password or a malformed stored hash is simply a mismatch.
    """
    if not _fits(password):
        return False, None
    try:
        return pwd_context.verify_and_update(password, password_hash)
    except (ValueError, TypeError):
        return False, None
