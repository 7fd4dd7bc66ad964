"""
Seller identity lifecycle: signup, email/phone verification, login, logout.

Every operation is a read-modify-write on one seller record. The only step
that needs storage-level atomicity is claiming a seller ID (utils/allocator.py).
Notifications are fire-and-forget and never roll back a state change.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from config.constants import OTP_MAX_ATTEMPTS
from config.env import SELLER_ID_MAX_ATTEMPTS
from models.seller import Role, Seller, SessionState
from utils import tokens
from utils.allocator import Exhausted, allocate_seller, random_seller_id
from utils.errors import (
    AllocationExhausted,
    AlreadyVerified,
    DependencyError,
    DuplicateEmail,
    DuplicateKey,
    Forbidden,
    InvalidCredentials,
    InvalidOtp,
    InvalidSellerId,
    InvalidToken,
    NotFound,
    NotVerified,
    OtpExpired,
    SessionInvalidationFailed,
    TokenExpired,
    TooManyAttempts,
    ValidationError,
)
from utils.hash import check_password, hash_password
from utils.notifier import Notifier, dispatch
from utils.otp import generate_otp, hash_otp, otp_expiry, verify_hash
from utils.seller_store import SellerStore
from utils.sessions import SessionStore
from utils.validators import (
    is_valid_seller_id,
    normalize_contact,
    normalize_email,
    normalize_phone,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    seller_id: str
    role: Role
    session_handle: str


def _require(**fields) -> None:
    missing = [name for name, value in fields.items() if not value]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


class AuthService:

    def __init__(
        self,
        store: SellerStore,
        sessions: SessionStore,
        notifier: Notifier,
        *,
        clock: Callable[[], datetime] = datetime.utcnow,
        max_id_attempts: int = SELLER_ID_MAX_ATTEMPTS,
        id_generator: Callable[[], str] = random_seller_id,
    ):
        self.store = store
        self.sessions = sessions
        self.notifier = notifier
        self.clock = clock
        self.max_id_attempts = max_id_attempts
        self.id_generator = id_generator

    # ======================
    # Helpers
    # ======================

    def _notify(self, coro, event: str) -> None:
        dispatch(coro, event)

    async def _get_seller(self, seller_id: str) -> Seller:
        seller = await self.store.find_by_field("seller_id", seller_id)
        if not seller:
            raise NotFound()
        return seller

    # ======================
    # Signup
    # ======================

    async def signup(self, email: str, phone_number: str, password: str) -> str:
        _require(email=email, phone_number=phone_number, password=password)

        email = normalize_email(email)
        try:
            phone_number = normalize_phone(phone_number)
        except ValueError as e:
            raise ValidationError(str(e))

        if await self.store.find_by_field("email", email):
            raise DuplicateEmail()

        try:
            password_hash = await asyncio.to_thread(hash_password, password)
        except ValueError as e:
            raise ValidationError(str(e))

        now = self.clock()
        token, expiry = tokens.issue(now)

        def build(seller_id: str) -> Seller:
            return Seller(
                seller_id=seller_id,
                email=email,
                phone_number=phone_number,
                password_hash=password_hash,
                verification_token=token,
                verification_token_expiry=expiry,
                created_at=now,
                updated_at=now,
            )

        try:
            result = await allocate_seller(
                self.store,
                build,
                max_attempts=self.max_id_attempts,
                generate=self.id_generator,
            )
        except DuplicateKey as e:
            # Lost a race with a concurrent signup for the same email
            if e.field == "email":
                raise DuplicateEmail()
            logger.error("SIGNUP_DUPLICATE_KEY field=%s", e.field)
            raise DependencyError()

        if isinstance(result, Exhausted):
            raise AllocationExhausted()

        seller_id = result.seller_id
        logger.info("SELLER_SIGNUP seller=%s", seller_id)

        self._notify(
            self.notifier.send_verification_email(email, seller_id, token),
            f"verification_email seller={seller_id}",
        )
        return seller_id

    # ======================
    # Email verification
    # ======================

    async def verify_email(self, token: str) -> Seller:
        _require(token=token)

        seller = await self.store.find_by_field("verification_token", token)
        if not seller:
            raise InvalidToken()

        if tokens.is_expired(seller.verification_token_expiry, self.clock()):
            raise TokenExpired()

        seller.complete_email_verification()
        await self.store.update(seller)

        logger.info("EMAIL_VERIFIED seller=%s", seller.seller_id)
        return seller

    async def resend_verification(self, email: str) -> Seller:
        _require(email=email)

        seller = await self.store.find_by_field("email", normalize_email(email))
        if not seller:
            raise NotFound()

        if seller.email_verified:
            raise AlreadyVerified()

        token, expiry = tokens.issue(self.clock())
        seller.start_email_verification(token, expiry)
        await self.store.update(seller)

        self._notify(
            self.notifier.send_verification_email(seller.email, seller.seller_id, token),
            f"verification_email_resend seller={seller.seller_id}",
        )
        return seller

    # ======================
    # Phone verification
    # ======================

    async def request_phone_otp(self, seller_id: str) -> Seller:
        _require(seller_id=seller_id)

        seller = await self._get_seller(seller_id)
        if seller.phone_verified:
            raise AlreadyVerified("Phone number is already verified")

        # Never issue a code that cannot reach the seller
        if not self.notifier.supports_sms:
            logger.error("PHONE_OTP_UNAVAILABLE seller=%s", seller.seller_id)
            raise DependencyError("Phone verification is unavailable")

        otp = generate_otp()
        seller.start_phone_verification(hash_otp(otp), otp_expiry(self.clock()))
        await self.store.update(seller)

        self._notify(
            self.notifier.send_phone_otp(seller.phone_number, otp),
            f"phone_otp seller={seller.seller_id}",
        )
        return seller

    async def verify_phone(self, seller_id: str, otp: str) -> Seller:
        _require(seller_id=seller_id, otp=otp)

        seller = await self._get_seller(seller_id)
        if seller.phone_verified:
            raise AlreadyVerified("Phone number is already verified")

        if not seller.phone_otp_hash or self.clock() > seller.phone_otp_expiry:
            if seller.phone_otp_hash:
                seller.clear_phone_otp()
                await self.store.update(seller)
            raise OtpExpired()

        if seller.phone_otp_attempts >= OTP_MAX_ATTEMPTS:
            seller.clear_phone_otp()
            await self.store.update(seller)
            raise TooManyAttempts()

        if not verify_hash(otp, seller.phone_otp_hash):
            seller.phone_otp_attempts += 1
            await self.store.update(seller)
            raise InvalidOtp()

        seller.complete_phone_verification()
        await self.store.update(seller)

        logger.info("PHONE_VERIFIED seller=%s", seller.seller_id)
        return seller

    # ======================
    # Login / Logout
    # ======================

    async def login(self, seller_id: str, email_or_phone: str, password: str) -> LoginResult:
        _require(seller_id=seller_id, email_or_phone=email_or_phone, password=password)

        seller = None
        if is_valid_seller_id(seller_id):
            seller = await self.store.find_by_id_and_contact(
                seller_id, normalize_contact(email_or_phone)
            )

        # Same error for unknown id and wrong contact
        if not seller:
            raise InvalidCredentials()

        if not seller.is_authenticatable:
            raise NotVerified()

        matched, upgraded_hash = await asyncio.to_thread(
            check_password, password, seller.password_hash
        )
        if not matched:
            raise InvalidCredentials()

        if upgraded_hash:
            seller.password_hash = upgraded_hash
            logger.info("PASSWORD_REHASHED seller=%s", seller.seller_id)

        seller.mark_logged_in()
        await self.store.update(seller)

        handle = tokens.generate_session_handle()
        await self.sessions.bind(handle, seller.seller_id, seller.role.value)

        logger.info("SELLER_LOGIN seller=%s", seller.seller_id)
        return LoginResult(seller.seller_id, seller.role, handle)

    async def logout(self, seller_id: str, session_handle: Optional[str] = None) -> Seller:
        _require(seller_id=seller_id)

        seller = await self._get_seller(seller_id)

        bound_seller_id = None
        if session_handle:
            bound_seller_id = await self.sessions.current_seller_id(session_handle)
            # A live session of another seller must not log this one out
            if bound_seller_id and bound_seller_id != seller.seller_id:
                logger.warning(
                    "LOGOUT_SESSION_MISMATCH seller=%s bound=%s",
                    seller.seller_id, bound_seller_id,
                )
                raise Forbidden("Session does not belong to this seller")

        seller.mark_logged_out()
        await self.store.update(seller)
        logger.info("SELLER_LOGOUT seller=%s", seller.seller_id)

        # No handle, or one that is already unbound: nothing left to close
        if bound_seller_id:
            try:
                await self.sessions.unbind(session_handle)
            except DependencyError:
                logger.exception("SESSION_INVALIDATION_ERROR seller=%s", seller.seller_id)
                raise SessionInvalidationFailed()

        return seller

    # ======================
    # Seller ID lookup
    # ======================

    async def verify_seller_id(self, seller_id: str) -> SessionState:
        if not seller_id:
            raise ValidationError("Seller ID is required")

        seller = None
        if is_valid_seller_id(seller_id):
            seller = await self.store.find_by_field("seller_id", seller_id)
        if not seller:
            raise InvalidSellerId()

        return seller.session_state
