from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, EmailStr, Field

from config.constants import PHONE_OTP_LIMIT, RESEND_VERIFICATION_LIMIT
from database import get_db
from models.seller import Role, Seller
from utils.audit import log_audit
from utils.auth_service import AuthService
from utils.jwt import create_session_token
from utils.notifier import Notifier, build_notifier
from utils.rate_limit import rate_limit
from utils.security import (
    get_current_seller,
    get_seller_store,
    get_session_handle,
    get_session_store,
    require_role,
)
from utils.seller_store import SellerStore
from utils.sessions import SessionStore
from utils.validators import normalize_email

router = APIRouter(prefix="/api/seller-auth", tags=["Seller Auth"])

# ======================
# Schemas
# ======================

class SignupRequest(BaseModel):
    email: EmailStr
    phone_number: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

class LoginRequest(BaseModel):
    seller_id: str = Field(..., min_length=1)
    email_or_phone: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

class SellerIdRequest(BaseModel):
    seller_id: str = Field(..., min_length=1)

class ResendVerificationRequest(BaseModel):
    email: EmailStr

class VerifyPhoneRequest(BaseModel):
    seller_id: str = Field(..., min_length=1)
    otp: str = Field(..., min_length=6, max_length=6)

# ======================
# Dependencies
# ======================

@lru_cache
def get_notifier() -> Notifier:
    return build_notifier()


def get_auth_service(
    store: SellerStore = Depends(get_seller_store),
    sessions: SessionStore = Depends(get_session_store),
    notifier: Notifier = Depends(get_notifier),
) -> AuthService:
    return AuthService(store, sessions, notifier)

# ======================
# Signup
# ======================

@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    data: SignupRequest,
    auth: AuthService = Depends(get_auth_service),
    db=Depends(get_db),
):
    seller_id = await auth.signup(data.email, data.phone_number, data.password)

    await log_audit(
        db=db,
        actor_id=seller_id,
        actor_role=Role.SELLER.value,
        action="SELLER_SIGNUP",
    )

    return {
        "message": "Seller registered successfully. Please check mail to verify account",
        "seller_id": seller_id,
    }

# ======================
# Login / Logout
# ======================

@router.post("/login")
async def login(
    data: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
    db=Depends(get_db),
):
    result = await auth.login(data.seller_id, data.email_or_phone, data.password)

    await log_audit(
        db=db,
        actor_id=result.seller_id,
        actor_role=result.role.value,
        action="SELLER_LOGIN",
    )

    return {
        "success": True,
        "message": "Login successful",
        "seller_id": result.seller_id,
        "role": result.role.value,
        "access_token": create_session_token(
            result.seller_id, result.role.value, result.session_handle
        ),
        "token_type": "bearer",
    }


@router.post("/logout")
async def logout(
    data: SellerIdRequest,
    handle: Optional[str] = Depends(get_session_handle),
    auth: AuthService = Depends(get_auth_service),
    db=Depends(get_db),
):
    seller = await auth.logout(data.seller_id, handle)

    await log_audit(
        db=db,
        actor_id=seller.seller_id,
        actor_role=seller.role.value,
        action="SELLER_LOGOUT",
    )

    return {
        "success": True,
        "message": "Seller logged out successfully",
        "logged_in": seller.session_state.value,
    }

# ======================
# Seller ID lookup
# ======================

@router.post("/verify-seller")
async def verify_seller(
    data: SellerIdRequest,
    auth: AuthService = Depends(get_auth_service),
):
    state = await auth.verify_seller_id(data.seller_id)
    return {
        "success": True,
        "message": "Valid seller ID",
        "logged_in": state.value,
    }

# ======================
# Email verification
# ======================

@router.get("/verify-email")
async def verify_email(
    token: str = Query(..., min_length=1),
    auth: AuthService = Depends(get_auth_service),
    db=Depends(get_db),
):
    seller = await auth.verify_email(token)

    await log_audit(
        db=db,
        actor_id=seller.seller_id,
        actor_role=seller.role.value,
        action="SELLER_EMAIL_VERIFIED",
    )

    return {"message": "Email verified successfully"}


@router.post("/resend-verification-email")
async def resend_verification_email(
    data: ResendVerificationRequest,
    auth: AuthService = Depends(get_auth_service),
    db=Depends(get_db),
):
    limit, window = RESEND_VERIFICATION_LIMIT
    await rate_limit(
        db=db,
        key=f"resend_verification:{normalize_email(data.email)}",
        max_requests=limit,
        window_seconds=window,
    )

    await auth.resend_verification(data.email)
    return {"message": "Verification email sent"}

# ======================
# Phone verification
# ======================

@router.post("/phone/send-otp")
async def send_phone_otp(
    data: SellerIdRequest,
    auth: AuthService = Depends(get_auth_service),
    db=Depends(get_db),
):
    limit, window = PHONE_OTP_LIMIT
    await rate_limit(
        db=db,
        key=f"phone_otp:{data.seller_id}",
        max_requests=limit,
        window_seconds=window,
    )

    await auth.request_phone_otp(data.seller_id)
    return {"message": "OTP sent"}


@router.post("/phone/verify-otp")
async def verify_phone_otp(
    data: VerifyPhoneRequest,
    auth: AuthService = Depends(get_auth_service),
    db=Depends(get_db),
):
    seller = await auth.verify_phone(data.seller_id, data.otp)

    await log_audit(
        db=db,
        actor_id=seller.seller_id,
        actor_role=seller.role.value,
        action="SELLER_PHONE_VERIFIED",
    )

    return {"message": "Phone number verified successfully"}

# ======================
# Current Seller
# ======================

@router.get("/me")
async def me(seller: Seller = Depends(get_current_seller)):
    return seller.public_view()

# ===============================
# ROLE TESTS
# ===============================
@router.get("/admin-only")
async def admin_only(seller: Seller = Depends(require_role(Role.ADMIN))):
    return {"message": "Admin access OK"}
