from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime
from enum import Enum

from config.constants import NOT_AVAILABLE, SELLER_ID_PATTERN


class Role(str, Enum):
    SELLER = "seller"
    ADMIN = "admin"


BASE_ROLE = Role.SELLER


class SessionState(str, Enum):
    LOGGED_IN = "loggedin"
    LOGGED_OUT = "loggedout"


class Seller(BaseModel):
    seller_id: str = Field(..., pattern=SELLER_ID_PATTERN)
    email: str
    phone_number: str
    password_hash: str

    role: Role = BASE_ROLE

    # verification
    email_verified: bool = False
    phone_verified: bool = False
    verification_token: Optional[str] = None
    verification_token_expiry: Optional[datetime] = None

    # phone OTP (hashed, never the plain code)
    phone_otp_hash: Optional[str] = None
    phone_otp_expiry: Optional[datetime] = None
    phone_otp_attempts: int = 0

    session_state: SessionState = SessionState.LOGGED_OUT

    # profile, filled in later by the seller dashboard
    name: str = NOT_AVAILABLE
    business_name: str = NOT_AVAILABLE
    business_address: str = NOT_AVAILABLE
    business_type: str = NOT_AVAILABLE

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode="after")
    def _token_fields_together(self):
        if (self.verification_token is None) != (self.verification_token_expiry is None):
            raise ValueError("verification_token and verification_token_expiry must be set together")
        return self

    # -----------------------------
    # State
    # -----------------------------

    @property
    def is_authenticatable(self) -> bool:
        return self.email_verified or self.phone_verified

    def start_email_verification(self, token: str, expiry: datetime) -> None:
        # Overwrites any pending token; the previous one stops matching.
        self.verification_token = token
        self.verification_token_expiry = expiry

    def complete_email_verification(self) -> None:
        self.email_verified = True
        self.verification_token = None
        self.verification_token_expiry = None

    def start_phone_verification(self, otp_hash: str, expiry: datetime) -> None:
        self.phone_otp_hash = otp_hash
        self.phone_otp_expiry = expiry
        self.phone_otp_attempts = 0

    def clear_phone_otp(self) -> None:
        self.phone_otp_hash = None
        self.phone_otp_expiry = None
        self.phone_otp_attempts = 0

    def complete_phone_verification(self) -> None:
        self.phone_verified = True
        self.clear_phone_otp()

    def mark_logged_in(self) -> None:
        self.session_state = SessionState.LOGGED_IN

    def mark_logged_out(self) -> None:
        self.session_state = SessionState.LOGGED_OUT

    # -----------------------------
    # Mongo mapping
    # -----------------------------

    def to_document(self) -> dict:
        doc = self.model_dump()
        doc["role"] = self.role.value
        doc["session_state"] = self.session_state.value
        return doc

    @classmethod
    def from_document(cls, doc: dict | None) -> Optional["Seller"]:
        if not doc:
            return None
        doc = {k: v for k, v in doc.items() if k != "_id"}
        return cls(**doc)

    def public_view(self) -> dict:
        return {
            "seller_id": self.seller_id,
            "email": self.email,
            "phone_number": self.phone_number,
            "role": self.role.value,
            "email_verified": self.email_verified,
            "phone_verified": self.phone_verified,
            "logged_in": self.session_state.value,
        }
