from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from passlib.hash import bcrypt
from pydantic import ValidationError as ModelValidationError

from models.seller import Seller, SessionState
from utils import tokens
from utils.hash import check_password, hash_password
from utils.otp import generate_otp, hash_otp, verify_hash


# ======================
# Credential codec
# ======================

def test_hash_then_verify():
    hashed = hash_password("pw1")
    assert hashed != "pw1"
    assert check_password("pw1", hashed) == (True, None)
    for other in ("pw2", "PW1", "pw1 ", ""):
        assert check_password(other, hashed) == (False, None)


def test_hash_is_salted():
    assert hash_password("same") != hash_password("same")


def test_password_over_bcrypt_limit():
    with pytest.raises(ValueError):
        hash_password("x" * 73)
    assert check_password("x" * 73, hash_password("x" * 72)) == (False, None)


def test_malformed_hash_never_matches():
    assert check_password("pw1", "not-a-bcrypt-hash") == (False, None)


def test_cheap_hash_is_upgraded_on_match():
    weak = bcrypt.using(rounds=4).hash("pw1")

    matched, upgraded = check_password("pw1", weak)

    assert matched
    assert upgraded and upgraded != weak
    assert check_password("pw1", upgraded) == (True, None)
    assert check_password("pw2", weak) == (False, None)


# ======================
# Verification tokens
# ======================

def test_issue_token_and_expiry():
    now = datetime(2024, 1, 1)
    token, expiry = tokens.issue(now)
    assert len(token) == 64
    int(token, 16)
    assert expiry == now + timedelta(hours=1)
    assert tokens.issue(now)[0] != token


def test_is_expired_boundary():
    expiry = datetime(2024, 1, 1, 13, 0, 0)
    assert not tokens.is_expired(expiry, expiry - timedelta(seconds=1))
    assert not tokens.is_expired(expiry, expiry)
    assert tokens.is_expired(expiry, expiry + timedelta(seconds=1))


def test_session_handles_are_unique():
    assert len({tokens.generate_session_handle() for _ in range(50)}) == 50


def test_otp_shape_and_hash():
    otp = generate_otp()
    assert len(otp) == 6 and otp.isdigit()
    assert verify_hash(otp, hash_otp(otp))
    assert not verify_hash("000000" if otp != "000000" else "111111", hash_otp(otp))


# ======================
# Seller record
# ======================

def _seller(**kw):
    data = dict(
        seller_id="MBSLR12345",
        email="a@x.com",
        phone_number="555-0100",
        password_hash="h",
    )
    data.update(kw)
    return Seller(**data)


def test_token_fields_must_be_set_together():
    with pytest.raises(ModelValidationError):
        _seller(verification_token="abc")
    with pytest.raises(ModelValidationError):
        _seller(verification_token_expiry=datetime(2024, 1, 1))


def test_session_state_is_closed_enum():
    assert _seller(session_state="loggedin").session_state == SessionState.LOGGED_IN
    with pytest.raises(ModelValidationError):
        _seller(session_state="online")


def test_seller_id_format_enforced():
    with pytest.raises(ModelValidationError):
        _seller(seller_id="SLR12345")


def test_document_round_trip_keeps_enums():
    seller = _seller()
    seller.mark_logged_in()
    doc = seller.to_document()
    assert doc["role"] == "seller"
    assert doc["session_state"] == "loggedin"

    doc["_id"] = "mongo-object-id"
    restored = Seller.from_document(doc)
    assert restored == seller
    assert Seller.from_document(None) is None
