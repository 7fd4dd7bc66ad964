import re

from config.constants import SELLER_ID_PATTERN

PHONE_REGEX = re.compile(r"^\+?[0-9][0-9\- ]{5,18}[0-9]$")
SELLER_ID_REGEX = re.compile(SELLER_ID_PATTERN)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_phone(phone: str) -> str:
    phone = phone.strip()

    if not PHONE_REGEX.match(phone):
        raise ValueError("Invalid phone number format")

    return phone


def normalize_contact(email_or_phone: str) -> str:
    value = email_or_phone.strip()
    if "@" in value:
        return value.lower()
    return value


def is_valid_seller_id(seller_id: str) -> bool:
    return bool(SELLER_ID_REGEX.match(seller_id or ""))
