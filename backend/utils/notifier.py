"""
Outbound seller notifications.

Delivery is best-effort: `dispatch` runs a send in the background and only
logs failures, so a broken mail server never fails a signup.
"""

import asyncio
import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from urllib.parse import urlencode

from config.env import (
    SMTP_FROM,
    SMTP_HOST,
    SMTP_PASSWORD,
    SMTP_PORT,
    SMTP_USE_TLS,
    SMTP_USER,
    VERIFY_EMAIL_URL,
)
from utils.errors import DependencyError

logger = logging.getLogger(__name__)

# Strong refs so pending sends are not garbage collected mid-flight
_pending: set = set()


class Notifier(ABC):

    # False for channels with no SMS route; phone OTP requests are refused up front
    supports_sms = True

    @abstractmethod
    async def send_verification_email(self, email: str, seller_id: str, token: str) -> None:
        """Send the verification link. Raises on delivery failure."""

    @abstractmethod
    async def send_phone_otp(self, phone_number: str, otp: str) -> None:
        """Send a phone OTP. Raises on delivery failure."""


def verification_link(token: str, base_url: str = VERIFY_EMAIL_URL) -> str:
    return f"{base_url}?{urlencode({'token': token})}"


def render_verification_email(seller_id: str, link: str) -> str:
    return f"""
    <div>
      <h2>Welcome Aboard Seller</h2>
      <h3>Use your new unique ID to login, but first verify your email</h3>
      <h3>Unique ID : {seller_id}</h3>
      <p>Please click the link below to verify your email:</p>
      <a href="{link}">Verify Email</a>
    </div>
    """


class SmtpNotifier(Notifier):

    supports_sms = False

    def __init__(
        self,
        host: str = SMTP_HOST,
        port: int = SMTP_PORT,
        user: str | None = SMTP_USER,
        password: str | None = SMTP_PASSWORD,
        sender: str | None = SMTP_FROM,
        use_tls: bool = SMTP_USE_TLS,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender
        self.use_tls = use_tls
        self.timeout = timeout

    def _send(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.user and self.password:
                smtp.login(self.user, self.password)
            smtp.send_message(message)

    async def send_verification_email(self, email: str, seller_id: str, token: str) -> None:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = email
        message["Subject"] = "Verify Your Email"
        link = verification_link(token)
        message.set_content(f"Your seller ID is {seller_id}. Verify your email: {link}")
        message.add_alternative(render_verification_email(seller_id, link), subtype="html")

        await asyncio.to_thread(self._send, message)
        logger.info("VERIFICATION_EMAIL_SENT seller=%s", seller_id)

    async def send_phone_otp(self, phone_number: str, otp: str) -> None:
        raise DependencyError("SMS delivery is not configured")


class LogNotifier(Notifier):
    """Development notifier: writes what would be sent to the log."""

    async def send_verification_email(self, email: str, seller_id: str, token: str) -> None:
        logger.info(
            "VERIFICATION_EMAIL seller=%s to=%s link=%s",
            seller_id, email, verification_link(token),
        )

    async def send_phone_otp(self, phone_number: str, otp: str) -> None:
        logger.info("PHONE_OTP to=%s otp=%s", phone_number, otp)


async def _deliver(coro, event: str) -> None:
    try:
        await coro
    except Exception:
        logger.exception("NOTIFY_ERROR event=%s", event)


def dispatch(coro, event: str) -> asyncio.Task:
    """
    Fire-and-forget a notifier call on the running loop.
    """
    task = asyncio.get_running_loop().create_task(_deliver(coro, event))
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task


def build_notifier() -> Notifier:
    if SMTP_HOST:
        return SmtpNotifier()
    logger.warning("SMTP_HOST not set, verification emails will only be logged")
    return LogNotifier()
