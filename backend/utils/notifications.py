import asyncio
import base64
import errno
import logging
import socket
from email.mime.text import MIMEText
from urllib import error

from fastapi import Request

from config.env import (
    MAIL_MAX_ATTEMPTS,
    MAIL_RETRY_BASE_SECONDS,
    MAIL_OTP_RETRY_BASE_SECONDS,
    OTP_EXPIRY_MINUTES,
)
from utils.email_templates import otp_email, approval_email, rejection_email
from utils.errors import ExternalServiceError
from utils.gmail import GmailClient

logger = logging.getLogger(__name__)

TRANSIENT_ERROR_TYPES = (
    TimeoutError,
    ConnectionRefusedError,
    ConnectionResetError,
    socket.gaierror,
)

TRANSIENT_MARKERS = (
    "ETIMEDOUT",
    "ECONNREFUSED",
    "ENOTFOUND",
    "ECONNRESET",
    "socket hang up",
    "timed out",
    "Connection refused",
    "Connection reset",
)


# ==============================
# ERROR CLASSIFICATION
# ==============================

def is_transient_error(exc: BaseException | None) -> bool:
    """True for network-level failures worth retrying (timeout, refused, DNS, reset)."""
    if exc is None:
        return False

    # a provider response (auth, bad request) is never retried
    if isinstance(exc, error.HTTPError):
        return False

    if isinstance(exc, ExternalServiceError):
        return exc.transient

    if isinstance(exc, error.URLError) and isinstance(exc.reason, BaseException):
        return is_transient_error(exc.reason)

    if isinstance(exc, TRANSIENT_ERROR_TYPES):
        return True

    code = getattr(exc, "code", None) or ""
    errno_name = errno.errorcode.get(getattr(exc, "errno", None) or 0, "")
    text = f"{exc} {code} {errno_name}"
    return any(marker in text for marker in TRANSIENT_MARKERS)


# ==============================
# MESSAGE ENCODING
# ==============================

def encode_base64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def build_raw_message(sender: str, to: str, subject: str, html_body: str) -> str:
    message = MIMEText(html_body, "html", "utf-8")
    message["From"] = sender
    message["To"] = to
    message["Subject"] = subject
    return encode_base64url(message.as_bytes())


# ==============================
# SENDER
# ==============================

class NotificationSender:
    """
    Delivers transactional email through the provider client, retrying
    transient network failures with exponential backoff.
    """

    def __init__(
        self,
        client: GmailClient,
        *,
        max_attempts: int = MAIL_MAX_ATTEMPTS,
        base_delay: float = MAIL_RETRY_BASE_SECONDS,
        otp_base_delay: float = MAIL_OTP_RETRY_BASE_SECONDS,
        sleep=asyncio.sleep,
    ):
        self.client = client
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self.otp_base_delay = otp_base_delay
        self._sleep = sleep

    async def send(self, to: str, subject: str, html_body: str, *, base_delay: float | None = None) -> dict:
        self.client.ensure_configured()

        raw = build_raw_message(self.client.sender, to, subject, html_body)
        delay = self.base_delay if base_delay is None else base_delay

        for attempt in range(1, self.max_attempts + 1):
            try:
                result = await asyncio.to_thread(self.client.send_raw, raw)
            except Exception as exc:
                if not is_transient_error(exc):
                    logger.error("Email to %s failed permanently: %s", to, exc)
                    if isinstance(exc, ExternalServiceError):
                        raise
                    raise ExternalServiceError(f"Email delivery to {to} failed") from exc

                if attempt == self.max_attempts:
                    logger.exception("Email to %s failed after %s attempts", to, attempt)
                    raise ExternalServiceError(
                        f"Email delivery to {to} failed after {attempt} attempts",
                        transient=True,
                    ) from exc

                wait = delay * 2 ** (attempt - 1)
                logger.warning(
                    "Email attempt %s/%s to %s failed (%s), retrying in %.1fs",
                    attempt, self.max_attempts, to, exc, wait,
                )
                await self._sleep(wait)
            else:
                logger.info("Email sent to %s (attempt %s)", to, attempt)
                return result

    # -----------------------------
    # TRANSACTIONAL MAILS
    # -----------------------------

    async def send_otp_email(self, to: str, name: str, code: str, expiry_minutes: int = OTP_EXPIRY_MINUTES) -> dict:
        subject, html = otp_email(name, code, expiry_minutes)
        return await self.send(to, subject, html, base_delay=self.otp_base_delay)

    async def send_approval_email(self, to: str, name: str) -> dict:
        subject, html = approval_email(name)
        return await self.send(to, subject, html)

    async def send_rejection_email(self, to: str, name: str, reason: str) -> dict:
        subject, html = rejection_email(name, reason)
        return await self.send(to, subject, html)


def build_notifier() -> NotificationSender:
    return NotificationSender(GmailClient.from_env())


def get_notifier(request: Request) -> NotificationSender:
    return request.app.state.notifier
