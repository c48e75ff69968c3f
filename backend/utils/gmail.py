import json
import logging
import threading
import time
from urllib import parse, request, error

from config.env import (
    MAIL_CLIENT_ID,
    MAIL_CLIENT_SECRET,
    MAIL_REFRESH_TOKEN,
    MAIL_SENDER,
    MAIL_TIMEOUT_SECONDS,
)
from utils.errors import ExternalServiceError

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GMAIL_SEND_URL = "https://gmail.googleapis.com/gmail/v1/users/me/messages/send"

# refresh slightly before the provider says the token dies
TOKEN_EXPIRY_MARGIN_SECONDS = 60

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GMAIL_SEND_SCOPE = "https://www.googleapis.com/auth/gmail.send"
DEFAULT_REDIRECT_URI = "http://localhost:5000/auth/callback"

logger = logging.getLogger(__name__)


def _open_json(req: request.Request, timeout: float) -> dict:
    """POST and decode JSON. Provider HTTP errors become ExternalServiceError."""
    try:
        with request.urlopen(req, timeout=timeout) as resp:
            body = resp.read().decode("utf-8")
            return json.loads(body) if body else {}
    except error.HTTPError as e:
        details = e.read().decode("utf-8", errors="ignore")
        raise ExternalServiceError(
            f"Mail provider error ({e.code}): {details}",
            provider_status=e.code,
        )


def _token_request(fields: dict) -> request.Request:
    return request.Request(
        url=GOOGLE_TOKEN_URL,
        data=parse.urlencode(fields).encode("utf-8"),
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        method="POST",
    )


# -----------------------------
# ONE-TIME CONSENT (refresh token minting)
# -----------------------------

def build_consent_url(client_id: str, redirect_uri: str = DEFAULT_REDIRECT_URI) -> str:
    # offline + consent so Google returns a refresh token every time
    return GOOGLE_AUTH_URL + "?" + parse.urlencode({
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": GMAIL_SEND_SCOPE,
        "access_type": "offline",
        "prompt": "consent",
    })


def exchange_authorization_code(
    *,
    client_id: str,
    client_secret: str,
    code: str,
    redirect_uri: str = DEFAULT_REDIRECT_URI,
    timeout: float = MAIL_TIMEOUT_SECONDS,
) -> str:
    """Trade a consent-screen code for a long-lived refresh token."""
    data = _open_json(
        _token_request({
            "client_id": client_id,
            "client_secret": client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": redirect_uri,
        }),
        timeout,
    )

    refresh_token = data.get("refresh_token")
    if not refresh_token:
        raise ExternalServiceError(
            f"No refresh token returned: {data.get('error_description') or data.get('error') or 'empty reply'}"
        )
    return refresh_token


class GmailClient:
    """
    Minimal Gmail API client using the OAuth2 refresh-token grant.

    The access token is exchanged lazily on first use and cached on the
    instance until it expires. Network errors are raised untouched so the
    caller can decide whether to retry; provider HTTP errors are wrapped in
    ExternalServiceError.
    """

    def __init__(
        self,
        *,
        client_id: str | None,
        client_secret: str | None,
        refresh_token: str | None,
        sender: str | None,
        timeout: float = MAIL_TIMEOUT_SECONDS,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.sender = sender
        self.timeout = timeout

        self._access_token: str | None = None
        self._token_expires_at = 0.0
        self._lock = threading.Lock()

    @classmethod
    def from_env(cls) -> "GmailClient":
        return cls(
            client_id=MAIL_CLIENT_ID,
            client_secret=MAIL_CLIENT_SECRET,
            refresh_token=MAIL_REFRESH_TOKEN,
            sender=MAIL_SENDER,
        )

    def ensure_configured(self) -> None:
        missing = [
            name for name, value in (
                ("MAIL_CLIENT_ID", self.client_id),
                ("MAIL_CLIENT_SECRET", self.client_secret),
                ("MAIL_REFRESH_TOKEN", self.refresh_token),
                ("MAIL_SENDER", self.sender),
            )
            if not (value or "").strip()
        ]
        if missing:
            raise ExternalServiceError(f"Mail provider not configured: missing {', '.join(missing)}")

    # -----------------------------
    # TOKEN
    # -----------------------------

    def _open_json(self, req: request.Request) -> dict:
        try:
            return _open_json(req, self.timeout)
        except ExternalServiceError as e:
            if e.provider_status == 401:
                self.invalidate_token()
            raise

    def access_token(self) -> str:
        with self._lock:
            if self._access_token and time.monotonic() < self._token_expires_at:
                return self._access_token

            data = self._open_json(_token_request({
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": self.refresh_token,
                "grant_type": "refresh_token",
            }))

            token = data.get("access_token")
            if not token:
                raise ExternalServiceError("Mail provider token exchange failed")

            expires_in = int(data.get("expires_in", 3600))
            self._access_token = token
            self._token_expires_at = time.monotonic() + max(expires_in - TOKEN_EXPIRY_MARGIN_SECONDS, 0)
            logger.info("Mail provider access token refreshed (expires in %ss)", expires_in)
            return token

    def invalidate_token(self) -> None:
        self._access_token = None
        self._token_expires_at = 0.0

    # -----------------------------
    # SEND
    # -----------------------------

    def send_raw(self, raw: str) -> dict:
        """Submit one base64url-encoded RFC 2822 message. Blocking."""
        self.ensure_configured()

        req = request.Request(
            url=GMAIL_SEND_URL,
            data=json.dumps({"raw": raw}).encode("utf-8"),
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.access_token()}",
            },
            method="POST",
        )
        return self._open_json(req)
