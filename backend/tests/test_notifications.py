"""NotificationSender retry behaviour against a scripted provider client."""

import base64
import socket
from urllib import error

import pytest

from utils.errors import ExternalServiceError
from utils.gmail import GmailClient
from utils.notifications import (
    NotificationSender,
    build_raw_message,
    encode_base64url,
    is_transient_error,
)


class ScriptedClient:
    """Provider stand-in: each send_raw call pops the next scripted outcome."""

    sender = "noreply@expressbuy.test"

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def ensure_configured(self):
        return None

    def send_raw(self, raw):
        self.calls.append(raw)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def _sender(outcomes):
    client = ScriptedClient(outcomes)
    sleep = RecordingSleep()
    sender = NotificationSender(
        client,
        max_attempts=3,
        base_delay=1.0,
        otp_base_delay=2.0,
        sleep=sleep,
    )
    return sender, client, sleep


def _refused():
    return error.URLError(ConnectionRefusedError(111, "Connection refused"))


# ---------------------------------------------------------------------------
# Retry loop
# ---------------------------------------------------------------------------

async def test_retries_transient_failures_then_sends_once():
    sender, client, sleep = _sender([_refused(), TimeoutError("timed out"), {"id": "abc"}])

    result = await sender.send("seller@example.com", "Hello", "<p>hi</p>")

    assert result == {"id": "abc"}
    assert len(client.calls) == 3
    assert sleep.delays == [1.0, 2.0]


async def test_otp_mail_uses_longer_backoff():
    sender, client, sleep = _sender([_refused(), _refused(), {"id": "otp"}])

    await sender.send_otp_email("seller@example.com", "Asha", "123456")

    assert sleep.delays == [2.0, 4.0]
    assert len(client.calls) == 3


async def test_gives_up_after_max_attempts():
    sender, client, sleep = _sender([_refused(), _refused(), _refused()])

    with pytest.raises(ExternalServiceError) as exc_info:
        await sender.send_approval_email("seller@example.com", "Asha")

    assert exc_info.value.status_code == 502
    assert exc_info.value.transient is True
    assert len(client.calls) == 3
    assert sleep.delays == [1.0, 2.0]


async def test_provider_rejection_is_not_retried():
    http_error = error.HTTPError(
        "https://gmail.googleapis.com/gmail/v1/users/me/messages/send",
        400,
        "Bad Request",
        hdrs=None,
        fp=None,
    )
    sender, client, sleep = _sender([http_error, {"id": "never"}])

    with pytest.raises(ExternalServiceError) as exc_info:
        await sender.send_rejection_email("seller@example.com", "Asha", "Blurry ID")

    assert exc_info.value.transient is False
    assert len(client.calls) == 1
    assert sleep.delays == []


async def test_unconfigured_client_fails_before_any_attempt():
    client = GmailClient(client_id=None, client_secret=None, refresh_token=None, sender=None)
    sender = NotificationSender(client, sleep=RecordingSleep())

    with pytest.raises(ExternalServiceError) as exc_info:
        await sender.send("seller@example.com", "Hello", "<p>hi</p>")

    assert exc_info.value.transient is False


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "exc",
    [
        TimeoutError(),
        ConnectionRefusedError(),
        ConnectionResetError(),
        socket.gaierror(-2, "Name or service not known"),
        error.URLError(socket.gaierror(-3, "Temporary failure in name resolution")),
        OSError("socket hang up"),
        OSError("ECONNRESET while reading"),
    ],
)
def test_network_failures_are_transient(exc):
    assert is_transient_error(exc) is True


@pytest.mark.parametrize(
    "exc",
    [
        ValueError("bad payload"),
        ExternalServiceError("invalid_grant"),
        error.HTTPError("https://oauth2.googleapis.com/token", 401, "Unauthorized", hdrs=None, fp=None),
        None,
    ],
)
def test_other_failures_are_permanent(exc):
    assert is_transient_error(exc) is False


# ---------------------------------------------------------------------------
# Message encoding
# ---------------------------------------------------------------------------

def test_base64url_strips_padding_and_swaps_alphabet():
    data = b"\xfb\xff\xfe"
    encoded = encode_base64url(data)

    assert "+" not in encoded and "/" not in encoded
    assert not encoded.endswith("=")
    assert encoded == "-__-"


def test_raw_message_round_trips_headers_and_body():
    raw = build_raw_message(
        "noreply@expressbuy.test",
        "seller@example.com",
        "Verify your email",
        "<p>Your code is 123456</p>",
    )

    padded = raw + "=" * (-len(raw) % 4)
    decoded = base64.urlsafe_b64decode(padded).decode("utf-8")

    assert "To: seller@example.com" in decoded
    assert "Subject: Verify your email" in decoded
    assert "text/html" in decoded
