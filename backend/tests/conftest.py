"""Shared fixtures for the seller backend test suite.

Uses an in-memory mongomock-motor database and a recording notifier, both
injected into the real FastAPI app through dependency overrides.
"""

import os

os.environ["ENV"] = "test"
os.environ["MONGODB_URI"] = "mongodb://localhost:27017/expressbuy_test"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["ADMIN_EMAIL"] = "admin@expressbuy.com"
os.environ["ADMIN_PASSWORD"] = "admin-pass-123"
os.environ["BANK_DATA_ENCRYPTION_KEY"] = "test-bank-key"

import uuid
from datetime import datetime

import httpx
import pytest
from mongomock_motor import AsyncMongoMockClient

from database import get_db
from main import app
from models.seller import SellerInDB
from utils.crypto import build_bank_details
from utils.errors import ExternalServiceError
from utils.hash import hash_password
from utils.jwt import create_admin_token, create_seller_token
from utils.notifications import get_notifier

SELLER_PASSWORD = "secret123"
SELLER_PASSWORD_HASH = hash_password(SELLER_PASSWORD)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeNotifier:
    """Records every email instead of calling the provider."""

    def __init__(self):
        self.sent = []
        self.fail = False

    async def _deliver(self, kind, to, **payload):
        if self.fail:
            raise ExternalServiceError("Email delivery failed after 3 attempts", transient=True)
        self.sent.append({"kind": kind, "to": to, **payload})
        return {"id": f"msg-{len(self.sent)}"}

    async def send_otp_email(self, to, name, code, expiry_minutes=10):
        return await self._deliver("otp", to, name=name, code=code)

    async def send_approval_email(self, to, name):
        return await self._deliver("approval", to, name=name)

    async def send_rejection_email(self, to, name, reason):
        return await self._deliver("rejection", to, name=name, reason=reason)

    def last_otp(self, to):
        for mail in reversed(self.sent):
            if mail["kind"] == "otp" and mail["to"] == to:
                return mail["code"]
        return None

    def kinds(self):
        return [mail["kind"] for mail in self.sent]


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def db():
    return AsyncMongoMockClient()[f"expressbuy_{uuid.uuid4().hex}"]


@pytest.fixture
def notifier():
    return FakeNotifier()


def _client(db, notifier, **transport_kwargs):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_notifier] = lambda: notifier
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app, **transport_kwargs),
        base_url="http://test",
    )


@pytest.fixture
async def client(db, notifier):
    """httpx AsyncClient wired to the FastAPI app with test overrides."""
    async with _client(db, notifier) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def raw_client(db, notifier):
    """Like `client`, but server errors come back as 500 responses."""
    async with _client(db, notifier, raise_app_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Seeding helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def auth_header():
    def _build(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}
    return _build


@pytest.fixture
def admin_headers(auth_header):
    return auth_header(create_admin_token(os.environ["ADMIN_EMAIL"]))


@pytest.fixture
def make_seller(db):
    """Factory fixture: insert a seller document and return it with `_id`."""

    async def _make(approved: bool = False, **overrides) -> dict:
        now = datetime.utcnow()
        suffix = uuid.uuid4().hex[:8]

        doc = SellerInDB(
            name=f"Seller {suffix}",
            email=f"seller-{suffix}@example.com",
            phone="+254700123456",
            password=SELLER_PASSWORD_HASH,
            national_id=f"NID-{suffix}",
            id_document="https://files.example.com/id.png",
            bank_details=build_bank_details(
                bank_name="KCB",
                account_holder="Seller Holder",
                account_number="000111222333",
                routing_code="01100",
            ),
            created_at=now,
            updated_at=now,
        ).model_dump()

        if approved:
            doc.update({
                "status": "approved",
                "is_approved": True,
                "is_email_verified": True,
                "approved_at": now,
            })
        doc.update(overrides)

        result = await db.sellers.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    return _make


@pytest.fixture
def seller_headers(auth_header):
    def _build(seller: dict) -> dict:
        return auth_header(create_seller_token(seller["_id"]))
    return _build


@pytest.fixture
def make_product(db):
    async def _make(seller: dict, **overrides) -> dict:
        now = datetime.utcnow()
        doc = {
            "name": "Woven Basket",
            "description": "Hand woven sisal basket",
            "price": 25.0,
            "category": "home",
            "stock": 100,
            "image": None,
            "insta_video": "",
            "rating": 0,
            "reviews": 0,
            "seller_id": seller["_id"],
            "status": "active",
            "created_at": now,
            "updated_at": now,
        }
        doc.update(overrides)
        result = await db.products.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    return _make


@pytest.fixture
def make_order(db):
    async def _make(items: list, **overrides) -> dict:
        now = datetime.utcnow()
        doc = {
            "user_id": None,
            "items": [
                {
                    "product_id": product["_id"],
                    "name": product["name"],
                    "price": price,
                    "quantity": quantity,
                }
                for product, price, quantity in items
            ],
            "total_amount": sum(price * quantity for _, price, quantity in items),
            "status": "pending",
            "created_at": now,
            "updated_at": now,
        }
        doc.update(overrides)
        result = await db.orders.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    return _make
