"""Shared test fixtures for send-push tests.

Provides:
- A throwaway RSA service account (PKCS#8 PEM + parsed credential)
- An in-memory NotificationStore that records writes
- A router for httpx.MockTransport that answers per URL and logs requests
"""

import json
from urllib.parse import parse_qs

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from send_push.config import Settings
from send_push.credentials import ServiceAccountCredential

TOKEN_URL = "https://oauth2.googleapis.com/token"
PROJECT_ID = "demo-project"
SEND_URL = f"https://fcm.googleapis.com/v1/projects/{PROJECT_ID}/messages:send"
ISSUER = "push@demo-project.iam.gserviceaccount.com"


# ─────────────────────────────────────────────────────────────────────────────
# Key Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_key) -> str:
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def service_account_json(private_key_pem) -> str:
    return json.dumps({
        "type": "service_account",
        "project_id": PROJECT_ID,
        "private_key_id": "abc123",
        "private_key": private_key_pem,
        "client_email": ISSUER,
    })


@pytest.fixture
def credential(service_account_json) -> ServiceAccountCredential:
    return ServiceAccountCredential.from_json(service_account_json)


@pytest.fixture
def settings(service_account_json) -> Settings:
    return Settings(
        store_url="https://store.example.supabase.co",
        store_key="service-role-key",
        service_account_json=service_account_json,
        webhook_secret="",
    )


# ─────────────────────────────────────────────────────────────────────────────
# Fakes
# ─────────────────────────────────────────────────────────────────────────────


class FakeStore:
    """In-memory NotificationStore."""

    def __init__(self, tokens: dict | None = None):
        self.tokens = dict(tokens or {})
        self.lookups: list = []
        self.writes: list[tuple] = []

    async def get_device_token(self, profile_id):
        self.lookups.append(profile_id)
        return self.tokens.get(profile_id)

    async def set_delivery_status(self, notification_id, status):
        self.writes.append((notification_id, status))


class Router:
    """Routes MockTransport requests by URL (without query) and logs them."""

    def __init__(self):
        self.routes: dict[str, object] = {}
        self.requests: list[httpx.Request] = []

    def add(self, url: str, handler):
        """handler is an httpx.Response, an exception, or a callable(request)."""
        self.routes[url] = handler

    def calls_to(self, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url).split("?")[0] == url]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(str(request.url).split("?")[0])
        if handler is None:
            return httpx.Response(404, json={"error": "no route"})
        if isinstance(handler, Exception):
            raise handler
        if callable(handler):
            return handler(request)
        return handler


@pytest.fixture
def router() -> Router:
    return Router()


@pytest.fixture
async def http_client(router):
    async with httpx.AsyncClient(transport=httpx.MockTransport(router)) as client:
        yield client


def form_fields(request: httpx.Request) -> dict:
    """Decode a form-urlencoded request body into single values."""
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
