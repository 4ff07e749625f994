import hashlib
import hmac
import json
import time
import types
from typing import Any, Dict, Generator, List, Optional

import pytest
import stripe
from fastapi.testclient import TestClient

from storefront.app_setup.factory import create_app
from storefront.config import Settings
from storefront.csrf.store import CsrfTokenStore
from storefront.notifications.email import EmailNotifier

WEBHOOK_SECRET = "whsec_test_secret"
ADMIN_KEY = "admin-test-key"


# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class RecordingNotifier(EmailNotifier):
    """Notifier réel (rendu Jinja2 compris) dont l'envoi SMTP est remplacé par un enregistrement."""

    def __init__(self, settings: Settings, result: bool = True):
        super().__init__(settings)
        self.result = result
        self.sent: List[Dict[str, Any]] = []

    async def _send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> bool:
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})
        return self.result

    async def verify(self) -> bool:
        return self.result


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Construit un en-tête Stripe-Signature valide (t=...,v1=HMAC-SHA256)."""
    ts = int(time.time()) if timestamp is None else timestamp
    signed = f"{ts}.{payload}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"


def completed_event(session_id: str = "cs_test_123", email: Optional[str] = "jane@example.com", name: str = "Jane") -> str:
    return json.dumps({
        "id": "evt_test_1",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "customer_details": {"email": email, "name": name},
                "metadata": {"customerName": name},
            }
        },
    })


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        base_url="http://testserver",
        stripe_secret_key="sk_test_dummy",
        stripe_publishable_key="pk_test_dummy",
        stripe_webhook_secret=WEBHOOK_SECRET,
        emailjs_public_key="emailjs_public_dummy",
        email_user="shop@example.com",
        email_pass="app-password",
        rate_limit_storage="memory",
        admin_api_key=ADMIN_KEY,
    )


@pytest.fixture
def store() -> CsrfTokenStore:
    return CsrfTokenStore()


@pytest.fixture
def notifier(settings) -> RecordingNotifier:
    return RecordingNotifier(settings)


@pytest.fixture
def app(settings, store, notifier):
    return create_app(settings, store=store, notifier=notifier)


@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


@pytest.fixture
def stripe_calls(monkeypatch) -> List[Dict[str, Any]]:
    """Remplace stripe.checkout.Session.create par un faux qui enregistre ses arguments."""
    calls: List[Dict[str, Any]] = []

    def _fake_create(**kwargs):
        calls.append(kwargs)
        return types.SimpleNamespace(id="cs_test_123", url="https://checkout.stripe.com/c/pay/cs_test_123")

    monkeypatch.setattr(stripe.checkout.Session, "create", _fake_create)
    return calls


@pytest.fixture
def sign():
    return sign_payload


@pytest.fixture
def make_completed_event():
    return completed_event
