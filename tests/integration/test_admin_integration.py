import types
from datetime import date, timedelta

import pytest
import stripe

from storefront.admin.views import default_estimated_delivery
from storefront.notifications.email import TRACKING_SUBJECT

ADMIN_HEADERS = {"X-Admin-Key": "admin-test-key"}


def _body(**overrides):
    body = {
        "orderId": "cs_test_123",
        "trackingNumber": "RM123456789GB",
        "carrier": "Royal Mail",
        "customerEmail": "jane@example.com",
        "customerName": "Jane",
        "estimatedDelivery": "24/12/2030",
    }
    body.update(overrides)
    return {k: v for k, v in body.items() if v is not None}


def test_tracking_email_sent(client, notifier):
    r = client.post("/admin/send-tracking-email", json=_body(), headers=ADMIN_HEADERS)
    assert r.status_code == 200
    assert r.json() == {
        "success": True,
        "message": "Tracking email sent successfully",
        "orderId": "cs_test_123",
        "trackingNumber": "RM123456789GB",
        "customerEmail": "jane@example.com",
    }
    (mail,) = notifier.sent
    assert mail["subject"] == TRACKING_SUBJECT
    assert "24/12/2030" in mail["html"]


@pytest.mark.parametrize("headers,status", [({}, 401), ({"X-Admin-Key": "wrong"}, 403)])
def test_tracking_email_requires_admin_key(client, notifier, headers, status):
    r = client.post("/admin/send-tracking-email", json=_body(), headers=headers)
    assert r.status_code == status
    assert notifier.sent == []


def test_tracking_email_disabled_without_configured_key(app, settings, notifier):
    from fastapi.testclient import TestClient

    app.state.settings = settings.model_copy(update={"admin_api_key": ""})
    with TestClient(app) as c:
        r = c.post("/admin/send-tracking-email", json=_body(), headers=ADMIN_HEADERS)
    assert r.status_code == 503


@pytest.mark.parametrize("missing", ["orderId", "trackingNumber", "carrier"])
def test_tracking_email_missing_required_field(client, notifier, missing):
    r = client.post("/admin/send-tracking-email", json=_body(**{missing: None}), headers=ADMIN_HEADERS)
    assert r.status_code == 400
    assert r.json()["detail"]["required"] == ["orderId", "trackingNumber", "carrier"]
    assert notifier.sent == []


def test_tracking_email_looks_up_customer_from_stripe(client, notifier, monkeypatch):
    def _fake_retrieve(session_id, **kwargs):
        assert session_id == "cs_test_123"
        return types.SimpleNamespace(
            customer_details=types.SimpleNamespace(email="stripe@example.com", name="Stripe Name")
        )

    monkeypatch.setattr(stripe.checkout.Session, "retrieve", _fake_retrieve)
    r = client.post(
        "/admin/send-tracking-email",
        json=_body(customerEmail=None, customerName=None, estimatedDelivery=None),
        headers=ADMIN_HEADERS,
    )
    assert r.status_code == 200
    assert r.json()["customerEmail"] == "stripe@example.com"
    (mail,) = notifier.sent
    assert mail["to"] == "stripe@example.com"
    assert default_estimated_delivery() in mail["html"]


def test_tracking_email_lookup_failure_is_400(client, notifier, monkeypatch):
    def _failing_retrieve(session_id, **kwargs):
        raise stripe.InvalidRequestError("No such checkout.session", param="id")

    monkeypatch.setattr(stripe.checkout.Session, "retrieve", _failing_retrieve)
    r = client.post("/admin/send-tracking-email", json=_body(customerEmail=None), headers=ADMIN_HEADERS)
    assert r.status_code == 400
    assert r.json()["detail"]["required"] == ["customerEmail", "customerName"]
    assert notifier.sent == []


def test_tracking_email_send_failure_is_500(client, notifier):
    notifier.result = False
    r = client.post("/admin/send-tracking-email", json=_body(), headers=ADMIN_HEADERS)
    assert r.status_code == 500
    assert r.json()["detail"]["error"] == "Failed to send tracking email"


def test_default_estimated_delivery_is_five_days_later():
    assert default_estimated_delivery(date(2030, 1, 28)) == "02/02/2030"
    assert default_estimated_delivery() == (date.today() + timedelta(days=5)).strftime("%d/%m/%Y")
