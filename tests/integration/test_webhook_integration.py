import json

import pytest
from fastapi.testclient import TestClient

from storefront.notifications.email import ORDER_CONFIRMATION_SUBJECT


def _post(client, payload: str, signature=None, path="/webhook/provider"):
    headers = {"Content-Type": "application/json"}
    if signature is not None:
        headers["Stripe-Signature"] = signature
    return client.post(path, content=payload.encode("utf-8"), headers=headers)


@pytest.mark.parametrize("path", ["/webhook/provider", "/webhook/stripe"])
def test_completed_checkout_sends_confirmation(client, notifier, sign, make_completed_event, path):
    payload = make_completed_event(session_id="cs_test_abc", email="jane@example.com", name="Jane")
    r = _post(client, payload, sign(payload), path=path)

    assert r.status_code == 200
    assert r.json() == {"received": True}
    (mail,) = notifier.sent
    assert mail["to"] == "jane@example.com"
    assert mail["subject"] == ORDER_CONFIRMATION_SUBJECT
    assert "cs_test_abc" in mail["html"]
    assert "Jane" in mail["html"]


def test_tampered_body_is_rejected_and_no_email(client, notifier, sign, make_completed_event):
    payload = make_completed_event()
    header = sign(payload)
    tampered = payload.replace("jane@example.com", "attacker@example.com")

    r = _post(client, tampered, header)
    assert r.status_code == 400
    assert r.json() == {"detail": "Invalid signature"}
    assert notifier.sent == []


def test_missing_signature_is_400(client, notifier, make_completed_event):
    r = _post(client, make_completed_event())
    assert r.status_code == 400
    assert notifier.sent == []


def test_signature_with_wrong_secret_is_400(client, notifier, sign, make_completed_event):
    payload = make_completed_event()
    r = _post(client, payload, sign(payload, secret="whsec_someone_else"))
    assert r.status_code == 400
    assert notifier.sent == []


@pytest.mark.parametrize("event_type", ["payment_intent.succeeded", "checkout.session.expired", "charge.refunded"])
def test_other_event_types_are_acknowledged_without_side_effects(client, notifier, sign, event_type):
    payload = json.dumps({"type": event_type, "data": {"object": {"id": "obj_1"}}})
    r = _post(client, payload, sign(payload))
    assert r.status_code == 200
    assert r.json() == {"received": True}
    assert notifier.sent == []


def test_completed_event_without_email_is_acknowledged(client, notifier, sign, make_completed_event):
    payload = make_completed_event(email=None)
    r = _post(client, payload, sign(payload))
    assert r.status_code == 200
    assert notifier.sent == []


def test_signed_but_invalid_json_is_400(client, notifier, sign):
    payload = "not json at all"
    r = _post(client, payload, sign(payload))
    assert r.status_code == 400
    assert r.json() == {"detail": "Invalid payload"}


def test_email_failure_does_not_change_response(app, notifier, sign, make_completed_event):
    notifier.result = False
    payload = make_completed_event()
    with TestClient(app) as c:
        r = _post(c, payload, sign(payload))
    assert r.status_code == 200
    assert r.json() == {"received": True}
    assert len(notifier.sent) == 1


def test_missing_webhook_secret_is_500(app, settings, notifier, sign, make_completed_event):
    app.state.settings = settings.model_copy(update={"stripe_webhook_secret": ""})
    payload = make_completed_event()
    with TestClient(app) as c:
        r = _post(c, payload, sign(payload))
    assert r.status_code == 500
    assert notifier.sent == []
