from fastapi.testclient import TestClient

from storefront.app_setup.factory import create_app
from storefront.config import Settings
from storefront.csrf.store import CsrfTokenStore
from storefront.notifications.email import EmailNotifier


def test_injected_empty_store_is_kept():
    store = CsrfTokenStore(ttl_seconds=5)
    assert len(store) == 0
    app = create_app(Settings(environment="test", rate_limit_storage="disabled"), store=store)
    assert app.state.csrf_store is store
    assert app.state.csrf_store.ttl_seconds == 5


def test_default_store_uses_configured_ttl():
    app = create_app(Settings(environment="test", rate_limit_storage="disabled", csrf_token_ttl_seconds=42))
    assert app.state.csrf_store.ttl_seconds == 42


def test_injected_notifier_is_kept():
    settings = Settings(environment="test", rate_limit_storage="disabled")
    notifier = EmailNotifier(settings)
    assert create_app(settings, notifier=notifier).state.notifier is notifier


def test_issued_tokens_land_in_injected_store():
    store = CsrfTokenStore()
    app = create_app(Settings(environment="test", rate_limit_storage="disabled"), store=store)
    with TestClient(app) as c:
        token = c.get("/csrf-token").json()["token"]
    assert token in store
