"""
Dépendances FastAPI partagées: accès aux objets construits au démarrage
(settings, store CSRF, notifier email) depuis app.state.
Les tests remplacent ces objets via create_app(...) ou app.dependency_overrides.
"""
from fastapi import Request

from storefront.config import Settings
from storefront.csrf.store import CsrfTokenStore
from storefront.notifications.email import EmailNotifier


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_store(request: Request) -> CsrfTokenStore:
    return request.app.state.csrf_store


def get_notifier(request: Request) -> EmailNotifier:
    return request.app.state.notifier
