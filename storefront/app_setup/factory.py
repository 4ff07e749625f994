"""
Factory d'application recommandée pour les entrypoints (ex: storefront.asgi).
Ordonne les étapes d'initialisation de manière lisible et testable.
"""
from typing import Optional

from fastapi import Depends, FastAPI

from storefront.config import Settings
from storefront.csrf.store import CsrfTokenStore
from storefront.notifications.email import EmailNotifier
from storefront.utils.rate_limit import client_rate_limit

from .exceptions import register_exception_handlers
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_security_middleware
from .routers import register_routers
from .routes import register_routes
from .static import mount_static_files

GLOBAL_LIMIT_DETAIL = "Too many requests from this IP, please try again later."


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[CsrfTokenStore] = None,
    notifier: Optional[EmailNotifier] = None,
) -> FastAPI:
    """
    Construit l'app FastAPI avec le lifespan et enregistre:
      - settings, store CSRF et notifier email sur app.state (injectables en test)
      - limite globale par client en production (RATE_LIMIT_MAX / RATE_LIMIT_WINDOW_MINUTES)
      - middlewares, statiques, gestionnaires d'exceptions, pages et routers
    Retour:
      FastAPI prêt à être utilisé par le serveur ASGI.
    """
    if settings is None:
        settings = Settings.from_env()

    dependencies = []
    if settings.is_production:
        dependencies.append(Depends(client_rate_limit(
            times=settings.rate_limit_max,
            seconds=settings.rate_limit_window_minutes * 60,
            detail=GLOBAL_LIMIT_DETAIL,
            per_path=False,
        )))

    app = FastAPI(
        title="Pawsitive Peace Storefront",
        lifespan=lifespan,
        dependencies=dependencies,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None,
    )
    app.state.settings = settings
    app.state.csrf_store = store if store is not None else CsrfTokenStore(ttl_seconds=settings.csrf_token_ttl_seconds)
    app.state.notifier = notifier if notifier is not None else EmailNotifier(settings)
    app.state.rate_limit_backend = None
    app.state.rate_limit_store = {}

    register_basic_middlewares(app, settings)
    register_security_middleware(app, settings)
    mount_static_files(app)
    register_exception_handlers(app)
    register_routes(app)
    register_routers(app)
    return app
