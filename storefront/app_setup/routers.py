"""
Registre central des routers.
- Paiement: CSRF, checkout, webhook
- Admin: email de suivi
- Health & monitoring
- Diagnostics (désactivés en production)
"""
from fastapi import FastAPI

from storefront.admin.views import router as admin_router
from storefront.csrf.views import router as csrf_router
from storefront.diagnostics.views import router as diagnostics_router
from storefront.health.router import router as health_router
from storefront.payments.views import router as payments_router


def register_routers(app: FastAPI) -> None:
    app.include_router(csrf_router)
    app.include_router(payments_router)
    # Admin
    app.include_router(admin_router)
    # Health & monitoring
    app.include_router(health_router)
    app.include_router(diagnostics_router)
