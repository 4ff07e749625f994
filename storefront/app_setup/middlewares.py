"""
Middlewares transverses de l'application.
- register_basic_middlewares: CORS (origines restreintes en production, ouvertes en dev)
- register_security_middleware: en-têtes de sécurité et CSP compatible Stripe Checkout
Notes:
- L'ordre d'ajout est important: le dernier ajouté s'exécute en premier.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from storefront.config import Settings

STRIPE_SCRIPT_SOURCES = ["https://js.stripe.com"]
STRIPE_FRAME_SOURCES = ["https://js.stripe.com", "https://hooks.stripe.com", "https://checkout.stripe.com"]
STRIPE_CONNECT_SOURCES = ["https://api.stripe.com", "https://checkout.stripe.com"]
EMAILJS_SCRIPT_SOURCES = ["https://cdn.jsdelivr.net"]
EMAILJS_CONNECT_SOURCES = ["https://api.emailjs.com"]
FONT_SOURCES = ["https://fonts.googleapis.com"]


def build_csp() -> str:
    return (
        "default-src 'self'; "
        "base-uri 'self'; object-src 'none'; frame-ancestors 'none'; "
        "img-src 'self' data: blob: https:; "
        f"style-src 'self' 'unsafe-inline' {' '.join(FONT_SOURCES)}; "
        "font-src 'self' data: https://fonts.gstatic.com; "
        f"script-src 'self' 'unsafe-inline' {' '.join(STRIPE_SCRIPT_SOURCES + EMAILJS_SCRIPT_SOURCES)}; "
        f"frame-src {' '.join(STRIPE_FRAME_SOURCES)}; "
        f"connect-src 'self' {' '.join(STRIPE_CONNECT_SOURCES + EMAILJS_CONNECT_SOURCES)}"
    )


def register_basic_middlewares(app: FastAPI, settings: Settings) -> None:
    """
    CORS:
    - production: uniquement les domaines de CORS_ORIGINS, avec credentials
    - autres environnements: toutes origines (sans credentials, interdit avec "*")
    """
    if settings.is_production:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_origins),
            allow_credentials=True,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type", "X-CSRF-Token", "X-Admin-Key"],
        )
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )


def register_security_middleware(app: FastAPI, settings: Settings) -> None:
    csp = build_csp()

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)

        # En-têtes de sécurité
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=()")
        if settings.is_production:
            response.headers.setdefault("Strict-Transport-Security", "max-age=63072000; includeSubDomains; preload")

        response.headers["Content-Security-Policy"] = csp
        return response
