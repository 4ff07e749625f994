# storefront.config
from pathlib import Path
import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"

PUBLIC_DIR = BASE_DIR / "public"
PAGES_DIR = PUBLIC_DIR / "pages"
TEMPLATES_DIR = BASE_DIR / "templates"

"""
Configuration centrale du backend.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env) une seule fois, au démarrage
- Construit un objet Settings immuable, stocké sur app.state et injecté dans les handlers
- Les tests construisent directement Settings(...) sans toucher à l'environnement du process
"""

TRUTHY = ("1", "true", "yes", "on")


def _clean_env(v: Optional[str]) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")


def _env_int(name: str, default: int) -> int:
    raw = _clean_env(os.getenv(name))
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _env_list(name: str, default: str = "") -> List[str]:
    return [v.strip() for v in (os.getenv(name) or default).split(",") if v.strip()]


class Settings(BaseModel):
    """Configuration de l'application, construite une fois au démarrage."""

    model_config = ConfigDict(frozen=True)

    environment: str = "development"
    service_name: str = "Pawsitive Peace Product Delivery"
    base_url: str = "http://localhost:3000"

    # Stripe: clés publiques/privées et secret webhook
    stripe_secret_key: str = ""
    stripe_publishable_key: str = ""
    stripe_webhook_secret: str = ""
    checkout_currency: str = "gbp"
    product_description: str = "The Pupsicle - Dog Toy"

    # Clé publique du formulaire de contact (exposée au front)
    emailjs_public_key: str = ""

    # Email (SMTP Gmail par défaut)
    email_user: str = ""
    email_pass: str = ""
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_timeout: float = 30.0
    mail_from_name: str = "Pawsitive Peace"
    support_email: str = "hello@pawsitivepeace.co.uk"

    # CORS (production uniquement; en dev toutes origines)
    cors_origins: List[str] = [
        "https://pawsitivepeace.co.uk",
        "https://www.pawsitivepeace.co.uk",
    ]

    # Rate limiting
    rate_limit_storage: str = "redis"
    rate_limit_redis_url: str = "redis://127.0.0.1:6379/0"
    rate_limit_window_minutes: int = 15
    rate_limit_max: int = 100

    # CSRF
    csrf_token_ttl_seconds: int = 15 * 60
    csrf_sweep_interval_seconds: int = 5 * 60

    enable_test_endpoints: bool = False
    admin_api_key: str = ""

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def test_endpoints_enabled(self) -> bool:
        return not self.is_production or self.enable_test_endpoints

    @property
    def email_configured(self) -> bool:
        return bool(self.email_user and self.email_pass)

    @property
    def success_url(self) -> str:
        return f"{self.base_url}/success?session_id={{CHECKOUT_SESSION_ID}}"

    @property
    def cancel_url(self) -> str:
        return f"{self.base_url}/cancel"

    @classmethod
    def from_env(cls, env_path: Optional[Path] = ENV_PATH) -> "Settings":
        """
        Lit l'environnement (et le .env s'il existe) et retourne un Settings.
        - ENVIRONMENT prioritaire, NODE_ENV accepté pour compatibilité des déploiements
        - BASE_URL normalisé sans / final
        """
        if env_path is not None:
            load_dotenv(dotenv_path=env_path, override=False)

        environment = _clean_env(os.getenv("ENVIRONMENT") or os.getenv("NODE_ENV") or "development").lower()
        port = _env_int("PORT", 3000)
        base_url = _clean_env(os.getenv("BASE_URL")) or f"http://localhost:{port}"

        values = dict(
            environment=environment,
            base_url=base_url.rstrip("/"),
            stripe_secret_key=_clean_env(os.getenv("STRIPE_SECRET_KEY")),
            stripe_publishable_key=_clean_env(os.getenv("STRIPE_PUBLISHABLE_KEY")),
            stripe_webhook_secret=_clean_env(os.getenv("STRIPE_WEBHOOK_SECRET")),
            emailjs_public_key=_clean_env(os.getenv("EMAILJS_PUBLIC_KEY")),
            email_user=_clean_env(os.getenv("EMAIL_USER")),
            email_pass=_clean_env(os.getenv("EMAIL_PASS")),
            smtp_host=_clean_env(os.getenv("MAIL_SMTP_HOST")) or "smtp.gmail.com",
            smtp_port=_env_int("MAIL_SMTP_PORT", 587),
            rate_limit_storage=_clean_env(os.getenv("RATE_LIMIT_STORAGE")).lower() or "redis",
            rate_limit_redis_url=_clean_env(os.getenv("RATE_LIMIT_REDIS_URL")) or "redis://127.0.0.1:6379/0",
            rate_limit_window_minutes=_env_int("RATE_LIMIT_WINDOW_MINUTES", 15),
            rate_limit_max=_env_int("RATE_LIMIT_MAX", 100),
            csrf_token_ttl_seconds=_env_int("CSRF_TOKEN_TTL_SECONDS", 15 * 60),
            csrf_sweep_interval_seconds=_env_int("CSRF_SWEEP_INTERVAL_SECONDS", 5 * 60),
            enable_test_endpoints=_clean_env(os.getenv("ENABLE_TEST_ENDPOINTS")).lower() in TRUTHY,
            admin_api_key=_clean_env(os.getenv("ADMIN_API_KEY")),
        )
        # Valeurs optionnelles: on garde les défauts du modèle si absentes
        optional = {
            "mail_from_name": "MAIL_FROM_NAME",
            "support_email": "SUPPORT_EMAIL",
            "checkout_currency": "CHECKOUT_CURRENCY",
            "product_description": "PRODUCT_DESCRIPTION",
        }
        for field, name in optional.items():
            raw = _clean_env(os.getenv(name))
            if raw:
                values[field] = raw
        if "checkout_currency" in values:
            values["checkout_currency"] = values["checkout_currency"].lower()
        origins = _env_list("CORS_ORIGINS")
        if origins:
            values["cors_origins"] = origins
        return cls(**values)
