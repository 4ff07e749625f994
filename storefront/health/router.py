import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from storefront.config import Settings
from storefront.dependencies import get_settings
from storefront.utils.rate_limit import rate_limit_health_info

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])

DEV_PUBLISHABLE_PLACEHOLDER = "pk_test_placeholder_for_development"
DEV_EMAILJS_PLACEHOLDER = "placeholder_for_development"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
def health(request: Request, settings: Settings = Depends(get_settings)):
    started_at = getattr(request.app.state, "started_at", None)
    return {
        "status": "healthy",
        "timestamp": _now_iso(),
        "service": settings.service_name,
        "environment": settings.environment,
        "uptime": round(time.monotonic() - started_at, 3) if started_at is not None else 0,
        "email": {"configured": settings.email_configured},
        "rate_limit": rate_limit_health_info(request, settings.rate_limit_redis_url),
    }


@router.get("/api/config")
def public_config(settings: Settings = Depends(get_settings)):
    """
    Configuration publique pour le front.
    - N'expose que des valeurs publiques (clé publishable Stripe, clé publique EmailJS)
    - Production: 500 si une valeur manque; développement: placeholders + warning
    """
    publishable_key = settings.stripe_publishable_key
    emailjs_key = settings.emailjs_public_key

    if settings.is_production:
        if not publishable_key:
            logger.error("STRIPE_PUBLISHABLE_KEY not configured")
            return JSONResponse(
                status_code=500,
                content={"error": "Configuration incomplete", "message": "Stripe publishable key not configured"},
            )
        if not emailjs_key:
            logger.error("EMAILJS_PUBLIC_KEY not configured")
            return JSONResponse(
                status_code=500,
                content={"error": "Configuration incomplete", "message": "EmailJS public key not configured"},
            )
    else:
        if not publishable_key:
            logger.warning("STRIPE_PUBLISHABLE_KEY not configured (%s mode)", settings.environment)
            publishable_key = DEV_PUBLISHABLE_PLACEHOLDER
        if not emailjs_key:
            logger.warning("EMAILJS_PUBLIC_KEY not configured (%s mode)", settings.environment)
            emailjs_key = DEV_EMAILJS_PLACEHOLDER

    return {
        "stripe": {"publishableKey": publishable_key},
        "emailjs": {"publicKey": emailjs_key},
        "environment": settings.environment,
        "timestamp": _now_iso(),
    }


@router.get("/api/status")
def api_status():
    return {
        "message": "Pawsitive Peace API is running",
        "status": "operational",
        "timestamp": _now_iso(),
        "endpoints": {
            "health": "/health",
            "csrfToken": "/csrf-token",
            "checkout": "/create-checkout-session",
            "success": "/success",
            "cancel": "/cancel",
            "webhook": "/webhook/provider",
        },
    }
