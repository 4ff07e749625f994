"""
Cas d'usage 'payments': orchestre validation panier, Stripe et notification.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException

from storefront.config import Settings
from . import cart as cart_logic
from . import stripe_client

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


async def create_checkout_session(settings: Settings, body: Any) -> Dict[str, Any]:
    """
    Valide le panier puis crée la session Stripe (un seul appel, pas de retry).
    - 400: panier invalide / client manquant (aucun appel Stripe)
    - 500: clé Stripe absente, ou échec Stripe/réseau (résumé non sensible)
    Le token CSRF doit avoir été vérifié par l'appelant.
    """
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Invalid request body")
    items = cart_logic.parse_items(body.get("items"))
    customer_email, customer_name = cart_logic.require_customer(body)
    cart_logic.check_advisory_total(items, body.get("total"))

    if not settings.stripe_secret_key:
        logger.error("payments.checkout STRIPE_SECRET_KEY missing")
        raise HTTPException(status_code=500, detail="Stripe configuration error")

    line_items = cart_logic.to_line_items(items, settings.checkout_currency, settings.product_description)
    metadata = cart_logic.make_metadata(customer_name, customer_email)
    try:
        session = await stripe_client.create_session(
            settings,
            line_items=line_items,
            customer_email=customer_email,
            metadata=metadata,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("payments.checkout stripe session creation failed")
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to create checkout session", "details": stripe_client.error_summary(e)},
        )
    logger.info("payments.checkout session=%s items=%s", session.get("id"), len(line_items))
    return session


def extract_completed_order(event: Dict[str, Any]) -> Optional[Dict[str, Optional[str]]]:
    """
    Extrait {email, name, order_id} d'un event checkout.session.completed.
    Retourne None pour tout autre type d'event.
    """
    if event.get("type") != CHECKOUT_COMPLETED:
        return None
    session = (event.get("data") or {}).get("object") or {}
    details = session.get("customer_details") or {}
    metadata = session.get("metadata") or {}
    return {
        "email": details.get("email") or session.get("customer_email") or metadata.get("customerEmail"),
        "name": details.get("name") or metadata.get("customerName"),
        "order_id": session.get("id"),
    }
