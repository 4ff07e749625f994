"""
Adaptateur Stripe: centralise les appels Stripe.
- La clé secrète est passée à chaque appel (api_key=...), jamais posée globalement
- Les appels SDK (bloquants) passent par le threadpool Starlette
- La vérification de signature webhook précède tout parsing du corps
"""
import json
from typing import Any, Dict, List, Optional

import stripe
from fastapi import HTTPException
from starlette.concurrency import run_in_threadpool

from storefront.config import Settings

SIGNATURE_HEADER = "stripe-signature"
WEBHOOK_TOLERANCE_SECONDS = 300


# module storefront.payments.stripe_client
def require_stripe(settings: Settings) -> str:
    """
    Retourne la clé secrète Stripe configurée.
    Absente => HTTPException(500) (erreur de configuration, pas de retry).
    """
    if not settings.stripe_secret_key:
        raise HTTPException(status_code=500, detail="Stripe configuration error")
    return settings.stripe_secret_key


async def create_session(
    settings: Settings,
    *,
    line_items: List[Dict[str, Any]],
    customer_email: str,
    metadata: Dict[str, str],
) -> Dict[str, Any]:
    """
    Crée une session Stripe Checkout (paiement carte, mode "payment").
    Retour: {"id": "cs_test_...", "url": "https://checkout.stripe.com/..."}
    """
    api_key = require_stripe(settings)
    session = await run_in_threadpool(
        stripe.checkout.Session.create,
        api_key=api_key,
        payment_method_types=["card"],
        line_items=line_items,
        mode="payment",
        success_url=settings.success_url,
        cancel_url=settings.cancel_url,
        customer_email=customer_email,
        metadata=metadata,
    )
    return {"id": getattr(session, "id", None), "url": getattr(session, "url", None)}


async def get_customer_details(settings: Settings, session_id: str) -> Dict[str, Optional[str]]:
    """
    Récupère (email, nom) du client d'une session Checkout existante.
    Les erreurs Stripe remontent à l'appelant.
    """
    api_key = require_stripe(settings)
    session = await run_in_threadpool(stripe.checkout.Session.retrieve, session_id, api_key=api_key)
    details = getattr(session, "customer_details", None)
    return {
        "email": getattr(details, "email", None),
        "name": getattr(details, "name", None),
    }


def verify_event(payload: bytes, sig_header: Optional[str], secret: str) -> Dict[str, Any]:
    """
    Vérifie la signature Stripe sur le corps brut puis le décode.
    - Lève stripe.SignatureVerificationError si la signature ne correspond pas
    - Lève ValueError si le corps signé n'est pas un JSON objet
    """
    text = payload.decode("utf-8")
    stripe.WebhookSignature.verify_header(text, sig_header, secret, WEBHOOK_TOLERANCE_SECONDS)
    event = json.loads(text)
    if not isinstance(event, dict):
        raise ValueError("Webhook payload is not an object")
    return event


def error_summary(exc: Exception) -> str:
    """Résumé non sensible d'une erreur Stripe/réseau, renvoyable au navigateur."""
    if isinstance(exc, stripe.StripeError):
        return getattr(exc, "user_message", None) or type(exc).__name__
    return "Payment provider unavailable"
