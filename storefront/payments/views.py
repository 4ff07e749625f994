import json
import logging

import stripe
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from storefront.config import Settings
from storefront.csrf.store import CsrfTokenStore
from storefront.csrf.views import CSRF_HEADER_NAME
from storefront.dependencies import get_notifier, get_settings, get_token_store
from storefront.notifications.dispatch import dispatch_order_confirmation
from storefront.notifications.email import EmailNotifier
from storefront.payments import service as payments_service
from storefront.payments import stripe_client

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Payments"])


# module storefront.payments.views
@router.post("/create-checkout-session")
async def create_checkout_session(
    request: Request,
    settings: Settings = Depends(get_settings),
    store: CsrfTokenStore = Depends(get_token_store),
):
    """
    Crée une session Checkout Stripe pour le panier du navigateur.
    - Entrée JSON: {items: [{name, price, quantity, image}], customerEmail, customerName, total}
    - Étapes (ordre significatif):
      1) Token CSRF (en-tête X-CSRF-Token), consommé même en cas d'échec ultérieur -> 403
      2) Validation du panier et du client -> 400
      3) Création de la session Stripe -> {url, id}
    - Erreurs: 403 CSRF, 400 payload, 500 configuration Stripe / échec Stripe
    """
    if not store.validate(request.headers.get(CSRF_HEADER_NAME)):
        logger.warning("payments.checkout invalid or missing CSRF token")
        raise HTTPException(status_code=403, detail="Invalid CSRF token")

    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(status_code=400, detail="Invalid request body")

    session = await payments_service.create_checkout_session(settings, body)
    return JSONResponse({"url": session.get("url"), "id": session.get("id")})


@router.post("/webhook/provider", include_in_schema=False)
@router.post("/webhook/stripe", include_in_schema=False)
async def stripe_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
    notifier: EmailNotifier = Depends(get_notifier),
):
    """
    Webhook Stripe: consomme checkout.session.completed pour envoyer la confirmation.
    - Signature: vérifiée sur le corps brut (Stripe-Signature + STRIPE_WEBHOOK_SECRET)
      avant toute lecture du contenu
    - Email: planifié en tâche de fond, son échec ne change pas la réponse
    - Réponses: {"received": true} (200) pour tout event vérifié, 400 si signature invalide
    """
    payload = await request.body()
    sig_header = request.headers.get(stripe_client.SIGNATURE_HEADER)
    if not sig_header:
        logger.warning("payments.webhook missing Stripe-Signature header")
        raise HTTPException(status_code=400, detail="Missing signature")
    if not settings.stripe_webhook_secret:
        logger.error("payments.webhook STRIPE_WEBHOOK_SECRET missing")
        raise HTTPException(status_code=500, detail="Webhook configuration error")

    try:
        event = stripe_client.verify_event(payload, sig_header, settings.stripe_webhook_secret)
    except stripe.SignatureVerificationError as e:
        logger.warning("payments.webhook signature verification failed: %s", e)
        raise HTTPException(status_code=400, detail="Invalid signature")
    except ValueError:
        logger.warning("payments.webhook invalid payload")
        raise HTTPException(status_code=400, detail="Invalid payload")

    order = payments_service.extract_completed_order(event)
    if order is None:
        logger.info("payments.webhook ignored type=%s", event.get("type"))
        return JSONResponse({"received": True})

    if not order["email"]:
        logger.error("payments.webhook completed session without customer email order=%s", order["order_id"])
        return JSONResponse({"received": True})

    logger.info("payments.webhook checkout completed order=%s", order["order_id"])
    background_tasks.add_task(
        dispatch_order_confirmation, notifier, order["email"], order["name"], order["order_id"]
    )
    return JSONResponse({"received": True})
