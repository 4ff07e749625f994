"""
Endpoints de test et de prévisualisation des emails.
Désactivés (404) en production sauf si ENABLE_TEST_ENDPOINTS est actif.
"""
import logging
import time

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse, JSONResponse

from storefront.admin.views import default_estimated_delivery
from storefront.config import Settings
from storefront.dependencies import get_notifier, get_settings
from storefront.notifications.email import EmailNotifier
from storefront.utils.security import require_test_endpoints

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Diagnostics"], include_in_schema=False, dependencies=[Depends(require_test_endpoints)])

PREVIEW_NAME = "John Doe"


@router.get("/test-email")
async def test_email(settings: Settings = Depends(get_settings), notifier: EmailNotifier = Depends(get_notifier)):
    """Vérifie la connexion SMTP puis envoie un email de test à la boîte de la boutique."""
    if not settings.email_user:
        raise HTTPException(status_code=400, detail="Email not configured")
    if not await notifier.verify():
        raise HTTPException(status_code=500, detail="Email transport verification failed")
    if not await notifier.send_test_email(settings.email_user):
        raise HTTPException(status_code=500, detail="Test email failed")
    return {"success": True, "message": "Test email sent successfully", "to": settings.email_user}


@router.get("/test-webhook")
async def test_webhook(settings: Settings = Depends(get_settings), notifier: EmailNotifier = Depends(get_notifier)):
    """Simule un checkout.session.completed et envoie la confirmation (en attendant le résultat)."""
    order_id = f"cs_test_{int(time.time() * 1000)}"
    logger.info("diagnostics.test_webhook order=%s", order_id)
    sent = await notifier.send_order_confirmation(settings.email_user, "Test User", order_id)
    if not sent:
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to send confirmation email", "orderId": order_id},
        )
    return {
        "success": True,
        "message": "Test webhook processed successfully",
        "orderId": order_id,
        "emailSent": True,
    }


@router.get("/preview-email", response_class=HTMLResponse)
def preview_email(notifier: EmailNotifier = Depends(get_notifier)):
    order_id = f"PP-{int(time.time() * 1000)}"
    return HTMLResponse(notifier.render_order_confirmation(PREVIEW_NAME, order_id))


@router.get("/preview-tracking-email", response_class=HTMLResponse)
def preview_tracking_email(notifier: EmailNotifier = Depends(get_notifier)):
    return HTMLResponse(
        notifier.render_tracking_update(
            PREVIEW_NAME,
            "cs_test_abc123456789",
            "RM123456789GB",
            "Royal Mail",
            default_estimated_delivery(),
        )
    )
