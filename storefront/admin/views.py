import logging
from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from storefront.config import Settings
from storefront.dependencies import get_notifier, get_settings
from storefront.notifications.email import EmailNotifier
from storefront.payments import stripe_client
from storefront.utils.security import require_admin

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])

DEFAULT_DELIVERY_DAYS = 5
REQUIRED_FIELDS = ["orderId", "trackingNumber", "carrier"]


class TrackingEmailRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: Optional[str] = Field(default=None, alias="orderId")
    tracking_number: Optional[str] = Field(default=None, alias="trackingNumber")
    carrier: Optional[str] = None
    estimated_delivery: Optional[str] = Field(default=None, alias="estimatedDelivery")
    customer_email: Optional[EmailStr] = Field(default=None, alias="customerEmail")
    customer_name: Optional[str] = Field(default=None, alias="customerName")


def default_estimated_delivery(today: Optional[date] = None) -> str:
    return ((today or date.today()) + timedelta(days=DEFAULT_DELIVERY_DAYS)).strftime("%d/%m/%Y")


@router.post("/send-tracking-email")
async def send_tracking_email(
    req: TrackingEmailRequest,
    settings: Settings = Depends(get_settings),
    notifier: EmailNotifier = Depends(get_notifier),
):
    """
    Envoie manuellement l'email de suivi de colis d'une commande.
    - Sécurité: en-tête X-Admin-Key (require_admin)
    - orderId, trackingNumber, carrier obligatoires (400 sinon)
    - customerEmail/customerName optionnels: à défaut, lus depuis la session Stripe orderId
    - estimatedDelivery par défaut: aujourd'hui + 5 jours
    """
    if not (req.order_id and req.tracking_number and req.carrier):
        raise HTTPException(
            status_code=400,
            detail={"error": "Missing required fields", "required": REQUIRED_FIELDS},
        )

    customer_email = req.customer_email
    customer_name = req.customer_name
    if not customer_email or not customer_name:
        try:
            details = await stripe_client.get_customer_details(settings, req.order_id)
            customer_email = customer_email or details.get("email")
            customer_name = customer_name or details.get("name")
            logger.info("admin.tracking customer details retrieved from Stripe order=%s", req.order_id)
        except Exception:
            logger.warning("admin.tracking Stripe lookup failed order=%s", req.order_id, exc_info=True)
        if not customer_email or not customer_name:
            raise HTTPException(
                status_code=400,
                detail={
                    "error": "Customer details required when Stripe lookup fails",
                    "required": ["customerEmail", "customerName"],
                },
            )

    estimated_delivery = req.estimated_delivery or default_estimated_delivery()
    logger.info(
        "admin.tracking sending order=%s tracking=%s carrier=%s",
        req.order_id, req.tracking_number, req.carrier,
    )
    sent = await notifier.send_tracking_update(
        customer_email,
        customer_name,
        req.order_id,
        req.tracking_number,
        req.carrier,
        estimated_delivery,
    )
    if not sent:
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to send tracking email", "orderId": req.order_id},
        )
    return JSONResponse({
        "success": True,
        "message": "Tracking email sent successfully",
        "orderId": req.order_id,
        "trackingNumber": req.tracking_number,
        "customerEmail": customer_email,
    })
