"""
Logique panier pure (pas de Stripe, pas de réseau).
Valide le corps de POST /create-checkout-session et construit les line_items Stripe.
"""
import logging
import math
from decimal import Decimal, DecimalException, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException
from pydantic import BaseModel

logger = logging.getLogger(__name__)

INVALID_ITEMS = "Invalid items data"
MISSING_CUSTOMER = "Missing customer information"

# Plafond Stripe pour unit_amount (unités mineures)
MAX_UNIT_AMOUNT = 99_999_999

# module storefront.payments.cart
class CartItem(BaseModel):
    name: str
    price: Decimal
    quantity: int
    image: Optional[str] = None

    @property
    def unit_amount(self) -> int:
        return to_minor_units(self.price)


def to_minor_units(price: Decimal) -> int:
    """Prix -> plus petite unité monétaire (ex: 20.00 GBP -> 2000 pence), arrondi au plus proche."""
    return int((price * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _parse_amount(value: Any) -> Optional[Decimal]:
    # bool est un int en Python: refusé explicitement
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount


def _parse_price(value: Any) -> Optional[Decimal]:
    """Prix unitaire >= 0 dont le montant en unités mineures reste sous le plafond Stripe."""
    price = _parse_amount(value)
    if price is None:
        return None
    try:
        if to_minor_units(price) > MAX_UNIT_AMOUNT:
            return None
    except DecimalException:
        return None
    return price


def _parse_quantity(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or value <= 0:
        return None
    return value


def parse_items(raw_items: Any) -> List[CartItem]:
    """
    Valide la liste brute [{name, price, quantity, image}, ...].
    - Liste non vide obligatoire, ordre conservé
    - name non vide, price numérique >= 0, quantity entier >= 1
    - Soulève HTTPException(400, "Invalid items data") au premier article invalide
    """
    if not isinstance(raw_items, list) or not raw_items:
        raise HTTPException(status_code=400, detail=INVALID_ITEMS)
    items: List[CartItem] = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise HTTPException(status_code=400, detail=INVALID_ITEMS)
        name = raw.get("name")
        price = _parse_price(raw.get("price"))
        quantity = _parse_quantity(raw.get("quantity"))
        image = raw.get("image")
        if not isinstance(name, str) or not name.strip() or price is None or quantity is None:
            logger.warning("payments.cart invalid item=%s", raw)
            raise HTTPException(status_code=400, detail=INVALID_ITEMS)
        if image is not None and not isinstance(image, str):
            raise HTTPException(status_code=400, detail=INVALID_ITEMS)
        items.append(CartItem(name=name.strip(), price=price, quantity=quantity, image=image or None))
    return items


def require_customer(body: Dict[str, Any]) -> Tuple[str, str]:
    """Retourne (email, nom) du client; 400 si l'un des deux manque ou est vide."""
    email = body.get("customerEmail")
    name = body.get("customerName")
    if not isinstance(email, str) or not email.strip() or not isinstance(name, str) or not name.strip():
        raise HTTPException(status_code=400, detail=MISSING_CUSTOMER)
    return email.strip(), name.strip()


def cart_total(items: List[CartItem]) -> int:
    """Total recalculé côté serveur, en unités mineures."""
    return sum(item.unit_amount * item.quantity for item in items)


def check_advisory_total(items: List[CartItem], advisory: Any) -> None:
    """Le total envoyé par le navigateur est indicatif: un écart est seulement journalisé."""
    if advisory is None:
        return
    computed = cart_total(items)
    try:
        claimed = _parse_amount(advisory)
        matches = claimed is not None and to_minor_units(claimed) == computed
    except DecimalException:
        matches = False
    if not matches:
        logger.warning("payments.cart advisory total mismatch claimed=%s computed=%s", advisory, computed)


def to_line_items(items: List[CartItem], currency: str, description: str) -> List[Dict[str, Any]]:
    """
    Construit les line_items Stripe (price_data) dans l'ordre du panier.
    unit_amount est exprimé en unités mineures de `currency`.
    """
    line_items: List[Dict[str, Any]] = []
    for item in items:
        product_data: Dict[str, Any] = {"name": item.name, "description": description}
        if item.image:
            product_data["images"] = [item.image]
        line_items.append({
            "price_data": {
                "currency": currency,
                "product_data": product_data,
                "unit_amount": item.unit_amount,
            },
            "quantity": item.quantity,
        })
    return line_items


def make_metadata(customer_name: str, customer_email: str) -> Dict[str, str]:
    """Métadonnées Stripe pour rapprocher la session du client (lues par le webhook)."""
    return {
        "customerName": customer_name,
        "customerEmail": customer_email,
    }
