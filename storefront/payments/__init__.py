"""
Module 'payments' (feature-first): point d'entrée public.
Réunit validation du panier, client Stripe et services checkout/webhook.
"""

from .cart import CartItem, parse_items, require_customer, cart_total, make_metadata, to_line_items
from .stripe_client import require_stripe, create_session, get_customer_details, verify_event
from .service import create_checkout_session, extract_completed_order

__all__ = [
    # cart
    "CartItem",
    "parse_items",
    "require_customer",
    "cart_total",
    "make_metadata",
    "to_line_items",
    # stripe
    "require_stripe",
    "create_session",
    "get_customer_details",
    "verify_event",
    # services
    "create_checkout_session",
    "extract_completed_order",
]
