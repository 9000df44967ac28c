"""
Module 'payments' (feature-first): point d'entrée public.
Réunit client Stripe, résolution des prix, codes promo, metadata, événements et cycle de vie.
Les vues (payments.views) ne sont pas réexportées ici pour éviter les imports circulaires.
"""

from .stripe_client import StripeGateway
from .pricing import PricingResolver, PriceNotConfigured, DISPLAY_PRICES, price_id_for
from .discounts import validate_discount, find_promotion_id, compute_discount
from .metadata import booking_metadata, subscription_metadata, record_ref
from .events import PaymentEvent, parse_payment_event
from .lifecycle import transition, initial_booking_status, initial_subscription_status
from .webhook import apply_event, handle_event

__all__ = [
    # stripe
    "StripeGateway",
    # pricing
    "PricingResolver",
    "PriceNotConfigured",
    "DISPLAY_PRICES",
    "price_id_for",
    # discounts
    "validate_discount",
    "find_promotion_id",
    "compute_discount",
    # metadata
    "booking_metadata",
    "subscription_metadata",
    "record_ref",
    # events / lifecycle
    "PaymentEvent",
    "parse_payment_event",
    "transition",
    "initial_booking_status",
    "initial_subscription_status",
    # webhook
    "apply_event",
    "handle_event",
]
