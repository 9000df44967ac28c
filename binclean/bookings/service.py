"""Couche service du checkout (réservation ponctuelle et abonnement).

Ordre imposé:
1) Résoudre l'identifiant de prix (absent -> PriceNotConfigured, rien n'est écrit).
2) Créer l'enregistrement en état initial (pending / awaiting_*).
3) Construire la session Stripe: l'id de l'enregistrement est déjà connu et part en metadata
   sur la session ET sur le payment intent (ou la subscription).
4) Code promo éventuel: résolu puis attaché, toute erreur est ignorée.
5) Créer la session Stripe et renvoyer {sessionId, url, bookingId|subscriptionId}.
Si la création de session échoue, l'enregistrement reste « pending »: rien en aval
n'agit dessus tant qu'aucun événement de paiement n'arrive.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging

from binclean.config import Settings
from binclean.payments.discounts import find_promotion_id
from binclean.payments.lifecycle import initial_booking_status, initial_subscription_status
from binclean.payments.metadata import BOOKING_KEY, SUBSCRIPTION_KEY, booking_metadata, subscription_metadata
from binclean.payments.pricing import PriceNotConfigured, price_id_for
from .models import OneTimeCheckoutRequest, SubscriptionCheckoutRequest
from .repository import BOOKINGS, SUBSCRIPTIONS, RecordStore
from .schedule import SERVICE_WINDOW, normalize_service_date

logger = logging.getLogger(__name__)

SUBSCRIPTION_BINS = 2


def _now_iso(now: Optional[datetime] = None) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


def _success_url(origin: str, key: str, record_id: str) -> str:
    return f"{origin}/success?session_id={{CHECKOUT_SESSION_ID}}&{key}={record_id}"


def _cancel_url(origin: str) -> str:
    return f"{origin}/cancel"


def _attach_discount(config: Dict[str, Any], code: Optional[str], gateway) -> None:
    promotion_id = find_promotion_id(code, gateway)
    if promotion_id:
        config["discounts"] = [{"promotion_code": promotion_id}]
    elif code:
        logger.info("bookings.service discount code not applied code=%s", code)


def build_booking_fields(req: OneTimeCheckoutRequest, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Champs persistés d'une réservation ponctuelle (état initial inclus)."""
    service_date = normalize_service_date(req.date)
    fields: Dict[str, Any] = {
        "name": req.name,
        "email": str(req.email),
        "phone": req.phone,
        "address": req.address,
        "notes": req.notes,
        "address_details": req.address_details.model_dump(by_alias=True) if req.address_details else None,
        "bins": int(req.bins),
        "service_date": service_date["iso"],
        "service_date_formatted": service_date["formatted"],
        "service_window": SERVICE_WINDOW,
        "discount_code": req.discount_code,
        "created_at": _now_iso(now),
    }
    fields.update(initial_booking_status())
    return fields


def build_subscription_fields(req: SubscriptionCheckoutRequest, now: Optional[datetime] = None) -> Dict[str, Any]:
    start = normalize_service_date(req.date) if req.date else None
    fields: Dict[str, Any] = {
        "name": req.name,
        "email": str(req.email),
        "phone": req.phone,
        "address": req.address,
        "notes": req.notes or "",
        "plan": req.plan,
        "cadence": req.plan,
        "bins": SUBSCRIPTION_BINS,
        "start_date": start["iso"] if start else None,
        "start_date_formatted": start["formatted"] if start else None,
        "discount_code": req.discount_code,
        "created_at": _now_iso(now),
    }
    fields.update(initial_subscription_status())
    return fields


def create_one_time_checkout(
    req: OneTimeCheckoutRequest,
    *,
    origin: str,
    settings: Settings,
    store: RecordStore,
    gateway,
) -> Dict[str, Any]:
    price_id = price_id_for(settings, req.bins)
    if not price_id:
        raise PriceNotConfigured(req.bins)

    fields = build_booking_fields(req)
    booking_id = store.create_record(BOOKINGS, fields)
    logger.info("bookings.service booking created id=%s bins=%s", booking_id, req.bins)

    metadata = booking_metadata(booking_id, fields)
    config: Dict[str, Any] = {
        "payment_method_types": ["card"],
        "line_items": [{"price": price_id, "quantity": 1}],
        "mode": "payment",
        "success_url": _success_url(origin, BOOKING_KEY, booking_id),
        "cancel_url": _cancel_url(origin),
        "customer_email": str(req.email),
        "metadata": metadata,
        "payment_intent_data": {"metadata": dict(metadata)},
    }
    _attach_discount(config, req.discount_code, gateway)

    session = gateway.create_checkout_session(config)
    logger.info("bookings.service checkout session created id=%s booking_id=%s", session.get("id"), booking_id)
    return {"sessionId": session.get("id"), "url": session.get("url"), BOOKING_KEY: booking_id}


def create_subscription_checkout(
    req: SubscriptionCheckoutRequest,
    *,
    origin: str,
    settings: Settings,
    store: RecordStore,
    gateway,
) -> Dict[str, Any]:
    price_id = price_id_for(settings, req.plan)
    if not price_id:
        raise PriceNotConfigured(req.plan)

    fields = build_subscription_fields(req)
    subscription_id = store.create_record(SUBSCRIPTIONS, fields)
    logger.info("bookings.service subscription intent created id=%s plan=%s", subscription_id, req.plan)

    metadata = subscription_metadata(subscription_id, fields)
    config: Dict[str, Any] = {
        "mode": "subscription",
        "line_items": [{"price": price_id, "quantity": 1}],
        "success_url": _success_url(origin, SUBSCRIPTION_KEY, subscription_id),
        "cancel_url": _cancel_url(origin),
        "customer_email": str(req.email),
        "metadata": metadata,
        "subscription_data": {"metadata": dict(metadata)},
    }
    _attach_discount(config, req.discount_code, gateway)

    session = gateway.create_checkout_session(config)
    logger.info(
        "bookings.service subscription session created id=%s subscription_id=%s", session.get("id"), subscription_id
    )
    return {"sessionId": session.get("id"), "url": session.get("url"), SUBSCRIPTION_KEY: subscription_id}
