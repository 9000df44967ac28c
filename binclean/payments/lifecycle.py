"""
Cycle de vie d'une réservation / intention d'abonnement.

Réservation:    pending/awaiting_payment  -> paid/scheduled  |  expired/cancelled
Abonnement:     pending/awaiting_checkout -> paid/active     |  expired/cancelled

transition() est pure: elle calcule les champs à écrire à partir de l'état courant
et d'un événement, ou None si l'événement ne doit rien changer.
- Ré-appliquer « paid » sur un enregistrement payé réécrit les mêmes valeurs
  (paid_at conserve la date la plus ancienne, quel que soit l'ordre d'arrivée).
- Aucun chemin ne ramène à pending/awaiting_*.
- Les états terminaux le restent: « paid » après annulation et « expired » après
  planification sont ignorés.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from binclean.bookings.repository import SUBSCRIPTIONS
from .events import (
    PAID_EVENTS,
    ChargeSucceeded,
    CheckoutSessionCompleted,
    CheckoutSessionExpired,
    PaymentEvent,
    PaymentIntentSucceeded,
)

PAYMENT_PENDING = "pending"
PAYMENT_PAID = "paid"
PAYMENT_EXPIRED = "expired"

SERVICE_AWAITING_PAYMENT = "awaiting_payment"
SERVICE_SCHEDULED = "scheduled"
SERVICE_CANCELLED = "cancelled"

SUBSCRIPTION_AWAITING_CHECKOUT = "awaiting_checkout"
SUBSCRIPTION_ACTIVE = "active"
SUBSCRIPTION_CANCELLED = "cancelled"


def initial_booking_status() -> Dict[str, str]:
    return {"payment_status": PAYMENT_PENDING, "service_status": SERVICE_AWAITING_PAYMENT}


def initial_subscription_status() -> Dict[str, str]:
    return {"payment_status": PAYMENT_PENDING, "subscription_status": SUBSCRIPTION_AWAITING_CHECKOUT}


def _status_field(collection: str) -> str:
    return "subscription_status" if collection == SUBSCRIPTIONS else "service_status"


def _parse_ts(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _earliest(existing: Any, when: datetime) -> str:
    previous = _parse_ts(existing)
    if previous is not None and previous < when:
        return previous.isoformat()
    return when.isoformat()


def _linkage(collection: str, event: PaymentEvent) -> Dict[str, str]:
    """Identifiants Stripe fournis par l'événement (seulement ceux présents)."""
    if collection == SUBSCRIPTIONS:
        if isinstance(event, CheckoutSessionCompleted):
            candidates = {
                "stripe_session_id": event.session_id,
                "stripe_subscription_id": event.subscription_id,
            }
        else:
            candidates = {}
    elif isinstance(event, CheckoutSessionCompleted):
        candidates = {
            "stripe_session_id": event.session_id,
            "payment_intent_id": event.payment_intent_id,
        }
    elif isinstance(event, PaymentIntentSucceeded):
        candidates = {"payment_intent_id": event.payment_intent_id}
    elif isinstance(event, ChargeSucceeded):
        candidates = {"charge_id": event.charge_id, "payment_intent_id": event.payment_intent_id}
    else:
        candidates = {}
    return {k: v for k, v in candidates.items() if v}


def guard_fields(collection: str, current: Dict[str, Any], event: PaymentEvent) -> Dict[str, Any]:
    """
    Valeurs lues dont dépend transition(): le statut et l'horodatage conservé (paid_at / expired_at).
    Passées au store comme condition d'écriture, elles rendent la transition atomique.
    """
    status_field = _status_field(collection)
    ts_field = "expired_at" if isinstance(event, CheckoutSessionExpired) else "paid_at"
    return {status_field: (current or {}).get(status_field), ts_field: (current or {}).get(ts_field)}


def transition(
    collection: str,
    current: Dict[str, Any],
    event: PaymentEvent,
    now: Optional[datetime] = None,
) -> Optional[Dict[str, Any]]:
    """
    Champs à mettre à jour pour `event` appliqué à l'enregistrement `current`.
    Retourne None si l'événement est sans effet (non reconnu, ou état terminal opposé).
    """
    status_field = _status_field(collection)
    state = (current or {}).get(status_field)
    when = event.created or now or datetime.now(timezone.utc)

    if isinstance(event, PAID_EVENTS):
        if state == SERVICE_CANCELLED:
            return None
        fields: Dict[str, Any] = {
            "payment_status": PAYMENT_PAID,
            status_field: SUBSCRIPTION_ACTIVE if collection == SUBSCRIPTIONS else SERVICE_SCHEDULED,
            "paid_at": _earliest(current.get("paid_at"), when),
        }
        fields.update(_linkage(collection, event))
        return fields

    if isinstance(event, CheckoutSessionExpired):
        if state in (SERVICE_SCHEDULED, SUBSCRIPTION_ACTIVE):
            return None
        return {
            "payment_status": PAYMENT_EXPIRED,
            status_field: SERVICE_CANCELLED,
            "expired_at": _earliest(current.get("expired_at"), when),
        }

    return None
