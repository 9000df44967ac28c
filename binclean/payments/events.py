"""
Événements Stripe reconnus, sous forme de variantes fermées.

parse_payment_event() transforme le dict brut (déjà authentifié) en une variante:
CheckoutSessionCompleted, CheckoutSessionExpired, PaymentIntentSucceeded,
ChargeSucceeded, ou UnrecognizedEvent pour tout autre type (acquitté puis ignoré).
"""
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from .metadata import record_ref

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
CHECKOUT_SESSION_EXPIRED = "checkout.session.expired"
PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
CHARGE_SUCCEEDED = "charge.succeeded"


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_id: Optional[str] = None
    created: Optional[datetime] = None
    # (collection, id) extrait des métadonnées, None si absent
    ref: Optional[Tuple[str, str]] = None


class CheckoutSessionCompleted(_Event):
    kind: Literal["checkout.session.completed"] = CHECKOUT_SESSION_COMPLETED
    session_id: Optional[str] = None
    payment_intent_id: Optional[str] = None
    subscription_id: Optional[str] = None


class CheckoutSessionExpired(_Event):
    kind: Literal["checkout.session.expired"] = CHECKOUT_SESSION_EXPIRED
    session_id: Optional[str] = None


class PaymentIntentSucceeded(_Event):
    kind: Literal["payment_intent.succeeded"] = PAYMENT_INTENT_SUCCEEDED
    payment_intent_id: Optional[str] = None


class ChargeSucceeded(_Event):
    kind: Literal["charge.succeeded"] = CHARGE_SUCCEEDED
    charge_id: Optional[str] = None
    payment_intent_id: Optional[str] = None


class UnrecognizedEvent(_Event):
    kind: Literal["unrecognized"] = "unrecognized"
    type: str = ""


PaymentEvent = Union[
    CheckoutSessionCompleted,
    CheckoutSessionExpired,
    PaymentIntentSucceeded,
    ChargeSucceeded,
    UnrecognizedEvent,
]

PAID_EVENTS = (CheckoutSessionCompleted, PaymentIntentSucceeded, ChargeSucceeded)


def _id_of(value: Any) -> Optional[str]:
    # Les sous-objets Stripe arrivent soit en id, soit développés ({"id": ...})
    if isinstance(value, dict):
        value = value.get("id")
    return str(value) if value else None


def _created_at(event: Dict[str, Any]) -> Optional[datetime]:
    created = event.get("created")
    if isinstance(created, (int, float)) and created > 0:
        return datetime.fromtimestamp(created, tz=timezone.utc)
    return None


def parse_payment_event(event: Dict[str, Any]) -> PaymentEvent:
    """
    Convertit un événement Stripe (dict) en variante typée.
    Les champs manquants restent à None: c'est le handler qui décide quoi en faire.
    """
    event_type = str((event or {}).get("type") or "")
    obj = ((event or {}).get("data") or {}).get("object") or {}
    common = {
        "event_id": (event or {}).get("id"),
        "created": _created_at(event or {}),
        "ref": record_ref(obj.get("metadata")),
    }

    if event_type == CHECKOUT_SESSION_COMPLETED:
        return CheckoutSessionCompleted(
            session_id=_id_of(obj.get("id")),
            payment_intent_id=_id_of(obj.get("payment_intent")),
            subscription_id=_id_of(obj.get("subscription")),
            **common,
        )
    if event_type == CHECKOUT_SESSION_EXPIRED:
        return CheckoutSessionExpired(session_id=_id_of(obj.get("id")), **common)
    if event_type == PAYMENT_INTENT_SUCCEEDED:
        return PaymentIntentSucceeded(payment_intent_id=_id_of(obj.get("id")), **common)
    if event_type == CHARGE_SUCCEEDED:
        return ChargeSucceeded(
            charge_id=_id_of(obj.get("id")),
            payment_intent_id=_id_of(obj.get("payment_intent")),
            **common,
        )
    return UnrecognizedEvent(type=event_type, **common)
