"""
Sérialisation/désérialisation des métadonnées Stripe (bookingId / subscriptionId).

L'identifiant de l'enregistrement est la seule clé de jointure entre la base et Stripe.
Il est copié sur la session ET sur le payment intent (ou la subscription), avec une
copie redondante des champs client, pour que le webhook puisse agir quel que soit
l'objet porteur de l'événement.
"""
from typing import Any, Dict, Optional, Tuple

from binclean.bookings.repository import BOOKINGS, SUBSCRIPTIONS

BOOKING_KEY = "bookingId"
SUBSCRIPTION_KEY = "subscriptionId"

# Limite Stripe sur la longueur d'une valeur de metadata
_MAX_VALUE_LENGTH = 500

# module binclean.payments.metadata
def _clip(value: Any) -> str:
    return str(value if value is not None else "")[:_MAX_VALUE_LENGTH]


def booking_metadata(booking_id: str, fields: Dict[str, Any]) -> Dict[str, str]:
    """
    Métadonnées d'une réservation ponctuelle.
    - fields: champs client tels que persistés (name, phone, bins, address, address_details...)
    """
    details = fields.get("address_details") or {}
    components = details.get("addressComponents") or {}
    return {
        BOOKING_KEY: booking_id,
        "customerName": _clip(fields.get("name")),
        "customerPhone": _clip(fields.get("phone")),
        "bins": _clip(fields.get("bins")),
        "discountCode": _clip(fields.get("discount_code")),
        "address": _clip(fields.get("address")),
        "placeId": _clip(details.get("placeId")),
        "postalCode": _clip(components.get("postalCode")),
    }


def subscription_metadata(subscription_id: str, fields: Dict[str, Any]) -> Dict[str, str]:
    return {
        SUBSCRIPTION_KEY: subscription_id,
        "customerName": _clip(fields.get("name")),
        "customerPhone": _clip(fields.get("phone")),
        "plan": _clip(fields.get("plan")),
        "bins": _clip(fields.get("bins")),
    }


def record_ref(metadata: Optional[Dict[str, Any]]) -> Optional[Tuple[str, str]]:
    """
    Extrait (collection, id) depuis les métadonnées d'un objet Stripe.
    Retourne None si aucun identifiant exploitable n'est présent.
    """
    meta = metadata or {}
    booking_id = str(meta.get(BOOKING_KEY) or "").strip()
    if booking_id:
        return BOOKINGS, booking_id
    subscription_id = str(meta.get(SUBSCRIPTION_KEY) or "").strip()
    if subscription_id:
        return SUBSCRIPTIONS, subscription_id
    return None
