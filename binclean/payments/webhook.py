"""
Cas d'usage 'webhook': applique un événement Stripe authentifié à l'enregistrement visé.

Livraisons multiples, désordonnées ou concurrentes sont attendues:
- chaque transition est idempotente et convergente (voir lifecycle.transition);
- l'écriture est conditionnée à l'état lu (lifecycle.guard_fields). Si une autre livraison
  a modifié l'enregistrement entre-temps, on relit et on recalcule la transition.
- Référence absente / enregistrement inconnu: journalisé puis acquitté (un retry n'aiderait pas).
- Panne du store (lecture ou écriture): l'exception remonte, la vue répond 500 et Stripe
  re-livrera l'événement plus tard.
"""
from datetime import datetime
from typing import Any, Dict, Optional
import logging

from binclean.bookings.repository import RecordConflict, RecordNotFound, RecordStore
from .events import PaymentEvent, UnrecognizedEvent, parse_payment_event
from .lifecycle import guard_fields, transition

logger = logging.getLogger(__name__)

APPLIED = "applied"
IGNORED = "ignored"

# Relectures après écriture concurrente, avant de laisser Stripe re-livrer
MAX_ATTEMPTS = 5


def apply_event(store: RecordStore, event: PaymentEvent, now: Optional[datetime] = None) -> str:
    """
    Applique une variante d'événement au store. Retourne APPLIED ou IGNORED.
    Lève RecordConflict si l'enregistrement change à chaque tentative.
    """
    if isinstance(event, UnrecognizedEvent):
        logger.info("payments.webhook unhandled event type=%s", event.type)
        return IGNORED

    if event.ref is None:
        logger.warning("payments.webhook %s without record id event_id=%s", event.kind, event.event_id)
        return IGNORED

    collection, record_id = event.ref
    for attempt in range(1, MAX_ATTEMPTS + 1):
        current = store.get_record(collection, record_id)
        if current is None:
            logger.warning("payments.webhook %s for unknown record %s/%s", event.kind, collection, record_id)
            return IGNORED

        fields = transition(collection, current, event, now=now)
        if fields is None:
            logger.warning(
                "payments.webhook %s ignored for terminal record %s/%s payment_status=%s",
                event.kind, collection, record_id, current.get("payment_status"),
            )
            return IGNORED

        try:
            store.update_record(collection, record_id, fields, expected=guard_fields(collection, current, event))
        except RecordNotFound:
            logger.warning("payments.webhook record vanished %s/%s", collection, record_id)
            return IGNORED
        except RecordConflict:
            logger.info(
                "payments.webhook concurrent update on %s/%s, retry %s/%s",
                collection, record_id, attempt, MAX_ATTEMPTS,
            )
            continue

        logger.info(
            "payments.webhook %s applied to %s/%s payment_status=%s",
            event.kind, collection, record_id, fields.get("payment_status"),
        )
        return APPLIED

    raise RecordConflict(collection, record_id)


def handle_event(store: RecordStore, event: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Point d'entrée depuis la vue: parse puis applique, renvoie le corps d'acquittement."""
    parsed = parse_payment_event(event)
    status = apply_event(store, parsed, now=now)
    return {"received": True, "status": status}
