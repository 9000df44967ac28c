"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.

Les composants reçoivent une instance de StripeGateway (injectée via app.state),
ce qui permet de la remplacer par un faux en tests.
"""
from typing import Any, Dict, Optional

import stripe

from binclean.config import Settings

# Tolérance (secondes) sur l'horodatage de l'en-tête Stripe-Signature
WEBHOOK_TOLERANCE = stripe.Webhook.DEFAULT_TOLERANCE

# module binclean.payments.stripe_client
def _plain(obj: Any) -> Dict[str, Any]:
    """Convertit un StripeObject (ou dict) en dict Python simple."""
    if obj is None:
        return {}
    if isinstance(obj, dict) and not hasattr(obj, "to_dict"):
        return obj
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return dict(obj)


class StripeGateway:
    """
    Capacité « fournisseur de paiement »:
    - create_checkout_session(config) -> {"id", "url"}
    - find_active_promotion(code) -> dict | None
    - retrieve_coupon(coupon_id) -> dict
    - retrieve_price(price_id) -> {"id", "unit_amount", "currency"}
    - verify_webhook(payload, signature, secret) -> event (dict)
    """

    def __init__(self, settings: Settings):
        self._api_key = settings.stripe_secret_key or None

    def create_checkout_session(self, config: Dict[str, Any]) -> Dict[str, Any]:
        session = stripe.checkout.Session.create(api_key=self._api_key, **config)
        return {"id": session["id"], "url": session["url"]}

    def find_active_promotion(self, code: str) -> Optional[Dict[str, Any]]:
        """
        Cherche un code promo actif correspondant exactement à `code`.
        La casse est gérée par Stripe. Retourne None si aucun résultat.
        """
        res = stripe.PromotionCode.list(code=code, active=True, limit=1, api_key=self._api_key)
        data = res["data"] or []
        return _plain(data[0]) if data else None

    def retrieve_coupon(self, coupon_id: str) -> Dict[str, Any]:
        return _plain(stripe.Coupon.retrieve(coupon_id, api_key=self._api_key))

    def retrieve_price(self, price_id: str) -> Dict[str, Any]:
        price = stripe.Price.retrieve(price_id, api_key=self._api_key)
        return {"id": price["id"], "unit_amount": price["unit_amount"], "currency": price["currency"]}

    def verify_webhook(self, payload: bytes, signature: str, secret: str) -> Dict[str, Any]:
        """
        Valide l'en-tête Stripe-Signature sur le body brut via Webhook.construct_event.
        - Lève stripe.SignatureVerificationError si la signature est invalide.
        - Lève ValueError si le payload n'est pas du JSON.
        """
        event = stripe.Webhook.construct_event(payload, signature, secret, WEBHOOK_TOLERANCE, api_key=self._api_key)
        return _plain(event)
