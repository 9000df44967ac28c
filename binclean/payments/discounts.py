"""
Validation des codes promo (pass-through vers l'API promotion codes de Stripe).

La validation est une amélioration optionnelle du checkout: une panne Stripe
donne isValid=False avec un message générique, jamais une erreur bloquante.
Seul un prix de base introuvable (configuration) est remonté à l'appelant.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional, Tuple
import logging

from .pricing import PricingResolver, PriceNotConfigured, cents_to_amount

logger = logging.getLogger(__name__)

INVALID_CODE = "Invalid or expired discount code"
EXPIRED_CODE = "Discount code has expired"
USAGE_LIMIT = "Discount code has reached its usage limit"
UNABLE_TO_VALIDATE = "Unable to validate discount code"


def _reached_limit(obj: Dict[str, Any]) -> bool:
    max_redemptions = obj.get("max_redemptions")
    return bool(max_redemptions) and int(obj.get("times_redeemed") or 0) >= int(max_redemptions)


def _coupon_of(promotion: Dict[str, Any], gateway) -> Dict[str, Any]:
    """
    Coupon sous-jacent d'un code promo.
    - Anciennes versions d'API: promotion["coupon"]
    - Versions récentes: promotion["promotion"]["coupon"], parfois un simple id
    """
    coupon = promotion.get("coupon") or (promotion.get("promotion") or {}).get("coupon")
    if isinstance(coupon, str):
        return gateway.retrieve_coupon(coupon)
    return coupon or {}


def compute_discount(base_price: Decimal, coupon: Dict[str, Any]) -> Tuple[Decimal, Decimal, Decimal]:
    """
    Calcule (discount_amount, discount_percent, final_price).
    - Pourcentage: montant arrondi à l'unité monétaire la plus proche (demi vers le haut).
    - Montant fixe (centimes Stripe): soustrait tel quel.
    - Prix final plancher à 0.
    """
    discount_amount = Decimal(0)
    discount_percent = Decimal(0)
    if coupon.get("percent_off"):
        discount_percent = Decimal(str(coupon["percent_off"]))
        discount_amount = (base_price * discount_percent / 100).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    elif coupon.get("amount_off"):
        discount_amount = cents_to_amount(coupon["amount_off"])
    final_price = max(Decimal(0), base_price - discount_amount)
    return discount_amount, discount_percent, final_price


def _invalid(base_price: Decimal, error: Optional[str] = None) -> Dict[str, Any]:
    result: Dict[str, Any] = {"isValid": False, "finalPrice": float(base_price)}
    if error:
        result["error"] = error
    return result


def validate_discount(code: Optional[str], selection: str, pricing: PricingResolver, gateway) -> Dict[str, Any]:
    """
    Valide un code promo pour un forfait / abonnement.
    Lève PriceNotConfigured si le prix de base est introuvable (distinct d'un code invalide).
    """
    try:
        base_price = pricing.require_price(selection)
    except PriceNotConfigured:
        raise
    except Exception:
        logger.exception("payments.discounts.validate_discount price lookup failed selection=%s", selection)
        return {"isValid": False, "error": UNABLE_TO_VALIDATE}

    code = (code or "").strip()
    if not code:
        # État « pas encore de remise » (saisie en cours), pas une erreur
        return _invalid(base_price)

    try:
        promotion = gateway.find_active_promotion(code)
        if not promotion:
            return _invalid(base_price, INVALID_CODE)

        coupon = _coupon_of(promotion, gateway)
        if not coupon.get("valid", False):
            return _invalid(base_price, EXPIRED_CODE)
        if _reached_limit(coupon):
            return _invalid(base_price, USAGE_LIMIT)
        if _reached_limit(promotion):
            return _invalid(base_price, USAGE_LIMIT)
    except Exception:
        logger.exception("payments.discounts.validate_discount failed code=%s selection=%s", code, selection)
        return _invalid(base_price, UNABLE_TO_VALIDATE)

    discount_amount, discount_percent, final_price = compute_discount(base_price, coupon)
    return {
        "isValid": True,
        "discountAmount": float(discount_amount),
        "discountPercent": float(discount_percent),
        "finalPrice": float(final_price),
        "promotionCodeId": promotion.get("id"),
        "couponId": coupon.get("id"),
    }


def find_promotion_id(code: Optional[str], gateway) -> Optional[str]:
    """
    Identifiant du code promo actif à attacher au checkout, ou None.
    Toute erreur est absorbée: le checkout continue sans remise.
    """
    code = (code or "").strip()
    if not code:
        return None
    try:
        promotion = gateway.find_active_promotion(code)
    except Exception:
        logger.exception("payments.discounts.find_promotion_id failed code=%s", code)
        return None
    return (promotion or {}).get("id")
