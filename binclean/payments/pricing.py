"""
Résolution des prix (forfaits 1/2/3 poubelles et abonnements).

La seule source d'un montant facturé est le catalogue Stripe, via l'identifiant
de prix configuré. Sans identifiant: None, et l'appelant doit refuser de continuer.
DISPLAY_PRICES ne sert qu'à l'affichage optimiste avant le chargement du prix réel.
"""
from decimal import Decimal
from typing import Dict, Optional
import logging

from binclean.config import Settings

logger = logging.getLogger(__name__)

PACKAGES = ("1", "2", "3")
PLANS = ("weekly", "fortnightly")

# Affichage uniquement, jamais facturé
DISPLAY_PRICES: Dict[str, int] = {"1": 20, "2": 40, "3": 50}


class PriceNotConfigured(Exception):
    def __init__(self, selection: str):
        super().__init__(f"Aucun identifiant de prix configuré pour '{selection}'")
        self.selection = selection


def is_plan(selection: str) -> bool:
    return str(selection) in PLANS


def price_id_for(settings: Settings, selection: str) -> Optional[str]:
    """Identifiant de prix Stripe pour un forfait ('1'..'3') ou un abonnement ('weekly'...)."""
    selection = str(selection)
    if is_plan(selection):
        return settings.price_id_for_plan(selection)
    return settings.price_id_for_package(selection)


def cents_to_amount(cents: Optional[int]) -> Optional[Decimal]:
    if cents is None:
        return None
    return Decimal(int(cents)) / 100


class PricingResolver:
    def __init__(self, settings: Settings, gateway):
        self._settings = settings
        self._gateway = gateway

    def price_id_for(self, selection: str) -> Optional[str]:
        return price_id_for(self._settings, selection)

    def price_for(self, selection: str) -> Optional[Decimal]:
        """
        Prix réel (en unités monétaires) lu dans le catalogue Stripe.
        - None si l'identifiant n'est pas configuré (jamais de prix deviné).
        - Les erreurs Stripe sont propagées à l'appelant.
        """
        price_id = self.price_id_for(selection)
        if not price_id:
            logger.warning("payments.pricing price id missing selection=%s", selection)
            return None
        price = self._gateway.retrieve_price(price_id)
        return cents_to_amount(price.get("unit_amount"))

    def require_price(self, selection: str) -> Decimal:
        amount = self.price_for(selection)
        if amount is None:
            raise PriceNotConfigured(selection)
        return amount

    def catalog(self) -> Dict[str, Dict[str, Optional[float]]]:
        """Prix réels de tous les forfaits et abonnements (None si non configuré)."""
        def _as_float(selection: str) -> Optional[float]:
            amount = self.price_for(selection)
            return float(amount) if amount is not None else None

        return {
            "prices": {bins: _as_float(bins) for bins in PACKAGES},
            "plans": {plan: _as_float(plan) for plan in PLANS},
        }
