"""
Dépendances FastAPI: exposent aux vues les objets construits une seule fois par create_app()
et rangés dans app.state (settings, store, gateway Stripe).
Les tests passent leurs propres faux à create_app() au lieu de patcher des globales.
"""
from fastapi import Request

from binclean.config import Settings
from binclean.bookings.repository import RecordStore
from binclean.payments.pricing import PricingResolver
from binclean.payments.stripe_client import StripeGateway

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_store(request: Request) -> RecordStore:
    return request.app.state.store

def get_gateway(request: Request) -> StripeGateway:
    return request.app.state.gateway

def get_pricing(request: Request) -> PricingResolver:
    return PricingResolver(request.app.state.settings, request.app.state.gateway)

def request_origin(request: Request) -> str:
    """
    Origine publique utilisée pour les URLs de retour Stripe.
    - En-tête Origin si présent (appel depuis le navigateur)
    - Sinon PUBLIC_BASE_URL
    """
    origin = (request.headers.get("origin") or "").strip().rstrip("/")
    if origin and origin != "null":
        return origin
    return request.app.state.settings.public_base_url
