import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from binclean.config import Settings
from binclean.bookings.models import DiscountRequest
from binclean.bookings.repository import RecordStore
from binclean.utils.deps import get_gateway, get_pricing, get_settings, get_store
from binclean.utils.rate_limit import optional_rate_limit
from .discounts import validate_discount as run_discount_validation
from .pricing import DISPLAY_PRICES, PriceNotConfigured, PricingResolver
from .webhook import handle_event

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Payments API"])

# module binclean.payments.views
@router.get("/prices")
def get_prices(pricing: PricingResolver = Depends(get_pricing)) -> JSONResponse:
    """
    Prix réels des forfaits et abonnements, lus dans le catalogue Stripe.
    - null pour un forfait dont l'identifiant de prix n'est pas configuré
    - display: table statique pour l'affichage optimiste (jamais facturée)
    - 500 si Stripe échoue
    """
    try:
        data: Dict[str, Any] = pricing.catalog()
    except Exception:
        logger.exception("Erreur get_prices")
        return JSONResponse({"error": "Failed to fetch prices"}, status_code=500)
    data["display"] = DISPLAY_PRICES
    return JSONResponse(data)


@router.post("/validate-discount", dependencies=[Depends(optional_rate_limit(times=20, seconds=60))])
async def validate_discount(
    request: Request,
    pricing: PricingResolver = Depends(get_pricing),
    gateway=Depends(get_gateway),
):
    """
    Valide un code promo pour un forfait (bins) ou un abonnement (plan).
    - Entrée JSON: {"discountCode": "...", "bins": "2"} ou {"discountCode": "...", "plan": "weekly"}
    - 400 si la sélection est absente ou invalide (aucun appel Stripe)
    - 500 si le prix de base n'est pas configuré
    - 200 sinon, y compris pour un code invalide (isValid=false) ou une panne Stripe
    """
    try:
        body = await request.json()
        req = DiscountRequest.model_validate(body or {})
    except (ValueError, ValidationError):
        return JSONResponse({"error": "Invalid discount request"}, status_code=400)
    if not req.selection:
        return JSONResponse({"error": "Number of bins or plan is required"}, status_code=400)

    try:
        result = await run_in_threadpool(run_discount_validation, req.discount_code, req.selection, pricing, gateway)
    except PriceNotConfigured:
        logger.error("payments.views price id not configured selection=%s", req.selection)
        return JSONResponse({"error": "Price is not configured for the selected package."}, status_code=500)
    return JSONResponse(result)


@router.post("/webhooks/payments", include_in_schema=False)
async def payments_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    store: RecordStore = Depends(get_store),
    gateway=Depends(get_gateway),
):
    """
    Webhook Stripe: seule source de vérité du paiement.
    - Signature: vérifiée sur le body brut (Stripe-Signature + STRIPE_WEBHOOK_SECRET) avant toute lecture
    - 500 si le secret n'est pas configuré, 400 si l'en-tête manque ou si la signature est invalide
    - Événement non reconnu / enregistrement introuvable: 200 {"received": true, "status": "ignored"}
    - 500 si le store échoue, pour que Stripe re-livre l'événement
    """
    if not settings.stripe_webhook_secret:
        logger.error("payments.webhook STRIPE_WEBHOOK_SECRET manquant")
        return JSONResponse({"error": "Webhook not configured"}, status_code=500)

    signature = request.headers.get("stripe-signature")
    if not signature:
        logger.warning("payments.webhook missing stripe-signature header")
        return JSONResponse({"error": "Missing stripe-signature header"}, status_code=400)

    payload = await request.body()
    try:
        event = await run_in_threadpool(gateway.verify_webhook, payload, signature, settings.stripe_webhook_secret)
    except Exception:
        logger.exception("payments.webhook signature verification failed")
        return JSONResponse({"error": "Webhook signature verification failed"}, status_code=400)

    logger.info("payments.webhook received type=%s id=%s", event.get("type"), event.get("id"))
    try:
        result = await run_in_threadpool(handle_event, store, event)
    except Exception:
        logger.exception("Erreur payments_webhook type=%s", event.get("type"))
        return JSONResponse({"error": "Webhook handler failed"}, status_code=500)
    return JSONResponse(result)
