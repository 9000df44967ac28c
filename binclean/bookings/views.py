# module binclean.bookings.views

"""Endpoints de réservation.
- POST /checkout/one-time: réservation ponctuelle (1/2/3 poubelles) -> session Stripe.
- POST /checkout/subscription: abonnement hebdomadaire / bimensuel (2 poubelles) -> session Stripe.
- GET /service-dates: les trois prochains lundis proposés.
- GET /success, GET /cancel: pages de retour Stripe, purement informatives.
Les pages de retour ne confirment jamais un paiement: seul le webhook fait foi.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse
from typing import Optional
import logging

from binclean.config import Settings
from binclean.payments.pricing import PriceNotConfigured
from binclean.utils.deps import get_gateway, get_settings, get_store, request_origin
from binclean.utils.rate_limit import optional_rate_limit
from binclean.utils.templates import templates
from . import service as bookings_service
from .models import OneTimeCheckoutRequest, SubscriptionCheckoutRequest
from .repository import RecordStore
from .schedule import SERVICE_WINDOW, next_service_dates

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Bookings API"])
web_router = APIRouter(tags=["Booking Pages"])


@router.post("/checkout/one-time", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_one_time_checkout(
    req: OneTimeCheckoutRequest,
    request: Request,
    settings: Settings = Depends(get_settings),
    store: RecordStore = Depends(get_store),
    gateway=Depends(get_gateway),
):
    """Crée la réservation « pending » puis la session Stripe Checkout.
    - 422 si le formulaire est invalide (avant tout appel externe).
    - 500 si le prix n'est pas configuré (aucune réservation créée).
    - 500 si l'écriture en base ou la création de session échoue.
    - Retourne {sessionId, url, bookingId}.
    """
    try:
        result = bookings_service.create_one_time_checkout(
            req, origin=request_origin(request), settings=settings, store=store, gateway=gateway
        )
        return JSONResponse(result)
    except PriceNotConfigured:
        logger.error("bookings.views price id not configured bins=%s", req.bins)
        return JSONResponse(
            {"error": "Price ID is not configured for the selected number of bins."}, status_code=500
        )
    except Exception:
        logger.exception("Erreur create_one_time_checkout")
        return JSONResponse({"error": "Failed to create checkout session."}, status_code=500)


@router.post("/checkout/subscription", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_subscription_checkout(
    req: SubscriptionCheckoutRequest,
    request: Request,
    settings: Settings = Depends(get_settings),
    store: RecordStore = Depends(get_store),
    gateway=Depends(get_gateway),
):
    """Même déroulé que /checkout/one-time, en mode abonnement Stripe."""
    try:
        result = bookings_service.create_subscription_checkout(
            req, origin=request_origin(request), settings=settings, store=store, gateway=gateway
        )
        return JSONResponse(result)
    except PriceNotConfigured:
        logger.error("bookings.views subscription price id not configured plan=%s", req.plan)
        return JSONResponse({"error": "Subscription price ID is not configured."}, status_code=500)
    except Exception:
        logger.exception("Erreur create_subscription_checkout")
        return JSONResponse({"error": "Failed to create subscription checkout session."}, status_code=500)


@router.get("/service-dates")
def service_dates():
    return {"dates": next_service_dates(), "window": SERVICE_WINDOW}


@web_router.get("/success", response_class=HTMLResponse)
def success_page(
    request: Request,
    session_id: Optional[str] = None,
    bookingId: Optional[str] = None,
    subscriptionId: Optional[str] = None,
):
    """Page de retour après paiement: affiche la référence lue dans l'URL, rien d'autre."""
    reference = bookingId or subscriptionId
    label = "Booking Reference:" if bookingId else "Subscription Reference:"
    resp = templates.TemplateResponse(
        request,
        "success.html",
        {
            "reference": reference,
            "reference_label": label,
            "session_id": session_id,
            "service_window": SERVICE_WINDOW,
        },
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@web_router.get("/cancel", response_class=HTMLResponse)
def cancel_page(request: Request):
    return templates.TemplateResponse(request, "cancel.html", {})
