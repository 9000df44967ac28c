"""
Registre central des routers.
- API: bookings (checkout, dates), payments (prix, codes promo, webhook)
- Web: pages de retour Stripe (/success, /cancel)
- Health: /health/*
"""
from fastapi import FastAPI
from binclean.bookings import views as bookings_views
from binclean.payments import views as payments_views
from binclean.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    """
    Agrège tous les routers de l’application.
    - L’ordre n’a pas d’impact sauf conflits de chemins (inexistants ici).
    """
    # API
    app.include_router(bookings_views.router)
    app.include_router(payments_views.router)
    # Pages web (HTML)
    app.include_router(bookings_views.web_router)
    # Health & monitoring
    app.include_router(health_router)
