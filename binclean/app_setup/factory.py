"""
Factory d’application recommandée pour les entrypoints (ex: binclean.asgi).
Ordonne les étapes d’initialisation de manière lisible et testable.
"""
from typing import Optional

from fastapi import FastAPI

from binclean.config import Settings, load_settings
from binclean.bookings.repository import RecordStore, SupabaseRecordStore
from binclean.payments.stripe_client import StripeGateway
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_force_https_middleware
from .security import register_security_middleware
from .exceptions import register_exception_handlers
from .routers import register_routers

def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RecordStore] = None,
    gateway=None,
) -> FastAPI:
    """
    Construit l’app FastAPI et ses dépendances, une seule fois:
      - settings: lus depuis l’environnement si non fournis
      - store: SupabaseRecordStore par défaut (client créé à la première requête)
      - gateway: StripeGateway par défaut
    Les tests injectent leurs faux via ces trois paramètres.
    Ordre: middlewares de base, sécurité, gestionnaires d’exceptions, routers,
    puis HTTPS en dernier pour qu’il s’exécute en premier.
    """
    settings = settings or load_settings()
    app = FastAPI(title="Bin Cleaning Bookings API", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store if store is not None else SupabaseRecordStore(settings)
    app.state.gateway = gateway if gateway is not None else StripeGateway(settings)

    register_basic_middlewares(app, settings)
    register_security_middleware(app, settings)
    register_exception_handlers(app)
    register_routers(app)
    register_force_https_middleware(app)
    return app
