# binclean.config
from pathlib import Path
from typing import Dict, List, Optional
import os
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

TEMPLATES_DIR = BASE_DIR / "templates"

"""
Configuration centrale du backend.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise les secrets/URLs (Stripe, Supabase), CORS/hosts
- Construit un objet Settings immuable, une seule fois au démarrage (create_app),
  puis transmis aux composants: aucun module ne relit os.environ ensuite.
"""

# Variables d'environnement des identifiants de prix Stripe, par forfait / abonnement
PACKAGE_PRICE_ENV = {
    "1": "STRIPE_PRICE_ID_1_BIN",
    "2": "STRIPE_PRICE_ID_2_BINS",
    "3": "STRIPE_PRICE_ID_3_BINS",
}
PLAN_PRICE_ENV = {
    "weekly": "STRIPE_PRICE_ID_SUB_2_BINS_WEEKLY",
    "fortnightly": "STRIPE_PRICE_ID_SUB_2_BINS_FORTNIGHTLY",
}


def _clean_env(v: Optional[str]) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")


def _env(name: str, *fallbacks: str, default: str = "") -> str:
    # Le premier nom renseigné gagne (ex: STRIPE_PRICE_ID_1_BIN puis NEXT_PUBLIC_STRIPE_PRICE_ID_1_BIN)
    for key in (name, *fallbacks):
        value = _clean_env(os.getenv(key))
        if value:
            return value
    return default


def _csv(value: str) -> List[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


class Settings(BaseModel):
    """Configuration explicite de l'application (immuable)."""

    model_config = ConfigDict(frozen=True)

    stripe_secret_key: str = ""
    stripe_public_key: str = ""
    stripe_webhook_secret: str = ""
    package_price_ids: Dict[str, str] = {}
    plan_price_ids: Dict[str, str] = {}

    supabase_url: str = ""
    supabase_service_key: str = ""
    bookings_table: str = "bookings"
    subscriptions_table: str = "subscriptions"

    public_base_url: str = "http://localhost:8000"
    cors_origins: List[str] = ["*"]
    allowed_hosts: List[str] = ["localhost", "127.0.0.1"]
    forwarded_allow_ips: List[str] = ["127.0.0.1"]
    cookie_secure: bool = False

    def price_id_for_package(self, bins: str) -> Optional[str]:
        return self.package_price_ids.get(str(bins)) or None

    def price_id_for_plan(self, plan: str) -> Optional[str]:
        return self.plan_price_ids.get(str(plan)) or None


def load_settings() -> Settings:
    """
    Lit l'environnement (déjà enrichi par .env) et construit Settings.
    - Les anciens noms NEXT_PUBLIC_* restent acceptés pour les identifiants de prix.
    - SUPABASE_URL sans schéma est préfixée en https://
    """
    supabase_url = _env("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL")
    if supabase_url and not supabase_url.startswith("http"):
        supabase_url = "https://" + supabase_url
    supabase_url = supabase_url.rstrip("/")

    package_price_ids = {
        bins: _env(key, f"NEXT_PUBLIC_{key}") for bins, key in PACKAGE_PRICE_ENV.items()
    }
    plan_price_ids = {
        plan: _env(key, f"NEXT_PUBLIC_{key}") for plan, key in PLAN_PRICE_ENV.items()
    }

    return Settings(
        stripe_secret_key=_env("STRIPE_SECRET_KEY"),
        stripe_public_key=_env("STRIPE_PUBLIC_KEY", "NEXT_PUBLIC_STRIPE_PUBLISHABLE_KEY"),
        stripe_webhook_secret=_env("STRIPE_WEBHOOK_SECRET"),
        package_price_ids={k: v for k, v in package_price_ids.items() if v},
        plan_price_ids={k: v for k, v in plan_price_ids.items() if v},
        supabase_url=supabase_url,
        supabase_service_key=_env("SUPABASE_SERVICE_KEY", "SUPABASE_KEY"),
        bookings_table=_env("SUPABASE_BOOKINGS_TABLE", default="bookings"),
        subscriptions_table=_env("SUPABASE_SUBSCRIPTIONS_TABLE", default="subscriptions"),
        public_base_url=_env("PUBLIC_BASE_URL", "BASE_URL", default="http://localhost:8000").rstrip("/"),
        cors_origins=_csv(os.getenv("CORS_ORIGINS", "*")),
        allowed_hosts=_csv(os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1")),
        forwarded_allow_ips=_csv(os.getenv("FORWARDED_ALLOW_IPS", "127.0.0.1")),
        cookie_secure=(os.getenv("COOKIE_SECURE", "false").lower() == "true"),
    )
