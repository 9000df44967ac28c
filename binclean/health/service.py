"""
Diagnostics de santé (sans effet de bord sur les données).
- Supabase: résolution DNS + lecture d'une ligne par table de réservation
- Stripe: présence des secrets et des identifiants de prix (aucun appel réseau)
"""
from typing import Any, Dict
from urllib.parse import urlparse
import socket

from binclean.config import Settings
from binclean.infra import supabase_client
from binclean.payments.pricing import PACKAGES, PLANS, price_id_for

def _check_table(client, name: str) -> Dict[str, Any]:
    try:
        res = client.table(name).select("id").limit(1).execute()
        return {"ok": True, "rows": len(res.data or [])}
    except Exception as e:
        return {"ok": False, "error": str(e)}

def health_supabase_info(settings: Settings) -> Dict[str, Any]:
    parsed = urlparse(settings.supabase_url) if settings.supabase_url else None
    hostname = parsed.hostname if parsed else None
    dns_ok = None
    dns_error = None
    if hostname:
        try:
            socket.getaddrinfo(hostname, 443)
            dns_ok = True
        except Exception as e:
            dns_ok = False
            dns_error = str(e)

    info: Dict[str, Any] = {
        "supabase_url": settings.supabase_url,
        "hostname": hostname,
        "dns_ok": dns_ok,
        "dns_error": dns_error,
        "connect_ok": False,
        "error": None,
        "tables": {},
    }
    try:
        client = supabase_client.get_service_supabase(settings)
        for t in (settings.bookings_table, settings.subscriptions_table):
            info["tables"][t] = _check_table(client, t)
        info["connect_ok"] = True
    except Exception as e:
        info["error"] = str(e)
    return info

def health_stripe_info(settings: Settings) -> Dict[str, Any]:
    selections = PACKAGES + PLANS
    configured = {s: bool(price_id_for(settings, s)) for s in selections}
    return {
        "secret_key": bool(settings.stripe_secret_key),
        "webhook_secret": bool(settings.stripe_webhook_secret),
        "live_mode": settings.stripe_secret_key.startswith("sk_live_"),
        "price_ids": configured,
        "ok": bool(settings.stripe_secret_key) and bool(settings.stripe_webhook_secret) and all(configured.values()),
    }
