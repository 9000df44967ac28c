from typing import Dict, Tuple
from supabase import create_client, Client

from binclean.config import Settings

# Un client par couple (url, clé): construit à la demande, réutilisé ensuite
_clients: Dict[Tuple[str, str], Client] = {}

def get_service_supabase(settings: Settings) -> Client:
    """
    Client Supabase 'service-role' (bypass RLS), utilisé côté serveur
    pour écrire les réservations et appliquer les événements du webhook.
    """
    if not settings.supabase_url or not settings.supabase_service_key:
        raise RuntimeError("SUPABASE_URL/SUPABASE_SERVICE_KEY manquants pour get_service_supabase()")
    key = (settings.supabase_url, settings.supabase_service_key)
    if key not in _clients:
        _clients[key] = create_client(settings.supabase_url, settings.supabase_service_key)
    return _clients[key]
