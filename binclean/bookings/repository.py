"""
Accès aux données des réservations (tables 'bookings' et 'subscriptions').

Le reste de l'application ne voit que la capacité RecordStore:
- create_record(collection, fields) -> id
- get_record(collection, id) -> dict | None
- update_record(collection, id, fields, expected=None) -> None
  (RecordNotFound si l'id n'existe pas, RecordConflict si `expected` ne correspond plus)
"""
from typing import Any, Dict, Optional, Protocol
import logging

from postgrest.exceptions import APIError

from binclean.config import Settings
from binclean.infra import supabase_client

logger = logging.getLogger(__name__)

# Codes Postgres renvoyés par PostgREST pour un identifiant mal formé (uuid invalide)
_MALFORMED_ID_CODES = {"22P02"}

BOOKINGS = "bookings"
SUBSCRIPTIONS = "subscriptions"


class RecordNotFound(Exception):
    def __init__(self, collection: str, record_id: str):
        super().__init__(f"{collection}/{record_id} introuvable")
        self.collection = collection
        self.record_id = record_id


class RecordConflict(Exception):
    """L'enregistrement a changé depuis sa lecture: l'écriture conditionnelle n'a touché aucune ligne."""

    def __init__(self, collection: str, record_id: str):
        super().__init__(f"{collection}/{record_id} modifié entre lecture et écriture")
        self.collection = collection
        self.record_id = record_id


class RecordStore(Protocol):
    def create_record(self, collection: str, fields: Dict[str, Any]) -> str: ...

    def get_record(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]: ...

    def update_record(
        self,
        collection: str,
        record_id: str,
        fields: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> None: ...


def _error_code(e: APIError) -> Optional[str]:
    code = getattr(e, "code", None)
    if code:
        return str(code)
    if e.args and isinstance(e.args[0], dict):
        return e.args[0].get("code")
    return None


class SupabaseRecordStore:
    """
    RecordStore adossé à Supabase (client service-role, construit à la première utilisation).
    - Les collections logiques 'bookings'/'subscriptions' sont mappées sur les tables configurées.
    - Un id mal formé est traité comme « introuvable » et non comme une panne.
    """

    def __init__(self, settings: Settings):
        self._settings = settings
        self._tables = {
            BOOKINGS: settings.bookings_table,
            SUBSCRIPTIONS: settings.subscriptions_table,
        }

    def _table(self, collection: str):
        name = self._tables.get(collection, collection)
        return supabase_client.get_service_supabase(self._settings).table(name)

    def create_record(self, collection: str, fields: Dict[str, Any]) -> str:
        res = self._table(collection).insert(fields).execute()
        rows = res.data or []
        row = rows[0] if isinstance(rows, list) and rows else rows
        record_id = (row or {}).get("id") if isinstance(row, dict) else None
        if not record_id:
            raise RuntimeError(f"Insertion {collection} sans identifiant retourné")
        return str(record_id)

    def get_record(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        try:
            res = self._table(collection).select("*").eq("id", record_id).limit(1).execute()
        except APIError as e:
            if _error_code(e) in _MALFORMED_ID_CODES:
                return None
            raise
        rows = res.data or []
        return rows[0] if rows else None

    def update_record(
        self,
        collection: str,
        record_id: str,
        fields: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        UPDATE ... WHERE id = record_id [AND colonne = valeur lue ...].
        - expected: valeurs lues avant le calcul de `fields`; None -> IS NULL.
          Le filtre fait partie de la requête, la vérification est donc atomique côté Postgres.
        - Aucune ligne touchée: RecordNotFound sans `expected`, RecordConflict sinon
          (l'appelant relit pour distinguer les deux cas).
        """
        query = self._table(collection).update(fields).eq("id", record_id)
        for column, value in (expected or {}).items():
            query = query.is_(column, "null") if value is None else query.eq(column, value)
        try:
            res = query.execute()
        except APIError as e:
            if _error_code(e) in _MALFORMED_ID_CODES:
                raise RecordNotFound(collection, record_id) from e
            raise
        if not (res.data or []):
            if expected:
                raise RecordConflict(collection, record_id)
            raise RecordNotFound(collection, record_id)
        logger.debug("bookings.repository.update_record %s/%s fields=%s", collection, record_id, sorted(fields))
