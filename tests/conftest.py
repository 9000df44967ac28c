import copy
import json
import threading
import time
from typing import Any, Dict, Generator, Optional

import pytest
from fastapi.testclient import TestClient

from binclean.app_setup.factory import create_app
from binclean.bookings.repository import RecordConflict, RecordNotFound
from binclean.config import Settings

PACKAGE_PRICE_IDS = {"1": "price_1bin", "2": "price_2bins", "3": "price_3bins"}
PLAN_PRICE_IDS = {"weekly": "price_sub_weekly", "fortnightly": "price_sub_fortnightly"}
PRICE_CENTS = {
    "price_1bin": 2000,
    "price_2bins": 4000,
    "price_3bins": 5000,
    "price_sub_weekly": 3500,
    "price_sub_fortnightly": 4500,
}
WEBHOOK_SECRET = "whsec_test_secret"


# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class InMemoryRecordStore:
    """Faux RecordStore: dict par collection, ids séquentiels, journal des écritures."""

    def __init__(self):
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.updates = []
        self.conflicts = 0
        self.fail_creates = False
        self.fail_reads = False
        self.fail_updates = False
        self._seq = 0
        self._lock = threading.Lock()
        self._read_barrier: Optional[threading.Barrier] = None
        self._held_reads = 0

    def interleave_reads(self, parties: int) -> None:
        """Les `parties` prochaines lectures s'attendent mutuellement avant de rendre leur copie."""
        self._read_barrier = threading.Barrier(parties, timeout=5)
        self._held_reads = parties

    def create_record(self, collection: str, fields: Dict[str, Any]) -> str:
        if self.fail_creates:
            raise ConnectionError("store unavailable")
        with self._lock:
            self._seq += 1
            record_id = f"rec_{self._seq}"
            self.collections.setdefault(collection, {})[record_id] = {"id": record_id, **copy.deepcopy(fields)}
        return record_id

    def get_record(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        if self.fail_reads:
            raise ConnectionError("store unavailable")
        barrier = None
        with self._lock:
            record = self.collections.get(collection, {}).get(record_id)
            record = copy.deepcopy(record) if record is not None else None
            if self._held_reads > 0:
                self._held_reads -= 1
                barrier = self._read_barrier
        if barrier is not None:
            barrier.wait()
        return record

    def update_record(
        self,
        collection: str,
        record_id: str,
        fields: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> None:
        if self.fail_updates:
            raise ConnectionError("store unavailable")
        with self._lock:
            records = self.collections.get(collection, {})
            if record_id not in records:
                raise RecordNotFound(collection, record_id)
            row = records[record_id]
            if expected and any(row.get(k) != v for k, v in expected.items()):
                self.conflicts += 1
                raise RecordConflict(collection, record_id)
            self.updates.append((collection, record_id, copy.deepcopy(fields)))
            row.update(copy.deepcopy(fields))

    def snapshot(self, collection: str, record_id: str) -> Dict[str, Any]:
        return copy.deepcopy(self.collections[collection][record_id])


class FakeStripeGateway:
    """
    Faux StripeGateway.
    - verify_webhook accepte uniquement la signature "valid:<secret>"
    - les sessions créées sont conservées dans self.sessions
    """

    def __init__(self, prices: Optional[Dict[str, int]] = None):
        self.prices = dict(prices or {})
        self.promotions: Dict[str, Dict[str, Any]] = {}
        self.coupons: Dict[str, Dict[str, Any]] = {}
        self.sessions = []
        self.promotion_lookups = []
        self.fail_promotions = False
        self.fail_prices = False
        self.fail_sessions = False

    def add_promotion(self, code: str, coupon: Dict[str, Any], **promotion_fields) -> Dict[str, Any]:
        promotion = {"id": f"promo_{code.lower()}", "code": code, "coupon": coupon, **promotion_fields}
        self.promotions[code] = promotion
        return promotion

    def create_checkout_session(self, config: Dict[str, Any]) -> Dict[str, Any]:
        if self.fail_sessions:
            raise RuntimeError("stripe unavailable")
        session_id = f"cs_test_{len(self.sessions) + 1}"
        self.sessions.append(copy.deepcopy(config))
        return {"id": session_id, "url": f"https://checkout.stripe.test/{session_id}"}

    def find_active_promotion(self, code: str) -> Optional[Dict[str, Any]]:
        self.promotion_lookups.append(code)
        if self.fail_promotions:
            raise RuntimeError("stripe unavailable")
        return copy.deepcopy(self.promotions.get(code))

    def retrieve_coupon(self, coupon_id: str) -> Dict[str, Any]:
        return copy.deepcopy(self.coupons[coupon_id])

    def retrieve_price(self, price_id: str) -> Dict[str, Any]:
        if self.fail_prices:
            raise RuntimeError("stripe unavailable")
        return {"id": price_id, "unit_amount": self.prices[price_id], "currency": "aud"}

    def verify_webhook(self, payload: bytes, signature: str, secret: str) -> Dict[str, Any]:
        if signature != f"valid:{secret}":
            raise ValueError("No signatures found matching the expected signature for payload")
        return json.loads(payload)


@pytest.fixture(autouse=True)
def _no_rate_limiter(monkeypatch):
    monkeypatch.setenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        stripe_secret_key="sk_test_123",
        stripe_webhook_secret=WEBHOOK_SECRET,
        package_price_ids=PACKAGE_PRICE_IDS,
        plan_price_ids=PLAN_PRICE_IDS,
        public_base_url="https://bins.example",
    )


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def gateway() -> FakeStripeGateway:
    return FakeStripeGateway(prices=PRICE_CENTS)


@pytest.fixture
def app(settings, store, gateway):
    return create_app(settings=settings, store=store, gateway=gateway)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


@pytest.fixture
def booking_payload() -> Dict[str, Any]:
    return {
        "name": "Jane Citizen",
        "email": "jane@example.com",
        "phone": "0412 345 678",
        "address": "12 Example St, Brisbane QLD 4000",
        "notes": "Bins are at the side gate",
        "bins": "2",
        "date": "2025-01-06T00:00:00",
        "addressDetails": {
            "placeId": "place_abc",
            "formattedAddress": "12 Example St, Brisbane QLD 4000, Australia",
            "addressComponents": {
                "streetNumber": "12",
                "route": "Example St",
                "locality": "Brisbane",
                "administrativeArea": "QLD",
                "postalCode": "4000",
                "country": "Australia",
            },
            "latitude": -27.47,
            "longitude": 153.02,
        },
    }


@pytest.fixture
def make_event():
    """Fabrique un événement Stripe minimal {id, type, created, data.object}."""
    counter = {"n": 0}

    def _make(event_type: str, obj: Dict[str, Any], created: Optional[int] = None) -> Dict[str, Any]:
        counter["n"] += 1
        return {
            "id": f"evt_test_{counter['n']}",
            "type": event_type,
            "created": created if created is not None else int(time.time()),
            "data": {"object": obj},
        }

    return _make


@pytest.fixture
def deliver(client):
    """Poste un événement sur le webhook avec une signature valide (ou celle fournie)."""

    def _deliver(event: Dict[str, Any], signature: Optional[str] = None):
        headers = {"content-type": "application/json"}
        headers["stripe-signature"] = signature if signature is not None else f"valid:{WEBHOOK_SECRET}"
        return client.post("/webhooks/payments", content=json.dumps(event).encode("utf-8"), headers=headers)

    return _deliver
