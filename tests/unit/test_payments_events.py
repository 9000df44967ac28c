from datetime import datetime, timezone

from binclean.payments.events import (
    ChargeSucceeded,
    CheckoutSessionCompleted,
    CheckoutSessionExpired,
    PaymentIntentSucceeded,
    UnrecognizedEvent,
    parse_payment_event,
)
from binclean.payments.metadata import booking_metadata, record_ref, subscription_metadata


def test_parse_checkout_completed(make_event):
    event = make_event(
        "checkout.session.completed",
        {"id": "cs_1", "payment_intent": "pi_1", "metadata": {"bookingId": "b-1"}},
        created=1736150400,
    )
    parsed = parse_payment_event(event)
    assert isinstance(parsed, CheckoutSessionCompleted)
    assert parsed.session_id == "cs_1"
    assert parsed.payment_intent_id == "pi_1"
    assert parsed.ref == ("bookings", "b-1")
    assert parsed.created == datetime(2025, 1, 6, 8, 0, tzinfo=timezone.utc)


def test_parse_expanded_subobjects(make_event):
    event = make_event(
        "checkout.session.completed",
        {"id": "cs_2", "subscription": {"id": "sub_9"}, "metadata": {"subscriptionId": "s-1"}},
    )
    parsed = parse_payment_event(event)
    assert parsed.subscription_id == "sub_9"
    assert parsed.payment_intent_id is None
    assert parsed.ref == ("subscriptions", "s-1")


def test_parse_other_variants(make_event):
    expired = parse_payment_event(make_event("checkout.session.expired", {"id": "cs_3"}))
    intent = parse_payment_event(make_event("payment_intent.succeeded", {"id": "pi_3"}))
    charge = parse_payment_event(make_event("charge.succeeded", {"id": "ch_3", "payment_intent": "pi_3"}))
    assert isinstance(expired, CheckoutSessionExpired) and expired.session_id == "cs_3"
    assert isinstance(intent, PaymentIntentSucceeded) and intent.payment_intent_id == "pi_3"
    assert isinstance(charge, ChargeSucceeded) and charge.charge_id == "ch_3"
    assert charge.payment_intent_id == "pi_3"
    # Aucune metadata -> pas de référence
    assert expired.ref is None


def test_parse_unrecognized(make_event):
    parsed = parse_payment_event(make_event("invoice.paid", {"id": "in_1"}))
    assert isinstance(parsed, UnrecognizedEvent)
    assert parsed.type == "invoice.paid"


def test_parse_tolerates_garbage():
    parsed = parse_payment_event({})
    assert isinstance(parsed, UnrecognizedEvent)
    assert parsed.created is None


def test_record_ref_prefers_booking_and_ignores_blank():
    assert record_ref({"bookingId": "b", "subscriptionId": "s"}) == ("bookings", "b")
    assert record_ref({"bookingId": "  ", "subscriptionId": "s"}) == ("subscriptions", "s")
    assert record_ref({"customerName": "x"}) is None
    assert record_ref(None) is None


def test_booking_metadata_copies_customer_fields():
    meta = booking_metadata(
        "b-1",
        {
            "name": "Jane",
            "phone": "0412345678",
            "bins": 2,
            "discount_code": None,
            "address": "12 Example St",
            "address_details": {"placeId": "place_abc", "addressComponents": {"postalCode": "4000"}},
        },
    )
    assert meta == {
        "bookingId": "b-1",
        "customerName": "Jane",
        "customerPhone": "0412345678",
        "bins": "2",
        "discountCode": "",
        "address": "12 Example St",
        "placeId": "place_abc",
        "postalCode": "4000",
    }


def test_metadata_values_are_clipped():
    meta = subscription_metadata("s-1", {"name": "x" * 800, "plan": "weekly", "bins": 2})
    assert len(meta["customerName"]) == 500
    assert meta["subscriptionId"] == "s-1"
    assert meta["plan"] == "weekly"
