"""Tests for offer models and request bodies."""

import pytest
from pydantic import ValidationError

from src.models.offer import (
    BidRequest,
    Offer,
    OfferStatus,
    OfferStatusUpdate,
    PaymentConfirmation,
    PaymentIntentRequest,
    can_transition,
)


@pytest.mark.unit
def test_offer_defaults_to_pending():
    offer = Offer(
        offer_id="01ARZ3NDEKTSV4RRFFQ69G5FAV",
        property_id="prop_1",
        user_id="buyer_u",
        agent_id="agent_a",
        offer_amount=300000
    )

    assert offer.status == OfferStatus.PENDING
    assert offer.transaction_id is None
    assert offer.buying_date is None


@pytest.mark.unit
def test_offer_amount_must_be_positive():
    with pytest.raises(ValidationError):
        Offer(offer_id="o1", property_id="p1", user_id="u1", agent_id="a1", offer_amount=0)


@pytest.mark.unit
@pytest.mark.parametrize("current,target,allowed", [
    (OfferStatus.PENDING, OfferStatus.ACCEPTED, True),
    (OfferStatus.PENDING, OfferStatus.REJECTED, True),
    (OfferStatus.ACCEPTED, OfferStatus.PAID, True),
    (OfferStatus.ACCEPTED, OfferStatus.PENDING, False),
    (OfferStatus.PENDING, OfferStatus.PAID, False),
    (OfferStatus.REJECTED, OfferStatus.ACCEPTED, False),
    (OfferStatus.PAID, OfferStatus.REJECTED, False),
])
def test_status_transitions(current, target, allowed):
    assert can_transition(current, target) is allowed


@pytest.mark.unit
def test_terminal_and_winning_statuses():
    assert OfferStatus.PAID.is_terminal
    assert OfferStatus.REJECTED.is_terminal
    assert not OfferStatus.ACCEPTED.is_terminal
    assert OfferStatus.ACCEPTED.is_winning
    assert OfferStatus.PAID.is_winning
    assert not OfferStatus.PENDING.is_winning


@pytest.mark.unit
def test_bid_request_valid():
    bid = BidRequest(agent_id="agent_a", property_id="prop_1", offer_amount="300000")

    assert bid.offer_amount == 300000.0


@pytest.mark.unit
@pytest.mark.parametrize("amount", [0, -5, "abc", True, float("nan"), float("inf"), None])
def test_bid_request_rejects_bad_amounts(amount):
    with pytest.raises(ValidationError):
        BidRequest(agent_id="agent_a", property_id="prop_1", offer_amount=amount)


@pytest.mark.unit
@pytest.mark.parametrize("property_id", ["", "   ", "prop 1", "prop/1", "x" * 65])
def test_bid_request_rejects_malformed_references(property_id):
    with pytest.raises(ValidationError):
        BidRequest(agent_id="agent_a", property_id=property_id, offer_amount=100)


@pytest.mark.unit
def test_status_update_uses_camel_case_aliases_and_ignores_case():
    update = OfferStatusUpdate.model_validate(
        {"offerId": "offer_1", "propertyId": "prop_1", "status": "accepted"}
    )

    assert update.offer_id == "offer_1"
    assert update.property_id == "prop_1"
    assert update.status == OfferStatus.ACCEPTED


@pytest.mark.unit
@pytest.mark.parametrize("status", ["paid", "PENDING", "", 3, None])
def test_status_update_only_accepts_decisions(status):
    with pytest.raises(ValidationError):
        OfferStatusUpdate.model_validate({"offerId": "offer_1", "propertyId": "prop_1", "status": status})


@pytest.mark.unit
def test_payment_intent_offer_id_optional():
    intent = PaymentIntentRequest(price=310000)

    assert intent.offer_id is None


@pytest.mark.unit
def test_payment_confirmation_strips_transaction_id():
    confirmation = PaymentConfirmation(transaction_id="  tx123 ", property_id="prop_1", offer_id="offer_1")

    assert confirmation.transaction_id == "tx123"


@pytest.mark.unit
def test_payment_confirmation_requires_transaction_id():
    with pytest.raises(ValidationError):
        PaymentConfirmation(transaction_id="   ", property_id="prop_1", offer_id="offer_1")
