"""Tests for the payment finalizer."""

import pytest

from src.models.offer import OfferStatus
from src.services.payment_finalizer import to_minor_units
from src.utils.errors import Conflict, NotFound, Unauthorized, UpstreamError, ValidationError
from tests.fixtures.marketplace import AGENT_A, BUYER_U, BUYER_V, P1, P2
from tests.utils.factories import create_offer


@pytest.mark.unit
@pytest.mark.parametrize("amount,expected", [
    (310000, 31000000),
    (19.99, 1999),
    (0.015, 2),
    (0.01, 1),
])
def test_to_minor_units(amount, expected):
    assert to_minor_units(amount) == expected


@pytest.mark.unit
def test_to_minor_units_rejects_sub_cent():
    with pytest.raises(ValidationError):
        to_minor_units(0.001)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_begin_payment_without_offer(finalizer, mock_payment_provider, memory_db):
    handle = await finalizer.begin_payment(310000, BUYER_V)

    assert handle.client_secret == "pi_123_secret_abc"
    mock_payment_provider.create_payment.assert_awaited_once_with(31000000, "usd", {"bidder_id": BUYER_V})
    assert memory_db.offers == {}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_begin_payment_for_accepted_offer(finalizer, mock_payment_provider, memory_db):
    offer = memory_db.add_offer(create_offer(P1, BUYER_V, AGENT_A, status=OfferStatus.ACCEPTED, offer_amount=310000))

    await finalizer.begin_payment(310000, BUYER_V, offer.offer_id)

    args = mock_payment_provider.create_payment.await_args.args
    assert args[2]["offer_id"] == offer.offer_id
    assert args[2]["property_id"] == P1
    assert memory_db.offers[offer.offer_id].status == OfferStatus.ACCEPTED


@pytest.mark.unit
@pytest.mark.asyncio
async def test_begin_payment_for_pending_offer_is_conflict(finalizer, mock_payment_provider, memory_db):
    offer = memory_db.add_offer(create_offer(P1, BUYER_V, AGENT_A, offer_amount=310000))

    with pytest.raises(Conflict):
        await finalizer.begin_payment(310000, BUYER_V, offer.offer_id)
    mock_payment_provider.create_payment.assert_not_awaited()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_begin_payment_amount_must_match_offer(finalizer, memory_db):
    offer = memory_db.add_offer(create_offer(P1, BUYER_V, AGENT_A, status=OfferStatus.ACCEPTED, offer_amount=310000))

    with pytest.raises(ValidationError):
        await finalizer.begin_payment(1000, BUYER_V, offer.offer_id)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_begin_payment_for_someone_elses_offer(finalizer, memory_db):
    offer = memory_db.add_offer(create_offer(P1, BUYER_V, AGENT_A, status=OfferStatus.ACCEPTED, offer_amount=310000))

    with pytest.raises(Unauthorized):
        await finalizer.begin_payment(310000, BUYER_U, offer.offer_id)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_begin_payment_propagates_upstream_error(finalizer, mock_payment_provider):
    mock_payment_provider.create_payment.side_effect = UpstreamError("card network down")

    with pytest.raises(UpstreamError):
        await finalizer.begin_payment(100, BUYER_V)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_finalize_accepted_offer(finalizer, memory_db, freeze_time_fixture):
    offer = memory_db.add_offer(create_offer(P1, BUYER_V, AGENT_A, status=OfferStatus.ACCEPTED))

    paid = await finalizer.finalize_payment(offer.offer_id, P1, BUYER_V, "tx123")

    assert paid.status == OfferStatus.PAID
    assert paid.transaction_id == "tx123"
    assert paid.buying_date == "2024-12-09T12:00:00+00:00"
    assert memory_db.offers[offer.offer_id].status == OfferStatus.PAID


@pytest.mark.unit
@pytest.mark.asyncio
async def test_finalize_stamps_one_time(finalizer, memory_db):
    offer = memory_db.add_offer(create_offer(P1, BUYER_V, AGENT_A, status=OfferStatus.ACCEPTED))

    paid = await finalizer.finalize_payment(offer.offer_id, P1, BUYER_V, "tx123")

    assert paid.buying_date is not None
    assert paid.buying_date == paid.updated_at


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize("status", [OfferStatus.PENDING, OfferStatus.REJECTED, OfferStatus.PAID])
async def test_finalize_requires_accepted(finalizer, memory_db, status):
    offer = memory_db.add_offer(create_offer(P1, BUYER_V, AGENT_A, status=status))
    before = memory_db.offers[offer.offer_id]

    with pytest.raises(Conflict):
        await finalizer.finalize_payment(offer.offer_id, P1, BUYER_V, "tx999")

    assert memory_db.offers[offer.offer_id] == before


@pytest.mark.unit
@pytest.mark.asyncio
async def test_finalize_replay_is_conflict(finalizer, memory_db):
    offer = memory_db.add_offer(create_offer(P1, BUYER_V, AGENT_A, status=OfferStatus.ACCEPTED))
    await finalizer.finalize_payment(offer.offer_id, P1, BUYER_V, "tx123")

    with pytest.raises(Conflict):
        await finalizer.finalize_payment(offer.offer_id, P1, BUYER_V, "tx456")

    assert memory_db.offers[offer.offer_id].transaction_id == "tx123"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_finalize_checks_bidder_and_property(finalizer, memory_db):
    offer = memory_db.add_offer(create_offer(P1, BUYER_V, AGENT_A, status=OfferStatus.ACCEPTED))

    with pytest.raises(Unauthorized):
        await finalizer.finalize_payment(offer.offer_id, P1, BUYER_U, "tx123")
    with pytest.raises(ValidationError):
        await finalizer.finalize_payment(offer.offer_id, P2, BUYER_V, "tx123")
    with pytest.raises(NotFound):
        await finalizer.finalize_payment("offer_missing", P1, BUYER_V, "tx123")

    assert memory_db.offers[offer.offer_id].status == OfferStatus.ACCEPTED
