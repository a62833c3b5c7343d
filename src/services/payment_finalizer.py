"""Payment finalizer - starts provider payments and marks accepted offers as paid."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from src.models.offer import Offer, OfferStatus, can_transition
from src.services.payment_provider import PaymentHandle, PaymentProvider
from src.services.stores import OfferStore
from src.utils.errors import Conflict, NotFound, Unauthorized, ValidationError
from src.utils.logging import get_structured_logger, mask_account_id
from src.utils.timestamps import utc_now_iso

logger = get_structured_logger(__name__)


def to_minor_units(amount: float) -> int:
    """Convert a price to the currency's smallest unit (cents)."""
    minor = int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if minor < 1:
        raise ValidationError("price is below the smallest chargeable amount")
    return minor


class PaymentFinalizer:
    """Payment steps of the negotiation; only ACCEPTED offers can be paid."""

    def __init__(self, offers: OfferStore, provider: PaymentProvider, currency: str = "usd"):
        self.offers = offers
        self.provider = provider
        self.currency = currency

    async def _get_bidders_offer(self, offer_id: str, bidder_id: str) -> Offer:
        offer = await self.offers.get_offer(offer_id)
        if offer is None:
            raise NotFound("offer not found")
        if offer.user_id != bidder_id:
            raise Unauthorized("only the bidder can pay for this offer")
        return offer

    async def begin_payment(
        self,
        amount: float,
        bidder_id: str,
        offer_id: Optional[str] = None,
    ) -> PaymentHandle:
        """
        Obtain a client-confirmable payment for the amount.

        Does not touch offer state. When an offer is named it must be the
        bidder's ACCEPTED offer and the amount must match it.
        """
        metadata = {"bidder_id": bidder_id}
        if offer_id is not None:
            offer = await self._get_bidders_offer(offer_id, bidder_id)
            if not can_transition(offer.status, OfferStatus.PAID):
                raise Conflict(f"offer is {offer.status.value}; only accepted offers can be paid")
            if to_minor_units(offer.offer_amount) != to_minor_units(amount):
                raise ValidationError("price does not match the accepted offer amount")
            metadata.update({"offer_id": offer.offer_id, "property_id": offer.property_id})

        handle = await self.provider.create_payment(to_minor_units(amount), self.currency, metadata)
        logger.info(
            "Payment started",
            bidder_id=mask_account_id(bidder_id),
            offer_id=offer_id,
            provider_reference=handle.provider_reference
        )
        return handle

    async def finalize_payment(
        self,
        offer_id: str,
        property_id: str,
        bidder_id: str,
        transaction_id: str,
    ) -> Offer:
        """Mark an ACCEPTED offer as PAID with the provider's transaction id."""
        if not transaction_id or not transaction_id.strip():
            raise ValidationError("transaction_id is required")

        offer = await self._get_bidders_offer(offer_id, bidder_id)
        if offer.property_id != property_id:
            raise ValidationError("offer does not belong to this property")
        if not can_transition(offer.status, OfferStatus.PAID):
            raise Conflict(f"offer is {offer.status.value}; only accepted offers can be paid")

        now = utc_now_iso()
        paid = await self.offers.update_offer_if_status(
            offer_id,
            OfferStatus.ACCEPTED,
            {
                "status": OfferStatus.PAID.value,
                "transaction_id": transaction_id.strip(),
                "buying_date": now,
                "updated_at": now,
            },
        )
        if paid is None:
            raise Conflict("offer was already finalized")

        logger.info(
            "Offer paid",
            offer_id=offer_id,
            property_id=property_id,
            bidder_id=mask_account_id(bidder_id)
        )
        return paid
