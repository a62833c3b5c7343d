"""Offer ledger - creation, amendment, acceptance and rejection of offers."""

import math
import re
from ulid import ULID

from src.models.offer import Offer, OfferStatus, OfferView, can_transition
from src.models.property import Property, VerificationStatus
from src.services.stores import AcceptOutcome, AcceptResult, DuplicateOffer, OfferStore, PropertyStore
from src.utils.errors import Conflict, NotFound, Unauthorized, ValidationError
from src.utils.logging import get_structured_logger, mask_account_id
from src.utils.timestamps import utc_now_iso

logger = get_structured_logger(__name__)

_REFERENCE_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")

VISIBLE_STATUSES = (OfferStatus.PENDING, OfferStatus.ACCEPTED, OfferStatus.PAID)
ALL_STATUSES = tuple(OfferStatus)


def generate_offer_id() -> str:
    """Generate a text-based offer ID (ULID format)."""
    return str(ULID())


def _check_reference(name: str, value: object) -> str:
    if not isinstance(value, str) or not _REFERENCE_PATTERN.match(value):
        raise ValidationError(f"{name} is malformed")
    return value


def _check_amount(amount: object) -> float:
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise ValidationError("offer_amount must be a number")
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError("offer_amount must be positive")
    return float(amount)


class OfferLedger:
    """Owns offer state transitions and the one-winner-per-property rule."""

    def __init__(self, offers: OfferStore, properties: PropertyStore):
        self.offers = offers
        self.properties = properties

    async def _get_property(self, property_id: str) -> Property:
        prop = await self.properties.get_property(property_id)
        if prop is None:
            raise NotFound("property not found")
        return prop

    async def _get_owned_property(self, property_id: str, acting_agent_id: str) -> Property:
        prop = await self._get_property(property_id)
        if prop.agent_id != acting_agent_id:
            logger.warning(
                "Agent acted on a property they do not own",
                property_id=property_id,
                agent_id=mask_account_id(acting_agent_id)
            )
            raise Unauthorized("only the listing agent can decide offers on this property")
        return prop

    async def submit_offer(
        self,
        property_id: str,
        bidder_id: str,
        agent_id: str,
        amount: float,
    ) -> tuple[Offer, bool]:
        """
        Create or amend the bidder's offer on a property.

        Returns (offer, created). Amending is only allowed while the offer is
        PENDING.
        """
        _check_reference("property_id", property_id)
        _check_reference("bidder_id", bidder_id)
        _check_reference("agent_id", agent_id)
        amount = _check_amount(amount)

        prop = await self._get_property(property_id)
        if prop.agent_id != agent_id:
            raise ValidationError("agent_id does not match the property's listing agent")
        if prop.verification_status != VerificationStatus.VERIFIED:
            raise Conflict("property is not open for offers")

        existing = await self.offers.find_offer(property_id, bidder_id)
        if existing is None:
            if await self.offers.has_winning_offer(property_id):
                raise Conflict("property already has an accepted offer")

            now = utc_now_iso()
            offer = Offer(
                offer_id=generate_offer_id(),
                property_id=property_id,
                user_id=bidder_id,
                agent_id=prop.agent_id,
                offer_amount=amount,
                status=OfferStatus.PENDING,
                created_at=now,
                updated_at=now,
            )
            try:
                created = await self.offers.insert_offer(offer)
            except DuplicateOffer:
                # Lost a race with a concurrent first bid from the same bidder
                existing = await self.offers.find_offer(property_id, bidder_id)
                if existing is None:
                    raise
            else:
                logger.info(
                    "Offer created",
                    offer_id=created.offer_id,
                    property_id=property_id,
                    bidder_id=mask_account_id(bidder_id),
                    offer_amount=amount
                )
                return created, True

        return await self._amend(existing, amount), False

    async def _amend(self, existing: Offer, amount: float) -> Offer:
        if existing.status != OfferStatus.PENDING:
            raise Conflict(f"offer is {existing.status.value} and can no longer be amended")

        updated = await self.offers.update_offer_if_status(
            existing.offer_id,
            OfferStatus.PENDING,
            {"offer_amount": amount, "updated_at": utc_now_iso()},
        )
        if updated is None:
            raise Conflict("offer was decided while being amended")

        logger.info(
            "Offer amended",
            offer_id=updated.offer_id,
            property_id=updated.property_id,
            previous_amount=existing.offer_amount,
            offer_amount=amount
        )
        return updated

    async def accept_offer(self, property_id: str, offer_id: str, acting_agent_id: str) -> AcceptResult:
        """Accept a PENDING offer and reject every other PENDING offer on the property."""
        _check_reference("property_id", property_id)
        _check_reference("offer_id", offer_id)
        await self._get_owned_property(property_id, acting_agent_id)

        result = await self.offers.accept_offer(property_id, offer_id, utc_now_iso())

        if result.outcome == AcceptOutcome.NOT_FOUND:
            raise NotFound("offer not found for this property")
        if result.outcome == AcceptOutcome.NOT_PENDING:
            status = result.current_status.value if result.current_status else "not pending"
            raise Conflict(f"offer is {status} and cannot be accepted")
        if result.outcome == AcceptOutcome.ALREADY_SOLD:
            raise Conflict("property already has an accepted offer")

        logger.info(
            "Offer accepted",
            offer_id=offer_id,
            property_id=property_id,
            rejected_siblings=result.rejected_count
        )
        return result

    async def reject_offer(self, property_id: str, offer_id: str, acting_agent_id: str) -> Offer:
        """Reject a PENDING offer."""
        _check_reference("property_id", property_id)
        _check_reference("offer_id", offer_id)
        await self._get_owned_property(property_id, acting_agent_id)

        offer = await self.offers.get_offer(offer_id)
        if offer is None or offer.property_id != property_id:
            raise NotFound("offer not found for this property")
        if not can_transition(offer.status, OfferStatus.REJECTED):
            raise Conflict(f"offer is {offer.status.value} and cannot be rejected")

        updated = await self.offers.update_offer_if_status(
            offer_id,
            OfferStatus.PENDING,
            {"status": OfferStatus.REJECTED.value, "updated_at": utc_now_iso()},
        )
        if updated is None:
            raise Conflict("offer was decided concurrently")

        logger.info("Offer rejected", offer_id=offer_id, property_id=property_id)
        return updated

    async def list_offers_for_user(self, user_id: str, include_rejected: bool = False) -> list[OfferView]:
        statuses = ALL_STATUSES if include_rejected else VISIBLE_STATUSES
        return await self.offers.list_offers(user_id=user_id, statuses=statuses)

    async def list_offers_for_agent(self, agent_id: str, include_rejected: bool = False) -> list[OfferView]:
        statuses = ALL_STATUSES if include_rejected else VISIBLE_STATUSES
        return await self.offers.list_offers(agent_id=agent_id, statuses=statuses)

    async def list_all_offers(self, include_rejected: bool = False) -> list[OfferView]:
        """Every offer in the marketplace, for administrators."""
        statuses = ALL_STATUSES if include_rejected else VISIBLE_STATUSES
        return await self.offers.list_offers(statuses=statuses)

    async def list_sold_for_agent(self, agent_id: str) -> list[OfferView]:
        """PAID offers on the agent's properties."""
        return await self.offers.list_offers(agent_id=agent_id, statuses=(OfferStatus.PAID,))
