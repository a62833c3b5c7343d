"""Store interfaces shared by the Supabase and in-memory backends."""

from enum import Enum
from typing import Any, Iterable, Optional, Protocol
from pydantic import BaseModel

from src.models.account import Account, Role
from src.models.offer import Offer, OfferStatus, OfferView
from src.models.property import Property
from src.utils.errors import Conflict


class DuplicateOffer(Conflict):
    """An offer already exists for this (property, bidder) pair."""
    pass


class AcceptOutcome(str, Enum):
    """Result of the atomic accept-and-reject-siblings operation."""
    ACCEPTED = "accepted"
    NOT_FOUND = "not_found"
    NOT_PENDING = "not_pending"
    ALREADY_SOLD = "already_sold"


class AcceptResult(BaseModel):
    outcome: AcceptOutcome
    offer: Optional[Offer] = None
    current_status: Optional[OfferStatus] = None
    rejected_count: int = 0


class AccountStore(Protocol):
    async def get_account(self, account_id: str) -> Optional[Account]: ...

    async def set_role(self, account_id: str, role: Role, updated_at: str) -> Optional[Account]: ...


class PropertyStore(Protocol):
    async def get_property(self, property_id: str) -> Optional[Property]: ...


class OfferStore(Protocol):
    async def get_offer(self, offer_id: str) -> Optional[Offer]: ...

    async def find_offer(self, property_id: str, user_id: str) -> Optional[Offer]: ...

    async def insert_offer(self, offer: Offer) -> Offer:
        """Insert a new offer; raises DuplicateOffer on a (property, bidder) collision."""
        ...

    async def update_offer_if_status(
        self, offer_id: str, expected: OfferStatus, changes: dict[str, Any]
    ) -> Optional[Offer]:
        """Apply changes only if the offer's status is still `expected`; None if not."""
        ...

    async def accept_offer(self, property_id: str, offer_id: str, updated_at: str) -> AcceptResult:
        """Accept one PENDING offer and reject its PENDING siblings in one atomic step."""
        ...

    async def has_winning_offer(self, property_id: str) -> bool: ...

    async def list_offers(
        self,
        *,
        user_id: Optional[str] = None,
        agent_id: Optional[str] = None,
        statuses: Iterable[OfferStatus] = (),
    ) -> list[OfferView]: ...
