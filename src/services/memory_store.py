"""In-memory stores for local development and tests.

All mutating operations run under one asyncio.Lock, so every call is atomic
with respect to other tasks on the same event loop.
"""

import asyncio
from typing import Any, Iterable, Optional

from src.models.account import Account, Role
from src.models.offer import Offer, OfferStatus, OfferView, can_transition
from src.models.property import Property
from src.services.stores import AcceptOutcome, AcceptResult, DuplicateOffer


class MemoryDatabase:
    """Shared tables for the in-memory stores."""

    def __init__(self):
        self.accounts: dict[str, Account] = {}
        self.properties: dict[str, Property] = {}
        self.offers: dict[str, Offer] = {}
        self._lock: Optional[asyncio.Lock] = None

    @property
    def lock(self) -> asyncio.Lock:
        # Created lazily so the lock binds to the loop that first uses it
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    def add_account(self, account: Account) -> Account:
        self.accounts[account.account_id] = account
        return account

    def add_property(self, prop: Property) -> Property:
        self.properties[prop.property_id] = prop
        return prop

    def add_offer(self, offer: Offer) -> Offer:
        self.offers[offer.offer_id] = offer
        return offer

    def offers_on(self, property_id: str) -> list[Offer]:
        return [offer for offer in self.offers.values() if offer.property_id == property_id]


class InMemoryAccountStore:
    def __init__(self, db: MemoryDatabase):
        self.db = db

    async def get_account(self, account_id: str) -> Optional[Account]:
        return self.db.accounts.get(account_id)

    async def set_role(self, account_id: str, role: Role, updated_at: str) -> Optional[Account]:
        async with self.db.lock:
            account = self.db.accounts.get(account_id)
            if account is None:
                return None
            updated = account.model_copy(update={"role": role, "updated_at": updated_at})
            self.db.accounts[account_id] = updated
            return updated


class InMemoryPropertyStore:
    def __init__(self, db: MemoryDatabase):
        self.db = db

    async def get_property(self, property_id: str) -> Optional[Property]:
        return self.db.properties.get(property_id)


class InMemoryOfferStore:
    def __init__(self, db: MemoryDatabase):
        self.db = db

    async def get_offer(self, offer_id: str) -> Optional[Offer]:
        return self.db.offers.get(offer_id)

    async def find_offer(self, property_id: str, user_id: str) -> Optional[Offer]:
        for offer in self.db.offers.values():
            if offer.property_id == property_id and offer.user_id == user_id:
                return offer
        return None

    async def insert_offer(self, offer: Offer) -> Offer:
        async with self.db.lock:
            if await self.find_offer(offer.property_id, offer.user_id) is not None:
                raise DuplicateOffer("offer already exists for this property and bidder")
            return self.db.add_offer(offer)

    async def update_offer_if_status(
        self, offer_id: str, expected: OfferStatus, changes: dict[str, Any]
    ) -> Optional[Offer]:
        async with self.db.lock:
            offer = self.db.offers.get(offer_id)
            if offer is None or offer.status != expected:
                return None
            updated = Offer.model_validate({**offer.model_dump(), **changes})
            self.db.offers[offer_id] = updated
            return updated

    async def accept_offer(self, property_id: str, offer_id: str, updated_at: str) -> AcceptResult:
        async with self.db.lock:
            target = self.db.offers.get(offer_id)
            if target is None or target.property_id != property_id:
                return AcceptResult(outcome=AcceptOutcome.NOT_FOUND)
            if not can_transition(target.status, OfferStatus.ACCEPTED):
                return AcceptResult(outcome=AcceptOutcome.NOT_PENDING, current_status=target.status)

            siblings = [o for o in self.db.offers_on(property_id) if o.offer_id != offer_id]
            if any(o.status.is_winning for o in siblings):
                return AcceptResult(outcome=AcceptOutcome.ALREADY_SOLD, current_status=target.status)

            accepted = target.model_copy(update={"status": OfferStatus.ACCEPTED, "updated_at": updated_at})
            self.db.offers[offer_id] = accepted
            rejected = 0
            for sibling in siblings:
                if sibling.status == OfferStatus.PENDING:
                    self.db.offers[sibling.offer_id] = sibling.model_copy(
                        update={"status": OfferStatus.REJECTED, "updated_at": updated_at}
                    )
                    rejected += 1
            return AcceptResult(outcome=AcceptOutcome.ACCEPTED, offer=accepted, rejected_count=rejected)

    async def has_winning_offer(self, property_id: str) -> bool:
        return any(o.status.is_winning for o in self.db.offers_on(property_id))

    async def list_offers(
        self,
        *,
        user_id: Optional[str] = None,
        agent_id: Optional[str] = None,
        statuses: Iterable[OfferStatus] = (),
    ) -> list[OfferView]:
        wanted = set(statuses)
        views = []
        for offer in self.db.offers.values():
            if user_id is not None and offer.user_id != user_id:
                continue
            if agent_id is not None and offer.agent_id != agent_id:
                continue
            if wanted and offer.status not in wanted:
                continue
            views.append(self._join(offer))
        views.sort(key=lambda view: view.created_at or "", reverse=True)
        return views

    def _join(self, offer: Offer) -> OfferView:
        prop = self.db.properties.get(offer.property_id)
        bidder = self.db.accounts.get(offer.user_id)
        return OfferView(
            **offer.model_dump(),
            property=prop.model_dump(mode="json") if prop else None,
            bidder={"name": bidder.name, "email": bidder.email} if bidder else None,
        )
