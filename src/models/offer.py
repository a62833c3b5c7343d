"""Offer models - purchase offers and the requests that drive them."""

from enum import Enum
from typing import Annotated, Any, Optional
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StringConstraints, field_validator

from src.models.account import Role


Identifier = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_-]+$"),
]


class OfferStatus(str, Enum):
    """Offer lifecycle states."""
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    PAID = "PAID"

    @property
    def is_terminal(self) -> bool:
        return self in (OfferStatus.REJECTED, OfferStatus.PAID)

    @property
    def is_winning(self) -> bool:
        return self in (OfferStatus.ACCEPTED, OfferStatus.PAID)


# Allowed single-offer transitions; sibling auto-reject happens only inside accept
TRANSITIONS: dict[OfferStatus, frozenset[OfferStatus]] = {
    OfferStatus.PENDING: frozenset({OfferStatus.ACCEPTED, OfferStatus.REJECTED}),
    OfferStatus.ACCEPTED: frozenset({OfferStatus.PAID}),
    OfferStatus.REJECTED: frozenset(),
    OfferStatus.PAID: frozenset(),
}


def can_transition(current: OfferStatus, target: OfferStatus) -> bool:
    """Check whether an offer may move from current to target."""
    return target in TRANSITIONS[current]


def _reject_bool(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError("amount must be a number")
    return value


Amount = Annotated[float, BeforeValidator(_reject_bool), Field(gt=0, allow_inf_nan=False)]


class Offer(BaseModel):
    """Offer model - one bidder's offer on one property."""
    offer_id: str = Field(..., description="Offer ID (ULID text)")
    property_id: str = Field(..., description="Property ID (text FK)")
    user_id: str = Field(..., description="Bidder account ID (text FK)")
    agent_id: str = Field(..., description="Owning agent at creation time (text FK)")
    offer_amount: float = Field(..., gt=0, description="Offered price")
    status: OfferStatus = Field(default=OfferStatus.PENDING, description="PENDING, ACCEPTED, REJECTED, PAID")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    transaction_id: Optional[str] = Field(None, description="Payment provider transaction ID")
    buying_date: Optional[str] = Field(None, description="When payment was finalized")


class OfferView(Offer):
    """Offer joined with its property and bidder for display."""
    property: Optional[dict[str, Any]] = Field(None, description="Property summary")
    bidder: Optional[dict[str, Any]] = Field(None, description="Bidder name/email")


class BidRequest(BaseModel):
    """POST /bid-property body."""
    agent_id: Identifier
    property_id: Identifier
    offer_amount: Amount


class OfferStatusUpdate(BaseModel):
    """PATCH /offered-property/update body."""
    model_config = ConfigDict(populate_by_name=True)

    offer_id: Identifier = Field(..., alias="offerId")
    property_id: Identifier = Field(..., alias="propertyId")
    status: OfferStatus

    @field_validator("status", mode="before")
    @classmethod
    def _decision_only(cls, value: Any) -> Any:
        """Agents may only answer with accepted or rejected."""
        if not isinstance(value, str):
            raise ValueError("status must be 'accepted' or 'rejected'")
        normalized = value.strip().upper()
        if normalized not in (OfferStatus.ACCEPTED.value, OfferStatus.REJECTED.value):
            raise ValueError("status must be 'accepted' or 'rejected'")
        return normalized


class PaymentIntentRequest(BaseModel):
    """POST /create-payment-intent body."""
    price: Amount
    offer_id: Optional[Identifier] = None


class PaymentConfirmation(BaseModel):
    """PATCH /payment body."""
    transaction_id: str = Field(..., min_length=1, max_length=255)
    property_id: Identifier
    offer_id: Identifier

    @field_validator("transaction_id")
    @classmethod
    def _strip_transaction_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("transaction_id must not be blank")
        return value


class RoleUpdate(BaseModel):
    """PATCH /users/role body."""
    account_id: Identifier
    role: Role

    @field_validator("role", mode="before")
    @classmethod
    def _upper_role(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value
