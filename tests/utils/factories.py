"""Test data factories using Faker."""

from faker import Faker
from typing import Optional

from src.models.account import Account, Role
from src.models.offer import Offer, OfferStatus
from src.models.property import Property, VerificationStatus

fake = Faker()


def _text_id(prefix: str) -> str:
    return f"{prefix}_{fake.uuid4().replace('-', '')[:20]}"


def create_account(account_id: Optional[str] = None, role: Role = Role.USER) -> Account:
    """Create a test account."""
    return Account(
        account_id=account_id or _text_id("acct"),
        email=fake.unique.email(),
        name=fake.name(),
        role=role,
        created_at=fake.iso8601(),
    )


def create_property(
    agent_id: str,
    property_id: Optional[str] = None,
    verification_status: VerificationStatus = VerificationStatus.VERIFIED
) -> Property:
    """Create a test property listing."""
    return Property(
        property_id=property_id or _text_id("prop"),
        agent_id=agent_id,
        verification_status=verification_status,
        title=fake.sentence(nb_words=3),
        location=fake.city(),
        image=fake.image_url(),
        price_range=f"{fake.random_int(min=100, max=400)}k-{fake.random_int(min=401, max=900)}k",
    )


def create_offer(
    property_id: str,
    user_id: str,
    agent_id: str,
    status: OfferStatus = OfferStatus.PENDING,
    offer_amount: Optional[float] = None,
    offer_id: Optional[str] = None
) -> Offer:
    """Create a test offer record."""
    created_at = fake.iso8601()
    return Offer(
        offer_id=offer_id or _text_id("offer"),
        property_id=property_id,
        user_id=user_id,
        agent_id=agent_id,
        offer_amount=offer_amount or float(fake.random_int(min=100000, max=2000000)),
        status=status,
        created_at=created_at,
        updated_at=created_at,
    )
