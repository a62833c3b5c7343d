"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import AsyncMock
from freezegun import freeze_time

# Set test environment variables before application modules read them
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_123")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("LOG_FORMAT", "text")

from src import app as app_module
from src.services.authorization import AuthorizationGate
from src.services.memory_store import (
    InMemoryAccountStore,
    InMemoryOfferStore,
    InMemoryPropertyStore,
    MemoryDatabase,
)
from src.services.negotiation import NegotiationService
from src.services.offer_ledger import OfferLedger
from src.services.payment_finalizer import PaymentFinalizer
from src.services.payment_provider import PaymentHandle
from src.services.token_verifier import TokenVerifier
from src.utils.config import Settings
from tests.fixtures.marketplace import seed_marketplace
from tests.utils.helpers import TEST_JWT_SECRET


@pytest.fixture
def memory_db():
    """In-memory database seeded with accounts and listings."""
    return seed_marketplace(MemoryDatabase())


@pytest.fixture
def account_store(memory_db):
    return InMemoryAccountStore(memory_db)


@pytest.fixture
def property_store(memory_db):
    return InMemoryPropertyStore(memory_db)


@pytest.fixture
def offer_store(memory_db):
    return InMemoryOfferStore(memory_db)


@pytest.fixture
def ledger(offer_store, property_store):
    return OfferLedger(offer_store, property_store)


@pytest.fixture
def mock_payment_provider():
    """Payment provider double returning a fixed client secret."""
    provider = AsyncMock()
    provider.create_payment = AsyncMock(
        return_value=PaymentHandle(client_secret="pi_123_secret_abc", provider_reference="pi_123")
    )
    return provider


@pytest.fixture
def finalizer(offer_store, mock_payment_provider):
    return PaymentFinalizer(offer_store, mock_payment_provider, "usd")


@pytest.fixture
def verifier():
    return TokenVerifier(TEST_JWT_SECRET)


@pytest.fixture
def gate(verifier, account_store):
    return AuthorizationGate(verifier, account_store)


@pytest.fixture
def service(gate, ledger, finalizer, account_store):
    return NegotiationService(gate, ledger, finalizer, account_store)


@pytest.fixture
def test_settings():
    return Settings(
        environment="test",
        store_backend="memory",
        jwt_secret=TEST_JWT_SECRET,
        stripe_secret_key="sk_test_123",
    )


@pytest.fixture
def installed_service(test_settings, memory_db, mock_payment_provider):
    """Install a memory-backed service as the process-wide instance used by api/ handlers."""
    service = app_module.build_service(test_settings, db=memory_db, provider=mock_payment_provider)
    app_module.set_service(service)
    yield service
    app_module.set_service(None)


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time
