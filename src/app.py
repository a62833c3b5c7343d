"""Process entry point: builds the negotiation service and serves function requests."""

from typing import Optional
from pydantic import ValidationError as SchemaError

from src.services.authorization import AuthorizationGate
from src.services.memory_store import InMemoryAccountStore, InMemoryOfferStore, InMemoryPropertyStore, MemoryDatabase
from src.services.negotiation import NegotiationService
from src.services.offer_ledger import OfferLedger
from src.services.payment_finalizer import PaymentFinalizer
from src.services.payment_provider import PaymentProvider, StripePaymentProvider
from src.services.supabase_client import (
    SupabaseAccountStore,
    SupabaseOfferStore,
    SupabasePropertyStore,
    create_supabase_client,
)
from src.services.token_verifier import TokenVerifier
from src.utils.config import Settings
from src.utils.errors import EstateHiveError
from src.utils.http import json_response, run_async
from src.utils.logging import get_structured_logger
from src.utils.logging_config import LoggingConfig

logger = get_structured_logger(__name__)

# operation -> HTTP method it is served on
OPERATION_METHODS = {
    "bid_property": "POST",
    "offered_properties": "GET",
    "bought_properties": "GET",
    "update_offer_status": "PATCH",
    "create_payment_intent": "POST",
    "confirm_payment": "PATCH",
    "get_role": "GET",
    "update_role": "PATCH",
}

_service: Optional[NegotiationService] = None


def build_service(
    settings: Settings,
    *,
    db: Optional[MemoryDatabase] = None,
    provider: Optional[PaymentProvider] = None,
) -> NegotiationService:
    """Wire stores, verifier, provider and service together."""
    settings.require("jwt_secret")

    if settings.store_backend == "memory":
        db = db or MemoryDatabase()
        accounts = InMemoryAccountStore(db)
        properties = InMemoryPropertyStore(db)
        offers = InMemoryOfferStore(db)
    else:
        client = create_supabase_client(settings)
        accounts = SupabaseAccountStore(client)
        properties = SupabasePropertyStore(client)
        offers = SupabaseOfferStore(client)

    if provider is None:
        provider = StripePaymentProvider(settings.stripe_secret_key)

    verifier = TokenVerifier(settings.jwt_secret, settings.jwt_algorithm)
    gate = AuthorizationGate(verifier, accounts)
    ledger = OfferLedger(offers, properties)
    finalizer = PaymentFinalizer(offers, provider, settings.payment_currency)

    logger.info(
        "Negotiation service built",
        store_backend=settings.store_backend,
        environment=settings.environment
    )
    return NegotiationService(gate, ledger, finalizer, accounts)


def get_service() -> NegotiationService:
    """Return the process-wide service, building it on first use."""
    global _service
    if _service is None:
        LoggingConfig.ensure_configured()
        _service = build_service(Settings.from_env())
    return _service


def set_service(service: Optional[NegotiationService]) -> None:
    """Install (or clear, with None) the process-wide service."""
    global _service
    _service = service


def handle_request(operation: str, request: dict) -> dict:
    """Synchronous entry used by the api/ function handlers."""
    expected_method = OPERATION_METHODS[operation]
    method = (request.get("method") or expected_method).upper()
    if method != expected_method:
        return json_response(405, {"error": "method not allowed"}, {"Allow": expected_method})

    try:
        service = get_service()
    except (EstateHiveError, SchemaError) as e:
        logger.error(f"Service initialization failed: {e}", exc_info=True)
        return json_response(500, {"error": "service initialization failed"})

    return run_async(service.handle(operation, request))
