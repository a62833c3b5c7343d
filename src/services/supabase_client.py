"""Supabase client wrapper and the Supabase-backed stores."""

from typing import Any, Iterable, Optional
from supabase import create_client, Client
from supabase.client import ClientOptions
from pydantic import ValidationError as SchemaError

from src.models.account import Account, Role
from src.models.offer import Offer, OfferStatus, OfferView
from src.models.property import Property
from src.services.stores import AcceptOutcome, AcceptResult, DuplicateOffer
from src.utils.config import Settings
from src.utils.errors import SupabaseError
from src.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)

PROPERTY_SUMMARY_COLUMNS = "property_id,agent_id,title,location,image,price_range,verification_status"
OFFER_VIEW_SELECT = (
    f"*, property:properties({PROPERTY_SUMMARY_COLUMNS}), "
    "bidder:accounts!offers_user_id_fkey(name,email)"
)


def create_supabase_client(settings: Settings) -> Client:
    """Create a Supabase client from settings. Owned by the process entry point."""
    settings.require("supabase_url", "supabase_service_role_key")

    options = ClientOptions(
        auto_refresh_token=False,
        persist_session=False,
    )
    client = create_client(settings.supabase_url, settings.supabase_service_role_key, options)
    logger.info("Supabase client initialized", url=settings.supabase_url)
    return client


class SupabaseClient:
    """Async context manager around an injected Supabase client."""

    def __init__(self, client: Client):
        self.client = client

    async def __aenter__(self) -> Client:
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                error=str(exc_val),
                type=exc_type.__name__
            )
        return False


def _is_duplicate_key_error(error: Exception) -> bool:
    """Postgres unique_violation surfaced through PostgREST."""
    return getattr(error, "code", None) == "23505" or "duplicate key" in str(error).lower()


def _row(model, row: Any):
    """Parse one row; a row that does not fit the model is a store failure."""
    try:
        return model.model_validate(row)
    except SchemaError as e:
        raise SupabaseError(f"Malformed {model.__name__} row: {e.error_count()} invalid field(s)")


def _first(rows: Optional[list], model):
    return _row(model, rows[0]) if rows else None


class SupabaseAccountStore:
    """Accounts table operations (live role lookups and role changes)."""

    def __init__(self, client: Client):
        self.client = client

    async def get_account(self, account_id: str) -> Optional[Account]:
        async with SupabaseClient(self.client) as client:
            try:
                with log_timing("accounts.get", logger=logger):
                    result = client.table("accounts").select("*").eq("account_id", account_id).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to get account: {e}")
        return _first(result.data, Account)

    async def set_role(self, account_id: str, role: Role, updated_at: str) -> Optional[Account]:
        async with SupabaseClient(self.client) as client:
            try:
                result = client.table("accounts").update({
                    "role": role.value,
                    "updated_at": updated_at
                }).eq("account_id", account_id).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to update account role: {e}")
        return _first(result.data, Account)


class SupabasePropertyStore:
    """Properties table lookups (listing CRUD lives elsewhere)."""

    def __init__(self, client: Client):
        self.client = client

    async def get_property(self, property_id: str) -> Optional[Property]:
        async with SupabaseClient(self.client) as client:
            try:
                result = client.table("properties").select("*").eq("property_id", property_id).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to get property: {e}")
        return _first(result.data, Property)


class SupabaseOfferStore:
    """Offers table operations.

    Single-offer transitions are conditional updates filtered on the expected
    status. Accepting goes through the ``accept_offer`` Postgres function,
    which locks the property's offer rows and writes the accept and the
    sibling rejects in one transaction.
    """

    def __init__(self, client: Client):
        self.client = client

    async def get_offer(self, offer_id: str) -> Optional[Offer]:
        async with SupabaseClient(self.client) as client:
            try:
                result = client.table("offers").select("*").eq("offer_id", offer_id).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to get offer: {e}")
        return _first(result.data, Offer)

    async def find_offer(self, property_id: str, user_id: str) -> Optional[Offer]:
        async with SupabaseClient(self.client) as client:
            try:
                result = (
                    client.table("offers").select("*")
                    .eq("property_id", property_id)
                    .eq("user_id", user_id)
                    .execute()
                )
            except Exception as e:
                raise SupabaseError(f"Failed to find offer: {e}")
        return _first(result.data, Offer)

    async def insert_offer(self, offer: Offer) -> Offer:
        async with SupabaseClient(self.client) as client:
            try:
                result = client.table("offers").insert(offer.model_dump(mode="json")).execute()
            except Exception as e:
                if _is_duplicate_key_error(e):
                    raise DuplicateOffer("offer already exists for this property and bidder")
                raise SupabaseError(f"Failed to insert offer: {e}")
        if not result.data:
            raise SupabaseError("Failed to insert offer: no data returned")
        return _row(Offer, result.data[0])

    async def update_offer_if_status(
        self, offer_id: str, expected: OfferStatus, changes: dict[str, Any]
    ) -> Optional[Offer]:
        async with SupabaseClient(self.client) as client:
            try:
                result = (
                    client.table("offers").update(changes)
                    .eq("offer_id", offer_id)
                    .eq("status", expected.value)
                    .execute()
                )
            except Exception as e:
                raise SupabaseError(f"Failed to update offer: {e}")
        return _first(result.data, Offer)

    async def accept_offer(self, property_id: str, offer_id: str, updated_at: str) -> AcceptResult:
        async with SupabaseClient(self.client) as client:
            try:
                with log_timing("offers.accept", logger=logger, property_id=property_id):
                    result = client.rpc("accept_offer", {
                        "p_property_id": property_id,
                        "p_offer_id": offer_id,
                        "p_updated_at": updated_at
                    }).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to accept offer: {e}")

        payload = result.data
        # PostgREST wraps set-returning results in a list
        if isinstance(payload, list):
            payload = payload[0] if payload else None
        if not isinstance(payload, dict) or "outcome" not in payload:
            raise SupabaseError(f"Unexpected accept_offer response: {payload!r}")

        return AcceptResult(
            outcome=AcceptOutcome(payload["outcome"]),
            offer=_row(Offer, payload["offer"]) if payload.get("offer") else None,
            current_status=payload.get("status"),
            rejected_count=payload.get("rejected") or 0,
        )

    async def has_winning_offer(self, property_id: str) -> bool:
        async with SupabaseClient(self.client) as client:
            try:
                result = (
                    client.table("offers").select("offer_id")
                    .eq("property_id", property_id)
                    .in_("status", [OfferStatus.ACCEPTED.value, OfferStatus.PAID.value])
                    .limit(1)
                    .execute()
                )
            except Exception as e:
                raise SupabaseError(f"Failed to check property winner: {e}")
        return bool(result.data)

    async def list_offers(
        self,
        *,
        user_id: Optional[str] = None,
        agent_id: Optional[str] = None,
        statuses: Iterable[OfferStatus] = (),
    ) -> list[OfferView]:
        async with SupabaseClient(self.client) as client:
            try:
                query = client.table("offers").select(OFFER_VIEW_SELECT)
                if user_id is not None:
                    query = query.eq("user_id", user_id)
                if agent_id is not None:
                    query = query.eq("agent_id", agent_id)
                status_values = [status.value for status in statuses]
                if status_values:
                    query = query.in_("status", status_values)
                result = query.order("created_at", desc=True).execute()
            except Exception as e:
                raise SupabaseError(f"Failed to list offers: {e}")
        return [_row(OfferView, row) for row in (result.data or [])]
