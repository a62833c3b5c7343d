"""Negotiation service - request boundary for offers, payments and roles."""

from typing import Any, Awaitable, Callable, Optional, Type, TypeVar
from pydantic import BaseModel, ValidationError as SchemaError

from src.models.account import Account, Caller, Role
from src.models.offer import BidRequest, OfferStatus, OfferStatusUpdate, PaymentConfirmation, PaymentIntentRequest, RoleUpdate
from src.services.authorization import AuthorizationGate, Capability
from src.services.offer_ledger import OfferLedger
from src.services.payment_finalizer import PaymentFinalizer
from src.services.stores import AccountStore
from src.utils.errors import Conflict, EstateHiveError, InternalError, NotFound, ValidationError
from src.utils.http import get_header, get_query_flag, json_response, parse_json_body
from src.utils.logging import correlation_context, get_structured_logger, mask_account_id
from src.utils.logging_config import LoggingConfig
from src.utils.timestamps import utc_now_iso

logger = get_structured_logger(__name__)

Operation = Callable[[dict], Awaitable[Any]]
Body = TypeVar("Body", bound=BaseModel)


def _schema_errors(error: SchemaError) -> list[dict]:
    return [
        {"field": ".".join(str(part) for part in item["loc"]), "message": item["msg"]}
        for item in error.errors(include_url=False, include_context=False, include_input=False)
    ]


def _parse(model: Type[Body], request: dict) -> Body:
    """Validate the request body against a request model."""
    try:
        return model.model_validate(parse_json_body(request))
    except SchemaError as e:
        logger.info("Request validation failed", model=model.__name__, error_count=e.error_count())
        raise ValidationError("invalid request", details=_schema_errors(e))


class NegotiationService:
    """Maps each endpoint to a capability check plus a ledger or finalizer call."""

    def __init__(
        self,
        gate: AuthorizationGate,
        ledger: OfferLedger,
        finalizer: PaymentFinalizer,
        accounts: AccountStore,
    ):
        self.gate = gate
        self.ledger = ledger
        self.finalizer = finalizer
        self.accounts = accounts
        self.operations: dict[str, Operation] = {
            "bid_property": self.bid_property,
            "offered_properties": self.offered_properties,
            "bought_properties": self.bought_properties,
            "update_offer_status": self.update_offer_status,
            "create_payment_intent": self.create_payment_intent,
            "confirm_payment": self.confirm_payment,
            "get_role": self.get_role,
            "update_role": self.update_role,
        }

    async def _authorize(self, request: dict, capability: Capability) -> Caller:
        return await self.gate.authorize(get_header(request, "Authorization"), capability)

    async def bid_property(self, request: dict) -> dict:
        """POST /bid-property"""
        caller = await self._authorize(request, Capability.USER)
        bid = _parse(BidRequest, request)
        offer, created = await self.ledger.submit_offer(
            bid.property_id, caller.account_id, bid.agent_id, bid.offer_amount
        )
        return {
            "acknowledged": True,
            "created": created,
            "modified_count": 0 if created else 1,
            "offer": offer.model_dump(mode="json"),
        }

    async def offered_properties(self, request: dict) -> list[dict]:
        """GET /offered-properties - buyers see their offers, agents see offers on their listings, admins see all."""
        caller = await self._authorize(request, Capability.AUTHENTICATED)
        include_rejected = get_query_flag(request, "include_rejected")
        if caller.role == Role.USER:
            views = await self.ledger.list_offers_for_user(caller.account_id, include_rejected)
        elif caller.role == Role.AGENT:
            views = await self.ledger.list_offers_for_agent(caller.account_id, include_rejected)
        else:
            views = await self.ledger.list_all_offers(include_rejected)
        return [view.model_dump(mode="json") for view in views]

    async def bought_properties(self, request: dict) -> list[dict]:
        """GET /bought-properties"""
        caller = await self._authorize(request, Capability.AGENT)
        views = await self.ledger.list_sold_for_agent(caller.account_id)
        return [view.model_dump(mode="json") for view in views]

    async def update_offer_status(self, request: dict) -> dict:
        """PATCH /offered-property/update"""
        caller = await self._authorize(request, Capability.AGENT)
        update = _parse(OfferStatusUpdate, request)

        if update.status == OfferStatus.ACCEPTED:
            result = await self.ledger.accept_offer(update.property_id, update.offer_id, caller.account_id)
            return {
                "message": "Offer accepted",
                "offer": result.offer.model_dump(mode="json"),
                "rejected_count": result.rejected_count,
            }

        offer = await self.ledger.reject_offer(update.property_id, update.offer_id, caller.account_id)
        return {
            "message": "Offer rejected",
            "offer": offer.model_dump(mode="json"),
            "rejected_count": 0,
        }

    async def create_payment_intent(self, request: dict) -> dict:
        """POST /create-payment-intent"""
        caller = await self._authorize(request, Capability.USER)
        intent = _parse(PaymentIntentRequest, request)
        handle = await self.finalizer.begin_payment(intent.price, caller.account_id, intent.offer_id)
        return {"clientSecret": handle.client_secret}

    async def confirm_payment(self, request: dict) -> dict:
        """PATCH /payment"""
        caller = await self._authorize(request, Capability.USER)
        confirmation = _parse(PaymentConfirmation, request)
        offer = await self.finalizer.finalize_payment(
            confirmation.offer_id,
            confirmation.property_id,
            caller.account_id,
            confirmation.transaction_id,
        )
        return {
            "acknowledged": True,
            "modified_count": 1,
            "offer": offer.model_dump(mode="json"),
        }

    async def get_role(self, request: dict) -> dict:
        """GET /users/role"""
        caller = await self._authorize(request, Capability.AUTHENTICATED)
        return {"role": caller.role.value}

    async def update_role(self, request: dict) -> dict:
        """PATCH /users/role - admins promote or demote other accounts."""
        caller = await self._authorize(request, Capability.ADMIN)
        update = _parse(RoleUpdate, request)
        if update.account_id == caller.account_id:
            raise Conflict("admins cannot change their own role")

        account: Optional[Account] = await self.accounts.set_role(update.account_id, update.role, utc_now_iso())
        if account is None:
            raise NotFound("account not found")

        logger.info(
            "Account role changed",
            account_id=mask_account_id(account.account_id),
            role=account.role.value,
            changed_by=mask_account_id(caller.account_id)
        )
        return {"account": account.model_dump(mode="json")}

    async def handle(self, operation: str, request: dict) -> dict:
        """Run an operation and translate its outcome into a response dict."""
        header_name = LoggingConfig.LOG_CORRELATION_ID_HEADER
        with correlation_context(get_header(request, header_name)) as correlation_id:
            trace = {header_name: correlation_id}
            try:
                payload = await self.operations[operation](request)
                return json_response(200, payload, trace)
            except InternalError as e:
                logger.error(f"Internal error in {operation}: {e}", exc_info=True, operation=operation)
                return json_response(e.status_code, e.to_body(), trace)
            except EstateHiveError as e:
                logger.info(
                    "Request refused",
                    operation=operation,
                    status_code=e.status_code,
                    reason=e.message
                )
                return json_response(e.status_code, e.to_body(), trace)
            except Exception as e:
                logger.error(f"Unexpected error in {operation}: {e}", exc_info=True, operation=operation)
                return json_response(500, {"error": "internal server error"}, trace)
