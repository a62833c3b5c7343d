"""Stripe payment provider adapter."""

import asyncio
from typing import Optional, Protocol
import stripe
from pydantic import BaseModel

from src.utils.errors import ConfigurationError, UpstreamError
from src.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)


class PaymentHandle(BaseModel):
    """Client-confirmable payment created by the provider."""
    client_secret: str
    provider_reference: Optional[str] = None


class PaymentProvider(Protocol):
    async def create_payment(
        self, amount_minor: int, currency: str, metadata: Optional[dict[str, str]] = None
    ) -> PaymentHandle: ...


class StripePaymentProvider:
    """Creates card PaymentIntents; the client confirms them with the returned secret."""

    def __init__(self, api_key: str):
        if not api_key:
            raise ConfigurationError("STRIPE_SECRET_KEY must be set")
        self.api_key = api_key

    async def create_payment(
        self, amount_minor: int, currency: str, metadata: Optional[dict[str, str]] = None
    ) -> PaymentHandle:
        try:
            with log_timing("stripe.payment_intent.create", logger=logger, amount_minor=amount_minor):
                # stripe-python is blocking
                intent = await asyncio.to_thread(
                    stripe.PaymentIntent.create,
                    api_key=self.api_key,
                    amount=amount_minor,
                    currency=currency,
                    payment_method_types=["card"],
                    metadata=metadata or {},
                )
        except stripe.StripeError as e:
            logger.error(
                "Stripe PaymentIntent creation failed",
                error_type=type(e).__name__,
                http_status=getattr(e, "http_status", None)
            )
            raise UpstreamError("payment provider could not create a payment")

        client_secret = getattr(intent, "client_secret", None)
        if not client_secret:
            raise UpstreamError("payment provider returned no client secret")

        return PaymentHandle(client_secret=client_secret, provider_reference=getattr(intent, "id", None))
