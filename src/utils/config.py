"""Application settings loaded from environment variables."""

import os
from typing import Literal, Optional
from pydantic import BaseModel, Field

from src.utils.errors import ConfigurationError


class Settings(BaseModel):
    """Runtime configuration for the negotiation service."""
    environment: str = Field(default="production", description="Deployment environment name")
    store_backend: Literal["supabase", "memory"] = Field(
        default="supabase",
        description="Store implementation: supabase (production) or memory (local/test)"
    )
    supabase_url: Optional[str] = Field(None, description="Supabase project URL")
    supabase_service_role_key: Optional[str] = Field(None, description="Supabase service role key")
    jwt_secret: Optional[str] = Field(None, description="Shared secret for HS256 bearer tokens")
    jwt_algorithm: str = Field(default="HS256", description="Bearer token signing algorithm")
    stripe_secret_key: Optional[str] = Field(None, description="Stripe API secret key")
    payment_currency: str = Field(default="usd", min_length=3, max_length=3)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        return cls(
            environment=os.environ.get("ENVIRONMENT", "production").lower(),
            store_backend=os.environ.get("STORE_BACKEND", "supabase").lower(),
            supabase_url=os.environ.get("SUPABASE_URL") or None,
            supabase_service_role_key=os.environ.get("SUPABASE_SERVICE_ROLE_KEY") or None,
            # ACCESS_TOKEN_SECRET is the name the token issuer uses
            jwt_secret=(
                os.environ.get("JWT_SECRET") or os.environ.get("ACCESS_TOKEN_SECRET") or ""
            ).strip() or None,
            jwt_algorithm=os.environ.get("JWT_ALGORITHM", "HS256"),
            stripe_secret_key=os.environ.get("STRIPE_SECRET_KEY") or None,
            payment_currency=os.environ.get("PAYMENT_CURRENCY", "usd").lower(),
        )

    def require(self, *names: str) -> None:
        """Raise ConfigurationError if any named setting is empty."""
        missing = [name for name in names if not getattr(self, name)]
        if missing:
            env_names = ", ".join(name.upper() for name in missing)
            raise ConfigurationError(f"{env_names} must be set")
