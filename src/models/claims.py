"""Identity claims decoded from a bearer credential."""

from typing import Optional
from pydantic import BaseModel, Field

from src.models.account import Role


class IdentityClaims(BaseModel):
    """Verified credential contents."""
    subject: str = Field(..., min_length=1, description="Account ID the credential was issued to")
    email: str = Field(..., description="Email at issuance")
    role_snapshot: Optional[Role] = Field(
        None,
        description="Role at issuance; advisory only, never used for authorization"
    )
    issued_at: Optional[int] = None
    expires_at: Optional[int] = None
