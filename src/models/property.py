"""Property model - listings that offers are made against."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class VerificationStatus(str, Enum):
    """Admin verification state of a listing."""
    UNVERIFIED = "UNVERIFIED"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


class Property(BaseModel):
    """Real estate listing, owned by one agent."""
    property_id: str = Field(..., description="Property ID (text)")
    agent_id: str = Field(..., description="Owning agent account ID (text FK)")
    verification_status: VerificationStatus = Field(
        default=VerificationStatus.UNVERIFIED,
        description="Verification: UNVERIFIED, VERIFIED, REJECTED"
    )
    title: Optional[str] = Field(None, description="Listing title")
    location: Optional[str] = Field(None, description="Property location")
    image: Optional[str] = Field(None, description="Listing image URL")
    price_range: Optional[str] = Field(None, description="Advertised price range")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
