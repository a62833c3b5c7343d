"""Account model - marketplace users and their roles."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class Role(str, Enum):
    """Account roles."""
    USER = "USER"
    AGENT = "AGENT"
    ADMIN = "ADMIN"

    @classmethod
    def parse(cls, value: str) -> "Role":
        """Parse a role name case-insensitively ('agent' -> Role.AGENT)."""
        return cls(str(value).strip().upper())


class Account(BaseModel):
    """Account model - identity plus the authoritative role."""
    account_id: str = Field(..., description="Account ID (text)")
    email: str = Field(..., description="Email address (unique)")
    name: Optional[str] = Field(None, description="Display name")
    role: Role = Field(default=Role.USER, description="Role: USER, AGENT, ADMIN")
    image: Optional[str] = Field(None, description="Profile image URL")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Caller(BaseModel):
    """Caller identity resolved by the authorization gate."""
    account_id: str
    email: str
    role: Role
