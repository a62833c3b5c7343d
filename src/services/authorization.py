"""Role-based authorization gate.

The credential names an identity only. The role that decides access is read
from the accounts store on every gated call, so a promotion or demotion takes
effect immediately even for tokens issued before it.
"""

from enum import Enum
from typing import Optional

from src.models.account import Caller, Role
from src.services.stores import AccountStore
from src.services.token_verifier import TokenVerifier
from src.utils.errors import Unauthenticated, Unauthorized
from src.utils.logging import get_structured_logger, mask_account_id, mask_email

logger = get_structured_logger(__name__)


class Capability(str, Enum):
    """What an operation requires of its caller."""
    AUTHENTICATED = "AUTHENTICATED"
    ADMIN = "ADMIN"
    AGENT = "AGENT"
    USER = "USER"

    @property
    def required_role(self) -> Optional[Role]:
        if self is Capability.AUTHENTICATED:
            return None
        return Role(self.value)


class AuthorizationGate:
    """Resolves a caller from a credential and checks it against a capability."""

    def __init__(self, verifier: TokenVerifier, accounts: AccountStore):
        self.verifier = verifier
        self.accounts = accounts

    async def authorize(self, authorization: Optional[str], capability: Capability) -> Caller:
        claims = self.verifier.verify_header(authorization)

        account = await self.accounts.get_account(claims.subject)
        if account is None:
            logger.warning(
                "Credential subject has no account",
                account_id=mask_account_id(claims.subject)
            )
            raise Unauthenticated("unknown account")

        if claims.role_snapshot is not None and claims.role_snapshot != account.role:
            logger.info(
                "Role changed since credential was issued",
                account_id=mask_account_id(account.account_id),
                role_snapshot=claims.role_snapshot.value,
                live_role=account.role.value
            )

        required = capability.required_role
        if required is not None and account.role != required:
            logger.warning(
                "Authorization denied",
                account_id=mask_account_id(account.account_id),
                email=mask_email(account.email),
                required_role=required.value,
                live_role=account.role.value
            )
            raise Unauthorized(f"{required.value.lower()} role required")

        return Caller(account_id=account.account_id, email=account.email, role=account.role)
