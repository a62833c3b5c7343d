"""Bearer credential verification (HS256 JWTs issued by the auth service)."""

from typing import Optional
import jwt

from src.models.account import Role
from src.models.claims import IdentityClaims
from src.utils.errors import ConfigurationError, Unauthenticated
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

BEARER_PREFIX = "bearer "


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Pull the token out of an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        raise Unauthenticated("missing authorization header")
    if not authorization.lower().startswith(BEARER_PREFIX):
        raise Unauthenticated("authorization header must use the Bearer scheme")
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise Unauthenticated("missing bearer token")
    return token


class TokenVerifier:
    """Verifies signature and expiry and decodes identity claims."""

    def __init__(self, secret: str, algorithm: str = "HS256", leeway_seconds: int = 0):
        if not secret:
            raise ConfigurationError("JWT_SECRET must be set")
        self.secret = secret
        self.algorithm = algorithm
        self.leeway_seconds = leeway_seconds

    def verify(self, token: str) -> IdentityClaims:
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
                leeway=self.leeway_seconds,
            )
        except jwt.ExpiredSignatureError:
            raise Unauthenticated("token expired")
        except jwt.InvalidTokenError as e:
            logger.warning("Bearer token rejected", reason=type(e).__name__)
            raise Unauthenticated("invalid token")

        role_snapshot = None
        raw_role = payload.get("role")
        if raw_role:
            try:
                role_snapshot = Role.parse(raw_role)
            except ValueError:
                # Advisory only; an unknown snapshot does not invalidate the identity
                logger.warning("Unknown role snapshot in token", role=str(raw_role))

        return IdentityClaims(
            subject=str(payload["sub"]),
            email=payload.get("email") or "",
            role_snapshot=role_snapshot,
            issued_at=payload.get("iat"),
            expires_at=payload.get("exp"),
        )

    def verify_header(self, authorization: Optional[str]) -> IdentityClaims:
        return self.verify(extract_bearer_token(authorization))
