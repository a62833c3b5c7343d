"""Test helper functions."""

import json
import time
from typing import Any, Dict, Optional
import jwt

TEST_JWT_SECRET = "test-jwt-secret"


def make_token(
    account_id: str,
    email: str = "user@example.com",
    role: Optional[str] = "USER",
    secret: str = TEST_JWT_SECRET,
    expires_in: int = 3600,
    **extra: Any
) -> str:
    """Issue an HS256 bearer token the way the auth service does."""
    now = int(time.time())
    payload = {"sub": account_id, "email": email, "iat": now, "exp": now + expires_in}
    if role is not None:
        payload["role"] = role
    payload.update(extra)
    return jwt.encode(payload, secret, algorithm="HS256")


def bearer(token: str) -> str:
    return f"Bearer {token}"


def create_vercel_request(
    method: str = "GET",
    path: str = "/",
    body: Any = None,
    headers: Dict[str, str] = None,
    query: Dict[str, str] = None
) -> Dict[str, Any]:
    """Create a Vercel request object for testing."""
    if headers is None:
        headers = {"content-type": "application/json"}

    return {
        "method": method,
        "path": path,
        "headers": headers,
        "body": json.dumps(body) if isinstance(body, dict) else body,
        "query": query or {}
    }


def authed_request(
    token: str,
    method: str = "GET",
    path: str = "/",
    body: Any = None,
    query: Dict[str, str] = None
) -> Dict[str, Any]:
    """Vercel request carrying a bearer credential."""
    return create_vercel_request(
        method=method,
        path=path,
        body=body,
        headers={"content-type": "application/json", "Authorization": bearer(token)},
        query=query
    )
