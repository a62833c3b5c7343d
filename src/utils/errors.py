"""Error handling utilities."""

from typing import Optional


class EstateHiveError(Exception):
    """Base exception for EstateHive backend."""
    status_code = 500
    public_message = "internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message

    def to_body(self) -> dict:
        """Body returned to the client for this error."""
        return {"error": self.message}


class Unauthenticated(EstateHiveError):
    """No credential, or the credential failed verification."""
    status_code = 401
    public_message = "unauthorized access"


class Unauthorized(EstateHiveError):
    """Valid credential, but the caller's live role does not allow the operation."""
    status_code = 403
    public_message = "forbidden access"


class ValidationError(EstateHiveError):
    """Malformed request input."""
    status_code = 400
    public_message = "invalid request"

    def __init__(self, message: Optional[str] = None, details: Optional[list] = None):
        super().__init__(message)
        self.details = details

    def to_body(self) -> dict:
        body = super().to_body()
        if self.details:
            body["details"] = self.details
        return body


class NotFound(EstateHiveError):
    """Referenced entity does not exist."""
    status_code = 404
    public_message = "not found"


class Conflict(EstateHiveError):
    """Invalid state transition."""
    status_code = 409
    public_message = "conflict"


class UpstreamError(EstateHiveError):
    """External payment provider failure."""
    status_code = 502
    public_message = "payment provider error"


class InternalError(EstateHiveError):
    """Unexpected failure; details are never sent to the client."""
    pass


class SupabaseError(InternalError):
    """Supabase operation error."""

    def to_body(self) -> dict:
        return {"error": self.public_message}


class ConfigurationError(InternalError):
    """Required setting is missing or invalid."""

    def to_body(self) -> dict:
        return {"error": self.public_message}
