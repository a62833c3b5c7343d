"""Health check endpoint."""

import os

from src.utils.http import json_response

SERVICE_NAME = "estatehive-backend"


def handler(request):
    """Liveness probe; never touches the store."""
    method = (request.get("method") or "GET").upper()
    if method not in ("GET", "HEAD"):
        return json_response(405, {"error": "method not allowed"}, {"Allow": "GET, HEAD"})
    return json_response(200, {
        "status": "ok",
        "service": SERVICE_NAME,
        "environment": os.environ.get("ENVIRONMENT", "production"),
    })
