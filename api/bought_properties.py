"""Sold listing endpoint."""

from src.app import handle_request


def handler(request):
    """GET /bought-properties - paid offers on the calling agent's properties."""
    return handle_request("bought_properties", request)
