"""Offer listing endpoint."""

from src.app import handle_request


def handler(request):
    """GET /offered-properties - buyers see their own offers, agents see offers on their listings."""
    return handle_request("offered_properties", request)
