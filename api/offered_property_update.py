"""Offer decision endpoint."""

from src.app import handle_request


def handler(request):
    """PATCH /offered-property/update - the listing agent accepts or rejects an offer."""
    return handle_request("update_offer_status", request)
