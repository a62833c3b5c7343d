"""Bid submission endpoint."""

from src.app import handle_request


def handler(request):
    """POST /bid-property - create or amend the caller's offer on a property."""
    return handle_request("bid_property", request)
