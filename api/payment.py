"""Payment confirmation endpoint."""

from src.app import handle_request


def handler(request):
    """PATCH /payment - record the provider transaction and mark the offer paid."""
    return handle_request("confirm_payment", request)
