"""Payment intent endpoint."""

from src.app import handle_request


def handler(request):
    """POST /create-payment-intent - start a card payment and return its client secret."""
    return handle_request("create_payment_intent", request)
