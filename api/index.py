"""Root endpoint."""

from src.utils.http import json_response

BANNER = "EstateHive is a Real Estate Website"


def handler(request):
    """GET / - static banner."""
    return json_response(200, {"message": BANNER})
