"""Account role endpoint."""

from src.app import handle_request
from src.utils.http import json_response


def handler(request):
    """
    GET /users/role - the caller's live role.
    PATCH /users/role - admins set another account's role.
    """
    method = (request.get("method") or "GET").upper()
    if method == "GET":
        return handle_request("get_role", request)
    if method == "PATCH":
        return handle_request("update_role", request)
    return json_response(405, {"error": "method not allowed"}, {"Allow": "GET, PATCH"})
