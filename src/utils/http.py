"""Helpers for Vercel-style request/response dicts."""

import asyncio
import json
from typing import Any, Optional

from src.utils.errors import ValidationError


def get_header(request: dict, name: str) -> Optional[str]:
    """Case-insensitive header lookup."""
    headers = request.get("headers") or {}
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def get_query_flag(request: dict, name: str) -> bool:
    """Read a boolean query parameter ('true', '1', 'yes')."""
    query = request.get("query") or {}
    value = query.get(name)
    if isinstance(value, list):
        value = value[0] if value else None
    return str(value).lower() in ("true", "1", "yes") if value is not None else False


def parse_json_body(request: dict) -> dict:
    """Return the request body as a dict; raw strings are parsed as JSON."""
    body = request.get("body")
    if body is None or body == "":
        return {}
    if isinstance(body, (bytes, bytearray)):
        body = body.decode("utf-8")
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            raise ValidationError("request body must be valid JSON")
    if not isinstance(body, dict):
        raise ValidationError("request body must be a JSON object")
    return body


def json_response(status_code: int, payload: Any, headers: Optional[dict] = None) -> dict:
    """Build a Vercel function response."""
    response_headers = {"Content-Type": "application/json"}
    if headers:
        response_headers.update(headers)
    return {
        "statusCode": status_code,
        "headers": response_headers,
        "body": json.dumps(payload)
    }


def run_async(coro):
    """Run a coroutine to completion from a synchronous function handler."""
    try:
        loop = asyncio.get_event_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    if loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)
