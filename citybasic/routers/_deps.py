"""Shared helpers for the community routers."""

import json
from typing import TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from citybasic.errors import ValidationFailed

ModelT = TypeVar("ModelT", bound=BaseModel)


async def read_json_object(request: Request) -> dict:
    """Decode the request body as a JSON object, or raise ValidationFailed."""
    raw = await request.body()
    try:
        payload = json.loads(raw.decode("utf-8") or "{}")
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise ValidationFailed("Invalid JSON")
    if not isinstance(payload, dict):
        raise ValidationFailed("Invalid JSON")
    return payload


async def parse_body(request: Request, model: type[ModelT]) -> ModelT:
    """
    Validate the JSON body against `model`.

    Routes call this after auth and rate limiting so the error order stays
    401 -> 429 -> 400 regardless of what the client sent.
    """
    payload = await read_json_object(request)
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ()))
        message = first.get("msg", "Invalid payload")
        raise ValidationFailed(f"{field}: {message}" if field else message)
