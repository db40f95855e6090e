# Overview: Request payload helpers shared by the orchestrator and routes.

from __future__ import annotations

from typing import Any

from .errors import ValidationError


def as_payload(payload: Any) -> dict:
    """None -> {}, dict passes through, anything else is rejected."""
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object", details={"body": "must be an object"})
    return payload


def parse_id(value: Any, field: str, *, required: bool = True) -> int | None:
    """
    Strict positive integer id.

    Rejects bools, floats and non-digit strings (e.g. "1e3").
    """
    if value is None or value == "":
        if required:
            raise ValidationError(f"{field} is required", details={field: "required"})
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer", details={field: "must be an integer"})
    if isinstance(value, int):
        result = value
    elif isinstance(value, str) and value.strip().isdigit():
        result = int(value.strip())
    else:
        raise ValidationError(f"{field} must be an integer", details={field: "must be an integer"})
    if result <= 0:
        raise ValidationError(f"{field} must be positive", details={field: "must be positive"})
    return result


def optional_id(payload: dict, field: str) -> int | None:
    return parse_id(payload.get(field), field, required=False)
