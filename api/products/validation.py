"""
Product payload validation.

`validate_product` / `validate_update_product` return the first violated rule
as a single message (or None). The `parse_*` variants raise
`ValidationError` with that message and otherwise hand back the typed model,
so route code never touches the raw body again.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from core.errors import ValidationError

from .schemas import NON_NULLABLE_FIELDS, ProductCreate, ProductUpdate

_TYPE_MESSAGES = {
    "string_type": "must be a string",
    "float_type": "must be a number",
    "float_parsing": "must be a number",
    "int_type": "must be an integer",
    "int_parsing": "must be an integer",
    "int_from_float": "must be an integer",
    "finite_number": "must be a finite number",
    "missing": "is required",
    "extra_forbidden": "is not allowed",
    "string_too_short": "must not be empty",
}


def _format_error(error: dict[str, Any]) -> str:
    loc = error.get("loc") or ()
    kind = str(error.get("type") or "")
    ctx = error.get("ctx") or {}

    if not loc:
        return "payload must be a JSON object"

    field = f'"{loc[0]}"'
    if kind == "greater_than_equal":
        return f"{field} must be greater than or equal to {ctx.get('ge')}"
    if kind == "less_than_equal":
        return f"{field} must be less than or equal to {ctx.get('le')}"
    if kind == "less_than":
        return f"{field} must be less than {ctx.get('lt')}"
    if kind == "string_too_long":
        return f"{field} must be at most {ctx.get('max_length')} characters"
    if kind in _TYPE_MESSAGES:
        return f"{field} {_TYPE_MESSAGES[kind]}"
    return f"{field} {error.get('msg', 'is invalid')}"


def _first_error(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "payload is invalid"
    return _format_error(errors[0])


def parse_product_create(payload: Any) -> ProductCreate:
    if not isinstance(payload, dict):
        raise ValidationError("payload must be a JSON object")
    try:
        return ProductCreate.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(_first_error(exc)) from exc


def parse_product_update(payload: Any) -> ProductUpdate:
    if not isinstance(payload, dict):
        raise ValidationError("payload must be a JSON object")
    if not payload:
        raise ValidationError("at least one field must be provided")

    for name in NON_NULLABLE_FIELDS:
        if name in payload and payload[name] is None:
            raise ValidationError(f'"{name}" must not be null')

    try:
        return ProductUpdate.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(_first_error(exc)) from exc


def validate_product(payload: Any) -> str | None:
    try:
        parse_product_create(payload)
    except ValidationError as exc:
        return exc.message
    return None


def validate_update_product(payload: Any) -> str | None:
    try:
        parse_product_update(payload)
    except ValidationError as exc:
        return exc.message
    return None
