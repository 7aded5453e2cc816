# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import Any, TypeVar

from flask import request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .base import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def format_pydantic_errors(exc: PydanticValidationError) -> dict[str, Any]:
    """Reduce pydantic errors to field paths and error types, never input values."""
    fields: set[str] = set()
    errors: list[dict[str, str]] = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error.get("loc", ()))
        if path:
            fields.add(path)
        errors.append({"field": path or "unknown", "type": error.get("type", "value_error")})
    return {"fields": sorted(fields), "errors": errors}


def parse_json_body(model: type[ModelT]) -> ModelT:
    """Validate the current request's JSON body against ``model``.

    A missing or non-JSON body is validated as an empty object so that the
    client gets the list of required fields back.
    """
    try:
        return model.model_validate(request.get_json(silent=True) or {})
    except PydanticValidationError as exc:
        raise ValidationError(context=format_pydantic_errors(exc)) from exc


__all__ = [
    "format_pydantic_errors",
    "parse_json_body",
]
