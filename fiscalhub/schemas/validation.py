"""Input parsing helpers: pydantic errors -> one joined, user-facing message."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

M = TypeVar("M", bound=BaseModel)


def error_message(exc: ValidationError) -> str:
    """Join the messages of every failed field with ', '."""
    messages = []
    for err in exc.errors():
        msg = str(err.get("msg", ""))
        # pydantic prefixes custom ValueError messages
        messages.append(msg.removeprefix("Value error, "))
    return ", ".join(m for m in messages if m)


def parse_input(model: type[M], data: M | dict[str, Any]) -> tuple[M | None, str | None]:
    """Validate data against model. Returns (instance, None) or (None, message)."""
    if isinstance(data, model):
        return data, None
    try:
        return model.model_validate(data), None
    except ValidationError as e:
        return None, error_message(e)
