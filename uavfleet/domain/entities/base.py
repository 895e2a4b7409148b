from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Frozen model that reads the API's camelCase payloads.

    Field names stay snake_case in Python; ``populate_by_name`` keeps
    construction by field name working in code and tests.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def ensure_utc(value: Any) -> Any:
    """Treat naive timestamps as UTC and convert aware ones to UTC."""
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return value


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
