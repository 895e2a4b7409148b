"""Shared helpers for turning API payloads into domain models."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Mapping, Optional, Protocol, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError
from pydantic.alias_generators import to_camel

from uavfleet.infrastructure.errors import APIError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class ClientProto(Protocol):
    def get(self, path: str, params: Mapping[str, Any] | None = None) -> Any: ...

    def post(
        self, path: str, data: Any = None, params: Mapping[str, Any] | None = None
    ) -> Any: ...

    def put(
        self, path: str, data: Any = None, params: Mapping[str, Any] | None = None
    ) -> Any: ...

    def delete(self, path: str, params: Mapping[str, Any] | None = None) -> Any: ...


def default_client(client: Optional[ClientProto]) -> ClientProto:
    if client is not None:
        return client
    # Lazy import so tests injecting a fake client never build a requests session
    from uavfleet.infrastructure.fleet_api_client import FleetAPIClient as _Client

    return _Client()


def parse_model(model: type[M], payload: Any, *, key: str | None = None) -> M:
    """Validate ``payload`` (or ``payload[key]``) as ``model``.

    Schema mismatches surface as ``APIError`` so callers handle a single error
    family for everything that comes back from the server.
    """
    data = payload
    if key is not None and isinstance(payload, Mapping) and key in payload:
        data = payload[key]
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except SchemaError as exc:
        raise APIError(
            f"Unexpected {model.__name__} payload: {exc.error_count()} validation error(s)",
            details={"errors": exc.errors(include_url=False)},
        ) from exc


def parse_list(model: type[M], payload: Any, *, key: str | None = None) -> list[M]:
    """Validate a list payload item by item, skipping malformed entries."""
    items = payload
    if isinstance(payload, Mapping):
        if key is not None:
            items = payload.get(key)
        else:
            items = payload.get("items") or payload.get("data")
    if not isinstance(items, list):
        return []

    out: list[M] = []
    for index, item in enumerate(items):
        try:
            out.append(model.model_validate(item))
        except SchemaError as exc:
            logger.warning(
                "Skipping malformed %s at index %d: %s",
                model.__name__,
                index,
                exc.errors(include_url=False)[0].get("msg") if exc.error_count() else exc,
            )
    return out


def to_api_payload(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Translate snake_case keys to the API's camelCase and flatten enums."""
    out: dict[str, Any] = {}
    for name, value in changes.items():
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, BaseModel):
            value = value.model_dump(mode="json", by_alias=True, exclude_none=True)
        out[to_camel(name)] = value
    return out


def safe_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def schema_error_text(exc: SchemaError) -> str:
    """``field: message`` for the first error of a failed validation."""
    errors = exc.errors(include_url=False)
    if not errors:
        return str(exc)
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "value"
    return f"{field}: {first.get('msg', 'invalid value')}"
