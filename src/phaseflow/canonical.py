from __future__ import annotations

import hashlib
from enum import Enum
from typing import Any

import rfc8785
from pydantic import BaseModel


def _to_json_primitives(value: Any) -> Any:
    """Reduce pydantic models, enums and containers to what rfc8785 accepts.

    Raises:
        TypeError: If a value has no JSON representation.
    """
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, Enum):
        return _to_json_primitives(value.value)
    if isinstance(value, dict):
        return {str(key): _to_json_primitives(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_json_primitives(item) for item in value]
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    raise TypeError(f"Cannot serialize type {type(value).__name__} to canonical JSON")


def to_canonical_json(value: Any) -> str:
    """Serialize ``value`` to RFC 8785 canonical JSON."""
    return rfc8785.dumps(_to_json_primitives(value)).decode("utf-8")


def fingerprint(value: Any) -> str:
    """SHA-256 hex digest of the canonical JSON form of ``value``."""
    return hashlib.sha256(to_canonical_json(value).encode("utf-8")).hexdigest()
