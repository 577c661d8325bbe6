"""Interpretation of the JSON model key carried by load requests."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

__all__ = ["LoadModelRequest", "get_model_type", "get_schema_path", "calc_mem_capacity"]

logger = logging.getLogger(__name__)

MODEL_TYPE_KEY = "model_type"
SCHEMA_PATH_KEY = "schema_path"
DISK_SIZE_BYTES_KEY = "disk_size_bytes"


@dataclass
class LoadModelRequest:
    """A request to load one model into the runtime."""

    model_id: str = ""
    model_path: str = ""
    model_type: str = ""
    model_key: str = ""


def _reject_constant(name: str) -> float:
    raise ValueError(f"invalid JSON constant {name}")


def _parse_model_key(model_key: str) -> dict[str, Any]:
    """Parse the model key as a JSON object; ``null`` yields an empty mapping."""
    data = json.loads(model_key, parse_constant=_reject_constant)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, found {type(data).__name__}")
    return data


def get_model_type(request: LoadModelRequest) -> str:
    """Return the model type named in the model key, else ``request.model_type``.

    The key's ``model_type`` may be a string or an object with a string ``name``.
    """
    try:
        model_key = _parse_model_key(request.model_key)
    except ValueError as exc:
        logger.info(
            "Model type falls back to the request's model type as the model key is not valid JSON: "
            "model_type=%r model_key=%r error=%s",
            request.model_type, request.model_key, exc,
        )
        return request.model_type

    value = model_key.get(MODEL_TYPE_KEY)
    if value is None:
        logger.info(
            "Model type falls back to the request's model type as the model key has no %r attribute",
            MODEL_TYPE_KEY,
        )
        return request.model_type
    if isinstance(value, dict):
        name = value.get("name")
        if isinstance(name, str):
            return name
        logger.info(
            "Model type falls back to the request's model type as the %r name is not a string: %r",
            MODEL_TYPE_KEY, value,
        )
        return request.model_type
    if isinstance(value, str):
        return value
    logger.info(
        "Model type falls back to the request's model type as %r is neither a string nor an object: %r",
        MODEL_TYPE_KEY, value,
    )
    return request.model_type


def get_schema_path(request: LoadModelRequest) -> str:
    """Return the schema path from the model key, or ``""`` when absent."""
    try:
        model_key = _parse_model_key(request.model_key)
    except ValueError as exc:
        raise ValueError(
            f"Invalid modelKey in LoadModelRequest. ModelKey value '{request.model_key}' "
            f"is not valid JSON: {exc}"
        ) from exc

    value = model_key.get(SCHEMA_PATH_KEY)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(
            f"Invalid schemaPath in LoadModelRequest, '{SCHEMA_PATH_KEY}' attribute must have "
            f"a string value. Found value {value!r}"
        )
    return value


def calc_mem_capacity(model_key: str, default_size: int, multiplier: float) -> int:
    """Estimate a model's memory size from ``disk_size_bytes`` times ``multiplier``.

    Falls back to ``default_size`` when the key holds no usable disk size.
    """
    size = int(default_size)
    try:
        parsed = _parse_model_key(model_key)
    except ValueError as exc:
        logger.info(
            "Size defaulted to %d as the model key is not valid JSON: model_key=%r error=%s",
            size, model_key, exc,
        )
        return size

    disk_size = parsed.get(DISK_SIZE_BYTES_KEY)
    if disk_size is None:
        logger.info("Size defaulted to %d as the model key has no %r", size, DISK_SIZE_BYTES_KEY)
        return size
    if isinstance(disk_size, bool) or not isinstance(disk_size, (int, float)):
        logger.info(
            "Size defaulted to %d as %r is not a number: %r", size, DISK_SIZE_BYTES_KEY, disk_size
        )
        return size

    size = int(float(disk_size) * multiplier)
    logger.info(
        "Size set to a multiple of the model disk size: size=%d disk_size=%s multiplier=%s",
        size, disk_size, multiplier,
    )
    return size