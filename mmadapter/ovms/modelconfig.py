"""The multi-model configuration file and the config status responses of OVMS."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

__all__ = [
    "ModelConfigEntry",
    "ModelVersionStatus",
    "dump_repository_config",
    "load_repository_config",
    "parse_config_response",
    "parse_error_response",
]


def _reject_constant(name: str) -> float:
    raise ValueError(f"invalid JSON constant {name}")


def _loads(text: str | bytes) -> Any:
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except UnicodeDecodeError as exc:
        raise ValueError(str(exc)) from exc


def _object(value: Any, what: str) -> dict[str, Any]:
    """Return ``value`` as a JSON object; ``null`` becomes an empty one."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{what} must be a JSON object, found {value!r}")
    return value


def _list(value: Any, what: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{what} must be a JSON array, found {value!r}")
    return value


def _string(obj: dict[str, Any], key: str) -> str:
    value = obj.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string, found {value!r}")
    return value


@dataclass
class ModelConfigEntry:
    """One model in the multi-model configuration file."""

    name: str = ""
    base_path: str = ""
    target_device: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the entry in the file's ``{"config": {...}}`` form."""
        return {
            "config": {
                "name": self.name,
                "base_path": self.base_path,
                "target_device": self.target_device,
            }
        }

    @classmethod
    def from_dict(cls, data: Any) -> ModelConfigEntry:
        """Build an entry from its ``{"config": {...}}`` form."""
        config = _object(_object(data, "model config entry").get("config"), "'config'")
        return cls(
            name=_string(config, "name"),
            base_path=_string(config, "base_path"),
            target_device=_string(config, "target_device"),
        )


@dataclass
class ModelVersionStatus:
    """State of one version of a model as reported by the server."""

    version: str = ""
    state: str = ""
    error_code: str = ""
    error_message: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> ModelVersionStatus:
        """Build a status from a ``model_version_status`` element."""
        obj = _object(data, "model version status")
        status = _object(obj.get("status"), "'status'")
        return cls(
            version=_string(obj, "version"),
            state=_string(obj, "state"),
            error_code=_string(status, "error_code"),
            error_message=_string(status, "error_message"),
        )


def dump_repository_config(entries: list[ModelConfigEntry]) -> str:
    """Serialise entries as a compact ``{"model_config_list": [...]}`` document."""
    document = {"model_config_list": [entry.to_dict() for entry in entries]}
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False)


def load_repository_config(text: str | bytes) -> list[ModelConfigEntry]:
    """Parse a multi-model configuration file into its entries."""
    document = _object(_loads(text), "model config document")
    items = _list(document.get("model_config_list"), "'model_config_list'")
    return [ModelConfigEntry.from_dict(item) for item in items]


def parse_config_response(text: str | bytes) -> dict[str, list[ModelVersionStatus]]:
    """Parse a config status response into version statuses keyed by model name."""
    document = _object(_loads(text), "config response")
    result: dict[str, list[ModelVersionStatus]] = {}
    for name, model in document.items():
        model_obj = _object(model, f"status of model {name!r}")
        statuses = _list(model_obj.get("model_version_status"), "'model_version_status'")
        result[name] = [ModelVersionStatus.from_dict(item) for item in statuses]
    return result


def parse_error_response(text: str | bytes) -> str:
    """Return the ``error`` message of an error response."""
    return _string(_object(_loads(text), "error response"), "error")