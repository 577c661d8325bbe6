"""Model input and output tensor schema, a subset of the KServe v2 model metadata."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

__all__ = ["MODEL_SCHEMA_FILE", "Datatype", "TensorMetadata", "ModelSchema", "load_schema"]

MODEL_SCHEMA_FILE = "_schema.json"


class Datatype(str, Enum):
    """Tensor datatypes, including the STRING extension."""

    BYTES = "BYTES"
    BOOL = "BOOL"
    UINT8 = "UINT8"
    UINT16 = "UINT16"
    UINT32 = "UINT32"
    UINT64 = "UINT64"
    INT8 = "INT8"
    INT16 = "INT16"
    INT32 = "INT32"
    INT64 = "INT64"
    FP16 = "FP16"
    FP32 = "FP32"
    FP64 = "FP64"
    STRING = "STRING"


@dataclass
class TensorMetadata:
    """Name, datatype and shape of one tensor."""

    name: str = ""
    datatype: str = ""
    shape: list[int] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the tensor description as a JSON-ready mapping."""
        datatype = self.datatype.value if isinstance(self.datatype, Datatype) else self.datatype
        shape = None if self.shape is None else list(self.shape)
        return {"name": self.name, "datatype": datatype, "shape": shape}


@dataclass
class ModelSchema:
    """Inputs and outputs of a model; ``None`` means the list is absent."""

    inputs: list[TensorMetadata] | None = None
    outputs: list[TensorMetadata] | None = None


def _string_field(obj: dict[str, Any], key: str) -> str:
    value = obj.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string, found {value!r}")
    return value


def _shape_field(obj: dict[str, Any]) -> list[int] | None:
    value = obj.get("shape")
    if value is None:
        return None
    if not isinstance(value, list):
        raise ValueError(f"field 'shape' must be a list, found {value!r}")
    for dim in value:
        if isinstance(dim, bool) or not isinstance(dim, int):
            raise ValueError(f"shape entries must be integers, found {dim!r}")
    return list(value)


def _tensor_from_json(obj: Any) -> TensorMetadata:
    if obj is None:
        return TensorMetadata()
    if not isinstance(obj, dict):
        raise ValueError(f"tensor metadata must be an object, found {obj!r}")
    return TensorMetadata(
        name=_string_field(obj, "name"),
        datatype=_string_field(obj, "datatype"),
        shape=_shape_field(obj),
    )


def _tensor_list(obj: dict[str, Any], key: str) -> list[TensorMetadata] | None:
    value = obj.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise ValueError(f"field {key!r} must be a list, found {value!r}")
    return [_tensor_from_json(item) for item in value]


def _reject_constant(name: str) -> float:
    raise ValueError(f"invalid JSON constant {name}")


def load_schema(path: str | Path) -> ModelSchema:
    """Read and parse a schema JSON file."""
    try:
        text = Path(path).read_bytes()
    except OSError as exc:
        raise OSError(
            exc.errno, f"Unable to read model schema file {path}: {exc.strerror}", str(path)
        ) from exc

    try:
        data = json.loads(text, parse_constant=_reject_constant)
        if data is None:
            return ModelSchema()
        if not isinstance(data, dict):
            raise ValueError(f"schema must be a JSON object, found {type(data).__name__}")
        return ModelSchema(inputs=_tensor_list(data, "inputs"), outputs=_tensor_list(data, "outputs"))
    except (ValueError, UnicodeDecodeError) as exc:
        raise ValueError(f"Unable to parse model schema JSON: {exc}") from exc