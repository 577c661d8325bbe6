"""Adapter configuration for the MLServer runtime, read from the environment."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from mmadapter.envconfig import get_env_bool, get_env_float, get_env_int, get_env_string
from mmadapter.mlserver.layout import MLSERVER_MODEL_SUBDIR
from mmadapter.securejoin import secure_join

__all__ = [
    "ENV_ADAPTER_PORT",
    "ENV_RUNTIME_PORT",
    "ENV_CONTAINER_MEM_REQ_BYTES",
    "ENV_MEM_BUFFER_BYTES",
    "ENV_LOADING_CONCURRENCY",
    "ENV_LOADTIME_TIMEOUT",
    "ENV_DEFAULT_MODELSIZE",
    "ENV_MODELSIZE_MULTIPLIER",
    "ENV_RUNTIME_VERSION",
    "ENV_LIMIT_PER_MODEL_CONCURRENCY",
    "ENV_ROOT_MODEL_DIR",
    "ENV_USE_EMBEDDED_PULLER",
    "DEFAULT_ADAPTER_PORT",
    "DEFAULT_RUNTIME_PORT",
    "DEFAULT_CONTAINER_MEM_REQ_BYTES",
    "DEFAULT_MEM_BUFFER_BYTES",
    "DEFAULT_MAX_LOADING_CONCURRENCY",
    "DEFAULT_MAX_LOADING_TIMEOUT_MS",
    "DEFAULT_MODEL_SIZE_IN_BYTES",
    "DEFAULT_MODEL_SIZE_MULTIPLIER",
    "DEFAULT_RUNTIME_VERSION",
    "DEFAULT_LIMIT_PER_MODEL_CONCURRENCY",
    "DEFAULT_ROOT_MODEL_DIR",
    "DEFAULT_USE_EMBEDDED_PULLER",
    "AdapterConfiguration",
    "get_adapter_configuration_from_env",
]

ENV_ADAPTER_PORT = "ADAPTER_PORT"
ENV_RUNTIME_PORT = "RUNTIME_PORT"
ENV_CONTAINER_MEM_REQ_BYTES = "CONTAINER_MEM_REQ_BYTES"
ENV_MEM_BUFFER_BYTES = "MEM_BUFFER_BYTES"
ENV_LOADING_CONCURRENCY = "LOADING_CONCURRENCY"
ENV_LOADTIME_TIMEOUT = "LOADTIME_TIMEOUT"
ENV_DEFAULT_MODELSIZE = "DEFAULT_MODELSIZE"
ENV_MODELSIZE_MULTIPLIER = "MODELSIZE_MULTIPLIER"
ENV_RUNTIME_VERSION = "RUNTIME_VERSION"
ENV_LIMIT_PER_MODEL_CONCURRENCY = "LIMIT_PER_MODEL_CONCURRENCY"
ENV_ROOT_MODEL_DIR = "ROOT_MODEL_DIR"
ENV_USE_EMBEDDED_PULLER = "USE_EMBEDDED_PULLER"

DEFAULT_ADAPTER_PORT = 8085
DEFAULT_RUNTIME_PORT = 8001
DEFAULT_CONTAINER_MEM_REQ_BYTES = -1
DEFAULT_MEM_BUFFER_BYTES = 256 * 1024 * 1024
DEFAULT_MAX_LOADING_CONCURRENCY = 1
DEFAULT_MAX_LOADING_TIMEOUT_MS = 30000
DEFAULT_MODEL_SIZE_IN_BYTES = 1000000
DEFAULT_MODEL_SIZE_MULTIPLIER = 1.25
DEFAULT_RUNTIME_VERSION = "v1"
DEFAULT_LIMIT_PER_MODEL_CONCURRENCY = 0  # 0 means request concurrency is not limited
DEFAULT_ROOT_MODEL_DIR = "/models"
DEFAULT_USE_EMBEDDED_PULLER = False


@dataclass
class AdapterConfiguration:
    """Settings of the MLServer adapter."""

    port: int = DEFAULT_ADAPTER_PORT
    mlserver_port: int = DEFAULT_RUNTIME_PORT
    mlserver_container_mem_req_bytes: int = DEFAULT_CONTAINER_MEM_REQ_BYTES
    mlserver_mem_buffer_bytes: int = DEFAULT_MEM_BUFFER_BYTES
    capacity_in_bytes: int = 0
    max_loading_concurrency: int = DEFAULT_MAX_LOADING_CONCURRENCY
    model_loading_timeout_ms: int = DEFAULT_MAX_LOADING_TIMEOUT_MS
    default_model_size_in_bytes: int = DEFAULT_MODEL_SIZE_IN_BYTES
    model_size_multiplier: float = DEFAULT_MODEL_SIZE_MULTIPLIER
    runtime_version: str = DEFAULT_RUNTIME_VERSION
    limit_model_concurrency: int = DEFAULT_LIMIT_PER_MODEL_CONCURRENCY
    root_model_dir: str = ""
    use_embedded_puller: bool = DEFAULT_USE_EMBEDDED_PULLER


def get_adapter_configuration_from_env(
    environ: Mapping[str, str] | None = None,
) -> AdapterConfiguration:
    """Build the configuration from environment variables.

    Raises ``ValueError`` (``ConfigError`` for malformed values) when the
    settings are unusable.
    """
    config = AdapterConfiguration()
    config.port = get_env_int(ENV_ADAPTER_PORT, DEFAULT_ADAPTER_PORT, environ)
    config.mlserver_port = get_env_int(ENV_RUNTIME_PORT, DEFAULT_RUNTIME_PORT, environ)
    config.mlserver_container_mem_req_bytes = get_env_int(
        ENV_CONTAINER_MEM_REQ_BYTES, DEFAULT_CONTAINER_MEM_REQ_BYTES, environ
    )
    config.mlserver_mem_buffer_bytes = get_env_int(
        ENV_MEM_BUFFER_BYTES, DEFAULT_MEM_BUFFER_BYTES, environ
    )
    config.capacity_in_bytes = (
        config.mlserver_container_mem_req_bytes - config.mlserver_mem_buffer_bytes
    )
    config.max_loading_concurrency = get_env_int(
        ENV_LOADING_CONCURRENCY, DEFAULT_MAX_LOADING_CONCURRENCY, environ
    )
    config.model_loading_timeout_ms = get_env_int(
        ENV_LOADTIME_TIMEOUT, DEFAULT_MAX_LOADING_TIMEOUT_MS, environ
    )
    config.default_model_size_in_bytes = get_env_int(
        ENV_DEFAULT_MODELSIZE, DEFAULT_MODEL_SIZE_IN_BYTES, environ
    )
    config.model_size_multiplier = get_env_float(
        ENV_MODELSIZE_MULTIPLIER, DEFAULT_MODEL_SIZE_MULTIPLIER, environ
    )
    config.runtime_version = get_env_string(ENV_RUNTIME_VERSION, DEFAULT_RUNTIME_VERSION, environ)
    config.limit_model_concurrency = get_env_int(
        ENV_LIMIT_PER_MODEL_CONCURRENCY, DEFAULT_LIMIT_PER_MODEL_CONCURRENCY, environ
    )
    config.use_embedded_puller = get_env_bool(
        ENV_USE_EMBEDDED_PULLER, DEFAULT_USE_EMBEDDED_PULLER, environ
    )

    root = get_env_string(ENV_ROOT_MODEL_DIR, DEFAULT_ROOT_MODEL_DIR, environ)
    try:
        config.root_model_dir = secure_join(root, MLSERVER_MODEL_SUBDIR)
    except (OSError, ValueError) as exc:
        raise ValueError(f"Could not construct root model path: {exc}") from exc

    if config.mlserver_container_mem_req_bytes < 0:
        raise ValueError(
            f"{ENV_CONTAINER_MEM_REQ_BYTES} environment variable must be set to a positive "
            f"integer, found value {config.mlserver_container_mem_req_bytes}"
        )
    if config.model_size_multiplier <= 0:
        raise ValueError(
            f"{ENV_MODELSIZE_MULTIPLIER} environment variable must be greater than 0, "
            f"found value {config.model_size_multiplier}"
        )
    return config