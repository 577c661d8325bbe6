"""Arrangement of pulled model files into a repository that MLServer can load."""

from __future__ import annotations

import json
import logging
import os
import shutil
from typing import Any

from mmadapter.modelschema import ModelSchema, load_schema
from mmadapter.securejoin import secure_join

__all__ = [
    "MLSERVER_SERVICE_NAME",
    "MLSERVER_MODEL_SUBDIR",
    "MLSERVER_REPOSITORY_CONFIG_FILENAME",
    "adapt_model_layout_for_runtime",
    "process_config_json",
    "generate_model_config_json",
    "process_schema",
]

logger = logging.getLogger(__name__)

MLSERVER_SERVICE_NAME = "inference.GRPCInferenceService"
MLSERVER_MODEL_SUBDIR = "_mlserver_models"
MLSERVER_REPOSITORY_CONFIG_FILENAME = "model-settings.json"

_MODEL_TYPE_IMPLEMENTATIONS = {
    "lightgbm": "mlserver_lightgbm.LightGBMModel",
    "sklearn": "mlserver_sklearn.SKLearnModel",
    "xgboost": "mlserver_xgboost.XGBoostModel",
    "mllib": "mlserver-mllib.MLlibModel",
}

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _wrap(exc: Exception, message: str) -> Exception:
    """Return an exception of the same family carrying ``message`` as context."""
    if isinstance(exc, OSError):
        return OSError(exc.errno, f"{message}: {exc.strerror or exc}")
    return ValueError(f"{message}: {exc}")


def _reject_constant(name: str) -> float:
    raise ValueError(f"invalid JSON constant {name}")


def _dump_json(data: dict[str, Any]) -> bytes:
    """Serialise with sorted keys, two-space indent and HTML-safe escapes."""
    text = json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False, allow_nan=False)
    for char, escape in _HTML_ESCAPES.items():
        text = text.replace(char, escape)
    return text.encode("utf-8")


def _base_name(path: str) -> str:
    """Last element of ``path``, ignoring trailing slashes; ``"."`` for empty."""
    if not path:
        return "."
    stripped = path.rstrip("/")
    if not stripped:
        return "/"
    return stripped.rsplit("/", 1)[-1]


def _write_file(path: str, data: bytes, mode: int) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    with os.fdopen(fd, "wb") as handle:
        handle.write(data)


def _remove_all(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    else:
        os.unlink(path)


def process_schema(config: dict[str, Any], schema: ModelSchema) -> None:
    """Replace the config's ``inputs``/``outputs`` with those the schema defines."""
    if schema.inputs is not None:
        config["inputs"] = [tensor.to_dict() for tensor in schema.inputs]
    if schema.outputs is not None:
        config["outputs"] = [tensor.to_dict() for tensor in schema.outputs]


def _apply_schema_file(config: dict[str, Any], schema_path: str) -> None:
    try:
        schema = load_schema(schema_path)
    except (OSError, ValueError) as exc:
        raise _wrap(exc, "Error parsing schema file") from exc
    process_schema(config, schema)


def process_config_json(
    json_in: bytes | str, model_id: str, target_dir: str, schema_path: str
) -> bytes | str:
    """Set the config's ``name`` to the model id and make its ``parameters.uri`` absolute.

    Input that is not a JSON object is returned unchanged.
    """
    try:
        config = json.loads(json_in, parse_constant=_reject_constant)
    except (ValueError, UnicodeDecodeError) as exc:
        logger.info("Unable to unmarshal config file: model_id=%s error=%s", model_id, exc)
        return json_in
    if not isinstance(config, dict):
        logger.info("Config file is not a JSON object: model_id=%s", model_id)
        return json_in

    config["name"] = model_id

    parameters = config.get("parameters")
    if parameters is not None:
        if not isinstance(parameters, dict):
            raise ValueError(f"'parameters' in config must be an object, found {parameters!r}")
        uri = parameters.get("uri")
        if uri is not None:
            if not isinstance(uri, str):
                raise ValueError(f"'parameters.uri' in config must be a string, found {uri!r}")
            try:
                new_uri = secure_join(target_dir, uri)
            except (OSError, ValueError) as exc:
                logger.info(
                    "Error joining paths: directory=%s uri=%s error=%s", target_dir, uri, exc
                )
                return json_in
            parameters["uri"] = new_uri
            logger.info("Rewrote model uri in settings file: before=%s after=%s", uri, new_uri)

    if schema_path:
        _apply_schema_file(config, schema_path)
        logger.info("Injected schema information into settings file: %s", schema_path)

    try:
        return _dump_json(config)
    except ValueError as exc:
        logger.info("Unable to marshal config file: model_id=%s error=%s", model_id, exc)
        return json_in


def generate_model_config_json(
    model_id: str, model_type: str, uri: str, schema_path: str
) -> bytes:
    """Build a settings file for a model that came without one."""
    config: dict[str, Any] = {"name": model_id}
    implementation = _MODEL_TYPE_IMPLEMENTATIONS.get(model_type, "")
    if implementation:
        config["implementation"] = implementation
    config["parameters"] = {"uri": uri}

    if schema_path:
        _apply_schema_file(config, schema_path)

    try:
        output = _dump_json(config)
    except ValueError as exc:
        raise ValueError(f"Unable to marshal JSON: {exc}") from exc
    logger.info(
        "Generated model settings file: schema_path=%s implementation=%s",
        schema_path, implementation,
    )
    return output


def _adapt_native_model_layout(
    entries: list[os.DirEntry[str]],
    model_id: str,
    model_path: str,
    schema_path: str,
    target_dir: str,
) -> None:
    """Rewrite the existing settings file and symlink every other entry."""
    for entry in entries:
        filename = entry.name
        source = secure_join(model_path, filename)
        if filename == MLSERVER_REPOSITORY_CONFIG_FILENAME:
            try:
                with open(source, "rb") as handle:
                    config_json = handle.read()
            except OSError as exc:
                raise _wrap(exc, f"could not read model config file {source}") from exc
            try:
                processed = process_config_json(config_json, model_id, target_dir, schema_path)
            except (OSError, ValueError) as exc:
                raise _wrap(exc, f"Error processing config file {source}") from exc
            if isinstance(processed, str):
                processed = processed.encode("utf-8")
            target = secure_join(target_dir, MLSERVER_REPOSITORY_CONFIG_FILENAME)
            mode = entry.stat(follow_symlinks=False).st_mode & 0o777
            try:
                _write_file(target, processed, mode)
            except OSError as exc:
                raise _wrap(exc, f"error writing config file {source}") from exc
            continue

        link = secure_join(target_dir, filename)
        try:
            os.symlink(source, link)
        except OSError as exc:
            raise _wrap(exc, f"error creating symlink to {source}") from exc

    logger.info(
        "Adapted model directory with existing settings file: source_dir=%s file_count=%d "
        "schema_path=%s target_dir=%s",
        model_path, len(entries), schema_path, target_dir,
    )


def _adapt_model_layout(
    model_id: str,
    model_type: str,
    model_path: str,
    schema_path: str,
    target_dir: str,
    is_dir: bool,
) -> None:
    """Symlink the model file or directory and generate a settings file for it."""
    link_path = secure_join(target_dir, _base_name(model_path))
    try:
        os.symlink(model_path, link_path)
    except OSError as exc:
        raise _wrap(exc, "Error creating symlink") from exc

    try:
        config_json = generate_model_config_json(model_id, model_type, link_path, schema_path)
    except (OSError, ValueError) as exc:
        raise _wrap(exc, f"Error generating config file for {model_id}") from exc

    target = secure_join(target_dir, MLSERVER_REPOSITORY_CONFIG_FILENAME)
    try:
        _write_file(target, config_json, 0o664)
    except OSError as exc:
        raise _wrap(exc, f"Error writing generated config file for {model_id}") from exc

    logger.info(
        "Adapted model directory for standalone file/dir: source_path=%s is_dir=%s "
        "symlink_path=%s settings_file=%s",
        model_path, is_dir, link_path, target,
    )


def adapt_model_layout_for_runtime(
    root_model_dir: str,
    model_id: str,
    model_type: str,
    model_path: str,
    schema_path: str,
) -> None:
    """Create ``root_model_dir/model_id`` laid out for MLServer from the pulled files."""
    model_type = model_type.split(":")[0].lower()

    model_dir = secure_join(root_model_dir, model_id)

    try:
        _remove_all(model_dir)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.info("Ignoring error trying to remove dir %s: %s", model_dir, exc)
    try:
        os.makedirs(model_dir, mode=0o755, exist_ok=True)
    except OSError as exc:
        raise _wrap(exc, f"Error creating directories for path {model_dir}") from exc

    try:
        is_dir = os.path.isdir(model_path) if os.stat(model_path) else False
    except OSError as exc:
        raise _wrap(exc, f"Error calling stat on {model_path}") from exc

    try:
        if not is_dir:
            _adapt_model_layout(model_id, model_type, model_path, schema_path, model_dir, False)
            return

        try:
            with os.scandir(model_path) as iterator:
                entries = sorted(iterator, key=lambda entry: entry.name)
        except OSError as exc:
            raise _wrap(exc, f"Could not read files in dir {model_path}") from exc

        config_index = next(
            (i for i, entry in enumerate(entries)
             if entry.name == MLSERVER_REPOSITORY_CONFIG_FILENAME),
            None,
        )
        if config_index is None:
            _adapt_model_layout(model_id, model_type, model_path, schema_path, model_dir, True)
            return
        # the settings file goes first so that uri rewriting sees it before the links
        entries[0], entries[config_index] = entries[config_index], entries[0]
        _adapt_native_model_layout(entries, model_id, model_path, schema_path, model_dir)
    except (OSError, ValueError) as exc:
        raise _wrap(exc, f"Error adapting model directory {model_path}") from exc