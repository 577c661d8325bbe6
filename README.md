# mmadapter

`mmadapter` holds the building blocks of an adapter that sits between a
model-mesh style orchestrator and a model-serving runtime. It reads the
adapter's settings from the environment, interprets the JSON "model key" sent
with load requests, turns model files that are already on local disk into the
repository layout MLServer expects, and talks to the configuration endpoints of
the OpenVINO Model Server (OVMS).

The package uses only the standard library.

## MLServer model repositories

`mmadapter.mlserver.layout.adapt_model_layout_for_runtime` creates
`<root_model_dir>/<model_id>` from the downloaded files. Any previous directory
for that model is removed first.

```python
from mmadapter.mlserver.layout import adapt_model_layout_for_runtime

adapt_model_layout_for_runtime(
    "/models/_mlserver_models",  # root of the adapted repository
    "my-model",                  # model id
    "sklearn",                   # model type; anything after ":" is ignored
    "/models/my-model",          # where the files were downloaded
    "",                          # optional path to a _schema.json
)
```

- If the model path is a directory containing `model-settings.json`, that file
  is rewritten into the target directory and every other entry is symlinked.
  The rewrite (`process_config_json`) sets `name` to the model id and joins
  `parameters.uri` under the target directory; input that is not a JSON object
  is passed through unchanged.
- Otherwise the file or directory is symlinked into the target directory and a
  settings file is generated (`generate_model_config_json`). The
  `implementation` is chosen from the model type: `sklearn`, `xgboost`,
  `lightgbm` or `mllib`; other types leave it out. `parameters.uri` points at
  the symlink.
- When a schema path is given, its `inputs` and `outputs` replace those in the
  settings file (`process_schema`).

Settings files are written with sorted keys and two-space indentation.

## OpenVINO Model Server

- `mmadapter.ovms.modelconfig` reads and writes the multi-model configuration
  file: `ModelConfigEntry` (`name`, `base_path`, `target_device`),
  `dump_repository_config(entries)` and `load_repository_config(text)`. It also
  parses the server's responses: `parse_config_response(text)` returns a dict of
  model name to a list of `ModelVersionStatus`, and `parse_error_response(text)`
  returns the `error` message.
- `mmadapter.ovms.ovmsclient.OvmsClient(address)` calls `GET /v1/config`
  (`get_config`) and `POST /v1/config/reload` (`reload_config`), both taking an
  optional timeout in seconds or as a `timedelta`. When a reload answers with an
  error, the statuses are fetched from `/v1/config` instead. Failures raise
  `OvmsError`, whose `code` is a `StatusCode`.

```python
from mmadapter.ovms.ovmsclient import OvmsClient, OvmsError

client = OvmsClient("http://localhost:8001")
try:
    statuses = client.reload_config(timeout=30)
    for name, versions in statuses.items():
        print(name, versions[0].state)
except OvmsError as exc:
    print(exc.code.name, exc.message)
```

## Configuration

`mmadapter.mlserver.config.get_adapter_configuration_from_env` and
`mmadapter.ovms.config.get_adapter_configuration_from_env` build an
`AdapterConfiguration` dataclass from the environment, or from a mapping passed
in its place:

| Variable | Default |
| --- | --- |
| `ADAPTER_PORT` | `8085` |
| `RUNTIME_PORT` | `8001` |
| `CONTAINER_MEM_REQ_BYTES` | `-1`; must be set to a non-negative value |
| `MEM_BUFFER_BYTES` | `268435456` (256 MiB) |
| `LOADING_CONCURRENCY` | `1` |
| `LOADTIME_TIMEOUT` | `30000` (ms) |
| `DEFAULT_MODELSIZE` | `1000000` |
| `MODELSIZE_MULTIPLIER` | `1.25`; must be greater than 0 |
| `RUNTIME_VERSION` | `v1` |
| `LIMIT_PER_MODEL_CONCURRENCY` | `0` (no limit) |
| `ROOT_MODEL_DIR` | `/models` |
| `USE_EMBEDDED_PULLER` | `false` |

The capacity is the container memory request minus the buffer. The root model
directory gets `_mlserver_models` or `_ovms_models` appended. The OVMS
configuration also reads `MODEL_CONFIG_FILE` (`/models/model_config_list.json`),
`BATCH_WAIT_TIME_MIN` (`100ms`), `BATCH_WAIT_TIME_MAX` (`3s`),
`OVMS_RELOAD_TIMEOUT` (`30s`) and `OVMS_FORCE_TARGET_DEVICE` (`CPU`).
Durations use the `1h2m3.5s` notation.

```python
from mmadapter.mlserver.config import get_adapter_configuration_from_env

config = get_adapter_configuration_from_env({"CONTAINER_MEM_REQ_BYTES": "6442450944"})
print(config.capacity_in_bytes)
```

A value of the wrong kind raises `mmadapter.envconfig.ConfigError`; unusable
settings raise `ValueError`. The typed lookups themselves (`get_env_int`,
`get_env_float`, `get_env_bool`, `get_env_duration`, ...) are in
`mmadapter.envconfig`.

## Helpers

- `mmadapter.securejoin.secure_join(root, *parts)` joins paths, resolving `..`
  and symlinks as if `root` were the filesystem root, so the result never
  escapes it.
- `mmadapter.loadmodel` reads a `LoadModelRequest`'s model key:
  `get_model_type` (a string, or an object with a `name`), `get_schema_path` and
  `calc_mem_capacity(model_key, default_size, multiplier)`, which multiplies
  `disk_size_bytes` or falls back to the default.
- `mmadapter.modelschema.load_schema(path)` parses a tensor schema file into a
  `ModelSchema`.
- `mmadapter.connect.resolve_local_grpc_endpoint("port:8085")` returns
  `"localhost:8085"`; `unix:` endpoints pass through unchanged and anything else
  raises `ValueError`.
- `mmadapter.fileutil` has `file_exists`, `clear_directory_contents` and
  `remove_file_from_list`.

## What this package does not do

- It has no server and no command: it does not serve the model runtime gRPC
  protocol, and nothing here listens on `ADAPTER_PORT`.
- It does not talk to MLServer itself; it only prepares the model directories
  MLServer loads from.
- For OVMS it does not build the versioned model directories, and it does not
  batch load and unload requests or keep the configuration file in step with
  them. It provides the file format and the HTTP calls such a component needs.
- It does not download models from storage.