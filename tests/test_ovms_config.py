from datetime import timedelta

import pytest

from mmadapter.envconfig import ConfigError
from mmadapter.ovms import config as cfg

TEST_MEM_REQ = 6 * 1024 * 1024 * 1024


def _env(tmp_path, **extra):
    environ = {
        "CONTAINER_MEM_REQ_BYTES": str(TEST_MEM_REQ),
        "ROOT_MODEL_DIR": str(tmp_path),
    }
    environ.update(extra)
    return environ


def test_capacity_is_memory_request_minus_buffer(tmp_path):
    config = cfg.get_adapter_configuration_from_env(_env(tmp_path))
    assert config.capacity_in_bytes == TEST_MEM_REQ - cfg.DEFAULT_MEM_BUFFER_BYTES


def test_defaults_applied(tmp_path):
    config = cfg.get_adapter_configuration_from_env(_env(tmp_path))
    assert config.port == 8085
    assert config.ovms_port == 8001
    assert config.model_config_file == "/models/model_config_list.json"
    assert config.batch_wait_time_min == timedelta(milliseconds=100)
    assert config.batch_wait_time_max == timedelta(seconds=3)
    assert config.reload_timeout == timedelta(seconds=30)
    assert config.ovms_force_target_device == "CPU"
    assert config.runtime_version == "v1"


def test_root_model_dir_gets_subdir(tmp_path):
    config = cfg.get_adapter_configuration_from_env(_env(tmp_path))
    assert config.root_model_dir == f"{tmp_path}/{cfg.OVMS_MODEL_SUBDIR}"


def test_ovms_specific_values_read(tmp_path):
    config_file = str(tmp_path / "list.json")
    environ = _env(
        tmp_path,
        MODEL_CONFIG_FILE=config_file,
        BATCH_WAIT_TIME_MIN="250ms",
        BATCH_WAIT_TIME_MAX="5s",
        OVMS_RELOAD_TIMEOUT="2m",
        OVMS_FORCE_TARGET_DEVICE="GPU",
        RUNTIME_PORT="40123",
    )
    config = cfg.get_adapter_configuration_from_env(environ)
    assert config.model_config_file == config_file
    assert config.batch_wait_time_min == timedelta(milliseconds=250)
    assert config.batch_wait_time_max == timedelta(seconds=5)
    assert config.reload_timeout == timedelta(minutes=2)
    assert config.ovms_force_target_device == "GPU"
    assert config.ovms_port == 40123


def test_missing_memory_request_is_an_error(tmp_path):
    with pytest.raises(ValueError, match="CONTAINER_MEM_REQ_BYTES"):
        cfg.get_adapter_configuration_from_env({"ROOT_MODEL_DIR": str(tmp_path)})


def test_zero_multiplier_is_an_error(tmp_path):
    with pytest.raises(ValueError, match="MODELSIZE_MULTIPLIER"):
        cfg.get_adapter_configuration_from_env(_env(tmp_path, MODELSIZE_MULTIPLIER="0"))


def test_malformed_duration_is_a_config_error(tmp_path):
    with pytest.raises(ConfigError) as info:
        cfg.get_adapter_configuration_from_env(_env(tmp_path, BATCH_WAIT_TIME_MIN="soon"))
    assert info.value.key == "BATCH_WAIT_TIME_MIN"


def test_empty_duration_is_a_config_error(tmp_path):
    with pytest.raises(ConfigError):
        cfg.get_adapter_configuration_from_env(_env(tmp_path, OVMS_RELOAD_TIMEOUT=""))


def test_empty_target_device_is_kept(tmp_path):
    config = cfg.get_adapter_configuration_from_env(_env(tmp_path, OVMS_FORCE_TARGET_DEVICE=""))
    assert config.ovms_force_target_device == ""