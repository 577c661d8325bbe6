from datetime import timedelta

import pytest

from mmadapter.envconfig import (
    ConfigError,
    get_env_bool,
    get_env_duration,
    get_env_float,
    get_env_int,
    get_env_int32,
    get_env_string,
    parse_bool,
    parse_duration,
)


def test_string_default_when_unset():
    assert get_env_string("RUNTIME_VERSION", "v1", {}) == "v1"


def test_string_empty_value_is_kept():
    assert get_env_string("RUNTIME_VERSION", "v1", {"RUNTIME_VERSION": ""}) == ""


def test_string_reads_process_environment(monkeypatch):
    monkeypatch.setenv("MMADAPTER_TEST_STRING", "hello")
    assert get_env_string("MMADAPTER_TEST_STRING", "other") == "hello"


def test_int_parses_value():
    assert get_env_int("ADAPTER_PORT", 8085, {"ADAPTER_PORT": "42"}) == 42


def test_int_default_when_unset():
    assert get_env_int("ADAPTER_PORT", 8085, {}) == 8085


def test_int_negative_value():
    assert get_env_int("CONTAINER_MEM_REQ_BYTES", 0, {"CONTAINER_MEM_REQ_BYTES": "-1"}) == -1


@pytest.mark.parametrize("value", ["abc", "", " 4", "1_000", "4.0", "0x10"])
def test_int_rejects_non_integers(value):
    with pytest.raises(ConfigError) as info:
        get_env_int("ADAPTER_PORT", 8085, {"ADAPTER_PORT": value})
    assert info.value.key == "ADAPTER_PORT"
    assert info.value.value == value


def test_int32_bounds():
    env = {"X": "-2147483648"}
    assert get_env_int32("X", 0, env) == -2147483648
    with pytest.raises(ConfigError):
        get_env_int32("X", 0, {"X": "2147483648"})


def test_float_parses_value():
    assert get_env_float("MODELSIZE_MULTIPLIER", 1.25, {"MODELSIZE_MULTIPLIER": "1.35"}) == 1.35


def test_float_default_when_unset():
    assert get_env_float("MODELSIZE_MULTIPLIER", 1.25, {}) == 1.25


@pytest.mark.parametrize("value", ["x", "", "1e400", "1_0", " 1"])
def test_float_rejects_bad_values(value):
    with pytest.raises(ConfigError):
        get_env_float("MODELSIZE_MULTIPLIER", 1.25, {"MODELSIZE_MULTIPLIER": value})


@pytest.mark.parametrize("value", ["1", "t", "T", "TRUE", "true", "True"])
def test_bool_true_spellings(value):
    assert get_env_bool("USE_EMBEDDED_PULLER", False, {"USE_EMBEDDED_PULLER": value}) is True


@pytest.mark.parametrize("value", ["0", "f", "F", "FALSE", "false", "False"])
def test_bool_false_spellings(value):
    assert get_env_bool("USE_EMBEDDED_PULLER", True, {"USE_EMBEDDED_PULLER": value}) is False


@pytest.mark.parametrize("value", ["yes", "", "tRUE", "2"])
def test_bool_rejects_other_values(value):
    with pytest.raises(ConfigError):
        get_env_bool("USE_EMBEDDED_PULLER", False, {"USE_EMBEDDED_PULLER": value})
    with pytest.raises(ValueError):
        parse_bool(value)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("100ms", timedelta(milliseconds=100)),
        ("3s", timedelta(seconds=3)),
        ("30s", timedelta(seconds=30)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("1.5s", timedelta(seconds=1.5)),
        ("-1s", timedelta(seconds=-1)),
        ("+2m", timedelta(minutes=2)),
        ("0", timedelta(0)),
        ("250us", timedelta(microseconds=250)),
        ("250\u00b5s", timedelta(microseconds=250)),
    ],
)
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "5", "1d", "s", ".s", "-", "1.5.5s"])
def test_parse_duration_rejects(text):
    with pytest.raises(ValueError):
        parse_duration(text)


def test_env_duration_reads_and_defaults():
    default = timedelta(seconds=30)
    assert get_env_duration("OVMS_RELOAD_TIMEOUT", default, {}) == default
    env = {"OVMS_RELOAD_TIMEOUT": "45s"}
    assert get_env_duration("OVMS_RELOAD_TIMEOUT", default, env) == timedelta(seconds=45)


def test_env_duration_error():
    with pytest.raises(ConfigError):
        get_env_duration("BATCH_WAIT_TIME_MIN", timedelta(0), {"BATCH_WAIT_TIME_MIN": "soon"})