from __future__ import annotations

import pytest

from pytrail.config import DuplicatePolicy, SamplingOptions, TrailConfig
from pytrail.exceptions import TrailConfigError


def test_defaults() -> None:
    config = TrailConfig()
    assert config.task_name == "bgLocation"
    assert config.storage_key == "locations"
    assert config.poll_interval == 5.0
    assert config.duplicate_policy == DuplicatePolicy.SKIP
    assert config.sampling.min_interval_ms == 6000


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PYTRAIL_STORAGE_KEY", "walk")
    monkeypatch.setenv("PYTRAIL_POLL_INTERVAL", "2.5")
    monkeypatch.setenv("PYTRAIL_DUPLICATE_POLICY", "KEEP")
    monkeypatch.setenv("PYTRAIL_MIN_INTERVAL_MS", "1000")
    monkeypatch.setenv("PYTRAIL_MQTT_HOST", "broker.local")
    monkeypatch.setenv("PYTRAIL_MQTT_TLS", "yes")

    config = TrailConfig.from_env()

    assert config.storage_key == "walk"
    assert config.poll_interval == 2.5
    assert config.duplicate_policy == DuplicatePolicy.KEEP
    assert config.sampling.min_interval_ms == 1000
    assert config.mqtt_host == "broker.local"
    assert config.mqtt_tls is True
    assert config.mqtt_port == 8883


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PYTRAIL_TASK_NAME", "from-env")
    monkeypatch.setenv("PYTRAIL_MIN_DISTANCE_METERS", "20")

    config = TrailConfig.from_env(task_name="explicit", sampling={"min_distance_meters": 1.0})

    assert config.task_name == "explicit"
    assert config.sampling.min_distance_meters == 1.0


def test_invalid_numbers_raise_config_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PYTRAIL_POLL_INTERVAL", "soon")
    with pytest.raises(TrailConfigError):
        TrailConfig.from_env()


def test_validation() -> None:
    with pytest.raises(TrailConfigError):
        TrailConfig(poll_interval=0)
    with pytest.raises(TrailConfigError):
        TrailConfig(storage_key=" ")
    with pytest.raises(TrailConfigError):
        SamplingOptions(min_interval_ms=-1)
