"""Tests for bwcollector.core.config."""
import pytest
from pydantic import ValidationError

from bwcollector.core.config import Settings, get_settings


def test_defaults(monkeypatch):
    for name in ("POLLING_INTERVAL_MS", "WRAP_CEILING_WIDTHS", "MAX_WRAPS_BEFORE_RESET", "SNMP_MAX_OIDS_PER_REQUEST"):
        monkeypatch.delenv(name, raising=False)
    cfg = Settings(_env_file=None)
    assert cfg.polling_interval_ms == 60_000
    assert cfg.polling_interval_seconds == 60.0
    assert cfg.wrap_plausibility_ceiling_bytes == 2 * 1024**3
    assert cfg.wrap_ceiling_width_set == frozenset({32})
    assert cfg.max_wraps_before_reset == 10
    assert cfg.snmp_soft_retries == 1
    assert cfg.snmp_max_oids_per_request == 40


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("POLLING_INTERVAL_MS", "250")
    monkeypatch.setenv("WRAP_CEILING_WIDTHS", "32, 64")
    monkeypatch.setenv("SNMP_MOCK", "true")
    cfg = Settings(_env_file=None)
    assert cfg.polling_interval_seconds == 0.25
    assert cfg.wrap_ceiling_width_set == frozenset({32, 64})
    assert cfg.snmp_mock is True


@pytest.mark.parametrize(
    "field,value",
    [
        ("polling_interval_ms", 0),
        ("max_concurrent_device_polls", 0),
        ("max_wraps_before_reset", -1),
        ("snmp_soft_retries", -1),
        ("snmp_soft_retries", 2),
        ("snmp_max_oids_per_request", 0),
    ],
)
def test_invalid_values(field, value):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: value})


def test_zero_max_wraps_allowed():
    assert Settings(_env_file=None, max_wraps_before_reset=0).max_wraps_before_reset == 0


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
