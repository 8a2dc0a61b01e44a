"""Root conftest - shared fixtures for all tests."""
from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

# Keep tests away from real devices and any local .env inventory
os.environ.setdefault("SNMP_MOCK", "true")
os.environ.setdefault("DEVICES_FILE", "does-not-exist.yaml")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from bwcollector.core.models import Device  # noqa: E402

T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def make_device(
    device_id: str = "sw1",
    host: str = "10.0.0.1",
    vendor: str = "auto",
    interfaces: Any = (1,),
    **kwargs: Any,
) -> Device:
    """Build a Device the way the inventory loader would."""
    data: dict[str, Any] = {
        "id": device_id,
        "host": host,
        "vendor": vendor,
        "interfaces": list(interfaces),
        "credentials": {"version": "v2c", "community": "public"},
    }
    data.update(kwargs)
    return Device.model_validate(data)


@pytest.fixture
def device_factory():
    return make_device
