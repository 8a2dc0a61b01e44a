"""Tests for YAML inventory loading and device validation."""
from __future__ import annotations

from pathlib import Path

import pytest

from bwcollector.core.errors import ConfigurationError
from bwcollector.core.inventory import load_inventory, parse_devices, validate_device

SAMPLE_INVENTORY = Path(__file__).resolve().parents[3] / "config" / "devices.yaml"


def _entry(device_id: str = "sw1", **kwargs):
    entry = {
        "id": device_id,
        "host": "10.0.0.1",
        "credentials": {"version": "v2c", "community": "public"},
        "interfaces": [1],
    }
    entry.update(kwargs)
    return entry


class TestValidateDevice:
    def test_valid(self, device_factory):
        validate_device(device_factory(interfaces=[1, 2, 49]))

    @pytest.mark.parametrize(
        "kwargs,message",
        [
            ({"vendor": "acme"}, "Unknown vendor"),
            ({"interfaces": []}, "no interfaces"),
            ({"interfaces": [0]}, "invalid ifIndex"),
            ({"interfaces": [1, {"index": 1, "name": "dup"}]}, "selected twice"),
        ],
    )
    def test_invalid(self, device_factory, kwargs, message):
        with pytest.raises(ConfigurationError, match=message) as exc:
            validate_device(device_factory(**kwargs))
        assert exc.value.device_id == "sw1"

    def test_disabled_device_may_have_no_interfaces(self, device_factory):
        validate_device(device_factory(interfaces=[], enabled=False))


class TestParseDevices:
    def test_bad_entries_rejected_individually(self):
        inventory = parse_devices([
            _entry("ok1"),
            _entry("bad-vendor", vendor="acme"),
            _entry("no-community", credentials={"version": "v2c"}),
            {"host": "10.0.0.9"},
            _entry("ok1", host="10.0.0.2"),
            _entry("ok2", host="10.0.0.3", vendor="Juniper"),
        ])

        assert [d.id for d in inventory.devices] == ["ok1", "ok2"]
        assert set(inventory.rejected) == {"bad-vendor", "no-community", "#3", "ok1"}
        assert "duplicate" in inventory.rejected["ok1"]

    def test_v3_privacy_without_auth_rejected(self):
        inventory = parse_devices([
            _entry("ok"),
            _entry("nopriv", credentials={
                "version": "v3", "username": "monitor",
                "privacy_protocol": "AES", "privacy_key": "p" * 8,
            }),
        ])

        assert [d.id for d in inventory.devices] == ["ok"]
        assert "privacy requires authentication" in inventory.rejected["nopriv"]

    def test_default_port_applied(self):
        inventory = parse_devices(
            [_entry("a"), _entry("b", port=10161)], default_port=1161,
        )
        assert [d.port for d in inventory.devices] == [1161, 10161]


class TestLoadInventory:
    def test_missing_file(self, tmp_path):
        inventory = load_inventory(tmp_path / "nope.yaml")
        assert inventory.devices == []

    def test_empty_file(self, tmp_path):
        path = tmp_path / "devices.yaml"
        path.write_text("", encoding="utf-8")
        assert load_inventory(path).devices == []

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "devices.yaml"
        path.write_text(
            "devices:\n"
            "  - id: core-sw1\n"
            "    host: 10.0.0.1\n"
            "    credentials: {version: v2c, community: public}\n"
            "    interfaces: [1, 2, {index: 49, name: Te1/1/1}]\n"
            "  - id: broken\n"
            "    host: 10.0.0.2\n"
            "    vendor: nokia\n"
            "    interfaces: [1]\n",
            encoding="utf-8",
        )

        inventory = load_inventory(path)

        assert [d.id for d in inventory.devices] == ["core-sw1"]
        assert [i.index for i in inventory.devices[0].interfaces] == [1, 2, 49]
        assert "broken" in inventory.rejected

    def test_shipped_sample_inventory_is_valid(self):
        inventory = load_inventory(SAMPLE_INVENTORY)
        assert inventory.rejected == {}
        assert {d.id for d in inventory.devices} == {"core-sw1", "edge-rtr1", "lab-sw"}
