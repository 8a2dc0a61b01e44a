"""
Device inventory loading.

Reads the YAML device list, validates each entry on its own and keeps
the good ones. A bad entry is fatal for that device only.

File format::

    devices:
      - id: core-sw1
        host: 10.0.0.1
        credentials: {version: v2c, community: public}
        vendor: auto            # or cisco, juniper, ...
        enabled: true
        interfaces: [1, 2, {index: 49, name: Te1/1/1}]
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from bwcollector.core.errors import ConfigurationError
from bwcollector.core.models import Device
from bwcollector.snmp.vendor_resolver import VendorResolver

logger = logging.getLogger(__name__)


@dataclass
class Inventory:
    """Valid devices plus the reason each rejected entry was dropped."""

    devices: list[Device] = field(default_factory=list)
    rejected: dict[str, str] = field(default_factory=dict)


def validate_device(device: Device) -> None:
    """
    Configuration-time checks for one device.

    Raises:
        ConfigurationError: unknown vendor or invalid interface selection.
    """
    try:
        VendorResolver.validate(device)
    except ConfigurationError as e:
        raise ConfigurationError(f"{device.id}: {e}", device_id=device.id) from e

    if device.enabled and not device.interfaces:
        raise ConfigurationError(
            f"{device.id}: no interfaces selected", device_id=device.id,
        )
    seen: set[int] = set()
    for iface in device.interfaces:
        if iface.index < 1:
            raise ConfigurationError(
                f"{device.id}: invalid ifIndex {iface.index}", device_id=device.id,
            )
        if iface.index in seen:
            raise ConfigurationError(
                f"{device.id}: ifIndex {iface.index} selected twice",
                device_id=device.id,
            )
        seen.add(iface.index)


def parse_devices(entries: list[Any], default_port: int = 161) -> Inventory:
    """Validate raw device mappings; each one succeeds or fails independently."""
    inventory = Inventory()
    seen_ids: set[str] = set()

    for position, entry in enumerate(entries):
        label = (
            str(entry.get("id"))
            if isinstance(entry, dict) and entry.get("id")
            else f"#{position}"
        )
        if isinstance(entry, dict) and "port" not in entry:
            entry = {**entry, "port": default_port}
        try:
            try:
                device = Device.model_validate(entry)
            except ValidationError as e:
                raise ConfigurationError(
                    f"{label}: {e.errors()[0]['msg']} at "
                    f"{'.'.join(str(p) for p in e.errors()[0]['loc'])}",
                    device_id=label,
                ) from e
            if device.id in seen_ids:
                raise ConfigurationError(
                    f"{device.id}: duplicate device id", device_id=device.id,
                )
            validate_device(device)
        except ConfigurationError as e:
            logger.error("Rejected device %s: %s", label, e)
            inventory.rejected[label] = str(e)
            continue

        seen_ids.add(device.id)
        inventory.devices.append(device)

    return inventory


def load_inventory(path: str | Path, default_port: int = 161) -> Inventory:
    """
    Load and validate the device inventory file.

    A missing or empty file yields an empty inventory.
    """
    config_path = Path(path)
    if not config_path.exists():
        logger.warning("%s not found, no devices will be polled", config_path)
        return Inventory()

    with open(config_path, encoding="utf-8") as f:
        config = yaml.safe_load(f)

    if not config:
        return Inventory()

    entries = config.get("devices") or []
    inventory = parse_devices(entries, default_port=default_port)
    logger.info(
        "Loaded %d devices from %s (%d rejected)",
        len(inventory.devices), config_path, len(inventory.rejected),
    )
    return inventory
