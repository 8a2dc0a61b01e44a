"""
Mock SNMP Engine.

Drop-in replacement for AsyncSnmpEngine that synthesizes interface
counters without sending any UDP packets. Used when SNMP_MOCK=true.

Design:
- vendor, per-interface traffic rate and counter offsets derive from a
  deterministic hash of the host, so a device looks the same every run
- counters grow linearly with wall-clock time, so the 32-bit columns of a
  busy interface wrap within a few polling cycles
- 64-bit columns alternate between native int and 8-byte big-endian
  encoding to exercise both decoder paths
- hosts whose hash selects the plain MIB-II description expose no
  ifXTable at all
"""
from __future__ import annotations

import asyncio
import hashlib
import logging
import random
import time
from typing import Any

from bwcollector.snmp.decoder import encode_counter64
from bwcollector.snmp.engine import SnmpTimeoutError
from bwcollector.snmp.oid_maps import (
    IF_DESCR,
    IF_HC_IN_OCTETS,
    IF_HC_OUT_OCTETS,
    IF_IN_OCTETS,
    IF_NAME,
    IF_OUT_OCTETS,
    SYS_DESCR,
    SYS_OBJECT_ID,
)

logger = logging.getLogger(__name__)

_SYS_DESCRIPTIONS: tuple[tuple[str, str], ...] = (
    (
        "Cisco IOS Software, C3750E Software (C3750E-UNIVERSALK9-M), Version 15.2(4)E10",
        "1.3.6.1.4.1.9.1.1227",
    ),
    ("Juniper Networks, Inc. ex4300-48t Ethernet Switch, kernel JUNOS 21.4R3", "1.3.6.1.4.1.2636.1.1.1.2.132"),
    ("HPE Comware Platform Software, Software Version 7.1.070", "1.3.6.1.4.1.25506.11.1.239"),
    ("RouterOS CCR2004-16G-2S+", "1.3.6.1.4.1.14988.1"),
    ("Linux gw01 5.10.0 #1 SMP x86_64", "1.3.6.1.4.1.8072.3.2.10"),
)

_PLAIN_MIB2_INDEX = len(_SYS_DESCRIPTIONS) - 1

_COUNTER_COLUMNS: dict[str, tuple[str, int]] = {
    IF_IN_OCTETS: ("in", 32),
    IF_OUT_OCTETS: ("out", 32),
    IF_HC_IN_OCTETS: ("in", 64),
    IF_HC_OUT_OCTETS: ("out", 64),
}


def _seed(*parts: Any) -> int:
    digest = hashlib.sha256("|".join(str(p) for p in parts).encode()).digest()
    return int.from_bytes(digest[:8], "big")


class MockSnmpEngine:
    """
    Mock SNMP engine - same interface as AsyncSnmpEngine.

    Adds a tiny async sleep to simulate network latency. ``failure_rate``
    is the probability that a request times out.
    """

    def __init__(
        self,
        latency: float = 0.005,
        failure_rate: float = 0.0,
        rng: random.Random | None = None,
    ) -> None:
        self._latency = latency
        self._failure_rate = failure_rate
        self._rng = rng or random.Random()
        self._started = time.monotonic()
        logger.info("MockSnmpEngine initialized (no real SNMP traffic)")

    def _device_kind(self, host: str) -> int:
        return _seed(host, "vendor") % len(_SYS_DESCRIPTIONS)

    def _counter_value(self, host: str, if_index: int, direction: str, width: int) -> int:
        seed = _seed(host, if_index, direction)
        # 1 MB/s .. ~120 MB/s
        rate = 1_000_000 + seed % 120_000_000
        offset = seed % (1 << 40)
        elapsed = time.monotonic() - self._started
        return (offset + int(rate * elapsed)) % (1 << width)

    def mock_get(self, host: str, oid: str) -> Any:
        """Value for one instance OID, or None when the device lacks it."""
        kind = self._device_kind(host)
        if oid == SYS_DESCR:
            return _SYS_DESCRIPTIONS[kind][0].encode()
        if oid == SYS_OBJECT_ID:
            return _SYS_DESCRIPTIONS[kind][1]

        column, _, index = oid.rpartition(".")
        if not index.isdigit():
            return None
        if_index = int(index)

        if column in (IF_DESCR, IF_NAME):
            return f"GigabitEthernet0/{if_index}".encode()

        if column in _COUNTER_COLUMNS:
            direction, width = _COUNTER_COLUMNS[column]
            if width == 64 and kind == _PLAIN_MIB2_INDEX:
                return None
            value = self._counter_value(host, if_index, direction, width)
            if width == 64 and if_index % 2 == 0:
                return encode_counter64(value)
            return value
        return None

    async def get(
        self, target: Any, *oids: str,
    ) -> dict[str, Any]:
        """Mock SNMP GET - missing objects are omitted, like the real engine."""
        await asyncio.sleep(self._latency)
        if self._failure_rate and self._rng.random() < self._failure_rate:
            raise SnmpTimeoutError(f"SNMP GET timeout: {target.ip} OIDs={oids}")
        result: dict[str, Any] = {}
        for oid in oids:
            value = self.mock_get(target.ip, oid)
            if value is not None:
                result[oid] = value
        return result
