"""Unit tests for AsyncSnmpEngine value conversion and error mapping."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pysnmp.proto import rfc1902, rfc1905

from bwcollector.core.errors import TransportError
from bwcollector.core.models import SnmpCredentials
from bwcollector.snmp.engine import (
    AsyncSnmpEngine,
    SnmpError,
    SnmpNoSuchObjectError,
    SnmpTarget,
    SnmpTimeoutError,
    to_raw_value,
)

HLAPI = "pysnmp.hlapi.v3arch.asyncio"
IN_OID = "1.3.6.1.2.1.31.1.1.1.6.1"
OUT_OID = "1.3.6.1.2.1.31.1.1.1.10.1"


@pytest.fixture
def target():
    return SnmpTarget(
        ip="10.0.0.1",
        credentials=SnmpCredentials(community="public"),
        timeout=1.0,
    )


class TestToRawValue:
    def test_counter64_full_range(self):
        assert to_raw_value(rfc1902.Counter64(2**64 - 1)) == 2**64 - 1

    def test_counter32(self):
        assert to_raw_value(rfc1902.Counter32(4_294_967_295)) == 4_294_967_295

    def test_octet_string_is_bytes(self):
        raw = to_raw_value(rfc1902.OctetString(b"\x00\x01GigabitEthernet"))
        assert raw == b"\x00\x01GigabitEthernet"

    def test_missing_values(self):
        assert to_raw_value(rfc1905.noSuchObject) is None
        assert to_raw_value(rfc1905.noSuchInstance) is None
        assert to_raw_value(rfc1905.endOfMibView) is None
        assert to_raw_value(None) is None

    def test_oid_value_is_text(self):
        assert to_raw_value(rfc1902.ObjectName("1.3.6.1.4.1.9")) == "1.3.6.1.4.1.9"


def test_error_hierarchy():
    assert issubclass(SnmpTimeoutError, SnmpError)
    assert issubclass(SnmpNoSuchObjectError, SnmpError)
    assert issubclass(SnmpError, TransportError)


@pytest.mark.asyncio
async def test_get_returns_raw_values_and_skips_missing(target):
    var_binds = [
        (rfc1902.ObjectName(IN_OID), rfc1902.Counter64(2**40)),
        (rfc1902.ObjectName(OUT_OID), rfc1905.noSuchInstance),
    ]
    with patch(f"{HLAPI}.get_cmd", new=AsyncMock(return_value=(None, 0, 0, var_binds))), \
         patch(f"{HLAPI}.UdpTransportTarget.create", new=AsyncMock(return_value=MagicMock())):
        engine = AsyncSnmpEngine()
        result = await engine.get(target, IN_OID, OUT_OID)

    assert result == {IN_OID: 2**40}


@pytest.mark.asyncio
async def test_get_timeout(target):
    indication = "No SNMP response received before timeout"
    with patch(f"{HLAPI}.get_cmd", new=AsyncMock(return_value=(indication, 0, 0, []))), \
         patch(f"{HLAPI}.UdpTransportTarget.create", new=AsyncMock(return_value=MagicMock())):
        engine = AsyncSnmpEngine()
        with pytest.raises(SnmpTimeoutError):
            await engine.get(target, IN_OID)


@pytest.mark.asyncio
async def test_get_error_status(target):
    status = MagicMock()
    status.prettyPrint.return_value = "genErr"
    var_binds = [(rfc1902.ObjectName(IN_OID), rfc1905.noSuchObject)]
    with patch(f"{HLAPI}.get_cmd", new=AsyncMock(return_value=(None, status, 1, var_binds))), \
         patch(f"{HLAPI}.UdpTransportTarget.create", new=AsyncMock(return_value=MagicMock())):
        engine = AsyncSnmpEngine()
        with pytest.raises(SnmpError) as exc:
            await engine.get(target, IN_OID)
    assert not isinstance(exc.value, SnmpTimeoutError)


@pytest.mark.asyncio
async def test_get_no_such_name(target):
    status = MagicMock()
    status.prettyPrint.return_value = "noSuchName"
    var_binds = [(rfc1902.ObjectName(IN_OID), rfc1905.noSuchObject)]
    with patch(f"{HLAPI}.get_cmd", new=AsyncMock(return_value=(None, status, 1, var_binds))), \
         patch(f"{HLAPI}.UdpTransportTarget.create", new=AsyncMock(return_value=MagicMock())):
        engine = AsyncSnmpEngine()
        with pytest.raises(SnmpNoSuchObjectError):
            await engine.get(target, IN_OID)


@pytest.mark.asyncio
async def test_unresolvable_host(target):
    with patch(
        f"{HLAPI}.UdpTransportTarget.create",
        new=AsyncMock(side_effect=OSError("Name or service not known")),
    ):
        engine = AsyncSnmpEngine()
        with pytest.raises(SnmpError, match="Cannot reach"):
            await engine.get(target, IN_OID)
