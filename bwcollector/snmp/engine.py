"""
SNMP Engine - pysnmp asyncio wrapper.

The collector consumes a single query capability from the transport:

    get(target, *oids) -> {oid: raw_value}

Raw values keep their wire representation so the decoder can normalize
them: integers (Counter32, Counter64, Gauge32, Integer) come back as
``int``, OCTET STRINGs as ``bytes``. Objects the agent reports as
noSuchObject / noSuchInstance / endOfMibView are left out of the result.

NOTE: pysnmp imports are deferred to AsyncSnmpEngine so that mock mode
(SNMP_MOCK=true) works even when pysnmp is not installed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from bwcollector.core.errors import TransportError
from bwcollector.core.models import SnmpCredentials

logger = logging.getLogger(__name__)

_MISSING_VALUE_TYPES = ("NoSuchObject", "NoSuchInstance", "EndOfMibView")


class SnmpError(TransportError):
    """Base SNMP error (well-formed error response or transport failure)."""


class SnmpTimeoutError(SnmpError):
    """SNMP request timed out."""


class SnmpNoSuchObjectError(SnmpError):
    """Requested OID does not exist on the device."""


@dataclass
class SnmpTarget:
    """Connection parameters for a single SNMP target."""

    ip: str
    credentials: SnmpCredentials
    port: int = 161
    timeout: float = 5.0
    retries: int = 0


def to_raw_value(val: Any) -> Any:
    """
    Convert a pysnmp value object into a plain Python value.

    Returns None for the SNMPv2 exception values.
    """
    if val is None or val.__class__.__name__ in _MISSING_VALUE_TYPES:
        return None
    if hasattr(val, "asOctets"):
        return bytes(val.asOctets())
    try:
        return int(val)
    except (TypeError, ValueError):
        return val.prettyPrint() if hasattr(val, "prettyPrint") else str(val)


class AsyncSnmpEngine:
    """
    Thin async wrapper around the pysnmp v7 asyncio API.

    Uses a single shared pysnmp SnmpEngine instance for all targets.
    """

    def __init__(self) -> None:
        from pysnmp.hlapi.v3arch.asyncio import SnmpEngine as PySnmpEngine

        self._engine = PySnmpEngine()

    @staticmethod
    def _auth_data(credentials: SnmpCredentials) -> Any:
        """Build CommunityData / UsmUserData for the target's SNMP version."""
        from pysnmp.hlapi.v3arch.asyncio import (
            CommunityData,
            UsmUserData,
            usm3DESEDEPrivProtocol,
            usmAesCfb128Protocol,
            usmHMACMD5AuthProtocol,
            usmHMACSHAAuthProtocol,
            usmNoAuthProtocol,
            usmNoPrivProtocol,
        )

        if credentials.version in ("v1", "v2c"):
            return CommunityData(
                credentials.community,
                mpModel=0 if credentials.version == "v1" else 1,
            )

        auth_proto = {
            "SHA": usmHMACSHAAuthProtocol,
            "MD5": usmHMACMD5AuthProtocol,
        }.get(credentials.auth_protocol or "", usmNoAuthProtocol)
        priv_proto = {
            "AES": usmAesCfb128Protocol,
            "3DES": usm3DESEDEPrivProtocol,
        }.get(credentials.privacy_protocol or "", usmNoPrivProtocol)
        return UsmUserData(
            credentials.username,
            authKey=credentials.auth_key,
            privKey=credentials.privacy_key,
            authProtocol=auth_proto,
            privProtocol=priv_proto,
        )

    async def _make_transport(self, target: SnmpTarget) -> Any:
        """Create UDP transport for target (resolves the address)."""
        from pysnmp.hlapi.v3arch.asyncio import UdpTransportTarget

        try:
            return await UdpTransportTarget.create(
                (target.ip, target.port),
                timeout=target.timeout,
                retries=target.retries,
            )
        except Exception as e:
            # Name resolution failures surface here, before any request is sent
            raise SnmpError(f"Cannot reach {target.ip}:{target.port}: {e}") from e

    async def get(
        self, target: SnmpTarget, *oids: str,
    ) -> dict[str, Any]:
        """
        SNMP GET for one or more scalar OIDs in a single PDU.

        Returns:
            {oid_str: raw_value} dict; missing objects are omitted.

        Raises:
            SnmpTimeoutError: if the request times out.
            SnmpError: on error responses and other transport errors.
        """
        from pysnmp.hlapi.v3arch.asyncio import (
            ContextData,
            ObjectIdentity,
            ObjectType,
            get_cmd,
        )

        transport = await self._make_transport(target)
        object_types = [ObjectType(ObjectIdentity(oid)) for oid in oids]

        error_indication, error_status, error_index, var_binds = await get_cmd(
            self._engine,
            self._auth_data(target.credentials),
            transport,
            ContextData(),
            *object_types,
            lookupMib=False,
        )

        if error_indication:
            err_str = str(error_indication)
            if "timeout" in err_str.lower() or "timed out" in err_str.lower():
                raise SnmpTimeoutError(
                    f"SNMP GET timeout: {target.ip} OIDs={oids}"
                )
            raise SnmpError(f"SNMP GET error: {target.ip}: {err_str}")

        if error_status:
            status = error_status.prettyPrint()
            where = var_binds[int(error_index) - 1][0] if error_index else "?"
            if status in ("noSuchName", "noSuchObject", "noSuchInstance"):
                raise SnmpNoSuchObjectError(
                    f"SNMP GET {status} from {target.ip} at {where}"
                )
            raise SnmpError(
                f"SNMP GET error status from {target.ip}: {status} at {where}"
            )

        result: dict[str, Any] = {}
        for oid, val in var_binds:
            raw = to_raw_value(val)
            if raw is None:
                logger.debug("%s: no such object %s", target.ip, oid)
                continue
            result[str(oid)] = raw

        return result
