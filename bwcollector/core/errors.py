"""
Collector error hierarchy.

Transport-level subclasses (timeouts, error responses) live next to the
engine in ``bwcollector.snmp.engine``.
"""
from __future__ import annotations


class BwCollectorError(Exception):
    """Base error for the collector."""


class ConfigurationError(BwCollectorError):
    """Invalid device configuration. Fatal for that device, never retried."""

    def __init__(self, message: str, device_id: str | None = None) -> None:
        super().__init__(message)
        self.device_id = device_id


class TransportError(BwCollectorError):
    """Device query failed: timeout, unreachable device, malformed PDU."""


class DecodeError(BwCollectorError):
    """A counter response has an unsupported wire shape or does not fit its width."""


class Unsupported64BitError(DecodeError):
    """The 64-bit counter is absent or undecodable; use the 32-bit OID instead."""
