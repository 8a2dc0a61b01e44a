"""
Data model.

Configuration-facing records (Device and its credentials) are pydantic
models so the YAML inventory is validated on load. Runtime records that
the poller creates itself (CounterKey, CounterState, InterfaceTarget) are
plain dataclasses. Sample is a pydantic model because it crosses the
boundary to the downstream persistence layer as JSON.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from bwcollector.core.enums import Direction


class SnmpCredentials(BaseModel):
    """SNMP version and credentials for one device."""

    version: Literal["v1", "v2c", "v3"] = "v2c"
    community: str | None = None         # v1/v2c read community
    username: str | None = None          # v3 user
    auth_protocol: Literal["MD5", "SHA"] | None = None
    auth_key: str | None = None
    privacy_protocol: Literal["AES", "3DES"] | None = None
    privacy_key: str | None = None

    @model_validator(mode="after")
    def _check_version_fields(self) -> "SnmpCredentials":
        if self.version in ("v1", "v2c") and not self.community:
            raise ValueError("community is required for SNMP v1/v2c")
        if self.version == "v3":
            if not self.username:
                raise ValueError("username is required for SNMP v3")
            if bool(self.auth_protocol) != bool(self.auth_key):
                raise ValueError("auth_protocol and auth_key must be set together")
            if bool(self.privacy_protocol) != bool(self.privacy_key):
                raise ValueError("privacy_protocol and privacy_key must be set together")
            if self.privacy_protocol and not self.auth_protocol:
                # USM has no authPriv without auth
                raise ValueError("privacy requires authentication")
        return self


class InterfaceSelection(BaseModel):
    """One interface selected for polling; name is looked up when omitted."""

    index: int
    name: str | None = None


class Device(BaseModel):
    """A polled device as configured in the inventory."""

    model_config = ConfigDict(frozen=True)

    id: str
    host: str
    port: int = 161
    credentials: SnmpCredentials = Field(
        default_factory=lambda: SnmpCredentials(community="public"),
    )
    vendor: str = "auto"
    enabled: bool = True
    interfaces: list[InterfaceSelection] = Field(default_factory=list)

    @field_validator("interfaces", mode="before")
    @classmethod
    def _parse_interfaces(cls, v: Any) -> Any:
        """
        Allow the short YAML forms:

        - 3                       -> [{index: 3}]
        - [1, 2]                  -> [{index: 1}, {index: 2}]
        - [1, {index: 49, name: Te1/1/1}]
        """
        if v is None:
            return []
        if isinstance(v, int):
            v = [v]
        if isinstance(v, list):
            return [{"index": item} if isinstance(item, int) else item for item in v]
        return v

    @property
    def is_auto_vendor(self) -> bool:
        return not self.vendor or self.vendor.strip().lower() == "auto"

    def fingerprint(self) -> tuple[Any, ...]:
        """Identity of everything vendor resolution depends on."""
        return (
            self.host,
            self.port,
            self.vendor.strip().lower(),
            self.credentials.model_dump_json(),
        )

    def interface_targets(self) -> list[InterfaceTarget]:
        return [
            InterfaceTarget(
                device_id=self.id,
                if_index=iface.index,
                if_name=iface.name,
            )
            for iface in self.interfaces
        ]


@dataclass(frozen=True)
class InterfaceTarget:
    """(device id, interface index, interface name) for one polled interface."""

    device_id: str
    if_index: int
    if_name: str | None = None


@dataclass(frozen=True)
class CounterKey:
    """Identity of one monotonic wire counter."""

    device_id: str
    if_index: int
    direction: Direction

    def __str__(self) -> str:
        return f"{self.device_id}/{self.if_index}/{self.direction.value}"


@dataclass(frozen=True)
class CounterState:
    """
    Last accepted reading of one counter.

    ``last_rate`` is the octets/second of the previously accepted delta,
    or None when no delta has been measured since the baseline was set.
    """

    last_raw_value: int
    last_timestamp: datetime
    counter_width_bits: int
    last_rate: float | None = None


class Sample(BaseModel):
    """Reconciled traffic increment of one counter, emitted downstream."""

    model_config = ConfigDict(frozen=True)

    device_id: str
    if_index: int
    if_name: str
    direction: Direction
    vendor: str
    delta_octets: int = Field(ge=0)
    interval_seconds: float = Field(gt=0)
    timestamp: datetime
    counter_width_bits: int
    wraps: int = 0
    reset: bool = False

    @property
    def key(self) -> CounterKey:
        return CounterKey(self.device_id, self.if_index, self.direction)
