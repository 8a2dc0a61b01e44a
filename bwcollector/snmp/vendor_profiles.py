"""
Vendor Profile Registry.

A closed, immutable table mapping vendor identity to the OIDs and
counter widths used to poll interface traffic. Profiles are matched
against sysDescr in registry order; the first match wins and
``standard`` (plain MIB-II) is the fallback.

Vendors that implement IF-MIB's ifXTable get 64-bit high-capacity
counters as primary and the ifTable Counter32 columns as same-cycle
fallback. Plain MIB-II (RFC 1213) only defines Counter32.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from bwcollector.core.enums import CounterWidth, Direction
from bwcollector.core.errors import ConfigurationError
from bwcollector.snmp.oid_maps import (
    IF_DESCR,
    IF_HC_IN_OCTETS,
    IF_HC_OUT_OCTETS,
    IF_IN_OCTETS,
    IF_NAME,
    IF_OUT_OCTETS,
)

STANDARD_PROFILE_NAME = "standard"


@dataclass(frozen=True)
class CounterOid:
    """A counter column OID together with its declared width."""

    oid: str
    width: CounterWidth


@dataclass(frozen=True)
class OidSet:
    """OIDs a profile polls. Counter OIDs are ifTable/ifXTable columns."""

    if_descr: str
    in_octets: CounterOid
    out_octets: CounterOid
    in_octets_32: CounterOid | None = None
    out_octets_32: CounterOid | None = None

    def counter(self, direction: Direction) -> CounterOid:
        return self.in_octets if direction is Direction.IN else self.out_octets

    def fallback(self, direction: Direction) -> CounterOid | None:
        """32-bit counter to use when the primary 64-bit one fails this cycle."""
        return self.in_octets_32 if direction is Direction.IN else self.out_octets_32


@dataclass(frozen=True)
class VendorProfile:
    name: str
    display_name: str
    sysdescr_patterns: tuple[str, ...]
    oids: OidSet

    def matches(self, sys_descr: str) -> bool:
        """Case-insensitive substring match against any signature pattern."""
        text = sys_descr.lower()
        return any(pattern in text for pattern in self.sysdescr_patterns)


_IN_32 = CounterOid(IF_IN_OCTETS, CounterWidth.BITS_32)
_OUT_32 = CounterOid(IF_OUT_OCTETS, CounterWidth.BITS_32)
_IN_64 = CounterOid(IF_HC_IN_OCTETS, CounterWidth.BITS_64)
_OUT_64 = CounterOid(IF_HC_OUT_OCTETS, CounterWidth.BITS_64)


def _hc_oids(if_descr: str = IF_NAME) -> OidSet:
    return OidSet(
        if_descr=if_descr,
        in_octets=_IN_64,
        out_octets=_OUT_64,
        in_octets_32=_IN_32,
        out_octets_32=_OUT_32,
    )


# Order matters: first match wins.
VENDOR_PROFILES: tuple[VendorProfile, ...] = (
    VendorProfile(
        name="cisco",
        display_name="Cisco IOS / IOS-XE / NX-OS",
        sysdescr_patterns=("cisco",),
        oids=_hc_oids(),
    ),
    VendorProfile(
        name="juniper",
        display_name="Juniper Junos",
        sysdescr_patterns=("juniper", "junos"),
        oids=_hc_oids(if_descr=IF_DESCR),
    ),
    VendorProfile(
        name="arista",
        display_name="Arista EOS",
        sysdescr_patterns=("arista",),
        oids=_hc_oids(),
    ),
    VendorProfile(
        name="hpe",
        display_name="HPE Comware / ProCurve / Aruba",
        sysdescr_patterns=(
            "comware", "procurve", "aruba", "hewlett packard", "hewlett-packard", "h3c",
        ),
        oids=_hc_oids(),
    ),
    VendorProfile(
        name="huawei",
        display_name="Huawei VRP",
        sysdescr_patterns=("huawei", "versatile routing platform"),
        oids=_hc_oids(),
    ),
    VendorProfile(
        name="mikrotik",
        display_name="MikroTik RouterOS",
        sysdescr_patterns=("routeros", "mikrotik"),
        oids=_hc_oids(),
    ),
    VendorProfile(
        name="fortinet",
        display_name="Fortinet FortiGate",
        sysdescr_patterns=("fortigate", "fortios", "fortinet"),
        oids=_hc_oids(),
    ),
    VendorProfile(
        name="ubiquiti",
        display_name="Ubiquiti EdgeOS / UniFi",
        sysdescr_patterns=("edgeos", "edgeswitch", "ubiquiti", "unifi"),
        oids=_hc_oids(),
    ),
    VendorProfile(
        name=STANDARD_PROFILE_NAME,
        display_name="Standard MIB-II",
        sysdescr_patterns=(),
        oids=OidSet(
            if_descr=IF_DESCR,
            in_octets=_IN_32,
            out_octets=_OUT_32,
        ),
    ),
)

_PROFILES_BY_NAME: Mapping[str, VendorProfile] = MappingProxyType(
    {p.name: p for p in VENDOR_PROFILES}
)


def vendor_names() -> list[str]:
    """Registered vendor names, in match order."""
    return [p.name for p in VENDOR_PROFILES]


def get_profile(name: str) -> VendorProfile:
    """
    Look up a profile by name (case-insensitive).

    Raises:
        ConfigurationError: if the name is not registered.
    """
    profile = _PROFILES_BY_NAME.get(name.strip().lower())
    if profile is None:
        raise ConfigurationError(
            f"Unknown vendor '{name}' (known: {', '.join(vendor_names())})"
        )
    return profile


def match_sysdescr(sys_descr: str | None) -> VendorProfile:
    """Return the first profile whose signature matches, else the standard profile."""
    if sys_descr:
        for profile in VENDOR_PROFILES:
            if profile.matches(sys_descr):
                return profile
    return _PROFILES_BY_NAME[STANDARD_PROFILE_NAME]
