"""
Vendor Resolver.

Determines which VendorProfile applies to a device: the explicitly
configured one, or (vendor "auto") the first profile whose signature
matches the device's sysDescr. Results are cached per device until the
device's vendor-relevant configuration changes.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from bwcollector.core.models import Device
from bwcollector.snmp.vendor_profiles import VendorProfile, get_profile, match_sysdescr

logger = logging.getLogger(__name__)

SysDescrFetcher = Callable[[], Awaitable[Any]]


def _as_text(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8", errors="replace")
    return str(raw)


class VendorResolver:
    """
    Per-device profile resolution with a fingerprinted cache.

    Cache: {device_id: (device.fingerprint(), profile)}

    Concurrent resolutions of the same device compute the same profile,
    so a racing overwrite is harmless.
    """

    def __init__(self) -> None:
        self._cache: dict[str, tuple[tuple[Any, ...], VendorProfile]] = {}

    @staticmethod
    def validate(device: Device) -> None:
        """
        Check the configured vendor name.

        Raises:
            ConfigurationError: explicit vendor is not in the registry.
        """
        if not device.is_auto_vendor:
            get_profile(device.vendor)

    def cached(self, device: Device) -> VendorProfile | None:
        entry = self._cache.get(device.id)
        if entry is None or entry[0] != device.fingerprint():
            return None
        return entry[1]

    async def resolve(
        self, device: Device, fetch_sysdescr: SysDescrFetcher,
    ) -> VendorProfile:
        """
        Resolve the profile for a device.

        ``fetch_sysdescr`` is only awaited for auto-detected devices whose
        resolution is not cached. Transport errors from it propagate and
        nothing is cached, so the next cycle tries again.
        """
        profile = self.cached(device)
        if profile is not None:
            return profile

        if not device.is_auto_vendor:
            profile = get_profile(device.vendor)
        else:
            sys_descr = _as_text(await fetch_sysdescr())
            profile = match_sysdescr(sys_descr)
            logger.info(
                "Auto-detected %s ('%s') for %s (sysDescr=%r)",
                profile.display_name, profile.name, device.id, sys_descr[:80],
            )

        self._cache[device.id] = (device.fingerprint(), profile)
        return profile

    def invalidate(self, device_id: str) -> None:
        self._cache.pop(device_id, None)

    def clear(self) -> None:
        self._cache.clear()
