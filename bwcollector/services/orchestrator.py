"""
Poll Orchestrator.

Drives the polling cycle: for every enabled device, concurrently and
with bounded fan-out, resolve the vendor profile, read all selected
interface counters in size-bounded batched GETs, decode, reconcile and emit
samples.

Failure handling per device:
- transport timeout      -> one soft retry of that query, then give up
- error response         -> no retry, device skipped for the cycle
- 64-bit decode failure  -> 32-bit OID for that counter, this cycle only
- second decode failure  -> handled like a transport error
A failing device never delays or cancels its siblings.
"""
from __future__ import annotations

import asyncio
import logging
import time as _time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from bwcollector.core.config import Settings, get_settings
from bwcollector.core.enums import Direction
from bwcollector.core.errors import (
    ConfigurationError,
    DecodeError,
    TransportError,
    Unsupported64BitError,
)
from bwcollector.core.inventory import validate_device
from bwcollector.core.models import CounterKey, Device, Sample
from bwcollector.services.reconciler import RolloverReconciler
from bwcollector.services.scheduler import SchedulerService
from bwcollector.services.sinks import SampleSink
from bwcollector.snmp.decoder import decode_counter
from bwcollector.snmp.engine import SnmpNoSuchObjectError, SnmpTarget, SnmpTimeoutError
from bwcollector.snmp.oid_maps import SYS_DESCR, instance
from bwcollector.snmp.vendor_profiles import CounterOid, VendorProfile
from bwcollector.snmp.vendor_resolver import VendorResolver

logger = logging.getLogger(__name__)

POLL_JOB_NAME = "poll_cycle"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CycleReport:
    """Outcome of one polling cycle."""

    started_at: datetime
    devices_total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    samples_emitted: int = 0
    fallbacks_32bit: int = 0
    resets: int = 0
    duration_seconds: float = 0.0
    errors: dict[str, str] = field(default_factory=dict)


@dataclass
class OrchestratorStats:
    """Counters accumulated across cycles."""

    cycles_run: int = 0
    cycles_skipped: int = 0
    device_failures: Counter[str] = field(default_factory=Counter)
    consecutive_failures: Counter[str] = field(default_factory=Counter)
    last_report: CycleReport | None = None


@dataclass(frozen=True)
class _Reading:
    key: CounterKey
    if_name: str
    value: int
    width: int
    timestamp: datetime


def _as_text(raw: Any) -> str:
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8", errors="replace").strip()
    return str(raw).strip()


class PollOrchestrator:
    """
    Fixed-interval poller over the configured devices.

    Only one cycle runs at a time: a cycle triggered while the previous one
    is still running is skipped, so every CounterKey keeps a single writer.
    """

    def __init__(
        self,
        engine: Any,
        sink: SampleSink,
        *,
        resolver: VendorResolver | None = None,
        reconciler: RolloverReconciler | None = None,
        settings: Settings | None = None,
        max_concurrency: int | None = None,
        device_timeout: float | None = None,
        snmp_timeout: float | None = None,
        soft_retries: int | None = None,
        max_oids_per_request: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        cfg = settings or get_settings()
        self._engine = engine
        self._sink = sink
        self._resolver = resolver or VendorResolver()
        self._reconciler = reconciler or RolloverReconciler(
            ceiling_bytes=cfg.wrap_plausibility_ceiling_bytes,
            ceiling_widths=cfg.wrap_ceiling_width_set,
            max_wraps=cfg.max_wraps_before_reset,
        )
        self._interval_seconds = cfg.polling_interval_seconds
        self._max_concurrency = max_concurrency or cfg.max_concurrent_device_polls
        self._device_timeout = device_timeout or cfg.device_poll_timeout
        self._snmp_timeout = snmp_timeout or cfg.snmp_timeout
        self._soft_retries = cfg.snmp_soft_retries if soft_retries is None else soft_retries
        self._max_oids = max_oids_per_request or cfg.snmp_max_oids_per_request
        self._clock = clock or _utcnow

        self._devices: list[Device] = []
        self._rejected: dict[str, str] = {}
        self._if_names: dict[str, dict[int, str]] = {}  # device_id -> {ifIndex: name}
        self._cycle_lock = asyncio.Lock()
        self._semaphore = asyncio.Semaphore(self._max_concurrency)
        self.stats = OrchestratorStats()

    # ── Configuration ────────────────────────────────────────────

    @property
    def devices(self) -> list[Device]:
        return list(self._devices)

    @property
    def rejected(self) -> dict[str, str]:
        return dict(self._rejected)

    @property
    def reconciler(self) -> RolloverReconciler:
        return self._reconciler

    def update_devices(self, devices: Iterable[Device]) -> None:
        """
        Replace the device set.

        Invalid devices are rejected individually. Devices whose config
        changed lose their cached vendor resolution and interface names;
        a changed address also drops the device's counter baselines.
        Counter state of removed devices and interfaces is discarded.
        """
        valid: list[Device] = []
        rejected: dict[str, str] = {}
        seen: set[str] = set()
        for device in devices:
            try:
                if device.id in seen:
                    raise ConfigurationError(
                        f"{device.id}: duplicate device id", device_id=device.id,
                    )
                validate_device(device)
            except ConfigurationError as e:
                logger.error("Rejected device %s: %s", device.id, e)
                rejected[device.id] = str(e)
                continue
            seen.add(device.id)
            valid.append(device)

        previous = {d.id: d for d in self._devices}
        for device in valid:
            prev = previous.get(device.id)
            if prev is None or prev == device:
                continue
            self._forget(device.id)
            if (prev.host, prev.port) != (device.host, device.port):
                self._reconciler.store.discard_device(device.id)
        for gone in set(previous) - seen:
            self._forget(gone)

        self._devices = valid
        self._rejected = rejected
        dropped = self._reconciler.store.retain(self._active_keys())
        logger.info(
            "Polling %d devices (%d rejected, %d counter states dropped)",
            len(valid), len(rejected), dropped,
        )

    def _forget(self, device_id: str) -> None:
        self._resolver.invalidate(device_id)
        self._if_names.pop(device_id, None)

    def _active_keys(self) -> list[CounterKey]:
        return [
            CounterKey(target.device_id, target.if_index, direction)
            for device in self._devices
            if device.enabled
            for target in device.interface_targets()
            for direction in Direction
        ]

    def start(self, scheduler: SchedulerService, initial_delay: float = 0) -> str:
        """Register the recurring polling cycle with the scheduler."""
        return scheduler.add_interval_job(
            POLL_JOB_NAME,
            self.run_cycle,
            self._interval_seconds,
            initial_delay=initial_delay,
        )

    # ── Cycle ────────────────────────────────────────────────────

    async def run_cycle(self) -> CycleReport | None:
        """
        Poll every enabled device once.

        Returns:
            The cycle report, or None if the cycle was skipped because the
            previous one is still running.
        """
        if self._cycle_lock.locked():
            self.stats.cycles_skipped += 1
            logger.warning("Previous polling cycle still running, skipping this one")
            return None

        async with self._cycle_lock:
            t0 = _time.monotonic()
            report = CycleReport(started_at=self._clock())
            devices = [d for d in self._devices if d.enabled]
            report.devices_total = len(devices)
            report.skipped = len(self._devices) - len(devices) + len(self._rejected)

            await asyncio.gather(*(self._poll_one(d, report) for d in devices))

            report.duration_seconds = _time.monotonic() - t0
            self.stats.cycles_run += 1
            self.stats.last_report = report
            logger.info(
                "Polling cycle: %d/%d devices ok, %d samples, %d fallbacks, "
                "%d resets, %.2fs",
                report.succeeded, report.devices_total, report.samples_emitted,
                report.fallbacks_32bit, report.resets, report.duration_seconds,
            )
            return report

    async def _poll_one(self, device: Device, report: CycleReport) -> bool:
        """Poll one device with isolation; never raises."""
        async with self._semaphore:
            try:
                samples = await asyncio.wait_for(
                    self._poll_device(device, report),
                    timeout=self._device_timeout,
                )
            except asyncio.TimeoutError:
                self._record_failure(
                    device, report,
                    f"device poll exceeded {self._device_timeout:.1f}s",
                )
                return False
            except TransportError as e:
                self._record_failure(device, report, str(e))
                return False
            except Exception as e:
                logger.exception("Unexpected error polling %s", device.id)
                self._record_failure(device, report, f"{type(e).__name__}: {e}")
                return False

        report.succeeded += 1
        if self.stats.consecutive_failures.pop(device.id, 0):
            logger.info("Device %s recovered", device.id)

        if samples:
            try:
                await self._sink.emit(samples)
            except Exception:
                logger.exception("Sample sink failed for %s", device.id)
                return True
            report.samples_emitted += len(samples)
        return True

    def _record_failure(self, device: Device, report: CycleReport, message: str) -> None:
        report.failed += 1
        report.errors[device.id] = message
        self.stats.device_failures[device.id] += 1
        self.stats.consecutive_failures[device.id] += 1
        logger.warning(
            "Polling %s failed (%d in a row): %s",
            device.id, self.stats.consecutive_failures[device.id], message,
        )

    async def _poll_device(self, device: Device, report: CycleReport) -> list[Sample]:
        """Query, decode and reconcile one device's counters."""
        target = self._target_for(device)
        profile = await self._resolver.resolve(
            device, lambda: self._fetch_sysdescr(target),
        )
        names = await self._interface_names(device, target, profile)
        readings = await self._read_counters(device, target, profile, names, report)

        # No awaits from here on: reconciliation of this device is atomic
        if device not in self._devices:
            logger.info("%s: removed or reconfigured during the poll, readings dropped", device.id)
            return []
        samples: list[Sample] = []
        for r in readings:
            result = self._reconciler.observe(r.key, r.value, r.timestamp, r.width)
            if result is None:
                continue
            if result.reset:
                report.resets += 1
            samples.append(
                Sample(
                    device_id=device.id,
                    if_index=r.key.if_index,
                    if_name=r.if_name,
                    direction=r.key.direction,
                    vendor=profile.name,
                    delta_octets=result.delta_octets,
                    interval_seconds=result.interval_seconds,
                    timestamp=r.timestamp,
                    counter_width_bits=r.width,
                    wraps=result.wraps,
                    reset=result.reset,
                )
            )
        return samples

    # ── SNMP helpers ─────────────────────────────────────────────

    def _target_for(self, device: Device) -> SnmpTarget:
        return SnmpTarget(
            ip=device.host,
            credentials=device.credentials,
            port=device.port,
            timeout=self._snmp_timeout,
            retries=0,
        )

    async def _query(self, target: SnmpTarget, *oids: str) -> dict[str, Any]:
        """GET with a soft retry on timeout only."""
        for attempt in range(self._soft_retries + 1):
            try:
                return await self._engine.get(target, *oids)
            except SnmpTimeoutError:
                if attempt >= self._soft_retries:
                    raise
                logger.warning(
                    "%s: SNMP timeout, retry %d/%d",
                    target.ip, attempt + 1, self._soft_retries,
                )
        raise SnmpTimeoutError(f"SNMP GET timeout: {target.ip}")  # unreachable

    async def _get_many(
        self, target: SnmpTarget, oids: list[str], *, tolerate_missing: bool = False,
    ) -> dict[str, Any]:
        """
        GET any number of OIDs in requests of at most ``max_oids_per_request``.

        With ``tolerate_missing``, a request rejected as noSuchName only
        leaves its own OIDs out of the result.
        """
        result: dict[str, Any] = {}
        for start in range(0, len(oids), self._max_oids):
            chunk = oids[start:start + self._max_oids]
            try:
                result.update(await self._query(target, *chunk))
            except SnmpNoSuchObjectError:
                if not tolerate_missing:
                    raise
                logger.info(
                    "%s: %d OIDs rejected as missing", target.ip, len(chunk),
                )
        return result

    async def _fetch_sysdescr(self, target: SnmpTarget) -> Any:
        result = await self._query(target, SYS_DESCR)
        return result.get(SYS_DESCR)

    async def _interface_names(
        self, device: Device, target: SnmpTarget, profile: VendorProfile,
    ) -> dict[int, str]:
        """Configured names, else names read once from the device and cached."""
        cached = self._if_names.setdefault(device.id, {})
        missing = [
            iface.index for iface in device.interfaces
            if not iface.name and iface.index not in cached
        ]
        if missing:
            oids = [instance(profile.oids.if_descr, idx) for idx in missing]
            result = await self._get_many(target, oids, tolerate_missing=True)
            for idx, oid in zip(missing, oids):
                raw = result.get(oid)
                if raw is not None and _as_text(raw):
                    cached[idx] = _as_text(raw)

        return {
            iface.index: iface.name or cached.get(iface.index) or f"ifIndex{iface.index}"
            for iface in device.interfaces
        }

    async def _read_counters(
        self,
        device: Device,
        target: SnmpTarget,
        profile: VendorProfile,
        names: dict[int, str],
        report: CycleReport,
    ) -> list[_Reading]:
        """
        Read and decode every selected counter of a device.

        All primary counters are batched into as few GETs as the request
        size limit allows; counters whose 64-bit value is unusable are
        re-read the same way from their 32-bit columns.
        """
        primary: dict[tuple[int, Direction], tuple[CounterOid, str]] = {}
        for iface in device.interfaces:
            for direction in Direction:
                counter = profile.oids.counter(direction)
                primary[(iface.index, direction)] = (
                    counter, instance(counter.oid, iface.index),
                )

        has_fallback = any(
            profile.oids.fallback(direction) is not None for direction in Direction
        )
        # SNMPv1 agents reject the whole PDU when one object is missing
        raw = await self._get_many(
            target,
            [oid for _, oid in primary.values()],
            tolerate_missing=has_fallback,
        )
        timestamp = self._clock()

        readings: list[_Reading] = []
        fallback: dict[tuple[int, Direction], tuple[CounterOid, str]] = {}
        for (if_index, direction), (counter, oid) in primary.items():
            try:
                value = decode_counter(raw.get(oid), counter.width)
            except Unsupported64BitError as e:
                alt = profile.oids.fallback(direction)
                if alt is None:
                    raise TransportError(f"{device.id}: {oid}: {e}") from e
                fallback[(if_index, direction)] = (alt, instance(alt.oid, if_index))
                continue
            except DecodeError as e:
                raise TransportError(f"{device.id}: {oid}: {e}") from e
            readings.append(
                _Reading(
                    key=CounterKey(device.id, if_index, direction),
                    if_name=names[if_index],
                    value=value,
                    width=int(counter.width),
                    timestamp=timestamp,
                )
            )

        if not fallback:
            return readings

        report.fallbacks_32bit += len(fallback)
        logger.info(
            "%s: 64-bit counters unusable for %d counters, using 32-bit this cycle",
            device.id, len(fallback),
        )
        raw = await self._get_many(target, [oid for _, oid in fallback.values()])
        timestamp = self._clock()
        for (if_index, direction), (counter, oid) in fallback.items():
            try:
                value = decode_counter(raw.get(oid), counter.width)
            except DecodeError as e:
                raise TransportError(
                    f"{device.id}: {oid}: 32-bit fallback failed: {e}"
                ) from e
            readings.append(
                _Reading(
                    key=CounterKey(device.id, if_index, direction),
                    if_name=names[if_index],
                    value=value,
                    width=int(counter.width),
                    timestamp=timestamp,
                )
            )
        return readings
