"""
Rollover Reconciler.

Turns consecutive readings of one wire counter into a non-negative octet
delta, handling wraparound, multi-wrap overflow and device resets.

Per CounterKey the reconciler is a two-state machine:

    NoBaseline --(reading v)--> HasBaseline      store v, emit nothing
    HasBaseline --(reading v)--> HasBaseline     store v, emit a delta

Delta policy for prior p, current v, width W, M = 2^W - 1, span = 2^W:

1. v >= p: delta = v - p.
2. v < p: single = (M - p) + v + 1, accepted unless the plausibility
   ceiling applies to W and single exceeds it.
3. Otherwise at least k = ceil((p - v) / M) wraps occurred. When the
   counter has a measured rate, k is raised to the wrap count that rate
   implies: round((rate * elapsed - (v - p)) / span). The delta is
   k * span - p + v.
4. k > max_wraps: counter reset. The delta is 0 and the baseline moves
   to v. With max_wraps = 0 every drop over the ceiling is a reset.

All arithmetic is on Python ints, exact for any width.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from bwcollector.core.enums import CounterWidth
from bwcollector.core.models import CounterKey, CounterState
from bwcollector.services.counter_store import CounterStateStore

logger = logging.getLogger(__name__)

DEFAULT_CEILING_BYTES = 2 * 1024**3
DEFAULT_MAX_WRAPS = 10


@dataclass(frozen=True)
class Reconciliation:
    """Outcome of one reading against an existing baseline."""

    delta_octets: int
    interval_seconds: float
    wraps: int = 0
    reset: bool = False


class RolloverReconciler:
    """
    Owns a CounterStateStore and is its only writer.

    ``observe()`` never awaits, so on one event loop a read-modify-write
    of a CounterState cannot interleave with another.
    """

    def __init__(
        self,
        store: CounterStateStore | None = None,
        *,
        ceiling_bytes: int = DEFAULT_CEILING_BYTES,
        ceiling_widths: Iterable[int] = (32,),
        max_wraps: int = DEFAULT_MAX_WRAPS,
    ) -> None:
        if max_wraps < 0:
            raise ValueError("max_wraps must not be negative")
        self.store = store if store is not None else CounterStateStore()
        self._ceiling_bytes = ceiling_bytes
        self._ceiling_widths = frozenset(ceiling_widths)
        self._max_wraps = max_wraps

    def ceiling_for(self, width: int) -> int | None:
        """Plausibility ceiling for this width, or None if it does not apply."""
        return self._ceiling_bytes if width in self._ceiling_widths else None

    def observe(
        self,
        key: CounterKey,
        value: int,
        timestamp: datetime,
        width: int,
    ) -> Reconciliation | None:
        """
        Feed one decoded reading.

        Returns None when the reading only establishes a baseline (first
        reading, counter width changed, or no time elapsed).
        """
        max_value = CounterWidth(width).max_value
        if value < 0 or value > max_value:
            raise ValueError(f"{key}: value {value} out of range for {width}-bit counter")

        state = self.store.get(key)
        if state is None:
            self.store.put(key, CounterState(value, timestamp, width))
            logger.debug("%s: baseline %d", key, value)
            return None

        if state.counter_width_bits != width:
            # 32-bit and 64-bit columns are different counters
            logger.info(
                "%s: counter width changed %d -> %d, rebaselining",
                key, state.counter_width_bits, width,
            )
            self.store.put(key, CounterState(value, timestamp, width))
            return None

        elapsed = (timestamp - state.last_timestamp).total_seconds()
        if elapsed <= 0:
            logger.warning(
                "%s: non-positive interval %.3fs, rebaselining", key, elapsed,
            )
            self.store.put(key, CounterState(value, timestamp, width, state.last_rate))
            return None

        result = self._reconcile(key, state, value, width, elapsed)
        rate = None if result.reset else result.delta_octets / elapsed
        self.store.put(key, CounterState(value, timestamp, width, rate))
        return result

    def _reconcile(
        self,
        key: CounterKey,
        state: CounterState,
        value: int,
        width: int,
        elapsed: float,
    ) -> Reconciliation:
        prior = state.last_raw_value
        if value >= prior:
            return Reconciliation(value - prior, elapsed)

        max_value = (1 << width) - 1
        span = max_value + 1
        single = (max_value - prior) + value + 1
        ceiling = self.ceiling_for(width)
        if ceiling is None or single <= ceiling:
            logger.debug("%s: single wrap, delta %d", key, single)
            return Reconciliation(single, elapsed, wraps=1)

        # ceiling division on ints
        wraps = -(-(prior - value) // max_value)
        if state.last_rate is not None:
            expected = state.last_rate * elapsed
            wraps = max(wraps, round((expected - (value - prior)) / span))
        if wraps > self._max_wraps:
            logger.warning(
                "%s: backward move %d -> %d needs %d wraps (max %d), "
                "treating as counter reset",
                key, prior, value, wraps, self._max_wraps,
            )
            return Reconciliation(0, elapsed, reset=True)

        delta = wraps * span - prior + value
        logger.info("%s: %d wraps reconstructed, delta %d", key, wraps, delta)
        return Reconciliation(delta, elapsed, wraps=wraps)
